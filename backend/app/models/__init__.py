"""SQLAlchemy models package.

All ORM classes are imported here so they are registered in the metadata
deterministically, regardless of import order.
"""

from app.models import (  # noqa: F401
    investment,
    smart_contract,
    structure,
    user,
)
