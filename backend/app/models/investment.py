"""Investment model.

Only the columns needed to derive structure aggregates and a minimal
description are modelled here. `structure_id` and `user_id` are lookup
references, not ownership edges.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base import Base, StringIdMixin, TimestampMixin


class Investment(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "investments"

    structure_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    investment_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    investment_type: Mapped[str] = mapped_column(String(20), nullable=False, default="EQUITY")
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Active")

    __table_args__ = (Index("ix_investments_structure_user", "structure_id", "user_id"),)
