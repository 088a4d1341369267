"""User account model.

Accounts are soft-disabled through `is_active`; ROOT-ranked accounts are
never deactivated, demoted or deleted through the application.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base import Base, StringIdMixin, TimestampMixin


class User(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    role: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=3, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    investor_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (CheckConstraint("role >= 0 AND role <= 4", name="ck_users_role_range"),)
