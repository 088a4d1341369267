"""Structure model (funds and sub-entities).

`parent_structure_id` is deliberately NOT a foreign key: it is a weak
lookup reference. Deleting a parent leaves children with a dangling
reference (non-cascading delete policy, reported by the integrity audit).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base import Base, StringIdMixin, TimestampMixin


class StructureType(str, Enum):
    FUND = "FUND"
    SA_LLC = "SA_LLC"
    FIDEICOMISO = "FIDEICOMISO"
    PRIVATE_DEBT = "PRIVATE_DEBT"
    SPV = "SPV"


class Structure(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "structures"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Active")

    parent_structure_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    hierarchy_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    base_currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USD")
    inception_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    total_commitment: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    total_called: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    total_distributed: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    total_invested: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    management_fee: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=2)
    carried_interest: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=20)
    hurdle_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=8)

    __table_args__ = (
        CheckConstraint("hierarchy_level >= 0", name="ck_structures_hierarchy_level_non_negative"),
        CheckConstraint(
            "(parent_structure_id IS NULL AND hierarchy_level = 0) OR "
            "(parent_structure_id IS NOT NULL AND hierarchy_level > 0)",
            name="ck_structures_root_level_zero",
        ),
        CheckConstraint("parent_structure_id IS NULL OR parent_structure_id <> id", name="ck_structures_not_self_parent"),
        Index("ix_structures_created_by_parent", "created_by", "parent_structure_id"),
    )
