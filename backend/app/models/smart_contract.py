"""SmartContract model (token deployment record).

A structure may have zero or many contracts over its lifetime; the link
is a reference only. The deployment-field invariant is enforced both by the
lifecycle transitions and by table CHECK constraints:
- pending/deploying: no success fields, no failure fields
- deployed: address, tx hash and block number set; no failure fields
- failed: error message set; no success fields
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, CheckConstraint, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Enum as SAEnum

from app.core.base import Base, StringIdMixin, TimestampMixin
from domain.core.deployment import DeploymentStatus


class SmartContract(StringIdMixin, TimestampMixin, Base):
    __tablename__ = "smart_contracts"

    structure_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    contract_type: Mapped[str] = mapped_column(String(32), nullable=False)
    network: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    token_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    token_symbol: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)
    max_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    minted_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    token_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(20, 6), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    project_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    deployment_status: Mapped[DeploymentStatus] = mapped_column(
        SAEnum(
            DeploymentStatus,
            name="deployment_status",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=16,
        ),
        nullable=False,
        default=DeploymentStatus.PENDING,
        index=True,
    )
    deployed_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    contract_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    transaction_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    block_number: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    deployed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    compliance_registry_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    factory_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    identity_registry_address: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    deployment_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    deployment_response: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "deployment_status NOT IN ('pending', 'deploying') OR ("
            "contract_address IS NULL AND transaction_hash IS NULL AND block_number IS NULL "
            "AND deployment_error IS NULL)",
            name="ck_smart_contracts_in_flight_fields_empty",
        ),
        CheckConstraint(
            "deployment_status <> 'deployed' OR ("
            "contract_address IS NOT NULL AND transaction_hash IS NOT NULL AND block_number IS NOT NULL "
            "AND deployment_error IS NULL)",
            name="ck_smart_contracts_deployed_fields",
        ),
        CheckConstraint(
            "deployment_status <> 'failed' OR ("
            "deployment_error IS NOT NULL AND contract_address IS NULL AND transaction_hash IS NULL "
            "AND block_number IS NULL)",
            name="ck_smart_contracts_failed_fields",
        ),
        CheckConstraint("minted_tokens >= 0 AND max_tokens >= 0", name="ck_smart_contracts_token_counts"),
        Index("ix_smart_contracts_structure_status", "structure_id", "deployment_status"),
    )
