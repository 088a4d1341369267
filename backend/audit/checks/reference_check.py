"""Dangling structure references from investments and contracts.

References are lookup keys, not foreign keys, so deleting a structure
leaves them behind. Reported as DEGRADED; no repairs.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.investment import Investment
from app.models.smart_contract import SmartContract
from app.models.structure import Structure


def _dangling(db: Session, model) -> int:
    stmt = (
        select(func.count())
        .select_from(model)
        .outerjoin(Structure, Structure.id == model.structure_id)
        .where(Structure.id.is_(None))
    )
    return int(db.execute(stmt).scalar_one())


def run(db: Session) -> tuple[str, dict]:
    investments = _dangling(db, Investment)
    contracts = _dangling(db, SmartContract)

    warnings: list[str] = []
    if investments:
        warnings.append(f"Investments referencing a missing structure: {investments}.")
    if contracts:
        warnings.append(f"Smart contracts referencing a missing structure: {contracts}.")

    status = "DEGRADED" if warnings else "OK"
    return status, {
        "dangling_investments": investments,
        "dangling_smart_contracts": contracts,
        "warnings": warnings,
    }
