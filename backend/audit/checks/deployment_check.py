"""Smart contract deployment integrity (success/failure field invariant, supply)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.smart_contract import SmartContract
from domain.core.deployment import invariant_violations


_FIELDS = (
    "deployment_status",
    "contract_address",
    "transaction_hash",
    "block_number",
    "deployment_error",
    "failed_at",
)


def run(db: Session) -> tuple[str, dict]:
    violations: list[dict] = []
    over_minted: list[str] = []

    for c in db.execute(select(SmartContract)).scalars():
        record = {f: getattr(c, f) for f in _FIELDS}
        problems = invariant_violations(record)
        if problems:
            violations.append({"id": c.id, "problems": problems})
        if (c.minted_tokens or 0) > (c.max_tokens or 0):
            over_minted.append(c.id)

    warnings: list[str] = []
    if violations:
        warnings.append(f"Contracts violating the deployment field invariant: {len(violations)}.")
    if over_minted:
        warnings.append(f"Contracts with mintedTokens above maxTokens: {len(over_minted)}.")

    status = "CRITICAL" if warnings else "OK"
    return status, {"violations": violations, "over_minted_ids": sorted(over_minted), "warnings": warnings}
