"""Derived structure aggregates and financial rollup validation.

Aggregates are computed fresh from investment rows at read time:
- current_investments = number of investment records
- current_investors   = number of DISTINCT investor identities among them

so current_investors <= current_investments always holds. The investment
read is a separate round-trip from the structure read; aggregates are
eventually consistent, not snapshot-consistent.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from domain.core.errors import ValidationError


@dataclass(frozen=True, slots=True)
class StructureAggregates:
    current_investors: int = 0
    current_investments: int = 0


EMPTY_AGGREGATES = StructureAggregates()


def compute_aggregates(investor_ids: Iterable[Optional[str]]) -> StructureAggregates:
    """Aggregate one structure's investment rows (one investor id per row)."""
    ids = list(investor_ids)
    distinct = {i for i in ids if i is not None}
    return StructureAggregates(current_investors=len(distinct), current_investments=len(ids))


def aggregate_by_structure(
    rows: Iterable[tuple[str, Optional[str]]], structure_ids: Iterable[str] = ()
) -> dict[str, StructureAggregates]:
    """Aggregate (structure_id, investor_id) rows for many structures at once.

    Every id in `structure_ids` is present in the result, zero-filled.
    """
    grouped: dict[str, list[Optional[str]]] = defaultdict(list)
    for structure_id, investor_id in rows:
        grouped[structure_id].append(investor_id)
    out = {sid: EMPTY_AGGREGATES for sid in structure_ids}
    for sid, ids in grouped.items():
        out[sid] = compute_aggregates(ids)
    return out


# Rollup fields and whether they are percentages (bounded to 0..100).
ROLLUP_FIELDS: Mapping[str, bool] = {
    "total_commitment": False,
    "total_called": False,
    "total_distributed": False,
    "total_invested": False,
    "management_fee": True,
    "carried_interest": True,
    "hurdle_rate": True,
}


def validate_rollup_patch(patch: Mapping[str, Any]) -> dict[str, float]:
    """Validate a financial-rollup patch; returns only the provided fields."""
    unknown = set(patch) - set(ROLLUP_FIELDS)
    if unknown:
        raise ValidationError("Unknown financial field(s): " + ", ".join(sorted(unknown)) + ".")

    clean: dict[str, float] = {}
    for field, value in patch.items():
        if value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{field} must be numeric.") from e
        if not math.isfinite(number):
            raise ValidationError(f"{field} must be a finite number.")
        if number < 0:
            raise ValidationError(f"{field} must be >= 0.")
        if ROLLUP_FIELDS[field] and number > 100:
            raise ValidationError(f"{field} is a percentage and must be <= 100.")
        clean[field] = number

    if not clean:
        raise ValidationError("At least one financial field is required.")
    return clean
