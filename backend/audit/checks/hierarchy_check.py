"""Structure forest integrity.

Governance intent:
- Orphaned children are expected after a non-cascading delete; they are
  reported (DEGRADED) so someone decides whether to reparent or remove them.
- A stored hierarchy level that disagrees with the parent chain is a write
  path defect (CRITICAL).
- No repairs; warnings only.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.structure import Structure
from domain.core.hierarchy import HierarchyNode, find_orphans, level_mismatches


def load_nodes(db: Session) -> list[HierarchyNode]:
    rows = db.execute(select(Structure.id, Structure.parent_structure_id, Structure.hierarchy_level)).all()
    return [HierarchyNode(id=r.id, parent_structure_id=r.parent_structure_id, hierarchy_level=int(r.hierarchy_level)) for r in rows]


def run(db: Session) -> tuple[str, dict]:
    status = "OK"
    warnings: list[str] = []

    nodes = load_nodes(db)
    orphans = find_orphans(nodes)
    drift = level_mismatches(nodes)

    if orphans:
        status = "DEGRADED"
        warnings.append(f"Structures with a missing parent: {len(orphans)}.")
    if drift:
        status = "CRITICAL"
        warnings.append(f"Structures whose hierarchy level disagrees with their parent: {len(drift)}.")

    details = {
        "structures": len(nodes),
        "orphaned_structure_ids": sorted(n.id for n in orphans),
        "level_mismatches": [
            {"id": n.id, "stored": n.hierarchy_level, "expected": expected} for n, expected in drift
        ],
        "warnings": warnings,
    }
    return status, details
