"""Structure forest rules.

Structures form a forest. `parent_structure_id` is a weak reference (a
lookup key, not an ownership edge):
- hierarchy_level is 0 for roots and parent.level + 1 for children.
- A parent must exist and must not be the structure itself or one of its
  descendants.
- Deleting a parent does NOT cascade. Children keep a dangling parent
  reference so audit history survives; `find_orphans` reports them.

Traversal helpers stay shallow (direct children / roots); the only
upward walk is the ancestor chain used for cycle detection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from domain.core.errors import InvalidHierarchy


# Upper bound on the ancestor walk for an existing structure; a longer chain
# is treated as corrupt. Creates never walk, so new nodes may sit at any depth.
MAX_HIERARCHY_DEPTH = 64


@dataclass(frozen=True, slots=True)
class HierarchyNode:
    id: str
    parent_structure_id: Optional[str]
    hierarchy_level: int


def level_for_parent(parent: Optional[HierarchyNode]) -> int:
    if parent is None:
        return 0
    return parent.hierarchy_level + 1


async def assert_acyclic(
    structure_id: Optional[str],
    parent_id: str,
    get_node: Callable[[str], Awaitable[Optional[HierarchyNode]]],
) -> HierarchyNode:
    """Validate a proposed parent link and return the parent node.

    A new structure (`structure_id` None) has no descendants, so only the
    parent's existence is checked. For an existing structure, walks up from
    `parent_id`; meeting `structure_id` on the way means the parent is a
    descendant. Each step is a separate storage round-trip.
    """
    if structure_id is not None and parent_id == structure_id:
        raise InvalidHierarchy("A structure cannot be its own parent.")

    parent = await get_node(parent_id)
    if parent is None:
        raise InvalidHierarchy(f"Parent structure '{parent_id}' does not exist.")
    if structure_id is None:
        return parent

    node: Optional[HierarchyNode] = parent
    seen: set[str] = set()
    for _ in range(MAX_HIERARCHY_DEPTH):
        if node is None or node.parent_structure_id is None:
            return parent
        if node.id in seen:
            raise InvalidHierarchy(f"Existing hierarchy above '{parent_id}' contains a cycle.")
        seen.add(node.id)
        if node.parent_structure_id == structure_id:
            raise InvalidHierarchy(
                f"Parent structure '{parent_id}' is a descendant of '{structure_id}'; cycles are not allowed."
            )
        node = await get_node(node.parent_structure_id)
    raise InvalidHierarchy(f"Hierarchy above '{parent_id}' exceeds {MAX_HIERARCHY_DEPTH} levels.")


def find_orphans(nodes: Iterable[HierarchyNode]) -> list[HierarchyNode]:
    """Children whose parent no longer exists (non-cascading delete)."""
    items = list(nodes)
    ids = {n.id for n in items}
    return [n for n in items if n.parent_structure_id is not None and n.parent_structure_id not in ids]


def level_mismatches(nodes: Iterable[HierarchyNode]) -> list[tuple[HierarchyNode, int]]:
    """Nodes whose stored level differs from parent.level + 1 (or 0 for roots).

    Orphans are skipped: their expected depth is undefined.
    """
    items = list(nodes)
    by_id = {n.id: n for n in items}
    out: list[tuple[HierarchyNode, int]] = []
    for n in items:
        if n.parent_structure_id is None:
            expected = 0
        else:
            parent = by_id.get(n.parent_structure_id)
            if parent is None:
                continue
            expected = parent.hierarchy_level + 1
        if n.hierarchy_level != expected:
            out.append((n, expected))
    return out
