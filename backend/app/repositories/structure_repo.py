"""Structure repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Sequence

from app.models.structure import Structure
from app.repositories.base import BaseRepository
from domain.core.hierarchy import HierarchyNode


@dataclass(frozen=True, slots=True)
class StructureDTO:
    id: str
    name: str
    type: str
    description: Optional[str]
    status: str
    parent_structure_id: Optional[str]
    hierarchy_level: int
    created_by: str
    base_currency: str
    inception_date: Optional[date]
    total_commitment: float
    total_called: float
    total_distributed: float
    total_invested: float
    management_fee: float
    carried_interest: float
    hurdle_rate: float
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    current_investors: int = 0
    current_investments: int = 0

    def as_node(self) -> HierarchyNode:
        return HierarchyNode(id=self.id, parent_structure_id=self.parent_structure_id, hierarchy_level=self.hierarchy_level)


class StructureRepository(BaseRepository[Structure]):
    model = Structure

    async def find_by_id(self, structure_id: str) -> Optional[StructureDTO]:
        row = await self.get_by_id(structure_id)
        return _to_structure_dto(row) if row is not None else None

    async def find(
        self,
        *,
        created_by: Optional[str] = None,
        type: Optional[str] = None,
        parent_structure_id: Optional[str] = None,
        roots_only: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[StructureDTO]:
        """Conjunctive filter over creator, type and parent."""
        criteria = []
        if created_by is not None:
            criteria.append(Structure.created_by == created_by)
        if type is not None:
            criteria.append(Structure.type == type)
        if parent_structure_id is not None:
            criteria.append(Structure.parent_structure_id == parent_structure_id)
        if roots_only:
            criteria.append(Structure.parent_structure_id.is_(None))
        rows = await self.query(*criteria, order_by=(Structure.created_at.desc(), Structure.id), limit=limit)
        return [_to_structure_dto(r) for r in rows]

    async def find_node(self, structure_id: str) -> Optional[HierarchyNode]:
        row = await self.get_by_id(structure_id)
        if row is None:
            return None
        return HierarchyNode(id=row.id, parent_structure_id=row.parent_structure_id, hierarchy_level=row.hierarchy_level)

    async def all_nodes(self) -> Sequence[HierarchyNode]:
        rows = await self.query()
        return [HierarchyNode(id=r.id, parent_structure_id=r.parent_structure_id, hierarchy_level=r.hierarchy_level) for r in rows]

    async def count_children(self, parent_id: str) -> int:
        return len(await self.query(Structure.parent_structure_id == parent_id))

    async def create(self, values: dict[str, Any]) -> StructureDTO:
        return _to_structure_dto(await self.insert(values))

    async def patch(self, structure_id: str, values: dict[str, Any]) -> Optional[StructureDTO]:
        row = await self.update(structure_id, values)
        return _to_structure_dto(row) if row is not None else None

    async def remove(self, structure_id: str) -> Optional[StructureDTO]:
        row = await self.delete(structure_id)
        return _to_structure_dto(row) if row is not None else None


def _num(v: Any) -> float:
    return float(v) if v is not None else 0.0


def _to_structure_dto(m: Structure) -> StructureDTO:
    return StructureDTO(
        id=m.id,
        name=m.name,
        type=m.type,
        description=m.description,
        status=m.status,
        parent_structure_id=m.parent_structure_id,
        hierarchy_level=int(m.hierarchy_level),
        created_by=m.created_by,
        base_currency=m.base_currency,
        inception_date=m.inception_date,
        total_commitment=_num(m.total_commitment),
        total_called=_num(m.total_called),
        total_distributed=_num(m.total_distributed),
        total_invested=_num(m.total_invested),
        management_fee=_num(m.management_fee),
        carried_interest=_num(m.carried_interest),
        hurdle_rate=_num(m.hurdle_rate),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )
