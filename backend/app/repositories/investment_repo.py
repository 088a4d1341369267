"""Investment repository (aggregate inputs)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import select

from app.models.investment import Investment
from app.repositories.base import BaseRepository


@dataclass(frozen=True, slots=True)
class InvestmentDTO:
    id: str
    structure_id: str
    user_id: Optional[str]
    investment_name: Optional[str]
    investment_type: str
    amount: float
    status: str
    created_at: Optional[datetime]


class InvestmentRepository(BaseRepository[Investment]):
    model = Investment

    async def investor_ids_for(self, structure_id: str) -> list[Optional[str]]:
        """One investor id per investment row of the structure."""
        stmt = select(Investment.user_id).where(Investment.structure_id == structure_id)
        return list((await self._execute(stmt)).scalars().all())

    async def investor_rows_for(self, structure_ids: Iterable[str]) -> list[tuple[str, Optional[str]]]:
        """(structure_id, investor_id) for every investment of the given structures."""
        ids = list(structure_ids)
        if not ids:
            return []
        stmt = select(Investment.structure_id, Investment.user_id).where(Investment.structure_id.in_(ids))
        return [(r.structure_id, r.user_id) for r in (await self._execute(stmt)).all()]

    async def exists_for_user(self, user_id: str) -> bool:
        stmt = select(Investment.id).where(Investment.user_id == user_id).limit(1)
        return (await self._execute(stmt)).first() is not None

    async def list_for_structure(self, structure_id: str) -> Sequence[InvestmentDTO]:
        rows = await self.query(Investment.structure_id == structure_id, order_by=(Investment.created_at,))
        return [_to_investment_dto(r) for r in rows]

    async def create(self, values: dict[str, Any]) -> InvestmentDTO:
        return _to_investment_dto(await self.insert(values))


def _to_investment_dto(m: Investment) -> InvestmentDTO:
    return InvestmentDTO(
        id=m.id,
        structure_id=m.structure_id,
        user_id=m.user_id,
        investment_name=m.investment_name,
        investment_type=m.investment_type,
        amount=float(m.amount or 0),
        status=m.status,
        created_at=m.created_at,
    )
