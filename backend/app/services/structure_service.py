"""Structure hierarchy and financial rollup operations.

Every mutation passes the authorization evaluator before its first
storage write. Aggregates (investor / investment counts) are recomputed
from investment rows on every read and never stored.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional, Sequence

from app.core.events import log_event
from app.repositories.base import SessionLike
from app.repositories.investment_repo import InvestmentDTO, InvestmentRepository
from app.repositories.structure_repo import StructureDTO, StructureRepository
from app.schemas.structure import FinancialsUpdate, InvestmentCreate, StructureCreate, StructureUpdate
from app.security.policy import Actor, Operation, Resource, authorize, require
from domain.core.aggregation import aggregate_by_structure, compute_aggregates, validate_rollup_patch
from domain.core.errors import NotFound, StorageFailure, ValidationError
from domain.core.hierarchy import HierarchyNode, assert_acyclic, level_for_parent


logger = logging.getLogger(__name__)


class StructureService:
    def __init__(self, session: SessionLike) -> None:
        self._structures = StructureRepository(session)
        self._investments = InvestmentRepository(session)

    async def create_structure(self, actor: Actor, data: StructureCreate) -> StructureDTO:
        require(actor, Operation.CREATE_STRUCTURE)

        parent: Optional[HierarchyNode] = None
        if data.parent_structure_id is not None:
            parent = await assert_acyclic(None, data.parent_structure_id, self._structures.find_node)

        values = data.model_dump(exclude_none=True)
        values["type"] = data.type.value
        values["created_by"] = actor.identity
        values["hierarchy_level"] = level_for_parent(parent)

        created = await self._structures.create(values)
        log_event(
            "structure_created",
            structure_id=created.id,
            actor=actor.identity,
            parent_structure_id=created.parent_structure_id,
            hierarchy_level=created.hierarchy_level,
        )
        return created

    async def read_structure(self, actor: Actor, structure_id: str) -> Optional[StructureDTO]:
        """Structure with fresh aggregates, or None when it does not exist."""
        found = await self._structures.find_by_id(structure_id)
        if found is None:
            return None
        require(actor, Operation.VIEW_STRUCTURE, Resource(owner=found.created_by))
        return await self._with_aggregates(found)

    async def list_structures(
        self,
        actor: Actor,
        *,
        created_by: Optional[str] = None,
        type: Optional[str] = None,
        parent_structure_id: Optional[str] = None,
    ) -> list[StructureDTO]:
        """Conjunctive filter; callers without list-all access only see their own."""
        creator = self._visible_creator(actor, created_by)
        rows = await self._structures.find(created_by=creator, type=type, parent_structure_id=parent_structure_id)
        return await self._with_aggregates_many(rows)

    async def find_children(self, actor: Actor, parent_id: str) -> list[StructureDTO]:
        """Direct children only."""
        return await self.list_structures(actor, parent_structure_id=parent_id)

    async def find_roots(self, actor: Actor, creator_id: Optional[str] = None) -> list[StructureDTO]:
        creator = self._visible_creator(actor, creator_id)
        rows = await self._structures.find(created_by=creator, roots_only=True)
        return await self._with_aggregates_many(rows)

    async def update_structure(self, actor: Actor, structure_id: str, data: StructureUpdate) -> StructureDTO:
        patch = data.model_dump(exclude_none=True)
        if not patch:
            raise ValidationError("At least one field is required.")
        if data.type is not None:
            patch["type"] = data.type.value

        existing = await self._get_or_raise(structure_id)
        require(actor, Operation.UPDATE_STRUCTURE, Resource(owner=existing.created_by))

        updated = await self._structures.patch(structure_id, patch)
        if updated is None:
            raise NotFound(f"Structure '{structure_id}' not found.")
        return await self._with_aggregates(updated)

    async def update_financials(self, actor: Actor, structure_id: str, data: FinancialsUpdate) -> StructureDTO:
        """Replace rollup fields in one UPDATE; investor counts are untouched."""
        patch = validate_rollup_patch(data.model_dump(exclude_none=True))

        existing = await self._get_or_raise(structure_id)
        require(actor, Operation.UPDATE_FINANCIALS, Resource(owner=existing.created_by))

        updated = await self._structures.patch(structure_id, patch)
        if updated is None:
            raise NotFound(f"Structure '{structure_id}' not found.")
        log_event("financials_updated", structure_id=structure_id, actor=actor.identity, fields=sorted(patch))
        return await self._with_aggregates(updated)

    async def delete_structure(self, actor: Actor, structure_id: str) -> StructureDTO:
        """Remove one node. Children are NOT deleted and keep a dangling parent id."""
        existing = await self._get_or_raise(structure_id)
        require(actor, Operation.DELETE_STRUCTURE, Resource(owner=existing.created_by))

        orphaned = await self._structures.count_children(structure_id)
        removed = await self._structures.remove(structure_id)
        if removed is None:
            raise NotFound(f"Structure '{structure_id}' not found.")
        log_event(
            "structure_deleted",
            level=logging.WARNING if orphaned else logging.INFO,
            structure_id=structure_id,
            actor=actor.identity,
            orphaned_children=orphaned,
        )
        return removed

    async def record_investment(self, actor: Actor, structure_id: str, data: InvestmentCreate) -> InvestmentDTO:
        existing = await self._get_or_raise(structure_id)
        require(actor, Operation.RECORD_INVESTMENT, Resource(owner=existing.created_by))

        values = data.model_dump(exclude_none=True)
        values["user_id"] = values.pop("investor_id")
        values["structure_id"] = structure_id
        return await self._investments.create(values)

    async def list_investments(self, actor: Actor, structure_id: str) -> Sequence[InvestmentDTO]:
        existing = await self._get_or_raise(structure_id)
        require(actor, Operation.VIEW_STRUCTURE, Resource(owner=existing.created_by))
        return await self._investments.list_for_structure(structure_id)

    async def get_investor_count(self, structure_id: str) -> int:
        """Distinct investors; 0 when there are none or the read fails."""
        try:
            ids = await self._investments.investor_ids_for(structure_id)
        except StorageFailure as e:
            logger.warning("Investor count for %s unavailable; reporting 0: %s", structure_id, e)
            return 0
        return compute_aggregates(ids).current_investors

    async def get_investment_count(self, structure_id: str) -> int:
        """Investment records; 0 when there are none or the read fails."""
        try:
            ids = await self._investments.investor_ids_for(structure_id)
        except StorageFailure as e:
            logger.warning("Investment count for %s unavailable; reporting 0: %s", structure_id, e)
            return 0
        return compute_aggregates(ids).current_investments

    async def _get_or_raise(self, structure_id: str) -> StructureDTO:
        found = await self._structures.find_by_id(structure_id)
        if found is None:
            raise NotFound(f"Structure '{structure_id}' not found.")
        return found

    def _visible_creator(self, actor: Actor, requested: Optional[str]) -> Optional[str]:
        if requested == actor.identity or authorize(actor, Operation.LIST_ALL_STRUCTURES):
            return requested
        if requested is None:
            return actor.identity
        # Asking for someone else's structures without list-all access.
        require(actor, Operation.LIST_ALL_STRUCTURES)
        return requested

    async def _with_aggregates(self, structure: StructureDTO) -> StructureDTO:
        agg = compute_aggregates(await self._investments.investor_ids_for(structure.id))
        return dataclasses.replace(
            structure, current_investors=agg.current_investors, current_investments=agg.current_investments
        )

    async def _with_aggregates_many(self, rows: Sequence[StructureDTO]) -> list[StructureDTO]:
        ids = [s.id for s in rows]
        by_id = aggregate_by_structure(await self._investments.investor_rows_for(ids), ids)
        return [
            dataclasses.replace(
                s,
                current_investors=by_id[s.id].current_investors,
                current_investments=by_id[s.id].current_investments,
            )
            for s in rows
        ]
