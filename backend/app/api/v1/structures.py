"""Structure endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import enforce_rate_limit, get_current_actor, get_structure_service
from app.models.structure import StructureType
from app.schemas.structure import (
    FinancialsUpdate,
    InvestmentCreate,
    InvestmentResponse,
    StructureCreate,
    StructureResponse,
    StructureUpdate,
)
from app.security.policy import Actor
from app.services.structure_service import StructureService
from domain.core.errors import NotFound


router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("", response_model=StructureResponse, status_code=status.HTTP_201_CREATED)
async def create_structure(
    data: StructureCreate,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> StructureResponse:
    return StructureResponse.model_validate(await svc.create_structure(actor, data))


@router.get("", response_model=list[StructureResponse])
async def list_structures(
    created_by: Optional[str] = Query(None, alias="createdBy", min_length=1, max_length=64),
    type: Optional[StructureType] = Query(None),
    parent_structure_id: Optional[str] = Query(None, alias="parentStructureId", min_length=1, max_length=64),
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> list[StructureResponse]:
    rows = await svc.list_structures(
        actor,
        created_by=created_by,
        type=type.value if type is not None else None,
        parent_structure_id=parent_structure_id,
    )
    return [StructureResponse.model_validate(s) for s in rows]


@router.get("/root", response_model=list[StructureResponse])
async def list_root_structures(
    created_by: Optional[str] = Query(None, alias="createdBy", min_length=1, max_length=64),
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> list[StructureResponse]:
    return [StructureResponse.model_validate(s) for s in await svc.find_roots(actor, created_by)]


@router.get("/{structure_id}", response_model=StructureResponse)
async def get_structure(
    structure_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> StructureResponse:
    found = await svc.read_structure(actor, structure_id)
    if found is None:
        raise NotFound(f"Structure '{structure_id}' not found.")
    return StructureResponse.model_validate(found)


@router.get("/{structure_id}/children", response_model=list[StructureResponse])
async def list_children(
    structure_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> list[StructureResponse]:
    return [StructureResponse.model_validate(s) for s in await svc.find_children(actor, structure_id)]


@router.put("/{structure_id}", response_model=StructureResponse)
async def update_structure(
    structure_id: str,
    data: StructureUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> StructureResponse:
    return StructureResponse.model_validate(await svc.update_structure(actor, structure_id, data))


@router.patch("/{structure_id}/financials", response_model=StructureResponse)
async def update_financials(
    structure_id: str,
    data: FinancialsUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> StructureResponse:
    return StructureResponse.model_validate(await svc.update_financials(actor, structure_id, data))


@router.delete("/{structure_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_structure(
    structure_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> Response:
    await svc.delete_structure(actor, structure_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{structure_id}/investments", response_model=list[InvestmentResponse])
async def list_investments(
    structure_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> list[InvestmentResponse]:
    return [_investment_response(i) for i in await svc.list_investments(actor, structure_id)]


@router.post("/{structure_id}/investments", response_model=InvestmentResponse, status_code=status.HTTP_201_CREATED)
async def record_investment(
    structure_id: str,
    data: InvestmentCreate,
    actor: Actor = Depends(get_current_actor),
    svc: StructureService = Depends(get_structure_service),
) -> InvestmentResponse:
    return _investment_response(await svc.record_investment(actor, structure_id, data))


def _investment_response(i) -> InvestmentResponse:
    return InvestmentResponse(
        id=i.id,
        structure_id=i.structure_id,
        investor_id=i.user_id,
        investment_name=i.investment_name,
        investment_type=i.investment_type,
        amount=i.amount,
        status=i.status,
        created_at=i.created_at,
    )
