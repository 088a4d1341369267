"""Smart contract endpoints (records and deployment transitions)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import enforce_rate_limit, get_contract_service, get_current_actor
from app.schemas.smart_contract import (
    DeploymentConfirmation,
    DeploymentFailure,
    MintedTokensUpdate,
    MintingProgressResponse,
    SmartContractCreate,
    SmartContractResponse,
    SmartContractUpdate,
)
from app.security.policy import Actor
from app.services.contract_service import ContractService
from domain.core.errors import NotFound


router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("", response_model=SmartContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    data: SmartContractCreate,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    return SmartContractResponse.model_validate(await svc.create_contract(actor, data))


@router.get("", response_model=list[SmartContractResponse])
async def list_contracts(
    structure_id: Optional[str] = Query(None, alias="structureId", min_length=1, max_length=64),
    deployment_status: Optional[str] = Query(None, alias="deploymentStatus"),
    contract_address: Optional[str] = Query(None, alias="contractAddress", min_length=1, max_length=128),
    token_symbol: Optional[str] = Query(None, alias="tokenSymbol", min_length=1, max_length=32),
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> list[SmartContractResponse]:
    rows = await svc.list_contracts(
        actor,
        structure_id=structure_id,
        deployment_status=deployment_status,
        contract_address=contract_address,
        token_symbol=token_symbol,
    )
    return [SmartContractResponse.model_validate(c) for c in rows]


@router.get("/{contract_id}", response_model=SmartContractResponse)
async def get_contract(
    contract_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    found = await svc.get_contract(actor, contract_id)
    if found is None:
        raise NotFound(f"Smart contract '{contract_id}' not found.")
    return SmartContractResponse.model_validate(found)


@router.put("/{contract_id}", response_model=SmartContractResponse)
async def update_contract(
    contract_id: str,
    data: SmartContractUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    return SmartContractResponse.model_validate(await svc.update_contract(actor, contract_id, data))


@router.post("/{contract_id}/deploying", response_model=SmartContractResponse)
async def mark_deploying(
    contract_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    return SmartContractResponse.model_validate(await svc.mark_deploying(actor, contract_id))


@router.post("/{contract_id}/deployed", response_model=SmartContractResponse)
async def mark_deployed(
    contract_id: str,
    data: DeploymentConfirmation,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    payload = data.model_dump(exclude_none=True)
    return SmartContractResponse.model_validate(await svc.mark_deployed(actor, contract_id, payload))


@router.post("/{contract_id}/failed", response_model=SmartContractResponse)
async def mark_failed(
    contract_id: str,
    data: DeploymentFailure,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    return SmartContractResponse.model_validate(await svc.mark_failed(actor, contract_id, data.error_message))


@router.patch("/{contract_id}/minted-tokens", response_model=SmartContractResponse)
async def update_minted_tokens(
    contract_id: str,
    data: MintedTokensUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> SmartContractResponse:
    return SmartContractResponse.model_validate(await svc.update_minted_tokens(actor, contract_id, data.minted_tokens))


@router.get("/{contract_id}/minting-progress", response_model=MintingProgressResponse)
async def get_minting_progress(
    contract_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: ContractService = Depends(get_contract_service),
) -> MintingProgressResponse:
    return MintingProgressResponse.model_validate(await svc.get_minting_progress(actor, contract_id))
