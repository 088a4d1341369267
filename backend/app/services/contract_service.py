"""Smart contract records and their deployment lifecycle."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from app.core.events import log_event
from app.repositories.base import SessionLike
from app.repositories.smart_contract_repo import SmartContractDTO, SmartContractRepository
from app.repositories.structure_repo import StructureRepository
from app.schemas.smart_contract import SmartContractCreate, SmartContractUpdate
from app.security.policy import Actor, Operation, Resource, authorize, require
from domain.core.deployment import (
    DeploymentReceipt,
    DeploymentStatus,
    deployed_patch,
    deploying_patch,
    ensure_transition,
    failed_patch,
    initial_status,
    parse_status,
)
from domain.core.errors import InvalidTransition, NotFound, ValidationError
from domain.core.minting import MintingProgress, minting_progress, validate_minted_tokens


class ContractService:
    def __init__(self, session: SessionLike) -> None:
        self._contracts = SmartContractRepository(session)
        self._structures = StructureRepository(session)

    async def create_contract(self, actor: Actor, data: SmartContractCreate) -> SmartContractDTO:
        status = initial_status(data.deployment_status)

        structure = await self._structures.find_by_id(data.structure_id)
        if structure is None:
            raise NotFound(f"Structure '{data.structure_id}' not found.")
        require(actor, Operation.DEPLOY_CONTRACT, Resource(owner=structure.created_by))

        values = data.model_dump(exclude_none=True, exclude={"deployment_status"})
        values.update(deployment_status=status, deployed_by=actor.identity, minted_tokens=0)
        created = await self._contracts.create(values)
        log_event(
            "contract_created",
            contract_id=created.id,
            structure_id=created.structure_id,
            actor=actor.identity,
            status=created.deployment_status.value,
        )
        return created

    async def get_contract(self, actor: Actor, contract_id: str) -> Optional[SmartContractDTO]:
        found = await self._contracts.find_by_id(contract_id)
        if found is None:
            return None
        require(actor, Operation.VIEW_CONTRACT, Resource(owner=found.deployed_by))
        return found

    async def list_contracts(
        self,
        actor: Actor,
        *,
        structure_id: Optional[str] = None,
        deployment_status: Optional[str] = None,
        contract_address: Optional[str] = None,
        token_symbol: Optional[str] = None,
    ) -> list[SmartContractDTO]:
        """Filtered lookup; callers without view-any access only see contracts they deployed."""
        status = parse_status(deployment_status) if deployment_status is not None else None
        deployed_by = None if authorize(actor, Operation.VIEW_CONTRACT) else actor.identity
        return list(
            await self._contracts.find(
                structure_id=structure_id,
                deployed_by=deployed_by,
                deployment_status=status,
                contract_address=contract_address,
                token_symbol=token_symbol,
            )
        )

    async def update_contract(self, actor: Actor, contract_id: str, data: SmartContractUpdate) -> SmartContractDTO:
        """Metadata update; allowed in every state, never changes the status."""
        patch = data.model_dump(exclude_none=True)
        if not patch:
            raise ValidationError("At least one field is required.")

        existing = await self._get_or_raise(contract_id)
        require(actor, Operation.UPDATE_CONTRACT, Resource(owner=existing.deployed_by))
        if "max_tokens" in patch and patch["max_tokens"] < existing.minted_tokens:
            raise ValidationError(
                f"maxTokens ({patch['max_tokens']}) cannot be below mintedTokens ({existing.minted_tokens})."
            )

        updated = await self._contracts.patch(contract_id, patch)
        if updated is None:
            raise NotFound(f"Smart contract '{contract_id}' not found.")
        return updated

    async def mark_deploying(self, actor: Actor, contract_id: str) -> SmartContractDTO:
        return await self._transition(actor, contract_id, DeploymentStatus.DEPLOYING, deploying_patch)

    async def mark_deployed(self, actor: Actor, contract_id: str, payload: Mapping[str, Any]) -> SmartContractDTO:
        """Record on-chain success; address, transaction hash and block number are required."""
        receipt = DeploymentReceipt.from_payload(payload)

        def build(current: DeploymentStatus) -> dict[str, Any]:
            patch = deployed_patch(current, receipt)
            patch["deployment_response"] = dict(payload)
            return patch

        return await self._transition(actor, contract_id, DeploymentStatus.DEPLOYED, build)

    async def mark_failed(self, actor: Actor, contract_id: str, error_message: str) -> SmartContractDTO:
        if not (error_message or "").strip():
            raise ValidationError("A failed deployment requires a non-empty error message.")
        return await self._transition(
            actor, contract_id, DeploymentStatus.FAILED, lambda current: failed_patch(current, error_message)
        )

    async def update_minted_tokens(self, actor: Actor, contract_id: str, minted_tokens: int) -> SmartContractDTO:
        existing = await self._get_or_raise(contract_id)
        require(actor, Operation.UPDATE_MINTED_TOKENS, Resource(owner=existing.deployed_by))
        validate_minted_tokens(existing.deployment_status, minted_tokens, existing.max_tokens)

        updated = await self._contracts.set_minted_tokens(contract_id, minted_tokens)
        if updated is None:
            current = await self._get_or_raise(contract_id)
            # Status or supply changed between the read and the write.
            validate_minted_tokens(current.deployment_status, minted_tokens, current.max_tokens)
            raise InvalidTransition(f"Smart contract '{contract_id}' changed concurrently; retry the update.")
        log_event(
            "minted_tokens_updated",
            contract_id=contract_id,
            actor=actor.identity,
            minted_tokens=updated.minted_tokens,
            max_tokens=updated.max_tokens,
        )
        return updated

    async def get_minting_progress(self, actor: Actor, contract_id: str) -> MintingProgress:
        found = await self.get_contract(actor, contract_id)
        if found is None:
            raise NotFound(f"Smart contract '{contract_id}' not found.")
        return minting_progress(found.minted_tokens, found.max_tokens)

    async def _get_or_raise(self, contract_id: str) -> SmartContractDTO:
        found = await self._contracts.find_by_id(contract_id)
        if found is None:
            raise NotFound(f"Smart contract '{contract_id}' not found.")
        return found

    async def _transition(
        self,
        actor: Actor,
        contract_id: str,
        target: DeploymentStatus,
        build: Callable[[DeploymentStatus], dict[str, Any]],
    ) -> SmartContractDTO:
        existing = await self._get_or_raise(contract_id)
        require(actor, Operation.UPDATE_CONTRACT_STATUS, Resource(owner=existing.deployed_by))
        patch = build(existing.deployment_status)

        updated = await self._contracts.transition(contract_id, target, patch)
        if updated is None:
            # Lost a race: the row was removed or left a source state meanwhile.
            current = await self._get_or_raise(contract_id)
            ensure_transition(current.deployment_status, target)
            raise InvalidTransition(f"Smart contract '{contract_id}' changed concurrently; retry the transition.")

        log_event(
            "contract_status_changed",
            contract_id=contract_id,
            actor=actor.identity,
            from_status=existing.deployment_status.value,
            to_status=updated.deployment_status.value,
        )
        return updated
