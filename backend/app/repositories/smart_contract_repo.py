"""Smart contract repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from app.models.smart_contract import SmartContract
from app.repositories.base import BaseRepository
from domain.core.deployment import DeploymentStatus, transition_sources


@dataclass(frozen=True, slots=True)
class SmartContractDTO:
    id: str
    structure_id: str
    contract_type: str
    network: Optional[str]
    token_name: Optional[str]
    token_symbol: Optional[str]
    max_tokens: int
    minted_tokens: int
    token_value: Optional[float]
    company: Optional[str]
    currency: Optional[str]
    project_name: Optional[str]
    deployment_status: DeploymentStatus
    deployed_by: str
    contract_address: Optional[str]
    transaction_hash: Optional[str]
    block_number: Optional[int]
    deployed_at: Optional[datetime]
    compliance_registry_address: Optional[str]
    factory_address: Optional[str]
    identity_registry_address: Optional[str]
    deployment_error: Optional[str]
    failed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def is_fully_minted(self) -> bool:
        return self.minted_tokens >= self.max_tokens


class SmartContractRepository(BaseRepository[SmartContract]):
    model = SmartContract

    async def find_by_id(self, contract_id: str) -> Optional[SmartContractDTO]:
        row = await self.get_by_id(contract_id)
        return _to_contract_dto(row) if row is not None else None

    async def find(
        self,
        *,
        structure_id: Optional[str] = None,
        deployed_by: Optional[str] = None,
        deployment_status: Optional[DeploymentStatus] = None,
        contract_address: Optional[str] = None,
        token_symbol: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Sequence[SmartContractDTO]:
        criteria = []
        if structure_id is not None:
            criteria.append(SmartContract.structure_id == structure_id)
        if deployed_by is not None:
            criteria.append(SmartContract.deployed_by == deployed_by)
        if deployment_status is not None:
            criteria.append(SmartContract.deployment_status == deployment_status)
        if contract_address is not None:
            criteria.append(SmartContract.contract_address == contract_address.strip())
        if token_symbol is not None:
            criteria.append(SmartContract.token_symbol == token_symbol.strip().upper())
        rows = await self.query(*criteria, order_by=(SmartContract.created_at.desc(), SmartContract.id), limit=limit)
        return [_to_contract_dto(r) for r in rows]

    async def create(self, values: dict[str, Any]) -> SmartContractDTO:
        return _to_contract_dto(await self.insert(values))

    async def patch(self, contract_id: str, values: dict[str, Any]) -> Optional[SmartContractDTO]:
        row = await self.update(contract_id, values)
        return _to_contract_dto(row) if row is not None else None

    async def transition(self, contract_id: str, target: DeploymentStatus, values: dict[str, Any]) -> Optional[SmartContractDTO]:
        """Apply a status patch only if the stored status may still enter `target`.

        None means the row is gone or another writer moved it out of a source
        state in the meantime.
        """
        sources = sorted(transition_sources(target), key=lambda s: s.value)
        row = await self.update(contract_id, values, SmartContract.deployment_status.in_(sources))
        return _to_contract_dto(row) if row is not None else None

    async def set_minted_tokens(self, contract_id: str, minted_tokens: int) -> Optional[SmartContractDTO]:
        """Guarded on status and supply so a concurrent change cannot be overrun."""
        row = await self.update(
            contract_id,
            {"minted_tokens": minted_tokens},
            SmartContract.deployment_status == DeploymentStatus.DEPLOYED,
            SmartContract.max_tokens >= minted_tokens,
        )
        return _to_contract_dto(row) if row is not None else None

    async def remove(self, contract_id: str) -> Optional[SmartContractDTO]:
        row = await self.delete(contract_id)
        return _to_contract_dto(row) if row is not None else None


def _to_contract_dto(m: SmartContract) -> SmartContractDTO:
    return SmartContractDTO(
        id=m.id,
        structure_id=m.structure_id,
        contract_type=m.contract_type,
        network=m.network,
        token_name=m.token_name,
        token_symbol=m.token_symbol,
        max_tokens=int(m.max_tokens or 0),
        minted_tokens=int(m.minted_tokens or 0),
        token_value=float(m.token_value) if m.token_value is not None else None,
        company=m.company,
        currency=m.currency,
        project_name=m.project_name,
        deployment_status=DeploymentStatus(m.deployment_status),
        deployed_by=m.deployed_by,
        contract_address=m.contract_address,
        transaction_hash=m.transaction_hash,
        block_number=int(m.block_number) if m.block_number is not None else None,
        deployed_at=m.deployed_at,
        compliance_registry_address=m.compliance_registry_address,
        factory_address=m.factory_address,
        identity_registry_address=m.identity_registry_address,
        deployment_error=m.deployment_error,
        failed_at=m.failed_at,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )
