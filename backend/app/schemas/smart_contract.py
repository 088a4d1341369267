"""Smart contract schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, CamelRequest
from domain.core.deployment import DeploymentStatus


class SmartContractCreate(CamelRequest):
    structure_id: str = Field(..., min_length=1, max_length=64)
    contract_type: str = Field("ERC3643", min_length=1, max_length=32)
    network: Optional[str] = Field(None, max_length=64)
    token_name: Optional[str] = Field(None, max_length=255)
    token_symbol: Optional[str] = Field(None, min_length=1, max_length=32)
    max_tokens: int = Field(0, ge=0)
    token_value: Optional[float] = Field(None, ge=0)
    company: Optional[str] = Field(None, max_length=255)
    currency: Optional[str] = Field(None, max_length=10)
    project_name: Optional[str] = Field(None, max_length=255)
    # Optional explicit initial status (pending or deploying).
    deployment_status: Optional[str] = None

    @field_validator("contract_type", "token_symbol")
    @classmethod
    def upper_codes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class SmartContractUpdate(CamelRequest):
    """Metadata only; status and on-chain fields change through transitions."""

    contract_type: Optional[str] = Field(None, min_length=1, max_length=32)
    network: Optional[str] = Field(None, max_length=64)
    token_name: Optional[str] = Field(None, max_length=255)
    token_symbol: Optional[str] = Field(None, min_length=1, max_length=32)
    max_tokens: Optional[int] = Field(None, ge=0)
    token_value: Optional[float] = Field(None, ge=0)
    company: Optional[str] = Field(None, max_length=255)
    currency: Optional[str] = Field(None, max_length=10)
    project_name: Optional[str] = Field(None, max_length=255)

    @field_validator("contract_type", "token_symbol")
    @classmethod
    def upper_codes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class DeploymentConfirmation(CamelRequest):
    """Deployer response: flat fields or the nested `deployment` object."""

    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    compliance_registry_address: Optional[str] = None
    factory_address: Optional[str] = None
    identity_registry_address: Optional[str] = None
    deployment: Optional[dict[str, Any]] = None


class DeploymentFailure(CamelRequest):
    error_message: str = Field(..., min_length=1)


class MintedTokensUpdate(CamelRequest):
    minted_tokens: int


class SmartContractResponse(CamelModel):
    id: str
    structure_id: str
    contract_type: str
    network: Optional[str] = None
    token_name: Optional[str] = None
    token_symbol: Optional[str] = None
    max_tokens: int
    minted_tokens: int
    token_value: Optional[float] = None
    company: Optional[str] = None
    currency: Optional[str] = None
    project_name: Optional[str] = None
    deployment_status: DeploymentStatus
    deployed_by: str
    contract_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    deployed_at: Optional[datetime] = None
    compliance_registry_address: Optional[str] = None
    factory_address: Optional[str] = None
    identity_registry_address: Optional[str] = None
    deployment_error: Optional[str] = None
    failed_at: Optional[datetime] = None
    is_fully_minted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MintingProgressResponse(CamelModel):
    minted_tokens: int
    max_tokens: int
    remaining_tokens: int
    progress_percentage: str
    is_fully_minted: bool
