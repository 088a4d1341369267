"""Structure and investment schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field, field_validator

from app.models.structure import StructureType
from app.schemas.common import CamelModel, CamelRequest


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class StructureCreate(CamelRequest):
    name: str = Field(..., min_length=1, max_length=255)
    type: StructureType
    description: Optional[str] = None
    status: str = Field("Active", min_length=1, max_length=50)
    parent_structure_id: Optional[str] = Field(None, min_length=1, max_length=64)
    base_currency: str = Field("USD", min_length=3, max_length=10)
    inception_date: Optional[date] = None
    total_commitment: float = Field(0, ge=0)
    management_fee: float = Field(2, ge=0, le=100)
    carried_interest: float = Field(20, ge=0, le=100)
    hurdle_rate: float = Field(8, ge=0, le=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("base_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


class StructureUpdate(CamelRequest):
    """Descriptive fields only; the parent link is fixed at creation."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[StructureType] = None
    description: Optional[str] = None
    status: Optional[str] = Field(None, min_length=1, max_length=50)
    base_currency: Optional[str] = Field(None, min_length=3, max_length=10)
    inception_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v) if v is not None else v

    @field_validator("base_currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class FinancialsUpdate(CamelRequest):
    total_commitment: Optional[float] = None
    total_called: Optional[float] = None
    total_distributed: Optional[float] = None
    total_invested: Optional[float] = None
    management_fee: Optional[float] = None
    carried_interest: Optional[float] = None
    hurdle_rate: Optional[float] = None


class StructureResponse(CamelModel):
    id: str
    name: str
    type: str
    description: Optional[str] = None
    status: str
    parent_structure_id: Optional[str] = None
    hierarchy_level: int
    created_by: str
    base_currency: str
    inception_date: Optional[date] = None
    total_commitment: float
    total_called: float
    total_distributed: float
    total_invested: float
    management_fee: float
    carried_interest: float
    hurdle_rate: float
    current_investors: int
    current_investments: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InvestmentCreate(CamelRequest):
    investor_id: str = Field(..., min_length=1, max_length=64)
    investment_name: Optional[str] = Field(None, max_length=255)
    investment_type: str = Field("EQUITY", min_length=1, max_length=20)
    amount: float = Field(0, ge=0)

    @field_validator("investment_type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.strip().upper()


class InvestmentResponse(CamelModel):
    id: str
    structure_id: str
    investor_id: Optional[str] = None
    investment_name: Optional[str] = None
    investment_type: str
    amount: float
    status: str
    created_at: Optional[datetime] = None
