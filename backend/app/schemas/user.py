"""User account schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from app.repositories.user_repo import UserDTO
from app.schemas.common import CamelModel, CamelRequest
from app.security.roles import Role, parse_role


class UserRegister(CamelRequest):
    # Identity issued by the external auth service; generated when absent.
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=320)
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    role: Role = Role.INVESTOR
    phone_number: Optional[str] = Field(None, max_length=40)
    country: Optional[str] = Field(None, max_length=80)
    investor_type: Optional[str] = Field(None, max_length=40)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("must be a valid email address")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v: Any) -> Role:
        return parse_role(v)


class ProfileUpdate(CamelRequest):
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    phone_number: Optional[str] = Field(None, max_length=40)
    country: Optional[str] = Field(None, max_length=80)
    investor_type: Optional[str] = Field(None, max_length=40)
    profile_image: Optional[str] = None


class UserStatusUpdate(CamelRequest):
    is_active: bool


class UserRoleUpdate(CamelRequest):
    role: Role

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v: Any) -> Role:
        return parse_role(v)


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: int
    role_name: str
    is_active: bool
    phone_number: Optional[str] = None
    country: Optional[str] = None
    investor_type: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dto(cls, u: UserDTO) -> "UserResponse":
        return cls(
            id=u.id,
            email=u.email,
            first_name=u.first_name,
            last_name=u.last_name,
            role=int(u.role),
            role_name=u.role.name,
            is_active=u.is_active,
            phone_number=u.phone_number,
            country=u.country,
            investor_type=u.investor_type,
            profile_image=u.profile_image,
            created_at=u.created_at,
            updated_at=u.updated_at,
        )
