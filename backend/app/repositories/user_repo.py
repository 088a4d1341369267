"""User repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import func

from app.models.user import User
from app.repositories.base import BaseRepository
from app.security.roles import Role


@dataclass(frozen=True, slots=True)
class UserDTO:
    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: Role
    is_active: bool
    phone_number: Optional[str]
    country: Optional[str]
    investor_type: Optional[str]
    profile_image: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.email


class UserRepository(BaseRepository[User]):
    model = User

    async def find_by_id(self, user_id: str) -> Optional[UserDTO]:
        row = await self.get_by_id(user_id)
        return _to_user_dto(row) if row is not None else None

    async def find_by_email(self, email: str) -> Optional[UserDTO]:
        rows = await self.query(func.lower(User.email) == email.strip().lower(), limit=1)
        return _to_user_dto(rows[0]) if rows else None

    async def find(self, *, role: Optional[Role] = None, is_active: Optional[bool] = None, limit: Optional[int] = None) -> Sequence[UserDTO]:
        criteria = []
        if role is not None:
            criteria.append(User.role == int(role))
        if is_active is not None:
            criteria.append(User.is_active.is_(is_active))
        rows = await self.query(*criteria, order_by=(User.created_at.desc(), User.id), limit=limit)
        return [_to_user_dto(r) for r in rows]

    async def create(self, values: dict[str, Any]) -> UserDTO:
        return _to_user_dto(await self.insert(_to_columns(values)))

    async def patch(self, user_id: str, values: dict[str, Any]) -> Optional[UserDTO]:
        row = await self.update(user_id, _to_columns(values))
        return _to_user_dto(row) if row is not None else None

    async def remove(self, user_id: str) -> Optional[UserDTO]:
        row = await self.delete(user_id)
        return _to_user_dto(row) if row is not None else None


def _to_columns(values: dict[str, Any]) -> dict[str, Any]:
    out = dict(values)
    if isinstance(out.get("role"), Role):
        out["role"] = int(out["role"])
    return out


def _to_user_dto(m: User) -> UserDTO:
    return UserDTO(
        id=m.id,
        email=m.email,
        first_name=m.first_name,
        last_name=m.last_name,
        role=Role(int(m.role)),
        is_active=bool(m.is_active),
        phone_number=m.phone_number,
        country=m.country,
        investor_type=m.investor_type,
        profile_image=m.profile_image,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )
