"""User account endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import enforce_rate_limit, get_current_actor, get_optional_actor, get_user_service
from app.schemas.user import ProfileUpdate, UserRegister, UserResponse, UserRoleUpdate, UserStatusUpdate
from app.security.policy import Actor
from app.security.roles import parse_role
from app.services.user_service import UserService
from domain.core.errors import NotFound


# Registration is open to anonymous callers; everything else is authenticated.
public_router = APIRouter()
router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@public_router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    data: UserRegister,
    actor: Optional[Actor] = Depends(get_optional_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_dto(await svc.register(actor, data))


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_dto(await svc.get_profile(actor))


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_dto(await svc.update_profile(actor, data))


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: Optional[str] = Query(None, description="Role rank or name"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    rows = await svc.list_users(actor, role=parse_role(role) if role is not None else None, is_active=is_active)
    return [UserResponse.from_dto(u) for u in rows]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    found = await svc.get_user(actor, user_id)
    if found is None:
        raise NotFound(f"User '{user_id}' not found.")
    return UserResponse.from_dto(found)


@router.patch("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_dto(await svc.update_status(actor, user_id, data.is_active))


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    data: UserRoleUpdate,
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> UserResponse:
    return UserResponse.from_dto(await svc.update_role(actor, user_id, data.role))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    actor: Actor = Depends(get_current_actor),
    svc: UserService = Depends(get_user_service),
) -> Response:
    await svc.delete_user(actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
