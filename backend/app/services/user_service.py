"""User accounts: registration, profiles, and root-managed status / role."""

from __future__ import annotations

from typing import Optional, Sequence

from app.core.events import log_event
from app.repositories.base import SessionLike
from app.repositories.investment_repo import InvestmentRepository
from app.repositories.user_repo import UserDTO, UserRepository
from app.schemas.user import ProfileUpdate, UserRegister
from app.security.policy import Actor, Operation, Resource, require
from app.security.roles import Role
from domain.core.errors import NotFound, ValidationError


# Caller of the open registration endpoint when no bearer token is sent.
ANONYMOUS = Actor(identity="anonymous", role=Role.GUEST)

# Roles anyone may register into without elevated access.
SELF_SERVICE_ROLES = frozenset({Role.INVESTOR, Role.GUEST})


class UserService:
    def __init__(self, session: SessionLike) -> None:
        self._users = UserRepository(session)
        self._investments = InvestmentRepository(session)

    async def register(self, actor: Optional[Actor], data: UserRegister) -> UserDTO:
        caller = actor or ANONYMOUS
        if data.role not in SELF_SERVICE_ROLES:
            require(caller, Operation.REGISTER_PRIVILEGED_USER, Resource(target_role=data.role))

        if data.id is not None and await self._users.find_by_id(data.id) is not None:
            raise ValidationError(f"User '{data.id}' already exists.")
        if await self._users.find_by_email(data.email) is not None:
            raise ValidationError("Email is already registered.")

        return await self._users.create(data.model_dump(exclude_none=True))

    async def get_profile(self, actor: Actor) -> UserDTO:
        require(actor, Operation.VIEW_OWN_PROFILE, Resource(owner=actor.identity))
        return await self._get_or_raise(actor.identity)

    async def update_profile(self, actor: Actor, data: ProfileUpdate) -> UserDTO:
        patch = data.model_dump(exclude_none=True)
        if not patch:
            raise ValidationError("At least one field is required.")
        require(actor, Operation.UPDATE_OWN_PROFILE, Resource(owner=actor.identity))

        updated = await self._users.patch(actor.identity, patch)
        if updated is None:
            raise NotFound(f"User '{actor.identity}' not found.")
        return updated

    async def get_user(self, actor: Actor, user_id: str) -> Optional[UserDTO]:
        if user_id == actor.identity:
            require(actor, Operation.VIEW_OWN_PROFILE, Resource(owner=user_id))
        else:
            require(actor, Operation.VIEW_ANY_PROFILE)
        return await self._users.find_by_id(user_id)

    async def list_users(
        self, actor: Actor, *, role: Optional[Role] = None, is_active: Optional[bool] = None
    ) -> Sequence[UserDTO]:
        require(actor, Operation.LIST_USERS)
        return await self._users.find(role=role, is_active=is_active)

    async def update_status(self, actor: Actor, user_id: str, is_active: bool) -> UserDTO:
        """Activate / deactivate. ROOT-ranked accounts are never changed.

        Users may deactivate their own account; every other change, including
        reactivating oneself, is root-only.
        """
        target = await self._get_or_raise(user_id)
        own_deactivation = target.id == actor.identity and not is_active
        operation = Operation.DEACTIVATE_OWN_ACCOUNT if own_deactivation else Operation.UPDATE_USER_STATUS
        require(actor, operation, Resource(owner=target.id, target_role=target.role))

        updated = await self._users.patch(user_id, {"is_active": is_active})
        if updated is None:
            raise NotFound(f"User '{user_id}' not found.")
        log_event("user_status_changed", user_id=user_id, actor=actor.identity, is_active=is_active)
        return updated

    async def update_role(self, actor: Actor, user_id: str, role: Role) -> UserDTO:
        """Change a role; nobody is moved onto or away from ROOT here."""
        target = await self._get_or_raise(user_id)
        require(actor, Operation.UPDATE_USER_ROLE, Resource(target_role=target.role))
        require(actor, Operation.UPDATE_USER_ROLE, Resource(target_role=role))

        updated = await self._users.patch(user_id, {"role": role})
        if updated is None:
            raise NotFound(f"User '{user_id}' not found.")
        log_event(
            "user_role_changed",
            user_id=user_id,
            actor=actor.identity,
            from_role=target.role.name,
            to_role=updated.role.name,
        )
        return updated

    async def delete_user(self, actor: Actor, user_id: str) -> UserDTO:
        target = await self._get_or_raise(user_id)
        require(actor, Operation.DELETE_USER, Resource(target_role=target.role))
        if await self._investments.exists_for_user(user_id):
            raise ValidationError("User is referenced by investments; deactivate the account instead.")

        removed = await self._users.remove(user_id)
        if removed is None:
            raise NotFound(f"User '{user_id}' not found.")
        log_event("user_deleted", user_id=user_id, actor=actor.identity)
        return removed

    async def _get_or_raise(self, user_id: str) -> UserDTO:
        found = await self._users.find_by_id(user_id)
        if found is None:
            raise NotFound(f"User '{user_id}' not found.")
        return found
