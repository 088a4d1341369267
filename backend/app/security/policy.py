"""Authorization evaluator (single choke point).

`authorize(actor, operation, resource)` is pure, synchronous and total over
the declared operation set. Rules, first match wins:

1. Root-account protection: operations that would create, change or remove
   a ROOT-ranked account are denied for every actor, ROOT included.
2. ROOT actor: allowed.
3. Root-only operations: denied for non-ROOT actors.
4. Own-resource operations: allowed for the owner; otherwise allowed only
   when the actor's role grants the elevated "any" capability.
5. Minimum-role operations: allowed at or above the declared role.
6. Default: deny.

Services call `require()` before any mutating round-trip. Nothing
downstream re-implements privilege checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from app.core.events import log_event
from app.security.roles import Role, is_at_least, is_root
from domain.core.errors import AuthorizationDenied


ROOT_ACCOUNT_PROTECTED = "cannot modify root account"
ROOT_REQUIRED = "root access required"
NOT_OWNER = "not resource owner"
INSUFFICIENT = "insufficient privilege"


@dataclass(frozen=True, slots=True)
class Actor:
    """Resolved caller identity, validated at the transport boundary."""

    identity: str
    role: Role


class Operation(str, Enum):
    VIEW_OWN_PROFILE = "ViewOwnProfile"
    UPDATE_OWN_PROFILE = "UpdateOwnProfile"
    VIEW_ANY_PROFILE = "ViewAnyProfile"
    LIST_USERS = "ListUsers"
    REGISTER_PRIVILEGED_USER = "RegisterPrivilegedUser"
    UPDATE_USER_STATUS = "UpdateUserStatus"
    DEACTIVATE_OWN_ACCOUNT = "DeactivateOwnAccount"
    UPDATE_USER_ROLE = "UpdateUserRole"
    DELETE_USER = "DeleteUser"
    CREATE_STRUCTURE = "CreateStructure"
    VIEW_STRUCTURE = "ViewStructure"
    LIST_ALL_STRUCTURES = "ListAllStructures"
    UPDATE_STRUCTURE = "UpdateStructure"
    UPDATE_FINANCIALS = "UpdateFinancials"
    RECORD_INVESTMENT = "RecordInvestment"
    DELETE_STRUCTURE = "DeleteStructure"
    DEPLOY_CONTRACT = "DeployContract"
    VIEW_CONTRACT = "ViewContract"
    UPDATE_CONTRACT = "UpdateContract"
    UPDATE_CONTRACT_STATUS = "UpdateContractStatus"
    UPDATE_MINTED_TOKENS = "UpdateMintedTokens"


class Scope(str, Enum):
    ROOT_ONLY = "ROOT_ONLY"
    OWNER = "OWNER"
    MINIMUM_ROLE = "MINIMUM_ROLE"


@dataclass(frozen=True, slots=True)
class Policy:
    scope: Scope
    minimum_role: Optional[Role] = None
    any_resource_role: Optional[Role] = None
    protects_root_account: bool = False


@dataclass(frozen=True, slots=True)
class Resource:
    """Target of an operation: its owner and, for user accounts, the target role."""

    owner: Optional[str] = None
    target_role: Optional[Role] = None


@dataclass(frozen=True, slots=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


POLICIES: Mapping[Operation, Policy] = MappingProxyType(
    {
        Operation.VIEW_OWN_PROFILE: Policy(Scope.OWNER, any_resource_role=Role.STAFF),
        Operation.UPDATE_OWN_PROFILE: Policy(Scope.OWNER),
        Operation.VIEW_ANY_PROFILE: Policy(Scope.MINIMUM_ROLE, minimum_role=Role.STAFF),
        Operation.LIST_USERS: Policy(Scope.ROOT_ONLY),
        Operation.REGISTER_PRIVILEGED_USER: Policy(Scope.ROOT_ONLY, protects_root_account=True),
        Operation.UPDATE_USER_STATUS: Policy(Scope.ROOT_ONLY, protects_root_account=True),
        # Owners may only deactivate; reactivation goes through UPDATE_USER_STATUS.
        Operation.DEACTIVATE_OWN_ACCOUNT: Policy(Scope.OWNER, protects_root_account=True),
        Operation.UPDATE_USER_ROLE: Policy(Scope.ROOT_ONLY, protects_root_account=True),
        Operation.DELETE_USER: Policy(Scope.ROOT_ONLY, protects_root_account=True),
        Operation.CREATE_STRUCTURE: Policy(Scope.MINIMUM_ROLE, minimum_role=Role.ADMIN),
        Operation.VIEW_STRUCTURE: Policy(Scope.OWNER, any_resource_role=Role.STAFF),
        Operation.LIST_ALL_STRUCTURES: Policy(Scope.MINIMUM_ROLE, minimum_role=Role.STAFF),
        Operation.UPDATE_STRUCTURE: Policy(Scope.OWNER),
        Operation.UPDATE_FINANCIALS: Policy(Scope.OWNER),
        Operation.RECORD_INVESTMENT: Policy(Scope.OWNER),
        Operation.DELETE_STRUCTURE: Policy(Scope.OWNER),
        Operation.DEPLOY_CONTRACT: Policy(Scope.OWNER),
        Operation.VIEW_CONTRACT: Policy(Scope.OWNER, any_resource_role=Role.STAFF),
        Operation.UPDATE_CONTRACT: Policy(Scope.OWNER),
        Operation.UPDATE_CONTRACT_STATUS: Policy(Scope.OWNER),
        Operation.UPDATE_MINTED_TOKENS: Policy(Scope.OWNER),
    }
)


def authorize(actor: Actor, operation: Operation, resource: Optional[Resource] = None) -> Decision:
    """Decide ALLOW/DENY for `actor` performing `operation` on `resource`."""
    res = resource or Resource()
    policy = POLICIES.get(operation)
    if policy is None:
        return deny(INSUFFICIENT)

    if policy.protects_root_account and res.target_role is not None and is_root(res.target_role):
        return deny(ROOT_ACCOUNT_PROTECTED)

    if is_root(actor.role):
        return ALLOW

    if policy.scope is Scope.ROOT_ONLY:
        return deny(ROOT_REQUIRED)

    is_owner = res.owner is not None and res.owner == actor.identity

    if policy.scope is Scope.OWNER:
        if is_owner:
            return ALLOW
        if policy.any_resource_role is not None and is_at_least(actor.role, policy.any_resource_role):
            return ALLOW
        return deny(NOT_OWNER)

    if policy.scope is Scope.MINIMUM_ROLE and policy.minimum_role is not None:
        if is_at_least(actor.role, policy.minimum_role):
            return ALLOW

    return deny(INSUFFICIENT)


def require(actor: Actor, operation: Operation, resource: Optional[Resource] = None) -> None:
    """Raise AuthorizationDenied unless `authorize` allows the operation."""
    decision = authorize(actor, operation, resource)
    if decision.allowed:
        return
    log_event(
        "authorization_denied",
        actor=actor.identity,
        role=actor.role.name,
        operation=operation.value,
        reason=decision.reason,
    )
    raise AuthorizationDenied(decision.reason or INSUFFICIENT)
