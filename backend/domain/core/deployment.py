"""Smart contract deployment lifecycle.

One deployment attempt per contract record, modelled as a finite state
machine:

    pending ──► deploying ──► deployed   (terminal, success)
       │            │  ▲
       │            └──┘  (re-announcing "deploying" is accepted)
       └────────────┴───► failed     (terminal, failure)

Rules:
- A record is created into `pending` unless the caller explicitly asks for
  `deploying` (a deployment already in flight client-side).
- `deployed` requires contract address, transaction hash and block number;
  it stamps `deployed_at` and clears any failure fields.
- `failed` requires a human-readable error; it stamps `failed_at` and
  clears any success fields.
- Terminal states accept no further transition (InvalidTransition).

The functions here are pure: they validate a transition and return the
column patch to write. Persistence applies the patch in a single UPDATE
guarded by `deployment_status IN transition_sources(target)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from domain.core.errors import InvalidTransition, ValidationError


UTC = timezone.utc


class DeploymentStatus(str, Enum):
    PENDING = "pending"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED})
INITIAL_STATES = frozenset({DeploymentStatus.PENDING, DeploymentStatus.DEPLOYING})
NON_TERMINAL_STATES = frozenset(DeploymentStatus) - TERMINAL_STATES

_TRANSITIONS: Mapping[DeploymentStatus, frozenset[DeploymentStatus]] = {
    DeploymentStatus.PENDING: frozenset({DeploymentStatus.DEPLOYING, DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED}),
    DeploymentStatus.DEPLOYING: frozenset({DeploymentStatus.DEPLOYING, DeploymentStatus.DEPLOYED, DeploymentStatus.FAILED}),
    DeploymentStatus.DEPLOYED: frozenset(),
    DeploymentStatus.FAILED: frozenset(),
}

SUCCESS_FIELDS = (
    "contract_address",
    "transaction_hash",
    "block_number",
    "deployed_at",
    "compliance_registry_address",
    "factory_address",
    "identity_registry_address",
)
FAILURE_FIELDS = ("deployment_error", "failed_at")


def parse_status(raw: Any) -> DeploymentStatus:
    """Convert raw input into a DeploymentStatus (case-insensitive)."""
    if isinstance(raw, DeploymentStatus):
        return raw
    try:
        return DeploymentStatus(str(raw).strip().lower())
    except ValueError as e:
        allowed = ", ".join(s.value for s in DeploymentStatus)
        raise ValidationError(f"Unknown deployment status {raw!r}; expected one of: {allowed}.") from e


def initial_status(requested: Optional[Any] = None) -> DeploymentStatus:
    """Status a new contract record starts in."""
    if requested is None:
        return DeploymentStatus.PENDING
    status = parse_status(requested)
    if status not in INITIAL_STATES:
        raise ValidationError(
            f"A contract cannot be created in status '{status.value}'; "
            "use the deployed/failed transitions instead."
        )
    return status


def is_terminal(status: DeploymentStatus) -> bool:
    return status in TERMINAL_STATES


def transition_sources(target: DeploymentStatus) -> frozenset[DeploymentStatus]:
    """States from which `target` may be entered."""
    return frozenset(s for s, targets in _TRANSITIONS.items() if target in targets)


def ensure_transition(current: DeploymentStatus, target: DeploymentStatus) -> None:
    if target not in _TRANSITIONS[current]:
        if is_terminal(current):
            raise InvalidTransition(
                f"Contract deployment is already '{current.value}'; "
                f"transition to '{target.value}' is not allowed."
            )
        raise InvalidTransition(f"Transition '{current.value}' -> '{target.value}' is not allowed.")


@dataclass(frozen=True, slots=True)
class DeploymentReceipt:
    """On-chain confirmation of a successful deployment."""

    contract_address: str
    transaction_hash: str
    block_number: int
    compliance_registry_address: Optional[str] = None
    factory_address: Optional[str] = None
    identity_registry_address: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DeploymentReceipt":
        """Build a receipt from a deployer response.

        Accepts a flat mapping or the deployer's nested
        ``{"deployment": {"tokenAddress": ..., "transactionHash": ...}}`` shape,
        in camelCase or snake_case.
        """
        data: Mapping[str, Any] = payload
        nested = payload.get("deployment")
        if isinstance(nested, Mapping):
            data = {**payload, **nested}

        def pick(*keys: str) -> Any:
            for k in keys:
                v = data.get(k)
                if v is not None and (not isinstance(v, str) or v.strip()):
                    return v.strip() if isinstance(v, str) else v
            return None

        address = pick("contract_address", "contractAddress", "tokenAddress", "token_address", "address")
        tx_hash = pick("transaction_hash", "transactionHash", "txHash", "tx_hash")
        block = pick("block_number", "blockNumber")

        missing = [
            name
            for name, value in (
                ("contractAddress", address),
                ("transactionHash", tx_hash),
                ("blockNumber", block),
            )
            if value is None
        ]
        if missing:
            raise ValidationError("Deployment confirmation is missing: " + ", ".join(missing) + ".")
        try:
            block_number = int(block)
        except (TypeError, ValueError) as e:
            raise ValidationError("blockNumber must be an integer.") from e
        if block_number < 0:
            raise ValidationError("blockNumber must be >= 0.")

        return cls(
            contract_address=str(address),
            transaction_hash=str(tx_hash),
            block_number=block_number,
            compliance_registry_address=pick("compliance_registry_address", "complianceRegistryAddress"),
            factory_address=pick("factory_address", "factoryAddress"),
            identity_registry_address=pick("identity_registry_address", "identityRegistryAddress"),
        )


def deploying_patch(current: DeploymentStatus) -> dict[str, Any]:
    ensure_transition(current, DeploymentStatus.DEPLOYING)
    return {"deployment_status": DeploymentStatus.DEPLOYING}


def deployed_patch(
    current: DeploymentStatus, receipt: DeploymentReceipt, *, at: Optional[datetime] = None
) -> dict[str, Any]:
    ensure_transition(current, DeploymentStatus.DEPLOYED)
    patch: dict[str, Any] = {field: None for field in FAILURE_FIELDS}
    patch.update(
        deployment_status=DeploymentStatus.DEPLOYED,
        contract_address=receipt.contract_address,
        transaction_hash=receipt.transaction_hash,
        block_number=receipt.block_number,
        deployed_at=at or datetime.now(tz=UTC),
        compliance_registry_address=receipt.compliance_registry_address,
        factory_address=receipt.factory_address,
        identity_registry_address=receipt.identity_registry_address,
    )
    return patch


def failed_patch(current: DeploymentStatus, error_message: str, *, at: Optional[datetime] = None) -> dict[str, Any]:
    ensure_transition(current, DeploymentStatus.FAILED)
    message = (error_message or "").strip()
    if not message:
        raise ValidationError("A failed deployment requires a non-empty error message.")
    patch: dict[str, Any] = {field: None for field in SUCCESS_FIELDS}
    patch.update(
        deployment_status=DeploymentStatus.FAILED,
        deployment_error=error_message,
        failed_at=at or datetime.now(tz=UTC),
    )
    return patch


def invariant_violations(record: Mapping[str, Any]) -> list[str]:
    """Check the success/failure field invariant for a contract row.

    Returns human-readable violations (empty when the record is consistent).
    """
    status = parse_status(record.get("deployment_status"))
    problems: list[str] = []
    success_core = [f for f in ("contract_address", "transaction_hash", "block_number") if record.get(f) is not None]
    failure_set = [f for f in FAILURE_FIELDS if record.get(f) is not None]

    if status in NON_TERMINAL_STATES:
        if success_core:
            problems.append(f"{status.value} contract has success fields set: {', '.join(success_core)}")
        if failure_set:
            problems.append(f"{status.value} contract has failure fields set: {', '.join(failure_set)}")
    elif status is DeploymentStatus.DEPLOYED:
        if len(success_core) != 3:
            problems.append("deployed contract is missing address, transaction hash or block number")
        if failure_set:
            problems.append("deployed contract has failure fields set")
    else:
        if not record.get("deployment_error"):
            problems.append("failed contract has no error message")
        if success_core:
            problems.append("failed contract has success fields set")
    return problems
