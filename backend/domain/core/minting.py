"""Token minting progress for deployed contracts."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from domain.core.deployment import DeploymentStatus
from domain.core.errors import InvalidTransition, ValidationError


@dataclass(frozen=True, slots=True)
class MintingProgress:
    minted_tokens: int
    max_tokens: int
    remaining_tokens: int
    progress_percentage: str
    is_fully_minted: bool


def is_fully_minted(minted_tokens: int, max_tokens: int) -> bool:
    return minted_tokens >= max_tokens


def minting_progress(minted_tokens: int, max_tokens: int) -> MintingProgress:
    """Progress with the percentage rendered to two decimals ("25.00")."""
    if max_tokens > 0:
        pct = (Decimal(minted_tokens) * 100 / Decimal(max_tokens)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    else:
        pct = Decimal("0.00")
    return MintingProgress(
        minted_tokens=minted_tokens,
        max_tokens=max_tokens,
        remaining_tokens=max(max_tokens - minted_tokens, 0),
        progress_percentage=f"{pct:.2f}",
        is_fully_minted=is_fully_minted(minted_tokens, max_tokens),
    )


def validate_minted_tokens(status: DeploymentStatus, minted_tokens: int, max_tokens: int) -> int:
    if status is not DeploymentStatus.DEPLOYED:
        raise InvalidTransition(f"Tokens can only be minted on a deployed contract (status is '{status.value}').")
    if minted_tokens < 0:
        raise ValidationError("mintedTokens must be >= 0.")
    if minted_tokens > max_tokens:
        raise ValidationError(f"mintedTokens ({minted_tokens}) exceeds maxTokens ({max_tokens}).")
    return minted_tokens
