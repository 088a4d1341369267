"""Role model for platform access control.

Roles are ranked: rank 0 is the most privileged (ROOT); a higher rank means
less privilege. STAFF and SUPPORT share rank 2 and are interchangeable in
every comparison (SUPPORT is an enum alias of STAFF).

The table is a process-wide immutable constant. Raw input is converted
with `parse_role` at the boundary; the rest of the code only ever sees
`Role` values.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from domain.core.errors import InvalidRole


class Role(IntEnum):
    """Platform roles (ordered by privilege, rank 0 highest)."""

    ROOT = 0
    ADMIN = 1
    STAFF = 2
    SUPPORT = 2
    INVESTOR = 3
    GUEST = 4


def rank(role: Role) -> int:
    return int(role)


def is_at_least(role: Role, minimum: Role) -> bool:
    """True iff `role` is equally or more privileged than `minimum`."""
    return rank(role) <= rank(minimum)


def is_root(role: Role) -> bool:
    return role is Role.ROOT


def alias_group(role: Role) -> frozenset[str]:
    """Names sharing the role's rank, e.g. {"STAFF", "SUPPORT"}."""
    return frozenset(name for name, member in Role.__members__.items() if member is role)


def parse_role(raw: Any) -> Role:
    """Convert raw input (rank number, numeric string or name) into a Role."""
    if isinstance(raw, Role):
        return raw
    if isinstance(raw, bool):
        raise InvalidRole(f"Invalid role: {raw!r}.")
    if isinstance(raw, int):
        try:
            return Role(raw)
        except ValueError as e:
            raise InvalidRole(f"Invalid role rank: {raw!r}.") from e
    if isinstance(raw, str):
        text = raw.strip()
        if text.lstrip("-").isdigit():
            return parse_role(int(text))
        member = Role.__members__.get(text.upper())
        if member is not None:
            return member
    raise InvalidRole(f"Invalid role: {raw!r}.")
