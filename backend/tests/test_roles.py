from __future__ import annotations

import pytest

from app.security.roles import Role, alias_group, is_at_least, is_root, parse_role, rank
from domain.core.errors import InvalidRole, ValidationError


def test_rank_order_is_root_first():
    ordered = sorted({Role.GUEST, Role.INVESTOR, Role.STAFF, Role.ADMIN, Role.ROOT}, key=rank)
    assert ordered == [Role.ROOT, Role.ADMIN, Role.STAFF, Role.INVESTOR, Role.GUEST]


def test_staff_and_support_are_interchangeable():
    assert Role.SUPPORT is Role.STAFF
    assert rank(Role.SUPPORT) == rank(Role.STAFF) == 2
    assert alias_group(Role.SUPPORT) == frozenset({"STAFF", "SUPPORT"})
    assert alias_group(Role.ADMIN) == frozenset({"ADMIN"})
    assert is_at_least(Role.SUPPORT, Role.STAFF)
    assert is_at_least(Role.STAFF, Role.SUPPORT)


@pytest.mark.parametrize(
    "role,minimum,expected",
    [
        (Role.ROOT, Role.GUEST, True),
        (Role.ADMIN, Role.ADMIN, True),
        (Role.ADMIN, Role.ROOT, False),
        (Role.INVESTOR, Role.STAFF, False),
        (Role.GUEST, Role.INVESTOR, False),
    ],
)
def test_is_at_least(role, minimum, expected):
    assert is_at_least(role, minimum) is expected


def test_is_root_only_for_rank_zero():
    assert is_root(Role.ROOT)
    assert not any(is_root(r) for r in (Role.ADMIN, Role.STAFF, Role.INVESTOR, Role.GUEST))


@pytest.mark.parametrize(
    "raw,expected",
    [
        (0, Role.ROOT),
        ("1", Role.ADMIN),
        (" staff ", Role.STAFF),
        ("SUPPORT", Role.STAFF),
        ("investor", Role.INVESTOR),
        (Role.GUEST, Role.GUEST),
    ],
)
def test_parse_role_accepts_rank_and_name(raw, expected):
    assert parse_role(raw) is expected


@pytest.mark.parametrize("raw", [5, -1, "7", "owner", "", None, True, 1.0, ["ROOT"]])
def test_parse_role_rejects_unknown_values(raw):
    with pytest.raises(InvalidRole):
        parse_role(raw)


def test_invalid_role_is_a_validation_error_and_value_error():
    with pytest.raises(ValidationError):
        parse_role("superuser")
    with pytest.raises(ValueError):
        parse_role("superuser")
