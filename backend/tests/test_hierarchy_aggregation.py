from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from domain.core.aggregation import (
    EMPTY_AGGREGATES,
    StructureAggregates,
    aggregate_by_structure,
    compute_aggregates,
    validate_rollup_patch,
)
from domain.core.deployment import DeploymentStatus
from domain.core.errors import InvalidHierarchy, InvalidTransition, ValidationError
from domain.core.hierarchy import HierarchyNode, assert_acyclic, find_orphans, level_for_parent, level_mismatches
from domain.core.minting import minting_progress, validate_minted_tokens


def _lookup(nodes: list[HierarchyNode]):
    by_id = {n.id: n for n in nodes}

    async def get_node(node_id: str) -> Optional[HierarchyNode]:
        await asyncio.sleep(0)
        return by_id.get(node_id)

    return get_node


ROOT = HierarchyNode("root", None, 0)
CHILD = HierarchyNode("child", "root", 1)
GRANDCHILD = HierarchyNode("grandchild", "child", 2)


def test_investor_count_collapses_duplicates():
    assert compute_aggregates([]) == StructureAggregates(0, 0)
    assert compute_aggregates(["inv-1", "inv-1"]) == StructureAggregates(current_investors=1, current_investments=2)
    assert compute_aggregates(["a", "b", "a", None]) == StructureAggregates(current_investors=2, current_investments=4)


@pytest.mark.parametrize("ids", [[], ["a"], ["a", "a", "b"], [None, None], ["x", "y", "z", "x"]])
def test_investors_never_exceed_investments(ids):
    agg = compute_aggregates(ids)
    assert agg.current_investors <= agg.current_investments == len(ids)


def test_aggregate_by_structure_zero_fills():
    rows = [("s1", "a"), ("s1", "a"), ("s2", "b")]
    out = aggregate_by_structure(rows, ["s1", "s2", "s3"])
    assert out["s1"] == StructureAggregates(1, 2)
    assert out["s2"] == StructureAggregates(1, 1)
    assert out["s3"] == EMPTY_AGGREGATES


def test_level_for_parent():
    assert level_for_parent(None) == 0
    assert level_for_parent(CHILD) == 2


def test_assert_acyclic_returns_parent():
    parent = asyncio.run(assert_acyclic(None, "child", _lookup([ROOT, CHILD])))
    assert parent == CHILD


def test_assert_acyclic_rejects_self_and_unknown():
    with pytest.raises(InvalidHierarchy):
        asyncio.run(assert_acyclic("root", "root", _lookup([ROOT])))
    with pytest.raises(InvalidHierarchy):
        asyncio.run(assert_acyclic(None, "missing", _lookup([ROOT])))


def test_assert_acyclic_rejects_descendant():
    # Linking "child" under its own grandchild would close a loop.
    with pytest.raises(InvalidHierarchy):
        asyncio.run(assert_acyclic("child", "grandchild", _lookup([ROOT, CHILD, GRANDCHILD])))


def test_assert_acyclic_detects_corrupt_chain():
    a = HierarchyNode("a", "b", 1)
    b = HierarchyNode("b", "a", 1)
    with pytest.raises(InvalidHierarchy):
        asyncio.run(assert_acyclic("x", "a", _lookup([a, b])))


def test_new_structure_only_needs_an_existing_parent():
    chain = [HierarchyNode("n0", None, 0)] + [HierarchyNode(f"n{i}", f"n{i - 1}", i) for i in range(1, 100)]
    lookup = _lookup(chain)
    calls: list[str] = []

    async def counting(node_id: str) -> Optional[HierarchyNode]:
        calls.append(node_id)
        return await lookup(node_id)

    parent = asyncio.run(assert_acyclic(None, "n99", counting))
    assert parent.hierarchy_level == 99
    assert level_for_parent(parent) == 100
    assert calls == ["n99"]


def test_existing_structure_walk_is_bounded():
    chain = [HierarchyNode("n0", None, 0)] + [HierarchyNode(f"n{i}", f"n{i - 1}", i) for i in range(1, 100)]
    with pytest.raises(InvalidHierarchy):
        asyncio.run(assert_acyclic("elsewhere", "n99", _lookup(chain)))


def test_orphans_and_level_drift():
    orphan = HierarchyNode("orphan", "deleted-parent", 1)
    drifted = HierarchyNode("drifted", "root", 3)
    nodes = [ROOT, CHILD, orphan, drifted]
    assert find_orphans(nodes) == [orphan]
    assert level_mismatches(nodes) == [(drifted, 1)]


def test_validate_rollup_patch():
    assert validate_rollup_patch({"total_called": 100, "management_fee": "2.5"}) == {
        "total_called": 100.0,
        "management_fee": 2.5,
    }


@pytest.mark.parametrize(
    "patch",
    [
        {},
        {"total_called": None},
        {"current_investors": 3},
        {"total_called": -1},
        {"carried_interest": 101},
        {"total_invested": "lots"},
        {"total_called": float("nan")},
        {"total_invested": float("inf")},
        {"management_fee": float("-inf")},
        {"total_distributed": "NaN"},
    ],
)
def test_validate_rollup_patch_rejects(patch):
    with pytest.raises(ValidationError):
        validate_rollup_patch(patch)


def test_minting_progress():
    p = minting_progress(250, 1000)
    assert p.progress_percentage == "25.00"
    assert p.remaining_tokens == 750
    assert not p.is_fully_minted
    assert minting_progress(1, 3).progress_percentage == "33.33"
    assert minting_progress(0, 0).progress_percentage == "0.00"
    assert minting_progress(10, 10).is_fully_minted


def test_validate_minted_tokens():
    assert validate_minted_tokens(DeploymentStatus.DEPLOYED, 5, 10) == 5
    with pytest.raises(InvalidTransition):
        validate_minted_tokens(DeploymentStatus.PENDING, 5, 10)
    with pytest.raises(ValidationError):
        validate_minted_tokens(DeploymentStatus.DEPLOYED, 11, 10)
    with pytest.raises(ValidationError):
        validate_minted_tokens(DeploymentStatus.DEPLOYED, -1, 10)
