from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain.core.deployment import (
    FAILURE_FIELDS,
    SUCCESS_FIELDS,
    DeploymentReceipt,
    DeploymentStatus,
    deployed_patch,
    deploying_patch,
    failed_patch,
    initial_status,
    invariant_violations,
    is_terminal,
    transition_sources,
)
from domain.core.errors import InvalidTransition, ValidationError


UTC = timezone.utc
PENDING, DEPLOYING, DEPLOYED, FAILED = (
    DeploymentStatus.PENDING,
    DeploymentStatus.DEPLOYING,
    DeploymentStatus.DEPLOYED,
    DeploymentStatus.FAILED,
)
RECEIPT = DeploymentReceipt(contract_address="0xABCD", transaction_hash="0xTX", block_number=42)


def test_initial_status_defaults_to_pending():
    assert initial_status() is PENDING
    assert initial_status("Deploying") is DEPLOYING


@pytest.mark.parametrize("raw", ["deployed", "failed", "bogus"])
def test_initial_status_rejects_terminal_or_unknown(raw):
    with pytest.raises(ValidationError):
        initial_status(raw)


def test_deploying_can_be_reannounced():
    assert deploying_patch(PENDING) == {"deployment_status": DEPLOYING}
    assert deploying_patch(DEPLOYING) == {"deployment_status": DEPLOYING}


@pytest.mark.parametrize("terminal", [DEPLOYED, FAILED])
def test_terminal_states_reject_every_transition(terminal):
    assert is_terminal(terminal)
    with pytest.raises(InvalidTransition):
        deploying_patch(terminal)
    with pytest.raises(InvalidTransition):
        deployed_patch(terminal, RECEIPT)
    with pytest.raises(InvalidTransition):
        failed_patch(terminal, "boom")


def test_transition_sources():
    assert transition_sources(DEPLOYED) == {PENDING, DEPLOYING}
    assert transition_sources(FAILED) == {PENDING, DEPLOYING}
    assert transition_sources(DEPLOYING) == {PENDING, DEPLOYING}
    assert transition_sources(PENDING) == frozenset()


def test_deployed_patch_sets_success_and_clears_failure():
    at = datetime(2025, 1, 1, tzinfo=UTC)
    patch = deployed_patch(DEPLOYING, RECEIPT, at=at)
    assert patch["deployment_status"] is DEPLOYED
    assert patch["contract_address"] == "0xABCD"
    assert patch["transaction_hash"] == "0xTX"
    assert patch["block_number"] == 42
    assert patch["deployed_at"] == at
    assert all(patch[f] is None for f in FAILURE_FIELDS)


def test_failed_patch_keeps_message_and_clears_success():
    patch = failed_patch(PENDING, "Gas estimation failed")
    assert patch["deployment_status"] is FAILED
    assert patch["deployment_error"] == "Gas estimation failed"
    assert patch["failed_at"] is not None
    assert all(patch[f] is None for f in SUCCESS_FIELDS)


@pytest.mark.parametrize("msg", ["", "   ", None])
def test_failed_patch_requires_message(msg):
    with pytest.raises(ValidationError):
        failed_patch(PENDING, msg)


def test_receipt_from_flat_payload():
    r = DeploymentReceipt.from_payload({"address": " 0xABCD ", "txHash": "0xTX", "blockNumber": "7"})
    assert r == DeploymentReceipt(contract_address="0xABCD", transaction_hash="0xTX", block_number=7)


def test_receipt_from_nested_deployer_payload():
    r = DeploymentReceipt.from_payload(
        {
            "deployment": {
                "tokenAddress": "0xTOKEN",
                "transactionHash": "0xTX",
                "blockNumber": 100,
                "identityRegistryAddress": "0xID",
                "complianceRegistryAddress": "0xCOMP",
            }
        }
    )
    assert r.contract_address == "0xTOKEN"
    assert r.identity_registry_address == "0xID"
    assert r.compliance_registry_address == "0xCOMP"
    assert r.factory_address is None


def test_receipt_requires_address_hash_and_block():
    with pytest.raises(ValidationError) as ei:
        DeploymentReceipt.from_payload({"address": "0xABCD"})
    assert "transactionHash" in ei.value.message
    assert "blockNumber" in ei.value.message


@pytest.mark.parametrize("block", ["abc", -1])
def test_receipt_rejects_bad_block_numbers(block):
    with pytest.raises(ValidationError):
        DeploymentReceipt.from_payload({"address": "0x1", "txHash": "0x2", "blockNumber": block})


def test_invariant_violations():
    assert invariant_violations({"deployment_status": "pending"}) == []
    assert invariant_violations(
        {"deployment_status": "deployed", "contract_address": "0x1", "transaction_hash": "0x2", "block_number": 1}
    ) == []
    assert invariant_violations({"deployment_status": "failed", "deployment_error": "x"}) == []

    assert invariant_violations({"deployment_status": "deploying", "contract_address": "0x1"})
    assert invariant_violations({"deployment_status": "deployed", "contract_address": "0x1"})
    assert invariant_violations({"deployment_status": "failed"})
    assert invariant_violations(
        {"deployment_status": "failed", "deployment_error": "x", "transaction_hash": "0x2"}
    )
