from __future__ import annotations

import asyncio

import pytest

from app.core.base import Base
from app.repositories.smart_contract_repo import SmartContractRepository
from app.repositories.structure_repo import StructureRepository
from app.repositories.user_repo import UserRepository
from app.security.roles import Role
from domain.core.deployment import DeploymentStatus
from domain.core.errors import StorageFailure


def test_single_record_miss_is_none(db_session):
    assert asyncio.run(StructureRepository(db_session).find_by_id("missing")) is None
    assert asyncio.run(UserRepository(db_session).find_by_email("nobody@example.com")) is None
    assert asyncio.run(SmartContractRepository(db_session).find_by_id("missing")) is None


def test_patch_and_remove_on_missing_row_return_none(db_session):
    repo = StructureRepository(db_session)
    assert asyncio.run(repo.patch("missing", {"name": "x"})) is None
    assert asyncio.run(repo.remove("missing")) is None


def test_connection_level_error_is_transient(engine, db_session):
    Base.metadata.tables["structures"].drop(engine)
    with pytest.raises(StorageFailure) as ei:
        asyncio.run(StructureRepository(db_session).find_by_id("any"))
    assert ei.value.transient is True
    assert ei.value.http_status == 503


def test_duplicate_email_is_permanent_and_session_stays_usable(db_session):
    repo = UserRepository(db_session)
    asyncio.run(repo.create({"id": "u1", "email": "a@example.com", "role": Role.INVESTOR}))
    with pytest.raises(StorageFailure) as ei:
        asyncio.run(repo.create({"id": "u2", "email": "a@example.com", "role": Role.INVESTOR}))
    assert ei.value.transient is False
    assert ei.value.http_status == 500

    # Rolled back: the next round-trip works.
    found = asyncio.run(repo.find_by_email("A@example.com"))
    assert found is not None and found.id == "u1"


def test_check_constraint_violation_is_storage_failure(db_session):
    repo = StructureRepository(db_session)
    with pytest.raises(StorageFailure):
        asyncio.run(repo.create({"name": "Bad", "type": "FUND", "created_by": "a", "hierarchy_level": 3}))


def test_guarded_transition_refuses_terminal_rows(db_session):
    repo = SmartContractRepository(db_session)
    c = asyncio.run(
        repo.create(
            {
                "structure_id": "s1",
                "contract_type": "ERC3643",
                "deployed_by": "a",
                "deployment_status": DeploymentStatus.FAILED,
                "deployment_error": "boom",
            }
        )
    )
    out = asyncio.run(repo.transition(c.id, DeploymentStatus.DEPLOYING, {"deployment_status": DeploymentStatus.DEPLOYING}))
    assert out is None
    assert asyncio.run(repo.find_by_id(c.id)).deployment_status is DeploymentStatus.FAILED
