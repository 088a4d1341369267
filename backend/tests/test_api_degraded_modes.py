from __future__ import annotations

import pytest

from app.repositories.structure_repo import StructureRepository
from conftest import auth_header
from domain.core.errors import StorageFailure


ADMIN = auth_header("admin-1", "ADMIN")


def _fail_with(exc: BaseException):
    async def _raise(self, structure_id):
        raise exc

    return _raise


def test_transient_storage_failure_is_503(client, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        StructureRepository, "find_by_id", _fail_with(StorageFailure("connection refused by db-host", transient=True))
    )
    r = client.get("/v1/structures/abc", headers=ADMIN)
    assert r.status_code == 503
    assert r.json() == {"detail": "Service temporarily unavailable.", "error": "storage_failure"}
    assert "db-host" not in r.text


def test_permanent_storage_failure_is_500(client, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(StructureRepository, "find_by_id", _fail_with(StorageFailure("constraint blew up")))
    r = client.get("/v1/structures/abc", headers=ADMIN)
    assert r.status_code == 500
    assert r.json() == {"detail": "Storage failure.", "error": "storage_failure"}


def test_unexpected_error_is_500_with_request_id(client, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(StructureRepository, "find_by_id", _fail_with(KeyError("boom")))
    r = client.get("/v1/structures/abc", headers={**ADMIN, "x-request-id": "req-42"})
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal error."}
    assert r.headers["x-request-id"] == "req-42"


def test_request_id_is_generated_when_absent(client):
    r = client.get("/v1/structures", headers=ADMIN)
    assert r.status_code == 200
    assert r.headers.get("x-request-id")
