from __future__ import annotations

import json
import logging

from conftest import auth_header, make_jwt


def _events(caplog, logger_name: str) -> list[dict]:
    out = []
    for rec in caplog.records:
        if rec.name != logger_name:
            continue
        try:
            out.append(json.loads(rec.getMessage()))
        except ValueError:
            continue
    return out


def test_access_log_is_structured_and_has_no_token(client, caplog):
    caplog.set_level(logging.INFO, logger="fundadmin")
    token = make_jwt("admin-1", "ADMIN")
    r = client.get("/v1/structures", headers={"Authorization": f"Bearer {token}", "x-request-id": "rid-1"})
    assert r.status_code == 200

    access = [e for e in _events(caplog, "fundadmin") if e.get("event") == "access"]
    assert access
    assert access[-1]["request_id"] == "rid-1"
    assert access[-1]["path"] == "/v1/structures"
    assert access[-1]["status_code"] == 200
    assert token not in caplog.text


def test_denied_authorization_is_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="fundadmin.audit")
    r = client.post("/v1/structures", json={"name": "Fund", "type": "FUND"}, headers=auth_header("inv-1", "INVESTOR"))
    assert r.status_code == 403

    denied = [e for e in _events(caplog, "fundadmin.audit") if e["event"] == "authorization_denied"]
    assert denied == [
        {
            "event": "authorization_denied",
            "actor": "inv-1",
            "role": "INVESTOR",
            "operation": "CreateStructure",
            "reason": "insufficient privilege",
        }
    ]


def test_structure_delete_reports_orphaned_children(client, caplog):
    caplog.set_level(logging.INFO, logger="fundadmin.audit")
    h = auth_header("admin-1", "ADMIN")
    parent = client.post("/v1/structures", json={"name": "P", "type": "FUND"}, headers=h).json()
    for name in ("C1", "C2"):
        client.post("/v1/structures", json={"name": name, "type": "SPV", "parentStructureId": parent["id"]}, headers=h)

    assert client.delete(f"/v1/structures/{parent['id']}", headers=h).status_code == 204

    deleted = [
        (rec.levelno, json.loads(rec.getMessage()))
        for rec in caplog.records
        if rec.name == "fundadmin.audit" and '"structure_deleted"' in rec.getMessage()
    ]
    assert len(deleted) == 1
    level, event = deleted[0]
    assert level == logging.WARNING
    assert event["structure_id"] == parent["id"]
    assert event["orphaned_children"] == 2


def test_contract_transitions_are_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="fundadmin.audit")
    h = auth_header("admin-1", "ADMIN")
    sid = client.post("/v1/structures", json={"name": "P", "type": "FUND"}, headers=h).json()["id"]
    cid = client.post("/v1/smart-contracts", json={"structureId": sid}, headers=h).json()["id"]
    client.post(f"/v1/smart-contracts/{cid}/failed", json={"errorMessage": "reverted"}, headers=h)

    changes = [e for e in _events(caplog, "fundadmin.audit") if e["event"] == "contract_status_changed"]
    assert [(e["from_status"], e["to_status"]) for e in changes] == [("pending", "failed")]
