from __future__ import annotations

from conftest import auth_header


ADMIN = auth_header("admin-1", "ADMIN")


def _create_structure(client, **body):
    payload = {"name": "Test Fund", "type": "FUND", "baseCurrency": "usd", **body}
    r = client.post("/v1/structures", json=payload, headers=ADMIN)
    assert r.status_code == 201, r.text
    return r.json()


def test_structure_response_uses_camel_case(client):
    body = _create_structure(client, totalCommitment=1_000_000)
    for key in (
        "id",
        "parentStructureId",
        "hierarchyLevel",
        "createdBy",
        "baseCurrency",
        "totalCalled",
        "totalDistributed",
        "totalInvested",
        "managementFee",
        "carriedInterest",
        "currentInvestors",
        "currentInvestments",
    ):
        assert key in body
    assert "hierarchy_level" not in body
    assert body["baseCurrency"] == "USD"
    assert body["totalCommitment"] == 1_000_000
    assert (body["currentInvestors"], body["currentInvestments"]) == (0, 0)


def test_snake_case_request_keys_are_accepted(client):
    parent = _create_structure(client)
    r = client.post(
        "/v1/structures",
        json={"name": "Sub", "type": "SPV", "parent_structure_id": parent["id"]},
        headers=ADMIN,
    )
    assert r.status_code == 201
    assert r.json()["hierarchyLevel"] == 1


def test_aggregates_over_http(client):
    s = _create_structure(client)
    for amount in (100, 200):
        r = client.post(f"/v1/structures/{s['id']}/investments", json={"investorId": "inv-1", "amount": amount}, headers=ADMIN)
        assert r.status_code == 201
        assert r.json()["investorId"] == "inv-1"

    body = client.get(f"/v1/structures/{s['id']}", headers=ADMIN).json()
    assert (body["currentInvestors"], body["currentInvestments"]) == (1, 2)
    assert len(client.get(f"/v1/structures/{s['id']}/investments", headers=ADMIN).json()) == 2


def test_hierarchy_endpoints(client):
    root = _create_structure(client)
    child = client.post("/v1/structures", json={"name": "C", "type": "SPV", "parentStructureId": root["id"]}, headers=ADMIN).json()

    roots = client.get("/v1/structures/root", headers=ADMIN).json()
    assert [r["id"] for r in roots] == [root["id"]]
    children = client.get(f"/v1/structures/{root['id']}/children", headers=ADMIN).json()
    assert [c["id"] for c in children] == [child["id"]]

    r = client.post("/v1/structures", json={"name": "X", "type": "SPV", "parentStructureId": "missing"}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_hierarchy"

    assert client.delete(f"/v1/structures/{root['id']}", headers=ADMIN).status_code == 204
    orphan = client.get(f"/v1/structures/{child['id']}", headers=ADMIN).json()
    assert orphan["parentStructureId"] == root["id"]


def test_parent_cannot_be_changed_after_creation(client):
    s = _create_structure(client)
    r = client.put(f"/v1/structures/{s['id']}", json={"parentStructureId": "other"}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"


def test_error_body_shapes(client):
    r = client.get("/v1/structures/missing", headers=ADMIN)
    assert r.status_code == 404
    assert r.json() == {"detail": "Structure 'missing' not found.", "error": "not_found"}

    r = client.post("/v1/structures", json={"type": "FUND"}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"

    r = client.post("/v1/structures", json={"name": "Bad", "type": "HEDGE"}, headers=ADMIN)
    assert r.status_code == 400

    r = client.patch("/v1/structures/missing/financials", json={"managementFee": 500}, headers=ADMIN)
    assert r.status_code == 400


def test_smart_contract_flow_over_http(client):
    s = _create_structure(client)
    r = client.post(
        "/v1/smart-contracts",
        json={"structureId": s["id"], "tokenName": "Fund Token", "tokenSymbol": "ftk", "maxTokens": 1000, "network": "polygon"},
        headers=ADMIN,
    )
    assert r.status_code == 201, r.text
    c = r.json()
    assert c["deploymentStatus"] == "pending"
    assert c["tokenSymbol"] == "FTK"
    assert c["contractAddress"] is None
    assert c["isFullyMinted"] is False

    cid = c["id"]
    assert client.post(f"/v1/smart-contracts/{cid}/deploying", headers=ADMIN).json()["deploymentStatus"] == "deploying"

    r = client.post(f"/v1/smart-contracts/{cid}/deployed", json={"contractAddress": "0xABCD"}, headers=ADMIN)
    assert r.status_code == 400

    r = client.post(
        f"/v1/smart-contracts/{cid}/deployed",
        json={"contractAddress": "0xABCD", "transactionHash": "0xTX", "blockNumber": 5},
        headers=ADMIN,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["deploymentStatus"] == "deployed"
    assert body["contractAddress"] == "0xABCD"
    assert body["deploymentError"] is None

    r = client.post(f"/v1/smart-contracts/{cid}/failed", json={"errorMessage": "too late"}, headers=ADMIN)
    assert r.status_code == 409
    assert r.json()["error"] == "invalid_transition"

    r = client.patch(f"/v1/smart-contracts/{cid}/minted-tokens", json={"mintedTokens": 250}, headers=ADMIN)
    assert r.status_code == 200
    progress = client.get(f"/v1/smart-contracts/{cid}/minting-progress", headers=ADMIN).json()
    assert progress == {
        "mintedTokens": 250,
        "maxTokens": 1000,
        "remainingTokens": 750,
        "progressPercentage": "25.00",
        "isFullyMinted": False,
    }

    found = client.get("/v1/smart-contracts", params={"tokenSymbol": "FTK"}, headers=ADMIN).json()
    assert [x["id"] for x in found] == [cid]


def test_failed_contract_over_http(client):
    s = _create_structure(client)
    cid = client.post("/v1/smart-contracts", json={"structureId": s["id"]}, headers=ADMIN).json()["id"]
    r = client.post(f"/v1/smart-contracts/{cid}/failed", json={"errorMessage": "Gas estimation failed"}, headers=ADMIN)
    assert r.status_code == 200
    body = r.json()
    assert body["deploymentStatus"] == "failed"
    assert body["deploymentError"] == "Gas estimation failed"
    assert body["contractAddress"] is None and body["transactionHash"] is None

    r = client.put(f"/v1/smart-contracts/{cid}", json={"deploymentStatus": "deployed"}, headers=ADMIN)
    assert r.status_code == 400


def test_user_endpoints(client):
    r = client.post("/v1/users/register", json={"id": "inv-1", "email": "Inv@Example.com", "firstName": "Ivy"})
    assert r.status_code == 201
    assert r.json()["role"] == 3
    assert r.json()["roleName"] == "INVESTOR"
    assert r.json()["firstName"] == "Ivy"

    me = auth_header("inv-1", "INVESTOR")
    assert client.get("/v1/users/profile", headers=me).json()["email"] == "inv@example.com"
    r = client.put("/v1/users/profile", json={"country": "CL"}, headers=me)
    assert r.json()["country"] == "CL"

    root = auth_header("root-1", "ROOT")
    r = client.patch("/v1/users/inv-1/status", json={"isActive": False}, headers=root)
    assert r.status_code == 200
    assert r.json()["isActive"] is False
    r = client.patch("/v1/users/inv-1/role", json={"role": 2}, headers=root)
    assert r.json()["roleName"] == "STAFF"
    assert [u["id"] for u in client.get("/v1/users", params={"role": "support"}, headers=root).json()] == ["inv-1"]
    assert client.delete("/v1/users/inv-1", headers=root).status_code == 204
    assert client.get("/v1/users/inv-1", headers=root).status_code == 404


def test_non_finite_financials_are_rejected(client):
    s = _create_structure(client)
    for raw in ('{"totalCalled": NaN}', '{"totalInvested": Infinity}'):
        r = client.patch(
            f"/v1/structures/{s['id']}/financials",
            content=raw,
            headers={**ADMIN, "Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    body = client.get(f"/v1/structures/{s['id']}", headers=ADMIN).json()
    assert (body["totalCalled"], body["totalInvested"]) == (0, 0)
