from __future__ import annotations

import importlib
import sys

import httpx
import pytest
from fastapi.testclient import TestClient

from proof_core.devchain import DEV_ACCOUNT, DevChain
from proof_core.provider import JsonRpcProvider

from conftest import FIXED_NOW, PROFESSIONAL_EMAIL


_DEF_MODULES = ["proof_core.config", "api.storage", "api.app"]


@pytest.fixture
def api(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    for key in ("LEDGER_BACKEND", "CHAIN_ID", "CHAIN_NAME", "CHAIN_RPC_URL", "CONTRACT_ADDRESS"):
        monkeypatch.delenv(key, raising=False)
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
        else:
            __import__(name)
    app_module = sys.modules["api.app"]
    chain = DevChain.for_target(app_module.SETTINGS.target, clock=lambda: FIXED_NOW)
    app_module.app.dependency_overrides[app_module.get_provider] = lambda: chain
    app_module.app.dependency_overrides[app_module.get_contract_address] = lambda: chain.contract
    yield TestClient(app_module.app), chain
    app_module.app.dependency_overrides.clear()


def test_health_reports_dev_backend(api):
    client, _ = api
    body = client.get("/health").json()
    assert body["ledger_backend"] == "dev"
    assert body["chain_id"] == 1946
    assert body["contract_configured"] is True


def test_challenge_listing_and_filters(api):
    client, _ = api
    assert len(client.get("/challenges").json()["challenges"]) == 5
    english = client.get("/challenges", params={"category": "Business English"}).json()["challenges"]
    assert [c["id"] for c in english] == ["email-1", "email-2", "email-3"]
    hard = client.get("/challenges", params={"difficulty": "hard"}).json()["challenges"]
    assert [c["rubric"] for c in hard] == ["negotiation-response"]
    assert client.get("/challenges/random").json()["challenge"]["id"]
    assert client.get("/challenges/nope").status_code == 404


def test_score_endpoint(api):
    client, chain = api
    resp = client.post("/score", json={"challenge_id": "email-2", "answer": PROFESSIONAL_EMAIL})
    assert resp.status_code == 200
    body = resp.json()
    assert body["passed"] is True
    assert body["total"] == 100
    assert body["rubric"] == "correspondence-rewrite"
    assert chain.calls == []


def test_rejected_proof_carries_guidance(api):
    client, chain = api
    resp = client.post("/proofs", json={"challenge_id": "email-1", "answer": "hey thx asap", "fid": 7})
    body = resp.json()
    assert body["status"] == "rejected"
    assert body["error_kind"] == "ScoringRejected"
    assert body["guidance"] == "Edit your answer and submit again."
    assert body["credential_number"] is None
    assert chain.calls == []


def test_proof_without_fid_is_verified_only(api):
    client, chain = api
    body = client.post("/proofs", json={"challenge_id": "email-1", "answer": PROFESSIONAL_EMAIL}).json()
    assert body["status"] == "verified"
    assert body["onchain"] is None
    assert body["onchain_note"] == "Connect wallet to mint onchain credential"
    assert chain.calls == []


def test_minted_proof_is_stored_and_listed(api):
    client, chain = api
    body = client.post("/proofs", json={"challenge_id": "email-3", "answer": PROFESSIONAL_EMAIL, "fid": 77}).json()
    assert body["status"] == "confirmed"
    assert body["onchain"]["state"] == "Confirmed"
    assert body["onchain"]["explorer_url"].startswith("https://soneium-minato.blockscout.com/tx/0x")
    assert body["onchain"]["credential"]["fid"] == 77

    stored = client.get(f"/proofs/{body['id']}").json()
    assert stored["credential_number"] == body["credential_number"]

    listed = client.get("/fids/77/proofs").json()["proofs"]
    assert [p["id"] for p in listed] == [body["id"]]
    assert listed[0]["txHash"] == body["onchain"]["tx_hash"]
    assert client.get("/fids/78/proofs").json()["proofs"] == []

    creds = client.get(f"/ledger/{DEV_ACCOUNT}/credentials").json()
    assert creds["count"] == 1
    assert creds["credentials"][0]["skill_name"] == "Business English"


def test_signature_rejection_reported(api):
    client, chain = api
    chain.reject_signatures = True
    body = client.post("/proofs", json={"challenge_id": "email-1", "answer": PROFESSIONAL_EMAIL, "fid": 7}).json()
    assert body["passed"] is True
    assert body["status"] == "failed"
    assert body["error_kind"] == "UserRejectedSignature"
    assert body["guidance"].startswith("You declined")


def test_request_validation(api):
    client, _ = api
    assert client.post("/proofs", json={"challenge_id": "email-1", "answer": "x", "fid": 0}).status_code == 422
    assert client.post("/proofs", json={"challenge_id": "zzz", "answer": PROFESSIONAL_EMAIL}).status_code == 404
    assert client.get("/proofs/missing").status_code == 404
    assert client.get("/ledger/not-an-address/credentials").status_code == 400


def test_ledger_read_failure_is_bad_gateway(api):
    client, chain = api
    chain.chain_id = 1
    assert client.get(f"/ledger/{DEV_ACCOUNT}/credentials").status_code == 502


def test_gateway_page_from_node_is_bad_gateway(api):
    client, _ = api
    app_module = sys.modules["api.app"]
    node = JsonRpcProvider("https://rpc.example.test/",
                           transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>bad gateway</html>")))
    app_module.app.dependency_overrides[app_module.get_provider] = lambda: node
    assert client.get(f"/ledger/{DEV_ACCOUNT}/credentials").status_code == 502
