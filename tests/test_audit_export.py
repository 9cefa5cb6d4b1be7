from __future__ import annotations

import importlib
import sys

import pytest
from fastapi.testclient import TestClient

from proof_core.audit_export import AuditTrail, to_csv, to_json

from conftest import PROFESSIONAL_EMAIL


_DEF_MODULES = [
    "proof_core.config",
    "api.storage",
    "api.app",
]


def _reload_app(tmp_path, monkeypatch, **env) -> object:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    for key in ("LEDGER_BACKEND", "CHAIN_ID", "CONTRACT_ADDRESS", "AUDIT_EXPORT_ENABLED"):
        monkeypatch.delenv(key, raising=False)
    for key, val in env.items():
        monkeypatch.setenv(key, val)
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
        else:
            __import__(name)
    return sys.modules["api.app"]


def test_trail_exports_fixed_columns():
    trail = AuditTrail()
    trail.record("simulate", "Simulated", chain_id=1946)
    trail.record("submit", "Failed", chain_id=None, error_kind="UserRejectedSignature", detail="User rejected")

    payload = to_json(trail.events)
    assert [e["phase"] for e in payload["events"]] == ["simulate", "submit"]
    assert payload["events"][0]["chain_id"] == 1946
    assert payload["events"][1]["chain_id"] == 0
    assert payload["events"][0]["tx_hash"] == ""

    lines = to_csv(trail.events).strip().splitlines()
    assert lines[0] == "t,phase,state,chain_id,tx_hash,error_kind,detail"
    assert len(lines) == 3
    assert lines[2].endswith(",UserRejectedSignature,User rejected")


def test_audit_exports_available(tmp_path, monkeypatch):
    app_module = _reload_app(tmp_path, monkeypatch)
    client = TestClient(app_module.app)

    resp = client.post("/proofs", json={"challenge_id": "email-1", "answer": PROFESSIONAL_EMAIL, "fid": 7})
    assert resp.status_code == 200
    pid = resp.json()["id"]

    audit_json = client.get(f"/proofs/{pid}/audit.json")
    assert audit_json.status_code == 200
    data = audit_json.json()
    assert data["proof_id"] == pid
    assert [e["phase"] for e in data["events"]] == ["score", "reconcile", "simulate", "submit", "confirm"]

    audit_csv = client.get(f"/proofs/{pid}/audit.csv")
    assert audit_csv.status_code == 200
    assert audit_csv.headers["content-type"].startswith("text/csv")
    assert audit_csv.text.splitlines()[0] == "t,phase,state,chain_id,tx_hash,error_kind,detail"


def test_audit_exports_disabled(tmp_path, monkeypatch):
    app_module = _reload_app(tmp_path, monkeypatch, AUDIT_EXPORT_ENABLED="0")
    client = TestClient(app_module.app)

    resp = client.post("/proofs", json={"challenge_id": "email-1", "answer": "hey thx asap"})
    assert resp.status_code == 200
    pid = resp.json()["id"]

    assert client.get(f"/proofs/{pid}/audit.json").status_code == 404
    assert client.get(f"/proofs/{pid}/audit.csv").status_code == 404


@pytest.fixture(autouse=True)
def _restore_modules():
    yield
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
