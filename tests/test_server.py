"""Tests for the FastAPI endpoints in server.py."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import server
from conftest import make_finding
from contract_analyzer import database


@pytest.fixture()
def client(temp_db):
    return TestClient(server.app)


def _upload(client, name="nda.txt", content=b"This Mutual NDA is made between Acme and Globex."):
    return client.post("/api/contracts", files={"file": (name, content, "text/plain")})


class TestContractsApi:
    def test_config(self, client):
        body = client.get("/api/config").json()
        assert body["supported_extensions"] == [".pdf", ".docx", ".txt"]
        assert "llm_model" in body

    def test_upload_text_contract(self, client):
        resp = _upload(client)
        assert resp.status_code == 201
        body = resp.json()
        assert body["filename"] == "nda.txt"
        assert database.get_contract(body["id"])["original_text"].startswith("This Mutual NDA")

    def test_upload_unsupported_type(self, client):
        resp = _upload(client, name="contract.rtf")
        assert resp.status_code == 400
        assert "Unsupported file type" in resp.json()["detail"]

    def test_upload_empty_file(self, client):
        resp = _upload(client, content=b"   \n  ")
        assert resp.status_code == 400

    def test_list_and_get(self, client):
        contract_id = _upload(client).json()["id"]
        assert [c["id"] for c in client.get("/api/contracts").json()] == [contract_id]

        body = client.get(f"/api/contracts/{contract_id}").json()
        assert body["status"] == "uploaded"
        assert body["summary"] is None

    def test_get_missing_contract(self, client):
        assert client.get("/api/contracts/99").status_code == 404


class TestAnalyzeApi:
    def test_analyze_starts_background_review(self, client, monkeypatch):
        started = []
        monkeypatch.setattr(server, "start_review_in_background", started.append)
        contract_id = _upload(client).json()["id"]

        resp = client.post(f"/api/contracts/{contract_id}/analyze")
        assert resp.status_code == 202
        assert started == [contract_id]

    def test_analyze_missing_contract(self, client):
        assert client.post("/api/contracts/99/analyze").status_code == 404

    def test_analyze_twice_is_rejected(self, client):
        contract_id = _upload(client).json()["id"]
        database.begin_analysis(contract_id)

        resp = client.post(f"/api/contracts/{contract_id}/analyze")
        assert resp.status_code == 409
        assert database.get_contract(contract_id)["analysis_stage"] == "classifying"

    def test_startup_clears_interrupted_review(self, temp_db):
        contract_id = database.create_contract("msa.txt", "text")
        database.begin_analysis(contract_id)

        with TestClient(server.app) as client:
            assert client.get(f"/api/contracts/{contract_id}").json()["status"] == "error"

    def test_clauses_show_partial_progress(self, client):
        contract_id = _upload(client).json()["id"]
        database.update_contract(contract_id, status="analyzing", total_chunks=3)
        database.DatabaseProgressSink(contract_id).report(0, [make_finding("Payment in 90 days.")], 1, 3)

        body = client.get(f"/api/contracts/{contract_id}/clauses").json()
        assert body["status"] == "analyzing"
        assert body["completed_chunks"] == 1
        assert body["total_chunks"] == 3
        assert body["analysis_progress"] == 33
        assert [c["original_text"] for c in body["clauses"]] == ["Payment in 90 days."]
        assert body["summary"] is None


class TestClauseReviewApi:
    def _clause_id(self, client, sample_findings):
        contract_id = _upload(client).json()["id"]
        database.save_clauses(contract_id, sample_findings)
        return database.get_clauses(contract_id)[0].id

    def test_reject_clause(self, client, sample_findings):
        clause_id = self._clause_id(client, sample_findings)
        resp = client.patch(f"/api/contracts/clauses/{clause_id}", json={
            "status": "rejected", "user_note": "  Needs a cap.  ",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "rejected"
        assert body["user_note"] == "Needs a cap."
        assert body["id"] == clause_id

    def test_decision_shows_in_clause_list(self, client, sample_findings):
        clause_id = self._clause_id(client, sample_findings)
        client.patch(f"/api/contracts/clauses/{clause_id}", json={
            "status": "modified", "user_redline": "Governed by California law.",
        })
        contract_id = client.get("/api/contracts").json()[0]["id"]

        clauses = client.get(f"/api/contracts/{contract_id}/clauses").json()["clauses"]
        edited = next(c for c in clauses if c["id"] == clause_id)
        assert edited["user_redline"] == "Governed by California law."
        assert all(c["status"] == "pending" for c in clauses if c["id"] != clause_id)

    def test_no_valid_fields(self, client, sample_findings):
        clause_id = self._clause_id(client, sample_findings)
        resp = client.patch(f"/api/contracts/clauses/{clause_id}", json={"status": 3, "other": "x"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No valid fields to update"

    def test_unknown_status(self, client, sample_findings):
        clause_id = self._clause_id(client, sample_findings)
        resp = client.patch(f"/api/contracts/clauses/{clause_id}", json={"status": "maybe"})
        assert resp.status_code == 400

    def test_missing_clause(self, client):
        resp = client.patch("/api/contracts/clauses/999", json={"status": "accepted"})
        assert resp.status_code == 404


class TestPlaybookApi:
    def _profile_id(self, client, **fields):
        return client.post("/api/playbook", json={"name": "Corporate", **fields}).json()["id"]

    def test_create_and_list_profiles(self, client):
        resp = client.post("/api/playbook", json={
            "name": "NDA Playbook", "contract_type": "NDA", "description": "Mutual NDAs",
        })
        assert resp.status_code == 201
        assert resp.json()["rules"] == []

        profiles = client.get("/api/playbook").json()
        assert [(p["name"], p["contract_type"], p["is_default"]) for p in profiles] == [
            ("NDA Playbook", "NDA", False),
        ]

    def test_profile_requires_name(self, client):
        assert client.post("/api/playbook", json={"contract_type": "NDA"}).status_code == 400

    def test_add_and_list_rules(self, client):
        profile_id = self._profile_id(client, is_default=True)
        resp = client.post(f"/api/playbook/{profile_id}/rules", json={
            "name": "Net 30", "category": "Payment", "condition": "Payment within 30 days",
            "severity": "critical",
        })
        assert resp.status_code == 201

        rules = client.get("/api/playbook/rules").json()
        assert [(r["name"], r["severity"], r["enabled"], r["profile_id"]) for r in rules] == [
            ("Net 30", "critical", True, profile_id),
        ]
        profile = client.get("/api/playbook").json()[0]
        assert [r["name"] for r in profile["rules"]] == ["Net 30"]

    def test_rule_for_missing_profile(self, client):
        resp = client.post("/api/playbook/55/rules", json={"name": "X", "condition": "Y"})
        assert resp.status_code == 404

    def test_rule_requires_name_and_condition(self, client):
        profile_id = self._profile_id(client)
        resp = client.post(f"/api/playbook/{profile_id}/rules", json={"name": "No condition"})
        assert resp.status_code == 400

    def test_rule_rejects_unknown_severity(self, client):
        profile_id = self._profile_id(client)
        resp = client.post(f"/api/playbook/{profile_id}/rules", json={
            "name": "X", "condition": "Y", "severity": "urgent",
        })
        assert resp.status_code == 400

    def test_toggle_rule(self, client):
        profile_id = self._profile_id(client)
        client.post(f"/api/playbook/{profile_id}/rules", json={"name": "X", "condition": "Y"})
        rule_id = client.get("/api/playbook/rules").json()[0]["id"]

        resp = client.patch(f"/api/playbook/rules/{rule_id}", json={"enabled": False})
        assert resp.status_code == 200
        assert resp.json()["enabled"] is False

    def test_toggle_missing_rule(self, client):
        assert client.patch("/api/playbook/rules/77", json={"enabled": False}).status_code == 404
