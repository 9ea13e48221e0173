"""Tests for the request-level audit middleware on a minimal app."""

import json

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from variant_tracker.middleware.audit import AuditTrailMiddleware
from variant_tracker.services.audit import UNKNOWN_ENTITY_ID


def _make_app(store):
    app = FastAPI()
    app.add_middleware(AuditTrailMiddleware, store_factory=lambda: store)

    @app.get("/api/variants")
    def list_variants():
        return []

    @app.post("/api/variants")
    def create_variant(body: dict):
        return {"id": "v1", **body}

    @app.patch("/api/variants/{variant_id}")
    def patch_variant(variant_id: str):
        return {"id": variant_id}

    @app.post("/api/broken")
    def broken(body: dict):
        raise HTTPException(status_code=422, detail="nope")

    @app.post("/internal/ping")
    def ping():
        return {"ok": True}

    return app


def test_successful_mutation_is_audited_with_redacted_body(recording_store):
    client = TestClient(_make_app(recording_store))

    response = client.post(
        "/api/variants",
        json={"patientId": "MRN-226856", "gene": "EGFR", "name": "Jane Doe"},
        headers={"X-User-Id": "clinician-7"},
    )

    assert response.status_code == 200
    assert response.json()["patientId"] == "MRN-226856"  # the handler saw the real body
    assert len(recording_store.records) == 1
    record = recording_store.records[0]
    assert record.action == "POST /api/variants"
    assert record.entity_type == "Variant"
    assert record.entity_id == UNKNOWN_ENTITY_ID
    assert record.old_values is None
    assert record.new_values == {"patientId": "MRN-****", "gene": "EGFR", "name": "[REDACTED]"}
    assert record.user_id == "clinician-7"


def test_user_id_falls_back_to_body(recording_store):
    client = TestClient(_make_app(recording_store))

    client.post("/api/variants", json={"gene": "SMN1", "userId": "u-42"})

    assert recording_store.records[0].user_id == "u-42"


def test_get_requests_are_not_audited(recording_store):
    client = TestClient(_make_app(recording_store))

    client.get("/api/variants")

    assert recording_store.records == []


def test_error_responses_are_not_audited(recording_store):
    client = TestClient(_make_app(recording_store))

    response = client.post("/api/broken", json={"gene": "CFTR"})

    assert response.status_code == 422
    assert recording_store.records == []


def test_paths_outside_api_are_not_audited(recording_store):
    client = TestClient(_make_app(recording_store))

    client.post("/internal/ping")

    assert recording_store.records == []


def test_failing_store_does_not_break_the_response(failing_store):
    client = TestClient(_make_app(failing_store))

    response = client.post("/api/variants", json={"gene": "BRCA2"})

    assert response.status_code == 200
    assert response.json() == {"id": "v1", "gene": "BRCA2"}
    assert failing_store.calls == 1


def test_structured_json_media_types_are_recorded(recording_store):
    client = TestClient(_make_app(recording_store))

    client.patch(
        "/api/variants/v1",
        content=json.dumps({"email": "jane@example.org", "zygosity": "homozygous"}),
        headers={"Content-Type": "application/merge-patch+json; charset=utf-8"},
    )
    client.patch("/api/variants/v1", content="zygosity=homozygous", headers={"Content-Type": "text/plain"})

    first, second = recording_store.records
    assert first.new_values == {"email": "[REDACTED]", "zygosity": "homozygous"}
    assert second.new_values is None
