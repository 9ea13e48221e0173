"""API tests for structure uploads and the AlphaFold endpoint."""

import hashlib
from pathlib import Path

import httpx

from variant_tracker.api.structures import get_alphafold_client
from variant_tracker.config import settings
from variant_tracker.main import app
from variant_tracker.models.audit import AuditLog
from variant_tracker.services.alphafold import AlphaFoldClient

PDB = b"HEADER    CFTR MODEL\nEND\n"


def _variant(client):
    return client.post(
        "/api/variants",
        json={
            "patientId": "MRN-461835",
            "gene": "CFTR",
            "hgvs_c": "c.1520_1523del",
            "ref_allele": "CTTT",
            "alt_allele": "-",
            "zygosity": "homozygous",
        },
    ).json()


def _override_alphafold(handler):
    def _dependency():
        with AlphaFoldClient(base_url="https://alphafold.test", transport=httpx.MockTransport(handler)) as af:
            yield af

    app.dependency_overrides[get_alphafold_client] = _dependency


def test_upload_structure_writes_file_and_audits(client, db_session, storage_dir):
    variant = _variant(client)

    response = client.post(
        "/api/structures",
        data={"variantId": variant["id"], "file_type": "PDB"},
        files={"file": ("../../cftr model.pdb", PDB, "chemical/x-pdb")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["file_type"] == "pdb"
    assert body["file_size"] == len(PDB)
    assert body["checksum"] == hashlib.sha256(PDB).hexdigest()
    assert body["source"] == "upload"

    stored = list(Path(storage_dir).iterdir())
    assert len(stored) == 1
    assert stored[0].name.endswith("_cftr_model.pdb")
    assert stored[0].read_bytes() == PDB

    [audit] = db_session.query(AuditLog).filter(AuditLog.action == "structure_uploaded").all()
    assert audit.entity_type == "StructureFile"
    assert audit.new_values["variantId"] == variant["id"]

    listed = client.get("/api/structures", params={"variantId": variant["id"]}).json()
    assert [s["id"] for s in listed] == [body["id"]]


def test_upload_rejects_unknown_type(client):
    variant = _variant(client)

    response = client.post(
        "/api/structures",
        data={"variantId": variant["id"], "file_type": "exe"},
        files={"file": ("x.exe", b"MZ", "application/octet-stream")},
    )

    assert response.status_code == 422


def test_upload_rejects_oversized_file(client, monkeypatch):
    variant = _variant(client)
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)

    response = client.post(
        "/api/structures",
        data={"variantId": variant["id"]},
        files={"file": ("big.pdb", PDB, "chemical/x-pdb")},
    )

    assert response.status_code == 413


def test_upload_for_unknown_variant(client):
    response = client.post(
        "/api/structures",
        data={"variantId": "missing"},
        files={"file": ("a.pdb", PDB, "chemical/x-pdb")},
    )

    assert response.status_code == 404


def test_alphafold_endpoint_fetches_then_serves_cache(client, storage_dir):
    variant = _variant(client)
    requests = []

    def handler(request):
        requests.append(request.url.path)
        if request.url.path.startswith("/api/"):
            return httpx.Response(404)
        return httpx.Response(200, content=PDB)

    _override_alphafold(handler)

    first = client.post("/api/structures/alphafold", json={"gene": "CFTR", "variantId": variant["id"]})
    assert first.status_code == 200
    assert first.json()["uniprotId"] == "P13569"
    assert first.json()["cached"] is False
    [stored] = Path(storage_dir).glob("*_CFTR_alphafold.pdb")
    assert stored.read_bytes() == PDB
    assert first.json()["file_name"] == "CFTR_alphafold.pdb"

    second = client.post("/api/structures/alphafold", json={"gene": "CFTR", "variantId": variant["id"]})
    assert second.json()["cached"] is True
    assert second.json()["id"] == first.json()["id"]
    assert requests.count("/files/AF-P13569-F1-model_v4.pdb") == 1


def test_alphafold_endpoint_reports_upstream_failure(client):
    variant = _variant(client)
    _override_alphafold(lambda request: httpx.Response(503))

    response = client.post("/api/structures/alphafold", json={"gene": "BRCA1", "variantId": variant["id"]})

    assert response.status_code == 502
    assert "P38398" in response.json()["detail"]
