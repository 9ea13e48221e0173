"""
Fetch predicted protein structures from the public AlphaFold DB and keep
a local copy per variant.

Best effort: every candidate source is tried once, in order, and the first
one that yields a PDB file wins. There are no retries.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy.orm import Session

from variant_tracker.config import settings
from variant_tracker.models.clinical import StructureFile
from variant_tracker.services.audit import AuditStore, audit_action
from variant_tracker.services.storage import safe_file_name, sha256_hex

logger = logging.getLogger(__name__)

# Clinical genes and fusions -> UniProt accession of the modelled protein
UNIPROT_IDS: dict[str, str] = {
    "SMN1": "Q16637",
    "CFTR": "P13569",
    "BRCA1": "P38398",
    "BRCA2": "P51587",
    "ABL1": "P00519",
    "ALK": "Q9UM73",
    "BCR": "P11274",
    "BCR-ABL1": "P00519",
    "EML4-ALK": "Q9UM73",
}
DEFAULT_UNIPROT_ID = "P00519"  # ABL1

ALPHAFOLD_SOURCE = "alphafold"


class AlphaFoldError(Exception):
    """No candidate AlphaFold source returned a structure."""


def uniprot_for_gene(gene: str) -> str:
    return UNIPROT_IDS.get(gene, DEFAULT_UNIPROT_ID)


class AlphaFoldClient:
    """Thin synchronous client for the AlphaFold DB REST API and file store."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ALPHAFOLD_BASE_URL).rstrip("/")
        self._client = httpx.Client(
            timeout=timeout or settings.ALPHAFOLD_TIMEOUT,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> AlphaFoldClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def model_file_url(self, uniprot_id: str) -> str:
        return f"{self.base_url}/files/AF-{uniprot_id}-F1-model_v4.pdb"

    def download_pdb(self, uniprot_id: str) -> bytes:
        """
        Try, in order: the v1 model API, the prediction API (both give a
        pdbUrl), then the canonical model file.
        """
        metadata_urls = (
            f"{self.base_url}/api/v1/model/{uniprot_id}",
            f"{self.base_url}/api/prediction/{uniprot_id}",
        )
        for metadata_url in metadata_urls:
            response = self._get(metadata_url)
            if response is None:
                continue
            pdb_url = self._pdb_url(response, uniprot_id)
            logger.info("Downloading PDB from %s", pdb_url)
            pdb_response = self._get(pdb_url)
            if pdb_response is not None and pdb_response.content:
                return pdb_response.content

        direct_url = self.model_file_url(uniprot_id)
        logger.info("AlphaFold APIs unavailable, trying %s", direct_url)
        response = self._get(direct_url)
        if response is not None and response.content:
            return response.content

        raise AlphaFoldError(f"Could not retrieve PDB data for {uniprot_id}")

    def _get(self, url: str) -> httpx.Response | None:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("AlphaFold request to %s failed: %s", url, exc)
            return None
        if not response.is_success:
            logger.warning("AlphaFold request to %s returned %d", url, response.status_code)
            return None
        return response

    def _pdb_url(self, response: httpx.Response, uniprot_id: str) -> str:
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None
        # /api/prediction answers with a list of entries
        if isinstance(payload, list) and payload:
            payload = payload[0]
        if isinstance(payload, dict) and isinstance(payload.get("pdbUrl"), str):
            return payload["pdbUrl"]
        return self.model_file_url(uniprot_id)


def _cached_structure(db: Session, variant_id: str, file_name: str) -> StructureFile | None:
    existing = (
        db.query(StructureFile)
        .filter(
            StructureFile.variant_id == variant_id,
            StructureFile.source == ALPHAFOLD_SOURCE,
            StructureFile.file_name == file_name,
        )
        .order_by(StructureFile.created_at.desc())
        .first()
    )
    if existing and Path(existing.local_path).exists():
        return existing
    return None


def fetch_alphafold_structure(
    db: Session,
    store: AuditStore,
    client: AlphaFoldClient,
    gene: str,
    variant_id: str,
    storage_dir: str | Path | None = None,
    user_id: str | None = None,
) -> tuple[StructureFile, bool]:
    """
    Return the AlphaFold structure for ``gene`` attached to ``variant_id``.

    The second element is True when a previously downloaded copy was reused.
    Raises AlphaFoldError when nothing could be downloaded.
    """
    storage = Path(storage_dir or settings.STORAGE_DIR)
    file_name = f"{safe_file_name(gene)}_alphafold.pdb"

    cached = _cached_structure(db, variant_id, file_name)
    if cached is not None:
        logger.info("AlphaFold structure for %s already stored: %s", gene, cached.id)
        return cached, True

    uniprot_id = uniprot_for_gene(gene)
    logger.info("Fetching AlphaFold %s for %s", uniprot_id, gene)
    pdb_bytes = client.download_pdb(uniprot_id)

    # file_name is the logical name used for the cache; the name on disk is unique per download
    stored_name = f"{uuid.uuid4().hex}_{file_name}"
    temp_dir = storage / "temp"
    temp_dir.mkdir(parents=True, exist_ok=True)
    temp_path = temp_dir / stored_name
    temp_path.write_bytes(pdb_bytes)

    structure = StructureFile(
        variant_id=variant_id,
        file_type="pdb",
        file_name=file_name,
        file_size=len(pdb_bytes),
        local_path=str(temp_path),
        checksum=sha256_hex(pdb_bytes),
        source=ALPHAFOLD_SOURCE,
    )
    db.add(structure)
    db.flush()

    permanent_path = storage / stored_name
    shutil.move(str(temp_path), permanent_path)
    structure.local_path = str(permanent_path)
    db.commit()
    db.refresh(structure)

    audit_action(
        store,
        "structure_fetched_from_alphafold",
        structure.id,
        "StructureFile",
        None,
        {
            "gene": gene,
            "uniprotId": uniprot_id,
            "file_type": "pdb",
            "file_name": file_name,
            "file_size": structure.file_size,
        },
        user_id,
    )
    logger.info("%s AlphaFold PDB stored as %s", gene, structure.id)
    return structure, False
