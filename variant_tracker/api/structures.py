"""Protein structure files: uploads and AlphaFold downloads."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from variant_tracker.config import settings
from variant_tracker.models.clinical import StructureFile, Variant
from variant_tracker.models.database import get_db
from variant_tracker.schemas.api import AlphaFoldRequest, AlphaFoldResponse, StructureFileResponse
from variant_tracker.services.alphafold import (
    AlphaFoldClient,
    AlphaFoldError,
    fetch_alphafold_structure,
    uniprot_for_gene,
)
from variant_tracker.services.audit import AuditStore, audit_action, get_audit_store, resolve_user_id
from variant_tracker.services.storage import ALLOWED_FILE_TYPES, safe_file_name, save_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def get_alphafold_client():
    """FastAPI dependency yielding an AlphaFold client for one request."""
    with AlphaFoldClient() as client:
        yield client


@router.get("/structures", response_model=list[StructureFileResponse])
def list_structures(
    variant_id: str | None = Query(None, alias="variantId"),
    db: Session = Depends(get_db),
):
    query = db.query(StructureFile)
    if variant_id:
        query = query.filter(StructureFile.variant_id == variant_id)
    rows = query.order_by(StructureFile.created_at.desc()).all()
    return [StructureFileResponse.model_validate(r) for r in rows]


@router.post("/structures", response_model=StructureFileResponse, status_code=201)
def upload_structure(
    request: Request,
    file: UploadFile = File(...),
    variant_id: str = Form(..., alias="variantId"),
    file_type: str = Form("pdb"),
    db: Session = Depends(get_db),
    store: AuditStore = Depends(get_audit_store),
):
    """Store an uploaded PDB/CIF file on disk and attach it to a variant."""
    file_type = file_type.lower()
    if file_type not in ALLOWED_FILE_TYPES:
        raise HTTPException(
            status_code=422,
            detail=f"file_type must be one of {sorted(ALLOWED_FILE_TYPES)}",
        )
    if db.get(Variant, variant_id) is None:
        raise HTTPException(status_code=404, detail="Variant not found")

    content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Structure file too large")
    if not content:
        raise HTTPException(status_code=422, detail="Structure file is empty")

    file_name = safe_file_name(file.filename or f"structure.{file_type}")
    stored = save_upload(content, file_name, settings.STORAGE_DIR)
    structure = StructureFile(
        variant_id=variant_id,
        file_type=file_type,
        file_name=file_name,
        file_size=stored.size,
        local_path=str(stored.path),
        checksum=stored.checksum,
        source="upload",
    )
    db.add(structure)
    db.commit()
    db.refresh(structure)

    audit_action(
        store,
        "structure_uploaded",
        structure.id,
        "StructureFile",
        None,
        {
            "variantId": variant_id,
            "file_type": file_type,
            "file_name": file_name,
            "file_size": stored.size,
            "checksum": stored.checksum,
        },
        resolve_user_id(request.headers),
    )
    return StructureFileResponse.model_validate(structure)


@router.post("/structures/alphafold", response_model=AlphaFoldResponse)
def fetch_from_alphafold(
    payload: AlphaFoldRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: AuditStore = Depends(get_audit_store),
    client: AlphaFoldClient = Depends(get_alphafold_client),
):
    """Download (or reuse) the AlphaFold model for a gene and attach it to a variant."""
    if db.get(Variant, payload.variant_id) is None:
        raise HTTPException(status_code=404, detail="Variant not found")

    try:
        structure, cached = fetch_alphafold_structure(
            db,
            store,
            client,
            payload.gene,
            payload.variant_id,
            storage_dir=settings.STORAGE_DIR,
            user_id=resolve_user_id(request.headers),
        )
    except AlphaFoldError as exc:
        logger.error("AlphaFold fetch failed for %s: %s", payload.gene, exc)
        raise HTTPException(status_code=502, detail=str(exc))

    summary = StructureFileResponse.model_validate(structure)
    return AlphaFoldResponse(
        **summary.model_dump(),
        uniprot_id=uniprot_for_gene(payload.gene),
        cached=cached,
    )
