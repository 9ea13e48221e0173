"""
Clinical endpoints: patients, variants, the model registry, predictions
and risk assessments.

Patient creation and variant upserts write an explicit audit record on top
of the generic request-level one.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from variant_tracker.models.clinical import (
    ModelRegistry,
    Patient,
    Prediction,
    RiskAssessment,
    Variant,
)
from variant_tracker.models.database import get_db
from variant_tracker.schemas.api import (
    ModelCreate,
    ModelResponse,
    PatientCreate,
    PatientDetail,
    PatientResponse,
    PredictionCreate,
    PredictionResponse,
    RiskAssessmentCreate,
    RiskAssessmentResponse,
    VariantDetail,
    VariantResponse,
    VariantUpsert,
)
from variant_tracker.services.audit import AuditStore, audit_action, get_audit_store, resolve_user_id
from variant_tracker.services.encryption import encryption
from variant_tracker.services.validation import schema_problems, validate_against_schema

logger = logging.getLogger(__name__)

router = APIRouter()

VARIANT_FIELDS = (
    "hgvs_p",
    "genomic_coords",
    "ref_allele",
    "alt_allele",
    "zygosity",
    "gnomad_freq",
    "clinvar_path",
    "acmg_class",
    "annotations",
)


def _patient_response(patient: Patient) -> PatientResponse:
    return PatientResponse(
        id=patient.id,
        patient_id=patient.mrn,
        name=encryption.decrypt_or_none(patient.encrypted_name),
        created_at=patient.created_at,
        variant_count=len(patient.variants),
    )


def _variant_snapshot(variant: Variant) -> dict:
    return VariantResponse.model_validate(variant).model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

@router.get("/patients", response_model=list[PatientResponse])
def list_patients(db: Session = Depends(get_db)):
    patients = db.query(Patient).order_by(Patient.created_at.desc()).all()
    return [_patient_response(p) for p in patients]


@router.post("/patients", response_model=PatientResponse, status_code=201)
def create_patient(
    payload: PatientCreate,
    request: Request,
    db: Session = Depends(get_db),
    store: AuditStore = Depends(get_audit_store),
):
    patient = Patient(mrn=payload.patient_id, encrypted_name=encryption.encrypt(payload.name) or None)
    db.add(patient)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Patient already exists")
    db.refresh(patient)

    body = payload.model_dump(by_alias=True, exclude_none=True)
    audit_action(
        store,
        "patient_created",
        patient.id,
        "patients",
        None,
        body,
        resolve_user_id(request.headers, body),
    )
    return _patient_response(patient)


@router.get("/patients/{patient_id}", response_model=PatientDetail)
def get_patient(patient_id: str, db: Session = Depends(get_db)):
    patient = db.get(Patient, patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    summary = _patient_response(patient)
    return PatientDetail(
        **summary.model_dump(),
        variants=[VariantResponse.model_validate(v) for v in patient.variants],
    )


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@router.get("/variants", response_model=list[VariantResponse])
def list_variants(
    patient_mrn: str | None = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
):
    """List variants, optionally for one patient identified by MRN."""
    query = db.query(Variant)
    if patient_mrn:
        query = query.join(Patient).filter(Patient.mrn == patient_mrn)
    variants = query.order_by(Variant.created_at.desc()).all()
    return [VariantResponse.model_validate(v) for v in variants]


@router.post("/variants", response_model=VariantResponse)
def upsert_variant(
    payload: VariantUpsert,
    request: Request,
    db: Session = Depends(get_db),
    store: AuditStore = Depends(get_audit_store),
):
    """
    Create or update the variant identified by (patient MRN, gene, hgvs_c).
    Unknown patients are created on the fly.
    """
    patient = db.query(Patient).filter(Patient.mrn == payload.patient_id).first()
    if patient is None:
        name = payload.patient.name if payload.patient else None
        patient = Patient(mrn=payload.patient_id, encrypted_name=encryption.encrypt(name) or None)
        db.add(patient)
        db.flush()
        logger.info("Created patient %s while adding a variant", patient.id)

    variant = (
        db.query(Variant)
        .filter(
            Variant.patient_id == patient.id,
            Variant.gene == payload.gene,
            Variant.hgvs_c == payload.hgvs_c,
        )
        .first()
    )
    old_values = _variant_snapshot(variant) if variant else None
    if variant is None:
        variant = Variant(patient_id=patient.id, gene=payload.gene, hgvs_c=payload.hgvs_c)
        db.add(variant)
    for field in VARIANT_FIELDS:
        if field in payload.model_fields_set or old_values is None:
            setattr(variant, field, getattr(payload, field))
    db.commit()
    db.refresh(variant)

    body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    audit_action(
        store,
        "variant_updated" if old_values else "variant_created",
        variant.id,
        "variants",
        old_values,
        body,
        resolve_user_id(request.headers, body),
    )
    return VariantResponse.model_validate(variant)


@router.get("/variants/{variant_id}", response_model=VariantDetail)
def get_variant(variant_id: str, db: Session = Depends(get_db)):
    variant = db.get(Variant, variant_id)
    if not variant:
        raise HTTPException(status_code=404, detail="Variant not found")
    return VariantDetail.model_validate(variant)


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------

@router.get("/models", response_model=list[ModelResponse])
def list_models(active: bool | None = None, db: Session = Depends(get_db)):
    query = db.query(ModelRegistry)
    if active is not None:
        query = query.filter(ModelRegistry.is_active == active)
    return [ModelResponse.model_validate(m) for m in query.order_by(ModelRegistry.name).all()]


@router.post("/models", response_model=ModelResponse, status_code=201)
def register_model(payload: ModelCreate, db: Session = Depends(get_db)):
    problems = []
    for label, schema in (("input_schema", payload.input_schema), ("output_schema", payload.output_schema)):
        if schema is not None:
            problems.extend(f"{label}: {message}" for message in schema_problems(schema))
    if problems:
        raise HTTPException(status_code=422, detail=problems)

    model = ModelRegistry(**payload.model_dump())
    db.add(model)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Model version already registered")
    db.refresh(model)
    return ModelResponse.model_validate(model)


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------

@router.get("/predictions", response_model=list[PredictionResponse])
def list_predictions(
    variant_id: str | None = Query(None, alias="variantId"),
    db: Session = Depends(get_db),
):
    query = db.query(Prediction)
    if variant_id:
        query = query.filter(Prediction.variant_id == variant_id)
    return [PredictionResponse.model_validate(p) for p in query.order_by(Prediction.created_at.desc()).all()]


@router.post("/predictions", response_model=PredictionResponse, status_code=201)
def log_prediction(payload: PredictionCreate, db: Session = Depends(get_db)):
    """
    Record a model prediction for a variant. When the model is registered
    with an output schema, parsed_output must satisfy it.
    """
    if db.get(Variant, payload.variant_id) is None:
        raise HTTPException(status_code=404, detail="Variant not found")

    if payload.model_id:
        model = db.get(ModelRegistry, payload.model_id)
        if model is None:
            raise HTTPException(status_code=404, detail="Model not found")
    else:
        model = (
            db.query(ModelRegistry)
            .filter(
                ModelRegistry.name == payload.model_name,
                ModelRegistry.version == payload.model_version,
            )
            .first()
        )

    if model is not None and model.output_schema and payload.parsed_output is not None:
        errors = validate_against_schema(payload.parsed_output, model.output_schema)
        if errors:
            raise HTTPException(status_code=422, detail=errors)

    prediction = Prediction(
        **payload.model_dump(exclude={"model_id"}),
        model_id=model.id if model is not None else None,
    )
    db.add(prediction)
    db.commit()
    db.refresh(prediction)
    return PredictionResponse.model_validate(prediction)


# ---------------------------------------------------------------------------
# Risk assessments
# ---------------------------------------------------------------------------

@router.get("/risk-assessments", response_model=list[RiskAssessmentResponse])
def list_risk_assessments(
    patient_id: str | None = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
):
    query = db.query(RiskAssessment)
    if patient_id:
        query = query.filter(RiskAssessment.patient_id == patient_id)
    rows = query.order_by(RiskAssessment.created_at.desc()).all()
    return [RiskAssessmentResponse.model_validate(r) for r in rows]


@router.post("/risk-assessments", response_model=RiskAssessmentResponse, status_code=201)
def create_risk_assessment(payload: RiskAssessmentCreate, db: Session = Depends(get_db)):
    if db.get(Patient, payload.patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    if payload.variant_id:
        variant = db.get(Variant, payload.variant_id)
        if variant is None or variant.patient_id != payload.patient_id:
            raise HTTPException(status_code=404, detail="Variant not found for this patient")

    assessment = RiskAssessment(**payload.model_dump(mode="json"))
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    return RiskAssessmentResponse.model_validate(assessment)
