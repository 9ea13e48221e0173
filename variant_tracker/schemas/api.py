"""Pydantic models for API request/response serialization.

Wire names follow the client: identifiers and timestamps are camelCase
(patientId, createdAt), clinical fields keep their snake_case names
(hgvs_c, model_name).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class APIModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "OK"
    environment: str
    database: str = "connected"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Patients & variants
# ---------------------------------------------------------------------------

class PatientCreate(APIModel):
    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=64)
    name: str | None = None


class PatientResponse(APIModel):
    id: str
    patient_id: str = Field(alias="patientId")
    name: str | None = None
    created_at: datetime = Field(alias="createdAt")
    variant_count: int = Field(0, alias="variantCount")


class VariantPatient(APIModel):
    """Details for a patient created on the fly by a variant upsert."""
    name: str | None = None


class VariantUpsert(APIModel):
    """A variant keyed by (patient MRN, gene, hgvs_c); the patient is created if unknown."""
    patient_id: str = Field(..., alias="patientId", min_length=1, max_length=64)
    patient: VariantPatient | None = None
    gene: str = Field(..., min_length=1, max_length=64)
    hgvs_c: str = Field(..., min_length=1)
    hgvs_p: str | None = None
    genomic_coords: str | None = None
    ref_allele: str
    alt_allele: str
    zygosity: str
    gnomad_freq: float | None = Field(None, ge=0, le=1)
    clinvar_path: bool | None = None
    acmg_class: str | None = None
    annotations: dict[str, Any] | None = None


class VariantResponse(APIModel):
    id: str
    patient_id: str = Field(alias="patientId")
    gene: str
    hgvs_c: str
    hgvs_p: str | None = None
    genomic_coords: str | None = None
    ref_allele: str
    alt_allele: str
    zygosity: str
    gnomad_freq: float | None = None
    clinvar_path: bool | None = None
    acmg_class: str | None = None
    annotations: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")


class PatientDetail(PatientResponse):
    variants: list[VariantResponse] = []


# ---------------------------------------------------------------------------
# Model registry & predictions
# ---------------------------------------------------------------------------

class ModelCreate(APIModel):
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    is_active: bool = True
    input_schema: dict[str, Any] | None = None
    output_schema: dict[str, Any] | None = None


class ModelResponse(APIModel):
    id: str
    name: str
    version: str
    provider: str
    is_active: bool
    input_schema: dict[str, Any] | None = None
    output_schema: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")


class PredictionCreate(APIModel):
    variant_id: str = Field(..., alias="variantId")
    model_id: str | None = Field(None, alias="modelId")
    model_name: str
    model_version: str
    model_provider: str
    parsed_output: dict[str, Any] | None = None
    confidence: float | None = Field(None, ge=0, le=1)
    execution_time: int | None = Field(None, ge=0)

    # "model_" fields are domain names here, not pydantic internals
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, protected_namespaces=())


class PredictionResponse(APIModel):
    id: str
    variant_id: str = Field(alias="variantId")
    model_id: str | None = Field(None, alias="modelId")
    model_name: str
    model_version: str
    model_provider: str
    parsed_output: dict[str, Any] | None = None
    confidence: float | None = None
    execution_time: int | None = None
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, protected_namespaces=())


# ---------------------------------------------------------------------------
# Risk assessments
# ---------------------------------------------------------------------------

class RiskCategory(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RiskAssessmentCreate(APIModel):
    patient_id: str = Field(..., alias="patientId", description="Internal patient id")
    variant_id: str | None = Field(None, alias="variantId")
    risk_category: RiskCategory
    risk_score: float = Field(..., ge=0, le=1)
    rationale: str | None = None
    assessed_by: str | None = None


class RiskAssessmentResponse(APIModel):
    id: str
    patient_id: str = Field(alias="patientId")
    variant_id: str | None = Field(None, alias="variantId")
    risk_category: RiskCategory
    risk_score: float
    rationale: str | None = None
    assessed_by: str | None = None
    created_at: datetime = Field(alias="createdAt")


# ---------------------------------------------------------------------------
# Structure files
# ---------------------------------------------------------------------------

class StructureFileResponse(APIModel):
    id: str
    variant_id: str = Field(alias="variantId")
    file_type: str
    file_name: str
    file_size: int
    checksum: str
    source: str
    created_at: datetime = Field(alias="createdAt")


class AlphaFoldRequest(APIModel):
    gene: str = Field(..., min_length=1, max_length=64)
    variant_id: str = Field(..., alias="variantId")


class AlphaFoldResponse(StructureFileResponse):
    uniprot_id: str = Field(alias="uniprotId")
    cached: bool = False


class VariantDetail(VariantResponse):
    predictions: list[PredictionResponse] = []
    structure_files: list[StructureFileResponse] = Field([], alias="structureFiles")


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------

class AuditLogResponse(APIModel):
    id: str
    action: str
    entity_id: str = Field(alias="entityId")
    entity_type: str = Field(alias="entityType")
    old_values: Any = Field(None, alias="oldValues")
    new_values: Any = Field(None, alias="newValues")
    user_id: str | None = Field(None, alias="userId")
    created_at: datetime = Field(alias="createdAt")


class AuditStats(APIModel):
    total: int
    by_entity_type: dict[str, int] = Field(alias="byEntityType")
    by_action: dict[str, int] = Field(alias="byAction")
    last_24h: int = Field(alias="last24h")


# ---------------------------------------------------------------------------
# Users, analyses, history
# ---------------------------------------------------------------------------

class UserCreate(APIModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str | None = None


class UserResponse(APIModel):
    id: str
    email: str
    name: str | None = None
    created_at: datetime = Field(alias="createdAt")


class AnalysisCreate(APIModel):
    user_id: str | None = Field(None, alias="userId")
    gene: str = Field(..., min_length=1)
    variant: str = Field(..., min_length=1)
    analysis_type: str | None = None
    results: dict[str, Any] | None = None
    summary: str | None = None


class AnalysisResponse(APIModel):
    id: str
    user_id: str | None = Field(None, alias="userId")
    gene: str
    variant: str
    analysis_type: str | None = None
    results: dict[str, Any] | None = None
    summary: str | None = None
    created_at: datetime = Field(alias="createdAt")


class UserDetail(UserResponse):
    analyses: list[AnalysisResponse] = []


class HistoryCreate(APIModel):
    user_id: str = Field(..., alias="userId")
    analysis_id: str | None = Field(None, alias="analysisId")
    gene: str
    variant: str
    details: dict[str, Any] | None = None


class HistoryResponse(APIModel):
    id: str
    user_id: str = Field(alias="userId")
    analysis_id: str | None = Field(None, alias="analysisId")
    gene: str
    variant: str
    details: dict[str, Any] | None = None
    timestamp: datetime


class SplicingCreate(APIModel):
    """
    A splicing prediction to save. Fields beyond the named ones (exonsAffected,
    mRNAImpact, proteinImpact, therapySuitability, ...) are kept as results.
    """
    model_config = ConfigDict(extra="allow")

    user_id: str | None = Field(None, alias="userId")
    analysis_id: str | None = Field(None, alias="analysisId")
    gene: str = Field(..., min_length=1)
    variant: str = Field(..., min_length=1)
    clinical_severity: Literal["BENIGN", "UNCERTAIN", "MODERATE", "SEVERE"] | None = Field(
        None, alias="clinicalSeverity"
    )
    confidence: float | None = Field(None, ge=0, le=100)


class SplicingResponse(APIModel):
    id: str
    user_id: str | None = Field(None, alias="userId")
    analysis_id: str | None = Field(None, alias="analysisId")
    gene: str
    variant: str
    clinical_severity: str | None = Field(None, alias="clinicalSeverity")
    confidence: float | None = None
    results: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")


class AnalysisDetail(AnalysisResponse):
    user: UserResponse | None = None
    history_records: list[HistoryResponse] = Field([], alias="historyRecords")
    splicing_analyses: list[SplicingResponse] = Field([], alias="splicingAnalyses")


# ---------------------------------------------------------------------------
# Comments & sharing
# ---------------------------------------------------------------------------

class CommentCreate(APIModel):
    analysis_id: str = Field(..., alias="analysisId")
    user_id: str = Field(..., alias="userId")
    content: str = Field(..., min_length=1)
    parent_id: str | None = Field(None, alias="parentId")


class CommentAuthor(APIModel):
    id: str
    name: str | None = None
    email: str


class CommentResponse(APIModel):
    id: str
    analysis_id: str = Field(alias="analysisId")
    user_id: str = Field(alias="userId")
    content: str
    parent_id: str | None = Field(None, alias="parentId")
    created_at: datetime = Field(alias="createdAt")
    user: CommentAuthor | None = None
    replies: list[CommentResponse] = []


class ShareCreate(APIModel):
    analysis_id: str = Field(..., alias="analysisId")
    user_id: str | None = Field(None, alias="userId", description="Who is sharing")
    shared_with_id: str | None = Field(None, alias="sharedWithId")
    permission_type: Literal["view", "comment", "edit"] = Field("view", alias="permissionType")
    is_public: bool = Field(False, alias="isPublic")


class SharedAccessResponse(APIModel):
    id: str
    analysis_id: str = Field(alias="analysisId")
    shared_by_id: str | None = Field(None, alias="sharedById")
    shared_with_id: str | None = Field(None, alias="sharedWithId")
    share_token: str = Field(alias="shareToken")
    permission_type: str = Field(alias="permissionType")
    is_public: bool = Field(alias="isPublic")
    created_at: datetime = Field(alias="createdAt")
