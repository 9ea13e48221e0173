"""
Clinical data models: patients, their variants, and everything derived
from a variant (ML predictions, risk assessments, protein structures).

Patient display names are PHI and stored encrypted; the MRN is the
operational identifier clients use.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from variant_tracker.models.database import Base, JSONType


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Patient
# ---------------------------------------------------------------------------
class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=_new_id)
    mrn = Column(String(64), unique=True, nullable=False, comment="Medical Record Number, e.g. MRN-226856")
    encrypted_name = Column(Text, nullable=True, comment="Fernet-encrypted display name")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    variants = relationship(
        "Variant", back_populates="patient", lazy="selectin", cascade="all, delete-orphan"
    )
    risk_assessments = relationship("RiskAssessment", back_populates="patient", lazy="selectin")


# ---------------------------------------------------------------------------
# Variant – one genomic change observed in one patient
# ---------------------------------------------------------------------------
class Variant(Base):
    __tablename__ = "variants"

    id = Column(String(36), primary_key=True, default=_new_id)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False)
    gene = Column(String(64), nullable=False)
    hgvs_c = Column(String(255), nullable=False, comment="Coding DNA change, e.g. c.840+2T>G")
    hgvs_p = Column(String(255), nullable=True, comment="Protein change, e.g. p.Gly281*")
    genomic_coords = Column(String(255), nullable=True)
    ref_allele = Column(String(255), nullable=False)
    alt_allele = Column(String(255), nullable=False)
    zygosity = Column(String(32), nullable=False)
    gnomad_freq = Column(Float, nullable=True)
    clinvar_path = Column(Boolean, nullable=True)
    acmg_class = Column(String(64), nullable=True)
    annotations = Column(JSONType, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    patient = relationship("Patient", back_populates="variants")
    predictions = relationship("Prediction", back_populates="variant", lazy="selectin")
    structure_files = relationship("StructureFile", back_populates="variant", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("patient_id", "gene", "hgvs_c", name="uq_variant_patient_gene_hgvs"),
        Index("ix_variants_gene", "gene"),
    )


# ---------------------------------------------------------------------------
# Model registry – ML models allowed to produce predictions
# ---------------------------------------------------------------------------
class ModelRegistry(Base):
    __tablename__ = "model_registry"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(128), nullable=False)
    version = Column(String(64), nullable=False)
    provider = Column(String(64), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    input_schema = Column(JSONType, nullable=True, comment="JSON Schema for model input")
    output_schema = Column(JSONType, nullable=True, comment="JSON Schema for parsed output")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("name", "version", name="uq_model_name_version"),)


class Prediction(Base):
    __tablename__ = "predictions"

    id = Column(String(36), primary_key=True, default=_new_id)
    variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
    model_id = Column(String(36), ForeignKey("model_registry.id"), nullable=True)
    model_name = Column(String(128), nullable=False)
    model_version = Column(String(64), nullable=False)
    model_provider = Column(String(64), nullable=False)
    parsed_output = Column(JSONType, nullable=True)
    confidence = Column(Float, nullable=True)
    execution_time = Column(Integer, nullable=True, comment="Milliseconds")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    variant = relationship("Variant", back_populates="predictions")

    __table_args__ = (Index("ix_predictions_variant", "variant_id"),)


class RiskAssessment(Base):
    __tablename__ = "risk_assessments"

    id = Column(String(36), primary_key=True, default=_new_id)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False)
    variant_id = Column(String(36), ForeignKey("variants.id"), nullable=True)
    risk_category = Column(String(32), nullable=False)
    risk_score = Column(Float, nullable=False)
    rationale = Column(Text, nullable=True)
    assessed_by = Column(String(128), nullable=True, comment="Clinician or model identity")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    patient = relationship("Patient", back_populates="risk_assessments")

    __table_args__ = (Index("ix_risk_patient", "patient_id"),)


class StructureFile(Base):
    __tablename__ = "structure_files"

    id = Column(String(36), primary_key=True, default=_new_id)
    variant_id = Column(String(36), ForeignKey("variants.id"), nullable=False)
    file_type = Column(String(16), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    local_path = Column(Text, nullable=False)
    checksum = Column(String(64), nullable=False, comment="SHA-256 hex digest")
    source = Column(String(32), default="upload", nullable=False, comment="upload | alphafold")
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    variant = relationship("Variant", back_populates="structure_files")
