"""Audit log table – append-only compliance trail.

Nothing in the application updates or deletes rows here.
"""

from sqlalchemy import Column, DateTime, Index, String

from variant_tracker.models.clinical import _new_id, _utcnow
from variant_tracker.models.database import Base, JSONType


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    action = Column(String(255), nullable=False, comment="e.g. variant_updated or POST /api/variants")
    entity_id = Column(String(255), nullable=False)
    entity_type = Column(String(128), nullable=False, comment="Singular, capitalized: Variant")
    old_values = Column(JSONType, nullable=True, comment="Redacted snapshot before the change")
    new_values = Column(JSONType, nullable=True, comment="Redacted snapshot after the change")
    user_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_audit_created_at", "created_at"),
        Index("ix_audit_entity_type", "entity_type"),
    )
