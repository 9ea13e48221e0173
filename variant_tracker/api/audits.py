"""Read-only access to the audit trail."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from variant_tracker.models.audit import AuditLog
from variant_tracker.models.database import get_db
from variant_tracker.schemas.api import AuditLogResponse, AuditStats

router = APIRouter()


@router.get("/audits", response_model=list[AuditLogResponse])
def list_audits(
    limit: int = Query(10, ge=1, le=100),
    entity_type: str | None = Query(None, alias="entityType"),
    db: Session = Depends(get_db),
):
    """Most recent audit records first."""
    query = db.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    rows = query.order_by(AuditLog.created_at.desc()).limit(limit).all()
    return [AuditLogResponse.model_validate(r) for r in rows]


@router.get("/audits/stats", response_model=AuditStats)
def audit_stats(db: Session = Depends(get_db)):
    by_entity_type = dict(
        db.query(AuditLog.entity_type, func.count(AuditLog.id)).group_by(AuditLog.entity_type).all()
    )
    by_action = dict(db.query(AuditLog.action, func.count(AuditLog.id)).group_by(AuditLog.action).all())
    since = datetime.now(timezone.utc) - timedelta(hours=24)
    last_24h = db.query(func.count(AuditLog.id)).filter(AuditLog.created_at >= since).scalar()

    return AuditStats(
        total=sum(by_entity_type.values()),
        by_entity_type=by_entity_type,
        by_action=by_action,
        last_24h=last_24h or 0,
    )
