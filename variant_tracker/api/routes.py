"""
API surface – every router mounted under /api.

Health lives here; the resource routers are grouped by concern:
clinical data, structure files, the audit trail, and collaboration.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from variant_tracker.api import audits, clinical, collaboration, structures
from variant_tracker.config import settings
from variant_tracker.models.database import get_db
from variant_tracker.schemas.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database")
        db_status = "disconnected"
    return HealthResponse(
        status="OK",
        environment=settings.ENVIRONMENT,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )


router.include_router(clinical.router, tags=["clinical"])
router.include_router(structures.router, tags=["structures"])
router.include_router(audits.router, tags=["audits"])
router.include_router(collaboration.router, tags=["collaboration"])
