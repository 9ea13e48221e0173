"""
FastAPI application entrypoint.

Run locally:  uvicorn variant_tracker.main:app --reload --port 5000
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from variant_tracker.api.routes import router
from variant_tracker.config import settings
from variant_tracker.logging_config import setup_logging
from variant_tracker.middleware.audit import AuditTrailMiddleware
from variant_tracker.models.database import Base, SessionLocal, engine
from variant_tracker.services.model_registry import seed_model_registry

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Variant Tracker API",
    description=(
        "Clinical variant tracking: patients, genetic variants, ML predictions, "
        "risk assessments, protein structures, and a redacted audit trail."
    ),
    version="1.0.0",
)

# Added first so CORS wraps it and answers preflights before they are audited.
app.add_middleware(AuditTrailMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.get("/")
def root():
    return {"message": "Variant Tracker Backend API"}


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_model_registry(db)
    logger.info("Variant Tracker API ready (environment=%s)", settings.ENVIRONMENT)
