"""Default ML models available for predictions, seeded at startup."""

import logging

from sqlalchemy.orm import Session

from variant_tracker.models.clinical import ModelRegistry

logger = logging.getLogger(__name__)

DEFAULT_MODELS: list[dict] = [
    {
        "name": "gemini-1.5-pro",
        "version": "20241217",
        "provider": "google",
        "is_active": True,
        "input_schema": {"type": "object", "properties": {"prompt": {"type": "string"}}},
        "output_schema": {"type": "object", "properties": {"predictions": {"type": "array"}}},
    },
    {
        "name": "alphafold3",
        "version": "v1.0",
        "provider": "deepmind",
        "is_active": True,
    },
]


def seed_model_registry(db: Session) -> int:
    """Insert the default models that are missing. Returns how many were added."""
    added = 0
    for entry in DEFAULT_MODELS:
        exists = (
            db.query(ModelRegistry)
            .filter(ModelRegistry.name == entry["name"], ModelRegistry.version == entry["version"])
            .first()
        )
        if exists:
            continue
        db.add(ModelRegistry(**entry))
        added += 1
    db.commit()
    if added:
        logger.info("Model registry seeded with %d model(s)", added)
    return added
