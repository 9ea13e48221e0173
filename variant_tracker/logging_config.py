"""Logging setup and the production filter that keeps secrets out of log lines."""

from __future__ import annotations

import logging
from typing import Any

from variant_tracker.config import settings

SENSITIVE_KEYS = ("password", "token", "secret", "apikey", "credential")
REDACTED = "[REDACTED]"

LOG_FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.lower()
        if ":" in lowered and any(key in lowered for key in SENSITIVE_KEYS):
            return REDACTED
        return value
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _scrub(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(item) for item in value)
    return value


class SensitiveDataFilter(logging.Filter):
    """
    Mask credentials in log arguments.

    Dict arguments lose the values under sensitive keys; string arguments
    that look like "token: abc" are dropped entirely. Only active in
    production, and never when DEBUG is on.
    """

    def __init__(self, environment: str | None = None, debug: bool | None = None):
        super().__init__()
        self.environment = environment if environment is not None else settings.ENVIRONMENT
        self.debug = debug if debug is not None else settings.DEBUG

    @property
    def active(self) -> bool:
        return self.environment == "production" and not self.debug

    def filter(self, record: logging.LogRecord) -> bool:
        if self.active and record.args:
            if isinstance(record.args, dict):
                record.args = _scrub(record.args)
            else:
                record.args = tuple(_scrub(arg) for arg in record.args)
        return True


def setup_logging() -> None:
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
            handler.addFilter(SensitiveDataFilter())
