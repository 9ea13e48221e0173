"""
Request-level audit trail.

Every successful mutating request under /api gets an audit record named
after the method and path. The write is attached to the response as a
background task, so it happens after the body has been sent.

Handlers that audit explicitly (patients, variants, structures) produce a
second, more specific record for the same request.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from variant_tracker.services.audit import (
    UNKNOWN_ENTITY_ID,
    AuditStore,
    audit_action,
    get_audit_store,
    resolve_user_id,
)

logger = logging.getLogger(__name__)

AUDITED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _entity_type_from_path(path: str) -> str:
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else "unknown"


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _json_body(request: Request, body: bytes) -> Any:
    if not body or not _is_json(request.headers.get("content-type", "")):
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


class AuditTrailMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        store_factory: Callable[[], AuditStore] = get_audit_store,
        path_prefix: str = "/api",
    ):
        super().__init__(app)
        self.store_factory = store_factory
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        audited = request.method in AUDITED_METHODS and request.url.path.startswith(self.path_prefix)
        # Reading the body here caches it for the downstream handler.
        body = await request.body() if audited else b""

        response: Response = await call_next(request)

        if audited and response.status_code < 400:
            payload = _json_body(request, body)
            response.background = BackgroundTask(
                audit_action,
                self.store_factory(),
                f"{request.method} {request.url.path}",
                UNKNOWN_ENTITY_ID,
                _entity_type_from_path(request.url.path),
                None,
                payload,
                resolve_user_id(request.headers, payload),
            )
        return response
