"""Audit logging service for compliance tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from sqlalchemy.orm import Session

from variant_tracker.models.audit import AuditLog
from variant_tracker.models.database import SessionLocal
from variant_tracker.services.redactor import redact_sensitive

logger = logging.getLogger(__name__)

UNKNOWN_ENTITY_ID = "unknown"


@dataclass(frozen=True)
class AuditRecord:
    action: str
    entity_id: str
    entity_type: str
    old_values: Any = None
    new_values: Any = None
    user_id: str | None = None


class AuditStore(Protocol):
    """Anything that can append one audit record on its own."""

    def append(self, record: AuditRecord) -> None: ...


class SqlAuditStore:
    """Writes audit records through a dedicated session, independent of the caller's transaction."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def append(self, record: AuditRecord) -> None:
        with self._session_factory() as session:
            session.add(
                AuditLog(
                    action=record.action,
                    entity_id=record.entity_id,
                    entity_type=record.entity_type,
                    old_values=record.old_values,
                    new_values=record.new_values,
                    user_id=record.user_id,
                )
            )
            session.commit()


def get_audit_store() -> AuditStore:
    """FastAPI dependency providing the audit store."""
    return SqlAuditStore(SessionLocal)


def normalize_entity_type(entity_type: str) -> str:
    """
    Turn a collection name into a type name: "variants" -> "Variant".

    Capitalizes the first letter and strips one trailing "s". Irregular
    plurals are not handled ("status" -> "Statu").
    """
    head, tail = entity_type[:1].upper(), entity_type[1:]
    if tail.endswith("s"):
        tail = tail[:-1]
    return head + tail


def resolve_user_id(headers: Mapping[str, str], payload: Any = None) -> str | None:
    """Best-effort acting user: X-User-Id header first, then a userId field in the body."""
    user_id = headers.get("x-user-id")
    if user_id:
        return user_id
    if isinstance(payload, dict) and isinstance(payload.get("userId"), str):
        return payload["userId"]
    return None


def audit_action(
    store: AuditStore,
    action: str,
    entity_id: str,
    entity_type: str,
    old_values: Any = None,
    new_values: Any = None,
    user_id: str | None = None,
) -> None:
    """
    Append a redacted audit record to ``store``.

    Never raises: a failed audit write is logged and dropped so the
    audited operation itself is unaffected.
    """
    try:
        record = AuditRecord(
            action=action,
            entity_id=entity_id,
            entity_type=normalize_entity_type(entity_type),
            old_values=redact_sensitive(old_values) if old_values is not None else None,
            new_values=redact_sensitive(new_values) if new_values is not None else None,
            user_id=user_id,
        )
        store.append(record)
    except Exception:
        logger.exception("Audit log failure: %s %s/%s", action, entity_type, entity_id)
        return

    logger.info("AUDIT: %s %s/%s by %s", action, record.entity_type, entity_id, user_id or "anonymous")
