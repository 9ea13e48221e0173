"""
Redaction of PII and sensitive clinical identifiers.

Payloads are scrubbed before they reach the audit trail or the logs. The
rules are an allow-list on exact, case-sensitive field names:

    name, email  -> "[REDACTED]"
    ipAddress    -> "xxx.xxx.xxx.xxx"
    patientId    -> "MRN-****" when the value is an MRN ("MRN-" prefix)

Mappings, lists and tuples are walked; everything else passes through untouched.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"
MASKED_IP = "xxx.xxx.xxx.xxx"

MRN_PREFIX = "MRN-"
MRN_VISIBLE_CHARS = 4
MRN_MASK = "****"

CIRCULAR = "[CIRCULAR]"
TRUNCATED = "[TRUNCATED]"
MAX_DEPTH = 64

_FULLY_REDACTED_FIELDS = {"name": REDACTED, "email": REDACTED, "ipAddress": MASKED_IP}


def mask_mrn(value: str) -> str:
    """Keep the MRN prefix, hide the record number: MRN-226856 -> MRN-****."""
    return f"{value[:MRN_VISIBLE_CHARS]}{MRN_MASK}"


def redact_sensitive(data: Any) -> Any:
    """
    Return a deep copy of ``data`` with sensitive fields masked.

    Mappings, lists and tuples are copied and walked depth-first; mappings
    come back as plain dicts, sequences keep their type. Any other value
    (None, numbers, strings, bytes) is returned as-is. The input is never
    mutated.
    """
    if not _is_container(data):
        return data
    return _redact_node(data, depth=0, ancestors=set())


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _mask_fields(node: dict[str, Any]) -> None:
    for field, marker in _FULLY_REDACTED_FIELDS.items():
        value = node.get(field)
        if isinstance(value, str) and value:
            node[field] = marker

    patient_id = node.get("patientId")
    if isinstance(patient_id, str) and patient_id.startswith(MRN_PREFIX):
        node["patientId"] = mask_mrn(patient_id)


def _rebuild_sequence(node: list | tuple, items: list[Any]) -> list | tuple:
    if isinstance(node, list):
        return items
    if hasattr(node, "_fields"):  # namedtuple
        return type(node)(*items)
    return type(node)(items)


def _redact_node(node: Mapping | list | tuple, depth: int, ancestors: set[int]) -> Any:
    ancestors.add(id(node))
    if isinstance(node, Mapping):
        result: Any = {key: _redact_child(value, depth, ancestors) for key, value in node.items()}
        _mask_fields(result)
    else:
        result = _rebuild_sequence(node, [_redact_child(item, depth, ancestors) for item in node])
    ancestors.discard(id(node))
    return result


def _redact_child(value: Any, depth: int, ancestors: set[int]) -> Any:
    if not _is_container(value):
        return copy.deepcopy(value)
    if id(value) in ancestors:
        return CIRCULAR
    if depth >= MAX_DEPTH:
        return TRUNCATED
    return _redact_node(value, depth + 1, ancestors)
