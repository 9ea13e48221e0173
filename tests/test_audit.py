"""Tests for the audit helper – fake stores, no database required."""

import logging

from variant_tracker.services.audit import (
    AuditRecord,
    audit_action,
    normalize_entity_type,
    resolve_user_id,
)


def test_variant_update_scenario(recording_store):
    audit_action(recording_store, "variant_updated", "v1", "variants", None, {"gene": "BRCA1"}, "u1")

    assert len(recording_store.records) == 1
    record = recording_store.records[0]
    assert record == AuditRecord(
        action="variant_updated",
        entity_id="v1",
        entity_type="Variant",
        old_values=None,
        new_values={"gene": "BRCA1"},
        user_id="u1",
    )


def test_values_are_redacted_independently(recording_store):
    old = {"patientId": "MRN-226856", "name": "Jane Doe"}
    new = {"patientId": "MRN-226856", "name": "Jane Q. Doe", "email": "jane@example.org"}

    audit_action(recording_store, "patient_updated", "p1", "patients", old, new)

    record = recording_store.records[0]
    assert record.old_values == {"patientId": "MRN-****", "name": "[REDACTED]"}
    assert record.new_values == {"patientId": "MRN-****", "name": "[REDACTED]", "email": "[REDACTED]"}
    assert old["name"] == "Jane Doe"
    assert record.user_id is None


def test_empty_values_are_kept_distinct_from_missing(recording_store):
    audit_action(recording_store, "noop", "x", "things", {}, None)

    record = recording_store.records[0]
    assert record.old_values == {}
    assert record.new_values is None


def test_store_failure_is_swallowed_and_not_retried(failing_store, caplog):
    with caplog.at_level(logging.ERROR, logger="variant_tracker.services.audit"):
        result = audit_action(failing_store, "variant_created", "v1", "variants", None, {"gene": "SMN1"})

    assert result is None
    assert failing_store.calls == 1
    assert "Audit log failure" in caplog.text


def test_failure_log_does_not_leak_payload(failing_store, caplog):
    with caplog.at_level(logging.ERROR, logger="variant_tracker.services.audit"):
        audit_action(failing_store, "patient_created", "p1", "patients", None, {"name": "Jane Doe"})

    assert "Jane Doe" not in caplog.text


def test_normalize_entity_type():
    assert normalize_entity_type("variants") == "Variant"
    assert normalize_entity_type("patient") == "Patient"
    assert normalize_entity_type("Patient") == "Patient"
    assert normalize_entity_type("StructureFile") == "StructureFile"
    assert normalize_entity_type("") == ""


def test_normalize_entity_type_is_naive_about_irregular_plurals():
    """Only one trailing "s" is stripped, whatever the word."""
    assert normalize_entity_type("status") == "Statu"
    assert normalize_entity_type("analyses") == "Analyse"
    assert normalize_entity_type("s") == "S"


def test_resolve_user_id_prefers_header():
    assert resolve_user_id({"x-user-id": "u-header"}, {"userId": "u-body"}) == "u-header"
    assert resolve_user_id({}, {"userId": "u-body"}) == "u-body"
    assert resolve_user_id({}, {"userId": 7}) is None
    assert resolve_user_id({}, ["not", "a", "dict"]) is None
    assert resolve_user_id({}) is None
