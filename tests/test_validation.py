"""Tests for JSON schema validation of model registry schemas and predictions."""

from variant_tracker.services.model_registry import DEFAULT_MODELS
from variant_tracker.services.validation import schema_problems, validate_against_schema

SPLICING_SCHEMA = {
    "type": "object",
    "required": ["splicing_impact"],
    "properties": {
        "splicing_impact": {"type": "string", "enum": ["HIGH", "MODERATE", "LOW"]},
        "exons_skipped": {"type": "array", "items": {"type": "string"}},
        "protein_stability": {"type": "number", "minimum": 0, "maximum": 1},
    },
}


def test_valid_prediction_output():
    output = {"splicing_impact": "HIGH", "exons_skipped": ["Exon 7"], "protein_stability": 0.72}

    assert validate_against_schema(output, SPLICING_SCHEMA) == []


def test_all_errors_are_collected():
    output = {"exons_skipped": "Exon 7", "protein_stability": 3}

    errors = validate_against_schema(output, SPLICING_SCHEMA)

    assert len(errors) == 3
    assert any("splicing_impact" in e for e in errors)
    assert any(e.startswith("exons_skipped:") for e in errors)
    assert any(e.startswith("protein_stability:") for e in errors)


def test_nested_error_paths_are_dotted():
    errors = validate_against_schema({"splicing_impact": "LOW", "exons_skipped": ["Exon 7", 8]}, SPLICING_SCHEMA)

    assert errors == ["exons_skipped.1: 8 is not of type 'string'"]


def test_schema_problems():
    assert schema_problems(SPLICING_SCHEMA) == []
    assert schema_problems({"type": "not-a-type"}) != []


def test_default_models_ship_valid_schemas():
    for model in DEFAULT_MODELS:
        for key in ("input_schema", "output_schema"):
            if model.get(key):
                assert schema_problems(model[key]) == []
