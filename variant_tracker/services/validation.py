"""
JSON Schema validation for the model registry.

A registered model may publish schemas for its input and parsed output;
predictions logged against it are checked before they are stored. All
errors are collected rather than stopping at the first one.
"""

from typing import Any

import jsonschema


def schema_problems(schema: dict[str, Any]) -> list[str]:
    """Return why ``schema`` is not a valid Draft 7 schema (empty list = valid)."""
    try:
        jsonschema.Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as exc:
        return [exc.message]
    return []


def validate_against_schema(data: Any, schema: dict[str, Any]) -> list[str]:
    """
    Validate ``data`` against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [_format_error(error) for error in validator.iter_errors(data)]


def _format_error(error: jsonschema.ValidationError) -> str:
    if error.absolute_path:
        path = ".".join(str(part) for part in error.absolute_path)
        return f"{path}: {error.message}"
    return error.message
