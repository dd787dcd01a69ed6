"""
Schema Validation - JSON Schema validation of declared table settings.

Provides the Draft 7 schema for a table's schema definition and a helper to
validate declared data against any JSON Schema.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

logger = logging.getLogger(__name__)

COLUMN_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9_]{0,47}$"

SCHEMA_DEFINITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["all_columns", "partition_keys"],
    "additionalProperties": False,
    "properties": {
        "all_columns": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name", "type"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string", "pattern": COLUMN_NAME_PATTERN},
                    "type": {"type": "string", "minLength": 1},
                },
            },
        },
        "partition_keys": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["name"],
                "additionalProperties": False,
                "properties": {"name": {"type": "string"}},
            },
        },
        "clustering_keys": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "order_by"],
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "order_by": {"type": "string", "enum": ["ASC", "DESC"]},
                },
            },
        },
        "static_columns": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "additionalProperties": False,
                "properties": {"name": {"type": "string"}},
            },
        },
    },
}


def validate_against_schema(
    data: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate declared data against a JSON Schema.

    Args:
        data: The data to validate
        schema: The Draft 7 JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
        errors = list(validator.iter_errors(data))

        if not errors:
            return True, None

        # Collect all validation errors
        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except ValidationError as e:
        return False, f"Validation error: {str(e)}"
    except Exception as e:
        logger.error(f"Unexpected error during validation: {e}")
        return False, f"Validation failed: {str(e)}"


def validate_schema_definition(
    schema_definition: Dict[str, Any],
) -> Tuple[bool, Optional[str]]:
    """
    Validate a table schema definition.

    Checks the structure against SCHEMA_DEFINITION_SCHEMA, then that every
    key and static column refers to a declared column and that no column is
    both a key and static.

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_against_schema(
        schema_definition, SCHEMA_DEFINITION_SCHEMA
    )
    if not is_valid:
        return False, error

    columns = [c["name"] for c in schema_definition["all_columns"]]
    if len(columns) != len(set(columns)):
        return False, "all_columns: column names must be unique"

    declared = set(columns)
    keys = set()
    for section in ("partition_keys", "clustering_keys", "static_columns"):
        for entry in schema_definition.get(section, []):
            if entry["name"] not in declared:
                return False, f"{section}: unknown column '{entry['name']}'"
            if section != "static_columns":
                keys.add(entry["name"])
            elif entry["name"] in keys:
                return False, f"{section}: key column '{entry['name']}' cannot be static"

    return True, None
