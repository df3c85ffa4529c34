"""Shallow structural validation for script input and options.

This is a deliberately partial JSON-schema checker: it looks at ``type``,
``required``, and at the ``type``/``enum`` of declared ``properties`` one
level deep. Properties the schema does not declare are never flagged.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Outcome of a validation pass."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)


def runtime_type(value: Any) -> str:
    """Name the runtime category of a value.

    One of ``string``, ``number``, ``boolean``, ``null``, ``array``,
    ``object`` or ``function``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if callable(value):
        return "function"
    return "object"


def _matches(expected: str, value: Any) -> bool:
    actual = runtime_type(value)
    if expected == "integer":
        if isinstance(value, float):
            return value.is_integer()
        if isinstance(value, Decimal):
            return value.is_finite() and value == value.to_integral_value()
        return actual == "number"
    return actual == expected


def _display(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _in_enum(value: Any, choices: Any) -> bool:
    kind = runtime_type(value)
    return any(runtime_type(choice) == kind and choice == value for choice in choices)


def validate_input(value: Any, schema: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Check ``value`` against a shallow schema.

    Args:
        value: Native input to check
        schema: Mapping with optional ``type``, ``required`` and
            ``properties`` entries; no schema means valid

    Returns:
        ValidationResult listing every violated constraint
    """
    if not schema:
        return ValidationResult(is_valid=True)

    errors: list[str] = []

    expected = schema.get("type")
    if expected and not _matches(expected, value):
        actual = runtime_type(value)
        if expected == "object":
            errors.append(f"Expected input to be an object, got {actual}")
        elif expected == "array":
            errors.append(f"Expected input to be an array, got {actual}")
        else:
            errors.append(f"Expected input to be type {expected}, got {actual}")

    required = schema.get("required")
    if isinstance(required, (list, tuple)) and isinstance(value, Mapping):
        for field in required:
            if field not in value:
                errors.append(f"Missing required field: {field}")

    properties = schema.get("properties")
    if isinstance(properties, Mapping) and isinstance(value, Mapping):
        for name, prop_schema in properties.items():
            if name not in value or not isinstance(prop_schema, Mapping):
                continue
            prop_value = value[name]

            prop_type = prop_schema.get("type")
            if prop_type and not _matches(prop_type, prop_value):
                errors.append(
                    f"Property {name}: Expected {prop_type}, got {runtime_type(prop_value)}"
                )

            choices = prop_schema.get("enum")
            if isinstance(choices, (list, tuple)) and not _in_enum(prop_value, choices):
                allowed = ", ".join(_display(choice) for choice in choices)
                errors.append(
                    f"Property {name}: Value must be one of [{allowed}], got {_display(prop_value)}"
                )

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_options(options: Any, schema: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Validate an options bag against a per-option schema.

    ``schema`` maps option names to property schemas. Unknown options are
    never errors.
    """
    if not schema:
        return ValidationResult(is_valid=True)
    return validate_input(options, {"type": "object", "properties": schema})
