"""Script descriptor (``info``) checks and defaults."""

from collections.abc import Mapping
from typing import Any

from heartwood.services.validation import ValidationResult


def validate_script_info(info: Any) -> ValidationResult:
    """Check that a script descriptor has the expected structure.

    A descriptor should carry a string ``description``, an ``input``
    schema of type object with ``properties`` or a ``description``, and
    an ``output`` schema with a ``type`` or a ``description``.

    Args:
        info: Descriptor exported by the script

    Returns:
        ValidationResult listing structural problems
    """
    if not info or not isinstance(info, Mapping):
        return ValidationResult(is_valid=False, errors=["Info object is missing"])

    errors: list[str] = []

    description = info.get("description")
    if not description:
        errors.append("Missing description field")
    elif not isinstance(description, str):
        errors.append("Description must be a string")

    input_schema = info.get("input")
    if not input_schema:
        errors.append("Missing input schema")
    elif isinstance(input_schema, Mapping):
        if input_schema.get("type") != "object":
            errors.append('Input schema type must be "object"')
        if not input_schema.get("properties") and not input_schema.get("description"):
            errors.append("Input schema should have either properties or a description")
    else:
        errors.append("Input schema must be an object")

    output_schema = info.get("output")
    if not output_schema:
        errors.append("Missing output schema")
    elif not isinstance(output_schema, Mapping) or (
        not output_schema.get("type") and not output_schema.get("description")
    ):
        errors.append("Output schema should have either a type or a description")

    return ValidationResult(is_valid=not errors, errors=errors)


def default_script_info(name: str) -> dict[str, Any]:
    """Build the descriptor given to scripts that export none."""
    return {
        "description": f"Default info for {name} script",
        "input": {
            "type": "object",
            "description": "Input data for the script",
        },
        "output": {
            "type": "object",
            "description": "Output data from the script",
        },
    }
