"""Tests for the shallow input/options validator.

Run with: uv run pytest heartwood/services/tests/unit/test_validation.py -v
"""

import pytest

from heartwood.services.validation import (
    ValidationResult,
    runtime_type,
    validate_input,
    validate_options,
)


@pytest.mark.unit
class TestRuntimeType:
    """Runtime categories used in error messages."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("x", "string"),
            (1, "number"),
            (1.5, "number"),
            (True, "boolean"),
            (None, "null"),
            ([1], "array"),
            ((1,), "array"),
            ({"a": 1}, "object"),
            (len, "function"),
        ],
    )
    def test_categories(self, value, expected):
        assert runtime_type(value) == expected


@pytest.mark.unit
class TestValidateInput:
    """Type, required and one-level property checks."""

    def test_no_schema_is_valid(self):
        assert validate_input("anything", None).is_valid
        assert validate_input("anything", {}).is_valid

    def test_object_expected(self):
        result = validate_input([1], {"type": "object"})
        assert result.errors == ["Expected input to be an object, got array"]

    def test_null_is_not_an_object(self):
        result = validate_input(None, {"type": "object"})
        assert result.errors == ["Expected input to be an object, got null"]

    def test_array_expected(self):
        result = validate_input({"a": 1}, {"type": "array"})
        assert result.errors == ["Expected input to be an array, got object"]

    def test_primitive_expected(self):
        result = validate_input(5, {"type": "string"})
        assert result.errors == ["Expected input to be type string, got number"]

    def test_missing_required(self):
        result = validate_input({"age": 30}, {"type": "object", "required": ["name"]})
        assert result.is_valid is False
        assert result.errors == ["Missing required field: name"]

    def test_required_accepts_null_value(self):
        assert validate_input({"name": None}, {"type": "object", "required": ["name"]}).is_valid

    def test_property_type(self):
        schema = {"type": "object", "properties": {"age": {"type": "number"}}}
        result = validate_input({"age": "30"}, schema)
        assert result.errors == ["Property age: Expected number, got string"]

    def test_property_enum(self):
        schema = {"properties": {"mode": {"type": "string", "enum": ["fast", "slow"]}}}
        result = validate_input({"mode": "medium"}, schema)
        assert result.errors == ["Property mode: Value must be one of [fast, slow], got medium"]

    def test_enum_compares_category(self):
        schema = {"properties": {"flag": {"enum": [1, 0]}}}
        result = validate_input({"flag": True}, schema)
        assert result.errors == ["Property flag: Value must be one of [1, 0], got true"]

    def test_integer_type(self):
        schema = {"properties": {"n": {"type": "integer"}}}
        assert validate_input({"n": 3}, schema).is_valid
        assert validate_input({"n": 3.0}, schema).is_valid
        assert validate_input({"n": 3.5}, schema).errors == ["Property n: Expected integer, got number"]

    def test_nested_properties_not_walked(self):
        schema = {"properties": {"inner": {"type": "object", "properties": {"x": {"type": "number"}}}}}
        assert validate_input({"inner": {"x": "not a number"}}, schema).is_valid

    def test_unknown_properties_ignored(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        assert validate_input({"a": "x", "extra": 1}, schema).is_valid

    def test_collects_every_error(self):
        schema = {
            "type": "object",
            "required": ["a", "b"],
            "properties": {"c": {"type": "boolean"}},
        }
        result = validate_input({"c": "no"}, schema)
        assert result.errors == [
            "Missing required field: a",
            "Missing required field: b",
            "Property c: Expected boolean, got string",
        ]


@pytest.mark.unit
class TestValidateOptions:
    """Options are checked against a per-option schema."""

    def test_unknown_options_are_not_errors(self):
        result = validate_options({"tgdf": True, "extra": "x"}, {"tgdf": {"type": "boolean"}})
        assert result.is_valid is True

    def test_option_type(self):
        result = validate_options({"dryRun": "yes"}, {"dryRun": {"type": "boolean"}})
        assert result.errors == ["Property dryRun: Expected boolean, got string"]

    def test_no_schema(self):
        assert validate_options({"a": 1}, None).is_valid

    def test_result_model(self):
        result = ValidationResult(is_valid=True)
        assert result.errors == []
