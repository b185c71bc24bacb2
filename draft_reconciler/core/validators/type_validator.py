"""
TypeValidator - strict JSON type checks for effective record fields.
"""

from typing import Any

from .base_validator import BaseValidator


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class TypeValidator(BaseValidator):
    """
    Validates that a field holds a value of the expected JSON type.

    No coercion happens here: by validation time the normalizer has already
    run, so "2" in a count field means a reviewer typed a string, which is an
    error. Booleans are never accepted as numbers.

    Supported types: integer, number, string, boolean, object, array
    """

    TYPE_CHECKS = {
        "integer": _is_integer,
        "int": _is_integer,
        "number": _is_number,
        "decimal": _is_number,
        "float": _is_number,
        "string": lambda value: isinstance(value, str),
        "str": lambda value: isinstance(value, str),
        "boolean": lambda value: isinstance(value, bool),
        "bool": lambda value: isinstance(value, bool),
        "object": lambda value: isinstance(value, dict),
        "array": lambda value: isinstance(value, list),
    }

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        expected_type = self.parameters.get("expected_type")
        if not expected_type:
            raise ValueError("TypeValidator requires 'expected_type' parameter")

        self.expected_type = str(expected_type).lower()
        self.check = self.TYPE_CHECKS.get(self.expected_type)
        if self.check is None:
            raise ValueError(f"Unsupported type: {expected_type}")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            return

        if not self.check(value):
            self.fail(f"must be {self.expected_type}, got {type(value).__name__}")

    @property
    def rule_type(self) -> str:
        return "type_check"
