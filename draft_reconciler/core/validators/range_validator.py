"""
RangeValidator - validates numeric values are within bounds.
"""

from typing import Any

from .base_validator import BaseValidator


class RangeValidator(BaseValidator):
    """
    Validates that a numeric field is within a range (inclusive bounds).

    Parameters:
    - min: Minimum value
    - max: Maximum value

    Non-numeric values are skipped; the type_check rule reports them.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_value = self.parameters.get("min")
        self.max_value = self.parameters.get("max")

        if self.min_value is None and self.max_value is None:
            raise ValueError("RangeValidator requires at least one of: min, max")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            return

        if self.min_value is not None and value < self.min_value:
            self.fail(f"must be >= {self.min_value}, got {value}")

        if self.max_value is not None and value > self.max_value:
            self.fail(f"must be <= {self.max_value}, got {value}")

    @property
    def rule_type(self) -> str:
        return "range"
