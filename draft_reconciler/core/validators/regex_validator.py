"""
RegexValidator - validates string fields against a strict format pattern.
"""

import re
from re import Pattern
from typing import Any

from .base_validator import BaseValidator


class RegexValidator(BaseValidator):
    """
    Validates that a string field fully matches a regular expression.

    Parameters:
    - pattern: Regular expression (string or compiled Pattern)
    - format: Optional human name of the format, used in messages ("YYYY-MM-DD")
    - flags: Optional regex flags

    Non-string values are skipped; the type_check rule reports them.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        pattern = self.parameters.get("pattern")
        if not pattern:
            raise ValueError("RegexValidator requires 'pattern' parameter")

        flags = self.parameters.get("flags", 0)

        try:
            if isinstance(pattern, str):
                self.pattern: Pattern = re.compile(pattern, flags)
            elif isinstance(pattern, Pattern):
                self.pattern = pattern
            else:
                raise ValueError(f"Pattern must be string or compiled Pattern, got {type(pattern)}")
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}")

        self.format_name = self.parameters.get("format", self.pattern.pattern)

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if not isinstance(value, str):
            return

        if not self.pattern.fullmatch(value):
            self.fail(f"is not in format {self.format_name} (got '{value}')")

    @property
    def rule_type(self) -> str:
        return "regex"
