"""
EnumValidator - validates restricted-vocabulary tag fields.
"""

from typing import Any

from .base_validator import BaseValidator


class EnumValidator(BaseValidator):
    """
    Validates that a field value is one of a fixed set of tags.

    Parameters:
    - allowed: Iterable of allowed values (compared exactly, case-sensitive)
    - each: Check every item of a list value instead of the value itself
      (multi-choice fields); non-list values are left to type_check
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        allowed = self.parameters.get("allowed")
        if not allowed:
            raise ValueError("EnumValidator requires a non-empty 'allowed' parameter")
        self.allowed = frozenset(allowed)
        self.each = bool(self.parameters.get("each", False))

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            return

        if self.each:
            if isinstance(value, list):
                for item in value:
                    self._check(item)
            return
        self._check(value)

    def _check(self, value: Any) -> None:
        try:
            known = value in self.allowed
        except TypeError:
            known = False
        if not known:
            self.fail(f"must be one of: {', '.join(sorted(self.allowed))} (got '{value}')")

    @property
    def rule_type(self) -> str:
        return "enum"
