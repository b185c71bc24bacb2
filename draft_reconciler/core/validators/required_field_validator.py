"""
RequiredFieldValidator - ensures a field is present and not null/blank.
"""

from typing import Any

from .base_validator import MISSING, BaseValidator, resolve_field


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required reservation field is present and has a value.

    Fails if:
    - Field is missing from the record
    - Field value is None
    - Field value is a blank string (unless allow_empty_string is set)

    Note: 0 and False are values. children=0 and code_issued=False pass.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.allow_empty_string = self.parameters.get("allow_empty_string", False)

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if resolve_field(record, self.field_name) is MISSING:
            self.fail("is required")

        if value is None:
            self.fail("must not be null")

        if not self.allow_empty_string and isinstance(value, str) and value.strip() == "":
            self.fail("must not be blank")

    @property
    def rule_type(self) -> str:
        return "required_field"
