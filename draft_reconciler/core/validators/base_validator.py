"""
Base validator interface for field-level reservation rules.

All validators must inherit from BaseValidator and implement the validate() method.
"""

from abc import ABC, abstractmethod
from typing import Any


# Returned by resolve_field for a field that is not in the record at all
MISSING = object()


def resolve_field(record: dict[str, Any], field_name: str) -> Any:
    """
    Look up a field; dotted names ("extras.pickup_hotel") walk nested objects.

    Returns MISSING when the field (or an object on the way) is absent or
    not a mapping.
    """
    value: Any = record
    for part in field_name.split("."):
        if not isinstance(value, dict) or part not in value:
            return MISSING
        value = value[part]
    return value


class ValidationError(Exception):
    """Raised by a field validator when its rule fails; never escapes the rule engine."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for field validators.

    A validator checks one field of an effective record. Validators other
    than required_field treat None as "not my concern" and pass, so absence
    is reported once, by the required rule.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the field to validate
            parameters: Rule-specific parameters (e.g. allowed values for enum)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Validate a value against this rule.

        Args:
            value: The field value to validate
            record: The entire effective record

        Raises:
            ValidationError: If validation fails
        """

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""

    def fail(self, message: str) -> None:
        raise ValidationError(
            rule_name=self.rule_type,
            field_name=self.field_name,
            message=message,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"
