"""
Field-level validation rules for effective reservation records.

Provides validators for required fields, strict types, numeric ranges,
format patterns, restricted vocabularies and calendar dates.
"""

from .base_validator import MISSING, BaseValidator, ValidationError, resolve_field
from .date_validator import CalendarDateValidator
from .enum_validator import EnumValidator
from .range_validator import RangeValidator
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator
from .type_validator import TypeValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "MISSING",
    "resolve_field",
    "RequiredFieldValidator",
    "TypeValidator",
    "RangeValidator",
    "RegexValidator",
    "EnumValidator",
    "CalendarDateValidator",
]
