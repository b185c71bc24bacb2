"""
CalendarDateValidator - validates that a YYYY-MM-DD string names a real day.
"""

from datetime import date
from typing import Any

from .base_validator import BaseValidator


class CalendarDateValidator(BaseValidator):
    """
    Validates that a date string is a real calendar date ("2025-02-30" fails).

    Only strings are checked; the format itself is the regex rule's job, so
    values that are not YYYY-MM-DD shaped are skipped here.
    """

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if not isinstance(value, str) or len(value) < 10:
            return

        parts = value[:10].split("-")
        if len(parts) != 3 or not all(part.isdecimal() for part in parts):
            return

        year, month, day = (int(part) for part in parts)
        try:
            date(year, month, day)
        except ValueError:
            self.fail(f"is not a valid calendar date (got '{value[:10]}')")

    @property
    def rule_type(self) -> str:
        return "calendar_date"
