"""
ValidationResult model representing the outcome of validating an effective record (ephemeral).
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class FieldError(BaseModel):
    """
    A single blocking validation failure.

    Attributes:
        path: JSON-pointer style location of the offending field ("/guest_count")
        message: Human-readable description
        rule: Name of the rule that failed
        kind: "schema" for shape/format/vocabulary failures, "business" for rule violations
    """

    path: str
    message: str
    rule: str | None = None
    kind: Literal["schema", "business"] = "schema"


class ValidationSummary(BaseModel):
    """Counts reported alongside a validation result."""

    total_errors: int = 0
    schema_errors: int = 0
    business_errors: int = 0
    flags_count: int = 0


class ValidationResult(BaseModel):
    """
    Outcome of validating an effective record (ephemeral, returned as data).

    Note: errors block commit, flags never do. Flags are persisted with the
    committed reservation for reviewer attention.

    Attributes:
        valid: True iff there are no blocking errors
        errors: Every blocking error found (schema and business)
        flags: Non-blocking advisory tags
        summary: Error and flag counts
    """

    valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)

    @field_validator('errors')
    @classmethod
    def check_valid_consistency(cls, v, info):
        """Validate that valid=True implies errors is empty."""
        if info.data.get('valid') and len(v) > 0:
            raise ValueError("valid=True but errors is not empty")
        return v

    @classmethod
    def from_findings(cls, errors: list[FieldError], flags: list[str]) -> "ValidationResult":
        """Build a result, deriving validity and the summary from the findings."""
        schema_errors = sum(1 for error in errors if error.kind == "schema")
        return cls(
            valid=not errors,
            errors=errors,
            flags=flags,
            summary=ValidationSummary(
                total_errors=len(errors),
                schema_errors=schema_errors,
                business_errors=len(errors) - schema_errors,
                flags_count=len(flags),
            ),
        )

    @property
    def error_paths(self) -> list[str]:
        return [error.path for error in self.errors]

    class Config:
        json_schema_extra = {
            "example": {
                "valid": False,
                "errors": [
                    {
                        "path": "/guest_count",
                        "message": "guest_count (1) does not equal adults+children+infants (3)",
                        "rule": "headcount_consistency",
                        "kind": "business",
                    }
                ],
                "flags": ["headcount_mismatch", "missing_contact"],
                "summary": {
                    "total_errors": 1,
                    "schema_errors": 0,
                    "business_errors": 1,
                    "flags_count": 2,
                },
            }
        }
