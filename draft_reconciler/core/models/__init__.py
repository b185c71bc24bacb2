"""
Core data models for the reservation draft reconciliation pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .audit_log import ReservationAudit
from .draft import TERMINAL_STATUSES, Draft, DraftStatus, origin_hash_for
from .extraction_result import ExtractionResult
from .field_definition import FieldDefinition, FieldType, active_definitions
from .fields import (
    PERSISTENCE_ASSIGNED,
    RESERVATION_FIELDS,
    PartialRecord,
    from_wire,
    to_wire,
)
from .reservation import Reservation
from .validation_result import FieldError, ValidationResult, ValidationSummary

__all__ = [
    "Draft",
    "DraftStatus",
    "TERMINAL_STATUSES",
    "origin_hash_for",
    "ExtractionResult",
    "FieldDefinition",
    "FieldType",
    "active_definitions",
    "PartialRecord",
    "PERSISTENCE_ASSIGNED",
    "RESERVATION_FIELDS",
    "from_wire",
    "to_wire",
    "Reservation",
    "ReservationAudit",
    "FieldError",
    "ValidationResult",
    "ValidationSummary",
]
