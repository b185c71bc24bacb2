"""
Reservation field catalogue and the tagged partial record used for extractor output.

Documents flowing through the pipeline (parsed, normalized, manual, effective)
are plain JSON dictionaries. This module names the fields the pipeline
recognizes and provides the marker used for values assigned by the
persistence layer.
"""

from typing import Any

from pydantic import BaseModel


class _PersistenceAssigned:
    """Marker for a value the storage layer fills in at write time."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PERSISTENCE_ASSIGNED"

    def __reduce__(self):
        return (_PersistenceAssigned, ())


PERSISTENCE_ASSIGNED = _PersistenceAssigned()

# Wire form used by older clients for "let the database decide"
LEGACY_PERSISTENCE_TOKEN = "NOW()"

TEXT_FIELDS = (
    "reservation_number",
    "confirmation_number",
    "product_name",
    "package_type",
    "korean_name",
    "english_first_name",
    "english_last_name",
    "kakao_id",
    "memo",
)

TAG_FIELDS = ("channel", "platform_name", "payment_status")

AMOUNT_FIELDS = ("total_amount", "adult_unit_price", "child_unit_price")

# Per-field defaults; counts are never null
COUNT_DEFAULTS = {
    "quantity": 1,
    "adults": 1,
    "children": 0,
    "infants": 0,
    "guest_count": 1,
}

DATE_FIELDS = ("usage_date",)
TIME_FIELDS = ("usage_time",)
DATETIME_FIELDS = ("reservation_datetime", "code_issued_at")
CONTACT_FIELDS = ("email", "phone")
BOOLEAN_FIELDS = ("code_issued",)
NESTED_FIELDS = ("extras",)
PERSISTENCE_FIELDS = ("created_at", "updated_at")

RESERVATION_FIELDS: tuple[str, ...] = (
    TEXT_FIELDS
    + TAG_FIELDS
    + AMOUNT_FIELDS
    + tuple(COUNT_DEFAULTS)
    + DATE_FIELDS
    + TIME_FIELDS
    + DATETIME_FIELDS
    + CONTACT_FIELDS
    + BOOLEAN_FIELDS
    + NESTED_FIELDS
)

# Fields a reviewer may patch
PATCHABLE_FIELDS = frozenset(RESERVATION_FIELDS + PERSISTENCE_FIELDS)


class PartialRecord(BaseModel):
    """
    First-pass reservation guess as returned by the extraction oracle.

    Every recognized field is optional. Unrecognized keys are kept (extra="allow")
    so nothing the vendor sent is lost, but no pipeline logic reads them.
    Values stay loosely typed because the oracle output is untrusted; the
    normalizer is responsible for coercion.
    """

    reservation_number: Any = None
    confirmation_number: Any = None
    channel: Any = None
    platform_name: Any = None
    product_name: Any = None
    package_type: Any = None
    total_amount: Any = None
    adult_unit_price: Any = None
    child_unit_price: Any = None
    quantity: Any = None
    adults: Any = None
    children: Any = None
    infants: Any = None
    guest_count: Any = None
    korean_name: Any = None
    english_first_name: Any = None
    english_last_name: Any = None
    email: Any = None
    phone: Any = None
    kakao_id: Any = None
    usage_date: Any = None
    usage_time: Any = None
    reservation_datetime: Any = None
    code_issued: Any = None
    code_issued_at: Any = None
    payment_status: Any = None
    memo: Any = None
    extras: Any = None

    class Config:
        extra = "allow"
        json_schema_extra = {
            "example": {
                "reservation_number": "NOL-88231",
                "channel": "nol",
                "product_name": "괌 돌핀 크루즈",
                "total_amount": "₩304,000",
                "adults": "2명",
                "children": 1,
                "usage_date": "2025년 3월 15일",
                "payment_status": "예약확정",
            }
        }

    def to_document(self) -> dict[str, Any]:
        """Return the populated fields (recognized and extra) as a plain dict."""
        document = self.model_dump(exclude_unset=True)
        document.update(self.model_extra or {})
        return document

    @property
    def unrecognized_keys(self) -> list[str]:
        return sorted((self.model_extra or {}).keys())


def from_wire(document: dict[str, Any] | None) -> dict[str, Any]:
    """
    Convert a document received from a client or storage into pipeline form.

    The legacy "NOW()" token on persistence-assigned fields becomes
    PERSISTENCE_ASSIGNED. The input is not mutated.
    """
    if not document:
        return {}
    converted = dict(document)
    for field_name in PERSISTENCE_FIELDS:
        if converted.get(field_name) == LEGACY_PERSISTENCE_TOKEN:
            converted[field_name] = PERSISTENCE_ASSIGNED
    return converted


def to_wire(document: dict[str, Any] | None) -> dict[str, Any]:
    """Inverse of from_wire, used when a document is serialized for storage."""
    if not document:
        return {}
    return {
        key: LEGACY_PERSISTENCE_TOKEN if value is PERSISTENCE_ASSIGNED else value
        for key, value in document.items()
    }


def unknown_fields(patch: dict[str, Any]) -> list[str]:
    """Return keys of a manual patch that are not reservation fields."""
    return sorted(key for key in patch if key not in PATCHABLE_FIELDS)
