"""
Value Normalizer: coerces a first-pass guess into canonical field values.

normalize() is pure and deterministic apart from the reservation number
fallback, whose factory can be injected. It never raises on bad values;
anything it cannot coerce becomes None (or the field default).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from ..models.field_definition import FieldDefinition, active_definitions
from ..models.fields import (
    AMOUNT_FIELDS,
    BOOLEAN_FIELDS,
    COUNT_DEFAULTS,
    DATE_FIELDS,
    DATETIME_FIELDS,
    RESERVATION_FIELDS,
    TIME_FIELDS,
    PartialRecord,
)
from . import values
from .vocabulary import (
    CHANNEL_DEFAULT,
    CHANNEL_LOOKUP,
    PLATFORM_DEFAULT,
    PLATFORM_LOOKUP,
)

ReservationNumberFactory = Callable[[], str]

_PLAIN_TEXT_FIELDS = (
    "reservation_number",
    "confirmation_number",
    "product_name",
    "package_type",
    "korean_name",
    "kakao_id",
    "memo",
)
_ENGLISH_NAME_FIELDS = ("english_first_name", "english_last_name")

# Coercion per extras field type
_EXTRAS_NORMALIZERS: dict[str, Callable[[Any], Any]] = {
    "text": values.normalize_text,
    "select": values.normalize_text,
    "multiselect": values.normalize_choices,
    "number": values.normalize_number,
    "boolean": values.normalize_boolean,
    "date": values.normalize_date,
    "time": values.normalize_time,
    "datetime": values.normalize_datetime,
    "email": values.normalize_email,
    "phone": values.normalize_phone,
}


def _as_document(parsed: Any) -> dict[str, Any]:
    if parsed is None:
        return {}
    if isinstance(parsed, PartialRecord):
        return parsed.to_document()
    if isinstance(parsed, dict):
        return parsed
    return {}


def _split_unit_price(total: float, count: int) -> float:
    share = Decimal(str(total)) / Decimal(count)
    return float(share.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def normalize_extras(
    extras: Any,
    definitions: list[FieldDefinition] | None = None,
) -> dict[str, Any] | None:
    """
    Coerce the defined keys of an extras object by their definition type.

    Keys without an active definition are copied through untouched. A defined
    key whose value cannot be coerced becomes None, so a required definition
    reports it. Extras that are not a mapping become None.

    Example:
        >>> normalize_extras({"pax_note": " vegan ", "pickup": "3시 반"},
        ...                  [FieldDefinition(key="pickup", type="time")])
        {'pax_note': ' vegan ', 'pickup': '03:30'}
    """
    document = values.normalize_mapping(extras)
    if document is None:
        return None
    for definition in active_definitions(definitions):
        if document.get(definition.key) is not None:
            document[definition.key] = _EXTRAS_NORMALIZERS[definition.type](document[definition.key])
    return document


def normalize(
    parsed: dict[str, Any] | PartialRecord | None,
    *,
    reservation_number_factory: ReservationNumberFactory | None = None,
    field_definitions: list[FieldDefinition] | None = None,
) -> dict[str, Any]:
    """
    Coerce every recognized field of a parsed guess into canonical form.

    Args:
        parsed: Parsed document (or PartialRecord) from the extraction oracle
        reservation_number_factory: Produces a number when none was extracted;
            defaults to the AUTO_<timestamp>_<suffix> generator
        field_definitions: Definitions of extras keys to coerce (see normalize_extras)

    Returns:
        New document with every recognized field present (possibly None).
        Unrecognized keys are copied through untouched.

    Example:
        >>> normalize({"adults": "2명", "children": 1, "total_amount": "₩300,000"},
        ...           reservation_number_factory=lambda: "R-1")["guest_count"]
        3
    """
    source = _as_document(parsed)
    factory = reservation_number_factory or values.generate_reservation_number

    normalized: dict[str, Any] = {
        key: value for key, value in source.items() if key not in RESERVATION_FIELDS
    }

    for field_name in _PLAIN_TEXT_FIELDS:
        normalized[field_name] = values.normalize_text(source.get(field_name))
    for field_name in _ENGLISH_NAME_FIELDS:
        normalized[field_name] = values.normalize_english_name(source.get(field_name))

    normalized["channel"] = values.normalize_tag(
        source.get("channel"), CHANNEL_LOOKUP, CHANNEL_DEFAULT
    )
    normalized["platform_name"] = values.normalize_tag(
        source.get("platform_name"), PLATFORM_LOOKUP, PLATFORM_DEFAULT
    )
    normalized["payment_status"] = values.normalize_payment_status(source.get("payment_status"))

    for field_name in AMOUNT_FIELDS:
        normalized[field_name] = values.normalize_amount(source.get(field_name))
    for field_name, default in COUNT_DEFAULTS.items():
        normalized[field_name] = values.normalize_count(source.get(field_name), default)
    for field_name in DATE_FIELDS:
        normalized[field_name] = values.normalize_date(source.get(field_name))
    for field_name in TIME_FIELDS:
        normalized[field_name] = values.normalize_time(source.get(field_name))
    for field_name in DATETIME_FIELDS:
        normalized[field_name] = values.normalize_datetime(source.get(field_name))
    for field_name in BOOLEAN_FIELDS:
        normalized[field_name] = values.normalize_boolean(source.get(field_name))
    normalized["extras"] = normalize_extras(source.get("extras"), field_definitions)

    normalized["email"] = values.normalize_email(source.get("email"))
    normalized["phone"] = values.normalize_phone(source.get("phone"))

    # Derived: headcount first, then unit prices depend on it
    normalized["guest_count"] = (
        normalized["adults"] + normalized["children"] + normalized["infants"]
    )

    total = normalized["total_amount"]
    adults = normalized["adults"]
    if total is not None and adults > 0 and normalized["adult_unit_price"] is None:
        normalized["adult_unit_price"] = _split_unit_price(total, adults)
    if (
        normalized["child_unit_price"] is None
        and normalized["children"] > 0
        and normalized["adult_unit_price"] is not None
    ):
        normalized["child_unit_price"] = normalized["adult_unit_price"]

    if not normalized["reservation_number"]:
        normalized["reservation_number"] = factory()

    return normalized
