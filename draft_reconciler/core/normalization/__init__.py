"""
Value normalization for first-pass reservation guesses.
"""

from .normalizer import normalize, normalize_extras
from .values import (
    generate_reservation_number,
    is_synthesized_reservation_number,
    normalize_amount,
    normalize_boolean,
    normalize_choices,
    normalize_count,
    normalize_date,
    normalize_datetime,
    normalize_email,
    normalize_english_name,
    normalize_number,
    normalize_payment_status,
    normalize_phone,
    normalize_tag,
    normalize_text,
    normalize_time,
)

__all__ = [
    "normalize",
    "normalize_extras",
    "generate_reservation_number",
    "is_synthesized_reservation_number",
    "normalize_amount",
    "normalize_boolean",
    "normalize_choices",
    "normalize_count",
    "normalize_date",
    "normalize_datetime",
    "normalize_email",
    "normalize_english_name",
    "normalize_number",
    "normalize_payment_status",
    "normalize_phone",
    "normalize_tag",
    "normalize_text",
    "normalize_time",
]
