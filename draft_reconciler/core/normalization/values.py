"""
Value normalizers for individual reservation fields.

Each function takes a raw guess (usually a string from the extraction oracle)
and returns a typed, bounded value or None. None always means "unknown";
none of these functions raise on bad input.
"""

import math
import re
import secrets
import string
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable

from .vocabulary import (
    PAYMENT_STATUS_DEFAULT,
    PAYMENT_STATUS_LOOKUP,
)

_CENT = Decimal("0.01")

_CURRENCY_TOKENS = re.compile(
    r"(krw|usd|eur|jpy|cny|php|won|원|달러|엔|₩|\$|€|¥|£|,|\s)",
    re.IGNORECASE,
)
_PLAIN_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_FIRST_INTEGER = re.compile(r"-?\d+")
# Longer digit runs are noise, not a head count
_MAX_COUNT_DIGITS = 18

_MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_ISO_DATE = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?:[T\s].*)?$")
_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_KOREAN_DATE = re.compile(r"(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일?")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")
_MONTH_NAME_FIRST = re.compile(
    r"^([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4})$", re.IGNORECASE
)
_DAY_FIRST_MONTH_NAME = re.compile(
    r"^(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\.?,?\s+(\d{4})$", re.IGNORECASE
)

_CLOCK_TIME = re.compile(r"(\d{1,2})\s*:\s*(\d{2})(?:\s*:\s*\d{2})?")
_KOREAN_HALF_HOUR = re.compile(r"(\d{1,2})\s*시\s*반")
_KOREAN_TIME = re.compile(r"(\d{1,2})\s*시(?:\s*(\d{1,2})\s*분?)?")
_BARE_HOUR = re.compile(r"^(\d{1,2})$")
_PM_MARKERS = re.compile(r"(p\.?m\.?|오후)", re.IGNORECASE)
_AM_MARKERS = re.compile(r"(a\.?m\.?|오전)", re.IGNORECASE)

_ISO_DATETIME = re.compile(
    r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})[T\s]+(\d{1,2}):(\d{2})(?::(\d{2}))?"
)

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_DISALLOWED = re.compile(r"[^\d+\-\s]")
_LOCAL_MOBILE = re.compile(r"^01[016789]\d{8}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-]")

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "예", "발급", "발급완료"})

AUTO_RESERVATION_PREFIX = "AUTO_"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def normalize_text(value: Any) -> str | None:
    """Trim a free-text value; blank input becomes None."""
    if _is_blank(value):
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value).strip()


def normalize_english_name(value: Any) -> str | None:
    """Trim and capitalize each space-separated part ("john SMITH" -> "John Smith")."""
    text = normalize_text(value)
    if text is None:
        return None
    return " ".join(_capitalize(part) for part in text.split())


def _capitalize(part: str) -> str:
    # Some letters (e.g. "ŉ") do not round-trip through capitalize(); leave those parts as typed
    capitalized = part.capitalize()
    return capitalized if capitalized.capitalize() == capitalized else part


def normalize_amount(value: Any) -> float | None:
    """
    Coerce a money amount to a non-negative float rounded to 2 decimals.

    Currency symbols, ISO codes and thousands separators are ignored. Missing,
    non-numeric or negative input yields None, never 0.0.

    Examples:
        >>> normalize_amount("₩304,000")
        304000.0
        >>> normalize_amount("USD 12.345")
        12.35
        >>> normalize_amount("free?") is None
        True
    """
    if _is_blank(value) or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        # str() keeps the float as typed; ints go in directly (no digit limit)
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    elif isinstance(value, str):
        cleaned = _CURRENCY_TOKENS.sub("", value)
        if not _PLAIN_NUMBER.match(cleaned):
            return None
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
    else:
        return None

    if amount < 0:
        return None
    try:
        return float(amount.quantize(_CENT, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None


def normalize_number(value: Any) -> int | float | None:
    """
    Coerce a plain numeric value, e.g. an extras field of type number.

    Thousands separators are ignored. Unlike normalize_amount, negatives are
    kept, nothing is rounded and currency markers are not accepted.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    cleaned = value.replace(",", "").strip()
    if not _PLAIN_NUMBER.match(cleaned):
        return None
    if "." not in cleaned and len(cleaned.lstrip("-")) <= _MAX_COUNT_DIGITS:
        return int(cleaned)
    number = float(cleaned)
    return number if math.isfinite(number) else None


def normalize_count(value: Any, default: int) -> int:
    """
    Coerce a head/item count to a non-negative integer.

    The first integer in a string is used ("2명", "2 adults"). Missing or
    unparseable input yields the per-field default; the result is never None.
    """
    if _is_blank(value) or isinstance(value, bool):
        return default

    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return max(0, int(value))
    if isinstance(value, str):
        match = _FIRST_INTEGER.search(value)
        if not match:
            return default
        if len(match.group().lstrip("-")) > _MAX_COUNT_DIGITS:
            return default
        return max(0, int(match.group()))
    return default


def _safe_date(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(value: Any) -> str | None:
    """
    Normalize a calendar date to YYYY-MM-DD.

    Accepted: ISO and "/" or "." separated dates (optionally followed by a
    time), compact YYYYMMDD, Korean "2025년 3월 15일", English month names,
    and date/datetime objects. Impossible dates yield None. A numeric
    a/b/yyyy form where both a and b could be the month is ambiguous and
    yields None rather than a guess.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or _is_blank(value):
        return None

    text = value.strip()

    match = _ISO_DATE.match(text) or _COMPACT_DATE.match(text) or _KOREAN_DATE.search(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        first, second, year = (int(part) for part in match.groups())
        if first == second:
            return _safe_date(year, first, second)
        if first > 12 and second <= 12:
            return _safe_date(year, second, first)
        if second > 12 and first <= 12:
            return _safe_date(year, first, second)
        return None

    match = _MONTH_NAME_FIRST.match(text)
    if match:
        month = _MONTHS.get(match.group(1).lower())
        if month is None:
            return None
        return _safe_date(int(match.group(3)), month, int(match.group(2)))

    match = _DAY_FIRST_MONTH_NAME.match(text)
    if match:
        month = _MONTHS.get(match.group(2).lower())
        if month is None:
            return None
        return _safe_date(int(match.group(3)), month, int(match.group(1)))

    return None


def _format_clock(hours: int, minutes: int) -> str | None:
    if 0 <= hours <= 23 and 0 <= minutes <= 59:
        return f"{hours:02d}:{minutes:02d}"
    return None


def normalize_time(value: Any) -> str | None:
    """
    Normalize a time of day to HH:MM.

    Accepted: "14:30", "9:05", "14:30:00", "14시 30분", "14시", "2시 반",
    "2:30 PM", "오후 2시 30분", "3 pm". Out-of-range hours or minutes yield None.
    """
    if isinstance(value, (datetime, time)):
        return f"{value.hour:02d}:{value.minute:02d}"
    if not isinstance(value, str) or _is_blank(value):
        return None

    text = value.strip()
    is_pm = bool(_PM_MARKERS.search(text))
    is_am = bool(_AM_MARKERS.search(text))
    text = _AM_MARKERS.sub(" ", _PM_MARKERS.sub(" ", text)).strip()

    match = _CLOCK_TIME.search(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
    elif (match := _KOREAN_HALF_HOUR.search(text)):
        hours, minutes = int(match.group(1)), 30
    elif (match := _KOREAN_TIME.search(text)):
        hours, minutes = int(match.group(1)), int(match.group(2) or 0)
    elif (is_am or is_pm) and (match := _BARE_HOUR.match(text)):
        hours, minutes = int(match.group(1)), 0
    else:
        return None

    if is_pm or is_am:
        if hours > 12:
            return None
        if is_pm and hours < 12:
            hours += 12
        elif is_am and hours == 12:
            hours = 0

    return _format_clock(hours, minutes)


def normalize_datetime(value: Any) -> str | None:
    """
    Normalize a timestamp to "YYYY-MM-DD HH:MM:SS".

    The wall-clock time is kept as written; timezone suffixes are ignored.
    A bare date is taken as midnight.
    """
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return f"{value.isoformat()} 00:00:00"
    if not isinstance(value, str) or _is_blank(value):
        return None

    text = value.strip()
    match = _ISO_DATETIME.match(text)
    if match:
        year, month, day, hours, minutes = (int(part) for part in match.groups()[:5])
        seconds = int(match.group(6) or 0)
        day_part = _safe_date(year, month, day)
        if day_part is None or not (0 <= hours <= 23 and 0 <= minutes <= 59 and 0 <= seconds <= 59):
            return None
        return f"{day_part} {hours:02d}:{minutes:02d}:{seconds:02d}"

    day_part = normalize_date(text)
    if day_part is None:
        return None
    return f"{day_part} 00:00:00"


def normalize_phone(value: Any) -> str | None:
    """
    Clean a phone number to digits, "+", "-" and spaces.

    A leading +82 becomes the local leading zero and an 11-digit local mobile
    number is regrouped as 010-1234-5678. Reachability is not checked.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None

    cleaned = _PHONE_DISALLOWED.sub("", str(value)).strip()
    cleaned = re.sub(r"\s{2,}", " ", cleaned)

    if cleaned.startswith("+82"):
        rest = cleaned[3:].lstrip(" -")
        cleaned = rest if rest.startswith("0") else "0" + rest

    digits = _PHONE_SEPARATORS.sub("", cleaned)
    if _LOCAL_MOBILE.match(digits):
        cleaned = f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"

    if not any(char.isdigit() for char in cleaned):
        return None
    return cleaned


def normalize_email(value: Any) -> str | None:
    """Trim and lower-case an email; anything not shaped like local@domain.tld is None."""
    if not isinstance(value, str) or _is_blank(value):
        return None
    cleaned = value.strip().lower()
    return cleaned if _EMAIL.match(cleaned) else None


def normalize_tag(value: Any, lookup: dict[str, str], default: str) -> str:
    """Case-insensitive vocabulary lookup; unknown or missing input yields default."""
    if not isinstance(value, str) or _is_blank(value):
        return default
    key = value.strip().lower()
    return lookup.get(key) or lookup.get(re.sub(r"\s+", " ", key)) or default


def normalize_payment_status(value: Any) -> str:
    """
    Map free-text, bilingual payment words onto pending/confirmed/cancelled/refunded.

    Unrecognized input is pending: silently upgrading to confirmed is the
    failure that costs money.
    """
    if not isinstance(value, str) or _is_blank(value):
        return PAYMENT_STATUS_DEFAULT
    key = value.strip().lower()
    return (
        PAYMENT_STATUS_LOOKUP.get(key)
        or PAYMENT_STATUS_LOOKUP.get(re.sub(r"\s+", "", key))
        or PAYMENT_STATUS_DEFAULT
    )


def normalize_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def normalize_mapping(value: Any) -> dict[str, Any] | None:
    """Nested structures are kept only when they are mappings."""
    if isinstance(value, dict):
        return dict(value)
    return None


def normalize_choices(value: Any) -> list[str] | None:
    """Multi-choice values: a list (or comma-separated string) of trimmed, non-blank strings."""
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return None
    choices = [normalize_text(item) for item in value if isinstance(item, str)]
    return [choice for choice in choices if choice]


def generate_reservation_number(
    now: datetime | None = None,
    choice: Callable[[str], str] = secrets.choice,
) -> str:
    """
    Synthesize a reservation number: AUTO_<YYYYMMDDHHMMSS>_<4 chars>.

    The AUTO_ prefix keeps synthesized numbers distinguishable from vendor ones.
    """
    now = now or datetime.now()
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(choice(alphabet) for _ in range(4))
    return f"{AUTO_RESERVATION_PREFIX}{now:%Y%m%d%H%M%S}_{suffix}"


def is_synthesized_reservation_number(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(AUTO_RESERVATION_PREFIX)
