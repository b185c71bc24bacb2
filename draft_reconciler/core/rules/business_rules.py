"""
Business pass of reservation validation.

Each rule looks at the whole effective record and returns blocking errors
and advisory flags. Rules tolerate wrongly typed values (the schema pass
reports those) by skipping the check.
"""

import re
from datetime import date
from typing import Any, Callable

from ..models import FieldError
from .rule_config import ValidationPolicy

RuleOutcome = tuple[list[FieldError], list[str]]
BusinessRule = Callable[[dict[str, Any], ValidationPolicy, date], RuleOutcome]

HEADCOUNT_MISMATCH = "headcount_mismatch"
MISSING_NAME = "missing_name"
MISSING_CONTACT = "missing_contact"
MISSING_PRODUCT = "missing_product"
MISSING_USAGE_DATE = "missing_usage_date"
PRICE_MISMATCH = "price_mismatch"
PAST_USAGE_DATE = "past_usage_date"
MALFORMED_RESERVATION_NUMBER = "malformed_reservation_number"
AMBIGUOUS_VALUE = "ambiguous_value"

# Stand-ins typed instead of data. "pending" is a payment_status tag, not a placeholder
_PLACEHOLDER = re.compile(r"tbd|tba|unknown|n/a|na|null|undefined|\?+|-+|\.+", re.IGNORECASE)


def _int(value: Any) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _number(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def check_headcount(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    parts = [_int(record.get(name)) for name in ("adults", "children", "infants")]
    guest_count = _int(record.get("guest_count"))
    if guest_count is None or any(part is None for part in parts):
        return [], []

    expected = sum(parts)
    if guest_count == expected:
        return [], []

    error = FieldError(
        path="/guest_count",
        message=f"guest_count ({guest_count}) does not equal adults+children+infants ({expected})",
        rule="headcount_consistency",
        kind="business",
    )
    return [error], [HEADCOUNT_MISMATCH]


def check_identity(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    flags = []
    if not (_present(record.get("korean_name")) or _present(record.get("english_first_name"))):
        flags.append(MISSING_NAME)
    if not (_present(record.get("email")) or _present(record.get("phone"))):
        flags.append(MISSING_CONTACT)
    if not _present(record.get("product_name")):
        flags.append(MISSING_PRODUCT)
    if not _present(record.get("usage_date")):
        flags.append(MISSING_USAGE_DATE)
    return [], flags


def check_price(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    """
    Compare the total against adult_unit_price*adults + child_unit_price*children.

    Only runs with a total, an adult unit price and at least one adult. A
    missing child price counts as 0.
    """
    total = _number(record.get("total_amount"))
    adult_price = _number(record.get("adult_unit_price"))
    adults = _int(record.get("adults"))
    if total is None or adult_price is None or adults is None or adults <= 0:
        return [], []

    child_price = _number(record.get("child_unit_price")) or 0
    children = _int(record.get("children")) or 0
    try:
        expected = adult_price * adults + child_price * children
        gap = abs(total - expected)
    except OverflowError:
        # Counts past float range cannot reconcile with any real total
        return [], [PRICE_MISMATCH]

    if gap > policy.price_tolerance:
        return [], [PRICE_MISMATCH]
    return [], []


def check_usage_date(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    usage_date = record.get("usage_date")
    if not isinstance(usage_date, str):
        return [], []
    try:
        day = date.fromisoformat(usage_date[:10])
    except ValueError:
        return [], []
    if day < today:
        return [], [PAST_USAGE_DATE]
    return [], []


def check_reservation_number(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    number = record.get("reservation_number")
    if isinstance(number, str) and number.strip() and len(number.strip()) < policy.min_reservation_number_length:
        return [], [MALFORMED_RESERVATION_NUMBER]
    return [], []


def check_placeholders(record: dict[str, Any], policy: ValidationPolicy, today: date) -> RuleOutcome:
    """Flag text values that stand in for data ("TBD", "N/A", "???", "---"), in extras too."""
    candidates = [value for key, value in record.items() if key != "extras"]
    extras = record.get("extras")
    if isinstance(extras, dict):
        candidates.extend(extras.values())

    for value in candidates:
        if isinstance(value, str) and _PLACEHOLDER.fullmatch(value.strip()):
            return [], [AMBIGUOUS_VALUE]
    return [], []


BUSINESS_RULES: tuple[BusinessRule, ...] = (
    check_headcount,
    check_identity,
    check_price,
    check_usage_date,
    check_reservation_number,
    check_placeholders,
)


def run_business_rules(
    record: dict[str, Any],
    policy: ValidationPolicy,
    today: date,
    rules: tuple[BusinessRule, ...] = BUSINESS_RULES,
) -> RuleOutcome:
    errors: list[FieldError] = []
    flags: list[str] = []
    for rule in rules:
        rule_errors, rule_flags = rule(record, policy, today)
        errors.extend(rule_errors)
        flags.extend(flag for flag in rule_flags if flag not in flags)
    return errors, flags
