"""
Validation rule engine, business rules and policy configuration.
"""

from .business_rules import (
    AMBIGUOUS_VALUE,
    HEADCOUNT_MISMATCH,
    MALFORMED_RESERVATION_NUMBER,
    MISSING_CONTACT,
    MISSING_NAME,
    MISSING_PRODUCT,
    MISSING_USAGE_DATE,
    PAST_USAGE_DATE,
    PRICE_MISMATCH,
)
from .reservation_validator import validate
from .rule_config import (
    DEFAULT_REQUIRED_FIELDS,
    RuleConfigBuilder,
    RuleConfigLoader,
    ValidationPolicy,
    build_schema_rules,
)
from .rule_engine import RuleEngine

__all__ = [
    "validate",
    "RuleEngine",
    "RuleConfigLoader",
    "RuleConfigBuilder",
    "ValidationPolicy",
    "DEFAULT_REQUIRED_FIELDS",
    "build_schema_rules",
    "HEADCOUNT_MISMATCH",
    "MISSING_NAME",
    "MISSING_CONTACT",
    "MISSING_PRODUCT",
    "MISSING_USAGE_DATE",
    "PRICE_MISMATCH",
    "PAST_USAGE_DATE",
    "MALFORMED_RESERVATION_NUMBER",
    "AMBIGUOUS_VALUE",
]
