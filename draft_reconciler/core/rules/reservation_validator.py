"""
Validator entry point for effective reservation records.
"""

from datetime import date
from functools import lru_cache
from typing import Any

from ..models import FieldError, ValidationResult
from .business_rules import run_business_rules
from .rule_config import ValidationPolicy, build_schema_rules
from .rule_engine import RuleEngine

_DEFAULT_POLICY = ValidationPolicy()


@lru_cache(maxsize=1)
def _default_engine() -> RuleEngine:
    return RuleEngine(build_schema_rules(_DEFAULT_POLICY))


def validate(
    record: Any,
    *,
    policy: ValidationPolicy | None = None,
    today: date | None = None,
) -> ValidationResult:
    """
    Validate an effective record.

    The schema pass and the business pass always both run and their
    findings are concatenated (schema first). Blocking errors make the
    result invalid; flags never do. This function does not raise for any
    record shape: a non-mapping record yields a single schema error.

    Args:
        record: Effective record (normally the output of merge())
        policy: Required fields and tolerances; defaults to ValidationPolicy()
        today: Reference day for past_usage_date; defaults to date.today()

    Returns:
        ValidationResult with errors, flags and summary
    """
    if not isinstance(record, dict):
        error = FieldError(
            path="/",
            message=f"record must be an object, got {type(record).__name__}",
            rule="record_type",
            kind="schema",
        )
        return ValidationResult.from_findings([error], [])

    if policy is None:
        policy = _DEFAULT_POLICY
        engine = _default_engine()
    else:
        engine = RuleEngine(build_schema_rules(policy))

    schema_errors, schema_flags = engine.evaluate(record)
    business_errors, business_flags = run_business_rules(record, policy, today or date.today())

    flags = list(schema_flags)
    flags.extend(flag for flag in business_flags if flag not in flags)

    return ValidationResult.from_findings(schema_errors + business_errors, flags)
