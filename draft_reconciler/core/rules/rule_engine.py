"""
Rule engine for the schema pass over effective reservation records.

The rule engine builds field validators from rule configurations, applies
every one of them to a record, and reports failures as FieldErrors.
"""

from typing import Any

from draft_reconciler.core.models import FieldError
from draft_reconciler.core.validators import (
    MISSING,
    BaseValidator,
    CalendarDateValidator,
    EnumValidator,
    RangeValidator,
    RegexValidator,
    RequiredFieldValidator,
    TypeValidator,
    ValidationError,
    resolve_field,
)


class RuleEngine:
    """
    Orchestrates field validation rules on effective records.

    All rules run on every record; there is no fail-fast. Rules with
    severity "error" produce blocking schema errors, rules with severity
    "warning" produce a non-blocking flag named after the rule.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "type_check": TypeValidator,
        "range": RangeValidator,
        "regex": RegexValidator,
        "enum": EnumValidator,
        "calendar_date": CalendarDateValidator,
    }

    def __init__(self, rules: list[dict[str, Any]]):
        """
        Initialize the rule engine with validation rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (see VALIDATOR_REGISTRY)
                   - field_name: str (dotted for nested keys, e.g. "extras.pickup_hotel")
                   - parameters: Dict[str, Any] (optional)
                   - severity: str (error or warning)
                   - enabled: bool (default True)

        Raises:
            ValueError: On unknown rule types or invalid rule parameters
        """
        self.rules = rules
        self.validators: list[tuple[str, str, BaseValidator]] = []
        self._build_validators()

    def _build_validators(self) -> None:
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]
            severity = rule.get("severity", "error")

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule["field_name"], rule.get("parameters", {}))
            except ValueError as e:
                raise ValueError(f"Failed to create validator for rule '{rule_name}': {e}") from e
            self.validators.append((rule_name, severity, validator))

    def evaluate(self, record: dict[str, Any]) -> tuple[list[FieldError], list[str]]:
        """
        Apply every rule to the record.

        Args:
            record: Effective record (plain dict)

        Returns:
            (schema errors, warning flags) in rule order
        """
        errors: list[FieldError] = []
        flags: list[str] = []

        for rule_name, severity, validator in self.validators:
            value = resolve_field(record, validator.field_name)
            if value is MISSING:
                value = None

            try:
                validator.validate(value, record)
            except ValidationError as e:
                if severity == "error":
                    errors.append(FieldError(
                        path="/" + e.field_name.replace(".", "/"),
                        message=f"{e.field_name} {e.message}",
                        rule=rule_name,
                        kind="schema",
                    ))
                elif rule_name not in flags:
                    flags.append(rule_name)

        return errors, flags

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts by type and severity
        """
        return {
            "total_rules": len(self.validators),
            "rules_by_type": self._count_by_type(),
            "rules_by_severity": self._count_by_severity(),
        }

    def _count_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for _, _, validator in self.validators:
            counts[validator.rule_type] = counts.get(validator.rule_type, 0) + 1
        return counts

    def _count_by_severity(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for _, severity, _ in self.validators:
            counts[severity] = counts.get(severity, 0) + 1
        return counts
