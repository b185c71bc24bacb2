"""
Rule configuration management.

Builds the schema rules for effective reservation records, and loads the
validation policy (required fields, tolerances, extra rules) from YAML.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from ..models.field_definition import FieldDefinition, active_definitions
from ..models.fields import (
    AMOUNT_FIELDS,
    BOOLEAN_FIELDS,
    CONTACT_FIELDS,
    COUNT_DEFAULTS,
    DATE_FIELDS,
    DATETIME_FIELDS,
    NESTED_FIELDS,
    RESERVATION_FIELDS,
    TAG_FIELDS,
    TEXT_FIELDS,
    TIME_FIELDS,
)
from ..normalization.vocabulary import TAG_VOCABULARIES

DEFAULT_REQUIRED_FIELDS = (
    "reservation_number",
    "quantity",
    "guest_count",
    "adults",
    "children",
    "infants",
    "payment_status",
    "code_issued",
)

DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"
TIME_PATTERN = r"([01]\d|2[0-3]):[0-5]\d"
DATETIME_PATTERN = r"\d{4}-\d{2}-\d{2} ([01]\d|2[0-3]):[0-5]\d:[0-5]\d"
EMAIL_PATTERN = r"[^\s@]+@[^\s@]+\.[^\s@]+"
PHONE_PATTERN = r"\+?[0-9\s\-()]+"

SEVERITIES = ("error", "warning")


class ValidationPolicy(BaseModel):
    """
    Tunable knobs of the validator.

    Attributes:
        required_fields: Fields that must be present and non-null
        price_tolerance: Absolute slack allowed between total and unit-price sum
        min_reservation_number_length: Shorter numbers raise malformed_reservation_number
        extra_rules: Additional rule dicts (RuleEngine format) appended to the schema pass
        field_definitions: Agency-specific extras keys; drive extras normalization
            and the /extras/<key> schema rules
    """

    required_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRED_FIELDS))
    price_tolerance: float = Field(1.0, ge=0.0)
    min_reservation_number_length: int = Field(3, ge=1)
    extra_rules: list[dict[str, Any]] = Field(default_factory=list)
    field_definitions: list[FieldDefinition] = Field(default_factory=list)

    @field_validator('required_fields')
    @classmethod
    def check_known_fields(cls, v):
        unknown = [name for name in v if name not in RESERVATION_FIELDS]
        if unknown:
            raise ValueError(f"Unknown required fields: {', '.join(unknown)}")
        return v

    @field_validator('field_definitions')
    @classmethod
    def check_unique_keys(cls, v):
        keys = [definition.key for definition in v]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field definitions: {', '.join(duplicates)}")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "required_fields": list(DEFAULT_REQUIRED_FIELDS) + ["usage_date"],
                "price_tolerance": 1.0,
                "min_reservation_number_length": 3,
                "field_definitions": [
                    {"key": "pickup_hotel", "type": "text", "required": True},
                    {"key": "dietary", "type": "multiselect", "options": ["vegan", "halal"]},
                ],
            }
        }


class RuleConfigLoader:
    """
    Loads the validation policy from a YAML configuration file.

    Expected YAML format:
    ```yaml
    policy:
      required_fields: [reservation_number, adults, payment_status]
      price_tolerance: 1.0
      min_reservation_number_length: 3
      field_definitions:
        - key: pickup_hotel
          type: select
          required: true
          options: [Hilton, Hyatt]

    rules:
      reservation_number:
        - type: regex
          params:
            pattern: "^[A-Z0-9_-]+$"
          severity: warning
          name: odd_reservation_number
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def _read(self) -> dict[str, Any]:
        with open(self.config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")
        return config

    def load_rules(self) -> list[dict[str, Any]]:
        """
        Parse the optional 'rules' section into RuleEngine rule dicts.

        Raises:
            ValueError: If a rule definition is invalid
        """
        field_rules = self._read().get("rules") or {}
        if not isinstance(field_rules, dict):
            raise ValueError("'rules' section must be a mapping of field name to rule list")

        rules = []
        for field_name, field_rule_list in field_rules.items():
            if not isinstance(field_rule_list, list):
                raise ValueError(f"Rules for field '{field_name}' must be a list")

            for idx, rule_def in enumerate(field_rule_list):
                rules.append(self._parse_rule(field_name, rule_def, idx))

        return rules

    def load_policy(self) -> ValidationPolicy:
        """Load the 'policy' section (defaults for anything omitted) plus extra rules."""
        policy_section = self._read().get("policy") or {}
        if not isinstance(policy_section, dict):
            raise ValueError("'policy' section must be a mapping")
        return ValidationPolicy(**policy_section, extra_rules=self.load_rules())

    def _parse_rule(self, field_name: str, rule_def: dict[str, Any], idx: int) -> dict[str, Any]:
        if not isinstance(rule_def, dict) or "type" not in rule_def:
            raise ValueError(f"Rule for field '{field_name}' is missing 'type'")

        rule_type = rule_def["type"]
        rule_name = rule_def.get("name", f"{field_name}_{rule_type}_{idx}")
        parameters = rule_def.get("params", rule_def.get("parameters", {}))

        severity = rule_def.get("severity", "error")
        if severity not in SEVERITIES:
            raise ValueError(f"Invalid severity '{severity}' for rule '{rule_name}'. Must be 'error' or 'warning'")

        return {
            "rule_name": rule_name,
            "rule_type": rule_type,
            "field_name": field_name,
            "parameters": parameters,
            "severity": severity,
            "enabled": rule_def.get("enabled", True),
        }


class RuleConfigBuilder:
    """
    Programmatically build rule configurations.
    """

    def __init__(self):
        self.rules: list[dict[str, Any]] = []

    def _add(self, rule_name: str, rule_type: str, field_name: str, parameters: dict[str, Any]) -> "RuleConfigBuilder":
        self.rules.append({
            "rule_name": rule_name,
            "rule_type": rule_type,
            "field_name": field_name,
            "parameters": parameters,
            "severity": "error",
            "enabled": True,
        })
        return self

    def add_required_field(self, field_name: str, allow_empty_string: bool = False) -> "RuleConfigBuilder":
        return self._add(
            f"{field_name}_required", "required_field", field_name,
            {"allow_empty_string": allow_empty_string},
        )

    def add_type_check(self, field_name: str, expected_type: str) -> "RuleConfigBuilder":
        return self._add(
            f"{field_name}_type_check", "type_check", field_name,
            {"expected_type": expected_type},
        )

    def add_range(
        self,
        field_name: str,
        min_value: float | None = None,
        max_value: float | None = None
    ) -> "RuleConfigBuilder":
        params = {}
        if min_value is not None:
            params["min"] = min_value
        if max_value is not None:
            params["max"] = max_value
        return self._add(f"{field_name}_range", "range", field_name, params)

    def add_regex(self, field_name: str, pattern: str, format_name: str | None = None) -> "RuleConfigBuilder":
        params: dict[str, Any] = {"pattern": pattern}
        if format_name:
            params["format"] = format_name
        return self._add(f"{field_name}_format", "regex", field_name, params)

    def add_enum(self, field_name: str, allowed, each: bool = False) -> "RuleConfigBuilder":
        params: dict[str, Any] = {"allowed": sorted(allowed)}
        if each:
            params["each"] = True
        return self._add(f"{field_name}_vocabulary", "enum", field_name, params)

    def add_calendar_date(self, field_name: str) -> "RuleConfigBuilder":
        return self._add(f"{field_name}_calendar_date", "calendar_date", field_name, {})

    def build(self) -> list[dict[str, Any]]:
        """Build and return the rule configuration."""
        return self.rules


def build_schema_rules(policy: ValidationPolicy | None = None) -> list[dict[str, Any]]:
    """
    Schema-pass rules for an effective record under the given policy.

    Required fields come first, then per-field type, vocabulary, range and
    format rules, then rules for defined extras keys, then any extra rules
    from the policy.
    """
    policy = policy or ValidationPolicy()
    builder = RuleConfigBuilder()

    for field_name in policy.required_fields:
        builder.add_required_field(field_name)

    for field_name in TEXT_FIELDS + CONTACT_FIELDS:
        builder.add_type_check(field_name, "string")

    for field_name in TAG_FIELDS:
        builder.add_type_check(field_name, "string")
        builder.add_enum(field_name, TAG_VOCABULARIES[field_name])

    for field_name in AMOUNT_FIELDS:
        builder.add_type_check(field_name, "number").add_range(field_name, min_value=0)

    for field_name in COUNT_DEFAULTS:
        builder.add_type_check(field_name, "integer").add_range(field_name, min_value=0)

    for field_name in BOOLEAN_FIELDS:
        builder.add_type_check(field_name, "boolean")

    for field_name in NESTED_FIELDS:
        builder.add_type_check(field_name, "object")

    for field_name in DATE_FIELDS:
        builder.add_type_check(field_name, "string")
        builder.add_regex(field_name, DATE_PATTERN, "YYYY-MM-DD")
        builder.add_calendar_date(field_name)

    for field_name in TIME_FIELDS:
        builder.add_type_check(field_name, "string")
        builder.add_regex(field_name, TIME_PATTERN, "HH:MM")

    for field_name in DATETIME_FIELDS:
        builder.add_type_check(field_name, "string")
        builder.add_regex(field_name, DATETIME_PATTERN, "YYYY-MM-DD HH:MM:SS")
        builder.add_calendar_date(field_name)

    builder.add_regex("email", EMAIL_PATTERN, "local@domain.tld")

    for definition in active_definitions(policy.field_definitions):
        add_extras_rules(builder, definition)

    return builder.build() + list(policy.extra_rules)


def add_extras_rules(builder: RuleConfigBuilder, definition: FieldDefinition) -> None:
    """Schema rules for one extras key, addressed as extras.<key>."""
    field_name = definition.path

    if definition.required:
        builder.add_required_field(field_name)

    if definition.type == "number":
        builder.add_type_check(field_name, "number")
    elif definition.type == "boolean":
        builder.add_type_check(field_name, "boolean")
    elif definition.type == "multiselect":
        builder.add_type_check(field_name, "array")
        if definition.options:
            builder.add_enum(field_name, definition.options, each=True)
    else:
        builder.add_type_check(field_name, "string")

    if definition.type == "date":
        builder.add_regex(field_name, DATE_PATTERN, "YYYY-MM-DD").add_calendar_date(field_name)
    elif definition.type == "time":
        builder.add_regex(field_name, TIME_PATTERN, "HH:MM")
    elif definition.type == "datetime":
        builder.add_regex(field_name, DATETIME_PATTERN, "YYYY-MM-DD HH:MM:SS").add_calendar_date(field_name)
    elif definition.type == "email":
        builder.add_regex(field_name, EMAIL_PATTERN, "local@domain.tld")
    elif definition.type == "phone":
        builder.add_regex(field_name, PHONE_PATTERN, "phone number")
    elif definition.type == "select" and definition.options:
        builder.add_enum(field_name, definition.options)

    if definition.pattern:
        builder.add_regex(field_name, definition.pattern)
