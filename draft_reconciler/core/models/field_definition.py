"""
FieldDefinition model describing an agency-specific key inside extras.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

FieldType = Literal[
    "text",
    "number",
    "boolean",
    "date",
    "time",
    "datetime",
    "email",
    "phone",
    "select",
    "multiselect",
]


class FieldDefinition(BaseModel):
    """
    Definition of one extras key.

    Definitions drive both the normalizer (coercion of extras[key] by type)
    and the schema pass (type, format, vocabulary and required rules on
    /extras/<key>). Extras keys without a definition pass through untouched.

    Attributes:
        key: Key inside the extras object
        type: Value type; "text" when omitted
        required: Missing or blank value is a blocking error
        pattern: Optional regex the (string) value must fully match
        options: Allowed values for select and multiselect
        label: Display name
        active: Inactive definitions are ignored everywhere
    """

    key: str = Field(..., min_length=1)
    type: FieldType = "text"
    required: bool = False
    pattern: str | None = None
    options: list[str] = Field(default_factory=list)
    label: str | None = None
    active: bool = True

    @field_validator('key')
    @classmethod
    def check_key(cls, v):
        if "." in v or "/" in v:
            raise ValueError(f"Field key must not contain '.' or '/': {v}")
        return v

    @property
    def path(self) -> str:
        """Dotted field name used by the rule engine."""
        return f"extras.{self.key}"

    class Config:
        json_schema_extra = {
            "example": {
                "key": "pickup_hotel",
                "type": "select",
                "required": True,
                "options": ["Hilton", "Hyatt", "Dusit Thani"],
                "label": "Pickup hotel",
            }
        }


def active_definitions(definitions: list[FieldDefinition] | None) -> list[FieldDefinition]:
    return [definition for definition in definitions or () if definition.active]
