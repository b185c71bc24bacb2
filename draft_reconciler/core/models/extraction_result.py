"""
ExtractionResult model representing what the extraction oracle returns for a raw text.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .fields import PartialRecord


class ExtractionResult(BaseModel):
    """
    First-pass structured guess produced by the external extraction oracle.

    Attributes:
        fields: Partially populated reservation guess (may be empty)
        confidence: Oracle self-reported confidence (0.0-1.0)
        notes: Oracle free-text notes
        degraded: True when this is a fallback built because extraction failed
    """

    fields: PartialRecord = Field(default_factory=PartialRecord)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    notes: str = ""
    degraded: bool = False

    @field_validator('fields', mode='before')
    @classmethod
    def accept_plain_mapping(cls, v):
        """Allow fields to be given as a plain dict (or None for an empty guess)."""
        if v is None:
            return {}
        return v

    @classmethod
    def fallback(cls, raw_text: str, reason: str = "extraction unavailable") -> "ExtractionResult":
        """
        Degraded guess used when the oracle fails or times out.

        Every field is left null so the draft can be completed by hand; the raw
        text itself stays on the draft.
        """
        return cls(
            fields=PartialRecord(),
            confidence=0.0,
            notes=f"{reason} ({len(raw_text)} chars of raw text kept for manual review)",
            degraded=True,
        )

    def parsed_document(self) -> dict[str, Any]:
        """The guess as a complete document: every recognized field present, extras kept."""
        document = self.fields.model_dump()
        return document

    class Config:
        json_schema_extra = {
            "example": {
                "fields": {
                    "product_name": "괌 돌핀 크루즈",
                    "adults": "2",
                    "usage_date": "2025/03/15",
                },
                "confidence": 0.82,
                "notes": "currency assumed KRW",
                "degraded": False,
            }
        }
