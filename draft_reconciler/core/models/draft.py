"""
Draft model representing a reservation under extraction and review.
"""

import hashlib
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

DraftStatus = Literal["draft", "normalized", "reviewed", "committed", "rejected"]

TERMINAL_STATUSES = frozenset({"committed", "rejected"})


def origin_hash_for(raw_text: str) -> str:
    """SHA-256 hex digest of the trimmed raw text; equal texts give equal hashes."""
    return hashlib.sha256(raw_text.strip().encode("utf-8")).hexdigest()


class Draft(BaseModel):
    """
    The mutable working record for a reservation prior to commit.

    Note: parsed and normalized are complete documents once set (every
    recognized field present, possibly null); manual is a sparse patch that
    only holds fields a reviewer changed.

    Attributes:
        draft_id: Assigned by the repository on first save
        raw_text: Booking text as submitted
        origin_hash: origin_hash_for(raw_text), used to spot resubmitted texts
        parsed: First-pass guess from the extraction oracle (written once)
        normalized: Normalizer output (re-runnable)
        manual: Reviewer patch
        flags: Advisory tags, append-only
        confidence: Oracle self-reported confidence (0.0-1.0)
        extracted_notes: Oracle free-text notes
        status: "draft", "normalized", "reviewed", "committed", "rejected"
        reservation_id: Set when committed
        rejection_reason: Set when rejected
        created_at: When the draft was created
        updated_at: Last mutation
    """

    draft_id: int | None = None
    raw_text: str
    origin_hash: str | None = None
    parsed: dict[str, Any] | None = None
    normalized: dict[str, Any] | None = None
    manual: dict[str, Any] = Field(default_factory=dict)
    flags: list[str] = Field(default_factory=list)
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    extracted_notes: str | None = None
    status: DraftStatus = "draft"
    reservation_id: int | None = None
    rejection_reason: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def append_flags(self, flags: list[str]) -> None:
        """Append flags not already recorded, preserving order."""
        for flag in flags:
            if flag not in self.flags:
                self.flags.append(flag)

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or datetime.utcnow()

    class Config:
        json_schema_extra = {
            "example": {
                "draft_id": 42,
                "raw_text": "[NOL] 괌 돌핀 크루즈 / 2025-03-15 / 성인 2 아동 1 / 304,000원",
                "parsed": {"product_name": "괌 돌핀 크루즈", "adults": 2, "children": 1},
                "normalized": {"product_name": "괌 돌핀 크루즈", "adults": 2, "children": 1,
                               "infants": 0, "guest_count": 3},
                "manual": {"payment_status": "confirmed"},
                "flags": [],
                "confidence": 0.82,
                "status": "reviewed",
            }
        }
