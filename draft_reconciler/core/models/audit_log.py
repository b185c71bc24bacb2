"""
ReservationAudit model recording what a commit changed relative to the first-pass guess.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ReservationAudit(BaseModel):
    """
    Audit entry stored against a reservation.

    Attributes:
        audit_id: Auto-increment primary key
        reservation_id: Which reservation the entry belongs to
        draft_id: Draft the reservation was committed from
        action: Type of event ("commit")
        actor: Reviewer who performed the action, if known
        diff: Structural diff from the parsed guess to the committed record
        summary: Human-readable change lines derived from diff
        created_at: When the event occurred
    """

    audit_id: int | None = None
    reservation_id: int | None = None
    draft_id: int
    action: Literal["commit"] = "commit"
    actor: str | None = None
    diff: dict[str, Any] = Field(default_factory=dict)
    summary: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "audit_id": 1,
                "reservation_id": 7,
                "draft_id": 42,
                "action": "commit",
                "actor": "reviewer@agency",
                "diff": {
                    "guest_count": {"action": "changed", "old": 1, "new": 3},
                    "payment_status": {"action": "changed", "old": "pending", "new": "confirmed"},
                },
                "summary": [
                    "Changed guest_count: 1 -> 3",
                    'Changed payment_status: "pending" -> "confirmed"',
                ],
            }
        }
