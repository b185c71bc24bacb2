"""
Reservation model representing the canonical record produced by a draft commit.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .fields import RESERVATION_FIELDS


class Reservation(BaseModel):
    """
    Canonical committed reservation (created exactly once per draft).

    Attributes:
        reservation_id: Assigned by the repository at commit time
        draft_id: Draft this reservation was committed from
        reservation_number: Vendor-issued or synthesized (AUTO_...) number
        data: The recognized fields of the effective record
        extras: Platform-specific structured data
        flags: Advisory flags raised by validation at commit time
        created_at: When the reservation was committed
    """

    reservation_id: int | None = None
    draft_id: int
    reservation_number: str = Field(..., min_length=1)
    data: dict[str, Any]
    extras: dict[str, Any] = Field(default_factory=dict)
    flags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def from_effective_record(
        cls,
        draft_id: int,
        record: dict[str, Any],
        flags: list[str] | None = None,
    ) -> "Reservation":
        """
        Build a reservation from a validated effective record.

        Unrecognized keys of the record are not part of the reservation shape
        and are dropped here.
        """
        data = {
            field_name: record[field_name]
            for field_name in RESERVATION_FIELDS
            if field_name in record and field_name != "extras"
        }
        return cls(
            draft_id=draft_id,
            reservation_number=record["reservation_number"],
            data=data,
            extras=record.get("extras") or {},
            flags=list(flags or []),
        )

    @property
    def guest_count(self) -> int | None:
        return self.data.get("guest_count")

    class Config:
        json_schema_extra = {
            "example": {
                "reservation_id": 7,
                "draft_id": 42,
                "reservation_number": "NOL-88231",
                "data": {
                    "product_name": "괌 돌핀 크루즈",
                    "total_amount": 304.0,
                    "adults": 2,
                    "children": 1,
                    "infants": 0,
                    "guest_count": 3,
                    "payment_status": "confirmed",
                },
                "extras": {},
                "flags": ["price_mismatch"],
            }
        }
