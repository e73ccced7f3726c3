"""
models/invitations.py — Pydantic models for the vendor_invitations table.

An invitation is either tied to one event (``invitation_type="event"``) or
a bulk availability request covering a date range (``"bulk"``). The vendor's
answer is stored on the same row as a list of per-day entries.
"""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from crewdesk_shared.constants import InvitationStatus, InvitationType
from crewdesk_shared.time_utils import parse_date, parse_timestamp


class AvailabilityEntry(BaseModel):
    date: dt.date | None = None
    available: bool = False
    notes: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> dt.date | None:
        return parse_date(v)

    @field_validator("available", mode="before")
    @classmethod
    def _strict_true(cls, v: Any) -> bool:
        # Only an explicit boolean true counts as available
        return v is True

    @field_validator("notes", mode="before")
    @classmethod
    def _strip_notes(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat() if self.date else None,
            "available": self.available,
            "notes": self.notes,
        }


class VendorInvitation(BaseModel):
    """Matches the vendor_invitations table row."""

    id: str | None = None
    token: str
    event_id: str | None = None
    vendor_id: str
    invited_by: str | None = None
    status: InvitationStatus = "pending"
    invitation_type: InvitationType = "event"
    start_date: date | None = None
    end_date: date | None = None
    duration_weeks: int | None = None
    availability: list[AvailabilityEntry] = Field(default_factory=list)
    responded_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> date | None:
        return parse_date(v)

    @field_validator("responded_at", "expires_at", "created_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @field_validator("availability", mode="before")
    @classmethod
    def _null_availability(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "VendorInvitation":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "token": self.token,
            "event_id": self.event_id,
            "vendor_id": self.vendor_id,
            "invited_by": self.invited_by,
            "status": self.status,
            "invitation_type": self.invitation_type,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "duration_weeks": self.duration_weeks,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
        return {k: v for k, v in d.items() if v is not None}
