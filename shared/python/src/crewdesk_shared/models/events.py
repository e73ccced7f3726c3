"""
models/events.py — Pydantic models for the events and event_teams tables.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from crewdesk_shared.constants import TeamStatus
from crewdesk_shared.time_utils import parse_date


class Event(BaseModel):
    """Matches the events table row."""

    id: str | None = None
    created_by: str | None = None
    event_name: str
    artist: str | None = None
    venue: str
    city: str | None = None
    state: str | None = None
    event_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    ends_next_day: bool = False
    required_staff: int | None = None
    confirmed_staff: int | None = None
    ticket_sales: int | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("event_date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> date | None:
        return parse_date(v)

    @field_validator("state", mode="before")
    @classmethod
    def _upper_state(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip().upper()
        return text or None

    @field_validator("ends_next_day", "is_active", mode="before")
    @classmethod
    def _null_flag(cls, v: Any, info: ValidationInfo) -> bool:
        if v is None:
            return info.field_name == "is_active"
        return bool(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Event":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        d = self.model_dump(exclude={"id", "created_at", "updated_at"}, exclude_none=True)
        if self.event_date is not None:
            d["event_date"] = self.event_date.isoformat()
        return d


class TeamMember(BaseModel):
    """Matches the event_teams table row."""

    id: str | None = None
    event_id: str
    vendor_id: str
    assigned_by: str | None = None
    status: TeamStatus = "pending_confirmation"
    confirmation_token: str | None = None
    created_at: datetime | None = None
    vendor: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "TeamMember":
        data = dict(row)
        embedded = data.pop("users", None)
        if isinstance(embedded, dict):
            data["vendor"] = embedded
        return cls(**data)

    def to_insert_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id", "created_at", "vendor"}, exclude_none=True)
