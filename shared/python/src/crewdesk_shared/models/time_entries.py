"""
models/time_entries.py — Pydantic models for time_entries and form_signatures.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from crewdesk_shared.constants import ATTESTATION_FORM_PREFIX, TimeEntryAction
from crewdesk_shared.time_utils import parse_timestamp


class TimeEntry(BaseModel):
    """Matches the time_entries table row. Rows are append-only."""

    id: str | None = None
    user_id: str
    event_id: str | None = None
    action: TimeEntryAction
    timestamp: datetime | None = None
    started_at: datetime | None = None
    division: str | None = None
    notes: str | None = None
    attestation_accepted: bool | None = None

    @field_validator("timestamp", "started_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @property
    def at(self) -> datetime | None:
        """When the action happened; older rows only carry started_at."""
        return self.timestamp or self.started_at

    @property
    def form_id(self) -> str | None:
        if self.id is None:
            return None
        return f"{ATTESTATION_FORM_PREFIX}{self.id}"

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "TimeEntry":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        d = self.model_dump(exclude={"id", "started_at"}, exclude_none=True)
        if self.timestamp is not None:
            d["timestamp"] = self.timestamp.isoformat()
        return d


class FormSignature(BaseModel):
    """Matches the form_signatures table row."""

    id: str | None = None
    user_id: str
    form_id: str | None = None
    form_type: str | None = None
    signature_data: str | None = None
    signature_type: str | None = None
    signed_at: datetime | None = None
    ip_address: str | None = None
    is_valid: bool | None = None
    form_data_hash: str | None = None

    @field_validator("signed_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v: Any) -> datetime | None:
        return parse_timestamp(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "FormSignature":
        return cls(**row)
