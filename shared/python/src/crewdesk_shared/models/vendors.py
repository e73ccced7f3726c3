"""
models/vendors.py — Vendor view over the users and profiles tables.

A vendor row is a ``users`` record with its ``profiles`` record embedded by
PostgREST (``select("..., profiles(...)")``). The embed comes back either as
an object or a one-element list depending on the relationship, so
from_db_row() accepts both.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from crewdesk_shared.geo import Point, coerce_coordinate, coerce_point

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "city",
    "state",
    "latitude",
    "longitude",
    "region_id",
)


class Vendor(BaseModel):
    id: str
    email: str | None = None
    role: str | None = None
    division: str | None = None
    is_active: bool = True
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    city: str | None = None
    state: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    region_id: str | None = None

    # Computed per request, never stored
    distance: float | None = None
    recently_responded: bool = False

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _lenient_coordinate(cls, v: Any) -> float | None:
        return coerce_coordinate(v)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _blank_name(cls, v: Any) -> str:
        return str(v).strip() if v is not None else ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def point(self) -> Point | None:
        return coerce_point(self.latitude, self.longitude)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Vendor":
        data = {k: v for k, v in row.items() if k != "profiles"}
        profile = row.get("profiles")
        if isinstance(profile, list):
            profile = profile[0] if profile else None
        if isinstance(profile, dict):
            for key in PROFILE_FIELDS:
                if profile.get(key) is not None:
                    data[key] = profile[key]
        return cls(**data)

    def to_response(self) -> dict[str, Any]:
        d = self.model_dump()
        d["full_name"] = self.full_name
        return d
