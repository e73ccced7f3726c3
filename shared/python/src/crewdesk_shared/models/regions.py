"""
models/regions.py — Pydantic model for the regions table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from crewdesk_shared.constants import FIXED_REGION_RADIUS_MILES, KM_PER_MILE
from crewdesk_shared.geo import Point, coerce_coordinate, coerce_point


class Region(BaseModel):
    """Matches the regions table row."""

    id: str | None = None
    name: str
    description: str | None = None
    center_lat: float | None = None
    center_lng: float | None = None
    radius_miles: float | None = None
    is_active: bool = True
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("center_lat", "center_lng", "radius_miles", mode="before")
    @classmethod
    def _lenient_number(cls, v: Any) -> float | None:
        return coerce_coordinate(v)

    @property
    def center(self) -> Point | None:
        return coerce_point(self.center_lat, self.center_lng)

    @property
    def effective_radius_miles(self) -> float:
        if self.radius_miles is None or self.radius_miles <= 0:
            return FIXED_REGION_RADIUS_MILES
        return self.radius_miles

    @property
    def radius_km(self) -> float:
        return self.effective_radius_miles * KM_PER_MILE

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Region":
        return cls(**row)

    def to_insert_dict(self) -> dict[str, Any]:
        return self.model_dump(
            exclude={"id", "created_at", "updated_at"}, exclude_none=True
        )

    def summary(self) -> dict[str, Any]:
        """Region info attached to filtered vendor listings."""
        return {
            "id": self.id,
            "name": self.name,
            "center_lat": self.center_lat,
            "center_lng": self.center_lng,
            "radius_miles": self.effective_radius_miles,
        }
