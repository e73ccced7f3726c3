"""Region data service."""

from __future__ import annotations

from collections import Counter
from typing import Any

import structlog

from crewdesk_shared.constants import FIXED_REGION_RADIUS_MILES
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.geo import Point, resolve_region
from crewdesk_shared.models.regions import Region

from crewdesk_api.utils.cache import region_cache

log = structlog.get_logger(__name__)


def list_regions(*, include_inactive: bool = False) -> list[Region]:
    """Regions ordered by name. Resolution precedence follows this order."""

    def _load() -> list[Region]:
        supabase = get_supabase_client(service_role=True)
        query = supabase.table("regions").select("*")
        if not include_inactive:
            query = query.eq("is_active", True)
        result = query.order("name").execute()
        return [Region.from_db_row(row) for row in result.data or []]

    return region_cache.get_or_load(("regions", include_inactive), _load)


def get_region(region_id: str) -> Region | None:
    for region in list_regions(include_inactive=True):
        if region.id == region_id:
            return region
    return None


def vendor_counts() -> dict[str, int]:
    """Number of profiles assigned to each region."""
    supabase = get_supabase_client(service_role=True)
    result = supabase.table("profiles").select("region_id").execute()
    return dict(Counter(row["region_id"] for row in result.data or [] if row.get("region_id")))


def create_region(
    *,
    name: str,
    center_lat: float,
    center_lng: float,
    description: str | None = None,
    created_by: str | None = None,
) -> dict[str, Any]:
    """Insert a region. Every new region gets the fixed catchment radius."""
    region = Region(
        name=name.strip(),
        description=description,
        center_lat=center_lat,
        center_lng=center_lng,
        radius_miles=FIXED_REGION_RADIUS_MILES,
        created_by=created_by,
    )
    supabase = get_supabase_client(service_role=True)
    result = supabase.table("regions").insert(region.to_insert_dict()).execute()
    region_cache.invalidate()
    log.info("region_created", name=region.name, created_by=created_by)
    return result.data[0] if result.data else region.to_insert_dict()


def resolve_point(lat: float, lng: float) -> Region | None:
    return resolve_region(Point(lat, lng), list_regions())
