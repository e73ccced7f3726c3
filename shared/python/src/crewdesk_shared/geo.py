"""
geo.py — Region resolution and distance-sorted vendor filtering.

Regions are circular catchments (a center point and a radius). A point is
inside a region when its great-circle (haversine) distance to the center is
no greater than the radius. Vendor coordinates come from user-entered
profiles and are frequently missing or junk; nothing here raises on bad
coordinates, they simply yield "no distance".

Usage:
    from crewdesk_shared.geo import Point, resolve_region, filter_vendors

    region = resolve_region(Point(34.05, -118.24), regions)     # first match or None
    nearby = filter_vendors(vendors, region=region)             # distance-sorted
    by_name = filter_vendors(vendors)                           # alphabetical
    from_venue = filter_vendors(vendors, origin=Point(36.1, -115.1))
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from crewdesk_shared.constants import EARTH_RADIUS_KM, KM_PER_MILE

if TYPE_CHECKING:
    from crewdesk_shared.models.regions import Region
    from crewdesk_shared.models.vendors import Vendor


class Point(NamedTuple):
    lat: float
    lng: float


def coerce_coordinate(value: Any) -> float | None:
    """Parse a latitude/longitude value, returning None for anything unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_point(lat: Any, lng: Any) -> Point | None:
    """
    Build a Point from raw latitude/longitude values.

    Returns None when either value is missing, non-numeric or out of range.
    """
    la = coerce_coordinate(lat)
    lo = coerce_coordinate(lng)
    if la is None or lo is None:
        return None
    if not (-90.0 <= la <= 90.0 and -180.0 <= lo <= 180.0):
        return None
    return Point(la, lo)


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------

def haversine_km(a: Point, b: Point) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def haversine_miles(a: Point, b: Point) -> float:
    return haversine_km(a, b) / KM_PER_MILE


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE


# ---------------------------------------------------------------------------
# Region resolution
# ---------------------------------------------------------------------------

def region_contains(region: Region, point: Point) -> bool:
    """True if point lies within the region's catchment (boundary inclusive)."""
    center = region.center
    if center is None:
        return False
    return haversine_km(center, point) <= region.radius_km


def resolve_region(point: Point | None, regions: Iterable[Region]) -> Region | None:
    """
    Return the first region whose catchment contains point.

    Overlapping catchments resolve to whichever region comes first in
    ``regions``; callers control precedence through ordering. Use
    nearest_region() when the closest center should win instead.
    """
    if point is None:
        return None
    for region in regions:
        if region_contains(region, point):
            return region
    return None


def nearest_region(point: Point | None, regions: Iterable[Region]) -> Region | None:
    """Return the containing region whose center is closest to point."""
    if point is None:
        return None
    best: tuple[float, Region] | None = None
    for region in regions:
        center = region.center
        if center is None:
            continue
        distance = haversine_km(center, point)
        if distance > region.radius_km:
            continue
        if best is None or distance < best[0]:
            best = (distance, region)
    return best[1] if best else None


# ---------------------------------------------------------------------------
# Vendor filtering
# ---------------------------------------------------------------------------

def name_sort_key(vendor: Vendor) -> str:
    return vendor.full_name.lower()


def sort_by_name(vendors: Iterable[Vendor]) -> list[Vendor]:
    """Alphabetical by full name, case-insensitive."""
    return sorted(vendors, key=name_sort_key)


def sort_by_distance(vendors: Iterable[Vendor]) -> list[Vendor]:
    """Ascending distance; vendors without a distance go last, by name."""
    return sorted(
        vendors,
        key=lambda v: (v.distance is None, v.distance or 0.0, name_sort_key(v)),
    )


def with_distance_from(vendors: Iterable[Vendor], origin: Point) -> list[Vendor]:
    """Copy vendors annotated with their distance (miles, 0.1 precision) from origin."""
    annotated: list[Vendor] = []
    for vendor in vendors:
        point = vendor.point
        distance = round(haversine_miles(origin, point), 1) if point else None
        annotated.append(vendor.model_copy(update={"distance": distance}))
    return annotated


def filter_vendors(
    vendors: Sequence[Vendor],
    *,
    region: Region | None = None,
    origin: Point | None = None,
) -> list[Vendor]:
    """
    Filter and order vendors for display.

    With a region: keep vendors inside the catchment or assigned to the
    region, annotated with distance from the region center and sorted
    ascending. Vendors without usable coordinates are kept with
    ``distance=None`` and sorted after everyone with a distance. A region
    with no center falls back to matching on the assigned region id.

    With only an origin: every vendor is kept, annotated with distance from
    the origin and sorted the same way.

    With neither: every vendor, alphabetical by full name.
    """
    if region is None:
        if origin is None:
            return sort_by_name(vendors)
        return sort_by_distance(with_distance_from(vendors, origin))

    center = region.center
    if center is None:
        return sort_by_name(v for v in vendors if region.id and v.region_id == region.id)

    kept: list[Vendor] = []
    for vendor in with_distance_from(vendors, center):
        point = vendor.point
        assigned = region.id is not None and vendor.region_id == region.id
        if point is None or assigned or region_contains(region, point):
            kept.append(vendor)
    return sort_by_distance(kept)
