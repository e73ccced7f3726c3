"""Vendor listing service: region filtering, distances and availability badges."""

from __future__ import annotations

from datetime import date
from typing import Any

from crewdesk_shared.availability import is_availability_active, is_available_on, latest_responses
from crewdesk_shared.constants import VENDOR_DIVISIONS
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.geo import Point, coerce_point, filter_vendors, sort_by_name
from crewdesk_shared.models.events import Event
from crewdesk_shared.models.invitations import VendorInvitation
from crewdesk_shared.models.regions import Region
from crewdesk_shared.models.vendors import Vendor

VENDOR_SELECT = (
    "id, email, role, division, is_active, "
    "profiles(first_name, last_name, phone, city, state, latitude, longitude, region_id)"
)


def fetch_vendors(vendor_ids: list[str] | None = None) -> list[Vendor]:
    """Active users in a vendor division, with their profile embedded."""
    supabase = get_supabase_client(service_role=True)
    query = (
        supabase.table("users")
        .select(VENDOR_SELECT)
        .in_("division", list(VENDOR_DIVISIONS))
        .eq("is_active", True)
    )
    if vendor_ids is not None:
        query = query.in_("id", vendor_ids)
    result = query.execute()
    return [Vendor.from_db_row(row) for row in result.data or []]


def fetch_bulk_responses() -> list[VendorInvitation]:
    """Answered bulk availability requests."""
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("vendor_invitations")
        .select("*")
        .eq("invitation_type", "bulk")
        .not_.is_("responded_at", "null")
        .execute()
    )
    return [VendorInvitation.from_db_row(row) for row in result.data or []]


def mark_responded(
    vendors: list[Vendor],
    responses: list[VendorInvitation],
    today: date | None = None,
) -> list[Vendor]:
    latest = latest_responses(responses)
    return [
        v.model_copy(update={"recently_responded": is_availability_active(latest.get(v.id), today)})
        for v in vendors
    ]


def list_vendors(
    *,
    region: Region | None = None,
    geo_filter: bool = True,
    today: date | None = None,
) -> list[Vendor]:
    vendors = mark_responded(fetch_vendors(), fetch_bulk_responses(), today)
    if region is None:
        return filter_vendors(vendors)
    if not geo_filter:
        return sort_by_name(v for v in vendors if v.region_id == region.id)
    return filter_vendors(vendors, region=region)


def venue_point(venue_name: str | None) -> Point | None:
    if not venue_name:
        return None
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("venue_reference")
        .select("latitude, longitude")
        .eq("venue_name", venue_name)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    row = result.data[0]
    return coerce_point(row.get("latitude"), row.get("longitude"))


def available_vendors(
    event: Event,
    *,
    region: Region | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Vendors who marked the event date available, nearest to the venue first."""
    responses = fetch_bulk_responses()
    latest = latest_responses(responses)
    available_ids = [
        vendor_id for vendor_id, response in latest.items()
        if is_available_on(response, event.event_date)
    ]
    if not available_ids:
        return {"vendors": [], "venue": None}

    vendors = mark_responded(fetch_vendors(available_ids), responses, today)
    if region is not None:
        vendors = filter_vendors(vendors, region=region)

    venue = venue_point(event.venue)
    ordered = filter_vendors(vendors, origin=venue) if venue else sort_by_name(vendors)
    return {
        "vendors": ordered,
        "venue": {"name": event.venue, "latitude": venue.lat, "longitude": venue.lng} if venue else None,
    }
