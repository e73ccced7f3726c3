"""Vendor invitation service: per-event invites, bulk availability requests, responses."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

import structlog
from dateutil.relativedelta import relativedelta
from postgrest.exceptions import APIError

from crewdesk_shared.config import settings
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.events import Event
from crewdesk_shared.models.invitations import AvailabilityEntry, VendorInvitation
from crewdesk_shared.time_utils import utc_now

from crewdesk_api.services import email_service
from crewdesk_api.services.email_service import EmailMessage, EmailStats
from crewdesk_api.services.vendor_service import fetch_vendors

log = structlog.get_logger(__name__)


def new_token() -> str:
    return secrets.token_hex(32)


@dataclass
class InviteOutcome:
    invitations: list[dict[str, Any]]
    stats: EmailStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "invitations_created": len(self.invitations),
            "stats": self.stats.to_dict(),
            "failures": self.stats.failures,
        }


async def _insert_and_notify(
    rows: list[dict[str, Any]],
    messages: list[EmailMessage],
) -> InviteOutcome:
    supabase = get_supabase_client(service_role=True)
    result = supabase.table("vendor_invitations").insert(rows).execute()
    stats = await email_service.send_batch(messages)
    return InviteOutcome(invitations=result.data or rows, stats=stats)


async def invite_to_event(event: Event, vendor_ids: list[str], invited_by: str) -> InviteOutcome:
    """One pending invitation per vendor for a single event, each emailed a response link."""
    vendors = fetch_vendors(vendor_ids)
    expires_at = utc_now() + timedelta(days=settings.invitation_ttl_days)

    rows: list[dict[str, Any]] = []
    messages: list[EmailMessage] = []
    for vendor in vendors:
        invitation = VendorInvitation(
            token=new_token(),
            event_id=event.id,
            vendor_id=vendor.id,
            invited_by=invited_by,
            invitation_type="event",
            expires_at=expires_at,
        )
        rows.append(invitation.to_insert_dict())
        messages.append(
            email_service.invitation_message(
                vendor.email or "",
                vendor.first_name,
                invitation.token,
                event_name=event.event_name,
                event_date=event.event_date.isoformat() if event.event_date else None,
                vendor_id=vendor.id,
            )
        )

    outcome = await _insert_and_notify(rows, messages) if rows else InviteOutcome([], EmailStats())
    log.info(
        "event_invitations_sent",
        event_id=event.id,
        requested=len(vendor_ids),
        created=len(rows),
        **outcome.stats.to_dict(),
    )
    return outcome


async def invite_bulk(
    vendor_ids: list[str],
    invited_by: str,
    *,
    duration_weeks: int | None = None,
    start: date | None = None,
) -> InviteOutcome:
    """Ask vendors for their availability over the next ``duration_weeks`` weeks."""
    weeks = duration_weeks or settings.bulk_invitation_weeks
    start_date = start or utc_now().date()
    end_date = start_date + relativedelta(weeks=weeks)
    expires_at = utc_now() + timedelta(days=settings.invitation_ttl_days)

    rows: list[dict[str, Any]] = []
    messages: list[EmailMessage] = []
    for vendor in fetch_vendors(vendor_ids):
        invitation = VendorInvitation(
            token=new_token(),
            vendor_id=vendor.id,
            invited_by=invited_by,
            invitation_type="bulk",
            start_date=start_date,
            end_date=end_date,
            duration_weeks=weeks,
            expires_at=expires_at,
        )
        rows.append(invitation.to_insert_dict())
        messages.append(
            email_service.invitation_message(
                vendor.email or "", vendor.first_name, invitation.token, vendor_id=vendor.id
            )
        )

    outcome = await _insert_and_notify(rows, messages) if rows else InviteOutcome([], EmailStats())
    log.info("bulk_invitations_sent", weeks=weeks, created=len(rows), **outcome.stats.to_dict())
    return outcome


def get_invitation(token: str) -> VendorInvitation | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("vendor_invitations")
        .select("*")
        .eq("token", token)
        .limit(1)
        .execute()
    )
    return VendorInvitation.from_db_row(result.data[0]) if result.data else None


def is_expired(invitation: VendorInvitation) -> bool:
    return invitation.expires_at is not None and invitation.expires_at < utc_now()


def mark_expired(invitation: VendorInvitation) -> None:
    supabase = get_supabase_client(service_role=True)
    supabase.table("vendor_invitations").update({"status": "expired"}).eq("token", invitation.token).execute()


def record_response(
    invitation: VendorInvitation,
    entries: list[AvailabilityEntry],
) -> dict[str, Any]:
    """Store the vendor's answer and mirror it into vendor_availability."""
    status = "accepted" if any(e.available for e in entries) else "declined"
    responded_at = utc_now().isoformat()
    payload = [e.to_dict() for e in entries]

    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("vendor_invitations")
        .update({"availability": payload, "status": status, "responded_at": responded_at})
        .eq("token", invitation.token)
        .execute()
    )

    rows = [
        {
            "vendor_id": invitation.vendor_id,
            "date": e.date.isoformat(),
            "available": e.available,
            "notes": e.notes,
        }
        for e in entries if e.date is not None
    ]
    if rows:
        try:
            supabase.table("vendor_availability").upsert(rows, on_conflict="vendor_id,date").execute()
        except APIError as exc:
            # The invitation row is the source of truth; the mirror is a convenience
            log.warning("availability_mirror_failed", token=invitation.token[:8], error=str(exc))

    log.info("invitation_answered", vendor_id=invitation.vendor_id, status=status, days=len(entries))
    return result.data[0] if result.data else {"status": status, "responded_at": responded_at}


def event_summary(event_id: str | None) -> dict[str, Any] | None:
    if not event_id:
        return None
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("events")
        .select("id, event_name, venue, city, state, event_date, start_time, end_time")
        .eq("id", event_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None
