"""Event team service: roster listing, adding vendors, confirmations and removal."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from postgrest.exceptions import APIError

from crewdesk_shared.attestations import has_attestation
from crewdesk_shared.constants import ATTESTATION_FORM_TYPE, TeamStatus
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.events import Event, TeamMember
from crewdesk_shared.models.time_entries import FormSignature, TimeEntry
from crewdesk_shared.time_utils import event_window, utc_now

from crewdesk_api.services import email_service
from crewdesk_api.services.email_service import EmailMessage, EmailStats
from crewdesk_api.services.invitation_service import new_token
from crewdesk_api.services.vendor_service import fetch_vendors

log = structlog.get_logger(__name__)

TEAM_SELECT = (
    "id, event_id, vendor_id, assigned_by, status, confirmation_token, created_at, "
    "users:vendor_id(id, email, division, profiles(first_name, last_name, phone))"
)

# Members in these states are not re-added
ACTIVE_TEAM_STATUSES = ("pending_confirmation", "confirmed")
RESPONDED_TEAM_STATUSES = ("confirmed", "declined")


def _flatten_member_vendor(vendor: dict[str, Any]) -> dict[str, Any]:
    profile = vendor.get("profiles") or {}
    if isinstance(profile, list):
        profile = profile[0] if profile else {}
    first = (profile.get("first_name") or "").strip()
    last = (profile.get("last_name") or "").strip()
    return {
        "id": vendor.get("id"),
        "email": vendor.get("email"),
        "division": vendor.get("division"),
        "first_name": first,
        "last_name": last,
        "phone": profile.get("phone"),
        "full_name": f"{first} {last}".strip(),
    }


def _member_from_row(row: dict[str, Any]) -> TeamMember:
    member = TeamMember.from_db_row(row)
    if member.vendor:
        member.vendor = _flatten_member_vendor(member.vendor)
    return member


def fetch_team(event_id: str) -> list[TeamMember]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("event_teams")
        .select(TEAM_SELECT)
        .eq("event_id", event_id)
        .order("created_at")
        .execute()
    )
    return [_member_from_row(row) for row in result.data or []]


def _window_rows(user_ids: list[str], column: str, start: str, end: str) -> list[dict[str, Any]]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("time_entries")
        .select("*")
        .in_("user_id", user_ids)
        .gte(column, start)
        .lte(column, end)
        .order(column)
        .execute()
    )
    return list(result.data or [])


def event_time_entries(event: Event, user_ids: list[str]) -> list[TimeEntry]:
    """
    Time entries worked on an event by the given users.

    Entries tagged with the event come first. Untagged entries inside the
    event window are merged in, and entries tagged with some other event are
    skipped. Rows that only carry started_at are the last resort.
    """
    if not user_ids:
        return []
    supabase = get_supabase_client(service_role=True)
    tagged = (
        supabase.table("time_entries")
        .select("*")
        .in_("user_id", user_ids)
        .eq("event_id", event.id)
        .order("timestamp")
        .execute()
    )
    rows = list(tagged.data or [])

    window = event_window(event.event_date, event.start_time, event.end_time, event.ends_next_day)
    if window is not None:
        start, end = (w.isoformat() for w in window)
        seen = {row.get("id") for row in rows}
        for row in _window_rows(user_ids, "timestamp", start, end):
            if row.get("event_id") not in (None, event.id) or row.get("id") in seen:
                continue
            seen.add(row.get("id"))
            rows.append(row)
        if not rows:
            rows = _window_rows(user_ids, "started_at", start, end)

    return [TimeEntry.from_db_row(row) for row in rows]


def attestation_signatures(user_ids: list[str]) -> list[FormSignature]:
    if not user_ids:
        return []
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("form_signatures")
        .select("*")
        .eq("form_type", ATTESTATION_FORM_TYPE)
        .in_("user_id", user_ids)
        .order("signed_at", desc=True)
        .execute()
    )
    return [FormSignature.from_db_row(row) for row in result.data or []]


def list_team(event: Event) -> list[dict[str, Any]]:
    """Team roster with a ``has_attestation`` flag per member."""
    members = fetch_team(event.id)
    user_ids = [m.vendor_id for m in members]
    entries = event_time_entries(event, user_ids)
    signatures = attestation_signatures(user_ids)

    roster = []
    for member in members:
        row = member.model_dump(mode="json")
        row["has_attestation"] = has_attestation(member.vendor_id, entries, signatures)
        roster.append(row)
    return roster


def member_has_attested(event: Event, vendor_id: str) -> bool:
    entries = event_time_entries(event, [vendor_id])
    return has_attestation(vendor_id, entries, attestation_signatures([vendor_id]))


@dataclass
class AddMembersResult:
    team_size: int = 0
    new_members: list[str] = field(default_factory=list)
    already_on_team: list[str] = field(default_factory=list)
    email_stats: EmailStats = field(default_factory=EmailStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_size": self.team_size,
            "new_members": len(self.new_members),
            "already_on_team": len(self.already_on_team),
            "email_stats": self.email_stats.to_dict(),
            "email_failures": self.email_stats.failures,
        }


async def add_members(
    event: Event,
    vendor_ids: list[str],
    assigned_by: str,
    *,
    auto_confirm: bool = False,
) -> AddMembersResult:
    """
    Upsert vendors onto an event team keyed on (event_id, vendor_id).

    Vendors already pending or confirmed are left untouched. Without
    ``auto_confirm`` each new member gets a confirmation token and an email.
    """
    supabase = get_supabase_client(service_role=True)
    existing = (
        supabase.table("event_teams")
        .select("vendor_id, status")
        .eq("event_id", event.id)
        .in_("vendor_id", vendor_ids)
        .execute()
    )
    active = {
        row["vendor_id"] for row in existing.data or []
        if row.get("status") in ACTIVE_TEAM_STATUSES
    }
    unique_ids = list(dict.fromkeys(vendor_ids))

    outcome = AddMembersResult(already_on_team=[v for v in unique_ids if v in active])
    to_add = [v for v in unique_ids if v not in active]

    rows: list[dict[str, Any]] = []
    messages: list[EmailMessage] = []
    vendors = {v.id: v for v in fetch_vendors(to_add)} if to_add else {}
    for vendor_id in to_add:
        member = TeamMember(
            event_id=event.id,
            vendor_id=vendor_id,
            assigned_by=assigned_by,
            status="confirmed" if auto_confirm else "pending_confirmation",
            confirmation_token=None if auto_confirm else new_token(),
        )
        row = member.to_insert_dict()
        if auto_confirm:
            row["confirmation_token"] = None
        rows.append(row)

        vendor = vendors.get(vendor_id)
        if not auto_confirm and vendor is not None:
            messages.append(
                email_service.team_confirmation_message(
                    vendor.email or "",
                    vendor.first_name,
                    member.confirmation_token,
                    event_name=event.event_name,
                    event_date=event.event_date.isoformat() if event.event_date else None,
                    vendor_id=vendor_id,
                )
            )

    if rows:
        supabase.table("event_teams").upsert(rows, on_conflict="event_id,vendor_id").execute()
        outcome.new_members = to_add
    if messages:
        outcome.email_stats = await email_service.send_batch(messages)

    outcome.team_size = len(active) + len(to_add)
    log.info(
        "team_members_added",
        event_id=event.id,
        added=len(to_add),
        skipped=len(outcome.already_on_team),
        auto_confirm=auto_confirm,
    )
    return outcome


# ---------------------------------------------------------------------------
# Confirmations
# ---------------------------------------------------------------------------

def get_by_confirmation_token(token: str) -> TeamMember | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("event_teams")
        .select(TEAM_SELECT)
        .eq("confirmation_token", token)
        .limit(1)
        .execute()
    )
    return _member_from_row(result.data[0]) if result.data else None


def record_confirmation(member: TeamMember, *, confirm: bool) -> TeamStatus:
    """Move a pending member to confirmed or declined."""
    status: TeamStatus = "confirmed" if confirm else "declined"
    supabase = get_supabase_client(service_role=True)
    (
        supabase.table("event_teams")
        .update({"status": status, "updated_at": utc_now().isoformat()})
        .eq("id", member.id)
        .execute()
    )
    log.info("team_confirmation_recorded", event_id=member.event_id, vendor_id=member.vendor_id, status=status)
    return status


@dataclass
class ResendResult:
    requested: int = 0
    refreshed: int = 0
    update_failures: int = 0
    email_stats: EmailStats = field(default_factory=EmailStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requested": self.requested,
            "sent": self.email_stats.sent,
            "failed": self.email_stats.failed + self.update_failures,
            "refreshed": self.refreshed,
            "email_failures": self.email_stats.failures,
        }


async def resend_confirmations(event: Event, vendor_ids: list[str] | None = None) -> ResendResult:
    """
    Email the confirmation link again to members still pending.

    Members without a token get a fresh one first. ``vendor_ids`` narrows
    the resend to those vendors.
    """
    supabase = get_supabase_client(service_role=True)
    query = (
        supabase.table("event_teams")
        .select(TEAM_SELECT)
        .eq("event_id", event.id)
        .eq("status", "pending_confirmation")
    )
    if vendor_ids:
        query = query.in_("vendor_id", vendor_ids)
    members = [_member_from_row(row) for row in query.execute().data or []]

    outcome = ResendResult(requested=len(members))
    messages: list[EmailMessage] = []
    for member in members:
        if not member.confirmation_token:
            token = new_token()
            try:
                supabase.table("event_teams").update({"confirmation_token": token}).eq("id", member.id).execute()
            except APIError as exc:
                log.error("confirmation_token_refresh_failed", member_id=member.id, error=str(exc))
                outcome.update_failures += 1
                continue
            member.confirmation_token = token
            outcome.refreshed += 1

        messages.append(
            email_service.team_confirmation_message(
                member.vendor.get("email") or "",
                member.vendor.get("first_name") or "",
                member.confirmation_token,
                event_name=event.event_name,
                event_date=event.event_date.isoformat() if event.event_date else None,
                vendor_id=member.vendor_id,
            )
        )

    if messages:
        outcome.email_stats = await email_service.send_batch(messages)
    log.info(
        "team_confirmations_resent",
        event_id=event.id,
        requested=outcome.requested,
        refreshed=outcome.refreshed,
    )
    return outcome


def get_member(event_id: str, member_id: str) -> TeamMember | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("event_teams")
        .select("*")
        .eq("id", member_id)
        .eq("event_id", event_id)
        .limit(1)
        .execute()
    )
    return TeamMember.from_db_row(result.data[0]) if result.data else None


def _record_history(table: str, row: dict[str, Any]) -> None:
    supabase = get_supabase_client(service_role=True)
    try:
        supabase.table(table).insert(row).execute()
    except APIError as exc:
        log.warning("team_history_write_failed", table=table, error=str(exc))


def remove_member(event: Event, member: TeamMember, removed_by: str) -> None:
    """Delete the member's location assignments and team row, then record the uninvite."""
    supabase = get_supabase_client(service_role=True)
    (
        supabase.table("event_location_assignments")
        .delete()
        .eq("event_id", event.id)
        .eq("vendor_id", member.vendor_id)
        .execute()
    )
    supabase.table("event_teams").delete().eq("id", member.id).execute()

    removed_at = utc_now().isoformat()
    _record_history(
        "event_team_uninvites",
        {
            "event_id": event.id,
            "vendor_id": member.vendor_id,
            "previous_status": member.status,
            "removed_by": removed_by,
            "removed_at": removed_at,
        },
    )
    _record_history(
        "audit_logs",
        {
            "user_id": removed_by,
            "action": "team_member_removed",
            "resource_type": "event_team",
            "resource_id": member.id,
            "metadata": {"event_id": event.id, "vendor_id": member.vendor_id},
            "created_at": removed_at,
        },
    )
    log.info("team_member_removed", event_id=event.id, vendor_id=member.vendor_id, removed_by=removed_by)
