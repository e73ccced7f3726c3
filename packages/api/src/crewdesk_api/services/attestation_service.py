"""Clock-out attestation export for one worker on one event."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from crewdesk_shared.attestations import eligible_clock_outs, find_attestation
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.events import Event
from crewdesk_shared.models.time_entries import FormSignature
from crewdesk_shared.timesheet import ShiftSummary, summarize_shift
from crewdesk_shared.time_utils import (
    format_date,
    format_duration,
    format_text,
    format_time,
    ms_to_hours,
)

from crewdesk_api.responses import safe_filename_part
from crewdesk_api.services.team_service import attestation_signatures, event_time_entries

log = structlog.get_logger(__name__)

RULE = "-" * 60


@dataclass
class AttestationExport:
    filename: str
    content: str


def worker_identity(user_id: str) -> tuple[str, str]:
    """(full name, email) for a user; "Unknown" when no profile exists."""
    supabase = get_supabase_client(service_role=True)
    profile = (
        supabase.table("profiles")
        .select("user_id, first_name, last_name")
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    user = (
        supabase.table("users")
        .select("email")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    row = profile.data[0] if profile.data else {}
    name = " ".join(
        part.strip() for part in (row.get("first_name"), row.get("last_name")) if part and part.strip()
    )
    email = (user.data[0].get("email") if user.data else None) or ""
    return name or "Unknown", email


def _meal_lines(summary: ShiftSummary) -> list[str]:
    lines = []
    for n in (1, 2):
        meal = summary.meal(n)
        if meal is None:
            lines.append(f"Meal {n}:          {format_time(None)} - {format_time(None)}")
        else:
            lines.append(
                f"Meal {n}:          {format_time(meal.start)} - {format_time(meal.end)}"
                f" ({format_duration(meal.duration_ms)})"
            )
    if summary.meals_auto_detected:
        lines.append("                  (breaks inferred from gaps between clock-outs and clock-ins)")
    return lines


def _signature_lines(signature: FormSignature | None) -> list[str]:
    if signature is None:
        return ["No clock-out attestation on file."]
    valid = "Yes" if signature.is_valid is not False else "No"
    return [
        f"Signed at:        {format_date(signature.signed_at)} {format_time(signature.signed_at)} UTC",
        f"Signature type:   {format_text(signature.signature_type)}",
        f"Form:             {format_text(signature.form_id)}",
        f"IP address:       {format_text(signature.ip_address)}",
        f"Valid:            {valid}",
        f"Data hash:        {format_text(signature.form_data_hash)}",
    ]


def render_attestation(
    event: Event,
    name: str,
    email: str,
    summary: ShiftSummary,
    signature: FormSignature | None,
) -> str:
    location = ", ".join(p for p in (event.venue, event.city, event.state) if p)
    lines = [
        "CLOCK-OUT ATTESTATION",
        RULE,
        f"Employee:         {format_text(name)}",
        f"Email:            {format_text(email)}",
        "",
        f"Event:            {format_text(event.event_name)}",
        f"Artist:           {format_text(event.artist)}",
        f"Location:         {format_text(location)}",
        f"Date:             {format_date(event.event_date)}",
        RULE,
        f"Clock in:         {format_time(summary.first_in)}",
        f"Clock out:        {format_time(summary.last_out)}",
        *_meal_lines(summary),
        f"Total worked:     {format_duration(summary.worked_ms)} ({ms_to_hours(summary.worked_ms):.2f} h)",
        f"Meal breaks:      {format_duration(summary.meal_ms)}",
        RULE,
        "I attest that the hours above are accurate and that I was provided",
        "the meal and rest breaks required for this shift.",
        "",
        *_signature_lines(signature),
    ]
    return "\n".join(lines) + "\n"


def build_attestation(event: Event, user_id: str) -> AttestationExport:
    name, email = worker_identity(user_id)
    entries = [e for e in event_time_entries(event, [user_id]) if e.user_id == user_id]
    summary = summarize_shift(entries, user_id=user_id)
    signature = find_attestation(attestation_signatures([user_id]), eligible_clock_outs(entries))

    event_date = event.event_date.isoformat() if event.event_date else "undated"
    filename = f"attestation_{safe_filename_part(name)}_{event_date}.txt"
    log.info(
        "attestation_exported",
        event_id=event.id,
        user_id=user_id,
        signed=signature is not None,
    )
    return AttestationExport(
        filename=filename,
        content=render_attestation(event, name, email, summary, signature),
    )
