"""Per-event timesheet: worked time and meal spans for every team member."""

from __future__ import annotations

from typing import Any

import structlog

from crewdesk_shared.models.events import Event
from crewdesk_shared.timesheet import summarize_shift
from crewdesk_shared.time_utils import format_duration, format_time, ms_to_hours

from crewdesk_api.services.team_service import event_time_entries, fetch_team

log = structlog.get_logger(__name__)


def event_timesheet(event: Event) -> dict[str, Any]:
    """
    ``{"totals": {user_id: worked_ms}, "spans": {user_id: {...}}, "workers": [...], "summary": {...}}``

    Every team member appears in totals and spans, with zero worked time
    when no entries were found for them.
    """
    members = fetch_team(event.id)
    user_ids = list(dict.fromkeys(m.vendor_id for m in members))
    date_queried = event.event_date.isoformat() if event.event_date else None

    entries = event_time_entries(event, user_ids)
    by_user: dict[str, list] = {uid: [] for uid in user_ids}
    for entry in entries:
        if entry.user_id in by_user:
            by_user[entry.user_id].append(entry)

    totals: dict[str, int] = {}
    spans: dict[str, dict[str, Any]] = {}
    workers: list[dict[str, Any]] = []
    names = {m.vendor_id: m.vendor for m in members}
    for uid, rows in by_user.items():
        summary = summarize_shift(rows, user_id=uid)
        totals[uid] = summary.worked_ms
        spans[uid] = summary.spans()
        vendor = names.get(uid) or {}
        workers.append(
            {
                **summary.to_dict(),
                "full_name": vendor.get("full_name") or "",
                "email": vendor.get("email"),
                "worked_hours": ms_to_hours(summary.worked_ms),
            }
        )

    log.info("timesheet_built", event_id=event.id, workers=len(user_ids), entries=len(entries))
    return {
        "totals": totals,
        "spans": spans,
        "workers": workers,
        "summary": {
            "total_workers": len(user_ids),
            "total_entries_found": len(entries),
            "date_queried": date_queried,
        },
    }


def timesheet_csv_rows(timesheet: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a timesheet into one display row per worker."""
    rows = []
    for worker in timesheet["workers"]:
        rows.append(
            {
                "name": worker["full_name"],
                "email": worker["email"] or "",
                "clock_in": format_time(worker["first_in"]),
                "meal_1_start": format_time(worker["first_meal_start"]),
                "meal_1_end": format_time(worker["last_meal_end"]),
                "meal_2_start": format_time(worker["second_meal_start"]),
                "meal_2_end": format_time(worker["second_meal_end"]),
                "clock_out": format_time(worker["last_out"]),
                "worked": format_duration(worker["worked_ms"]),
                "worked_hours": worker["worked_hours"],
            }
        )
    return sorted(rows, key=lambda r: r["name"].lower())
