"""
time_utils.py — Lenient timestamp parsing, event windows and display formatting.

Timestamps arrive from Supabase as ISO-8601 strings, sometimes with a
trailing "Z", sometimes naive, occasionally garbage entered by hand. Every
parser here returns None instead of raising, and every formatter renders a
placeholder ("--:--", "--", "N/A") instead of failing.

Usage:
    from crewdesk_shared.time_utils import parse_timestamp, event_window, format_duration

    ts = parse_timestamp("2024-06-01T18:30:00Z")      # aware datetime (UTC)
    ts = parse_timestamp("not a date")                 # None
    start, end = event_window(date(2024, 6, 1), "18:00", "02:00")  # spans two days
    format_duration(5_400_000)                         # "1h 30m"
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from crewdesk_shared.constants import DATE_PLACEHOLDER, TEXT_PLACEHOLDER, TIME_PLACEHOLDER

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_timestamp(raw: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC. Returns None for empty or
    unparsable input.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, date):
        dt = datetime.combine(raw, time.min)
    elif isinstance(raw, str):
        try:
            dt = date_parser.isoparse(raw.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(raw: Any) -> date | None:
    """
    Parse a calendar date. Timestamps are truncated to their date part.

    Returns None for empty or unparsable input.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def time_to_seconds(raw: Any) -> int | None:
    """Seconds since midnight for an "HH:MM" or "HH:MM:SS" string."""
    if not isinstance(raw, str):
        return None
    m = _CLOCK_RE.match(raw)
    if not m:
        return None
    hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return hours * 3600 + minutes * 60 + seconds


def event_window(
    event_date: Any,
    start_time: Any = None,
    end_time: Any = None,
    ends_next_day: bool = False,
) -> tuple[datetime, datetime] | None:
    """
    UTC query window covering every time entry that can belong to an event.

    The window runs from midnight on the event date to the end of that day,
    extended by one day when the event ends after midnight (flagged
    explicitly, or implied by an end time at or before the start time).
    """
    day = parse_date(event_date)
    if day is None:
        return None
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    if crosses_midnight(start_time, end_time, ends_next_day):
        end = end + relativedelta(days=1)
    return start, end


def crosses_midnight(start_time: Any, end_time: Any, ends_next_day: bool = False) -> bool:
    """True when an event's end falls on the day after its start."""
    if ends_next_day:
        return True
    start_s = time_to_seconds(start_time)
    end_s = time_to_seconds(end_time)
    return start_s is not None and end_s is not None and end_s <= start_s


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_time(raw: Any) -> str:
    """Render a timestamp as "HH:MM AM/PM" (UTC), or "--:--"."""
    dt = parse_timestamp(raw)
    if dt is None:
        return TIME_PLACEHOLDER
    return dt.strftime("%I:%M %p")


def format_date(raw: Any) -> str:
    """Render a date as "MM/DD/YYYY", or "--"."""
    d = parse_date(raw)
    if d is None:
        return DATE_PLACEHOLDER
    return d.strftime("%m/%d/%Y")


def format_duration(ms: int | float | None) -> str:
    """Render milliseconds as "Xh Ym"."""
    if not ms or ms < 0:
        return "0h 0m"
    total_minutes = int(ms // 60_000)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def ms_to_hours(ms: int | float | None) -> float:
    """Decimal hours rounded to two places."""
    if not ms or ms < 0:
        return 0.0
    return round(ms / 3_600_000, 2)


def format_text(value: Any) -> str:
    if value is None:
        return TEXT_PLACEHOLDER
    text = str(value).strip()
    return text or TEXT_PLACEHOLDER
