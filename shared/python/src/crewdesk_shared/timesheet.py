"""
timesheet.py — Reconstruct worked time and meal breaks from time entries.

time_entries is an append-only log of clock_in / clock_out / meal_start /
meal_end actions. Durations are rebuilt by walking a worker's entries in
chronological order:

  - a clock_in opens an interval unless one is already open
  - a clock_out closes the open interval; with nothing open it is ignored
  - a clock_in still open at the end contributes nothing
  - zero or negative intervals are dropped

Meal breaks pair meal_start with the next meal_end the same way. When a
worker never logged a meal but clocked out and back in, the gaps between
work intervals stand in for the first two meals.

Usage:
    from crewdesk_shared.timesheet import summarize_shift, summarize_by_user

    summary = summarize_shift(entries)
    summary.worked_ms, summary.meal_ms, summary.first_in, summary.last_out

    per_user = summarize_by_user(entries)   # user_id -> ShiftSummary
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from crewdesk_shared.constants import TimeEntryAction
from crewdesk_shared.models.time_entries import TimeEntry

MAX_AUTO_MEALS = 2


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def duration_ms(self) -> int:
        return int((self.end - self.start).total_seconds() * 1000)


@dataclass
class ShiftSummary:
    user_id: str | None = None
    first_in: datetime | None = None
    last_out: datetime | None = None
    work_intervals: list[Interval] = field(default_factory=list)
    meals: list[Interval] = field(default_factory=list)
    meals_auto_detected: bool = False

    @property
    def worked_ms(self) -> int:
        return sum(i.duration_ms for i in self.work_intervals)

    @property
    def meal_ms(self) -> int:
        return sum(m.duration_ms for m in self.meals[:MAX_AUTO_MEALS])

    def meal(self, n: int) -> Interval | None:
        """1-based meal accessor."""
        return self.meals[n - 1] if len(self.meals) >= n else None

    def spans(self) -> dict[str, str | None]:
        def iso(dt: datetime | None) -> str | None:
            return dt.isoformat() if dt else None

        first_meal, second_meal = self.meal(1), self.meal(2)
        return {
            "first_in": iso(self.first_in),
            "last_out": iso(self.last_out),
            "first_meal_start": iso(first_meal.start if first_meal else None),
            "last_meal_end": iso(first_meal.end if first_meal else None),
            "second_meal_start": iso(second_meal.start if second_meal else None),
            "second_meal_end": iso(second_meal.end if second_meal else None),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "worked_ms": self.worked_ms,
            "meal_ms": self.meal_ms,
            "meals_auto_detected": self.meals_auto_detected,
            **self.spans(),
        }


def chronological(entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    """Entries with a usable timestamp, oldest first."""
    return sorted((e for e in entries if e.at is not None), key=lambda e: e.at)


def pair_actions(entries: Iterable[TimeEntry], open_action: str, close_action: str) -> list[Interval]:
    """Pair each opening action with the next closing action."""
    intervals: list[Interval] = []
    opened: datetime | None = None
    for entry in chronological(entries):
        if entry.action == open_action:
            if opened is None:
                opened = entry.at
        elif entry.action == close_action:
            if opened is None:
                continue
            if entry.at > opened:
                intervals.append(Interval(opened, entry.at))
            opened = None
    return intervals


def pair_work_intervals(entries: Iterable[TimeEntry]) -> list[Interval]:
    return pair_actions(entries, "clock_in", "clock_out")


def pair_meal_breaks(entries: Iterable[TimeEntry]) -> list[Interval]:
    return pair_actions(entries, "meal_start", "meal_end")


def worked_ms(entries: Iterable[TimeEntry]) -> int:
    return sum(i.duration_ms for i in pair_work_intervals(entries))


def detect_meal_gaps(intervals: list[Interval], limit: int = MAX_AUTO_MEALS) -> list[Interval]:
    """Gaps between consecutive work intervals, treated as unlogged meals."""
    gaps: list[Interval] = []
    ordered = sorted(intervals, key=lambda i: i.start)
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt.start > prev.end:
            gaps.append(Interval(prev.end, nxt.start))
        if len(gaps) >= limit:
            break
    return gaps


def summarize_shift(entries: Iterable[TimeEntry], user_id: str | None = None) -> ShiftSummary:
    ordered = chronological(entries)
    summary = ShiftSummary(user_id=user_id)

    clock_ins = [e.at for e in ordered if e.action == "clock_in"]
    clock_outs = [e.at for e in ordered if e.action == "clock_out"]
    summary.first_in = clock_ins[0] if clock_ins else None
    summary.last_out = clock_outs[-1] if clock_outs else None

    summary.work_intervals = pair_work_intervals(ordered)
    meals = pair_meal_breaks(ordered)
    has_meal_entries = any(e.action in ("meal_start", "meal_end") for e in ordered)
    if not has_meal_entries and len(summary.work_intervals) >= 2:
        meals = detect_meal_gaps(summary.work_intervals)
        summary.meals_auto_detected = bool(meals)
    summary.meals = meals
    return summary


def summarize_by_user(entries: Iterable[TimeEntry]) -> dict[str, ShiftSummary]:
    grouped: dict[str, list[TimeEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.user_id].append(entry)
    return {uid: summarize_shift(rows, user_id=uid) for uid, rows in grouped.items()}


def last_action(entries: Iterable[TimeEntry], actions: Iterable[str] | None = None) -> TimeEntry | None:
    """Most recent entry, optionally restricted to the given actions."""
    wanted = set(actions) if actions is not None else None
    ordered = [e for e in chronological(entries) if wanted is None or e.action in wanted]
    return ordered[-1] if ordered else None


def open_clock_in(entries: Iterable[TimeEntry]) -> TimeEntry | None:
    """The clock_in of the current session, if the latest clock_in is newer than the latest clock_out."""
    entries = list(entries)
    last_in = last_action(entries, ["clock_in"])
    if last_in is None:
        return None
    last_out = last_action(entries, ["clock_out"])
    if last_out is None or last_in.at > last_out.at:
        return last_in
    return None


@dataclass(frozen=True)
class Session:
    """A clock_in and the clock_out that closed it (None while still open)."""

    clock_in: TimeEntry
    clock_out: TimeEntry | None = None

    def to_dict(self) -> dict[str, Any]:
        started = self.clock_in.at
        ended = self.clock_out.at if self.clock_out else None
        return {
            "id": self.clock_in.id,
            "user_id": self.clock_in.user_id,
            "started_at": started.isoformat() if started else None,
            "ended_at": ended.isoformat() if ended else None,
            "notes": self.clock_in.notes,
        }


def work_sessions(entries: Iterable[TimeEntry]) -> list[Session]:
    """Clock sessions newest first, including a trailing open one."""
    sessions: list[Session] = []
    current: TimeEntry | None = None
    for entry in chronological(entries):
        if entry.action == "clock_in" and current is None:
            current = entry
        elif entry.action == "clock_out" and current is not None:
            sessions.append(Session(current, entry))
            current = None
    if current is not None:
        sessions.append(Session(current))
    return sorted(sessions, key=lambda s: s.clock_in.at, reverse=True)


def transition_error(entries: Iterable[TimeEntry], action: TimeEntryAction | str) -> str | None:
    """Why ``action`` cannot be recorded next, or None when it can."""
    entries = list(entries)
    latest = last_action(entries)
    match action:
        case "clock_in":
            if latest is not None and latest.action == "clock_in":
                return "You already have an open time entry."
        case "clock_out":
            if open_clock_in(entries) is None:
                return "No open time entry to close."
        case "meal_start":
            if latest is None or latest.action not in ("clock_in", "meal_end"):
                return "You must be clocked in to start a meal."
        case "meal_end":
            if latest is None or latest.action != "meal_start":
                return "No open meal to end."
        case _:
            return f"Unknown action: {action}"
    return None
