"""
availability.py — Vendor availability-window reconciliation.

A vendor "has responded" only while the response is current: a response
exists AND today falls inside the date range it covers. Ranges that ended
in the past are stale and count as no response. Every listing that shows a
responded/pending badge goes through is_availability_active(), so the rule
is applied identically everywhere.

Usage:
    from crewdesk_shared.availability import is_availability_active, latest_responses

    latest = latest_responses(invitations)            # vendor_id -> newest response
    active = is_availability_active(latest.get(vendor_id), today=date.today())
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from crewdesk_shared.models.invitations import VendorInvitation
from crewdesk_shared.time_utils import parse_date, utc_now


def is_availability_active(
    response: VendorInvitation | None,
    today: date | None = None,
) -> bool:
    """
    True iff a response exists and today is within [start_date, end_date].

    Both bounds are inclusive and compared as calendar dates. A response
    with a missing or malformed bound is treated as inactive.
    """
    if response is None or response.responded_at is None:
        return False
    start, end = response.start_date, response.end_date
    if start is None or end is None:
        return False
    today = today or utc_now().date()
    return start <= today <= end


def is_available_on(response: VendorInvitation | None, day: date | str | None) -> bool:
    """True if the response marks ``day`` as available."""
    target = parse_date(day)
    if response is None or target is None:
        return False
    return any(entry.date == target and entry.available for entry in response.availability)


def latest_responses(
    invitations: Iterable[VendorInvitation],
) -> dict[str, VendorInvitation]:
    """Most recent answered invitation per vendor."""
    latest: dict[str, VendorInvitation] = {}
    for invitation in invitations:
        if invitation.responded_at is None:
            continue
        current = latest.get(invitation.vendor_id)
        if current is None or invitation.responded_at > current.responded_at:
            latest[invitation.vendor_id] = invitation
    return latest
