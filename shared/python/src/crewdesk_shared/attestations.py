"""
attestations.py — Match clock-out attestation signatures to time entries.

Workers sign an attestation when clocking out. Newer signatures carry
``form_id = "clock-out-<entry id>"``; older ones only have a signed_at
timestamp, so a signature within 15 minutes of a clock-out also counts.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from crewdesk_shared.constants import ATTESTATION_MATCH_WINDOW_MINUTES
from crewdesk_shared.models.time_entries import FormSignature, TimeEntry

_WINDOW = timedelta(minutes=ATTESTATION_MATCH_WINDOW_MINUTES)


def eligible_clock_outs(entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    """Clock-outs that can carry an attestation (explicit rejections excluded)."""
    return [
        e for e in entries
        if e.action == "clock_out" and e.attestation_accepted is not False
    ]


def signature_matches(signature: FormSignature, clock_out: TimeEntry) -> bool:
    if clock_out.form_id and signature.form_id == clock_out.form_id:
        return True
    if signature.signed_at is None or clock_out.at is None:
        return False
    return abs(signature.signed_at - clock_out.at) <= _WINDOW


def find_attestation(
    signatures: Iterable[FormSignature],
    clock_outs: Iterable[TimeEntry],
) -> FormSignature | None:
    """First signature (in the given order) attesting any of the clock-outs."""
    clock_outs = list(clock_outs)
    if not clock_outs:
        return None
    for signature in signatures:
        if any(signature_matches(signature, c) for c in clock_outs):
            return signature
    return None


def has_attestation(
    user_id: str,
    entries: Iterable[TimeEntry],
    signatures: Iterable[FormSignature],
) -> bool:
    user_outs = eligible_clock_outs(e for e in entries if e.user_id == user_id)
    user_sigs = [s for s in signatures if s.user_id == user_id]
    return find_attestation(user_sigs, user_outs) is not None
