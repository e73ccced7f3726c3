"""
Outbound email through the Resend HTTP API.

Sends are throttled and retried on 429 only; any other failure is recorded
in the returned EmailStats and never fails the calling request.
"""

from __future__ import annotations

import asyncio
import html
import re
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from crewdesk_shared.config import settings

log = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_ATTEMPTS = 3


class RateLimitedError(Exception):
    """Resend answered 429."""


class EmailNotConfiguredError(Exception):
    pass


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    vendor_id: str | None = None


@dataclass
class EmailStats:
    total: int = 0
    sent: int = 0
    failed: int = 0
    failures: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "sent": self.sent, "failed": self.failed}


def is_valid_email(address: str | None) -> bool:
    return bool(address) and EMAIL_RE.match(address.strip()) is not None


async def _post_email(client: httpx.AsyncClient, message: EmailMessage) -> dict[str, Any]:
    response = await client.post(
        f"{settings.resend_base_url}/emails",
        json={
            "from": settings.email_from,
            "to": [message.to.strip()],
            "subject": message.subject,
            "html": message.html,
        },
        headers={"Authorization": f"Bearer {settings.resend_api_key}"},
    )
    if response.status_code == 429:
        raise RateLimitedError(response.text)
    response.raise_for_status()
    return response.json()


async def send_email(client: httpx.AsyncClient, message: EmailMessage) -> dict[str, Any]:
    """Send one message, retrying with an increasing delay while rate limited."""
    if not settings.resend_api_key:
        raise EmailNotConfiguredError("RESEND_API_KEY is not set")
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_incrementing(start=1.2, increment=1.2),
        retry=retry_if_exception_type(RateLimitedError),
        reraise=True,
    ):
        with attempt:
            attempt_num = attempt.retry_state.attempt_number
            if attempt_num > 1:
                log.warning("email_rate_limited_retry", to=message.to, attempt=attempt_num)
            return await _post_email(client, message)


async def send_batch(messages: list[EmailMessage]) -> EmailStats:
    """Send messages one at a time with a short pause between them."""
    stats = EmailStats(total=len(messages))
    if not messages:
        return stats

    async with httpx.AsyncClient(timeout=15.0) as client:
        for index, message in enumerate(messages):
            if not is_valid_email(message.to):
                stats.failed += 1
                stats.failures.append(
                    {"vendor_id": message.vendor_id, "email": message.to, "error": "Invalid email address"}
                )
                continue
            try:
                await send_email(client, message)
                stats.sent += 1
            except (httpx.HTTPError, RateLimitedError, EmailNotConfiguredError) as exc:
                log.error("email_send_failed", to=message.to, error=str(exc))
                stats.failed += 1
                stats.failures.append(
                    {"vendor_id": message.vendor_id, "email": message.to, "error": str(exc)}
                )
            if index < len(messages) - 1 and settings.email_throttle_seconds > 0:
                await asyncio.sleep(settings.email_throttle_seconds)

    log.info("email_batch_complete", **stats.to_dict())
    return stats


# ---------------------------------------------------------------------------
# Message templates
# ---------------------------------------------------------------------------

def invitation_message(
    to: str,
    vendor_name: str,
    token: str,
    *,
    event_name: str | None = None,
    event_date: str | None = None,
    vendor_id: str | None = None,
) -> EmailMessage:
    link = f"{settings.app_base_url}/invitations/{token}"
    if event_name:
        subject = f"You're invited to work {event_name}"
        intro = (
            f"You have been invited to work <strong>{html.escape(event_name)}</strong>"
            f" on {html.escape(event_date or 'the scheduled date')}."
        )
    else:
        subject = "Please share your availability"
        intro = "We are planning upcoming events and would like to know when you are available."
    body = (
        f"<p>Hi {html.escape(vendor_name or 'there')},</p>"
        f"<p>{intro}</p>"
        f'<p><a href="{html.escape(link)}">Respond here</a></p>'
    )
    return EmailMessage(to=to, subject=subject, html=body, vendor_id=vendor_id)


def team_confirmation_message(
    to: str,
    vendor_name: str,
    token: str,
    *,
    event_name: str,
    event_date: str | None,
    vendor_id: str | None = None,
) -> EmailMessage:
    link = f"{settings.app_base_url}/team/confirm/{token}"
    body = (
        f"<p>Hi {html.escape(vendor_name or 'there')},</p>"
        f"<p>You have been added to the team for <strong>{html.escape(event_name)}</strong>"
        f" on {html.escape(event_date or 'the scheduled date')}.</p>"
        f'<p><a href="{html.escape(link)}">Confirm your spot</a></p>'
    )
    return EmailMessage(
        to=to,
        subject=f"Confirm your spot: {event_name}",
        html=body,
        vendor_id=vendor_id,
    )
