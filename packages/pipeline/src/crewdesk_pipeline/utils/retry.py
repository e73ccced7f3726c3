"""
utils/retry.py — Exponential-backoff retry for outbound HTTP calls.

Only transient failures are retried: connection/timeout errors, HTTP 429
and 5xx. Any other error propagates on the first attempt.

Usage:
    from crewdesk_pipeline.utils.retry import with_retry

    @with_retry(max_attempts=3, base_delay=2.0)
    async def search(client: httpx.AsyncClient, query: str) -> list[dict]:
        response = await client.get("/search", params={"q": query})
        response.raise_for_status()
        return response.json()
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

log = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, Any]])


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    retry_if: Callable[[BaseException], bool] = is_transient,
) -> Callable[[F], F]:
    """
    Retry an async function with exponential backoff.

    The wait after attempt n is base_delay * 2^(n-1) seconds, capped at
    max_delay. When attempts run out the last exception is re-raised.
    """

    def decorator(fn: F) -> F:
        fn_log = log.bind(function=fn.__qualname__)

        def _before_sleep(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            fn_log.warning(
                "retry_scheduled",
                attempt=state.attempt_number,
                max_attempts=max_attempts,
                wait_seconds=round(state.next_action.sleep, 2) if state.next_action else None,
                error=str(exc),
            )

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            retrying = AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=base_delay, max=max_delay),
                retry=retry_if_exception(retry_if),
                before_sleep=_before_sleep,
                sleep=_sleep,
                reraise=True,
            )
            try:
                return await retrying(fn, *args, **kwargs)
            except Exception as exc:
                if retry_if(exc):
                    fn_log.error("retry_exhausted", attempts=max_attempts, error=str(exc))
                raise

        return wrapper  # type: ignore[return-value]

    return decorator
