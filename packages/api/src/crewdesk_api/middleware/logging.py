"""Per-request structured access log with a propagated request id."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Orchestrator health checks hit these every few seconds
PROBE_PATHS = frozenset({"/health", "/ready"})


def _level_for(status: int, path: str) -> str:
    if status >= 500:
        return "error"
    if status >= 400:
        return "warning"
    return "debug" if path in PROBE_PATHS else "info"


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        structlog.contextvars.bind_contextvars(request_id=request_id)
        log = logger.bind(method=request.method, path=path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            getattr(log, _level_for(response.status_code, path))(
                "request_completed",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as exc:
            log.error(
                "request_failed",
                error=str(exc),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
