"""Standardized API response bodies and attachments."""

from __future__ import annotations

import io
import re
from datetime import datetime, timezone
from typing import Any

import polars as pl
from fastapi.responses import JSONResponse, Response, StreamingResponse


def wrap_response(
    data: Any,
    *,
    total_count: int | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a read response: ``{"data": ..., "meta": {...}, **extra}``."""
    meta = {
        "total_count": total_count if total_count is not None else _count(data),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
    return {"data": data, "meta": {k: v for k, v in meta.items() if v is not None}, **extra}


def success_response(**payload: Any) -> dict[str, Any]:
    """Acknowledge a mutation: ``{"success": true, **payload}``."""
    return {"success": True, **payload}


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def safe_filename_part(value: str) -> str:
    """Replace anything but ASCII letters and digits with underscores."""
    return re.sub(r"[^a-zA-Z0-9]", "_", value or "")


def attachment_headers(filename: str) -> dict[str, str]:
    return {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }


def text_attachment(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/plain; charset=utf-8",
        headers=attachment_headers(filename),
    )


def csv_response(data: list[dict], filename: str) -> StreamingResponse:
    """Convert list of dicts to CSV streaming response."""
    if not data:
        content = ""
    else:
        df = pl.DataFrame(data)
        buf = io.BytesIO()
        df.write_csv(buf)
        content = buf.getvalue().decode()

    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers=attachment_headers(filename),
    )


def _count(data: Any) -> int | None:
    return len(data) if isinstance(data, list) else None
