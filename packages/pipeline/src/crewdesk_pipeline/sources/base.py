"""
sources/base.py — Abstract base class for external source adapters.

A source implements:
  extract()      — call the external service, return a raw polars DataFrame
  transform()    — coerce the raw frame into the columns the loader writes
  get_metadata() — describe the source for logs and pipeline_runs.metadata

Pipelines call run(), which chains extract and transform with timing logs.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

import polars as pl
import structlog

log = structlog.get_logger(__name__)


class BaseSource(ABC):
    """Abstract base for crewdesk pipeline sources."""

    # Used for logging and pipeline_runs.source_name
    name: str = "unknown"

    def __init__(self) -> None:
        self._log = log.bind(source_name=self.name)

    @abstractmethod
    async def extract(self, **kwargs: Any) -> pl.DataFrame:
        """Fetch raw records from the external service."""
        ...

    @abstractmethod
    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        """Normalize the frame returned by extract()."""
        ...

    @abstractmethod
    async def get_metadata(self) -> dict[str, Any]:
        ...

    async def run(self, **kwargs: Any) -> pl.DataFrame:
        """
        Extract then transform, logging row counts and durations.

        Exceptions from either step are logged and re-raised.
        """
        run_log = self._log.bind(**{k: _describe(v) for k, v in kwargs.items()})
        run_log.info("source_run_start")

        t0 = time.monotonic()
        try:
            raw = await self.extract(**kwargs)
            run_log.info(
                "extract_complete",
                raw_rows=len(raw),
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

            t1 = time.monotonic()
            result = self.transform(raw)
            run_log.info(
                "transform_complete",
                result_rows=len(result),
                duration_ms=int((time.monotonic() - t1) * 1000),
            )
            return result

        except Exception as exc:
            run_log.error(
                "source_run_failed",
                error=str(exc),
                duration_ms=int((time.monotonic() - t0) * 1000),
                exc_info=True,
            )
            raise


def _describe(value: Any) -> str:
    # Keep log context small when a caller passes a batch of records
    if isinstance(value, (list, tuple)):
        return f"<{len(value)} items>"
    return str(value)
