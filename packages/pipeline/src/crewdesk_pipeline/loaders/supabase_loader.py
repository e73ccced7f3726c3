"""
loaders/supabase_loader.py — Writes pipeline results back to Supabase.

The loader:
  - Updates profiles with geocoded coordinates, one row per request
  - Reassigns profiles.region_id from the new coordinates (first match wins)
  - Keeps going when a single row fails and reports it in LoadResult
  - Records pipeline_runs rows (running → success / partial_failure / failure)

Usage:
    from crewdesk_pipeline.loaders.supabase_loader import SupabaseLoader

    loader = SupabaseLoader()
    run_id = await loader.start_pipeline_run("geocode_vendors", "Nominatim")
    try:
        regions = await loader.active_regions()
        result = await loader.update_coordinates(df, regions=regions)
        await loader.finish_pipeline_run(run_id, result)
    except Exception as exc:
        await loader.fail_pipeline_run(run_id, str(exc))
        raise
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import polars as pl
import structlog
from postgrest.exceptions import APIError

from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.geo import Point, resolve_region
from crewdesk_shared.models.regions import Region

log = structlog.get_logger(__name__)

PIPELINE_RUN_COLUMNS = "pipeline_name,status,started_at,completed_at,records_loaded,records_rejected"


@dataclass
class LoadResult:
    """Summary of a loader write."""

    table: str
    records_loaded: int = 0
    records_failed: int = 0
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def status(self) -> str:
        if self.records_failed == 0:
            return "success"
        if self.records_loaded > 0:
            return "partial_failure"
        return "failure"


class SupabaseLoader:
    """All pipeline writes go through the service role client."""

    def __init__(self) -> None:
        self._client = get_supabase_client(service_role=True)

    @property
    def client(self) -> Any:
        return self._client

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def active_regions(self) -> list[Region]:
        """Active regions in name order, the precedence used for assignment."""
        result = (
            self._client.table("regions")
            .select("*")
            .eq("is_active", True)
            .order("name")
            .execute()
        )
        return [Region.from_db_row(row) for row in result.data or []]

    async def update_coordinates(
        self,
        df: pl.DataFrame,
        *,
        regions: Sequence[Region] | None = None,
    ) -> LoadResult:
        """
        Write latitude/longitude/geocoded_address for each geocoded profile.

        Rows carrying an error are skipped; the caller counts them as
        lookup failures.

        Args:
            df:      Output of NominatimSource.transform().
            regions: When given, region_id is set to the first region whose
                     catchment holds the new coordinates, or cleared.
        """
        result = LoadResult(table="profiles")
        t0 = time.monotonic()

        ready = df.filter(pl.col("error").is_null()) if not df.is_empty() else df
        if ready.is_empty():
            log.warning("update_coordinates_nothing_to_write")
            return result

        geocoded_at = _utc_now()
        assigned = 0
        for row in ready.iter_rows(named=True):
            fields: dict[str, Any] = {
                "latitude": row["latitude"],
                "longitude": row["longitude"],
                "geocoded_address": row["geocoded_address"],
                "geocoded_at": geocoded_at,
            }
            if regions is not None:
                region = resolve_region(Point(row["latitude"], row["longitude"]), regions)
                fields["region_id"] = region.id if region else None
            try:
                (
                    self._client.table("profiles")
                    .update(fields)
                    .eq("id", row["profile_id"])
                    .execute()
                )
                result.records_loaded += 1
                if fields.get("region_id"):
                    assigned += 1
            except APIError as exc:
                log.error("profile_update_failed", profile_id=row["profile_id"], error=str(exc))
                result.records_failed += 1
                result.errors.append(f"{row['profile_id']}: {exc}")

        result.duration_ms = int((time.monotonic() - t0) * 1000)
        log.info(
            "update_coordinates_complete",
            records_loaded=result.records_loaded,
            records_failed=result.records_failed,
            regions_assigned=assigned,
            duration_ms=result.duration_ms,
        )
        return result

    # ------------------------------------------------------------------
    # Pipeline run tracking
    # ------------------------------------------------------------------

    async def start_pipeline_run(
        self,
        pipeline_name: str,
        source_name: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Open a pipeline_runs row in the 'running' state; returns its id."""
        run = {
            "id": str(uuid.uuid4()),
            "pipeline_name": pipeline_name,
            "source_name": source_name,
            "status": "running",
            "started_at": _utc_now(),
            "metadata": metadata or {},
        }
        self._client.table("pipeline_runs").insert(run).execute()
        log.info("pipeline_run_started", run_id=run["id"], pipeline=pipeline_name)
        return run["id"]

    async def finish_pipeline_run(
        self,
        run_id: str,
        result: LoadResult,
        *,
        records_extracted: int | None = None,
    ) -> None:
        """Close a run with the outcome of its load step."""
        fields: dict[str, Any] = {
            "records_loaded": result.records_loaded,
            "records_rejected": result.records_failed,
        }
        if records_extracted is not None:
            fields["records_extracted"] = records_extracted
        self._close_run(run_id, result.status, fields)

    async def fail_pipeline_run(self, run_id: str, error_message: str) -> None:
        # error_message is a bounded text column
        self._close_run(run_id, "failure", {"error_message": error_message[:2000]})

    def _close_run(self, run_id: str, status: str, fields: dict[str, Any]) -> None:
        (
            self._client.table("pipeline_runs")
            .update({"status": status, "completed_at": _utc_now(), **fields})
            .eq("id", run_id)
            .execute()
        )
        level = log.error if status == "failure" else log.info
        level("pipeline_run_closed", run_id=run_id, status=status)

    async def recent_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent pipeline_runs rows, newest first."""
        result = (
            self._client.table("pipeline_runs")
            .select(PIPELINE_RUN_COLUMNS)
            .order("started_at", desc=True)
            .limit(limit)
            .execute()
        )
        return result.data or []


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
