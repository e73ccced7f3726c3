"""
pipelines/geocode_vendors.py — Backfill vendor profile coordinates.

Vendors without latitude/longitude are kept by the region filter but
sorted last with no distance, so this pipeline fills them in:

  1. Select profiles with an address, city and state but missing coordinates
  2. Geocode each through Nominatim (throttled, retried)
  3. Update profiles.latitude/longitude/geocoded_address/geocoded_at
  4. Assign profiles.region_id from the active regions, first in name order
  5. Record a pipeline_runs row

Usage:
    from crewdesk_pipeline.pipelines.geocode_vendors import run
    result = await run(limit=50)
    print(result.successful, result.failed)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import polars as pl

from crewdesk_pipeline.loaders.supabase_loader import LoadResult, SupabaseLoader
from crewdesk_pipeline.sources.nominatim import NominatimSource
from crewdesk_pipeline.utils.logging import get_logger

log = get_logger(__name__, pipeline="geocode_vendors")

PIPELINE_NAME = "geocode_vendors"
PROFILE_COLUMNS = "id, user_id, address, city, state, zip_code, latitude, longitude"


@dataclass
class GeocodeResult:
    processed: int = 0
    successful: int = 0
    failed: int = 0
    dry_run: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "success"
        return "partial_failure" if self.successful else "failure"

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "dry_run": self.dry_run,
            "errors": self.errors,
        }


def select_profiles(
    client: Any,
    *,
    limit: int | None = None,
    profile_ids: list[str] | None = None,
    include_geocoded: bool = False,
) -> list[dict[str, Any]]:
    """Profiles that have enough address to geocode."""
    query = (
        client.table("profiles")
        .select(PROFILE_COLUMNS)
        .not_.is_("address", "null")
        .not_.is_("city", "null")
        .not_.is_("state", "null")
    )
    if not include_geocoded:
        query = query.or_("latitude.is.null,longitude.is.null")
    if profile_ids:
        query = query.in_("id", profile_ids)
    if limit:
        query = query.limit(limit)
    return query.execute().data or []


def _failures(df: pl.DataFrame) -> list[str]:
    failed = df.filter(pl.col("error").is_not_null())
    return [f"{row['profile_id']}: {row['error']}" for row in failed.iter_rows(named=True)]


async def run(
    *,
    limit: int | None = None,
    profile_ids: list[str] | None = None,
    include_geocoded: bool = False,
    dry_run: bool = False,
    source: NominatimSource | None = None,
) -> GeocodeResult:
    """
    Geocode vendor profiles end-to-end.

    Args:
        limit:            Maximum number of profiles to process.
        profile_ids:      Restrict the run to these profile ids.
        include_geocoded: Also re-geocode profiles that already have coordinates.
        dry_run:          Geocode but do not write to Supabase.
        source:           Override the Nominatim source (tests, custom delay).

    Returns:
        GeocodeResult with processed/successful/failed counts.
    """
    log.info("geocode_vendors_start", limit=limit, dry_run=dry_run)

    loader = SupabaseLoader()
    source = source or NominatimSource()
    result = GeocodeResult(dry_run=dry_run)

    profiles = select_profiles(
        loader.client,
        limit=limit,
        profile_ids=profile_ids,
        include_geocoded=include_geocoded,
    )
    if not profiles:
        log.info("geocode_vendors_nothing_to_do")
        return result

    run_id = None
    if not dry_run:
        run_id = await loader.start_pipeline_run(
            PIPELINE_NAME,
            source.name,
            metadata={"limit": limit, "profiles": len(profiles)},
        )

    try:
        df = await source.run(profiles=profiles)
        result.processed = len(df)
        result.errors = _failures(df)
        lookup_failures = len(result.errors)

        if dry_run:
            result.successful = result.processed - lookup_failures
            result.failed = lookup_failures
            log.info("geocode_vendors_dry_run", **result.to_dict())
            return result

        regions = await loader.active_regions()
        load = await loader.update_coordinates(df, regions=regions)
        result.successful = load.records_loaded
        result.failed = lookup_failures + load.records_failed
        result.errors.extend(load.errors)

        await loader.finish_pipeline_run(
            run_id,
            LoadResult(
                table="profiles",
                records_loaded=result.successful,
                records_failed=result.failed,
            ),
            records_extracted=result.processed,
        )

    except Exception as exc:
        log.error("geocode_vendors_failed", error=str(exc), exc_info=True)
        if run_id:
            await loader.fail_pipeline_run(run_id, str(exc))
        raise

    log.info(
        "geocode_vendors_complete",
        processed=result.processed,
        successful=result.successful,
        failed=result.failed,
    )
    return result
