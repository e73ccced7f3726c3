"""
sources/nominatim.py — OpenStreetMap Nominatim geocoding source.

Turns vendor profile addresses into coordinates. Nominatim's usage policy
allows one request per second and requires an identifying User-Agent, so
requests are issued sequentially with settings.geocode_delay_seconds
between them.

Endpoint:
  GET /search?q=<address, city, state, zip>&format=json&limit=1
             &addressdetails=1&countrycodes=us

Response shape (first match only):
  [{"lat": "33.4484", "lon": "-112.0740", "display_name": "Phoenix, ..."}]

Usage:
    source = NominatimSource()
    df = await source.run(profiles=[{"id": "...", "address": "...", ...}])
    # columns: profile_id, query, latitude, longitude, geocoded_address, error
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import polars as pl
import structlog

from crewdesk_shared.config import settings
from crewdesk_pipeline.sources.base import BaseSource
from crewdesk_pipeline.utils.retry import with_retry

log = structlog.get_logger(__name__)

RAW_SCHEMA: dict[str, Any] = {
    "profile_id": pl.String,
    "query": pl.String,
    "lat": pl.String,
    "lon": pl.String,
    "display_name": pl.String,
    "error": pl.String,
}

RESULT_SCHEMA: dict[str, Any] = {
    "profile_id": pl.String,
    "query": pl.String,
    "latitude": pl.Float64,
    "longitude": pl.Float64,
    "geocoded_address": pl.String,
    "error": pl.String,
}


def build_query(
    address: str | None,
    city: str | None,
    state: str | None,
    zip_code: str | None = None,
) -> str:
    """Join the non-empty address parts with ", "."""
    parts = [str(p).strip() for p in (address, city, state, zip_code) if p]
    return ", ".join(p for p in parts if p)


class NominatimSource(BaseSource):
    """Geocodes US street addresses one at a time."""

    name = "Nominatim"

    def __init__(self, timeout: float = 30.0, delay_seconds: float | None = None) -> None:
        super().__init__()
        self._base_url = settings.nominatim_url
        self._timeout = timeout
        self._delay = settings.geocode_delay_seconds if delay_seconds is None else delay_seconds

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    @with_retry(max_attempts=3, base_delay=2.0)
    async def _search(self, client: httpx.AsyncClient, query: str) -> list[dict[str, Any]]:
        response = await client.get(
            "/search",
            params={
                "q": query,
                "format": "json",
                "limit": 1,
                "addressdetails": 1,
                "countrycodes": "us",
            },
        )
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, list) else []

    async def geocode(self, client: httpx.AsyncClient, query: str) -> dict[str, Any] | None:
        """Return the best match for one query, or None when nothing matched."""
        matches = await self._search(client, query)
        if not matches:
            self._log.warning("geocode_no_match", query=query)
            return None
        return matches[0]

    # ------------------------------------------------------------------
    # BaseSource interface
    # ------------------------------------------------------------------

    async def extract(
        self,
        *,
        profiles: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> pl.DataFrame:
        """
        Geocode each profile's address.

        A failed lookup is recorded in the error column instead of aborting
        the batch.

        Args:
            profiles: Rows from the profiles table (id, address, city,
                      state, zip_code).
        """
        profiles = profiles or []
        rows: list[dict[str, str | None]] = []

        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"User-Agent": settings.nominatim_user_agent},
        ) as client:
            for idx, profile in enumerate(profiles):
                if idx > 0 and self._delay > 0:
                    await asyncio.sleep(self._delay)

                query = build_query(
                    profile.get("address"),
                    profile.get("city"),
                    profile.get("state"),
                    profile.get("zip_code"),
                )
                row: dict[str, str | None] = {
                    "profile_id": str(profile.get("id")),
                    "query": query,
                    "lat": None,
                    "lon": None,
                    "display_name": None,
                    "error": None,
                }
                if not query:
                    row["error"] = "Missing address"
                    rows.append(row)
                    continue

                try:
                    match = await self.geocode(client, query)
                except (httpx.HTTPError, ValueError) as exc:
                    self._log.warning("geocode_request_failed", query=query, error=str(exc))
                    row["error"] = str(exc) or type(exc).__name__
                    rows.append(row)
                    continue

                if match is None:
                    row["error"] = "No geocoding results"
                else:
                    row["lat"] = _as_text(match.get("lat"))
                    row["lon"] = _as_text(match.get("lon"))
                    row["display_name"] = match.get("display_name")
                rows.append(row)

        return pl.DataFrame(rows, schema=RAW_SCHEMA)

    def transform(self, raw: pl.DataFrame) -> pl.DataFrame:
        """
        Parse coordinates and flag unusable matches.

        Output columns:
            profile_id        String
            query             String   — the address sent to Nominatim
            latitude          Float64  — null when the lookup failed
            longitude         Float64
            geocoded_address  String   — display_name, else the query
            error             String   — null on success
        """
        if raw.is_empty():
            return pl.DataFrame(schema=RESULT_SCHEMA)

        df = raw.with_columns(
            pl.col("lat").cast(pl.Float64, strict=False).alias("latitude"),
            pl.col("lon").cast(pl.Float64, strict=False).alias("longitude"),
            pl.coalesce(pl.col("display_name"), pl.col("query")).alias("geocoded_address"),
        )

        in_range = (
            pl.col("latitude").is_between(-90.0, 90.0)
            & pl.col("longitude").is_between(-180.0, 180.0)
        )
        bad_coords = pl.col("error").is_null() & ~in_range.fill_null(False)

        df = df.with_columns(
            pl.when(bad_coords)
            .then(pl.lit("Invalid coordinates"))
            .otherwise(pl.col("error"))
            .alias("error"),
        ).with_columns(
            pl.when(pl.col("error").is_null()).then(pl.col("latitude")).alias("latitude"),
            pl.when(pl.col("error").is_null()).then(pl.col("longitude")).alias("longitude"),
        )

        return df.select(list(RESULT_SCHEMA))

    async def get_metadata(self) -> dict[str, Any]:
        return {
            "source_name": self.name,
            "base_url": self._base_url,
            "description": "OpenStreetMap Nominatim address search (US only)",
            "delay_seconds": self._delay,
        }


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)
