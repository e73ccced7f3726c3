"""
cli.py — Click CLI entrypoint for pipeline workers.

Usage:
    crewdesk-pipeline geocode-vendors --limit 50
    crewdesk-pipeline geocode-vendors --dry-run
    crewdesk-pipeline status
"""

from __future__ import annotations

import asyncio

import click
from postgrest.exceptions import APIError

from crewdesk_shared.config import settings
from crewdesk_pipeline.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

STATUS_MARKS = {"success": "✓", "failure": "✗", "running": "⟳", "partial_failure": "⚠"}


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["json", "console"]),
    help="Log output format",
)
def main(log_level: str, log_format: str) -> None:
    """crewdesk background workers."""
    configure_logging(log_level=log_level, log_format=log_format)


@main.command("geocode-vendors")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Max profiles to geocode")
@click.option("--profile-id", "profile_ids", multiple=True, help="Only geocode these profiles")
@click.option("--all", "include_geocoded", is_flag=True, help="Re-geocode profiles that have coordinates")
@click.option("--dry-run", is_flag=True, help="Geocode without writing to Supabase")
def geocode_vendors(
    limit: int | None,
    profile_ids: tuple[str, ...],
    include_geocoded: bool,
    dry_run: bool,
) -> None:
    """Fill in missing vendor coordinates from their addresses."""
    from crewdesk_pipeline.pipelines import geocode_vendors as pipeline

    result = asyncio.run(
        pipeline.run(
            limit=limit,
            profile_ids=list(profile_ids) or None,
            include_geocoded=include_geocoded,
            dry_run=dry_run,
        )
    )

    prefix = "[dry run] " if dry_run else ""
    click.echo(
        f"{prefix}Processed {result.processed}: "
        f"{result.successful} geocoded, {result.failed} failed"
    )
    for error in result.errors:
        click.echo(f"  {error}", err=True)
    if result.processed and not result.successful:
        raise SystemExit(1)


@main.command()
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
def status(limit: int) -> None:
    """Show the most recent pipeline runs."""
    from crewdesk_pipeline.loaders.supabase_loader import SupabaseLoader

    click.echo("Pipeline status:")
    try:
        rows = asyncio.run(SupabaseLoader().recent_runs(limit))
    except (APIError, RuntimeError) as exc:
        click.echo(f"  Error fetching status: {exc}", err=True)
        raise SystemExit(1)

    if not rows:
        click.echo("  No pipeline runs found.")
        return
    for row in rows:
        mark = STATUS_MARKS.get(row.get("status", ""), "?")
        click.echo(
            f"  {mark} {row.get('pipeline_name', ''):24s} "
            f"{row.get('status', ''):16s} "
            f"{row.get('records_loaded', '?')} rows  "
            f"{(row.get('started_at') or '')[:19]}"
        )


if __name__ == "__main__":
    main()
