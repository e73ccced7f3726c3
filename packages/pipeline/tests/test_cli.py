"""
tests/test_cli.py — Tests for the crewdesk-pipeline click commands.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from crewdesk_pipeline.cli import main
from crewdesk_pipeline.pipelines.geocode_vendors import GeocodeResult


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging():
    with patch("crewdesk_pipeline.cli.configure_logging"):
        yield


def test_geocode_vendors_passes_options(runner):
    result = GeocodeResult(processed=2, successful=2)
    with patch(
        "crewdesk_pipeline.pipelines.geocode_vendors.run", new=AsyncMock(return_value=result)
    ) as run:
        outcome = runner.invoke(main, ["geocode-vendors", "--limit", "5", "--profile-id", "p1"])

    assert outcome.exit_code == 0, outcome.output
    assert "Processed 2: 2 geocoded, 0 failed" in outcome.output
    run.assert_awaited_once_with(
        limit=5, profile_ids=["p1"], include_geocoded=False, dry_run=False,
    )


def test_geocode_vendors_dry_run_prefix(runner):
    result = GeocodeResult(processed=1, successful=1, dry_run=True)
    with patch(
        "crewdesk_pipeline.pipelines.geocode_vendors.run", new=AsyncMock(return_value=result)
    ):
        outcome = runner.invoke(main, ["geocode-vendors", "--dry-run"])

    assert outcome.output.startswith("[dry run] Processed 1")


def test_geocode_vendors_all_failed_exits_nonzero(runner):
    result = GeocodeResult(processed=1, failed=1, errors=["p1: No geocoding results"])
    with patch(
        "crewdesk_pipeline.pipelines.geocode_vendors.run", new=AsyncMock(return_value=result)
    ):
        outcome = runner.invoke(main, ["geocode-vendors"])

    assert outcome.exit_code == 1


def test_geocode_vendors_rejects_zero_limit(runner):
    outcome = runner.invoke(main, ["geocode-vendors", "--limit", "0"])
    assert outcome.exit_code == 2


def test_status_lists_recent_runs(runner, mock_supabase):
    mock_supabase.seed("pipeline_runs", [{
        "pipeline_name": "geocode_vendors",
        "status": "success",
        "records_loaded": 12,
        "started_at": "2024-06-01T10:00:00.123456+00:00",
    }])

    outcome = runner.invoke(main, ["status"])

    assert outcome.exit_code == 0
    assert "✓ geocode_vendors" in outcome.output
    assert "12 rows" in outcome.output
    assert "2024-06-01T10:00:00" in outcome.output


def test_status_empty(runner, mock_supabase):
    outcome = runner.invoke(main, ["status"])
    assert "No pipeline runs found." in outcome.output
