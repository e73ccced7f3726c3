"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  nominatim_payload     — parsed fixture JSON of a Nominatim /search match
  vendor_profiles       — profile rows as selected by the geocode pipeline
  mock_supabase_client  — MagicMock of the Supabase client with per-table chains
  mock_supabase         — patches the loader's get_supabase_client()
  mock_http             — respx router for faking Nominatim responses
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import respx

from crewdesk_shared.config import settings

FIXTURES_DIR = Path(__file__).parent / "fixtures"

NOMINATIM_URL = "https://nominatim.test"

CHAIN_METHODS = (
    "select", "eq", "is_", "in_", "or_", "order", "limit", "insert", "update",
)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setattr(settings, "nominatim_url", NOMINATIM_URL)
    monkeypatch.setattr(settings, "nominatim_user_agent", "crewdesk-tests")
    monkeypatch.setattr(settings, "geocode_delay_seconds", 0)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def nominatim_payload() -> list[dict]:
    return json.loads((FIXTURES_DIR / "nominatim_search_sample.json").read_text())


@pytest.fixture
def vendor_profiles() -> list[dict]:
    return [
        {
            "id": "profile-1",
            "user_id": "user-1",
            "address": "200 W Washington St",
            "city": "Phoenix",
            "state": "AZ",
            "zip_code": "85003",
            "latitude": None,
            "longitude": None,
        },
        {
            "id": "profile-2",
            "user_id": "user-2",
            "address": "1 Nowhere Rd",
            "city": "Atlantis",
            "state": "AZ",
            "zip_code": None,
            "latitude": None,
            "longitude": None,
        },
    ]


# ---------------------------------------------------------------------------
# Supabase client mock
# ---------------------------------------------------------------------------

def _chain(rows: list[dict]) -> MagicMock:
    chain = MagicMock()
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    chain.not_ = chain
    chain.execute.return_value = MagicMock(data=rows, count=len(rows))
    return chain


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """
    A MagicMock that simulates the supabase.Client interface.

    Every table answers execute() with no rows. Seed a table with
    ``mock_supabase_client.seed("profiles", rows)``; the chain for a table
    stays the same across calls so tests can inspect it through
    ``mock_supabase_client.tables[name]``.
    """
    client = MagicMock()
    client.tables = {}

    def _table(name: str) -> MagicMock:
        if name not in client.tables:
            client.tables[name] = _chain([])
        return client.tables[name]

    def _seed(name: str, rows: list[dict]) -> MagicMock:
        client.tables[name] = _chain(rows)
        return client.tables[name]

    client.table.side_effect = _table
    client.seed = _seed
    return client


@pytest.fixture
def mock_supabase(mock_supabase_client: MagicMock):
    """Patch the loader's Supabase client and yield the mock."""
    with patch(
        "crewdesk_pipeline.loaders.supabase_loader.get_supabase_client",
        return_value=mock_supabase_client,
    ):
        yield mock_supabase_client


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get(f"{NOMINATIM_URL}/search").mock(return_value=httpx.Response(200, json=[]))
    """
    with respx.mock(base_url=NOMINATIM_URL, assert_all_called=False) as router:
        yield router
