"""Shared test fixtures for crewdesk-api."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from crewdesk_shared.config import settings

JWT_SECRET = "test-jwt-secret"

CHAIN_METHODS = (
    "select", "eq", "neq", "gt", "gte", "lt", "lte", "ilike", "in_", "is_",
    "or_", "order", "limit", "range", "insert", "update", "upsert", "delete", "single",
)

# Every module that looks up its own Supabase client
SERVICE_MODULES = (
    "crewdesk_api.services.region_service",
    "crewdesk_api.services.vendor_service",
    "crewdesk_api.services.event_service",
    "crewdesk_api.services.invitation_service",
    "crewdesk_api.services.team_service",
    "crewdesk_api.services.time_entry_service",
    "crewdesk_api.services.attestation_service",
    "crewdesk_api.services.manager_team_service",
    "crewdesk_api.routers.health",
)


def make_chain(rows=None):
    """A chainable query mock.

    A list answers every execute() with the same rows; a tuple of lists
    answers successive execute() calls in order.
    """
    chain = MagicMock()
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    chain.not_ = chain
    if isinstance(rows, tuple):
        chain.execute.side_effect = [MagicMock(data=list(r)) for r in rows]
    else:
        chain.execute.return_value = MagicMock(data=list(rows or []))
    return chain


def build_supabase(tables=None):
    """A mock client with one persistent query chain per table (``client.tables[name]``)."""
    client = MagicMock()
    client.tables = {}
    data = tables or {}

    def _table(name):
        if name not in client.tables:
            client.tables[name] = make_chain(data.get(name, []))
        return client.tables[name]

    client.table.side_effect = _table
    return client


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setattr(settings, "supabase_jwt_secret", JWT_SECRET)
    monkeypatch.setattr(settings, "email_throttle_seconds", 0)
    monkeypatch.setattr(settings, "resend_api_key", "")


@pytest.fixture(autouse=True)
def _clear_caches():
    from crewdesk_api.utils.cache import region_cache
    yield
    region_cache.invalidate()


@pytest.fixture()
def make_supabase():
    """Factory: build a mock client and patch it into every service module."""
    patches = []

    def _make(tables=None):
        client = build_supabase(tables)
        for module in SERVICE_MODULES:
            p = patch(f"{module}.get_supabase_client", return_value=client)
            p.start()
            patches.append(p)
        return client

    yield _make
    for p in reversed(patches):
        p.stop()


@pytest.fixture()
def supabase(make_supabase):
    """Empty backend for tests that only need the calls to succeed."""
    return make_supabase()


def make_token(user_id: str, *, expires_in: int = 3600) -> str:
    claims = {
        "sub": user_id,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


@pytest.fixture()
def token_for():
    """Factory: a signed access token for ``user_id``."""
    return make_token


@pytest.fixture()
def login():
    """Factory: sign in as a user with ``role``; returns the Authorization headers."""
    patches = []

    def _login(role: str = "manager", *, user_id: str | None = None, division: str = "vendor", is_active=True):
        user_id = user_id or str(uuid4())
        row = {"id": user_id, "email": f"{role}@example.com", "role": role, "division": division, "is_active": is_active}
        p = patch(
            "crewdesk_api.middleware.auth.get_supabase_client",
            return_value=build_supabase({"users": [row]}),
        )
        p.start()
        patches.append(p)
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    yield _login
    for p in reversed(patches):
        p.stop()


@pytest.fixture()
def app():
    from crewdesk_api.app import create_app
    return create_app()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def user_id():
    return str(uuid4())


@pytest.fixture()
def sample_event(user_id):
    return {
        "id": str(uuid4()),
        "created_by": user_id,
        "event_name": "Summer Tour",
        "artist": "The Band",
        "venue": "Big Arena",
        "city": "Phoenix",
        "state": "az",
        "event_date": "2024-06-01",
        "start_time": "18:00",
        "end_time": "23:00",
        "ends_next_day": False,
        "is_active": True,
    }


@pytest.fixture()
def sample_region():
    return {
        "id": str(uuid4()),
        "name": "Phoenix Metro",
        "center_lat": 33.4484,
        "center_lng": -112.0740,
        "radius_miles": 50,
        "is_active": True,
    }


def vendor_row(first: str, last: str, *, lat=None, lng=None, region_id=None, vendor_id=None):
    return {
        "id": vendor_id or str(uuid4()),
        "email": f"{first.lower()}@example.com",
        "role": "worker",
        "division": "vendor",
        "is_active": True,
        "profiles": {
            "first_name": first,
            "last_name": last,
            "latitude": lat,
            "longitude": lng,
            "region_id": region_id,
        },
    }


@pytest.fixture()
def vendor_factory():
    return vendor_row
