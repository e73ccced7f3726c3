"""Tests for the Supabase client registry."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from crewdesk_shared import db
from crewdesk_shared.config import settings


@pytest.fixture(autouse=True)
def _fresh_clients():
    db.reset_supabase_clients()
    yield
    db.reset_supabase_clients()


def test_missing_service_key_raises(monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_key", "")
    with pytest.raises(RuntimeError, match="SUPABASE_SERVICE_KEY"):
        db.get_supabase_client(service_role=True)


def test_client_created_once_per_role(monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_key", "service-key")
    monkeypatch.setattr(settings, "supabase_anon_key", "anon-key")

    with patch.object(db, "create_client", side_effect=lambda url, key: MagicMock(key=key)) as create:
        service = db.get_supabase_client(service_role=True)
        assert db.get_supabase_client(service_role=True) is service
        anon = db.get_supabase_client()

    assert create.call_count == 2
    assert service.key == "service-key"
    assert anon.key == "anon-key"


def test_reset_forgets_clients(monkeypatch):
    monkeypatch.setattr(settings, "supabase_service_key", "service-key")

    with patch.object(db, "create_client", side_effect=lambda url, key: MagicMock()) as create:
        first = db.get_supabase_client(service_role=True)
        db.reset_supabase_clients()
        second = db.get_supabase_client(service_role=True)

    assert first is not second
    assert create.call_count == 2
