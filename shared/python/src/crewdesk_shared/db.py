"""
db.py — Process-wide Supabase clients, one per key.

Route handlers check the caller's role themselves and then use the service
role client, as the pipeline does. The anon client is only for code that
should run under row-level security.

Usage:
    from crewdesk_shared.db import get_supabase_client

    supabase = get_supabase_client(service_role=True)
    supabase.table("regions").select("*").order("name").execute()
"""

from __future__ import annotations

import threading

import structlog
from supabase import Client, create_client

from crewdesk_shared.config import settings

logger = structlog.get_logger(__name__)

# role -> (settings attribute holding the key, env var named in errors)
_KEYS = {
    "service_role": ("supabase_service_key", "SUPABASE_SERVICE_KEY"),
    "anon": ("supabase_anon_key", "SUPABASE_ANON_KEY"),
}

_clients: dict[str, Client] = {}
_clients_lock = threading.Lock()


def get_supabase_client(*, service_role: bool = False) -> Client:
    """
    Return the shared client for the requested key, creating it on first use.

    Raises:
        RuntimeError: the key for that role is not configured.
    """
    role = "service_role" if service_role else "anon"
    with _clients_lock:
        client = _clients.get(role)
        if client is None:
            attr, env_name = _KEYS[role]
            key = getattr(settings, attr)
            if not key:
                raise RuntimeError(f"{env_name} is not set. Set it in .env.")
            client = create_client(settings.supabase_url, key)
            _clients[role] = client
            logger.info("supabase_client_created", role=role)
        return client


def reset_supabase_clients() -> None:
    """Forget cached clients so the next call picks up changed settings."""
    with _clients_lock:
        _clients.clear()
