"""Tests for vendor invitation endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

TOKEN = "f" * 64


@pytest.fixture()
def invitation_row():
    return {
        "id": str(uuid4()),
        "token": TOKEN,
        "vendor_id": str(uuid4()),
        "invited_by": str(uuid4()),
        "status": "pending",
        "invitation_type": "bulk",
        "start_date": "2024-06-01",
        "end_date": "2024-06-22",
        "duration_weeks": 3,
        "expires_at": (datetime.now(timezone.utc) + timedelta(days=10)).isoformat(),
    }


def test_unknown_token_returns_404(client, supabase):
    response = client.get(f"/v1/invitations/{TOKEN}")
    assert response.status_code == 404
    assert response.json() == {"error": "Invitation not found"}


def test_view_invitation_is_public(client, make_supabase, invitation_row):
    make_supabase({"vendor_invitations": [invitation_row]})
    response = client.get(f"/v1/invitations/{TOKEN}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["start_date"] == "2024-06-01"
    assert "invited_by" not in data
    assert response.json()["event"] is None


def test_expired_invitation_returns_410(client, make_supabase, invitation_row):
    invitation_row["expires_at"] = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    db = make_supabase({"vendor_invitations": [invitation_row]})
    response = client.get(f"/v1/invitations/{TOKEN}")

    assert response.status_code == 410
    db.tables["vendor_invitations"].update.assert_called_once_with({"status": "expired"})


def test_respond_with_availability(client, make_supabase, invitation_row):
    db = make_supabase({"vendor_invitations": [invitation_row]})
    response = client.post(
        f"/v1/invitations/{TOKEN}",
        json={"availability": [
            {"date": "2024-06-03", "available": True, "notes": "  after 5pm "},
            {"date": "2024-06-04", "available": "yes"},
        ]},
    )

    assert response.status_code == 200
    update = db.tables["vendor_invitations"].update.call_args[0][0]
    assert update["status"] == "accepted"
    assert update["availability"] == [
        {"date": "2024-06-03", "available": True, "notes": "after 5pm"},
        {"date": "2024-06-04", "available": False, "notes": None},
    ]
    mirrored = db.tables["vendor_availability"].upsert
    assert mirrored.call_args[1] == {"on_conflict": "vendor_id,date"}
    assert len(mirrored.call_args[0][0]) == 2


def test_respond_all_unavailable_is_declined(client, make_supabase, invitation_row):
    db = make_supabase({"vendor_invitations": [invitation_row]})
    client.post(
        f"/v1/invitations/{TOKEN}",
        json={"availability": [{"date": "2024-06-03", "available": False}]},
    )

    assert db.tables["vendor_invitations"].update.call_args[0][0]["status"] == "declined"


def test_event_invitation_single_answer(client, make_supabase, invitation_row, sample_event):
    invitation_row.update(invitation_type="event", event_id=sample_event["id"], start_date=None, end_date=None)
    db = make_supabase({"vendor_invitations": [invitation_row], "events": [sample_event]})
    response = client.post(f"/v1/invitations/{TOKEN}", json={"available": True})

    assert response.status_code == 200
    update = db.tables["vendor_invitations"].update.call_args[0][0]
    assert update["availability"][0]["date"] == "2024-06-01"
    assert update["status"] == "accepted"


def test_respond_requires_availability(client, make_supabase, invitation_row):
    make_supabase({"vendor_invitations": [invitation_row]})
    response = client.post(f"/v1/invitations/{TOKEN}", json={})
    assert response.status_code == 400


def test_bulk_invite(client, make_supabase, login, vendor_factory):
    vendors = [vendor_factory("Jane", "Doe"), vendor_factory("Joe", "Roe")]
    db = make_supabase({"users": vendors})
    response = client.post(
        "/v1/invitations/bulk",
        json={"vendor_ids": [v["id"] for v in vendors], "duration_weeks": 2},
        headers=login("manager"),
    )

    assert response.status_code == 200
    assert response.json()["invitations_created"] == 2
    row = db.tables["vendor_invitations"].insert.call_args[0][0][0]
    assert row["invitation_type"] == "bulk"
    assert row["duration_weeks"] == 2
    start = datetime.fromisoformat(row["start_date"])
    end = datetime.fromisoformat(row["end_date"])
    assert (end - start).days == 14


def test_bulk_invite_forbidden_for_workers(client, supabase, login):
    response = client.post(
        "/v1/invitations/bulk", json={"vendor_ids": [str(uuid4())]}, headers=login("worker"),
    )
    assert response.status_code == 403
