"""Tests for event team endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest


@pytest.fixture()
def vendor_id():
    return str(uuid4())


@pytest.fixture()
def team_row(sample_event, vendor_id):
    return {
        "id": str(uuid4()),
        "event_id": sample_event["id"],
        "vendor_id": vendor_id,
        "status": "confirmed",
        "users": {
            "id": vendor_id,
            "email": "jane@example.com",
            "division": "vendor",
            "profiles": {"first_name": "Jane", "last_name": "Doe", "phone": None},
        },
    }


@pytest.fixture()
def clock_rows(vendor_id, sample_event):
    return [
        {"id": "in-1", "user_id": vendor_id, "event_id": sample_event["id"],
         "action": "clock_in", "timestamp": "2024-06-01T18:00:00Z"},
        {"id": "out-1", "user_id": vendor_id, "event_id": sample_event["id"],
         "action": "clock_out", "timestamp": "2024-06-01T23:00:00Z"},
    ]


def test_list_team_flags_attestation(
    client, make_supabase, login, user_id, sample_event, team_row, clock_rows, vendor_id,
):
    make_supabase({
        "events": [sample_event],
        "event_teams": [team_row],
        "time_entries": clock_rows,
        "form_signatures": [{"id": "s1", "user_id": vendor_id, "form_id": "clock-out-out-1"}],
    })
    response = client.get(f"/v1/events/{sample_event['id']}/team", headers=login("manager", user_id=user_id))

    assert response.status_code == 200
    member = response.json()["data"][0]
    assert member["has_attestation"] is True
    assert member["vendor"]["full_name"] == "Jane Doe"


def test_signature_near_clock_out_counts_as_attestation(
    client, make_supabase, login, user_id, sample_event, team_row, clock_rows, vendor_id,
):
    make_supabase({
        "events": [sample_event],
        "event_teams": [team_row],
        "time_entries": clock_rows,
        "form_signatures": [{"id": "s1", "user_id": vendor_id, "signed_at": "2024-06-01T23:10:00Z"}],
    })
    response = client.get(f"/v1/events/{sample_event['id']}/team", headers=login("manager", user_id=user_id))

    assert response.json()["data"][0]["has_attestation"] is True


def test_list_team_forbidden_for_workers(client, make_supabase, login, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(f"/v1/events/{sample_event['id']}/team", headers=login("worker"))
    assert response.status_code == 403


def test_add_members_skips_existing(
    client, make_supabase, login, user_id, sample_event, vendor_factory, vendor_id,
):
    newcomer = vendor_factory("New", "Person")
    db = make_supabase({
        "events": [sample_event],
        "event_teams": [{"vendor_id": vendor_id, "status": "confirmed"}],
        "users": [newcomer],
    })
    response = client.post(
        f"/v1/events/{sample_event['id']}/team",
        json={"vendor_ids": [vendor_id, newcomer["id"]]},
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["new_members"] == 1
    assert body["already_on_team"] == 1
    assert body["team_size"] == 2

    upsert = db.tables["event_teams"].upsert
    rows = upsert.call_args[0][0]
    assert [r["vendor_id"] for r in rows] == [newcomer["id"]]
    assert rows[0]["status"] == "pending_confirmation"
    assert len(rows[0]["confirmation_token"]) == 64
    assert upsert.call_args[1] == {"on_conflict": "event_id,vendor_id"}


def test_add_members_counts_repeated_ids_once(
    client, make_supabase, login, user_id, sample_event, vendor_factory, vendor_id,
):
    newcomer = vendor_factory("New", "Person")
    db = make_supabase({
        "events": [sample_event],
        "event_teams": [{"vendor_id": vendor_id, "status": "pending_confirmation"}],
        "users": [newcomer],
    })
    response = client.post(
        f"/v1/events/{sample_event['id']}/team",
        json={"vendor_ids": [vendor_id, newcomer["id"], vendor_id, newcomer["id"]]},
        headers=login("manager", user_id=user_id),
    )

    body = response.json()
    assert body["already_on_team"] == 1
    assert body["new_members"] == 1
    assert body["team_size"] == 2
    assert len(db.tables["event_teams"].upsert.call_args[0][0]) == 1


def test_add_members_auto_confirm(client, make_supabase, login, user_id, sample_event, vendor_factory):
    vendor = vendor_factory("Jane", "Doe")
    db = make_supabase({"events": [sample_event], "users": [vendor]})
    response = client.post(
        f"/v1/events/{sample_event['id']}/team",
        json={"vendor_ids": [vendor["id"]], "auto_confirm": True},
        headers=login("exec"),
    )

    assert response.status_code == 200
    row = db.tables["event_teams"].upsert.call_args[0][0][0]
    assert row["status"] == "confirmed"
    assert row["confirmation_token"] is None
    assert response.json()["email_stats"]["total"] == 0


def test_remove_attested_member_conflicts(
    client, make_supabase, login, user_id, sample_event, team_row, clock_rows, vendor_id,
):
    db = make_supabase({
        "events": [sample_event],
        "event_teams": [team_row],
        "time_entries": clock_rows,
        "form_signatures": [{"id": "s1", "user_id": vendor_id, "form_id": "clock-out-out-1"}],
    })
    response = client.delete(
        f"/v1/events/{sample_event['id']}/team/{team_row['id']}",
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 409
    db.tables["event_teams"].delete.assert_not_called()


def test_remove_member(client, make_supabase, login, user_id, sample_event, team_row, clock_rows):
    db = make_supabase({
        "events": [sample_event],
        "event_teams": [team_row],
        "time_entries": clock_rows,
    })
    response = client.delete(
        f"/v1/events/{sample_event['id']}/team/{team_row['id']}",
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    db.tables["event_teams"].delete.assert_called_once()
    db.tables["event_location_assignments"].delete.assert_called_once()
    uninvite = db.tables["event_team_uninvites"].insert.call_args[0][0]
    assert uninvite["previous_status"] == "confirmed"
    assert uninvite["removed_by"] == user_id


def test_remove_missing_member(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.delete(
        f"/v1/events/{sample_event['id']}/team/{uuid4()}",
        headers=login("manager", user_id=user_id),
    )
    assert response.status_code == 404
