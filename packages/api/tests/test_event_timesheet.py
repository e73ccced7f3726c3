"""Tests for event timesheet and attestation export endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest

HOUR_MS = 3_600_000


@pytest.fixture()
def worker_id():
    return str(uuid4())


@pytest.fixture()
def backend(make_supabase, sample_event, worker_id):
    """An event with one worker who took a 30 minute meal during a 5 hour shift."""
    eid = sample_event["id"]

    def entry(entry_id, action, ts):
        return {"id": entry_id, "user_id": worker_id, "event_id": eid, "action": action, "timestamp": ts}

    return make_supabase({
        "events": [sample_event],
        "event_teams": [{
            "id": str(uuid4()),
            "event_id": eid,
            "vendor_id": worker_id,
            "status": "confirmed",
            "users": {"id": worker_id, "email": "jane@example.com",
                      "profiles": {"first_name": "Jane", "last_name": "Doe"}},
        }],
        "time_entries": [
            entry("e1", "clock_in", "2024-06-01T18:00:00Z"),
            entry("e2", "meal_start", "2024-06-01T20:00:00Z"),
            entry("e3", "meal_end", "2024-06-01T20:30:00Z"),
            entry("e4", "clock_out", "2024-06-01T23:00:00Z"),
        ],
        "profiles": [{"user_id": worker_id, "first_name": "Jane", "last_name": "Doe"}],
        "form_signatures": [{
            "id": "s1",
            "user_id": worker_id,
            "form_id": "clock-out-e4",
            "signature_type": "draw",
            "signed_at": "2024-06-01T23:01:00Z",
            "ip_address": "10.0.0.1",
            "is_valid": True,
        }],
    })


def test_timesheet_totals_and_spans(client, backend, login, user_id, sample_event, worker_id):
    response = client.get(
        f"/v1/events/{sample_event['id']}/timesheet", headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["totals"][worker_id] == 5 * HOUR_MS
    spans = body["spans"][worker_id]
    assert spans["first_in"].startswith("2024-06-01T18:00")
    assert spans["first_meal_start"].startswith("2024-06-01T20:00")
    assert spans["last_meal_end"].startswith("2024-06-01T20:30")
    assert spans["second_meal_start"] is None
    assert body["summary"] == {"total_workers": 1, "total_entries_found": 4, "date_queried": "2024-06-01"}


def test_timesheet_empty_team(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(
        f"/v1/events/{sample_event['id']}/timesheet", headers=login("manager", user_id=user_id),
    )

    assert response.json()["totals"] == {}
    assert response.json()["summary"]["total_workers"] == 0


def test_timesheet_csv(client, backend, login, user_id, sample_event):
    response = client.get(
        f"/v1/events/{sample_event['id']}/timesheet?format=csv", headers=login("hr"),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="timesheet_Summer_Tour_2024-06-01.csv"' in response.headers["content-disposition"]
    header, row = response.text.strip().splitlines()[:2]
    assert header.startswith("name,email,clock_in")
    assert "Jane Doe" in row
    assert "5h 0m" in row


def test_timesheet_rejects_unknown_format(client, backend, login, user_id, sample_event):
    response = client.get(
        f"/v1/events/{sample_event['id']}/timesheet?format=xlsx",
        headers=login("manager", user_id=user_id),
    )
    assert response.status_code == 400


def test_timesheet_forbidden_for_workers(client, backend, login, sample_event):
    response = client.get(f"/v1/events/{sample_event['id']}/timesheet", headers=login("worker"))
    assert response.status_code == 403


def test_attestation_export(client, backend, login, user_id, sample_event, worker_id):
    response = client.get(
        f"/v1/events/{sample_event['id']}/attestation/{worker_id}",
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["content-disposition"] == 'attachment; filename="attestation_Jane_Doe_2024-06-01.txt"'
    assert response.headers["cache-control"] == "no-store"
    text = response.text
    assert "Jane Doe" in text
    assert "06:00 PM" in text
    assert "11:00 PM" in text
    assert "5h 0m (5.00 h)" in text
    assert "Form:             clock-out-e4" in text


def test_worker_can_export_own_attestation(client, backend, login, sample_event, worker_id):
    response = client.get(
        f"/v1/events/{sample_event['id']}/attestation/{worker_id}",
        headers=login("worker", user_id=worker_id),
    )
    assert response.status_code == 200


def test_worker_cannot_export_others_attestation(client, backend, login, sample_event, worker_id):
    response = client.get(
        f"/v1/events/{sample_event['id']}/attestation/{worker_id}", headers=login("worker"),
    )
    assert response.status_code == 403


def test_attestation_without_signature(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(
        f"/v1/events/{sample_event['id']}/attestation/{uuid4()}",
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    assert "attestation_Unknown_2024-06-01.txt" in response.headers["content-disposition"]
    assert "No clock-out attestation on file." in response.text
    assert "--:--" in response.text
