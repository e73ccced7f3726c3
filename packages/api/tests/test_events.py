"""Tests for event endpoints."""

from __future__ import annotations

from uuid import uuid4


def test_list_events(client, make_supabase, login, user_id, sample_event):
    db = make_supabase({"events": [sample_event]})
    response = client.get("/v1/events?is_active=true", headers=login("manager", user_id=user_id))

    assert response.status_code == 200
    assert response.json()["data"][0]["event_name"] == "Summer Tour"
    db.tables["events"].in_.assert_called_with("created_by", [user_id])


def test_supervisor_sees_linked_managers_events(client, make_supabase, login, user_id):
    manager_id = str(uuid4())
    db = make_supabase({"manager_team_members": [{"manager_id": manager_id}]})
    client.get("/v1/events", headers=login("supervisor", user_id=user_id))

    db.tables["events"].in_.assert_called_with("created_by", [user_id, manager_id])


def test_create_event(client, make_supabase, login, user_id, sample_event):
    db = make_supabase({"events": [sample_event]})
    response = client.post(
        "/v1/events",
        json={
            "event_name": "Summer Tour",
            "venue": "Big Arena",
            "event_date": "2024-06-01",
            "start_time": "18:00",
            "end_time": "23:00",
            "state": "az",
        },
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 201
    inserted = db.tables["events"].insert.call_args[0][0]
    assert inserted["created_by"] == user_id
    assert inserted["event_date"] == "2024-06-01"
    assert inserted["state"] == "AZ"


def test_create_event_requires_venue(client, supabase, login):
    response = client.post(
        "/v1/events",
        json={"event_name": "X", "event_date": "2024-06-01", "start_time": "18:00", "end_time": "23:00"},
        headers=login("manager"),
    )
    assert response.status_code == 400
    assert "venue" in response.json()["error"]


def test_get_event_owner_only(client, make_supabase, login, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(f"/v1/events/{sample_event['id']}", headers=login("exec"))

    assert response.status_code == 404
    assert response.json() == {"error": "Event not found"}


def test_get_own_event(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(f"/v1/events/{sample_event['id']}", headers=login("manager", user_id=user_id))

    assert response.status_code == 200
    assert response.json()["data"]["state"] == "AZ"


def test_update_event(client, make_supabase, login, user_id, sample_event):
    db = make_supabase({"events": [sample_event]})
    response = client.put(
        f"/v1/events/{sample_event['id']}",
        json={"required_staff": 12, "event_date": "2024-06-02"},
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    update = db.tables["events"].update.call_args[0][0]
    assert update["required_staff"] == 12
    assert update["event_date"] == "2024-06-02"
    assert "updated_at" in update


def test_update_event_without_fields(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.put(
        f"/v1/events/{sample_event['id']}", json={}, headers=login("manager", user_id=user_id),
    )
    assert response.status_code == 400


def test_available_vendors_sorted_from_venue(
    client, make_supabase, login, user_id, sample_event, vendor_factory,
):
    near = vendor_factory("Near", "Venue", lat=33.45, lng=-112.07)
    far = vendor_factory("Far", "Venue", lat=33.9, lng=-112.5)
    unavailable = vendor_factory("Busy", "Vendor", lat=33.45, lng=-112.07)

    def response_for(vendor, available):
        return {
            "token": uuid4().hex,
            "vendor_id": vendor["id"],
            "invitation_type": "bulk",
            "start_date": "2024-05-25",
            "end_date": "2024-06-15",
            "responded_at": "2024-05-20T12:00:00Z",
            "availability": [{"date": "2024-06-01", "available": available}],
        }

    db = make_supabase({
        "events": [sample_event],
        "vendor_invitations": [response_for(far, True), response_for(near, True), response_for(unavailable, False)],
        "users": [far, near],
        "venue_reference": [{"latitude": 33.4457, "longitude": -112.0712}],
    })
    response = client.get(
        f"/v1/events/{sample_event['id']}/available-vendors", headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert [v["full_name"] for v in body["data"]] == ["Near Venue", "Far Venue"]
    assert body["venue"]["name"] == "Big Arena"
    requested = db.tables["users"].in_.call_args_list[-1][0]
    assert requested[0] == "id"
    assert unavailable["id"] not in requested[1]


def test_available_vendors_forbidden_for_workers(client, make_supabase, login, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.get(f"/v1/events/{sample_event['id']}/available-vendors", headers=login("worker"))
    assert response.status_code == 403


def test_invite_vendors(client, make_supabase, login, user_id, sample_event, vendor_factory):
    vendor = vendor_factory("Jane", "Doe")
    db = make_supabase({"events": [sample_event], "users": [vendor]})
    response = client.post(
        f"/v1/events/{sample_event['id']}/invite-vendors",
        json={"vendor_ids": [vendor["id"]]},
        headers=login("manager", user_id=user_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["invitations_created"] == 1
    # No email provider configured in tests: the send is counted as a failure
    assert body["stats"] == {"total": 1, "sent": 0, "failed": 1}
    row = db.tables["vendor_invitations"].insert.call_args[0][0][0]
    assert row["event_id"] == sample_event["id"]
    assert len(row["token"]) == 64


def test_invite_vendors_requires_ids(client, make_supabase, login, user_id, sample_event):
    make_supabase({"events": [sample_event]})
    response = client.post(
        f"/v1/events/{sample_event['id']}/invite-vendors",
        json={"vendor_ids": []},
        headers=login("manager", user_id=user_id),
    )
    assert response.status_code == 400
