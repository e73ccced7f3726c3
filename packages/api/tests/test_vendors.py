"""Tests for vendor listing endpoints."""

from __future__ import annotations

from datetime import date, timedelta


def _names(response):
    return [v["full_name"] for v in response.json()["data"]]


def test_unfiltered_listing_is_alphabetical(client, make_supabase, login, vendor_factory):
    make_supabase({
        "users": [
            vendor_factory("zoe", "Adams"),
            vendor_factory("Adam", "Young"),
            vendor_factory("mike", "Jones"),
        ]
    })
    response = client.get("/v1/vendors", headers=login("manager"))

    assert response.status_code == 200
    assert _names(response) == ["Adam Young", "mike Jones", "zoe Adams"]
    assert all(v["distance"] is None for v in response.json()["data"])


def test_region_filter_keeps_vendors_without_coordinates(
    client, make_supabase, login, vendor_factory, sample_region,
):
    make_supabase({
        "regions": [sample_region],
        "users": [
            vendor_factory("Far", "Away", lat=40.7, lng=-74.0),
            vendor_factory("No", "Address"),
            vendor_factory("Near", "Center", lat=33.45, lng=-112.08),
            vendor_factory("Mid", "Town", lat=33.6, lng=-112.3),
        ],
    })
    response = client.get(f"/v1/vendors?region_id={sample_region['id']}", headers=login("manager"))

    assert response.status_code == 200
    data = response.json()["data"]
    assert [v["full_name"] for v in data] == ["Near Center", "Mid Town", "No Address"]
    assert data[0]["distance"] < data[1]["distance"]
    assert data[2]["distance"] is None
    assert response.json()["region"]["name"] == "Phoenix Metro"


def test_assigned_vendor_outside_radius_is_kept(
    client, make_supabase, login, vendor_factory, sample_region,
):
    make_supabase({
        "regions": [sample_region],
        "users": [vendor_factory("Road", "Warrior", lat=40.7, lng=-74.0, region_id=sample_region["id"])],
    })
    response = client.get(f"/v1/vendors?region_id={sample_region['id']}", headers=login("manager"))

    assert _names(response) == ["Road Warrior"]


def test_geo_filter_off_uses_assigned_region(
    client, make_supabase, login, vendor_factory, sample_region,
):
    make_supabase({
        "regions": [sample_region],
        "users": [
            vendor_factory("Near", "Center", lat=33.45, lng=-112.08),
            vendor_factory("Assigned", "Vendor", region_id=sample_region["id"]),
        ],
    })
    response = client.get(
        f"/v1/vendors?region_id={sample_region['id']}&geo_filter=false", headers=login("manager"),
    )

    assert _names(response) == ["Assigned Vendor"]


def test_unknown_region_returns_404(client, supabase, login):
    response = client.get("/v1/vendors?region_id=missing", headers=login("manager"))
    assert response.status_code == 404
    assert response.json() == {"error": "Region not found"}


def test_recently_responded_badge_requires_current_window(
    client, make_supabase, login, vendor_factory,
):
    current = vendor_factory("Current", "Vendor")
    stale = vendor_factory("Stale", "Vendor")
    today = date.today()
    make_supabase({
        "users": [current, stale],
        "vendor_invitations": [
            {
                "token": "a" * 64,
                "vendor_id": current["id"],
                "invitation_type": "bulk",
                "start_date": (today - timedelta(days=2)).isoformat(),
                "end_date": (today + timedelta(days=5)).isoformat(),
                "responded_at": f"{today.isoformat()}T00:00:00Z",
            },
            {
                "token": "b" * 64,
                "vendor_id": stale["id"],
                "invitation_type": "bulk",
                "start_date": (today - timedelta(days=30)).isoformat(),
                "end_date": (today - timedelta(days=9)).isoformat(),
                "responded_at": f"{(today - timedelta(days=30)).isoformat()}T00:00:00Z",
            },
        ],
    })
    response = client.get("/v1/vendors", headers=login("manager"))

    badges = {v["full_name"]: v["recently_responded"] for v in response.json()["data"]}
    assert badges == {"Current Vendor": True, "Stale Vendor": False}
