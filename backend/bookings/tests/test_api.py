"""Integration tests for the bookings API endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from bookings.models import Booking

pytestmark = pytest.mark.django_db


def booking_payload(listing, start, end, total):
    return {
        "listing_id": listing.id,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_price": total,
    }


def test_create_booking_success(auth_client, renter_user, listing):
    client = auth_client(renter_user)

    resp = client.post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 1, 1), date(2024, 1, 4), "60.00"),
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["success"] is True
    assert resp.data["message"] == "Booking request created successfully"
    data = resp.data["data"]
    assert data["status"] == Booking.Status.PENDING
    assert data["owner_id"] == listing.owner_id
    assert data["renter_id"] == renter_user.id
    assert data["listing"]["title"] == listing.title


def test_create_booking_price_mismatch(auth_client, renter_user, listing):
    client = auth_client(renter_user)

    resp = client.post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 1, 1), date(2024, 1, 4), "61.50"),
        format="json",
    )

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"
    assert resp.data["message"] == "Invalid total price calculation"
    assert resp.data["details"]["expected_total"] == 60.0
    assert not Booking.objects.exists()


@pytest.mark.parametrize(
    "total, stored",
    [
        (60.000000000000014, Decimal("60.00")),
        ("60.005", Decimal("60.01")),
        ("59.995", Decimal("60.00")),
    ],
)
def test_create_booking_accepts_total_within_tolerance(
    auth_client, renter_user, listing, total, stored
):
    resp = auth_client(renter_user).post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 1, 1), date(2024, 1, 4), total),
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert Booking.objects.get().total_price == stored


def test_create_booking_end_before_start(auth_client, renter_user, listing):
    resp = auth_client(renter_user).post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 1, 4), date(2024, 1, 1), "60.00"),
        format="json",
    )

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"
    assert any(item["field"] == "end_date" for item in resp.data["details"])


def test_create_booking_conflict(auth_client, other_user, listing, booking_factory):
    booking_factory(
        start_date=date(2024, 2, 10),
        end_date=date(2024, 2, 15),
        status=Booking.Status.CONFIRMED,
    )

    resp = auth_client(other_user).post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 2, 14), date(2024, 2, 20), "120.00"),
        format="json",
    )

    assert resp.status_code == 409
    assert resp.data["error"] == "CONFLICT"


def test_create_booking_requires_auth(api_client, listing):
    resp = api_client.post(
        "/api/bookings/",
        booking_payload(listing, date(2024, 1, 1), date(2024, 1, 4), "60.00"),
        format="json",
    )
    assert resp.status_code == 401
    assert resp.data["error"] == "AUTHENTICATION_ERROR"


def test_list_only_returns_participant_bookings(
    auth_client, renter_user, other_user, booking_factory
):
    mine = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))
    booking_factory(renter=other_user, start_date=date(2024, 5, 5), end_date=date(2024, 5, 7))

    resp = auth_client(renter_user).get("/api/bookings/")

    assert resp.status_code == 200
    assert [item["id"] for item in resp.data["data"]] == [mine.id]
    assert resp.data["pagination"]["total"] == 1


def test_list_filters_by_role_and_status(auth_client, owner_user, booking_factory):
    confirmed = booking_factory(
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 3),
        status=Booking.Status.CONFIRMED,
    )
    booking_factory(start_date=date(2024, 6, 1), end_date=date(2024, 6, 3))

    resp = auth_client(owner_user).get(
        "/api/bookings/", {"role": "owner", "status": "confirmed"}
    )

    assert resp.status_code == 200
    assert [item["id"] for item in resp.data["data"]] == [confirmed.id]


def test_retrieve_forbidden_for_stranger(auth_client, other_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(other_user).get(f"/api/bookings/{booking.id}/")

    assert resp.status_code == 403
    assert resp.data["error"] == "AUTHORIZATION_ERROR"


def test_retrieve_missing_booking(auth_client, renter_user):
    resp = auth_client(renter_user).get("/api/bookings/424242/")
    assert resp.status_code == 404
    assert resp.data["error"] == "NOT_FOUND"


def test_owner_confirms_booking(auth_client, owner_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(owner_user).put(
        f"/api/bookings/{booking.id}/", {"status": "confirmed"}, format="json"
    )

    assert resp.status_code == 200, resp.data
    assert resp.data["data"]["status"] == "confirmed"
    assert resp.data["message"] == "Booking updated successfully"


def test_renter_cannot_confirm(auth_client, renter_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(renter_user).put(
        f"/api/bookings/{booking.id}/", {"status": "confirmed"}, format="json"
    )

    assert resp.status_code == 403
    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING


def test_pending_to_active_rejected(auth_client, owner_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(owner_user).patch(
        f"/api/bookings/{booking.id}/", {"status": "active"}, format="json"
    )

    assert resp.status_code == 400
    assert "Invalid status transition" in resp.data["message"]


def test_empty_update_rejected(auth_client, renter_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(renter_user).patch(f"/api/bookings/{booking.id}/", {}, format="json")

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"


def test_delete_cancels_booking(auth_client, renter_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(renter_user).delete(f"/api/bookings/{booking.id}/")

    assert resp.status_code == 200
    assert resp.data["data"]["status"] == "cancelled"
    assert Booking.objects.filter(pk=booking.pk).exists()


def test_availability_lists_blocking_ranges(api_client, listing, booking_factory):
    booking_factory(
        start_date=date(2024, 7, 1),
        end_date=date(2024, 7, 4),
        status=Booking.Status.CONFIRMED,
    )
    booking_factory(start_date=date(2024, 8, 1), end_date=date(2024, 8, 2))

    resp = api_client.get("/api/bookings/availability/", {"listing_id": listing.id})

    assert resp.status_code == 200
    assert resp.data["data"]["booked_ranges"] == [
        {"start_date": "2024-07-01", "end_date": "2024-07-04", "status": "confirmed"}
    ]


def test_availability_requires_listing_id(api_client):
    resp = api_client.get("/api/bookings/availability/")
    assert resp.status_code == 400


def test_update_rejects_total_price_without_dates(auth_client, renter_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 5, 1), end_date=date(2024, 5, 3))

    resp = auth_client(renter_user).patch(
        f"/api/bookings/{booking.id}/", {"total_price": "999.00"}, format="json"
    )

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"
    assert any(item["field"] == "total_price" for item in resp.data["details"])
    booking.refresh_from_db()
    assert booking.total_price == Decimal("40.00")


def test_list_filters_by_date_window_and_listing(
    auth_client, renter_user, listing_factory, booking_factory
):
    other_listing = listing_factory(title="Ladder")
    inside = booking_factory(start_date=date(2024, 5, 2), end_date=date(2024, 5, 4))
    booking_factory(start_date=date(2024, 4, 28), end_date=date(2024, 5, 2))
    booking_factory(
        listing_override=other_listing,
        start_date=date(2024, 5, 2),
        end_date=date(2024, 5, 4),
    )

    resp = auth_client(renter_user).get(
        "/api/bookings/",
        {
            "start_date": "2024-05-01",
            "end_date": "2024-05-31",
            "listing_id": inside.listing_id,
        },
    )

    assert resp.status_code == 200
    assert [item["id"] for item in resp.data["data"]] == [inside.id]


def test_list_rejects_unknown_status_filter(auth_client, renter_user):
    resp = auth_client(renter_user).get("/api/bookings/", {"status": "lost"})

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"
    assert resp.data["details"][0]["field"] == "status"
