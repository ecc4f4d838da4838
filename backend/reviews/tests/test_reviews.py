"""Tests for posting and listing reviews."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from bookings.models import Booking
from reviews.models import Review

pytestmark = pytest.mark.django_db


@pytest.fixture
def completed_booking(booking_factory):
    return booking_factory(
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 4),
        status=Booking.Status.COMPLETED,
    )


def review_payload(booking, reviewee, rating=5, comment="Great experience, would rent again."):
    return {
        "booking_id": booking.id,
        "reviewee_id": reviewee.id,
        "rating": rating,
        "comment": comment,
    }


def test_renter_reviews_owner_and_rating_updates(
    auth_client, renter_user, owner_user, completed_booking
):
    resp = auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user, rating=4), format="json"
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["message"] == "Review submitted successfully"
    assert resp.data["data"]["reviewee"]["id"] == owner_user.id
    owner_user.refresh_from_db()
    assert owner_user.rating == Decimal("4.0")
    assert owner_user.total_reviews == 1


def test_owner_rating_is_averaged(
    auth_client, owner_user, renter_user, other_user, booking_factory, completed_booking
):
    second = booking_factory(
        renter=other_user,
        start_date=date(2024, 4, 1),
        end_date=date(2024, 4, 2),
        status=Booking.Status.COMPLETED,
    )
    auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user, 5), format="json"
    )
    auth_client(other_user).post(
        "/api/reviews/", review_payload(second, owner_user, 4), format="json"
    )

    owner_user.refresh_from_db()
    assert owner_user.rating == Decimal("4.5")
    assert owner_user.total_reviews == 2


def test_duplicate_review_conflicts(auth_client, renter_user, owner_user, completed_booking):
    client = auth_client(renter_user)
    client.post("/api/reviews/", review_payload(completed_booking, owner_user), format="json")

    resp = client.post(
        "/api/reviews/", review_payload(completed_booking, owner_user), format="json"
    )

    assert resp.status_code == 409
    assert Review.objects.count() == 1


def test_cannot_review_pending_booking(auth_client, renter_user, owner_user, booking_factory):
    booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 4))

    resp = auth_client(renter_user).post(
        "/api/reviews/", review_payload(booking, owner_user), format="json"
    )

    assert resp.status_code == 400
    assert resp.data["message"] == "You can only review completed bookings"


def test_outsider_cannot_review(auth_client, other_user, owner_user, completed_booking):
    resp = auth_client(other_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user), format="json"
    )
    assert resp.status_code == 403


def test_cannot_review_self(auth_client, renter_user, completed_booking):
    resp = auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, renter_user), format="json"
    )
    assert resp.status_code == 400
    assert resp.data["message"] == "Invalid reviewee for this booking"


def test_missing_booking(auth_client, renter_user, owner_user):
    resp = auth_client(renter_user).post(
        "/api/reviews/",
        {"booking_id": 777777, "reviewee_id": owner_user.id, "rating": 3},
        format="json",
    )
    assert resp.status_code == 404


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_bounds(auth_client, renter_user, owner_user, completed_booking, rating):
    resp = auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user, rating), format="json"
    )
    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"


def test_short_comment_rejected(auth_client, renter_user, owner_user, completed_booking):
    resp = auth_client(renter_user).post(
        "/api/reviews/",
        review_payload(completed_booking, owner_user, comment="ok"),
        format="json",
    )
    assert resp.status_code == 400


def test_list_reviews_publicly_filtered(
    api_client, auth_client, renter_user, owner_user, completed_booking
):
    auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user), format="json"
    )
    auth_client(owner_user).post(
        "/api/reviews/", review_payload(completed_booking, renter_user, 3), format="json"
    )

    resp = api_client.get("/api/reviews/", {"reviewee_id": owner_user.id})

    assert resp.status_code == 200
    assert len(resp.data["data"]) == 1
    assert resp.data["data"][0]["rating"] == 5
    assert resp.data["data"][0]["listing_title"] == completed_booking.listing.title


def test_create_requires_auth(api_client, owner_user, completed_booking):
    resp = api_client.post(
        "/api/reviews/", review_payload(completed_booking, owner_user), format="json"
    )
    assert resp.status_code == 401


def test_list_reviews_filtered_by_rating_and_booking(
    api_client, auth_client, renter_user, owner_user, completed_booking
):
    auth_client(renter_user).post(
        "/api/reviews/", review_payload(completed_booking, owner_user), format="json"
    )
    auth_client(owner_user).post(
        "/api/reviews/", review_payload(completed_booking, renter_user, 3), format="json"
    )

    resp = api_client.get(
        "/api/reviews/", {"booking_id": completed_booking.id, "rating": 3}
    )

    assert resp.status_code == 200
    assert [item["reviewee"]["id"] for item in resp.data["data"]] == [renter_user.id]


def test_list_reviews_rejects_non_numeric_filter(api_client):
    resp = api_client.get("/api/reviews/", {"reviewer_id": "someone"})

    assert resp.status_code == 400
    assert resp.data["error"] == "VALIDATION_ERROR"
