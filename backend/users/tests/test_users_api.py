"""Tests for signup, JWT login and profiles."""

from __future__ import annotations

from datetime import date

import pytest
from django.contrib.auth import get_user_model

from bookings.models import Booking

pytestmark = pytest.mark.django_db
User = get_user_model()


def test_signup_creates_user(api_client):
    resp = api_client.post(
        "/api/users/signup/",
        {
            "username": "newbie",
            "email": "Newbie@Example.com",
            "password": "s3cret-passphrase",
            "full_name": "New Bie",
        },
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["data"]["email"] == "newbie@example.com"
    assert "password" not in resp.data["data"]
    assert User.objects.get(username="newbie").check_password("s3cret-passphrase")


def test_signup_duplicate_email(api_client, owner_user):
    resp = api_client.post(
        "/api/users/signup/",
        {"username": "dupe", "email": owner_user.email.upper(), "password": "s3cret-passphrase"},
        format="json",
    )
    assert resp.status_code == 400
    assert resp.data["details"][0]["field"] == "email"


def test_token_login_and_me(api_client, owner_user):
    token_resp = api_client.post(
        "/api/users/token/",
        {"username": owner_user.username, "password": "testpass123"},
        format="json",
    )
    assert token_resp.status_code == 200
    access = token_resp.data["data"]["access"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    me = api_client.get("/api/users/me/")

    assert me.status_code == 200
    assert me.data["data"]["username"] == "owner"


def test_bad_credentials_rejected(api_client, owner_user):
    resp = api_client.post(
        "/api/users/token/",
        {"username": owner_user.username, "password": "wrong"},
        format="json",
    )
    assert resp.status_code >= 400
    assert resp.data["success"] is False
    assert "access" not in resp.data.get("data", {})


def test_me_requires_auth(api_client):
    resp = api_client.get("/api/users/me/")
    assert resp.status_code == 401
    assert resp.data["error"] == "AUTHENTICATION_ERROR"


def test_update_profile(auth_client, renter_user):
    resp = auth_client(renter_user).patch(
        "/api/users/me/", {"bio": "Weekend DIY fan", "rating": "5.0"}, format="json"
    )

    assert resp.status_code == 200
    renter_user.refresh_from_db()
    assert renter_user.bio == "Weekend DIY fan"
    assert renter_user.rating == 0


def test_public_profile_with_stats(api_client, owner_user, listing, booking_factory):
    booking_factory(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 3),
        status=Booking.Status.COMPLETED,
    )

    resp = api_client.get(f"/api/users/{owner_user.id}/", {"include_stats": "true"})

    assert resp.status_code == 200
    assert "email" not in resp.data["data"]
    assert resp.data["data"]["stats"] == {
        "active_listings": 1,
        "completed_rentals": 1,
        "reviews_received": 0,
    }


def test_avatar_placeholder(owner_user):
    assert owner_user.avatar.startswith("https://api.dicebear.com/")
    owner_user.avatar_url = "https://cdn.example.com/me.png"
    assert owner_user.avatar == "https://cdn.example.com/me.png"
