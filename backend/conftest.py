"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from bookings.models import Booking
from listings.models import Category, Listing

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """DRF API client for request/response helpers."""
    return APIClient()


@pytest.fixture
def auth_client():
    """Return a factory producing an APIClient authenticated as ``user``."""

    def _client(user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


def _create_user(username: str, **extra) -> User:
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        **extra,
    )


@pytest.fixture
def owner_user():
    return _create_user("owner", full_name="Olive Owner", verified=True)


@pytest.fixture
def renter_user():
    return _create_user("renter", full_name="Ray Renter")


@pytest.fixture
def other_user():
    return _create_user("other", full_name="Otto Other")


@pytest.fixture
def category():
    return Category.objects.create(name="Tools", slug="tools", icon="wrench")


@pytest.fixture
def listing_factory(owner_user, category) -> Callable[..., Listing]:
    def _create_listing(**overrides) -> Listing:
        fields = {
            "owner": owner_user,
            "category": category,
            "title": "Cordless Drill",
            "description": "18V cordless drill with two batteries and a charger.",
            "price_per_day": Decimal("20.00"),
            "deposit_amount": Decimal("50.00"),
            "condition": Listing.Condition.GOOD,
            "address": "12 Main Street, Springfield, USA",
            "latitude": 40.7128,
            "longitude": -74.0060,
            "photos": ["https://example.com/drill.jpg"],
            "tags": ["drill", "power-tools"],
            "status": Listing.Status.ACTIVE,
        }
        fields.update(overrides)
        return Listing.objects.create(**fields)

    return _create_listing


@pytest.fixture
def listing(listing_factory):
    return listing_factory()


@pytest.fixture
def booking_factory(listing, renter_user) -> Callable[..., Booking]:
    def _create_booking(
        *,
        listing_override: Listing | None = None,
        renter=None,
        start_date: date,
        end_date: date,
        status: str = Booking.Status.PENDING,
        total_price: Decimal | None = None,
        **extra_fields,
    ) -> Booking:
        selected_listing = listing_override or listing
        days = max((end_date - start_date).days, 1)
        return Booking.objects.create(
            listing=selected_listing,
            owner=selected_listing.owner,
            renter=renter or renter_user,
            start_date=start_date,
            end_date=end_date,
            status=status,
            total_price=total_price
            if total_price is not None
            else selected_listing.price_per_day * days,
            **extra_fields,
        )

    return _create_booking
