"""API tests for categories."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model

from listings.models import Category

pytestmark = pytest.mark.django_db


@pytest.fixture
def staff_user():
    return get_user_model().objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


def test_list_returns_root_categories_with_children(api_client, category):
    Category.objects.create(name="Drills", slug="drills", parent=category)

    resp = api_client.get("/api/categories/", {"include_children": "true"})

    assert resp.status_code == 200
    assert [item["slug"] for item in resp.data["data"]] == ["tools"]
    assert [child["slug"] for child in resp.data["data"][0]["children"]] == ["drills"]


def test_list_with_counts(api_client, category, listing_factory):
    listing_factory()
    listing_factory(status="draft")

    resp = api_client.get("/api/categories/", {"include_counts": "1"})

    assert resp.data["data"][0]["counts"] == {"listings": 2, "active_listings": 1}


def test_create_requires_staff(auth_client, owner_user):
    resp = auth_client(owner_user).post(
        "/api/categories/", {"name": "Cameras", "slug": "cameras"}, format="json"
    )
    assert resp.status_code == 403


def test_staff_creates_category(auth_client, staff_user):
    resp = auth_client(staff_user).post(
        "/api/categories/", {"name": "Cameras", "slug": "cameras"}, format="json"
    )
    assert resp.status_code == 201, resp.data
    assert Category.objects.filter(slug="cameras").exists()


def test_duplicate_slug_conflicts(auth_client, staff_user, category):
    resp = auth_client(staff_user).post(
        "/api/categories/", {"name": "More tools", "slug": "tools"}, format="json"
    )
    assert resp.status_code == 409
    assert resp.data["message"] == "Category slug already exists"


def test_category_cannot_be_its_own_parent(auth_client, staff_user, category):
    resp = auth_client(staff_user).patch(
        f"/api/categories/{category.id}/", {"parent_id": category.id}, format="json"
    )
    assert resp.status_code == 400


def test_delete_in_use_category_conflicts(auth_client, staff_user, listing):
    resp = auth_client(staff_user).delete(f"/api/categories/{listing.category_id}/")
    assert resp.status_code == 409


def test_delete_unused_category(auth_client, staff_user):
    empty = Category.objects.create(name="Empty", slug="empty")
    resp = auth_client(staff_user).delete(f"/api/categories/{empty.id}/")
    assert resp.status_code == 200
    assert not Category.objects.filter(pk=empty.pk).exists()


def test_category_listings_include_subcategories(api_client, category, listing_factory):
    child = Category.objects.create(name="Saws", slug="saws", parent=category)
    top = listing_factory(title="Drill")
    nested = listing_factory(title="Saw", category=child)

    resp = api_client.get(f"/api/categories/{category.id}/listings/")

    assert resp.status_code == 200
    assert {item["id"] for item in resp.data["data"]} == {top.id, nested.id}
