"""API tests for content generation and price suggestions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
import responses

from assistant import tasks as assistant_tasks
from assistant.models import AIUsageLog
from assistant.pricing import PricingRequest, seasonal_adjustments, suggest_price
from listings.models import Category, Listing

pytestmark = pytest.mark.django_db

BASE_URL = "https://llm.example.test/api/v1"


@pytest.fixture
def usage_logs(monkeypatch):
    calls = []
    monkeypatch.setattr(
        assistant_tasks.log_ai_usage,
        "delay",
        lambda *args, **kwargs: calls.append((args, kwargs)),
    )
    return calls


@pytest.fixture
def llm(settings):
    settings.OPENROUTER_API_KEY = "test-key"
    settings.OPENROUTER_BASE_URL = BASE_URL
    with responses.RequestsMock() as rsps:
        yield rsps


def reply(text):
    return {"choices": [{"message": {"content": text}}]}


def test_generate_title_uses_ai_and_alternatives(auth_client, owner_user, llm, usage_logs):
    llm.add(responses.POST, f"{BASE_URL}/chat/completions", json=reply("Premium Quality Drill"))
    llm.add(
        responses.POST,
        f"{BASE_URL}/chat/completions",
        json=reply("Handy drill for weekend jobs\nProfessional-grade cordless drill\nExtra"),
    )

    resp = auth_client(owner_user).post(
        "/api/ai/generate-content/",
        {"type": "title", "context": {"category": "tools"}, "tone": "professional"},
        format="json",
    )

    assert resp.status_code == 200, resp.data
    data = resp.data["data"]
    assert data["generated_content"] == "Premium Quality Drill"
    assert data["source"] == "ai"
    assert data["tone_score"] == 9.0
    assert data["alternatives"] == [
        "Handy drill for weekend jobs",
        "Professional-grade cordless drill",
    ]
    (args, kwargs), = usage_logs
    assert args == (owner_user.id, AIUsageLog.Action.GENERATE_CONTENT)
    assert kwargs["success"] is True


def test_generate_falls_back_to_template_on_failure(auth_client, owner_user, llm, usage_logs):
    llm.add(responses.POST, f"{BASE_URL}/chat/completions", json={"error": "down"}, status=500)

    resp = auth_client(owner_user).post(
        "/api/ai/generate-content/",
        {"type": "description", "context": {"condition": "good"}},
        format="json",
    )

    assert resp.status_code == 200
    data = resp.data["data"]
    assert data["source"] == "template"
    assert data["tone_score"] == 7.0
    assert "In good condition." in data["generated_content"]
    assert usage_logs[0][1]["success"] is False


def test_generate_without_key_uses_template(auth_client, owner_user, settings, usage_logs):
    settings.OPENROUTER_API_KEY = ""

    resp = auth_client(owner_user).post(
        "/api/ai/generate-content/",
        {"type": "title", "context": {"category": "Camera"}},
        format="json",
    )

    assert resp.data["data"]["generated_content"] == "Premium Camera Available for Rent"


def test_generate_validates_type(auth_client, owner_user):
    resp = auth_client(owner_user).post(
        "/api/ai/generate-content/", {"type": "poem"}, format="json"
    )
    assert resp.status_code == 400


def test_generate_requires_auth(api_client):
    resp = api_client.post("/api/ai/generate-content/", {"type": "title"}, format="json")
    assert resp.status_code == 401


def test_price_suggestion_from_market(auth_client, owner_user, listing_factory, usage_logs):
    for price in ("10.00", "20.00", "30.00"):
        listing_factory(price_per_day=Decimal(price))

    resp = auth_client(owner_user).post(
        "/api/ai/price-suggestions/",
        {
            "category_id": Category.objects.get(slug="tools").id,
            "condition": "good",
            "location": "Springfield",
        },
        format="json",
    )

    assert resp.status_code == 200, resp.data
    pricing = resp.data["data"]["pricing"]
    assert pricing["suggested_price"] == 20
    assert pricing["price_range"] == {"min": 16, "max": 25}
    assert pricing["market_analysis"]["comparable_count"] == 3
    assert pricing["confidence_score"] == 1


def test_price_suggestion_unknown_category(auth_client, owner_user):
    resp = auth_client(owner_user).post(
        "/api/ai/price-suggestions/",
        {"category_id": 4321, "condition": "good", "location": "Springfield"},
        format="json",
    )
    assert resp.status_code == 400
    assert resp.data["message"] == "Invalid category ID"


def test_fallback_pricing_without_comparables():
    cameras = Category.objects.create(name="Cameras", slug="cameras")
    result = suggest_price(PricingRequest(category=cameras, condition="new"))

    assert result["suggested_price"] == 46
    assert result["confidence_score"] == 3
    assert result["market_analysis"]["comparable_count"] == 0


def test_condition_multiplier_and_specific_comparables(listing_factory):
    picked = listing_factory(price_per_day=Decimal("40.00"))
    listing_factory(price_per_day=Decimal("20.00"))
    request = PricingRequest(
        category=picked.category,
        condition="good",
        comparable_listings=[picked.id],
    )

    result = suggest_price(request, today=date(2024, 1, 15))

    # market average 30, blended with the selected comparable at 40
    assert result["suggested_price"] == 35
    assert "1 specifically selected comparables" in result["factors_considered"]


def test_seasonal_adjustments():
    assert seasonal_adjustments("outdoor", today=date(2024, 7, 1))["current_modifier"] == 1.15
    assert seasonal_adjustments("outdoor", today=date(2024, 1, 1))["current_modifier"] == 0.9
    assert seasonal_adjustments("tools", today=date(2024, 7, 1))["current_modifier"] == 1.0


def test_only_active_listings_are_comparables(listing_factory):
    base = listing_factory(price_per_day=Decimal("10.00"))
    listing_factory(price_per_day=Decimal("90.00"), status=Listing.Status.DRAFT)

    result = suggest_price(PricingRequest(category=base.category, condition="good"))

    assert result["market_analysis"]["comparable_count"] == 1
