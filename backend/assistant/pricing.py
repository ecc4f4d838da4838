"""Daily price suggestions from comparable listings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from django.utils import timezone

from listings.models import Category, Listing

MARKET_SAMPLE_SIZE = 100

CONDITION_MULTIPLIERS = {
    "new": 1.2,
    "like_new": 1.1,
    "good": 1.0,
    "fair": 0.85,
    "poor": 0.7,
}

FALLBACK_CONDITION_MULTIPLIERS = {
    "new": 1.3,
    "like_new": 1.15,
    "good": 1.0,
    "fair": 0.8,
    "poor": 0.6,
}

CATEGORY_BASE_PRICES = {
    "tools": 15,
    "electronics": 25,
    "furniture": 20,
    "vehicles": 45,
    "sporting-goods": 18,
    "musical-instruments": 30,
    "cameras": 35,
    "kitchen": 12,
    "outdoor": 22,
    "gaming": 20,
}
DEFAULT_BASE_PRICE = 20

# zero-based months, May through September
PEAK_MONTHS = (4, 5, 6, 7, 8)


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class PricingRequest:
    category: Category
    condition: str
    location: str = ""
    description: str = ""
    photos: Sequence[str] = ()
    comparable_listings: Sequence[int] = ()


@dataclass
class MarketData:
    prices: list[float]
    specific_prices: list[float]


def analyze_market(request: PricingRequest) -> MarketData:
    qs = Listing.objects.filter(category=request.category, status=Listing.Status.ACTIVE)
    if request.condition:
        qs = qs.filter(condition=request.condition)
    prices = [
        float(price)
        for price in qs.order_by("-created_at").values_list("price_per_day", flat=True)[
            :MARKET_SAMPLE_SIZE
        ]
    ]
    specific_prices: list[float] = []
    if request.comparable_listings:
        specific_prices = [
            float(price)
            for price in Listing.objects.filter(
                pk__in=list(request.comparable_listings),
                status=Listing.Status.ACTIVE,
            ).values_list("price_per_day", flat=True)
        ]
    return MarketData(prices=prices, specific_prices=specific_prices)


def confidence_score(comparable_count: int, request: PricingRequest) -> int:
    score = 0
    if comparable_count >= 20:
        score += 4
    elif comparable_count >= 10:
        score += 3
    elif comparable_count >= 5:
        score += 2
    elif comparable_count >= 1:
        score += 1
    if request.photos:
        score += 1
    if request.description and len(request.description) > 50:
        score += 1
    if request.comparable_listings:
        score += 1
    return min(10, max(1, score))


def recommendations(suggested: float, average: float, condition: str, confidence: int) -> list[str]:
    items = []
    if suggested > average * 1.2:
        items.append(
            "Price is above market average - consider highlighting unique features to "
            "justify premium pricing"
        )
    elif suggested < average * 0.8:
        items.append(
            "Price is below market average - you may be able to increase pricing for "
            "better returns"
        )
    else:
        items.append("Price is well-aligned with market average")

    if condition in ("new", "like_new"):
        items.append("Premium condition allows for higher pricing - emphasize quality in your listing")
    elif condition in ("fair", "poor"):
        items.append(
            "Competitive pricing recommended due to condition - highlight value proposition"
        )
    if confidence < 5:
        items.append(
            "Limited market data - monitor initial responses and adjust pricing accordingly"
        )
    items.append("Consider offering weekly/monthly discounts to attract longer rentals")
    return items


def seasonal_adjustments(category_key: str, *, today: Optional[date] = None) -> dict[str, Any]:
    month = (today or timezone.localdate()).month - 1
    in_peak = month in PEAK_MONTHS
    if category_key == "outdoor":
        return {
            "current_modifier": 1.15 if in_peak else 0.9,
            "peak_season": "Summer (May-September)",
            "low_season": "Winter (October-April)",
        }
    if category_key == "sporting-goods":
        return {
            "current_modifier": 1.1 if in_peak else 0.95,
            "peak_season": "Spring/Summer",
            "low_season": "Fall/Winter",
        }
    return {
        "current_modifier": 1.0,
        "peak_season": "Year-round demand",
        "low_season": "Consistent pricing",
    }


def _category_key(category: Category) -> str:
    return (category.slug or category.name or "").strip().lower()


def fallback_pricing(request: PricingRequest) -> dict[str, Any]:
    """Baseline suggestion when no comparable listings exist."""
    base = CATEGORY_BASE_PRICES.get(_category_key(request.category), DEFAULT_BASE_PRICE)
    suggested = round_half_up(base * FALLBACK_CONDITION_MULTIPLIERS.get(request.condition, 1.0))
    return {
        "suggested_price": suggested,
        "confidence_score": 3,
        "price_range": {
            "min": round_half_up(suggested * 0.7),
            "max": round_half_up(suggested * 1.4),
        },
        "market_analysis": {
            "average_price": base,
            "median_price": base,
            "price_distribution": {
                "low": round_half_up(base * 0.7),
                "medium": base,
                "high": round_half_up(base * 1.3),
            },
            "comparable_count": 0,
        },
        "factors_considered": [
            "Category baseline pricing",
            f"Condition: {request.condition}",
            "Industry standard multipliers",
        ],
        "recommendations": [
            "Limited market data available - consider researching competitor pricing",
            "Start with suggested price and adjust based on demand",
            "Monitor booking requests to optimize pricing",
        ],
    }


def suggest_price(request: PricingRequest, *, today: Optional[date] = None) -> dict[str, Any]:
    """
    Suggest a daily price from active listings in the same category and condition.

    Averages the market sample, applies the condition multiplier and, when the
    caller picked specific comparables, blends in their mean.
    """
    market = analyze_market(request)
    prices = market.prices
    if not prices:
        return fallback_pricing(request)

    average = sum(prices) / len(prices)
    ordered = sorted(prices)
    median = ordered[len(ordered) // 2]
    low = ordered[int(len(ordered) * 0.25)]
    high = ordered[int(len(ordered) * 0.75)]

    suggested = round_half_up(average * CONDITION_MULTIPLIERS.get(request.condition, 1.0))
    if market.specific_prices:
        specific_average = sum(market.specific_prices) / len(market.specific_prices)
        suggested = round_half_up((suggested + specific_average) / 2)

    confidence = confidence_score(len(prices), request)
    factors = [
        f"{len(prices)} comparable listings analyzed",
        f"Condition: {request.condition}",
        "Market average pricing",
        "Category-specific factors",
    ]
    if market.specific_prices:
        factors.append(f"{len(market.specific_prices)} specifically selected comparables")

    return {
        "suggested_price": suggested,
        "confidence_score": confidence,
        "price_range": {
            "min": round_half_up(suggested * 0.8),
            "max": round_half_up(suggested * 1.25),
        },
        "market_analysis": {
            "average_price": round_half_up(average),
            "median_price": round_half_up(median),
            "price_distribution": {
                "low": round_half_up(low),
                "medium": round_half_up(median),
                "high": round_half_up(high),
            },
            "comparable_count": len(prices),
        },
        "factors_considered": factors,
        "recommendations": recommendations(suggested, average, request.condition, confidence),
        "seasonal_adjustments": seasonal_adjustments(_category_key(request.category), today=today),
    }
