"""Listing search and autocomplete suggestions."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from django.db.models import Count, Q

from bookings.domain import BLOCKING_STATUSES
from bookings.models import Booking
from listings.models import Category, Listing
from listings.services import (
    apply_listing_filters,
    base_listing_queryset,
    filter_by_tags,
    restrict_to_bounding_box,
    within_radius,
)

from .geo import Point
from .ranking import score_listing

logger = logging.getLogger(__name__)

SUGGESTION_SOURCE_LIMIT = 5
TAG_SAMPLE_SIZE = 100
TOP_TAGS = 3


@dataclass
class SearchParams:
    query: str = ""
    category: Optional[str] = None
    location: Optional[str] = None
    center: Optional[Point] = None
    radius_km: float = 10
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    condition: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    available_from: Optional[date] = None
    available_to: Optional[date] = None
    sort_by: str = "relevance"
    sort_order: Optional[str] = None

    def log_filters(self) -> dict[str, Any]:
        price_range = None
        if self.min_price is not None or self.max_price is not None:
            price_range = [
                float(self.min_price) if self.min_price is not None else None,
                float(self.max_price) if self.max_price is not None else None,
            ]
        return {
            "category": self.category,
            "location": self.location,
            "price_range": price_range,
            "condition": self.condition,
        }


def unavailable_listing_ids(available_from: date, available_to: date) -> set[int]:
    """Listings holding a blocking booking that overlaps the inclusive window."""
    return set(
        Booking.objects.filter(
            status__in=BLOCKING_STATUSES,
            start_date__lte=available_to,
            end_date__gte=available_from,
        ).values_list("listing_id", flat=True)
    )


def _text_prefilter(query: str) -> Q:
    return (
        Q(title__icontains=query)
        | Q(description__icontains=query)
        | Q(category__name__icontains=query)
    )


def search_listings(params: SearchParams) -> list[Listing]:
    """
    Run a search and return the matching active listings in display order.

    Text matching is case-insensitive over title, description, tags and category
    name. Each returned listing carries ``relevance_score`` when a query was
    given and ``distance_km`` when a centre point was.
    """
    query = (params.query or "").strip()
    qs = apply_listing_filters(
        base_listing_queryset(),
        category=params.category,
        location=params.location if params.center is None else None,
        min_price=params.min_price,
        max_price=params.max_price,
        condition=params.condition,
        status=Listing.Status.ACTIVE,
    )
    if params.available_from and params.available_to:
        blocked = unavailable_listing_ids(params.available_from, params.available_to)
        if blocked:
            qs = qs.exclude(pk__in=blocked)
    if params.center is not None:
        qs = restrict_to_bounding_box(qs, params.center, params.radius_km)

    if params.sort_order:
        descending = params.sort_order == "desc"
    else:
        descending = params.sort_by != "distance"
    if params.sort_by == "price_per_day":
        prefix = "-" if descending else ""
        qs = qs.order_by(f"{prefix}price_per_day", f"{prefix}id")
    else:
        qs = qs.order_by("-created_at", "-id")

    if query:
        # tags are JSON so their match is decided after the fetch
        tagged_ids = _ids_with_matching_tag(qs, query)
        qs = qs.filter(_text_prefilter(query) | Q(pk__in=tagged_ids))

    results = filter_by_tags(qs, params.tags)
    if params.center is not None:
        results = within_radius(results, params.center, params.radius_km)

    if query:
        for listing in results:
            listing.relevance_score = score_listing(query, listing)

    if params.sort_by == "relevance" and query:
        results.sort(key=lambda item: item.relevance_score, reverse=True)
    elif params.sort_by == "distance" and params.center is not None:
        results.sort(key=lambda item: item.distance_km, reverse=descending)
    elif params.sort_by == "created_at" and not descending:
        results.reverse()
    return results


def _ids_with_matching_tag(qs, query: str) -> list[int]:
    needle = query.lower()
    return [
        pk
        for pk, tags in qs.values_list("pk", "tags")
        if any(needle in str(tag).lower() for tag in (tags or []))
    ]


# --- Suggestions ---


def _category_suggestions(term: str, limit: int) -> list[dict[str, Any]]:
    categories = (
        Category.objects.filter(name__icontains=term)
        .annotate(
            active_count=Count("listings", filter=Q(listings__status=Listing.Status.ACTIVE))
        )
        .order_by("name")[: min(limit, SUGGESTION_SOURCE_LIMIT)]
    )
    return [
        {
            "type": "category",
            "value": category.slug,
            "display": category.name,
            "count": category.active_count,
            "icon": category.icon or None,
        }
        for category in categories
    ]


def city_area(address: str) -> Optional[str]:
    parts = address.split(",")
    if len(parts) < 2:
        return None
    return parts[-2].strip() or None


def _location_suggestions(term: str, limit: int) -> list[dict[str, Any]]:
    active = Listing.objects.filter(status=Listing.Status.ACTIVE)
    addresses = (
        active.filter(address__icontains=term)
        .exclude(address="")
        .values_list("address", flat=True)[: min(limit, SUGGESTION_SOURCE_LIMIT)]
    )
    areas: list[str] = []
    for address in addresses:
        area = city_area(address)
        if area and term in area.lower() and area not in areas:
            areas.append(area)
    return [
        {
            "type": "location",
            "value": area,
            "display": area,
            "count": active.filter(address__icontains=area).count(),
        }
        for area in areas[:SUGGESTION_SOURCE_LIMIT]
    ]


def _item_suggestions(term: str, limit: int) -> list[dict[str, Any]]:
    items = (
        Listing.objects.filter(status=Listing.Status.ACTIVE)
        .filter(Q(title__icontains=term) | Q(description__icontains=term))
        .order_by("-created_at")
        .values("title", "price_per_day")[: min(limit, SUGGESTION_SOURCE_LIMIT)]
    )
    return [
        {
            "type": "item",
            "value": item["title"],
            "display": f"{item['title']} - ${item['price_per_day']}/day",
            "count": 1,
        }
        for item in items
    ]


def _tag_suggestions(term: str) -> list[dict[str, Any]]:
    counts: Counter[str] = Counter()
    sample = Listing.objects.filter(status=Listing.Status.ACTIVE).values_list("tags", flat=True)[
        :TAG_SAMPLE_SIZE
    ]
    for tags in sample:
        for tag in tags or []:
            if term in str(tag).lower():
                counts[str(tag)] += 1
    return [
        {"type": "tag", "value": tag, "display": f"#{tag}", "count": count}
        for tag, count in counts.most_common(TOP_TAGS)
    ]


def search_suggestions(query: str, *, kind: str = "all", limit: int = 10) -> list[dict[str, Any]]:
    """
    Autocomplete suggestions for a partial query.

    Ordered exact display match first, then by count descending, then
    alphabetically. Queries shorter than two characters yield nothing.
    """
    term = (query or "").strip().lower()
    if len(term) < 2:
        return []

    suggestions: list[dict[str, Any]] = []
    if kind in ("all", "categories"):
        suggestions.extend(_category_suggestions(term, limit))
    if kind in ("all", "locations"):
        suggestions.extend(_location_suggestions(term, limit))
    if kind in ("all", "items"):
        suggestions.extend(_item_suggestions(term, limit))
    if kind == "all":
        suggestions.extend(_tag_suggestions(term))

    suggestions.sort(
        key=lambda item: (
            item["display"].lower() != term,
            -(item.get("count") or 0),
            item["display"].lower(),
        )
    )
    return suggestions[:limit]
