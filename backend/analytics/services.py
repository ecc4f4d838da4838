"""Marketplace and personal analytics built from listings, bookings and search logs."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from django.db.models import Avg, Count, Q, QuerySet, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from bookings.domain import rental_days
from bookings.models import Booking
from listings.models import Listing, ListingAnalytics
from listings.services import category_q
from search.models import SearchQueryLog
from search.services import city_area

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90, "1y": 365}
PERSONAL_TIMEFRAME_MONTHS = {"1m": 1, "3m": 3, "6m": 6, "1y": 12}
MARKET_METRICS = ("market_pulse", "search_trends", "pricing", "categories", "locations")

SAMPLE_SIZE = 1000
RECENT_ACTIVITY_LIMIT = 10
TOP_SEARCHES = 10
TOP_CATEGORIES = 8
TOP_AREAS = 5
TOP_FAVORITES = 5
# rough purchase price of a rented item, in days of rent
PURCHASE_PRICE_DAYS = 15

SPENDING_STATUSES = (
    Booking.Status.CONFIRMED,
    Booking.Status.ACTIVE,
    Booking.Status.COMPLETED,
)


def whole(value) -> int:
    return int(Decimal(str(value or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def _day_start(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, datetime.min.time()))


# --- Market ---


def _daily_series(since: date) -> dict[date, dict[str, Any]]:
    series: dict[date, dict[str, Any]] = defaultdict(
        lambda: {"views": 0, "clicks": 0, "bookings": 0, "revenue": Decimal("0")}
    )
    engagement = (
        ListingAnalytics.objects.filter(date__gte=since)
        .values("date")
        .annotate(views=Sum("views"), clicks=Sum("clicks"))
    )
    for row in engagement:
        series[row["date"]]["views"] = row["views"] or 0
        series[row["date"]]["clicks"] = row["clicks"] or 0

    booking_rows = (
        Booking.objects.filter(created_at__gte=_day_start(since))
        .exclude(status=Booking.Status.CANCELLED)
        .annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(bookings=Count("id"), revenue=Sum("total_price"))
    )
    for row in booking_rows:
        series[row["day"]]["bookings"] = row["bookings"]
        series[row["day"]]["revenue"] = row["revenue"] or Decimal("0")
    return series


def market_pulse(*, since: date, now: datetime) -> dict[str, Any]:
    today = timezone.localdate(now)
    series = _daily_series(since)
    current = series.get(today, {})
    previous = series.get(today - timedelta(days=1), {})

    recent = (
        Booking.objects.filter(created_at__gte=now - timedelta(days=1))
        .select_related("listing", "renter")
        .order_by("-created_at")[:RECENT_ACTIVITY_LIMIT]
    )
    return {
        "activity": {
            "active_listings": Listing.objects.filter(status=Listing.Status.ACTIVE).count(),
            "total_views": current.get("views", 0),
            "total_clicks": current.get("clicks", 0),
            "total_bookings": current.get("bookings", 0),
            "total_revenue": float(current.get("revenue", 0)),
        },
        "trends": {
            "views_change": percent_change(current.get("views", 0), previous.get("views", 0)),
            "bookings_change": percent_change(
                current.get("bookings", 0), previous.get("bookings", 0)
            ),
        },
        "recent_activity": [
            {
                "id": booking.pk,
                "type": "booking",
                "description": f"{booking.renter.display_name} booked {booking.listing.title}",
                "location": (booking.listing.address or "").split(",")[0].strip() or "Unknown",
                "time": booking.created_at.isoformat(),
                "amount": float(booking.total_price),
            }
            for booking in recent
        ],
        "daily": [
            {
                "date": day.isoformat(),
                "views": values["views"],
                "clicks": values["clicks"],
                "bookings": values["bookings"],
                "revenue": float(values["revenue"]),
            }
            for day, values in sorted(series.items())
        ],
    }


def search_trends(*, since: date) -> dict[str, Any]:
    rows = list(
        SearchQueryLog.objects.filter(created_at__gte=_day_start(since))
        .order_by("-created_at")
        .values_list("query", "results_count")[:SAMPLE_SIZE]
    )
    counts: Counter[str] = Counter()
    results: Counter[str] = Counter()
    for query, results_count in rows:
        term = (query or "").strip().lower()
        if not term:
            continue
        counts[term] += 1
        results[term] += results_count or 0

    popular = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:TOP_SEARCHES]
    total_results = sum(results_count or 0 for _, results_count in rows)
    return {
        "popular_searches": [
            {"term": term, "count": count, "avg_results": whole(results[term] / count)}
            for term, count in popular
        ],
        "total_searches": len(rows),
        "avg_results_per_search": whole(total_results / len(rows)) if rows else 0,
    }


def market_listings(
    *, category: Optional[str] = None, location: Optional[str] = None
) -> QuerySet[Listing]:
    qs = Listing.objects.filter(status=Listing.Status.ACTIVE)
    if category:
        qs = qs.filter(category_q(category))
    if location:
        qs = qs.filter(address__icontains=location)
    return qs


def pricing(listings: QuerySet[Listing]) -> dict[str, Any]:
    rows = list(listings.values_list("price_per_day", "category__name")[:SAMPLE_SIZE])
    by_category: dict[str, list[Decimal]] = defaultdict(list)
    for price, category_name in rows:
        by_category[category_name or "Other"].append(price)
    prices = [price for price, _ in rows]
    return {
        "avg_price": whole(sum(prices) / len(prices)) if prices else 0,
        "min_price": float(min(prices)) if prices else 0,
        "max_price": float(max(prices)) if prices else 0,
        "price_distribution": sorted(
            (
                {
                    "category": name,
                    "avg_price": whole(sum(values) / len(values)),
                    "min_price": float(min(values)),
                    "max_price": float(max(values)),
                    "count": len(values),
                }
                for name, values in by_category.items()
            ),
            key=lambda item: (-item["count"], item["category"]),
        ),
    }


def category_performance(listings: QuerySet[Listing]) -> list[dict[str, Any]]:
    rows = (
        listings.values("category__name")
        .annotate(listings_count=Count("id"), avg_price=Avg("price_per_day"))
        .order_by("-listings_count", "category__name")[:TOP_CATEGORIES]
    )
    return [
        {
            "name": row["category__name"] or "Other",
            "listings_count": row["listings_count"],
            "avg_price": whole(row["avg_price"]),
        }
        for row in rows
    ]


def top_areas(listings: QuerySet[Listing]) -> dict[str, Any]:
    areas: dict[str, list[Decimal]] = defaultdict(list)
    for address, price in listings.exclude(address="").values_list("address", "price_per_day")[
        :SAMPLE_SIZE
    ]:
        area = city_area(address)
        if area:
            areas[area].append(price)
    ranked = sorted(areas.items(), key=lambda item: (-len(item[1]), item[0]))[:TOP_AREAS]
    return {
        "top_areas": [
            {"name": name, "listings": len(prices), "avg_price": whole(sum(prices) / len(prices))}
            for name, prices in ranked
        ]
    }


def market_analytics(
    *,
    timeframe: str = "30d",
    metrics: Iterable[str] = ("market_pulse",),
    category: Optional[str] = None,
    location: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Aggregate marketplace activity over ``timeframe`` for the requested metrics.

    ``category`` and ``location`` narrow the listing based sections (pricing,
    categories, locations); the activity and search sections are marketplace wide.
    """
    now = now or timezone.now()
    since = timezone.localdate(now) - timedelta(days=TIMEFRAME_DAYS[timeframe])
    metrics = set(metrics)
    listings = market_listings(category=category, location=location)

    data: dict[str, Any] = {}
    if "market_pulse" in metrics:
        data["market_pulse"] = market_pulse(since=since, now=now)
    if "search_trends" in metrics:
        data["search_trends"] = search_trends(since=since)
    if "pricing" in metrics:
        data["pricing"] = pricing(listings)
    if "categories" in metrics:
        data["categories"] = category_performance(listings)
    if "locations" in metrics:
        data["locations"] = top_areas(listings)
    data["metadata"] = {
        "timeframe": timeframe,
        "since": since.isoformat(),
        "generated_at": now.isoformat(),
    }
    logger.debug("analytics: market metrics %s over %s", sorted(metrics), timeframe)
    return data


# --- Personal ---


def months_back(today: date, months: int) -> date:
    """First day of the month ``months`` before ``today``'s month."""
    year, month = divmod(today.year * 12 + today.month - 1 - months, 12)
    return date(year, month + 1, 1)


def _listing_performance(user, since: date) -> list[dict[str, Any]]:
    listings = {
        listing.pk: listing
        for listing in Listing.objects.filter(owner=user).exclude(status=Listing.Status.ARCHIVED)
    }
    if not listings:
        return []
    engagement = {
        row["listing_id"]: row
        for row in ListingAnalytics.objects.filter(listing_id__in=list(listings), date__gte=since)
        .values("listing_id")
        .annotate(views=Sum("views"), clicks=Sum("clicks"))
    }
    bookings = {
        row["listing_id"]: row
        for row in Booking.objects.filter(
            listing_id__in=list(listings), created_at__gte=_day_start(since)
        )
        .values("listing_id")
        .annotate(
            requests=Count("id"),
            earned=Sum("total_price", filter=Q(status__in=SPENDING_STATUSES)),
        )
    }
    rows = []
    for listing_id, listing in listings.items():
        views = (engagement.get(listing_id) or {}).get("views") or 0
        clicks = (engagement.get(listing_id) or {}).get("clicks") or 0
        booked = bookings.get(listing_id) or {}
        rows.append(
            {
                "listing_id": listing_id,
                "title": listing.title,
                "views": views,
                "clicks": clicks,
                "click_through_rate": round(clicks / views * 100, 1) if views else 0.0,
                "booking_requests": booked.get("requests", 0),
                "earnings": float(booked.get("earned") or 0),
            }
        )
    rows.sort(key=lambda item: (-item["views"], item["listing_id"]))
    return rows


def personal_analytics(
    user, *, timeframe: str = "6m", now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    Rental, search and listing activity for ``user`` since the start of the
    month ``timeframe`` back. Cancelled bookings do not count as spending.
    """
    now = now or timezone.now()
    since = months_back(timezone.localdate(now), PERSONAL_TIMEFRAME_MONTHS[timeframe])

    rentals = list(
        Booking.objects.filter(
            renter=user,
            status__in=SPENDING_STATUSES,
            created_at__gte=_day_start(since),
        )
        .select_related("listing", "listing__category")
        .order_by("-created_at")
    )
    searches = list(
        SearchQueryLog.objects.filter(user=user, created_at__gte=_day_start(since)).values_list(
            "query", flat=True
        )
    )

    total_spent = sum((booking.total_price for booking in rentals), Decimal("0"))
    purchase_cost = sum(
        (booking.listing.price_per_day * PURCHASE_PRICE_DAYS for booking in rentals),
        Decimal("0"),
    )
    savings = purchase_cost - total_spent
    avg_price = total_spent / len(rentals) if rentals else Decimal("0")

    categories: Counter[str] = Counter()
    monthly: dict[str, Decimal] = defaultdict(Decimal)
    for booking in rentals:
        category = booking.listing.category
        categories[category.name if category else "Other"] += 1
        monthly[timezone.localtime(booking.created_at).strftime("%Y-%m")] += booking.total_price
    terms = Counter(term.strip().lower() for term in searches if term and term.strip())

    market_avg = Listing.objects.filter(status=Listing.Status.ACTIVE).aggregate(
        avg=Avg("price_per_day")
    )["avg"]
    market_avg_price = whole(market_avg)
    your_avg_price = whole(avg_price)

    return {
        "user_stats": {
            "total_rentals": len(rentals),
            "total_spent": whole(total_spent),
            "total_savings": whole(savings),
            "avg_rental_price": your_avg_price,
            "savings_rate": whole(savings / purchase_cost * 100) if purchase_cost else 0,
        },
        "rental_patterns": {
            "favorite_categories": [
                {"category": name, "count": count}
                for name, count in sorted(categories.items(), key=lambda item: (-item[1], item[0]))[
                    :TOP_FAVORITES
                ]
            ],
            "monthly_spending": [
                {"month": month, "amount": whole(amount)}
                for month, amount in sorted(monthly.items())
            ],
            "avg_rental_duration": whole(
                sum(rental_days(b.start_date, b.end_date) for b in rentals) / len(rentals)
            )
            if rentals
            else 0,
        },
        "search_insights": {
            "total_searches": len(searches),
            "top_search_terms": [
                {"term": term, "count": count}
                for term, count in sorted(terms.items(), key=lambda item: (-item[1], item[0]))[
                    :TOP_SEARCHES
                ]
            ],
            "search_to_booking_ratio": whole(len(rentals) / len(searches) * 100)
            if searches and rentals
            else 0,
        },
        "listing_performance": _listing_performance(user, since),
        "market_comparison": {
            "your_avg_price": your_avg_price,
            "market_avg_price": market_avg_price,
            "price_efficiency_score": whole(market_avg_price / your_avg_price * 100)
            if your_avg_price
            else 100,
        },
        "metadata": {
            "timeframe": timeframe,
            "since": since.isoformat(),
            "generated_at": now.isoformat(),
            "data_points": len(rentals) + len(searches),
        },
    }
