"""Query helpers shared by the listings, categories and search endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from django.db.models import Count, F, Q, QuerySet, Sum
from django.utils import timezone

from bookings.domain import BLOCKING_STATUSES
from bookings.models import Booking
from search.geo import Point, bounding_box, haversine_km

from .models import Category, Listing, ListingAnalytics

logger = logging.getLogger(__name__)

LISTING_SORT_FIELDS = ("created_at", "price_per_day", "title", "updated_at")
FEATURED_DEFAULT_LIMIT = 12
FEATURED_MAX_LIMIT = 50
FEATURED_WINDOW_DAYS = 30


def parse_tags(raw: Optional[str | Sequence[str]]) -> list[str]:
    """Split a comma-separated tag string into normalized, de-duplicated tags."""
    if not raw:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    seen: list[str] = []
    for part in parts:
        tag = str(part).strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def category_q(value: str, prefix: str = "category") -> Q:
    """Match a category by numeric id or by slug."""
    value = (value or "").strip()
    if value.isdigit():
        return Q(**{f"{prefix}_id": int(value)})
    return Q(**{f"{prefix}__slug": value})


def base_listing_queryset() -> QuerySet[Listing]:
    return Listing.objects.select_related("owner", "category")


def apply_listing_filters(
    qs: QuerySet[Listing],
    *,
    category: Optional[str] = None,
    location: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    condition: Optional[str] = None,
    status: Optional[str] = Listing.Status.ACTIVE,
    featured: Optional[bool] = None,
    owner_id: Optional[int] = None,
) -> QuerySet[Listing]:
    if status:
        qs = qs.filter(status=status)
    if category:
        qs = qs.filter(category_q(category))
    if location:
        qs = qs.filter(address__icontains=location)
    if min_price is not None:
        qs = qs.filter(price_per_day__gte=min_price)
    if max_price is not None:
        qs = qs.filter(price_per_day__lte=max_price)
    if condition:
        qs = qs.filter(condition=condition)
    if featured is not None:
        qs = qs.filter(featured=featured)
    if owner_id is not None:
        qs = qs.filter(owner_id=owner_id)
    return qs


def order_listings(qs: QuerySet[Listing], sort_by: str, sort_order: str) -> QuerySet[Listing]:
    if sort_by not in LISTING_SORT_FIELDS:
        sort_by = "created_at"
    prefix = "" if sort_order == "asc" else "-"
    return qs.order_by(f"{prefix}{sort_by}", f"{prefix}id")


def filter_by_tags(listings: Iterable[Listing], tags: Sequence[str]) -> list[Listing]:
    """Keep listings sharing at least one tag with ``tags`` (case-insensitive)."""
    wanted = {tag.lower() for tag in tags}
    if not wanted:
        return list(listings)
    return [
        listing
        for listing in listings
        if wanted.intersection(str(tag).lower() for tag in (listing.tags or []))
    ]


def restrict_to_bounding_box(
    qs: QuerySet[Listing], center: Point, radius_km: float
) -> QuerySet[Listing]:
    min_lat, max_lat, min_lng, max_lng = bounding_box(center, radius_km)
    return qs.filter(
        latitude__isnull=False,
        longitude__isnull=False,
        latitude__gte=min_lat,
        latitude__lte=max_lat,
        longitude__gte=min_lng,
        longitude__lte=max_lng,
    )


def listing_point(listing: Listing) -> Optional[Point]:
    if listing.latitude is None or listing.longitude is None:
        return None
    return Point(listing.latitude, listing.longitude)


def within_radius(
    listings: Iterable[Listing], center: Point, radius_km: float
) -> list[Listing]:
    """
    Keep listings inside ``radius_km`` of ``center``.

    Each kept listing gets a ``distance_km`` attribute rounded to two decimals.
    """
    kept: list[Listing] = []
    for listing in listings:
        point = listing_point(listing)
        if point is None:
            continue
        distance = haversine_km(center, point)
        if distance <= radius_km:
            listing.distance_km = round(distance, 2)
            kept.append(listing)
    return kept


def has_blocking_bookings(listing: Listing) -> bool:
    return listing.bookings.filter(status__in=BLOCKING_STATUSES).exists()


def archive_listing(listing: Listing) -> Listing:
    listing.status = Listing.Status.ARCHIVED
    listing.save(update_fields=["status", "updated_at"])
    logger.info("listings: listing %s archived", listing.pk)
    return listing


def record_listing_view(listing_id: int, *, on_date: Optional[date] = None) -> bool:
    """Bump the listing's lifetime view count and today's analytics row."""
    on_date = on_date or timezone.localdate()
    updated = Listing.objects.filter(pk=listing_id).update(views_count=F("views_count") + 1)
    if not updated:
        return False
    row, created = ListingAnalytics.objects.get_or_create(
        listing_id=listing_id,
        date=on_date,
        defaults={"views": 1},
    )
    if not created:
        ListingAnalytics.objects.filter(pk=row.pk).update(views=F("views") + 1)
    return True


# --- Categories ---


def category_listing_counts(category_ids: Sequence[int]) -> dict[int, dict[str, int]]:
    rows = (
        Listing.objects.filter(category_id__in=category_ids)
        .values("category_id")
        .annotate(
            listings=Count("id"),
            active_listings=Count("id", filter=Q(status=Listing.Status.ACTIVE)),
        )
    )
    counts = {category_id: {"listings": 0, "active_listings": 0} for category_id in category_ids}
    for row in rows:
        counts[row["category_id"]] = {
            "listings": row["listings"],
            "active_listings": row["active_listings"],
        }
    return counts


def category_in_use(category: Category) -> Optional[str]:
    """Return why a category cannot be deleted, or None when it can."""
    if category.children.exists():
        return "Cannot delete category with subcategories"
    if category.listings.exists():
        return "Cannot delete category with listings"
    return None


# --- Featured ---


@dataclass
class FeaturedStats:
    booking_count: int = 0
    views: int = 0
    clicks: int = 0


def featured_score(
    listing: Listing,
    stats: FeaturedStats,
    *,
    now: Optional[datetime] = None,
) -> int:
    """
    Rank a listing for the featured shelf on a 0-100 scale.

    Owner verification 20, owner rating 15, bookings 25, views 15, click-through 10,
    photos 10, description 10, recency 5.
    """
    now = now or timezone.now()
    owner = listing.owner
    score = 0.0

    if owner.verified:
        score += 20
    if owner.rating:
        score += float(owner.rating) / 5 * 15

    score += min(stats.booking_count * 5, 25)
    score += min(stats.views / 100, 15)
    ctr = stats.clicks / stats.views if stats.views > 0 else 0
    score += ctr * 10

    score += min(len(listing.photos or []) * 2, 10)
    score += min(len(listing.description or "") / 100, 10)

    days_since_created = (now - listing.created_at).days if listing.created_at else None
    if days_since_created is not None and days_since_created <= FEATURED_WINDOW_DAYS:
        score += max(5 - (days_since_created / FEATURED_WINDOW_DAYS) * 5, 0)

    return round(score)


def _featured_stats(listing_ids: Sequence[int], since: date) -> dict[int, FeaturedStats]:
    stats = {listing_id: FeaturedStats() for listing_id in listing_ids}
    booking_rows = (
        Booking.objects.filter(
            listing_id__in=listing_ids,
            status__in=(
                Booking.Status.CONFIRMED,
                Booking.Status.ACTIVE,
                Booking.Status.COMPLETED,
            ),
        )
        .values("listing_id")
        .annotate(total=Count("id"))
    )
    for row in booking_rows:
        stats[row["listing_id"]].booking_count = row["total"]

    analytics_rows = (
        ListingAnalytics.objects.filter(listing_id__in=listing_ids, date__gte=since)
        .values("listing_id")
        .annotate(views=Sum("views"), clicks=Sum("clicks"))
    )
    for row in analytics_rows:
        stats[row["listing_id"]].views = row["views"] or 0
        stats[row["listing_id"]].clicks = row["clicks"] or 0
    return stats


def featured_listings(
    *, limit: int = FEATURED_DEFAULT_LIMIT, category: Optional[str] = None
) -> list[Listing]:
    """Return the top ``limit`` active listings by featured score."""
    limit = max(1, min(limit, FEATURED_MAX_LIMIT))
    qs = base_listing_queryset().filter(status=Listing.Status.ACTIVE).exclude(description="")
    if category:
        qs = qs.filter(category_q(category))
    candidates = list(qs.order_by("-created_at")[: limit * 3])
    if not candidates:
        return []

    now = timezone.now()
    since = (now - timedelta(days=FEATURED_WINDOW_DAYS)).date()
    stats = _featured_stats([listing.pk for listing in candidates], since)
    for listing in candidates:
        listing.featured_score = featured_score(listing, stats[listing.pk], now=now)
        listing.booking_count = stats[listing.pk].booking_count
    candidates.sort(key=lambda item: item.featured_score, reverse=True)
    return candidates[:limit]
