from __future__ import annotations

import logging

from django.core.cache import cache
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotAuthenticated

from bookings.models import Booking
from core.envelope import success_response
from core.exceptions import AuthorizationError, BusinessRuleError, ConflictError, NotFoundError
from core.pagination import EnvelopePagination
from search.geo import Point

from . import tasks as listing_tasks
from .cache import featured_cache_key, featured_cache_timeout
from .models import Category, Listing
from .serializers import (
    CategorySerializer,
    ListingQuerySerializer,
    ListingSerializer,
    ListingWriteSerializer,
)
from .services import (
    FEATURED_DEFAULT_LIMIT,
    FEATURED_MAX_LIMIT,
    apply_listing_filters,
    archive_listing,
    base_listing_queryset,
    category_in_use,
    category_listing_counts,
    featured_listings,
    filter_by_tags,
    has_blocking_bookings,
    order_listings,
    parse_tags,
    restrict_to_bounding_box,
    within_radius,
)

logger = logging.getLogger(__name__)

PUBLIC_ACTIONS = {"list", "retrieve", "featured", "by_user", "listings"}


def _truthy(value) -> bool:
    return str(value or "").lower() in {"1", "true", "yes"}


def _int_param(raw, default: int) -> int:
    try:
        return int(raw) if raw not in (None, "") else default
    except (TypeError, ValueError):
        return default


class ListingPagination(EnvelopePagination):
    page_size = 20
    max_page_size = 100


class IsOwnerOrReadOnly(permissions.BasePermission):
    message = "You can only modify your own listings"

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return getattr(obj, "owner_id", None) == getattr(request.user, "id", None)


def _booking_preview(booking: Booking, *, show_renter: bool) -> dict:
    data = {
        "id": booking.id,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
        "status": booking.status,
    }
    if show_renter:
        data["renter"] = {
            "id": booking.renter_id,
            "username": booking.renter.username,
            "full_name": booking.renter.display_name,
        }
    return data


class ListingViewSet(viewsets.ModelViewSet):
    serializer_class = ListingSerializer
    pagination_class = ListingPagination
    permission_classes = [permissions.IsAuthenticatedOrReadOnly, IsOwnerOrReadOnly]

    def get_permissions(self):
        if getattr(self, "action", None) in PUBLIC_ACTIONS:
            return [permissions.AllowAny()]
        return [permission() for permission in self.permission_classes]

    def get_queryset(self):
        return base_listing_queryset()

    def get_object(self):
        obj = get_object_or_404(self.get_queryset(), pk=self.kwargs["pk"])
        if not obj.is_visible_to(self.request.user):
            raise NotFoundError("Listing not found")
        self.check_object_permissions(self.request, obj)
        return obj

    def list(self, request, *args, **kwargs):
        query = ListingQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        params = query.validated_data

        owner_id = None
        owner_param = params.get("owner")
        if owner_param == "me":
            if not request.user.is_authenticated:
                raise NotAuthenticated()
            owner_id = request.user.id
        elif owner_param:
            owner_id = _int_param(owner_param, -1)

        # non-active listings are only listed for their owner
        is_own = owner_id is not None and owner_id == getattr(request.user, "id", None)
        if is_own:
            listing_status = params.get("status")
        else:
            listing_status = Listing.Status.ACTIVE

        qs = apply_listing_filters(
            self.get_queryset(),
            category=params.get("category"),
            location=params.get("location"),
            min_price=params.get("minPrice"),
            max_price=params.get("maxPrice"),
            condition=params.get("condition"),
            status=listing_status,
            featured=params.get("featured"),
            owner_id=owner_id,
        )

        center = None
        if params.get("latitude") is not None:
            center = Point(params["latitude"], params["longitude"])
            qs = restrict_to_bounding_box(qs, center, params["radius"])
        qs = order_listings(qs, params["sortBy"], params["sortOrder"])

        tags = parse_tags(params.get("tags"))
        results = qs
        if tags or center is not None:
            results = filter_by_tags(qs, tags)
            if center is not None:
                results = within_radius(results, center, params["radius"])

        page = self.paginate_queryset(results)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = ListingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        listing = serializer.save(owner=request.user)
        logger.info("listings: user %s created listing %s", request.user.id, listing.pk)
        listing = self.get_queryset().get(pk=listing.pk)
        return success_response(
            self.get_serializer(listing).data,
            "Listing created successfully",
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        listing = self.get_object()
        user = request.user
        is_owner = user.is_authenticated and user.id == listing.owner_id

        bookings = list(
            listing.bookings.select_related("renter").order_by("start_date")
            if is_owner
            else listing.bookings.filter(
                status__in=(Booking.Status.CONFIRMED, Booking.Status.ACTIVE)
            ).order_by("start_date")
        )
        data = dict(self.get_serializer(listing).data)
        data["bookings"] = [_booking_preview(b, show_renter=is_owner) for b in bookings]
        data["_count"] = {
            "bookings": listing.bookings.count(),
            "reviews": listing.bookings.aggregate(total=Count("reviews"))["total"] or 0,
        }

        if not is_owner:
            try:
                listing_tasks.track_listing_view.delay(listing.id)
            except Exception:
                logger.info(
                    "listings: could not queue track_listing_view",
                    extra={"listing_id": listing.id},
                    exc_info=True,
                )
        return success_response(data)

    def update(self, request, *args, **kwargs):
        listing = self.get_object()
        serializer = ListingWriteSerializer(listing, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        listing = self.get_queryset().get(pk=listing.pk)
        return success_response(self.get_serializer(listing).data, "Listing updated successfully")

    def destroy(self, request, *args, **kwargs):
        listing = self.get_object()
        if has_blocking_bookings(listing):
            raise ConflictError("Cannot delete listing with active bookings")
        if listing.status != Listing.Status.ARCHIVED:
            archive_listing(listing)
        return success_response(None, "Listing deleted successfully")

    def permission_denied(self, request, message=None, code=None):
        if request.authenticators and not request.successful_authenticator:
            return super().permission_denied(request, message=message, code=code)
        raise AuthorizationError(message or "You can only modify your own listings")

    @action(detail=False, methods=["get"], url_path="featured")
    def featured(self, request):
        """Top listings by featured score, cached per query string."""
        key = featured_cache_key(request.query_params)
        payload = cache.get(key)
        if payload is None:
            limit = min(
                _int_param(request.query_params.get("limit"), FEATURED_DEFAULT_LIMIT),
                FEATURED_MAX_LIMIT,
            )
            listings = featured_listings(
                limit=limit,
                category=request.query_params.get("category") or None,
            )
            payload = []
            for listing in listings:
                item = dict(self.get_serializer(listing).data)
                item["_stats"] = {
                    "bookings_count": listing.booking_count,
                    "avg_rating": float(listing.owner.rating or 0),
                    "view_count": listing.views_count,
                }
                payload.append(item)
            cache.set(key, payload, featured_cache_timeout())
        return success_response(payload, f"Found {len(payload)} featured listings")

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>\d+)")
    def by_user(self, request, user_id=None):
        qs = self.get_queryset().filter(owner_id=int(user_id))
        if getattr(request.user, "id", None) != int(user_id):
            qs = qs.filter(status=Listing.Status.ACTIVE)
        else:
            status_param = request.query_params.get("status")
            if status_param in Listing.Status.values:
                qs = qs.filter(status=status_param)
        page = self.paginate_queryset(qs.order_by("-created_at", "-id"))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


class IsStaffOrReadOnly(permissions.BasePermission):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_staff)


class CategoryViewSet(viewsets.ModelViewSet):
    """Category tree; writes are restricted to staff."""

    queryset = Category.objects.all().order_by("name")
    serializer_class = CategorySerializer
    permission_classes = [IsStaffOrReadOnly]
    pagination_class = ListingPagination

    def get_object(self):
        return get_object_or_404(
            Category.objects.select_related("parent"),
            pk=self.kwargs["pk"],
        )

    def _with_counts(self, items: list[dict]) -> list[dict]:
        counts = category_listing_counts([item["id"] for item in items])
        for item in items:
            item["counts"] = counts.get(item["id"], {"listings": 0, "active_listings": 0})
        return items

    def list(self, request, *args, **kwargs):
        params = request.query_params
        qs = self.get_queryset()
        parent_id = params.get("parent_id")
        if parent_id:
            qs = qs.filter(parent_id=_int_param(parent_id, -1))
        else:
            qs = qs.filter(parent__isnull=True)

        data = [dict(item) for item in self.get_serializer(qs, many=True).data]
        if _truthy(params.get("include_children")):
            children = Category.objects.filter(parent_id__in=[item["id"] for item in data])
            by_parent: dict[int, list[dict]] = {}
            for child in self.get_serializer(children.order_by("name"), many=True).data:
                by_parent.setdefault(child["parent_id"], []).append(dict(child))
            for item in data:
                item["children"] = by_parent.get(item["id"], [])
        if _truthy(params.get("include_counts")):
            self._with_counts(data)
        return success_response(data)

    def retrieve(self, request, *args, **kwargs):
        category = self.get_object()
        data = dict(self.get_serializer(category).data)
        data["parent"] = (
            self.get_serializer(category.parent).data if category.parent is not None else None
        )
        data["children"] = self.get_serializer(category.children.order_by("name"), many=True).data
        self._with_counts([data])
        return success_response(data)

    def _ensure_unique_slug(self, slug, *, exclude_pk=None) -> None:
        if not slug:
            return
        qs = Category.objects.filter(slug=slug)
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        if qs.exists():
            raise ConflictError("Category slug already exists")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self._ensure_unique_slug(serializer.validated_data.get("slug"))
        category = serializer.save()
        return success_response(
            self.get_serializer(category).data,
            "Category created successfully",
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        category = self.get_object()
        parent_id = request.data.get("parent_id")
        if parent_id is not None and str(parent_id) == str(category.pk):
            raise BusinessRuleError("Category cannot be its own parent")
        serializer = self.get_serializer(category, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self._ensure_unique_slug(serializer.validated_data.get("slug"), exclude_pk=category.pk)
        category = serializer.save()
        return success_response(self.get_serializer(category).data, "Category updated successfully")

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        reason = category_in_use(category)
        if reason:
            raise ConflictError(reason)
        category.delete()
        return success_response(None, "Category deleted successfully")

    @action(detail=True, methods=["get"], url_path="listings")
    def listings(self, request, pk=None):
        category = self.get_object()
        qs = (
            base_listing_queryset()
            .filter(Q(category=category) | Q(category__parent=category))
            .filter(status=Listing.Status.ACTIVE)
        )
        sort_by = request.query_params.get("sortBy", "created_at")
        sort_order = request.query_params.get("sortOrder", "desc")
        page = self.paginate_queryset(order_listings(qs, sort_by, sort_order))
        data = ListingSerializer(page, many=True).data
        return self.get_paginated_response(data)
