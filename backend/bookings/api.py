"""API viewsets and permissions for bookings."""

from __future__ import annotations

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action

from core.envelope import success_response
from core.exceptions import AuthorizationError, BusinessRuleError
from core.pagination import EnvelopePagination
from listings.models import Listing

from .domain import BLOCKING_STATUSES, apply_booking_update, cancel_booking, create_booking
from .filters import BookingFilter
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingQuerySerializer,
    BookingSerializer,
    BookingUpdateSerializer,
)

logger = logging.getLogger(__name__)


class IsBookingParticipant(permissions.BasePermission):
    """Allow access only to users tied to the booking."""

    message = "You can only view your own bookings"

    def has_object_permission(self, request, view, obj: Booking) -> bool:
        return obj.is_participant(request.user)


class BookingPagination(EnvelopePagination):
    page_size = 10


class BookingViewSet(viewsets.ModelViewSet):
    """Booking requests and their lifecycle."""

    serializer_class = BookingSerializer
    pagination_class = BookingPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilter
    permission_classes = (permissions.IsAuthenticated, IsBookingParticipant)

    def get_queryset(self):
        user = self.request.user
        if not user.is_authenticated:
            return Booking.objects.none()
        return Booking.objects.select_related(
            "listing",
            "listing__category",
            "owner",
            "renter",
        ).filter(Q(owner=user) | Q(renter=user))

    def get_object(self):
        obj = get_object_or_404(
            Booking.objects.select_related("listing", "listing__category", "owner", "renter"),
            pk=self.kwargs["pk"],
        )
        self.check_object_permissions(self.request, obj)
        return obj

    def permission_denied(self, request, message=None, code=None):
        if request.authenticators and not request.successful_authenticator:
            return super().permission_denied(request, message=message, code=code)
        raise AuthorizationError(message)

    def _reload(self, booking: Booking) -> dict:
        fresh = self.get_queryset().get(pk=booking.pk)
        return self.get_serializer(fresh).data

    def list(self, request, *args, **kwargs):
        query = BookingQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        params = query.validated_data

        qs = self.filter_queryset(self.get_queryset())

        prefix = "" if params["sortOrder"] == "asc" else "-"
        qs = qs.order_by(f"{prefix}{params['sortBy']}", f"{prefix}id")

        page = self.paginate_queryset(qs)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = create_booking(
            listing_id=data["listing_id"],
            renter=request.user,
            start_date=data["start_date"],
            end_date=data["end_date"],
            total_price=data["total_price"],
            notes=data.get("notes", ""),
        )
        return success_response(
            self._reload(booking),
            "Booking request created successfully",
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return success_response(self.get_serializer(self.get_object()).data)

    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = apply_booking_update(booking, request.user, **serializer.validated_data)
        return success_response(self._reload(booking), "Booking updated successfully")

    def destroy(self, request, *args, **kwargs):
        booking = self.get_object()
        booking = cancel_booking(booking, request.user)
        return success_response(self._reload(booking), "Booking cancelled successfully")

    @action(
        detail=False,
        methods=["get"],
        url_path="availability",
        permission_classes=[permissions.AllowAny],
    )
    def availability(self, request, *args, **kwargs):
        """Return the blocked inclusive date ranges for a listing."""
        listing_param = request.query_params.get("listing_id") or request.query_params.get(
            "listing"
        )
        if not listing_param:
            raise BusinessRuleError("listing_id query parameter is required")
        try:
            listing_id = int(listing_param)
        except (TypeError, ValueError):
            raise BusinessRuleError("listing_id must be a valid integer")

        listing = get_object_or_404(
            Listing.objects.filter(status=Listing.Status.ACTIVE),
            pk=listing_id,
        )
        ranges = (
            Booking.objects.filter(listing=listing, status__in=BLOCKING_STATUSES)
            .order_by("start_date", "end_date")
            .values("start_date", "end_date", "status")
        )
        payload = [
            {
                "start_date": item["start_date"].isoformat(),
                "end_date": item["end_date"].isoformat(),
                "status": item["status"],
            }
            for item in ranges
        ]
        return success_response({"listing_id": listing.pk, "booked_ranges": payload})
