"""Serializers for booking-related API endpoints."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from listings.serializers import CategorySummarySerializer
from users.serializers import UserSummarySerializer

from .models import Booking

MONEY = {"max_digits": 10, "decimal_places": 2}
# Client totals keep full precision; the booking domain applies the price tolerance.
CLIENT_TOTAL = {"max_digits": None, "decimal_places": None}
BOOKING_SORT_FIELDS = ("created_at", "start_date", "end_date", "total_price")


class BookingListingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    price_per_day = serializers.DecimalField(**MONEY)
    photos = serializers.ListField(child=serializers.CharField())
    address = serializers.CharField()
    owner_id = serializers.IntegerField()
    category = CategorySummarySerializer()


class BookingSerializer(serializers.Serializer):
    """Read shape of a booking with both parties and a listing summary."""

    id = serializers.IntegerField()
    listing_id = serializers.IntegerField()
    renter_id = serializers.IntegerField()
    owner_id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_price = serializers.DecimalField(**MONEY)
    status = serializers.CharField()
    notes = serializers.CharField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()
    listing = BookingListingSerializer()
    renter = UserSummarySerializer()
    owner = UserSummarySerializer()


class BookingCreateSerializer(serializers.Serializer):
    listing_id = serializers.IntegerField(min_value=1)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_price = serializers.DecimalField(min_value=Decimal("0"), **CLIENT_TOTAL)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs["start_date"] >= attrs["end_date"]:
            raise serializers.ValidationError({"end_date": ["End date must be after start date"]})
        return attrs


class BookingUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    total_price = serializers.DecimalField(min_value=Decimal("0"), required=False, **CLIENT_TOTAL)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start >= end:
            raise serializers.ValidationError({"end_date": ["End date must be after start date"]})
        if "total_price" in attrs and not (start or end):
            raise serializers.ValidationError(
                {"total_price": ["total_price can only be sent together with new dates"]}
            )
        if not attrs:
            raise serializers.ValidationError("No changes supplied")
        return attrs


class BookingQuerySerializer(serializers.Serializer):
    """Ordering parameters; field filters live in BookingFilter."""

    sortBy = serializers.ChoiceField(choices=BOOKING_SORT_FIELDS, default="created_at")
    sortOrder = serializers.ChoiceField(choices=("asc", "desc"), default="desc")
