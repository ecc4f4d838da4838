from __future__ import annotations

from rest_framework import serializers

from users.serializers import UserSummarySerializer

REVIEW_SORT_FIELDS = ("created_at", "rating")


class ReviewSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    booking_id = serializers.IntegerField()
    listing_id = serializers.IntegerField(source="booking.listing_id")
    listing_title = serializers.CharField(source="booking.listing.title")
    rating = serializers.IntegerField()
    comment = serializers.CharField()
    created_at = serializers.DateTimeField()
    reviewer = UserSummarySerializer()
    reviewee = UserSummarySerializer()


class ReviewCreateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)
    reviewee_id = serializers.IntegerField(min_value=1)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(
        min_length=10,
        max_length=1000,
        required=False,
        allow_blank=True,
    )


class ReviewQuerySerializer(serializers.Serializer):
    sortBy = serializers.ChoiceField(choices=REVIEW_SORT_FIELDS, default="created_at")
    sortOrder = serializers.ChoiceField(choices=("asc", "desc"), default="desc")
