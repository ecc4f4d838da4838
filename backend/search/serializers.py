"""Query parameter and result serializers for search."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from listings.models import Listing
from listings.serializers import ListingSerializer

MONEY = {"max_digits": 10, "decimal_places": 2}
SEARCH_SORT_FIELDS = ("relevance", "price_per_day", "created_at", "distance")
SUGGESTION_TYPES = ("all", "categories", "locations", "items")


class SearchQuerySerializer(serializers.Serializer):
    query = serializers.CharField(max_length=200, required=False, allow_blank=True)
    category = serializers.CharField(required=False)
    location = serializers.CharField(required=False)
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=1, max_value=100, default=10)
    minPrice = serializers.DecimalField(required=False, min_value=Decimal("0"), **MONEY)
    maxPrice = serializers.DecimalField(required=False, min_value=Decimal("0"), **MONEY)
    condition = serializers.ChoiceField(choices=Listing.Condition.choices, required=False)
    tags = serializers.CharField(required=False)
    available_from = serializers.DateField(required=False)
    available_to = serializers.DateField(required=False)
    sortBy = serializers.ChoiceField(choices=SEARCH_SORT_FIELDS, default="relevance")
    sortOrder = serializers.ChoiceField(choices=("asc", "desc"), required=False)

    def validate(self, attrs):
        if (attrs.get("latitude") is None) != (attrs.get("longitude") is None):
            raise serializers.ValidationError(
                {"latitude": ["latitude and longitude must be provided together"]}
            )
        start, end = attrs.get("available_from"), attrs.get("available_to")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"available_to": ["available_to must not be before available_from"]}
            )
        return attrs


class SuggestionQuerySerializer(serializers.Serializer):
    query = serializers.CharField(max_length=100, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=SUGGESTION_TYPES, default="all")
    limit = serializers.IntegerField(min_value=1, max_value=20, default=10)


class SearchResultSerializer(ListingSerializer):
    def to_representation(self, instance):
        data = super().to_representation(instance)
        score = getattr(instance, "relevance_score", None)
        if score is not None:
            data["relevance_score"] = score
        return data
