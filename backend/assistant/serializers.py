from __future__ import annotations

from rest_framework import serializers

from listings.models import Listing

CONTENT_TYPES = ("title", "description", "tags")
TONES = ("professional", "casual", "friendly", "technical")
LENGTHS = ("short", "medium", "long")


class ContentContextSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    condition = serializers.CharField(max_length=50, required=False, allow_blank=True)
    price_range = serializers.CharField(max_length=50, required=False, allow_blank=True)
    existing_content = serializers.CharField(max_length=5000, required=False, allow_blank=True)


class GenerateContentSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=CONTENT_TYPES)
    context = ContentContextSerializer(required=False)
    tone = serializers.ChoiceField(choices=TONES, default="friendly")
    length = serializers.ChoiceField(choices=LENGTHS, default="medium")


class PriceSuggestionSerializer(serializers.Serializer):
    category_id = serializers.IntegerField(min_value=1)
    condition = serializers.ChoiceField(choices=Listing.Condition.choices)
    location = serializers.CharField(max_length=500)
    description = serializers.CharField(max_length=5000, required=False, allow_blank=True)
    photos = serializers.ListField(
        child=serializers.URLField(max_length=1024),
        required=False,
        max_length=10,
    )
    comparable_listings = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        max_length=20,
    )
