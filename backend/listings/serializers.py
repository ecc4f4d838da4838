from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from search.geo import parse_point
from users.serializers import UserSummarySerializer

from .models import Category, Listing, slug_validator
from .services import LISTING_SORT_FIELDS

MONEY = {"max_digits": 10, "decimal_places": 2}


class CategorySummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    slug = serializers.CharField(read_only=True)
    icon = serializers.CharField(read_only=True)


class CategorySerializer(serializers.ModelSerializer):
    parent_id = serializers.PrimaryKeyRelatedField(
        source="parent",
        queryset=Category.objects.all(),
        required=False,
        allow_null=True,
    )
    slug = serializers.CharField(max_length=100, validators=[slug_validator])

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "icon", "parent_id", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        parent = attrs.get("parent")
        if self.instance is not None and parent is not None and parent.pk == self.instance.pk:
            raise serializers.ValidationError({"parent_id": ["Category cannot be its own parent"]})
        return attrs


class LocationField(serializers.Field):
    """Accepts {lat, lng}, WKT POINT(lng lat) or GeoJSON; renders {lat, lng}."""

    default_error_messages = {"invalid": "Enter a valid location."}

    def to_internal_value(self, data):
        point = parse_point(data)
        if point is None:
            self.fail("invalid")
        return point

    def to_representation(self, value):
        return value


class ListingSerializer(serializers.Serializer):
    """Public read shape of a listing."""

    id = serializers.IntegerField()
    title = serializers.CharField()
    description = serializers.CharField()
    price_per_day = serializers.DecimalField(**MONEY)
    price_per_week = serializers.DecimalField(allow_null=True, **MONEY)
    price_per_month = serializers.DecimalField(allow_null=True, **MONEY)
    deposit_amount = serializers.DecimalField(**MONEY)
    condition = serializers.CharField()
    address = serializers.CharField()
    location = serializers.DictField(allow_null=True)
    photos = serializers.ListField(child=serializers.CharField())
    tags = serializers.ListField(child=serializers.CharField())
    availability = serializers.DictField()
    status = serializers.CharField()
    featured = serializers.BooleanField()
    views_count = serializers.IntegerField()
    category = CategorySummarySerializer()
    owner = UserSummarySerializer()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        distance = getattr(instance, "distance_km", None)
        if distance is not None:
            data["distance_km"] = distance
        return data


class ListingWriteSerializer(serializers.ModelSerializer):
    """Validate listing create/update payloads."""

    category_id = serializers.IntegerField()
    title = serializers.CharField(min_length=1, max_length=200)
    description = serializers.CharField(min_length=10, max_length=5000)
    price_per_day = serializers.DecimalField(min_value=Decimal("0.01"), **MONEY)
    price_per_week = serializers.DecimalField(
        min_value=Decimal("0.01"), required=False, allow_null=True, **MONEY
    )
    price_per_month = serializers.DecimalField(
        min_value=Decimal("0.01"), required=False, allow_null=True, **MONEY
    )
    deposit_amount = serializers.DecimalField(min_value=Decimal("0"), required=False, **MONEY)
    address = serializers.CharField(min_length=5, max_length=500)
    location = LocationField()
    photos = serializers.ListField(
        child=serializers.URLField(max_length=1024),
        min_length=1,
        max_length=10,
    )
    tags = serializers.ListField(
        child=serializers.CharField(min_length=1, max_length=50),
        max_length=20,
        required=False,
    )
    availability = serializers.DictField(child=serializers.BooleanField(), required=False)

    class Meta:
        model = Listing
        fields = [
            "category_id",
            "title",
            "description",
            "price_per_day",
            "price_per_week",
            "price_per_month",
            "deposit_amount",
            "condition",
            "address",
            "location",
            "photos",
            "tags",
            "availability",
            "status",
        ]

    def validate_category_id(self, value: int) -> int:
        if not Category.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Invalid category ID")
        return value

    def _apply_location(self, validated_data: dict) -> dict:
        point = validated_data.pop("location", None)
        if point is not None:
            validated_data["latitude"] = point.lat
            validated_data["longitude"] = point.lng
        return validated_data

    def create(self, validated_data: dict) -> Listing:
        return super().create(self._apply_location(validated_data))

    def update(self, instance: Listing, validated_data: dict) -> Listing:
        return super().update(instance, self._apply_location(validated_data))


class ListingQuerySerializer(serializers.Serializer):
    """Query-string parameters accepted by GET /listings."""

    category = serializers.CharField(required=False)
    location = serializers.CharField(required=False)
    minPrice = serializers.DecimalField(required=False, min_value=Decimal("0"), **MONEY)
    maxPrice = serializers.DecimalField(required=False, min_value=Decimal("0"), **MONEY)
    condition = serializers.ChoiceField(choices=Listing.Condition.choices, required=False)
    tags = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=Listing.Status.choices, required=False)
    featured = serializers.BooleanField(allow_null=True, default=None)
    owner = serializers.CharField(required=False)
    sortBy = serializers.ChoiceField(choices=LISTING_SORT_FIELDS, default="created_at")
    sortOrder = serializers.ChoiceField(choices=("asc", "desc"), default="desc")
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=1, max_value=100, default=10)

    def validate(self, attrs):
        has_lat = attrs.get("latitude") is not None
        has_lng = attrs.get("longitude") is not None
        if has_lat != has_lng:
            raise serializers.ValidationError(
                {"latitude": ["latitude and longitude must be provided together"]}
            )
        min_price, max_price = attrs.get("minPrice"), attrs.get("maxPrice")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise serializers.ValidationError({"minPrice": ["minPrice cannot exceed maxPrice"]})
        return attrs
