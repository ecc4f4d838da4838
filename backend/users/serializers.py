from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

logger = logging.getLogger(__name__)
User = get_user_model()


class UserSummarySerializer(serializers.Serializer):
    """Compact, public view of a user embedded in listings, bookings and reviews."""

    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    full_name = serializers.CharField(source="display_name", read_only=True)
    avatar_url = serializers.CharField(source="avatar", read_only=True)
    rating = serializers.DecimalField(max_digits=2, decimal_places=1, read_only=True)
    verified = serializers.BooleanField(read_only=True)


class ProfileSerializer(serializers.ModelSerializer):
    """The authenticated user's own profile."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "phone",
            "bio",
            "avatar_url",
            "address",
            "rating",
            "total_reviews",
            "verified",
            "date_joined",
        ]
        read_only_fields = (
            "id",
            "username",
            "rating",
            "total_reviews",
            "verified",
            "date_joined",
        )

    def validate_email(self, value: str) -> str:
        value = (value or "").strip().lower()
        if value and User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value


class PublicProfileSerializer(serializers.ModelSerializer):
    """Limited profile details that are safe to expose publicly."""

    avatar_url = serializers.CharField(source="avatar", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "full_name",
            "bio",
            "avatar_url",
            "rating",
            "total_reviews",
            "verified",
            "date_joined",
        ]
        read_only_fields = tuple(fields)


class SignupSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    email = serializers.EmailField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "password", "full_name", "phone"]

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def create(self, validated_data: dict) -> User:
        password = validated_data.pop("password")
        user = User.objects.create_user(password=password, **validated_data)
        logger.info("users: account %s created", user.pk)
        return user
