from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from bookings.models import Booking
from core.envelope import success_response
from listings.models import Listing
from reviews.models import Review

from .serializers import ProfileSerializer, PublicProfileSerializer, SignupSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class SignupView(generics.CreateAPIView):
    """Public signup endpoint."""

    queryset = User.objects.all()
    serializer_class = SignupSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return success_response(
            ProfileSerializer(user).data,
            "Account created successfully",
            status=status.HTTP_201_CREATED,
        )


class TokenObtainView(TokenObtainPairView):
    """Issue an access/refresh JWT pair inside the response envelope."""

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        return success_response(response.data)


class TokenRefreshEnvelopeView(TokenRefreshView):
    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        return success_response(response.data)


class MeView(generics.RetrieveUpdateAPIView):
    """Authenticated profile view for the current user."""

    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ["get", "patch", "put"]

    def get_object(self):
        user = self.request.user
        self.check_object_permissions(self.request, user)
        return user

    def retrieve(self, request, *args, **kwargs):
        return success_response(self.get_serializer(self.get_object()).data)

    def update(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return success_response(serializer.data, "Profile updated successfully")


class PublicProfileView(generics.RetrieveAPIView):
    """Public profile with optional activity counts (``include_stats=true``)."""

    queryset = User.objects.filter(is_active=True)
    serializer_class = PublicProfileSerializer
    permission_classes = [permissions.AllowAny]

    def retrieve(self, request, *args, **kwargs):
        user = get_object_or_404(self.get_queryset(), pk=kwargs["pk"])
        data = dict(self.get_serializer(user).data)
        if request.query_params.get("include_stats", "").lower() in {"1", "true", "yes"}:
            data["stats"] = user_stats(user)
        return success_response(data)


def user_stats(user) -> dict[str, int]:
    return {
        "active_listings": Listing.objects.filter(
            owner=user, status=Listing.Status.ACTIVE
        ).count(),
        "completed_rentals": Booking.objects.filter(
            Q(renter=user) | Q(owner=user),
            status=Booking.Status.COMPLETED,
        ).count(),
        "reviews_received": Review.objects.filter(reviewee=user).count(),
    }
