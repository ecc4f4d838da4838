"""Read-only analytics over listing engagement, bookings and search logs."""

from __future__ import annotations

from django.utils.cache import patch_cache_control
from rest_framework import permissions
from rest_framework.views import APIView

from core.envelope import success_response

from .serializers import MarketAnalyticsQuerySerializer, PersonalAnalyticsQuerySerializer
from .services import market_analytics, personal_analytics

MARKET_CACHE_SECONDS = 300


class MarketAnalyticsView(APIView):
    """Public marketplace insights; ``metrics`` selects the sections returned."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        query = MarketAnalyticsQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        params = query.validated_data
        data = market_analytics(
            timeframe=params["timeframe"],
            metrics=params["metrics"],
            category=params.get("category") or None,
            location=params.get("location") or None,
        )
        response = success_response(data)
        patch_cache_control(response, public=True, max_age=MARKET_CACHE_SECONDS)
        return response


class PersonalAnalyticsView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        query = PersonalAnalyticsQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        return success_response(
            personal_analytics(request.user, timeframe=query.validated_data["timeframe"])
        )
