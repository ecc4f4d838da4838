from __future__ import annotations

import logging

from rest_framework import permissions
from rest_framework.views import APIView

from core.envelope import success_response
from core.exceptions import BusinessRuleError
from listings.models import Category

from .client import build_completion_client
from .content import generate_content
from .models import AIUsageLog
from .pricing import PricingRequest, suggest_price
from .serializers import GenerateContentSerializer, PriceSuggestionSerializer
from .tasks import queue_usage_log

logger = logging.getLogger(__name__)


class AssistantView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    client_factory = staticmethod(build_completion_client)


class GenerateContentView(AssistantView):
    """Draft a listing title, description or tag list."""

    def post(self, request, *args, **kwargs):
        serializer = GenerateContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        context = {key: value for key, value in data.get("context", {}).items() if value}

        result = generate_content(
            self.client_factory(),
            kind=data["type"],
            context=context,
            tone=data["tone"],
            length=data["length"],
        )
        if result.error:
            logger.info("assistant: generate_content fell back to template: %s", result.error)
        queue_usage_log(
            request.user.id,
            AIUsageLog.Action.GENERATE_CONTENT,
            content_type=data["type"],
            success=result.error is None,
            error_message=result.error or "",
        )

        payload = {"type": data["type"], "tone": data["tone"], "length": data["length"]}
        payload.update(result.as_dict())
        return success_response(payload, "Content generated successfully")


class PriceSuggestionView(AssistantView):
    def post(self, request, *args, **kwargs):
        serializer = PriceSuggestionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        category = Category.objects.filter(pk=data["category_id"]).first()
        if category is None:
            raise BusinessRuleError("Invalid category ID")

        pricing = suggest_price(
            PricingRequest(
                category=category,
                condition=data["condition"],
                location=data["location"],
                description=data.get("description", ""),
                photos=data.get("photos", []),
                comparable_listings=data.get("comparable_listings", []),
            )
        )
        queue_usage_log(
            request.user.id,
            AIUsageLog.Action.PRICE_SUGGESTION,
            metadata={
                "category_id": category.pk,
                "condition": data["condition"],
                "suggested_price": pricing["suggested_price"],
            },
        )
        return success_response(
            {
                "category": {"id": category.pk, "name": category.name, "slug": category.slug},
                "condition": data["condition"],
                "location": data["location"],
                "pricing": pricing,
            },
            "Pricing suggestions generated successfully",
        )
