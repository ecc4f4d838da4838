from __future__ import annotations

from rest_framework import serializers

from .services import MARKET_METRICS, PERSONAL_TIMEFRAME_MONTHS, TIMEFRAME_DAYS


class MarketAnalyticsQuerySerializer(serializers.Serializer):
    timeframe = serializers.ChoiceField(choices=tuple(TIMEFRAME_DAYS), default="30d")
    metrics = serializers.CharField(required=False, default="market_pulse")
    category = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(required=False, allow_blank=True)

    def validate_metrics(self, value: str) -> list[str]:
        """Comma separated metric names; unknown names are rejected."""
        metrics = [item.strip() for item in value.split(",") if item.strip()]
        if not metrics:
            return ["market_pulse"]
        unknown = sorted(set(metrics) - set(MARKET_METRICS))
        if unknown:
            raise serializers.ValidationError(
                f"Unknown metrics: {', '.join(unknown)}. Choose from {', '.join(MARKET_METRICS)}"
            )
        return metrics


class PersonalAnalyticsQuerySerializer(serializers.Serializer):
    timeframe = serializers.ChoiceField(choices=tuple(PERSONAL_TIMEFRAME_MONTHS), default="6m")
