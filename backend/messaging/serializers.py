from __future__ import annotations

from rest_framework import serializers

from users.serializers import UserSummarySerializer


class MessageBookingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    listing_title = serializers.CharField(source="listing.title")


class MessageSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    content = serializers.CharField()
    created_at = serializers.DateTimeField()
    booking_id = serializers.IntegerField(allow_null=True)
    is_ai_response = serializers.BooleanField()
    sender = UserSummarySerializer()
    recipient = UserSummarySerializer()
    booking = MessageBookingSerializer(allow_null=True)


class ConversationSerializer(serializers.Serializer):
    id = serializers.CharField()
    other_user = UserSummarySerializer()
    latest_message = MessageSerializer()


class MessageCreateSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField(min_value=1)
    content = serializers.CharField(max_length=5000)
    booking_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class MessageQuerySerializer(serializers.Serializer):
    conversation_with = serializers.IntegerField(min_value=1, required=False)
    sortOrder = serializers.ChoiceField(choices=("asc", "desc"), default="desc")
