from __future__ import annotations

import django_filters as filters

from .models import Message


class MessageFilter(filters.FilterSet):
    booking_id = filters.NumberFilter(field_name="booking_id")

    class Meta:
        model = Message
        fields = ["booking_id"]
