from __future__ import annotations

import django_filters as filters

from .models import Review


class ReviewFilter(filters.FilterSet):
    reviewer_id = filters.NumberFilter(field_name="reviewer_id")
    reviewee_id = filters.NumberFilter(field_name="reviewee_id")
    booking_id = filters.NumberFilter(field_name="booking_id")
    rating = filters.NumberFilter(field_name="rating")

    class Meta:
        model = Review
        fields = ["reviewer_id", "reviewee_id", "booking_id", "rating"]
