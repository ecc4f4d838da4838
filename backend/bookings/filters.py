from __future__ import annotations

import django_filters as filters

from .models import Booking


class BookingFilter(filters.FilterSet):
    status = filters.ChoiceFilter(field_name="status", choices=Booking.Status.choices)
    start_date = filters.DateFilter(field_name="start_date", lookup_expr="gte")
    end_date = filters.DateFilter(field_name="end_date", lookup_expr="lte")
    listing_id = filters.NumberFilter(field_name="listing_id")
    role = filters.ChoiceFilter(
        choices=(("renter", "Renter"), ("owner", "Owner")),
        method="filter_role",
    )

    class Meta:
        model = Booking
        fields = ["status", "start_date", "end_date", "listing_id", "role"]

    def filter_role(self, queryset, name, value):
        user = getattr(self.request, "user", None)
        if not value or user is None:
            return queryset
        if value == "renter":
            return queryset.filter(renter=user)
        return queryset.filter(owner=user)
