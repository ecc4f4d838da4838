from __future__ import annotations

import django_filters as filters

from .models import RentalAgreement


class AgreementFilter(filters.FilterSet):
    booking_id = filters.NumberFilter(field_name="booking_id")
    status = filters.ChoiceFilter(field_name="status", choices=RentalAgreement.Status.choices)

    class Meta:
        model = RentalAgreement
        fields = ["booking_id", "status"]
