from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .models import RentalAgreement

MONEY = {"max_digits": 10, "decimal_places": 2}


class AgreementBookingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    listing_id = serializers.IntegerField()
    listing_title = serializers.CharField(source="listing.title")
    owner_id = serializers.IntegerField()
    renter_id = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    total_price = serializers.DecimalField(**MONEY)
    status = serializers.CharField()


class RentalAgreementSerializer(serializers.ModelSerializer):
    booking = AgreementBookingSerializer(read_only=True)
    fully_signed = serializers.BooleanField(read_only=True)

    class Meta:
        model = RentalAgreement
        fields = [
            "id",
            "booking_id",
            "booking",
            "created_by_id",
            "agreement_text",
            "custom_terms",
            "status",
            "delivery_method",
            "late_fee_per_day",
            "deposit_amount",
            "generated_by",
            "signed_by_owner",
            "signed_by_renter",
            "owner_signed_at",
            "renter_signed_at",
            "fully_signed",
            "sent_at",
            "expires_at",
            "agreed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class GenerateAgreementSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)
    custom_terms = serializers.CharField(max_length=5000, required=False, allow_blank=True)
    delivery_method = serializers.ChoiceField(
        choices=RentalAgreement.DeliveryMethod.choices,
        required=False,
    )
    late_fee_per_day = serializers.DecimalField(
        min_value=Decimal("0"),
        required=False,
        allow_null=True,
        **MONEY,
    )


class SignAgreementSerializer(serializers.Serializer):
    signature_data = serializers.CharField(max_length=500_000)
    agreed_to_terms = serializers.BooleanField(default=True)

