from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class RentalAgreement(models.Model):
    """Terms both parties sign before a booking is confirmed."""

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        SIGNED = "signed", "Signed"
        EXPIRED = "expired", "Expired"
        CANCELLED = "cancelled", "Cancelled"

    class DeliveryMethod(models.TextChoices):
        SELF_PICKUP = "self-pickup", "Self Pickup"
        HOME_DELIVERY = "home-delivery", "Home Delivery"
        MEET_HALFWAY = "meet-halfway", "Meet Halfway"
        TO_BE_ARRANGED = "to-be-arranged", "To be arranged"

    class Source(models.TextChoices):
        AI = "ai", "AI"
        TEMPLATE = "template", "Template"

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="agreements",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_agreements",
    )
    agreement_text = models.TextField()
    custom_terms = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    delivery_method = models.CharField(
        max_length=20,
        choices=DeliveryMethod.choices,
        default=DeliveryMethod.TO_BE_ARRANGED,
    )
    late_fee_per_day = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    generated_by = models.CharField(max_length=16, choices=Source.choices, default=Source.TEMPLATE)

    signed_by_owner = models.BooleanField(default=False)
    signed_by_renter = models.BooleanField(default=False)
    owner_signature_data = models.JSONField(default=dict, blank=True)
    renter_signature_data = models.JSONField(default=dict, blank=True)
    owner_signed_at = models.DateTimeField(null=True, blank=True)
    renter_signed_at = models.DateTimeField(null=True, blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    agreed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "expires_at"], name="agreement_status_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Agreement #{self.pk} for booking {self.booking_id} ({self.status})"

    @property
    def fully_signed(self) -> bool:
        return self.signed_by_owner and self.signed_by_renter

    def is_expired(self, now=None) -> bool:
        if self.status == self.Status.EXPIRED:
            return True
        now = now or timezone.now()
        return self.expires_at is not None and self.expires_at <= now
