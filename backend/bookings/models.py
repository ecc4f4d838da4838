"""Database models for rental bookings."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from listings.models import Listing


class Booking(models.Model):
    """A renter's reservation of a listing for an inclusive date range."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    listing = models.ForeignKey(
        Listing,
        related_name="bookings",
        on_delete=models.CASCADE,
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_owner",
        on_delete=models.CASCADE,
    )
    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="bookings_as_renter",
        on_delete=models.CASCADE,
    )
    start_date = models.DateField()
    end_date = models.DateField(help_text="Last day of the rental, inclusive.")
    total_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["listing", "start_date", "end_date"],
                name="booking_listing_dates_idx",
            ),
            models.Index(fields=["renter", "status"], name="booking_renter_status_idx"),
            models.Index(fields=["owner", "status"], name="booking_owner_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} for {self.listing_id} ({self.status})"

    def is_participant(self, user) -> bool:
        user_id = getattr(user, "id", None)
        return user_id is not None and user_id in {self.owner_id, self.renter_id}
