from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Avg, Count


class Review(models.Model):
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="authored_reviews",
    )
    reviewee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_reviews",
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    comment = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "reviewer"],
                name="unique_review_per_booking_per_reviewer",
            )
        ]

    def __str__(self) -> str:
        return f"Review by {self.reviewer_id} for booking {self.booking_id}"


def update_user_rating(user) -> None:
    """Recalculate the user's average rating and review count."""
    agg = Review.objects.filter(reviewee=user).aggregate(avg=Avg("rating"), count=Count("id"))
    user.set_rating(agg.get("avg"), agg.get("count") or 0)
    user.save(update_fields=["rating", "total_reviews"])
