from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import quote_plus

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class User(AbstractUser):
    """Marketplace account; every user can both list and rent."""

    full_name = models.CharField(max_length=150, blank=True, default="")
    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Optional E.164 formatted phone number.",
    )
    bio = models.TextField(blank=True, default="")
    avatar_url = models.URLField(max_length=1024, blank=True, default="")
    address = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Free-form address shown to booking counterparties.",
    )
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    total_reviews = models.PositiveIntegerField(default=0)
    verified = models.BooleanField(default=False)

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    @property
    def avatar(self) -> str:
        """Uploaded avatar URL or a deterministic initials placeholder."""
        if self.avatar_url:
            return self.avatar_url
        seed = quote_plus(self.display_name or f"user-{self.pk or 'anon'}")
        return f"https://api.dicebear.com/7.x/initials/svg?seed={seed}"

    def set_rating(self, average: float | Decimal | None, count: int) -> None:
        """Store a review average rounded to one decimal place."""
        value = Decimal(str(average or 0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        self.rating = value
        self.total_reviews = count
