from __future__ import annotations

from django.conf import settings
from django.db import models


class SearchQueryLog(models.Model):
    """One row per executed search, used for analytics."""

    query = models.CharField(max_length=200)
    results_count = models.PositiveIntegerField(default=0)
    filters = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="search_queries",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["created_at"], name="searchlog_created_idx")]

    def __str__(self) -> str:
        return f"{self.query!r} ({self.results_count} results)"
