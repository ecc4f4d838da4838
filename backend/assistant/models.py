from __future__ import annotations

from django.conf import settings
from django.db import models


class AIUsageLog(models.Model):
    """Audit row for each assistant call, successful or not."""

    class Action(models.TextChoices):
        GENERATE_CONTENT = "generate_content", "Generate content"
        PRICE_SUGGESTION = "price_suggestion", "Price suggestion"
        GENERATE_AGREEMENT = "generate_agreement", "Generate agreement"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="ai_usage_logs",
    )
    action = models.CharField(max_length=32, choices=Action.choices)
    content_type = models.CharField(max_length=32, blank=True, default="")
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["action", "created_at"], name="aiusage_action_created_idx")]

    def __str__(self) -> str:
        outcome = "ok" if self.success else "failed"
        return f"{self.action} by {self.user_id} ({outcome})"
