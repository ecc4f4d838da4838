from __future__ import annotations

from django.conf import settings
from django.db import models


class Message(models.Model):
    """A direct message between two users, optionally about a booking."""

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    content = models.TextField()
    is_ai_response = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sender", "created_at"], name="message_sender_created_idx"),
            models.Index(
                fields=["recipient", "created_at"],
                name="message_recipient_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message #{self.pk} from {self.sender_id} to {self.recipient_id}"

    def counterpart_id(self, user_id: int) -> int:
        return self.recipient_id if self.sender_id == user_id else self.sender_id
