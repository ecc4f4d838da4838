"""Sending direct messages and reading conversations."""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.db.models import Q, QuerySet

from bookings.models import Booking
from core.exceptions import AuthorizationError, BusinessRuleError, NotFoundError

from .models import Message

logger = logging.getLogger(__name__)
User = get_user_model()


def conversation_key(user_id: int, other_id: int) -> str:
    """Stable identifier for the pair, lower id first."""
    low, high = sorted((user_id, other_id))
    return f"{low}-{high}"


def message_queryset() -> QuerySet[Message]:
    return Message.objects.select_related(
        "sender",
        "recipient",
        "booking",
        "booking__listing",
    )


def thread_between(user, other_id: int) -> QuerySet[Message]:
    return message_queryset().filter(
        Q(sender=user, recipient_id=other_id) | Q(sender_id=other_id, recipient=user)
    )


def latest_conversations(user) -> list[dict[str, Any]]:
    """One entry per counterpart, carrying the newest message exchanged with them."""
    conversations: dict[int, dict[str, Any]] = {}
    messages = (
        message_queryset()
        .filter(Q(sender=user) | Q(recipient=user))
        .order_by("-created_at", "-id")
    )
    for message in messages.iterator():
        other_id = message.counterpart_id(user.id)
        if other_id in conversations:
            continue
        other = message.recipient if other_id == message.recipient_id else message.sender
        conversations[other_id] = {
            "id": conversation_key(user.id, other_id),
            "other_user": other,
            "latest_message": message,
        }
    return list(conversations.values())


def send_message(
    sender,
    *,
    recipient_id: int,
    content: str,
    booking_id: Optional[int] = None,
) -> Message:
    """
    Deliver a message to another user.

    When ``booking_id`` is given the sender must be one of its parties and the
    recipient must be the other one.
    """
    if recipient_id == sender.id:
        raise BusinessRuleError("Cannot send message to yourself")
    recipient = User.objects.filter(pk=recipient_id, is_active=True).first()
    if recipient is None:
        raise NotFoundError("Recipient not found")

    booking = None
    if booking_id is not None:
        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            raise NotFoundError("Booking not found")
        if not booking.is_participant(sender):
            raise AuthorizationError(
                "You can only send messages for bookings you are involved in"
            )
        expected = booking.owner_id if sender.id == booking.renter_id else booking.renter_id
        if recipient.pk != expected:
            raise BusinessRuleError("Invalid recipient for this booking")

    message = Message.objects.create(
        sender=sender,
        recipient=recipient,
        booking=booking,
        content=content,
    )
    logger.info(
        "messaging: user %s messaged user %s (booking %s)",
        sender.id,
        recipient.pk,
        booking_id,
    )
    return message
