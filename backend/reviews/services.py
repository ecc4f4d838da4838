from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from bookings.models import Booking
from core.exceptions import AuthorizationError, BusinessRuleError, ConflictError, NotFoundError

from .models import Review, update_user_rating

logger = logging.getLogger(__name__)
User = get_user_model()


def create_review(
    *, author, booking_id: int, reviewee_id: int, rating: int, comment: str = ""
) -> Review:
    """
    Leave a review for the other party of a completed booking.

    Each participant may review a booking once; the reviewee's aggregate rating
    is recomputed in the same transaction.
    """
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise NotFoundError("Booking not found")
    if booking.status != Booking.Status.COMPLETED:
        raise BusinessRuleError("You can only review completed bookings")
    if not booking.is_participant(author):
        raise AuthorizationError("You can only review bookings you participated in")

    counterpart_id = booking.owner_id if author.id == booking.renter_id else booking.renter_id
    if reviewee_id != counterpart_id:
        raise BusinessRuleError("Invalid reviewee for this booking")

    if Review.objects.filter(booking=booking, reviewer=author).exists():
        raise ConflictError("You have already reviewed this booking")

    reviewee = User.objects.get(pk=reviewee_id)
    try:
        with transaction.atomic():
            review = Review.objects.create(
                booking=booking,
                reviewer=author,
                reviewee=reviewee,
                rating=rating,
                comment=comment or "",
            )
            update_user_rating(reviewee)
    except IntegrityError as exc:
        raise ConflictError("You have already reviewed this booking") from exc

    logger.info(
        "reviews: user %s rated user %s %s/5 for booking %s",
        author.id,
        reviewee_id,
        rating,
        booking.pk,
    )
    return review
