"""Domain helpers for booking validation and state transitions."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from core.exceptions import (
    ApiError,
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    ErrorCode,
    NotFoundError,
)
from listings.models import Listing

from .models import Booking

logger = logging.getLogger(__name__)

Role = Literal["renter", "owner"]

# Statuses that hold dates against a listing. Pending requests may overlap freely.
BLOCKING_STATUSES = (
    Booking.Status.CONFIRMED,
    Booking.Status.ACTIVE,
)

RENTER: Role = "renter"
OWNER: Role = "owner"
BOTH = frozenset({RENTER, OWNER})

TRANSITIONS: dict[tuple[str, str], frozenset[str]] = {
    (Booking.Status.PENDING, Booking.Status.CONFIRMED): frozenset({OWNER}),
    (Booking.Status.PENDING, Booking.Status.CANCELLED): BOTH,
    (Booking.Status.CONFIRMED, Booking.Status.ACTIVE): frozenset({OWNER}),
    (Booking.Status.CONFIRMED, Booking.Status.CANCELLED): BOTH,
    (Booking.Status.ACTIVE, Booking.Status.COMPLETED): BOTH,
    (Booking.Status.ACTIVE, Booking.Status.CANCELLED): BOTH,
}

_CENT = Decimal("0.01")
_SECONDS_PER_DAY = 24 * 60 * 60


class PriceMismatchError(ApiError):
    error_code = ErrorCode.VALIDATION_ERROR
    default_detail = "Invalid total price calculation"


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def dates_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Closed-interval overlap; ranges touching on a single day overlap."""
    return start_a <= end_b and start_b <= end_a


def validate_booking_dates(start_date: date | None, end_date: date | None) -> None:
    if not start_date or not end_date:
        raise ValidationError({"non_field_errors": ["Start and end dates are required."]})
    if start_date >= end_date:
        raise ValidationError({"end_date": ["End date must be after start date."]})


def find_conflicts(
    listing: Listing | int,
    start_date: date,
    end_date: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> QuerySet[Booking]:
    """Blocking bookings on ``listing`` whose inclusive range meets [start_date, end_date]."""
    listing_id = listing.pk if isinstance(listing, Listing) else listing
    qs = Booking.objects.filter(
        listing_id=listing_id,
        status__in=BLOCKING_STATUSES,
        start_date__lte=end_date,
        end_date__gte=start_date,
    )
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def ensure_no_conflict(
    listing: Listing | int,
    start_date: date,
    end_date: date,
    *,
    exclude_booking_id: Optional[int] = None,
) -> None:
    """Raise a 409 when the requested range collides with a blocking booking."""
    conflicts = find_conflicts(
        listing,
        start_date,
        end_date,
        exclude_booking_id=exclude_booking_id,
    )
    if conflicts.exists():
        raise ConflictError("Listing is not available for the selected dates")


def rental_days(start: date | datetime, end: date | datetime) -> int:
    """Number of whole days charged for the span, rounding partial days up."""
    seconds = (end - start).total_seconds()
    return math.ceil(seconds / _SECONDS_PER_DAY)


def expected_total(start: date, end: date, price_per_day) -> Decimal:
    return Decimal(rental_days(start, end)) * Decimal(str(price_per_day))


def _price_tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "BOOKING_PRICE_TOLERANCE", "0.01")))


def validate_total_price(start: date, end: date, price_per_day, supplied) -> Decimal:
    """
    Check a client-computed total against ``days * price_per_day``.

    Returns the expected total. Raises PriceMismatchError carrying the computed
    values when the difference exceeds the configured tolerance.
    """
    days = rental_days(start, end)
    rate = Decimal(str(price_per_day))
    expected = Decimal(days) * rate
    provided = Decimal(str(supplied))
    if abs(provided - expected) > _price_tolerance():
        raise PriceMismatchError(
            details={
                "days": days,
                "price_per_day": float(rate),
                "expected_total": float(expected),
                "provided_total": float(provided),
            }
        )
    return expected


def role_for(booking: Booking, user) -> Optional[Role]:
    user_id = getattr(user, "id", None)
    if user_id is None:
        return None
    if user_id == booking.owner_id:
        return OWNER
    if user_id == booking.renter_id:
        return RENTER
    return None


def ensure_transition_allowed(current: str, requested: str, role: Optional[str]) -> None:
    """Reject transitions missing from the table (400) or invoked by the wrong party (403)."""
    roles = TRANSITIONS.get((current, requested))
    if roles is None:
        raise BusinessRuleError(f"Invalid status transition from {current} to {requested}")
    if role not in roles:
        if requested == Booking.Status.CONFIRMED:
            raise AuthorizationError("Only the listing owner can confirm bookings")
        if requested == Booking.Status.ACTIVE:
            raise AuthorizationError("Only the listing owner can mark bookings as active")
        raise AuthorizationError("You can only update your own bookings")


def _lock_listing(listing_id: int) -> Listing:
    listing = Listing.objects.select_for_update().filter(pk=listing_id).first()
    if listing is None:
        raise NotFoundError("Listing not found")
    return listing


@transaction.atomic
def create_booking(
    *,
    listing_id: int,
    renter,
    start_date: date,
    end_date: date,
    total_price,
    notes: str = "",
) -> Booking:
    """
    Create a pending booking request.

    The listing row is locked for the duration of the conflict check and insert so
    concurrent requests for the same listing are serialized.
    """
    validate_booking_dates(start_date, end_date)
    listing = _lock_listing(listing_id)
    if listing.status != Listing.Status.ACTIVE:
        raise BusinessRuleError("Listing is not available for booking")
    if listing.owner_id == renter.id:
        raise BusinessRuleError("You cannot book your own listing")

    ensure_no_conflict(listing, start_date, end_date)
    validate_total_price(start_date, end_date, listing.price_per_day, total_price)

    booking = Booking.objects.create(
        listing=listing,
        owner_id=listing.owner_id,
        renter=renter,
        start_date=start_date,
        end_date=end_date,
        total_price=_money(total_price),
        notes=notes or "",
        status=Booking.Status.PENDING,
    )
    logger.info(
        "bookings: renter %s requested listing %s for %s..%s",
        renter.id,
        listing.pk,
        start_date,
        end_date,
    )
    return booking


@transaction.atomic
def apply_booking_update(
    booking: Booking,
    user,
    *,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    total_price=None,
    notes: Optional[str] = None,
) -> Booking:
    """Apply a status change and/or a date change made by one of the parties."""
    listing = _lock_listing(booking.listing_id)
    booking = Booking.objects.select_for_update().get(pk=booking.pk)
    role = role_for(booking, user)
    if role is None:
        raise AuthorizationError("You can only update your own bookings")

    if status is not None:
        ensure_transition_allowed(booking.status, status, role)

    if total_price is not None and start_date is None and end_date is None:
        raise BusinessRuleError("Total price can only be changed together with the dates")

    if start_date is not None or end_date is not None:
        if booking.status != Booking.Status.PENDING:
            raise BusinessRuleError("Dates can only be changed for pending bookings")
        if role != RENTER:
            raise AuthorizationError("Only the renter can change booking dates")
        new_start = start_date or booking.start_date
        new_end = end_date or booking.end_date
        validate_booking_dates(new_start, new_end)
        ensure_no_conflict(listing, new_start, new_end, exclude_booking_id=booking.pk)
        if total_price is not None:
            expected = validate_total_price(new_start, new_end, listing.price_per_day, total_price)
        else:
            expected = expected_total(new_start, new_end, listing.price_per_day)
        booking.start_date = new_start
        booking.end_date = new_end
        booking.total_price = _money(expected)

    if status is not None:
        if status in BLOCKING_STATUSES:
            ensure_no_conflict(
                listing,
                booking.start_date,
                booking.end_date,
                exclude_booking_id=booking.pk,
            )
        previous = booking.status
        booking.status = status
        logger.info(
            "bookings: booking %s moved %s -> %s by %s %s",
            booking.pk,
            previous,
            status,
            role,
            user.id,
        )

    if notes is not None:
        booking.notes = notes

    booking.save()
    return booking


def cancel_booking(booking: Booking, user) -> Booking:
    """Soft-delete: move the booking to cancelled if the state machine allows it."""
    if role_for(booking, user) is None:
        raise AuthorizationError("You can only cancel your own bookings")
    if booking.status == Booking.Status.COMPLETED:
        raise BusinessRuleError("Completed bookings cannot be cancelled")
    if booking.status == Booking.Status.CANCELLED:
        raise BusinessRuleError("Booking is already cancelled")
    return apply_booking_update(booking, user, status=Booking.Status.CANCELLED)
