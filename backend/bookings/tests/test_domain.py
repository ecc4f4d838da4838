"""Unit tests for booking rules: dates, pricing, conflicts and transitions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from itertools import product

import pytest
from django.core.exceptions import ValidationError

from bookings import domain
from bookings.models import Booking
from core.exceptions import AuthorizationError, BusinessRuleError, ConflictError, NotFoundError


def test_dates_overlap_is_inclusive():
    assert domain.dates_overlap(
        date(2024, 2, 10), date(2024, 2, 15), date(2024, 2, 15), date(2024, 2, 20)
    )
    assert not domain.dates_overlap(
        date(2024, 2, 10), date(2024, 2, 15), date(2024, 2, 16), date(2024, 2, 20)
    )


def test_validate_booking_dates_requires_end_after_start():
    with pytest.raises(ValidationError):
        domain.validate_booking_dates(date(2024, 1, 4), date(2024, 1, 4))
    domain.validate_booking_dates(date(2024, 1, 1), date(2024, 1, 2))


def test_rental_days_rounds_partial_days_up():
    assert domain.rental_days(date(2024, 1, 1), date(2024, 1, 4)) == 3
    assert domain.rental_days(datetime(2024, 1, 1, 9), datetime(2024, 1, 2, 10)) == 2


def test_validate_total_price_accepts_exact_total():
    expected = domain.validate_total_price(
        date(2024, 1, 1), date(2024, 1, 4), Decimal("20.00"), Decimal("60.00")
    )
    assert expected == Decimal("60.00")


def test_validate_total_price_rejects_mismatch_with_details():
    with pytest.raises(domain.PriceMismatchError) as excinfo:
        domain.validate_total_price(
            date(2024, 1, 1), date(2024, 1, 4), Decimal("20.00"), Decimal("61.50")
        )
    assert excinfo.value.message == "Invalid total price calculation"
    assert excinfo.value.details == {
        "days": 3,
        "price_per_day": 20.0,
        "expected_total": 60.0,
        "provided_total": 61.5,
    }


PENDING, CONFIRMED, ACTIVE, COMPLETED, CANCELLED = (
    Booking.Status.PENDING,
    Booking.Status.CONFIRMED,
    Booking.Status.ACTIVE,
    Booking.Status.COMPLETED,
    Booking.Status.CANCELLED,
)

ALLOWED = {
    (PENDING, CONFIRMED, domain.OWNER),
    (PENDING, CANCELLED, domain.OWNER),
    (PENDING, CANCELLED, domain.RENTER),
    (CONFIRMED, ACTIVE, domain.OWNER),
    (CONFIRMED, CANCELLED, domain.OWNER),
    (CONFIRMED, CANCELLED, domain.RENTER),
    (ACTIVE, COMPLETED, domain.OWNER),
    (ACTIVE, COMPLETED, domain.RENTER),
    (ACTIVE, CANCELLED, domain.OWNER),
    (ACTIVE, CANCELLED, domain.RENTER),
}
EDGES = {(current, requested) for current, requested, _ in ALLOWED}


@pytest.mark.parametrize(
    "current,requested,role",
    list(product(Booking.Status.values, Booking.Status.values, (domain.OWNER, domain.RENTER))),
)
def test_transition_matrix(current, requested, role):
    if (current, requested, role) in ALLOWED:
        domain.ensure_transition_allowed(current, requested, role)
    elif (current, requested) in EDGES:
        with pytest.raises(AuthorizationError):
            domain.ensure_transition_allowed(current, requested, role)
    else:
        with pytest.raises(BusinessRuleError):
            domain.ensure_transition_allowed(current, requested, role)


def test_transition_table_matches_allowed_moves():
    table = {
        (current, requested, role)
        for (current, requested), roles in domain.TRANSITIONS.items()
        for role in roles
    }
    assert table == ALLOWED


def test_outsider_cannot_move_any_booking():
    for current, requested in EDGES:
        with pytest.raises(AuthorizationError):
            domain.ensure_transition_allowed(current, requested, None)


def test_renter_cannot_mark_active():
    with pytest.raises(AuthorizationError) as excinfo:
        domain.ensure_transition_allowed(CONFIRMED, ACTIVE, domain.RENTER)
    assert excinfo.value.message == "Only the listing owner can mark bookings as active"


def test_transition_missing_from_table_is_bad_request():
    with pytest.raises(BusinessRuleError) as excinfo:
        domain.ensure_transition_allowed(Booking.Status.PENDING, Booking.Status.ACTIVE, domain.OWNER)
    assert "pending to active" in excinfo.value.message


def test_renter_cannot_confirm():
    with pytest.raises(AuthorizationError) as excinfo:
        domain.ensure_transition_allowed(
            Booking.Status.PENDING, Booking.Status.CONFIRMED, domain.RENTER
        )
    assert excinfo.value.message == "Only the listing owner can confirm bookings"


def test_terminal_states_have_no_exits():
    for terminal in (Booking.Status.COMPLETED, Booking.Status.CANCELLED):
        for target in Booking.Status.values:
            assert (terminal, target) not in domain.TRANSITIONS


@pytest.mark.django_db
class TestCreateBooking:
    def test_creates_pending_booking(self, listing, renter_user):
        booking = domain.create_booking(
            listing_id=listing.pk,
            renter=renter_user,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 4),
            total_price=Decimal("60.00"),
            notes="Pick up in the morning",
        )
        assert booking.status == Booking.Status.PENDING
        assert booking.owner_id == listing.owner_id
        assert booking.total_price == Decimal("60.00")

    def test_missing_listing_is_not_found(self, renter_user):
        with pytest.raises(NotFoundError):
            domain.create_booking(
                listing_id=999999,
                renter=renter_user,
                start_date=date(2024, 1, 1),
                end_date=date(2024, 1, 4),
                total_price=Decimal("60.00"),
            )

    def test_owner_cannot_book_own_listing(self, listing, owner_user):
        with pytest.raises(BusinessRuleError, match="own listing"):
            domain.create_booking(
                listing_id=listing.pk,
                renter=owner_user,
                start_date=date(2024, 1, 1),
                end_date=date(2024, 1, 4),
                total_price=Decimal("60.00"),
            )

    def test_inactive_listing_rejected(self, listing_factory, renter_user):
        draft = listing_factory(status="draft")
        with pytest.raises(BusinessRuleError, match="not available"):
            domain.create_booking(
                listing_id=draft.pk,
                renter=renter_user,
                start_date=date(2024, 1, 1),
                end_date=date(2024, 1, 4),
                total_price=Decimal("60.00"),
            )

    def test_overlap_with_confirmed_booking_conflicts(self, listing, booking_factory, other_user):
        booking_factory(
            start_date=date(2024, 2, 10),
            end_date=date(2024, 2, 15),
            status=Booking.Status.CONFIRMED,
        )
        with pytest.raises(ConflictError):
            domain.create_booking(
                listing_id=listing.pk,
                renter=other_user,
                start_date=date(2024, 2, 14),
                end_date=date(2024, 2, 20),
                total_price=Decimal("120.00"),
            )

        booking = domain.create_booking(
            listing_id=listing.pk,
            renter=other_user,
            start_date=date(2024, 2, 16),
            end_date=date(2024, 2, 20),
            total_price=Decimal("80.00"),
        )
        assert booking.pk is not None

    def test_pending_requests_may_overlap(self, listing, booking_factory, other_user):
        booking_factory(start_date=date(2024, 2, 10), end_date=date(2024, 2, 15))
        booking = domain.create_booking(
            listing_id=listing.pk,
            renter=other_user,
            start_date=date(2024, 2, 12),
            end_date=date(2024, 2, 14),
            total_price=Decimal("40.00"),
        )
        assert booking.status == Booking.Status.PENDING


@pytest.mark.django_db
class TestFindConflicts:
    @pytest.mark.parametrize(
        "status,blocks",
        [
            (PENDING, False),
            (CONFIRMED, True),
            (ACTIVE, True),
            (COMPLETED, False),
            (CANCELLED, False),
        ],
    )
    def test_only_blocking_statuses_conflict(self, listing, booking_factory, status, blocks):
        booking_factory(start_date=date(2024, 6, 10), end_date=date(2024, 6, 15), status=status)

        conflicts = domain.find_conflicts(listing, date(2024, 6, 12), date(2024, 6, 18))

        assert conflicts.exists() is blocks

    def test_range_ending_on_new_start_day_conflicts(self, listing, booking_factory):
        existing = booking_factory(
            start_date=date(2024, 6, 1), end_date=date(2024, 6, 10), status=ACTIVE
        )

        conflicts = domain.find_conflicts(listing, date(2024, 6, 10), date(2024, 6, 12))

        assert list(conflicts) == [existing]

    def test_adjacent_day_is_free(self, listing, booking_factory):
        booking_factory(start_date=date(2024, 6, 1), end_date=date(2024, 6, 10), status=ACTIVE)

        assert not domain.find_conflicts(listing, date(2024, 6, 11), date(2024, 6, 12)).exists()

    def test_other_listing_and_excluded_booking_ignored(
        self, listing, listing_factory, booking_factory
    ):
        other = listing_factory(title="Ladder")
        booking_factory(
            listing_override=other,
            start_date=date(2024, 6, 1),
            end_date=date(2024, 6, 5),
            status=CONFIRMED,
        )
        mine = booking_factory(
            start_date=date(2024, 6, 1), end_date=date(2024, 6, 5), status=CONFIRMED
        )

        conflicts = domain.find_conflicts(
            listing, date(2024, 6, 2), date(2024, 6, 3), exclude_booking_id=mine.pk
        )

        assert not conflicts.exists()

    def test_active_booking_blocks_new_request(self, listing, booking_factory, other_user):
        booking_factory(start_date=date(2024, 6, 1), end_date=date(2024, 6, 5), status=ACTIVE)

        with pytest.raises(ConflictError):
            domain.create_booking(
                listing_id=listing.pk,
                renter=other_user,
                start_date=date(2024, 6, 5),
                end_date=date(2024, 6, 7),
                total_price=Decimal("40.00"),
            )


@pytest.mark.django_db
class TestApplyBookingUpdate:
    def test_owner_confirms_pending(self, booking_factory, owner_user):
        booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))
        updated = domain.apply_booking_update(
            booking, owner_user, status=Booking.Status.CONFIRMED
        )
        assert updated.status == Booking.Status.CONFIRMED

    def test_confirm_rechecks_conflicts(self, booking_factory, owner_user, other_user):
        booking_factory(
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 5),
            status=Booking.Status.CONFIRMED,
        )
        pending = booking_factory(
            renter=other_user,
            start_date=date(2024, 3, 4),
            end_date=date(2024, 3, 6),
        )
        with pytest.raises(ConflictError):
            domain.apply_booking_update(pending, owner_user, status=Booking.Status.CONFIRMED)
        pending.refresh_from_db()
        assert pending.status == Booking.Status.PENDING

    def test_stranger_cannot_update(self, booking_factory, other_user):
        booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))
        with pytest.raises(AuthorizationError):
            domain.apply_booking_update(booking, other_user, status=Booking.Status.CANCELLED)

    def test_renter_changes_dates_and_total_is_recomputed(self, booking_factory, renter_user):
        booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))
        updated = domain.apply_booking_update(
            booking,
            renter_user,
            start_date=date(2024, 3, 2),
            end_date=date(2024, 3, 7),
        )
        assert (updated.start_date, updated.end_date) == (date(2024, 3, 2), date(2024, 3, 7))
        assert updated.total_price == Decimal("100.00")

    def test_dates_frozen_after_confirmation(self, booking_factory, renter_user):
        booking = booking_factory(
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 3),
            status=Booking.Status.CONFIRMED,
        )
        with pytest.raises(BusinessRuleError, match="pending"):
            domain.apply_booking_update(booking, renter_user, end_date=date(2024, 3, 4))

    def test_owner_cannot_change_dates(self, booking_factory, owner_user):
        booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))
        with pytest.raises(AuthorizationError):
            domain.apply_booking_update(booking, owner_user, end_date=date(2024, 3, 4))

    def test_same_status_update_rejected(self, booking_factory, owner_user):
        booking = booking_factory(
            start_date=date(2024, 3, 1), end_date=date(2024, 3, 3), status=CONFIRMED
        )
        with pytest.raises(BusinessRuleError, match="Invalid status transition"):
            domain.apply_booking_update(booking, owner_user, status=CONFIRMED)

    def test_total_price_without_dates_rejected(self, booking_factory, renter_user):
        booking = booking_factory(start_date=date(2024, 3, 1), end_date=date(2024, 3, 3))
        with pytest.raises(BusinessRuleError, match="together with the dates"):
            domain.apply_booking_update(booking, renter_user, total_price=Decimal("999.00"))
        booking.refresh_from_db()
        assert booking.total_price == Decimal("40.00")


@pytest.mark.django_db
class TestCancelBooking:
    def test_renter_cancels_confirmed(self, booking_factory, renter_user):
        booking = booking_factory(
            start_date=date(2024, 4, 1),
            end_date=date(2024, 4, 3),
            status=Booking.Status.CONFIRMED,
        )
        assert domain.cancel_booking(booking, renter_user).status == Booking.Status.CANCELLED

    def test_completed_cannot_be_cancelled(self, booking_factory, renter_user):
        booking = booking_factory(
            start_date=date(2024, 4, 1),
            end_date=date(2024, 4, 3),
            status=Booking.Status.COMPLETED,
        )
        with pytest.raises(BusinessRuleError, match="Completed"):
            domain.cancel_booking(booking, renter_user)

    def test_already_cancelled(self, booking_factory, owner_user):
        booking = booking_factory(
            start_date=date(2024, 4, 1),
            end_date=date(2024, 4, 3),
            status=Booking.Status.CANCELLED,
        )
        with pytest.raises(BusinessRuleError, match="already cancelled"):
            domain.cancel_booking(booking, owner_user)
