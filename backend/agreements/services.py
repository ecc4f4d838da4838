"""Rental agreement generation, delivery and signing."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from django.conf import settings
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from assistant.client import CompletionClient, CompletionError
from assistant.models import AIUsageLog
from assistant.tasks import queue_usage_log
from bookings.domain import OWNER, apply_booking_update, rental_days, role_for
from bookings.models import Booking
from core.exceptions import AuthorizationError, BusinessRuleError, NotFoundError

from .models import RentalAgreement

logger = logging.getLogger(__name__)

AGREEMENT_TEMPLATE = "agreements/rental_agreement.txt"
AGREEMENT_SYSTEM_PROMPT = (
    "You are a legal document generator specializing in rental agreements. "
    "Create a comprehensive rental agreement that protects both parties: identify the "
    "parties, describe the item, state the rental period, payment terms and security "
    "deposit, set out responsibilities, damage and liability clauses, cancellation and "
    "refund policies, dispute resolution, governing law and signature blocks. Use clear, "
    "professional language and format the agreement with sections."
)

_CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def default_late_fee(price_per_day) -> Decimal:
    rate = Decimal(str(getattr(settings, "AGREEMENT_LATE_FEE_RATE", "0.10")))
    return _money(Decimal(str(price_per_day)) * rate)


def _load_booking(booking_id: int) -> Booking:
    booking = (
        Booking.objects.select_related("listing", "listing__category", "owner", "renter")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def agreement_context(
    booking: Booking,
    *,
    custom_terms: str,
    delivery_method: str,
    late_fee_per_day: Decimal,
) -> dict[str, Any]:
    listing = booking.listing
    return {
        "today": timezone.localdate(),
        "booking": booking,
        "listing": listing,
        "owner": booking.owner,
        "renter": booking.renter,
        "owner_name": booking.owner.display_name,
        "renter_name": booking.renter.display_name,
        "rental_days": rental_days(booking.start_date, booking.end_date),
        "deposit_amount": listing.deposit_amount,
        "late_fee_per_day": late_fee_per_day,
        "delivery_method_label": RentalAgreement.DeliveryMethod(delivery_method).label,
        "custom_terms": custom_terms,
    }


def _agreement_prompt(context: dict[str, Any]) -> str:
    listing = context["listing"]
    booking = context["booking"]
    lines = [
        "Generate a rental agreement with the following details:",
        f"Renter: {context['renter_name']}",
        f"Owner: {context['owner_name']}",
        f"Item: {listing.title}",
    ]
    if listing.description:
        lines.append(f"Description: {listing.description}")
    if listing.category_id:
        lines.append(f"Category: {listing.category.name}")
    lines.append(f"Condition: {listing.get_condition_display()}")
    lines.append(f"Rental Period: {booking.start_date} to {booking.end_date}")
    lines.append(f"Total Rental Price: ${booking.total_price}")
    lines.append(f"Daily Rate: ${listing.price_per_day}")
    if listing.deposit_amount:
        lines.append(f"Security Deposit: ${listing.deposit_amount}")
    if listing.address:
        lines.append(f"Location: {listing.address}")
    lines.append(f"Delivery Method: {context['delivery_method_label']}")
    lines.append(f"Late Fee: ${context['late_fee_per_day']} per day")
    if context["custom_terms"]:
        lines.append(f"Special Terms: {context['custom_terms']}")
    lines.append("Platform: Lendify (peer-to-peer rental marketplace)")
    return "\n".join(lines)


def render_agreement_text(
    client: CompletionClient, context: dict[str, Any]
) -> tuple[str, str, Optional[str]]:
    """Return (text, source, error); completion failures fall back to the template."""
    try:
        text = client.complete(
            _agreement_prompt(context),
            system_prompt=AGREEMENT_SYSTEM_PROMPT,
            max_tokens=max(int(getattr(settings, "AI_MAX_TOKENS", 1000)), 2000),
            temperature=0.3,
        )
        return text, RentalAgreement.Source.AI, None
    except CompletionError as exc:
        logger.info("agreements: AI generation unavailable, using template: %s", exc)
        return render_to_string(AGREEMENT_TEMPLATE, context).strip(), RentalAgreement.Source.TEMPLATE, str(exc)


def generate_agreement(
    booking_id: int,
    *,
    user,
    client: CompletionClient,
    custom_terms: str = "",
    delivery_method: Optional[str] = None,
    late_fee_per_day: Optional[Decimal] = None,
) -> RentalAgreement:
    booking = _load_booking(booking_id)
    if role_for(booking, user) is None:
        raise AuthorizationError("Unauthorized to access this booking")

    delivery_method = delivery_method or RentalAgreement.DeliveryMethod.TO_BE_ARRANGED
    late_fee = (
        _money(late_fee_per_day)
        if late_fee_per_day
        else default_late_fee(booking.listing.price_per_day)
    )
    context = agreement_context(
        booking,
        custom_terms=custom_terms or "",
        delivery_method=delivery_method,
        late_fee_per_day=late_fee,
    )
    text, source, error = render_agreement_text(client, context)

    agreement = RentalAgreement.objects.create(
        booking=booking,
        created_by=user,
        agreement_text=text,
        custom_terms=custom_terms or "",
        status=RentalAgreement.Status.DRAFT,
        delivery_method=delivery_method,
        late_fee_per_day=late_fee,
        deposit_amount=booking.listing.deposit_amount,
        generated_by=source,
    )
    queue_usage_log(
        user.id,
        AIUsageLog.Action.GENERATE_AGREEMENT,
        content_type="agreement",
        success=error is None,
        error_message=error or "",
        metadata={"booking_id": booking.pk, "agreement_id": agreement.pk},
    )
    logger.info(
        "agreements: user %s generated agreement %s for booking %s (%s)",
        user.id,
        agreement.pk,
        booking.pk,
        source,
    )
    return agreement


def send_agreement(agreement: RentalAgreement, user, *, now: Optional[datetime] = None) -> RentalAgreement:
    """Owner hands a draft to the renter; it expires after AGREEMENT_EXPIRY_DAYS."""
    booking = agreement.booking
    if role_for(booking, user) != OWNER:
        raise AuthorizationError("Only the listing owner can send the agreement")
    if agreement.status != RentalAgreement.Status.DRAFT:
        raise BusinessRuleError("Only draft agreements can be sent")

    now = now or timezone.now()
    agreement.status = RentalAgreement.Status.SENT
    agreement.sent_at = now
    agreement.expires_at = now + timedelta(days=getattr(settings, "AGREEMENT_EXPIRY_DAYS", 7))
    agreement.save(update_fields=["status", "sent_at", "expires_at", "updated_at"])
    return agreement


@transaction.atomic
def sign_agreement(
    agreement_id: int,
    user,
    *,
    signature_data: str,
    agreed_to_terms: bool = True,
    ip_address: str = "unknown",
    user_agent: str = "unknown",
) -> tuple[RentalAgreement, str]:
    """
    Record one party's signature.

    Once both parties have signed the agreement becomes ``signed`` and a pending
    booking is confirmed through the booking state machine; a date conflict at
    that point rolls the signature back.
    """
    agreement = (
        RentalAgreement.objects.select_for_update()
        .select_related("booking", "booking__owner")
        .filter(pk=agreement_id)
        .first()
    )
    if agreement is None:
        raise NotFoundError("Agreement not found")
    booking = agreement.booking
    role = role_for(booking, user)
    if role is None:
        raise AuthorizationError("Unauthorized to sign this agreement")
    if agreement.status == RentalAgreement.Status.CANCELLED:
        raise BusinessRuleError("Agreement has been cancelled")
    if agreement.is_expired():
        raise BusinessRuleError("Agreement has expired")

    now = timezone.now()
    signature = {
        "data_url": signature_data,
        "timestamp": now.isoformat(),
        "ip_address": ip_address or "unknown",
        "user_agent": user_agent or "unknown",
        "agreed_to_terms": agreed_to_terms is not False,
    }
    if role == OWNER:
        if agreement.signed_by_owner:
            raise BusinessRuleError("Agreement already signed by owner")
        agreement.signed_by_owner = True
        agreement.owner_signature_data = signature
        agreement.owner_signed_at = now
    else:
        if agreement.signed_by_renter:
            raise BusinessRuleError("Agreement already signed by renter")
        agreement.signed_by_renter = True
        agreement.renter_signature_data = signature
        agreement.renter_signed_at = now

    if agreement.fully_signed:
        agreement.status = RentalAgreement.Status.SIGNED
        agreement.agreed_at = now
        if booking.status == Booking.Status.PENDING:
            apply_booking_update(booking, booking.owner, status=Booking.Status.CONFIRMED)
    agreement.save()
    logger.info("agreements: %s %s signed agreement %s", role, user.id, agreement.pk)
    return agreement, role


def expire_sent_agreements(*, now: Optional[datetime] = None) -> int:
    now = now or timezone.now()
    return RentalAgreement.objects.filter(
        status=RentalAgreement.Status.SENT,
        expires_at__lte=now,
    ).update(status=RentalAgreement.Status.EXPIRED, updated_at=now)
