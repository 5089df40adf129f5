"""Payment initiation and settlement services.

Lock-held regions never include a gateway call: initiation records the
pending transaction first, calls the gateway, then stores the gateway's
answer in a short follow-up transaction. Settlement is a compare-and-swap
on ``status='pending'`` under a row lock, so concurrent confirmations,
webhooks and the reconciliation task settle a booking at most once.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Q, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.users.context import Caller
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    AlreadyPaid,
    Conflict,
    Forbidden,
    InvalidOperation,
    NotFound,
    PaymentProviderError,
    ValidationError,
)
from shared.domain.phone import is_valid_phone_number, normalize_phone_number
from shared.infrastructure.locking import lock_queryset_if_possible

from .events import PaymentCompleted, PaymentFailed, PaymentInitiated
from .gateway import GatewayStatus, MobileMoneyGateway, PaymentGatewayError, get_gateway
from .models import Transaction

logger = logging.getLogger(__name__)

INITIATED_MESSAGE = "M-Pesa payment initiated. Please complete the payment on your phone."


def generate_reference() -> str:
    """Collision-resistant idempotency key shared with the provider."""
    return f"MP-{secrets.token_hex(10).upper()}"


def transactions_visible_to(caller: Caller):
    qs = Transaction.objects.select_related("booking", "booking__service")
    if caller.is_admin:
        return qs
    return qs.filter(Q(customer_id=caller.user_id) | Q(provider_id=caller.user_id))


def get_transaction_for(caller: Caller, transaction_id) -> Transaction:
    txn = Transaction.objects.select_related("booking", "booking__service").filter(pk=transaction_id).first()
    if txn is None:
        raise NotFound("Transaction not found")
    if not txn.can_be_viewed_by(caller.user_id, caller.is_admin):
        raise Forbidden("You do not have access to this transaction")
    return txn


def initiate_payment(
    caller: Caller,
    *,
    booking_id,
    phone_number: str,
    gateway: Optional[MobileMoneyGateway] = None,
) -> Transaction:
    """Create a pending M-Pesa transaction for an unpaid booking.

    Raises NotFound, Forbidden, AlreadyPaid, InvalidOperation (cancelled
    booking), ValidationError (phone) and Conflict (another payment is
    still pending). The booking itself is not modified.
    """
    gateway = gateway or get_gateway()

    with DjangoUnitOfWork():
        booking = lock_queryset_if_possible(Booking.objects.filter(pk=booking_id)).first()
        if booking is None:
            raise NotFound("Booking not found")
        if booking.customer_id != caller.user_id:
            raise Forbidden("Only the customer who made the booking can pay for it")
        if booking.is_paid:
            raise AlreadyPaid("Booking is already paid")
        if booking.status == Booking.Status.CANCELLED:
            raise InvalidOperation("Cannot pay for a cancelled booking")
        if not is_valid_phone_number(phone_number):
            raise ValidationError(
                "Invalid phone number. Use a Kenyan mobile number such as 0712345678 or +254712345678",
                details={"phone_number": ["Invalid phone number"]},
            )
        normalized_phone = normalize_phone_number(phone_number)

        pending = Transaction.objects.filter(booking_id=booking.pk, status=Transaction.Status.PENDING).first()
        if pending is not None:
            raise Conflict(
                "A payment for this booking is already pending",
                details={"transaction_id": pending.pk, "reference": pending.reference},
            )

        try:
            with transaction.atomic():
                txn = Transaction.objects.create(
                    booking=booking,
                    customer_id=booking.customer_id,
                    provider_id=booking.provider_id,
                    amount=booking.total_amount,
                    currency=booking.currency,
                    payment_method=Transaction.Method.MPESA,
                    status=Transaction.Status.PENDING,
                    reference=generate_reference(),
                    details={
                        "phone_number": normalized_phone,
                        "service_title": booking.service.title,
                    },
                )
        except IntegrityError:
            logger.warning(f"Concurrent payment initiation for booking {booking.pk} rejected")
            raise Conflict("A payment for this booking is already pending")

    logger.info(f"Payment {txn.reference} initiated for booking {booking.pk}: {txn.amount} {txn.currency}")

    try:
        push = gateway.request_payment(
            reference=txn.reference,
            phone_number=normalized_phone,
            amount=txn.amount,
            description=f"Booking {booking.booking_code}",
        )
    except PaymentGatewayError as exc:
        logger.warning(f"Gateway rejected payment {txn.reference}: {exc}")
        fail_transaction(txn.pk, reason=f"Gateway error: {exc}")
        raise PaymentProviderError()

    with DjangoUnitOfWork() as uow:
        Transaction.objects.filter(pk=txn.pk, status=Transaction.Status.PENDING).update(
            details={**txn.details, "gateway": push},
            updated_at=timezone.now(),
        )
        uow.record(
            PaymentInitiated(
                aggregate_id=txn.pk,
                transaction_id=txn.pk,
                booking_id=booking.pk,
                customer_id=booking.customer_id,
                amount=txn.amount,
                reference=txn.reference,
            )
        )

    txn.refresh_from_db()
    return txn


def confirm_payment(
    caller: Caller,
    transaction_id,
    *,
    gateway: Optional[MobileMoneyGateway] = None,
    now=None,
) -> Transaction:
    """Check a transaction with the gateway and settle it if it has been paid.

    Safe to call any number of times: settled transactions are returned
    as they are, and pending ones stay pending until the gateway says
    otherwise.
    """
    txn = get_transaction_for(caller, transaction_id)
    if not txn.is_pending:
        return txn

    gateway = gateway or get_gateway()
    result = gateway.query_status(txn, now=now)
    apply_gateway_status(txn.pk, result, now=now)
    return get_transaction_for(caller, transaction_id)


def apply_gateway_status(transaction_id, result: GatewayStatus, *, now=None) -> bool:
    if result.is_completed:
        return settle_transaction(transaction_id, receipt_number=result.receipt_number, now=now)
    if result.is_failed:
        return fail_transaction(transaction_id, reason=result.reason or "Payment was declined")
    return False


def settle_transaction(transaction_id, *, receipt_number: str = "", now=None) -> bool:
    """Mark a pending transaction completed and its booking paid and confirmed.

    Returns True only for the call that actually performed the settlement.
    """
    now = now or timezone.now()
    with DjangoUnitOfWork() as uow:
        txn = lock_queryset_if_possible(Transaction.objects.filter(pk=transaction_id)).first()
        if txn is None or txn.status != Transaction.Status.PENDING:
            return False
        booking = lock_queryset_if_possible(Booking.objects.filter(pk=txn.booking_id)).get()

        details = dict(txn.details)
        if receipt_number:
            details["receipt_number"] = receipt_number

        if booking.status == Booking.Status.CANCELLED or booking.is_paid:
            reason = "Booking was cancelled" if booking.status == Booking.Status.CANCELLED else "Booking was already paid"
            Transaction.objects.filter(pk=txn.pk, status=Transaction.Status.PENDING).update(
                status=Transaction.Status.REFUNDED,
                failure_reason=reason,
                details=details,
                updated_at=now,
            )
            logger.warning(f"Payment {txn.reference} settled after booking {booking.pk} closed: refunded")
            return False

        updated = Transaction.objects.filter(pk=txn.pk, status=Transaction.Status.PENDING).update(
            status=Transaction.Status.COMPLETED,
            completed_at=now,
            details=details,
            updated_at=now,
        )
        if updated != 1:
            return False

        Booking.objects.filter(pk=booking.pk).update(
            is_paid=True,
            paid_at=now,
            status=Booking.Status.CONFIRMED,
            updated_at=now,
        )
        uow.record(
            PaymentCompleted(
                aggregate_id=txn.pk,
                transaction_id=txn.pk,
                booking_id=booking.pk,
                customer_id=txn.customer_id,
                provider_id=txn.provider_id,
                amount=txn.amount,
                reference=txn.reference,
            )
        )

    logger.info(f"Payment {txn.reference} completed; booking {booking.pk} confirmed")
    return True


def fail_transaction(transaction_id, *, reason: str) -> bool:
    """Mark a pending transaction failed. The customer may initiate again."""
    with DjangoUnitOfWork() as uow:
        txn = lock_queryset_if_possible(Transaction.objects.filter(pk=transaction_id)).first()
        if txn is None:
            return False
        updated = Transaction.objects.filter(pk=txn.pk, status=Transaction.Status.PENDING).update(
            status=Transaction.Status.FAILED,
            failure_reason=reason[:255],
            updated_at=timezone.now(),
        )
        if updated != 1:
            return False
        uow.record(
            PaymentFailed(
                aggregate_id=txn.pk,
                transaction_id=txn.pk,
                booking_id=txn.booking_id,
                customer_id=txn.customer_id,
                reason=reason,
            )
        )
    logger.info(f"Payment {txn.reference} failed: {reason}")
    return True


def handle_gateway_callback(*, reference: str, status: str, receipt_number: str = "", reason: str = "") -> Transaction:
    """Apply a provider webhook. Keyed on ``reference`` and idempotent."""
    txn = Transaction.objects.filter(reference=reference).first()
    if txn is None:
        raise NotFound("Transaction not found")
    if status not in (GatewayStatus.COMPLETED, GatewayStatus.FAILED, GatewayStatus.PENDING):
        raise ValidationError(f"Unknown payment status: {status}")

    if txn.is_pending:
        apply_gateway_status(
            txn.pk,
            GatewayStatus(status=status, receipt_number=receipt_number, reason=reason),
        )
    else:
        logger.info(f"Callback for already settled payment {reference} ignored")
    txn.refresh_from_db()
    return txn


def release_booking_transactions(booking: Booking, *, now=None) -> None:
    """Close the payments of a booking being cancelled.

    Must run inside the cancellation's atomic block: pending payments are
    failed so they can no longer settle, a completed one is refunded.
    """
    now = now or timezone.now()
    Transaction.objects.filter(booking_id=booking.pk, status=Transaction.Status.PENDING).update(
        status=Transaction.Status.FAILED,
        failure_reason="Booking was cancelled",
        updated_at=now,
    )
    refunded = Transaction.objects.filter(booking_id=booking.pk, status=Transaction.Status.COMPLETED).update(
        status=Transaction.Status.REFUNDED,
        failure_reason="Booking was cancelled",
        updated_at=now,
    )
    if refunded:
        logger.info(f"Refund recorded for cancelled booking {booking.pk}")


def reconcile_pending_transactions(
    *,
    gateway: Optional[MobileMoneyGateway] = None,
    now=None,
    batch_size: int = 100,
) -> dict:
    """Poll the gateway for pending transactions nobody is polling for.

    Transactions still pending after ``PAYMENT_PENDING_TIMEOUT_MINUTES``
    are failed so the customer can start over.
    """
    gateway = gateway or get_gateway()
    now = now or timezone.now()
    timeout = timedelta(minutes=getattr(settings, "PAYMENT_PENDING_TIMEOUT_MINUTES", 15))
    counts = {"checked": 0, "completed": 0, "failed": 0, "expired": 0}

    pending_ids = list(
        Transaction.objects.filter(status=Transaction.Status.PENDING)
        .order_by("created_at", "id")
        .values_list("pk", flat=True)[:batch_size]
    )
    for txn in Transaction.objects.filter(pk__in=pending_ids).order_by("created_at", "id"):
        counts["checked"] += 1
        result = gateway.query_status(txn, now=now)
        if result.is_completed:
            if settle_transaction(txn.pk, receipt_number=result.receipt_number, now=now):
                counts["completed"] += 1
        elif result.is_failed:
            if fail_transaction(txn.pk, reason=result.reason or "Payment was declined"):
                counts["failed"] += 1
        elif now - txn.created_at > timeout:
            if fail_transaction(txn.pk, reason="Payment timed out"):
                counts["expired"] += 1
    return counts


def provider_earnings(provider_id: int) -> Decimal:
    """Sum of completed payments received; derived, so settlement cannot double-count it."""
    total = Transaction.objects.filter(
        provider_id=provider_id, status=Transaction.Status.COMPLETED
    ).aggregate(total=Sum("amount"))["total"]
    return total or Decimal("0.00")


def customer_spending(customer_id: int) -> Decimal:
    total = Transaction.objects.filter(
        customer_id=customer_id, status=Transaction.Status.COMPLETED
    ).aggregate(total=Sum("amount"))["total"]
    return total or Decimal("0.00")
