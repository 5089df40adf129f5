"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from datetime import date as date_type, time
from typing import Optional

from django.conf import settings  # type: ignore
from django.db.models import Count, Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.payments.services import customer_spending, provider_earnings, release_booking_transactions
from apps.services.models import Service
from apps.users.context import Caller
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import Forbidden, InvalidOperation, NotFound, ValidationError
from shared.infrastructure.locking import lock_queryset_if_possible
from shared.infrastructure.pagination import Page, paginate

from .events import BookingCancelled, BookingCompleted, BookingCreated
from .models import Booking

logger = logging.getLogger(__name__)

LIST_ROLES = ("customer", "provider")
ACTIVE_STATUSES = (Booking.Status.PENDING, Booking.Status.CONFIRMED)


def _booking_queryset():
    return Booking.objects.select_related("service", "customer", "provider")


def get_booking_for(caller: Caller, booking_id) -> Booking:
    booking = _booking_queryset().filter(pk=booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    if not (caller.is_admin or booking.is_stakeholder(caller.user_id)):
        raise Forbidden("You do not have access to this booking")
    return booking


def create_booking(
    caller: Caller,
    *,
    service_id,
    date: date_type,
    notes: str = "",
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> Booking:
    """Book a service for ``date``.

    The provider is copied from the service and ``total_amount`` is the
    service price right now; later price edits leave the booking alone.
    """
    service = Service.objects.filter(pk=service_id).first()
    if service is None:
        raise NotFound("Service not found")
    if service.provider_id == caller.user_id:
        raise InvalidOperation("You cannot book your own service")
    if not service.is_bookable:
        raise InvalidOperation("Service is not available for booking")
    if date < timezone.localdate():
        raise ValidationError("Booking date cannot be in the past", details={"date": ["Date is in the past"]})
    if start_time and end_time and end_time <= start_time:
        raise ValidationError(
            "End time must be after start time", details={"end_time": ["Must be after start time"]}
        )

    with DjangoUnitOfWork() as uow:
        booking = Booking.objects.create(
            service=service,
            customer_id=caller.user_id,
            provider_id=service.provider_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            notes=notes or "",
            total_amount=service.price,
            currency=getattr(settings, "PAYMENT_CURRENCY", "KES"),
        )
        uow.record(
            BookingCreated(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                service_id=service.pk,
                service_title=service.title,
                customer_id=caller.user_id,
                provider_id=service.provider_id,
                date=date,
                total_amount=booking.total_amount,
            )
        )

    logger.info(f"Booking {booking.booking_code} created for service {service.pk} by user {caller.user_id}")
    return _booking_queryset().get(pk=booking.pk)


def list_bookings(
    caller: Caller,
    *,
    role: Optional[str] = None,
    status: Optional[str] = None,
    page=None,
    limit=None,
) -> Page:
    """Bookings visible to the caller, newest first, one page at a time."""
    if role and role not in LIST_ROLES:
        raise ValidationError("role must be 'customer' or 'provider'", details={"role": [role]})
    if status and status not in Booking.Status.values:
        raise ValidationError(f"Unknown booking status: {status}", details={"status": [status]})

    qs = _booking_queryset().order_by("-created_at", "-id")
    if role == "customer":
        qs = qs.filter(customer_id=caller.user_id)
    elif role == "provider":
        qs = qs.filter(provider_id=caller.user_id)
    elif not caller.is_admin:
        qs = qs.filter(Q(customer_id=caller.user_id) | Q(provider_id=caller.user_id))
    if status:
        qs = qs.filter(status=status)
    return paginate(qs, page, limit)


def cancel_booking(caller: Caller, booking_id, *, reason: str = "") -> Booking:
    """Cancel a pending or confirmed booking and close its payments."""
    now = timezone.now()
    with DjangoUnitOfWork() as uow:
        booking = lock_queryset_if_possible(Booking.objects.filter(pk=booking_id)).first()
        if booking is None:
            raise NotFound("Booking not found")
        if not (caller.is_admin or booking.is_stakeholder(caller.user_id)):
            raise Forbidden("You do not have access to this booking")
        if booking.is_closed:
            raise InvalidOperation(f"Cannot cancel a {booking.status} booking")

        booking.status = Booking.Status.CANCELLED
        booking.cancelled_at = now
        booking.cancelled_by_id = caller.user_id
        booking.cancellation_reason = (reason or "")[:255]
        booking.save(update_fields=["status", "cancelled_at", "cancelled_by", "cancellation_reason", "updated_at"])
        release_booking_transactions(booking, now=now)

        uow.record(
            BookingCancelled(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                service_title=booking.service.title,
                customer_id=booking.customer_id,
                provider_id=booking.provider_id,
                cancelled_by_id=caller.user_id,
                reason=booking.cancellation_reason,
            )
        )

    logger.info(f"Booking {booking.booking_code} cancelled by user {caller.user_id}")
    return _booking_queryset().get(pk=booking.pk)


def complete_booking(caller: Caller, booking_id) -> Booking:
    """Provider marks a paid, confirmed booking as delivered."""
    with DjangoUnitOfWork() as uow:
        booking = lock_queryset_if_possible(Booking.objects.filter(pk=booking_id)).first()
        if booking is None:
            raise NotFound("Booking not found")
        if not (caller.is_admin or booking.provider_id == caller.user_id):
            raise Forbidden("Only the provider can complete this booking")
        if booking.status != Booking.Status.CONFIRMED or not booking.is_paid:
            raise InvalidOperation("Only confirmed, paid bookings can be completed")

        booking.status = Booking.Status.COMPLETED
        booking.completed_at = timezone.now()
        booking.save(update_fields=["status", "completed_at", "updated_at"])
        uow.record(
            BookingCompleted(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                service_title=booking.service.title,
                customer_id=booking.customer_id,
                provider_id=booking.provider_id,
            )
        )

    logger.info(f"Booking {booking.booking_code} completed")
    return _booking_queryset().get(pk=booking.pk)


def _status_counts(qs) -> dict:
    counts = {value: 0 for value in Booking.Status.values}
    for row in qs.values("status").annotate(total=Count("id")):
        counts[row["status"]] = row["total"]
    counts["total"] = sum(counts.values())
    return counts


def booking_stats(caller: Caller) -> dict:
    """Dashboard counters for the caller, as customer and as provider."""
    return {
        "as_customer": _status_counts(Booking.objects.filter(customer_id=caller.user_id)),
        "as_provider": _status_counts(Booking.objects.filter(provider_id=caller.user_id)),
        "earnings": provider_earnings(caller.user_id),
        "spent": customer_spending(caller.user_id),
    }


def upcoming_bookings(caller: Caller, *, limit: int = 5):
    today = timezone.localdate()
    return list(
        _booking_queryset()
        .filter(Q(customer_id=caller.user_id) | Q(provider_id=caller.user_id))
        .filter(date__gte=today, status__in=ACTIVE_STATUSES)
        .order_by("date", "start_time", "id")[:limit]
    )


def is_slot_available(
    service_id,
    *,
    date: date_type,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> bool:
    """Advisory check: the service's provider has no active booking overlapping the slot.

    Bookings of the provider's other services count too. Without times the
    whole day counts as the slot.
    """
    provider_id = Service.objects.filter(pk=service_id).values_list("provider_id", flat=True).first()
    if provider_id is None:
        raise NotFound("Service not found")
    qs = Booking.objects.filter(provider_id=provider_id, date=date, status__in=ACTIVE_STATUSES)
    if start_time and end_time:
        qs = qs.filter(
            Q(start_time__isnull=True)
            | Q(end_time__isnull=True)
            | (Q(start_time__lt=end_time) & Q(end_time__gt=start_time))
        )
    return not qs.exists()
