"""
Event handlers that turn domain events into notifications.

Each handler runs after the originating transaction commits. A failing
handler is logged by the message bus and never affects the request.
"""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore

from apps.bookings.events import BookingCancelled, BookingCompleted, BookingCreated
from apps.messaging.events import MessageSent
from apps.payments.events import PaymentCompleted, PaymentFailed, PaymentInitiated
from apps.reviews.events import ReviewCreated
from shared.application.message_bus import message_bus

from .models import Notification
from .services import notify

logger = logging.getLogger(__name__)


def _money(amount) -> str:
    return f"{getattr(settings, 'PAYMENT_CURRENCY', 'KES')} {amount}"


def on_booking_created(event: BookingCreated) -> None:
    notify(
        event.provider_id,
        type=Notification.Type.BOOKING,
        title="New booking",
        content=f"You have a new booking for '{event.service_title}' on {event.date.isoformat()}.",
        data={"booking_id": event.booking_id, "service_id": event.service_id},
    )


def on_booking_cancelled(event: BookingCancelled) -> None:
    recipient_id = (
        event.provider_id if event.cancelled_by_id == event.customer_id else event.customer_id
    )
    content = f"The booking for '{event.service_title}' was cancelled."
    if event.reason:
        content = f"{content} Reason: {event.reason}"
    notify(
        recipient_id,
        type=Notification.Type.BOOKING,
        title="Booking cancelled",
        content=content,
        data={"booking_id": event.booking_id},
    )


def on_booking_completed(event: BookingCompleted) -> None:
    notify(
        event.customer_id,
        type=Notification.Type.BOOKING,
        title="Booking completed",
        content=f"'{event.service_title}' has been completed. Leave a review to help others.",
        data={"booking_id": event.booking_id},
    )


def on_payment_initiated(event: PaymentInitiated) -> None:
    notify(
        event.customer_id,
        type=Notification.Type.PAYMENT,
        title="Payment initiated",
        content=(
            f"A payment request of {_money(event.amount)} was sent to your phone. "
            f"Reference: {event.reference}."
        ),
        data={"transaction_id": event.transaction_id, "booking_id": event.booking_id},
        email=False,
    )


def on_payment_completed(event: PaymentCompleted) -> None:
    data = {"transaction_id": event.transaction_id, "booking_id": event.booking_id}
    notify(
        event.customer_id,
        type=Notification.Type.PAYMENT,
        title="Payment successful",
        content=f"Your payment of {_money(event.amount)} was received. Reference: {event.reference}.",
        data=data,
    )
    notify(
        event.provider_id,
        type=Notification.Type.PAYMENT,
        title="Payment received",
        content=f"You received {_money(event.amount)} for booking #{event.booking_id}.",
        data=data,
    )


def on_payment_failed(event: PaymentFailed) -> None:
    content = "Your payment could not be completed. You can try again."
    if event.reason:
        content = f"Your payment could not be completed ({event.reason}). You can try again."
    notify(
        event.customer_id,
        type=Notification.Type.PAYMENT,
        title="Payment failed",
        content=content,
        data={"transaction_id": event.transaction_id, "booking_id": event.booking_id},
    )


def on_review_created(event: ReviewCreated) -> None:
    notify(
        event.reviewee_id,
        type=Notification.Type.REVIEW,
        title="New review",
        content=f"'{event.service_title}' received a {event.rating}-star review.",
        data={"review_id": event.review_id, "service_id": event.service_id},
    )


def on_message_sent(event: MessageSent) -> None:
    notify(
        event.recipient_id,
        type=Notification.Type.MESSAGE,
        title="New message",
        content=f"{event.sender_name} sent you a message.",
        data={"message_id": event.message_id, "sender_id": event.sender_id},
        email=False,
    )


HANDLERS = (
    (BookingCreated, on_booking_created),
    (BookingCancelled, on_booking_cancelled),
    (BookingCompleted, on_booking_completed),
    (PaymentInitiated, on_payment_initiated),
    (PaymentCompleted, on_payment_completed),
    (PaymentFailed, on_payment_failed),
    (ReviewCreated, on_review_created),
    (MessageSent, on_message_sent),
)


def register_handlers() -> None:
    for event_type, handler in HANDLERS:
        message_bus.register_event_handler(event_type, handler)
    logger.debug(f"Registered {len(HANDLERS)} notification handlers")
