"""Messaging services: sending, conversations and read receipts."""

from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.bookings.models import Booking
from apps.users.context import Caller
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import Forbidden, NotFound, ValidationError

from .events import MessageSent
from .models import Message

logger = logging.getLogger(__name__)

User = get_user_model()


def send_message(
    caller: Caller,
    *,
    recipient_id: int,
    content: str,
    booking_id: Optional[int] = None,
) -> Message:
    if recipient_id == caller.user_id:
        raise ValidationError("You cannot send a message to yourself")
    if not content or not content.strip():
        raise ValidationError("Message content is required")
    recipient = User.objects.filter(pk=recipient_id, is_active=True).first()
    if recipient is None:
        raise NotFound("Recipient not found")

    if booking_id is not None:
        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            raise NotFound("Booking not found")
        participants = {booking.customer_id, booking.provider_id}
        if participants != {caller.user_id, recipient_id}:
            raise Forbidden("Messages about a booking are limited to its customer and provider")

    sender = User.objects.get(pk=caller.user_id)
    with DjangoUnitOfWork() as uow:
        message = Message.objects.create(
            sender=sender,
            recipient=recipient,
            booking_id=booking_id,
            content=content.strip(),
        )
        uow.record(
            MessageSent(
                aggregate_id=message.pk,
                message_id=message.pk,
                sender_id=sender.pk,
                sender_name=sender.display_name,
                recipient_id=recipient.pk,
            )
        )
    logger.info(f"Message {message.pk} sent from user {sender.pk} to user {recipient.pk}")
    return message


def conversations_for(user_id: int) -> list[dict]:
    """
    One entry per conversation partner, most recent first.

    Each entry carries the partner id, the last message and the number
    of messages from that partner the user has not read yet.
    """
    latest: dict[int, Message] = {}
    unread: dict[int, int] = {}
    messages = Message.objects.involving(user_id).select_related("sender", "recipient")
    for message in messages:
        partner_id = message.recipient_id if message.sender_id == user_id else message.sender_id
        latest.setdefault(partner_id, message)
        if message.recipient_id == user_id and not message.is_read:
            unread[partner_id] = unread.get(partner_id, 0) + 1
    return [
        {
            "partner_id": partner_id,
            "partner": message.recipient if message.sender_id == user_id else message.sender,
            "last_message": message,
            "unread": unread.get(partner_id, 0),
        }
        for partner_id, message in latest.items()
    ]


def mark_read(caller: Caller, message_id) -> Message:
    message = Message.objects.involving(caller.user_id).filter(pk=message_id).first()
    if message is None:
        raise NotFound("Message not found")
    if message.recipient_id != caller.user_id:
        raise Forbidden("Only the recipient can mark a message as read")
    if not message.is_read:
        message.is_read = True
        message.read_at = timezone.now()
        message.save(update_fields=["is_read", "read_at"])
    return message


def mark_conversation_read(caller: Caller, other_id: int) -> int:
    return Message.objects.filter(
        sender_id=other_id, recipient_id=caller.user_id, is_read=False
    ).update(is_read=True, read_at=timezone.now())


def unread_count(user_id: int) -> int:
    return Message.objects.filter(recipient_id=user_id, is_read=False).count()
