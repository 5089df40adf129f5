"""Direct messages between two users.

A conversation is not stored separately: it is the set of messages
exchanged by a pair of users, optionally tied to a booking for context.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class MessageQuerySet(models.QuerySet):
    def involving(self, user_id: int):
        return self.filter(Q(sender_id=user_id) | Q(recipient_id=user_id))

    def between(self, user_id: int, other_id: int):
        return self.filter(
            Q(sender_id=user_id, recipient_id=other_id)
            | Q(sender_id=other_id, recipient_id=user_id)
        )


class Message(models.Model):
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="messages_sent",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="messages_received",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="messages",
        help_text=_("Booking the message refers to, if any"),
    )
    content = models.TextField(max_length=5000)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="message_recipient_read_idx"),
            models.Index(fields=["sender", "recipient", "created_at"], name="message_pair_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sender=models.F("recipient")),
                name="message_sender_is_not_recipient",
            ),
        ]

    def __str__(self) -> str:
        return f"Message {self.pk} from {self.sender_id} to {self.recipient_id}"
