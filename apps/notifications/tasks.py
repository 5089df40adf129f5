"""Celery tasks for notification delivery."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .models import Notification
from .services import send_email_notification

logger = logging.getLogger(__name__)


@shared_task(name="notifications.deliver_email")
def deliver_notification_email(notification_id: int) -> bool:
    """Mirror an in-app notification to the recipient's inbox."""
    notification = Notification.objects.select_related("recipient").filter(pk=notification_id).first()
    if notification is None:
        logger.warning(f"Notification {notification_id} vanished before e-mail delivery")
        return False
    if not notification.recipient.email:
        return False
    return send_email_notification(
        recipient_email=notification.recipient.email,
        subject=notification.title,
        message=notification.content,
    )
