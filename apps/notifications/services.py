"""Notification services: in-app records and e-mail delivery."""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.core.mail import send_mail  # type: ignore

from .models import Notification

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, message: str) -> bool:
    """
    Send a plain-text notification e-mail.

    Returns:
        bool: True if the message was handed to the mail backend
    """
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def _queue_email(notification: Notification) -> None:
    from .tasks import deliver_notification_email

    try:
        deliver_notification_email.delay(notification.pk)
    except Exception as e:
        # Broker outages must not break the request that triggered the event.
        logger.warning(f"Could not queue e-mail for notification {notification.pk}: {e}")


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def notify(
    recipient_id: int,
    *,
    type: str,
    title: str,
    content: str,
    data: Optional[dict] = None,
    email: Optional[bool] = None,
) -> Optional[Notification]:
    """
    Create an in-app notification and optionally mirror it by e-mail.

    ``email`` defaults to ``settings.NOTIFICATIONS_EMAIL_ENABLED``.
    Returns None when the recipient no longer exists.
    """
    User = get_user_model()
    if not User.objects.filter(pk=recipient_id, is_active=True).exists():
        logger.warning(f"Notification '{title}' skipped: user {recipient_id} is missing or inactive")
        return None

    notification = Notification.objects.create(
        recipient_id=recipient_id,
        type=type,
        title=title,
        content=content,
        data=data or {},
    )
    logger.info(f"In-app notification created for user {recipient_id}: {title}")

    if email is None:
        email = getattr(settings, "NOTIFICATIONS_EMAIL_ENABLED", False)
    if email:
        _queue_email(notification)
    return notification


def mark_all_read(user_id: int) -> int:
    return Notification.objects.filter(recipient_id=user_id, is_read=False).update(is_read=True)


def unread_count(user_id: int) -> int:
    return Notification.objects.filter(recipient_id=user_id, is_read=False).count()
