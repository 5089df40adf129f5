"""Notifications app package.

Listens to domain events from bookings, payments, reviews and messaging
and turns them into in-app notifications, optionally mirrored by e-mail
through a Celery task. Handlers are wired in ``NotificationsConfig.ready``.
"""
