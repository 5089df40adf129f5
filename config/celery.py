import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("campus_services")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Resolve pending M-Pesa payments the customer never polled for
    "reconcile-pending-transactions": {
        "task": "payments.reconcile_pending_transactions",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
}

app.conf.timezone = "Africa/Nairobi"
