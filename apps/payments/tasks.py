"""Celery tasks for the payments domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import reconcile_pending_transactions

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat)
# ============================================================================

@shared_task(name="payments.reconcile_pending_transactions")
def reconcile_pending_transactions_task() -> dict[str, int]:
    """
    Settle or expire pending payments nobody is polling for.

    Covers customers who close the app after approving the prompt on
    their phone: the booking is still confirmed.
    """
    counts = reconcile_pending_transactions()
    if counts["checked"]:
        logger.info(
            f"Reconciled {counts['checked']} pending payments: "
            f"{counts['completed']} completed, {counts['failed']} failed, {counts['expired']} expired"
        )
    return counts
