"""Payment transaction models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Transaction(models.Model):
    """A payment attempt for a booking."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    class Method(models.TextChoices):
        MPESA = "mpesa", _("M-Pesa")
        CARD = "card", _("Card")
        CASH = "cash", _("Cash")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_made",
    )
    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="KES")
    payment_method = models.CharField(
        max_length=20,
        choices=Method.choices,
        default=Method.MPESA,
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    reference = models.CharField(
        max_length=40,
        unique=True,
        help_text=_("Idempotency key shared with the payment provider."),
    )
    details = models.JSONField(default=dict, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Transaction")
        verbose_name_plural = _("Transactions")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="pending"),
                name="one_pending_transaction_per_booking",
            ),
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="completed"),
                name="one_completed_transaction_per_booking",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="transaction_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "created_at"], name="txn_status_created_idx"),
            models.Index(fields=["customer", "status"], name="txn_customer_status_idx"),
            models.Index(fields=["provider", "status"], name="txn_provider_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.reference} ({self.status}) for booking {self.booking_id}"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    def can_be_viewed_by(self, user_id: int, is_admin: bool = False) -> bool:
        return is_admin or user_id in (self.customer_id, self.provider_id)
