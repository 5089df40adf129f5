"""
Mobile-money gateway adapters

The payment services talk to the provider only through this interface:
``request_payment`` asks the provider to push a payment prompt to the
customer's phone, ``query_status`` asks whether a transaction has settled.
The concrete class is chosen by ``settings.PAYMENT_GATEWAY_CLASS``.

Only the simulated adapter ships: it accepts every push and reports a
transaction as paid once ``PAYMENT_SIMULATED_SETTLEMENT_SECONDS`` have
passed since it was created.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The provider rejected a request or could not be reached."""


@dataclass(frozen=True)
class GatewayStatus:
    """Provider-side view of a transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    status: str
    receipt_number: str = ""
    reason: str = ""
    raw: dict = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == self.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status == self.FAILED


class MobileMoneyGateway:
    """Interface every gateway adapter implements."""

    name = "base"

    def request_payment(
        self,
        *,
        reference: str,
        phone_number: str,
        amount: Decimal,
        description: str = "",
    ) -> dict:
        raise NotImplementedError

    def query_status(self, transaction, now: Optional[datetime] = None) -> GatewayStatus:
        raise NotImplementedError


class SimulatedMpesaGateway(MobileMoneyGateway):
    """Stand-in for an STK push integration, used until a real one exists."""

    name = "simulated-mpesa"

    def __init__(self, settlement_seconds: Optional[int] = None):
        if settlement_seconds is None:
            settlement_seconds = getattr(settings, "PAYMENT_SIMULATED_SETTLEMENT_SECONDS", 30)
        self.settlement_window = timedelta(seconds=settlement_seconds)

    def request_payment(self, *, reference, phone_number, amount, description=""):  # type: ignore
        logger.warning(
            f"Simulated M-Pesa push for {reference}: {amount} to {phone_number[:-4]}****"
        )
        return {
            "gateway": self.name,
            "checkout_request_id": f"ws_CO_{uuid.uuid4().hex[:20]}",
            "merchant_request_id": f"{secrets.randbelow(10**5):05d}-{uuid.uuid4().hex[:8]}",
            "response_code": "0",
            "customer_message": "Success. Request accepted for processing",
        }

    def query_status(self, transaction, now=None):  # type: ignore
        now = now or timezone.now()
        if now - transaction.created_at > self.settlement_window:
            return GatewayStatus(
                status=GatewayStatus.COMPLETED,
                receipt_number=f"SIM{secrets.token_hex(5).upper()}",
            )
        return GatewayStatus(status=GatewayStatus.PENDING)


def get_gateway() -> MobileMoneyGateway:
    gateway_path = getattr(
        settings, "PAYMENT_GATEWAY_CLASS", "apps.payments.gateway.SimulatedMpesaGateway"
    )
    return import_string(gateway_path)()
