"""
Payment Domain Events

Published after the payment transaction commits.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class PaymentInitiated(DomainEvent):
    """
    Event: A customer started paying for a booking

    Triggers:
    - Tell the customer to approve the prompt on their phone
    """
    transaction_id: int
    booking_id: int
    customer_id: int
    amount: Decimal
    reference: str


@dataclass(kw_only=True)
class PaymentCompleted(DomainEvent):
    """
    Event: A payment settled and its booking is confirmed

    Triggers:
    - Receipt notification to the customer
    - Payment received notification to the provider
    """
    transaction_id: int
    booking_id: int
    customer_id: int
    provider_id: int
    amount: Decimal
    reference: str


@dataclass(kw_only=True)
class PaymentFailed(DomainEvent):
    """
    Event: A payment failed; the customer may try again

    Triggers:
    - Notify the customer
    """
    transaction_id: int
    booking_id: int
    customer_id: int
    reason: str = ""
