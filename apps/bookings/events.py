"""
Booking Domain Events

Published after the booking transaction commits. The notifications app
turns them into in-app notifications and e-mail.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A customer booked a service

    Triggers:
    - Notify the provider about the new booking
    """
    booking_id: int
    service_id: int
    service_title: str
    customer_id: int
    provider_id: int
    date: date
    total_amount: Decimal


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: A stakeholder cancelled the booking

    Triggers:
    - Notify the other party
    """
    booking_id: int
    service_title: str
    customer_id: int
    provider_id: int
    cancelled_by_id: int
    reason: str = ""


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """
    Event: The provider delivered the service (CONFIRMED -> COMPLETED)

    Triggers:
    - Invite the customer to leave a review
    """
    booking_id: int
    service_title: str
    customer_id: int
    provider_id: int
