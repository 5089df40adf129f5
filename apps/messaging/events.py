"""Messaging Domain Events"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class MessageSent(DomainEvent):
    """
    Event: A user sent a direct message

    Triggers:
    - Notify the recipient
    """
    message_id: int
    sender_id: int
    sender_name: str
    recipient_id: int
