"""Review Domain Events"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class ReviewCreated(DomainEvent):
    """
    Event: A customer reviewed a completed booking

    Triggers:
    - Notify the reviewed provider
    """
    review_id: int
    service_id: int
    service_title: str
    reviewer_id: int
    reviewee_id: int
    rating: int
