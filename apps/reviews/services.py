"""Review services: creation rules, moderation and rating aggregation."""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Avg, Count  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.users.context import Caller
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import Conflict, Forbidden, InvalidOperation, NotFound

from .events import ReviewCreated
from .models import Review

logger = logging.getLogger(__name__)


def rating_summary(queryset) -> dict:
    summary = queryset.filter(status=Review.Status.PUBLISHED).aggregate(
        average_rating=Avg("rating"),
        review_count=Count("id"),
    )
    if summary["average_rating"] is not None:
        summary["average_rating"] = round(float(summary["average_rating"]), 2)
    return summary


def rating_summary_for_user(user_id: int) -> dict:
    """Average of published reviews the user received as a provider."""
    return rating_summary(Review.objects.filter(reviewee_id=user_id))


def rating_summary_for_service(service_id: int) -> dict:
    return rating_summary(Review.objects.filter(service_id=service_id))


def create_review(caller: Caller, *, booking_id, rating: int, comment: str = "") -> Review:
    booking = Booking.objects.select_related("service").filter(pk=booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    if booking.customer_id != caller.user_id:
        raise Forbidden("Only the customer of this booking can review it")
    if booking.status != Booking.Status.COMPLETED:
        raise InvalidOperation("You can only review completed bookings")
    if Review.objects.filter(booking_id=booking.pk).exists():
        raise Conflict("This booking has already been reviewed")

    with DjangoUnitOfWork() as uow:
        try:
            with transaction.atomic():
                review = Review.objects.create(
                    booking=booking,
                    service_id=booking.service_id,
                    reviewer_id=caller.user_id,
                    reviewee_id=booking.provider_id,
                    rating=rating,
                    comment=comment or "",
                )
        except IntegrityError:
            raise Conflict("This booking has already been reviewed")
        uow.record(
            ReviewCreated(
                aggregate_id=review.pk,
                review_id=review.pk,
                service_id=booking.service_id,
                service_title=booking.service.title,
                reviewer_id=caller.user_id,
                reviewee_id=booking.provider_id,
                rating=rating,
            )
        )
    logger.info(f"Review {review.pk} ({rating}/5) created for booking {booking.pk}")
    return review


def _get_review(review_id) -> Review:
    review = Review.objects.filter(pk=review_id).first()
    if review is None:
        raise NotFound("Review not found")
    return review


def flag_review(caller: Caller, review_id, *, reason: str) -> Review:
    review = _get_review(review_id)
    if review.reviewer_id == caller.user_id:
        raise InvalidOperation("You cannot flag your own review")
    review.status = Review.Status.FLAGGED
    review.flag_reason = reason[:255]
    review.flagged_by_id = caller.user_id
    review.save(update_fields=["status", "flag_reason", "flagged_by", "updated_at"])
    logger.info(f"Review {review.pk} flagged by user {caller.user_id}")
    return review


def moderate_review(caller: Caller, review_id, *, status: str) -> Review:
    if not caller.is_admin:
        raise Forbidden("Only admins can moderate reviews")
    review = _get_review(review_id)
    review.status = status
    if status == Review.Status.PUBLISHED:
        review.flag_reason = ""
        review.flagged_by = None
    review.save(update_fields=["status", "flag_reason", "flagged_by", "updated_at"])
    logger.info(f"Review {review.pk} set to {status} by admin {caller.user_id}")
    return review


def respond_to_review(caller: Caller, review_id, *, response: str) -> Review:
    review = _get_review(review_id)
    if review.reviewee_id != caller.user_id:
        raise Forbidden("Only the reviewed provider can respond")
    if review.provider_response:
        raise InvalidOperation("This review already has a response")
    review.provider_response = response
    review.provider_response_at = timezone.now()
    review.save(update_fields=["provider_response", "provider_response_at", "updated_at"])
    return review
