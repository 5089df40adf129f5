"""API tests for reviews and rating aggregation."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.reviews.models import Review
from apps.services.models import Category, Service
from apps.users.models import User


class ReviewAPITests(APITestCase):
    def setUp(self) -> None:
        self.customer = User.objects.create_user(email="customer@example.com", password="pass12345")
        self.other_customer = User.objects.create_user(email="other@example.com", password="pass12345")
        self.provider = User.objects.create_user(
            email="provider@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass12345", role=User.RoleChoices.ADMIN
        )
        self.service = Service.objects.create(
            provider=self.provider,
            category=Category.objects.create(name="Photography"),
            title="Graduation photos",
            description="One hour shoot",
            price=Decimal("3000.00"),
        )
        self.completed = self._booking(self.customer, Booking.Status.COMPLETED)
        self.url = reverse("review-list")

    def _booking(self, customer, booking_status) -> Booking:
        return Booking.objects.create(
            service=self.service,
            customer=customer,
            provider=self.provider,
            date=timezone.localdate() - timedelta(days=1),
            total_amount=self.service.price,
            status=booking_status,
        )

    def _review(self, booking, rating, reviewer=None) -> Review:
        return Review.objects.create(
            booking=booking,
            service=self.service,
            reviewer=reviewer or booking.customer,
            reviewee=self.provider,
            rating=rating,
        )

    def test_customer_reviews_completed_booking(self) -> None:
        self.client.force_authenticate(self.customer)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                self.url, {"booking_id": self.completed.pk, "rating": 5, "comment": "Great"}, format="json"
            )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["reviewee"]["id"], self.provider.pk)
        self.assertEqual(response.data["service"]["id"], self.service.pk)
        self.assertTrue(
            Notification.objects.filter(recipient=self.provider, type=Notification.Type.REVIEW).exists()
        )

    def test_duplicate_review_conflicts(self) -> None:
        self._review(self.completed, 4)
        self.client.force_authenticate(self.customer)
        response = self.client.post(self.url, {"booking_id": self.completed.pk, "rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_pending_booking_cannot_be_reviewed(self) -> None:
        pending = self._booking(self.customer, Booking.Status.PENDING)
        self.client.force_authenticate(self.customer)
        response = self.client.post(self.url, {"booking_id": pending.pk, "rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_operation")

    def test_only_booking_customer_can_review(self) -> None:
        self.client.force_authenticate(self.other_customer)
        response = self.client.post(self.url, {"booking_id": self.completed.pk, "rating": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_rating_out_of_range(self) -> None:
        self.client.force_authenticate(self.customer)
        response = self.client.post(self.url, {"booking_id": self.completed.pk, "rating": 6}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("rating", response.data["details"])

    def test_list_by_service_includes_rating_summary(self) -> None:
        self._review(self.completed, 5)
        second = self._booking(self.other_customer, Booking.Status.COMPLETED)
        hidden = self._review(second, 2)
        Review.objects.filter(pk=hidden.pk).update(status=Review.Status.HIDDEN)
        third = self._booking(self.other_customer, Booking.Status.COMPLETED)
        self._review(third, 4)

        response = self.client.get(self.url, {"service": self.service.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total"], 2)
        self.assertEqual(response.data["rating"], {"average_rating": 4.5, "review_count": 2})

        profile = self.client.get(reverse("user-detail", args=[self.provider.pk]))
        self.assertEqual(profile.data["average_rating"], 4.5)

    def test_flag_and_moderate(self) -> None:
        review = self._review(self.completed, 1)
        self.client.force_authenticate(self.other_customer)
        response = self.client.post(
            reverse("review-flag", args=[review.pk]), {"reason": "Spam"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "flagged")

        response = self.client.post(
            reverse("review-moderate", args=[review.pk]), {"status": "hidden"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("review-moderate", args=[review.pk]), {"status": "published"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        review.refresh_from_db()
        self.assertEqual(review.status, Review.Status.PUBLISHED)
        self.assertEqual(review.flag_reason, "")

    def test_provider_responds_once(self) -> None:
        review = self._review(self.completed, 3)
        url = reverse("review-respond", args=[review.pk])

        self.client.force_authenticate(self.customer)
        self.assertEqual(
            self.client.post(url, {"response": "Hi"}, format="json").status_code, status.HTTP_403_FORBIDDEN
        )

        self.client.force_authenticate(self.provider)
        response = self.client.post(url, {"response": "Thanks for the feedback"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["provider_response"], "Thanks for the feedback")

        again = self.client.post(url, {"response": "Edit"}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
