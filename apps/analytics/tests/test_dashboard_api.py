"""API tests for the admin dashboard."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.analytics.services import parse_period
from apps.bookings.models import Booking
from apps.payments.models import Transaction
from apps.services.models import Category, Service
from apps.users.models import User


class AdminDashboardAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass12345", role=User.RoleChoices.ADMIN
        )
        self.customer = User.objects.create_user(email="customer@example.com", password="pass12345")
        self.provider = User.objects.create_user(
            email="provider@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        self.category = Category.objects.create(name="Tutoring")
        service = Service.objects.create(
            provider=self.provider,
            category=self.category,
            title="Maths",
            description="Algebra",
            price=Decimal("400.00"),
        )
        now = timezone.now()
        paid = Booking.objects.create(
            service=service,
            customer=self.customer,
            provider=self.provider,
            date=timezone.localdate() + timedelta(days=1),
            total_amount=service.price,
            status=Booking.Status.CONFIRMED,
            is_paid=True,
            paid_at=now,
        )
        Booking.objects.create(
            service=service,
            customer=self.customer,
            provider=self.provider,
            date=timezone.localdate() + timedelta(days=2),
            total_amount=service.price,
        )
        Transaction.objects.create(
            booking=paid,
            customer=self.customer,
            provider=self.provider,
            amount=paid.total_amount,
            reference="MP-DASHBOARD",
            status=Transaction.Status.COMPLETED,
            completed_at=now,
        )
        self.url = reverse("admin-dashboard")

    def test_admin_only(self) -> None:
        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_dashboard_totals(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.get(self.url, {"period": 7})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data["period"], 7)
        self.assertEqual(data["totals"]["users"], 3)
        self.assertEqual(data["totals"]["bookings"], 2)
        self.assertEqual(data["totals"]["revenue"], Decimal("400.00"))
        self.assertEqual(data["users_by_role"], {"admin": 1, "customer": 1, "provider": 1})
        self.assertEqual(data["bookings_by_status"], {"confirmed": 1, "pending": 1})
        self.assertEqual(data["services_by_category"][0]["services"], 1)
        self.assertEqual(len(data["recent_bookings"]), 2)

    def test_unknown_period_falls_back(self) -> None:
        self.assertEqual(parse_period("14"), 30)
        self.assertEqual(parse_period(None), 30)
        self.assertEqual(parse_period("365"), 365)
