"""API tests for categories and service listings."""

from __future__ import annotations

from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.services.models import Category, Service
from apps.users.models import User


class CategoryAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass12345", role=User.RoleChoices.ADMIN
        )
        self.customer = User.objects.create_user(email="student@example.com", password="pass12345")
        self.category = Category.objects.create(name="Tutoring")

    def test_slug_is_generated(self) -> None:
        self.assertEqual(self.category.slug, "tutoring")

    def test_public_list_and_lookup_by_slug(self) -> None:
        response = self.client.get(reverse("category-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["slug"], "tutoring")
        self.assertEqual(response.data[0]["services_count"], 0)

        detail = self.client.get(reverse("category-detail", args=["tutoring"]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data["id"], self.category.pk)

    def test_only_admin_creates_categories(self) -> None:
        self.client.force_authenticate(self.customer)
        response = self.client.post(reverse("category-list"), {"name": "Laundry"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("category-list"), {"name": "Laundry"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["slug"], "laundry")

    def test_duplicate_category_conflicts(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("category-list"), {"name": "tutoring"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")

    def test_category_with_services_cannot_be_deleted(self) -> None:
        provider = User.objects.create_user(
            email="provider@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        Service.objects.create(
            provider=provider, category=self.category, title="Maths", description="Calculus help", price=Decimal("500")
        )
        self.client.force_authenticate(self.admin)
        response = self.client.delete(reverse("category-detail", args=[self.category.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())


class ServiceAPITests(APITestCase):
    def setUp(self) -> None:
        self.provider = User.objects.create_user(
            email="provider@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        self.other_provider = User.objects.create_user(
            email="other@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        self.customer = User.objects.create_user(email="student@example.com", password="pass12345")
        self.tutoring = Category.objects.create(name="Tutoring")
        self.design = Category.objects.create(name="Graphic Design")
        self.maths = Service.objects.create(
            provider=self.provider,
            category=self.tutoring,
            title="Maths tutoring",
            description="Calculus and linear algebra",
            price=Decimal("800.00"),
        )
        self.logo = Service.objects.create(
            provider=self.other_provider,
            category=self.design,
            title="Logo design",
            description="Logos for student clubs",
            price=Decimal("1500.00"),
            featured=True,
        )
        self.hidden = Service.objects.create(
            provider=self.provider,
            category=self.tutoring,
            title="Physics tutoring",
            description="Mechanics",
            price=Decimal("600.00"),
            status=Service.Status.INACTIVE,
        )

    def _ids(self, response) -> list[int]:
        return [item["id"] for item in response.data["services"]]

    def test_anonymous_sees_active_services_only(self) -> None:
        response = self.client.get(reverse("service-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertCountEqual(self._ids(response), [self.maths.pk, self.logo.pk])
        self.assertEqual(response.data["pagination"]["total"], 2)

    def test_owner_sees_own_inactive_service(self) -> None:
        self.client.force_authenticate(self.provider)
        response = self.client.get(reverse("service-list"))
        self.assertIn(self.hidden.pk, self._ids(response))

    def test_filters_and_sorting(self) -> None:
        url = reverse("service-list")
        self.assertEqual(self._ids(self.client.get(url, {"category": "graphic-design"})), [self.logo.pk])
        self.assertEqual(self._ids(self.client.get(url, {"category": self.tutoring.pk})), [self.maths.pk])
        self.assertEqual(self._ids(self.client.get(url, {"max_price": "1000"})), [self.maths.pk])
        self.assertEqual(self._ids(self.client.get(url, {"featured": "true"})), [self.logo.pk])
        self.assertEqual(self._ids(self.client.get(url, {"search": "LINEAR"})), [self.maths.pk])
        self.assertEqual(
            self._ids(self.client.get(url, {"sort": "price_high"})), [self.logo.pk, self.maths.pk]
        )
        self.assertEqual(
            self._ids(self.client.get(url, {"sort": "price_low"})), [self.maths.pk, self.logo.pk]
        )

    def test_provider_creates_service_with_features(self) -> None:
        self.client.force_authenticate(self.provider)
        payload = {
            "title": "Essay editing",
            "description": "Proofreading and structure",
            "price": "300.00",
            "category": self.tutoring.pk,
            "features": ["One revision", "48h turnaround"],
        }
        response = self.client.post(reverse("service-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["provider"]["id"], self.provider.pk)
        self.assertEqual(response.data["features"], ["One revision", "48h turnaround"])

    def test_customer_cannot_list_services(self) -> None:
        self.client.force_authenticate(self.customer)
        payload = {"title": "X", "description": "Y", "price": "10", "category": self.tutoring.pk}
        response = self.client.post(reverse("service-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_price_must_be_positive(self) -> None:
        self.client.force_authenticate(self.provider)
        payload = {"title": "Free", "description": "Y", "price": "0", "category": self.tutoring.pk}
        response = self.client.post(reverse("service-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("price", response.data["details"])

    def test_only_owner_updates_service(self) -> None:
        self.client.force_authenticate(self.other_provider)
        url = reverse("service-detail", args=[self.maths.pk])
        response = self.client.patch(url, {"price": "1.00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.provider)
        response = self.client.patch(url, {"price": "900.00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["price"], "900.00")

    def test_provider_cannot_feature_own_service(self) -> None:
        self.client.force_authenticate(self.provider)
        url = reverse("service-detail", args=[self.maths.pk])
        response = self.client.patch(url, {"featured": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
