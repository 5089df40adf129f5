"""API tests for authentication and profile endpoints."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "email": "student@example.com",
            "phone": "0712 345 678",
            "first_name": "Amina",
            "last_name": "Otieno",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "provider",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("access", response.data["tokens"])
        self.assertEqual(response.data["tokens"]["expires_in"], 3600)
        self.assertEqual(response.data["user"]["email"], payload["email"])
        self.assertEqual(response.data["user"]["role"], "provider")
        user = User.objects.get(email=payload["email"])
        self.assertEqual(user.phone, "+254712345678")

    def test_register_cannot_claim_admin_role(self) -> None:
        payload = {
            "email": "sneaky@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "role": "admin",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid")
        self.assertIn("role", response.data["details"])

    def test_register_rejects_invalid_phone(self) -> None:
        payload = {
            "email": "badphone@example.com",
            "phone": "0812 345 678",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", response.data["details"])
        self.assertFalse(User.objects.filter(email=payload["email"]).exists())

    def test_register_rejects_phone_taken_in_another_format(self) -> None:
        User.objects.create_user(email="first@example.com", phone="0712345678", password="StrongPass123")
        payload = {
            "email": "second@example.com",
            "phone": "+254 712 345 678",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", response.data["details"])

    def test_register_rejects_mismatched_passwords(self) -> None:
        payload = {
            "email": "typo@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass124",
        }
        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password_confirm", response.data["details"])

    def test_login_with_email_or_phone(self) -> None:
        User.objects.create_user(
            email="login@example.com",
            phone="+254712000111",
            password="CorrectPassword1",
        )
        url = reverse("auth:login")

        by_email = self.client.post(url, {"login": "login@example.com", "password": "CorrectPassword1"})
        self.assertEqual(by_email.status_code, status.HTTP_200_OK, by_email.data)
        self.assertIn("refresh", by_email.data["tokens"])

        by_phone = self.client.post(url, {"login": "+254712000111", "password": "CorrectPassword1"})
        self.assertEqual(by_phone.status_code, status.HTTP_200_OK, by_phone.data)

        by_local_phone = self.client.post(url, {"login": "0712 000 111", "password": "CorrectPassword1"})
        self.assertEqual(by_local_phone.status_code, status.HTTP_200_OK, by_local_phone.data)

    def test_login_limited_attempts(self) -> None:
        user = User.objects.create_user(
            email="lock@example.com",
            phone="+254711111111",
            password="CorrectPassword1",
        )

        url = reverse("auth:login")
        wrong_payload = {"login": user.email, "password": "wrong"}
        for _ in range(5):
            response = self.client.post(url, wrong_payload, format="json")

        user.refresh_from_db()
        self.assertTrue(user.is_locked)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        # After lock expires user can login again
        user.locked_until = timezone.now() - timedelta(minutes=1)
        user.save(update_fields=["locked_until"])
        response = self.client.post(url, {"login": user.email, "password": "CorrectPassword1"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        user.refresh_from_db()
        self.assertEqual(user.failed_login_attempts, 0)

    def test_refresh_token(self) -> None:
        User.objects.create_user(email="refresh@example.com", password="CorrectPassword1")
        login = self.client.post(
            reverse("auth:login"),
            {"login": "refresh@example.com", "password": "CorrectPassword1"},
        )
        response = self.client.post(
            reverse("auth:token_refresh"), {"refresh": login.data["tokens"]["refresh"]}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)

        verify = self.client.post(reverse("auth:token_verify"), {"token": response.data["access"]})
        self.assertEqual(verify.status_code, status.HTTP_200_OK, verify.data)


class UserProfileAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="me@example.com", password="pass12345")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass12345", role=User.RoleChoices.ADMIN
        )

    def test_me_requires_authentication(self) -> None:
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "not_authenticated")

    def test_me_update_normalizes_phone(self) -> None:
        self.client.force_authenticate(self.user)
        response = self.client.patch(
            reverse("user-me"), {"phone": "0712-345-678", "university": "UoN"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["phone"], "+254712345678")
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone, "+254712345678")
        self.assertEqual(response.data["role"], "customer")

    def test_me_update_rejects_invalid_phone(self) -> None:
        self.client.force_authenticate(self.user)
        response = self.client.patch(reverse("user-me"), {"phone": "12345"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", response.data["details"])
        self.user.refresh_from_db()
        self.assertIsNone(self.user.phone)

    def test_me_cannot_change_role(self) -> None:
        self.client.force_authenticate(self.user)
        self.client.patch(reverse("user-me"), {"role": "admin"}, format="json")
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.RoleChoices.CUSTOMER)

    def test_public_profile_hides_contact_details(self) -> None:
        response = self.client.get(reverse("user-detail", args=[self.user.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn("email", response.data)
        self.assertEqual(response.data["review_count"], 0)
        self.assertIsNone(response.data["average_rating"])

    def test_user_list_is_admin_only(self) -> None:
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get(reverse("user-list")).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("user-list"), {"role": "customer"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total"], 1)
        self.assertEqual(response.data["users"][0]["email"], "me@example.com")

    def test_admin_can_deactivate_user(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            reverse("user-detail", args=[self.user.pk]), {"is_active": False}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)
