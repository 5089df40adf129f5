"""API tests for M-Pesa payment initiation and confirmation."""

from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.notifications.models import Notification
from apps.payments.gateway import PaymentGatewayError
from apps.payments.models import Transaction
from apps.payments.services import provider_earnings
from apps.payments.webhooks import compute_signature, verify_signature
from apps.services.models import Category, Service
from apps.users.models import User


class PaymentTestMixin:
    def make_booking_fixture(self) -> None:
        self.customer = User.objects.create_user(email="customer@example.com", password="pass12345")
        self.provider = User.objects.create_user(
            email="provider@example.com", password="pass12345", role=User.RoleChoices.PROVIDER
        )
        self.stranger = User.objects.create_user(email="stranger@example.com", password="pass12345")
        category = Category.objects.create(name="Design")
        self.service = Service.objects.create(
            provider=self.provider,
            category=category,
            title="Poster design",
            description="Event posters",
            price=Decimal("500.00"),
        )
        self.booking = Booking.objects.create(
            service=self.service,
            customer=self.customer,
            provider=self.provider,
            date=timezone.localdate() + timedelta(days=2),
            total_amount=self.service.price,
        )

    def initiate(self, phone: str = "0798765432"):
        return self.client.post(
            reverse("payment-mpesa"),
            {"booking_id": self.booking.pk, "phone_number": phone},
            format="json",
        )

    def age_transaction(self, txn_id: int, seconds: int) -> None:
        Transaction.objects.filter(pk=txn_id).update(
            created_at=timezone.now() - timedelta(seconds=seconds)
        )


class PaymentInitiationAPITests(PaymentTestMixin, APITestCase):
    def setUp(self) -> None:
        self.make_booking_fixture()
        self.client.force_authenticate(self.customer)

    def test_initiation_creates_pending_transaction(self) -> None:
        response = self.initiate("0798765432")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        data = response.data["data"]
        self.assertIn("complete the payment on your phone", data["message"])

        txn = data["transaction"]
        self.assertEqual(txn["status"], "pending")
        self.assertEqual(txn["amount"], "500.00")
        self.assertEqual(txn["details"]["phone_number"], "+254798765432")
        self.assertTrue(txn["reference"].startswith("MP-"))
        self.assertIn("checkout_request_id", txn["details"]["gateway"])

        self.booking.refresh_from_db()
        self.assertFalse(self.booking.is_paid)
        self.assertEqual(self.booking.status, Booking.Status.PENDING)

    def test_invalid_phone_is_rejected(self) -> None:
        response = self.initiate("12345")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone_number", response.data["details"])
        self.assertFalse(Transaction.objects.exists())

    def test_only_booking_customer_can_pay(self) -> None:
        self.client.force_authenticate(self.stranger)
        response = self.initiate()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Transaction.objects.exists())

    def test_unknown_booking(self) -> None:
        response = self.client.post(
            reverse("payment-mpesa"), {"booking_id": 4242, "phone_number": "0712345678"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_already_paid_booking(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(
            is_paid=True, paid_at=timezone.now(), status=Booking.Status.CONFIRMED
        )
        response = self.initiate()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "already_paid")
        self.assertFalse(Transaction.objects.exists())

    def test_second_initiation_while_pending_conflicts(self) -> None:
        first = self.initiate()
        second = self.initiate("0712345678")
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(second.data["details"]["transaction_id"], first.data["data"]["transaction"]["id"])
        self.assertEqual(Transaction.objects.count(), 1)

    def test_cancelled_booking_cannot_be_paid(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.CANCELLED)
        response = self.initiate()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_operation")

    def test_gateway_failure_fails_transaction(self) -> None:
        with mock.patch(
            "apps.payments.gateway.SimulatedMpesaGateway.request_payment",
            side_effect=PaymentGatewayError("timeout"),
        ):
            response = self.initiate()
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        txn = Transaction.objects.get()
        self.assertEqual(txn.status, Transaction.Status.FAILED)

        # The customer can try again once the failed attempt is closed.
        retry = self.initiate()
        self.assertEqual(retry.status_code, status.HTTP_200_OK, retry.data)

    def test_initiation_notifies_customer(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self.initiate()
        notification = Notification.objects.get(recipient=self.customer)
        self.assertEqual(notification.type, Notification.Type.PAYMENT)
        self.assertEqual(notification.title, "Payment initiated")


class PaymentConfirmationAPITests(PaymentTestMixin, APITestCase):
    def setUp(self) -> None:
        self.make_booking_fixture()
        self.client.force_authenticate(self.customer)
        self.txn_id = self.initiate().data["data"]["transaction"]["id"]

    def test_verify_before_settlement_stays_pending(self) -> None:
        response = self.client.get(reverse("payment-verify", args=[self.txn_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "pending")
        self.booking.refresh_from_db()
        self.assertFalse(self.booking.is_paid)

    def test_verify_after_settlement_window_confirms_booking(self) -> None:
        self.age_transaction(self.txn_id, 31)
        response = self.client.get(reverse("payment-verify", args=[self.txn_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")
        self.assertIsNotNone(response.data["completed_at"])
        self.assertIn("receipt_number", response.data["details"])

        self.booking.refresh_from_db()
        self.assertTrue(self.booking.is_paid)
        self.assertIsNotNone(self.booking.paid_at)
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)

    def test_repeated_verify_is_idempotent(self) -> None:
        self.age_transaction(self.txn_id, 31)
        url = reverse("payment-verify", args=[self.txn_id])
        first = self.client.get(url)
        earnings_after_first = provider_earnings(self.provider.pk)
        self.booking.refresh_from_db()
        paid_at = self.booking.paid_at

        second = self.client.get(url)
        self.assertEqual(second.data["status"], "completed")
        self.assertEqual(second.data["completed_at"], first.data["completed_at"])
        self.assertEqual(provider_earnings(self.provider.pk), earnings_after_first)
        self.assertEqual(earnings_after_first, Decimal("500.00"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.paid_at, paid_at)

    def test_provider_can_verify_but_stranger_cannot(self) -> None:
        url = reverse("payment-verify", args=[self.txn_id])
        self.client.force_authenticate(self.provider)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)
        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_settlement_notifies_both_parties(self) -> None:
        self.age_transaction(self.txn_id, 31)
        with self.captureOnCommitCallbacks(execute=True):
            self.client.get(reverse("payment-verify", args=[self.txn_id]))
        self.assertTrue(
            Notification.objects.filter(recipient=self.customer, title="Payment successful").exists()
        )
        self.assertTrue(
            Notification.objects.filter(recipient=self.provider, title="Payment received").exists()
        )

    def test_initiation_after_payment_is_already_paid(self) -> None:
        self.age_transaction(self.txn_id, 31)
        self.client.get(reverse("payment-verify", args=[self.txn_id]))
        response = self.initiate()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "already_paid")

    def test_list_shows_own_transactions(self) -> None:
        response = self.client.get(reverse("payment-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total"], 1)
        self.client.force_authenticate(self.stranger)
        response = self.client.get(reverse("payment-list"))
        self.assertEqual(response.data["pagination"]["total"], 0)


class MpesaCallbackAPITests(PaymentTestMixin, APITestCase):
    def setUp(self) -> None:
        self.make_booking_fixture()
        self.client.force_authenticate(self.customer)
        self.txn = Transaction.objects.get(pk=self.initiate().data["data"]["transaction"]["id"])
        self.client.force_authenticate(None)
        self.url = reverse("payment-mpesa-callback")

    def post_callback(self, payload: dict, secret: str = "test-callback-secret"):
        return self.post_signed_body(json.dumps(payload).encode(), secret)

    def post_signed_body(self, body: bytes, secret: str = "test-callback-secret"):
        return self.client.post(
            self.url,
            body,
            content_type="application/json",
            HTTP_X_MPESA_SIGNATURE=f"sha256={compute_signature(body, secret)}",
        )

    def test_signed_success_callback_settles_payment(self) -> None:
        response = self.post_callback(
            {"reference": self.txn.reference, "status": "SUCCESS", "receipt_number": "QKX123ABC"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["transaction_status"], "completed")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.details["receipt_number"], "QKX123ABC")
        self.booking.refresh_from_db()
        self.assertTrue(self.booking.is_paid)

    def test_bad_signature_is_rejected(self) -> None:
        response = self.post_callback({"reference": self.txn.reference, "status": "SUCCESS"}, secret="wrong")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, Transaction.Status.PENDING)

    def test_failed_callback_allows_retry(self) -> None:
        response = self.post_callback(
            {"reference": self.txn.reference, "status": "CANCELLED", "reason": "User cancelled"}
        )
        self.assertEqual(response.data["transaction_status"], "failed")
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.failure_reason, "User cancelled")

    def test_duplicate_callback_is_ignored(self) -> None:
        self.post_callback({"reference": self.txn.reference, "status": "SUCCESS"})
        response = self.post_callback({"reference": self.txn.reference, "status": "FAILED"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["transaction_status"], "completed")

    def test_missing_reference(self) -> None:
        response = self.post_callback({"status": "SUCCESS"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_signed_body_that_is_not_an_object_is_invalid(self) -> None:
        for body in (b"[]", b'"SUCCESS"', b"1", b"null"):
            with self.subTest(body=body):
                response = self.post_signed_body(body)
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data, {"status": "error", "message": "Invalid JSON"})
        self.txn.refresh_from_db()
        self.assertEqual(self.txn.status, Transaction.Status.PENDING)

    def test_callbacks_are_refused_without_a_configured_secret(self) -> None:
        body = b'{"reference": "MP-X", "status": "SUCCESS"}'
        with self.settings(MPESA_CALLBACK_SECRET=""):
            self.assertFalse(verify_signature(body, f"sha256={compute_signature(body, '')}"))
        self.assertTrue(
            verify_signature(body, f"sha256={compute_signature(body, 'test-callback-secret')}")
        )
