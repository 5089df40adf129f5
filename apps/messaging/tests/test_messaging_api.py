"""API tests for direct messages."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.messaging.models import Message
from apps.notifications.models import Notification
from apps.users.models import User


class MessagingAPITests(APITestCase):
    def setUp(self) -> None:
        self.alice = User.objects.create_user(email="alice@example.com", password="pass12345", username="Alice")
        self.bob = User.objects.create_user(email="bob@example.com", password="pass12345", username="Bob")
        self.carol = User.objects.create_user(email="carol@example.com", password="pass12345", username="Carol")
        self.url = reverse("message-list")

    def send(self, sender, recipient, content):
        self.client.force_authenticate(sender)
        return self.client.post(self.url, {"recipient": recipient.pk, "content": content}, format="json")

    def test_send_message_notifies_recipient(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self.send(self.alice, self.bob, "Is the tutoring slot still open?")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["recipient"]["id"], self.bob.pk)
        notification = Notification.objects.get(recipient=self.bob)
        self.assertEqual(notification.type, Notification.Type.MESSAGE)
        self.assertIn("Alice", notification.content)

    def test_cannot_message_self(self) -> None:
        response = self.send(self.alice, self.alice, "Note to self")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Message.objects.exists())

    def test_unknown_recipient(self) -> None:
        self.client.force_authenticate(self.alice)
        response = self.client.post(self.url, {"recipient": 999, "content": "Hello"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_conversation_filter_and_summary(self) -> None:
        self.send(self.alice, self.bob, "Hi Bob")
        self.send(self.bob, self.alice, "Hi Alice")
        self.send(self.carol, self.alice, "Hello from Carol")

        self.client.force_authenticate(self.alice)
        response = self.client.get(self.url, {"with": self.bob.pk})
        self.assertEqual(response.data["pagination"]["total"], 2)

        response = self.client.get(reverse("message-conversations"))
        conversations = response.data["conversations"]
        self.assertEqual([c["partner"]["id"] for c in conversations], [self.carol.pk, self.bob.pk])
        self.assertEqual(conversations[0]["unread"], 1)
        self.assertEqual(conversations[1]["last_message"]["content"], "Hi Alice")

    def test_only_recipient_marks_read(self) -> None:
        message_id = self.send(self.alice, self.bob, "Ping").data["id"]
        url = reverse("message-mark-read", args=[message_id])

        self.client.force_authenticate(self.alice)
        self.assertEqual(self.client.post(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.carol)
        self.assertEqual(self.client.post(url).status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(self.bob)
        self.assertEqual(self.client.get(reverse("message-unread-count")).data["unread"], 1)
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_read"])
        self.assertEqual(self.client.get(reverse("message-unread-count")).data["unread"], 0)

    def test_read_conversation(self) -> None:
        self.send(self.alice, self.bob, "One")
        self.send(self.alice, self.bob, "Two")
        self.client.force_authenticate(self.bob)
        response = self.client.post(reverse("message-read-conversation", args=[self.alice.pk]))
        self.assertEqual(response.data["updated"], 2)

    def test_messages_are_private(self) -> None:
        message_id = self.send(self.alice, self.bob, "Secret").data["id"]
        self.client.force_authenticate(self.carol)
        response = self.client.get(reverse("message-detail", args=[message_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
