"""Serializers for direct messages."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserSummarySerializer

from .models import Message


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)
    recipient = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "sender", "recipient", "booking", "content", "is_read", "read_at", "created_at"]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    recipient = serializers.IntegerField(min_value=1)
    content = serializers.CharField(max_length=5000, trim_whitespace=True)
    booking = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class ConversationSerializer(serializers.Serializer):
    partner = UserSummarySerializer()
    last_message = MessageSerializer()
    unread = serializers.IntegerField()
