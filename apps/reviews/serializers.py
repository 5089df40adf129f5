"""Serializers for reviews.

The reviewer, reviewee and service are derived from the booking in the
service layer; clients only send the booking, the rating and a comment.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.services.serializers import ServiceSummarySerializer
from apps.users.serializers import UserSummarySerializer

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserSummarySerializer(read_only=True)
    reviewee = UserSummarySerializer(read_only=True)
    service = ServiceSummarySerializer(read_only=True)
    booking_id = serializers.ReadOnlyField()

    class Meta:
        model = Review
        fields = [
            "id",
            "booking_id",
            "service",
            "reviewer",
            "reviewee",
            "rating",
            "comment",
            "status",
            "provider_response",
            "provider_response_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=2000, default="")


class ReviewFlagSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)


class ReviewModerationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Review.Status.choices)


class ProviderResponseSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=2000)
