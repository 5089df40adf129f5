"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.phone import INVALID_PHONE_MESSAGE, is_valid_phone_number

User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in bookings, messages and reviews."""

    name = serializers.ReadOnlyField(source="display_name")

    class Meta:
        model = User
        fields = ["id", "name", "email", "image", "role"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Full profile of the authenticated user."""

    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "role",
            "bio",
            "university",
            "image",
            "is_verified",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "is_verified",
            "created_at",
            "updated_at",
        ]

    def validate_phone(self, value):  # type: ignore
        if not value:
            return None
        if not is_valid_phone_number(value):
            raise serializers.ValidationError(INVALID_PHONE_MESSAGE)
        value = User.objects.normalize_phone(value)
        duplicates = User.objects.filter(phone=value)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError("A user with this phone number already exists.")
        return value


class PublicProfileSerializer(serializers.ModelSerializer):
    """What other users see: no contact details, plus provider rating."""

    name = serializers.ReadOnlyField(source="display_name")
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "role",
            "bio",
            "university",
            "image",
            "is_verified",
            "average_rating",
            "review_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_average_rating(self, obj):  # type: ignore
        rating = self.context.get("rating") or {}
        return rating.get("average_rating")

    def get_review_count(self, obj):  # type: ignore
        rating = self.context.get("rating") or {}
        return rating.get("review_count", 0)


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    """Fields platform admins may change on any account."""

    class Meta:
        model = User
        fields = ["id", "email", "role", "is_active", "is_verified"]
        read_only_fields = ["id", "email"]
