"""Serializers for the services catalogue."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.users.serializers import UserSummarySerializer

from .models import Category, Service, ServiceFeature


class CategorySerializer(serializers.ModelSerializer):
    services_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "icon", "services_count", "created_at"]
        read_only_fields = ["id", "services_count", "created_at"]
        # Uniqueness is checked in the view so duplicates answer 409, not 400.
        extra_kwargs = {
            "name": {"validators": []},
            "slug": {"validators": [], "required": False, "allow_blank": True},
        }


class CategoryShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "icon"]


class ServiceSummarySerializer(serializers.ModelSerializer):
    """Embedded in bookings and reviews."""

    class Meta:
        model = Service
        fields = ["id", "title", "price", "image", "status"]
        read_only_fields = fields


class ServiceSerializer(serializers.ModelSerializer):
    provider = UserSummarySerializer(read_only=True)
    category = CategoryShortSerializer(read_only=True)
    features = serializers.SlugRelatedField(many=True, read_only=True, slug_field="feature")
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Service
        fields = [
            "id",
            "title",
            "description",
            "price",
            "price_type",
            "location",
            "image",
            "featured",
            "discount",
            "availability",
            "delivery_time",
            "status",
            "provider",
            "category",
            "features",
            "average_rating",
            "review_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_average_rating(self, obj: Service):  # type: ignore
        rating = getattr(obj, "average_rating", None)
        return round(float(rating), 2) if rating is not None else None


class ServiceWriteSerializer(serializers.ModelSerializer):
    """Create/update by the owning provider. ``features`` replaces the whole list."""

    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all())
    features = serializers.ListField(
        child=serializers.CharField(max_length=255), required=False, write_only=True
    )

    class Meta:
        model = Service
        fields = [
            "title",
            "description",
            "price",
            "price_type",
            "location",
            "image",
            "featured",
            "discount",
            "availability",
            "delivery_time",
            "status",
            "category",
            "features",
        ]

    def validate(self, attrs):  # type: ignore
        request = self.context.get("request")
        user = getattr(request, "user", None)
        is_admin = bool(user and hasattr(user, "is_admin") and user.is_admin())
        if not is_admin:
            if attrs.get("featured"):
                raise serializers.ValidationError({"featured": "Only admins can feature a service."})
            if attrs.get("status") == Service.Status.SUSPENDED:
                raise serializers.ValidationError({"status": "Only admins can suspend a service."})
            if self.instance is not None and self.instance.status == Service.Status.SUSPENDED and "status" in attrs:
                raise serializers.ValidationError({"status": "A suspended service can only be restored by an admin."})
        return attrs

    @transaction.atomic
    def create(self, validated_data):  # type: ignore
        features = validated_data.pop("features", [])
        service = Service.objects.create(**validated_data)
        ServiceFeature.objects.bulk_create(
            [ServiceFeature(service=service, feature=feature) for feature in features]
        )
        return service

    @transaction.atomic
    def update(self, instance, validated_data):  # type: ignore
        features = validated_data.pop("features", None)
        instance = super().update(instance, validated_data)
        if features is not None:
            instance.features.all().delete()
            ServiceFeature.objects.bulk_create(
                [ServiceFeature(service=instance, feature=feature) for feature in features]
            )
        return instance
