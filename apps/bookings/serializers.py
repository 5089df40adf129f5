"""Serializers for the booking domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_datetime  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.services.serializers import ServiceSummarySerializer
from apps.users.serializers import UserSummarySerializer

from .models import Booking


class ISODateField(serializers.DateField):
    """Accepts ``YYYY-MM-DD`` as well as a full ISO-8601 timestamp."""

    def to_internal_value(self, value):  # type: ignore
        if isinstance(value, str) and "T" in value:
            try:
                parsed = parse_datetime(value.replace("Z", "+00:00"))
            except ValueError:
                parsed = None
            if parsed is None:
                self.fail("invalid", format="YYYY-MM-DD or ISO-8601 timestamp")
            if timezone.is_aware(parsed):
                parsed = timezone.localtime(parsed)
            return parsed.date()
        return super().to_internal_value(value)


class BookingCreateSerializer(serializers.Serializer):
    """Input of a booking request."""

    service_id = serializers.IntegerField(min_value=1)
    date = ISODateField()
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000, default="")


class BookingSerializer(serializers.ModelSerializer):
    """Booking with service, customer and provider summaries."""

    service = ServiceSummarySerializer(read_only=True)
    customer = UserSummarySerializer(read_only=True)
    provider = UserSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "service",
            "customer",
            "provider",
            "date",
            "start_time",
            "end_time",
            "notes",
            "total_amount",
            "currency",
            "status",
            "is_paid",
            "paid_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class AvailabilityQuerySerializer(serializers.Serializer):
    service_id = serializers.IntegerField(min_value=1)
    date = ISODateField()
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
