"""Serializers for payment endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    booking_id = serializers.ReadOnlyField(source="booking.id")
    booking_code = serializers.ReadOnlyField(source="booking.booking_code")
    service_title = serializers.ReadOnlyField(source="booking.service.title")
    customer_id = serializers.ReadOnlyField()
    provider_id = serializers.ReadOnlyField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "booking_id",
            "booking_code",
            "service_title",
            "customer_id",
            "provider_id",
            "amount",
            "currency",
            "payment_method",
            "status",
            "reference",
            "details",
            "failure_reason",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MpesaPaymentSerializer(serializers.Serializer):
    """Shape check only; the phone pattern is enforced by the payment service."""

    booking_id = serializers.IntegerField(min_value=1)
    phone_number = serializers.CharField(max_length=20, trim_whitespace=True)
