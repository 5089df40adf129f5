"""Admin registration for payment transactions."""

from __future__ import annotations

from django.contrib import admin

from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("reference", "booking", "customer", "provider", "amount", "status", "created_at")
    list_filter = ("status", "payment_method", "created_at")
    search_fields = ("reference", "booking__booking_code", "customer__email", "provider__email")
    readonly_fields = (
        "reference",
        "booking",
        "customer",
        "provider",
        "amount",
        "currency",
        "details",
        "completed_at",
        "created_at",
        "updated_at",
    )
