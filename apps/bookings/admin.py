"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "service",
        "customer",
        "provider",
        "date",
        "status",
        "is_paid",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "is_paid", "date")
    search_fields = ("booking_code", "service__title", "customer__email", "provider__email")
    readonly_fields = (
        "booking_code",
        "total_amount",
        "is_paid",
        "paid_at",
        "created_at",
        "updated_at",
    )
