"""Admin registration for reviews."""

from __future__ import annotations

from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "service", "reviewer", "reviewee", "rating", "status", "created_at")
    list_filter = ("status", "rating")
    search_fields = ("comment", "service__title", "reviewer__email", "reviewee__email")
