"""Admin registrations for the services catalogue."""

from __future__ import annotations

from django.contrib import admin

from .models import Category, Service, ServiceFeature


class ServiceFeatureInline(admin.TabularInline):
    model = ServiceFeature
    extra = 0


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "icon", "created_at")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("title", "provider", "category", "price", "status", "featured", "created_at")
    list_filter = ("status", "featured", "category")
    search_fields = ("title", "description", "provider__email")
    inlines = [ServiceFeatureInline]
