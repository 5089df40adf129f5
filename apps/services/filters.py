"""FilterSet definitions for service search and listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import F, Q  # type: ignore

from .models import Service

SORT_ORDERINGS = {
    "newest": ["-created_at", "-id"],
    "price_low": ["price", "-id"],
    "price_high": ["-price", "-id"],
}


class ServiceFilterSet(django_filters.FilterSet):
    """Search, category, price range, featured and sort for the catalogue."""

    search = django_filters.CharFilter(method="filter_search")
    category = django_filters.CharFilter(method="filter_category")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    featured = django_filters.BooleanFilter(field_name="featured")
    provider = django_filters.NumberFilter(field_name="provider_id")
    status = django_filters.ChoiceFilter(choices=Service.Status.choices)
    sort = django_filters.CharFilter(method="filter_sort")

    class Meta:
        model = Service
        fields = ["featured", "provider", "status"]

    def filter_search(self, queryset, name, value):  # type: ignore
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(description__icontains=value))

    def filter_category(self, queryset, name, value):  # type: ignore
        """Accepts either the category id or its slug."""
        if not value:
            return queryset
        if str(value).isdigit():
            return queryset.filter(category_id=int(value))
        return queryset.filter(category__slug=value)

    def filter_sort(self, queryset, name, value):  # type: ignore
        if value == "rating":
            return queryset.order_by(F("average_rating").desc(nulls_last=True), "-id")
        return queryset.order_by(*SORT_ORDERINGS.get(value, SORT_ORDERINGS["newest"]))
