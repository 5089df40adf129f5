"""Aggregations behind the admin dashboard."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore
from django.db.models import Count, Q, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.payments.models import Transaction
from apps.services.models import Category, Service

ALLOWED_PERIODS = (7, 30, 90, 365)
DEFAULT_PERIOD = 30
RECENT_BOOKINGS = 10


def parse_period(raw) -> int:
    """Period in days; anything outside ALLOWED_PERIODS falls back to the default."""
    try:
        period = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_PERIOD
    return period if period in ALLOWED_PERIODS else DEFAULT_PERIOD


def _counts(queryset, field: str) -> dict:
    rows = queryset.order_by().values(field).annotate(count=Count("id"))
    return {row[field]: row["count"] for row in rows}


def dashboard(period: int = DEFAULT_PERIOD, *, now=None) -> dict:
    now = now or timezone.now()
    since = now - timedelta(days=period)
    User = get_user_model()

    completed = Transaction.objects.filter(status=Transaction.Status.COMPLETED)
    revenue = completed.aggregate(total=Sum("amount"))["total"] or Decimal("0.00")
    period_revenue = (
        completed.filter(completed_at__gte=since).aggregate(total=Sum("amount"))["total"]
        or Decimal("0.00")
    )

    categories = Category.objects.annotate(
        services_count=Count("services", filter=Q(services__status=Service.Status.ACTIVE))
    ).order_by("-services_count", "name")

    recent = Booking.objects.select_related("service", "customer", "provider").order_by(
        "-created_at", "-id"
    )[:RECENT_BOOKINGS]

    return {
        "period": period,
        "totals": {
            "users": User.objects.count(),
            "services": Service.objects.count(),
            "bookings": Booking.objects.count(),
            "revenue": revenue,
        },
        "period_totals": {
            "new_users": User.objects.filter(date_joined__gte=since).count(),
            "new_bookings": Booking.objects.filter(created_at__gte=since).count(),
            "revenue": period_revenue,
        },
        "users_by_role": _counts(User.objects.all(), "role"),
        "bookings_by_status": _counts(Booking.objects.all(), "status"),
        "services_by_category": [
            {"id": c.pk, "name": c.name, "slug": c.slug, "services": c.services_count}
            for c in categories
        ],
        "recent_bookings": list(recent),
    }
