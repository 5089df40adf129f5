"""Catalogue models: categories and the services listed under them."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.db.models import Avg, Count, Q  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Category(models.Model):
    """Top-level grouping such as tutoring, design or laundry."""

    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class ServiceQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Service.Status.ACTIVE)

    def with_rating(self):
        """Annotate ``average_rating`` and ``review_count`` from published reviews."""
        published = Q(reviews__status="published")
        return self.annotate(
            average_rating=Avg("reviews__rating", filter=published),
            review_count=Count("reviews", filter=published, distinct=True),
        )


class Service(models.Model):
    """A service offered by a provider. Bookings snapshot its price."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        SUSPENDED = "suspended", _("Suspended")

    class PriceType(models.TextChoices):
        FIXED = "fixed", _("Fixed")
        HOURLY = "hourly", _("Per hour")
        NEGOTIABLE = "negotiable", _("Negotiable")

    provider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="services",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="services",
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    price_type = models.CharField(max_length=20, choices=PriceType.choices, default=PriceType.FIXED)
    location = models.CharField(max_length=255, blank=True)
    image = models.URLField(max_length=500, blank=True)
    featured = models.BooleanField(default=False)
    discount = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(100)],
        help_text=_("Discount in percent, shown on the listing only."),
    )
    availability = models.CharField(max_length=255, blank=True)
    delivery_time = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ServiceQuerySet.as_manager()

    class Meta:
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="service_price_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "category"], name="service_status_category_idx"),
            models.Index(fields=["provider"], name="service_provider_idx"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def is_bookable(self) -> bool:
        return self.status == self.Status.ACTIVE


class ServiceFeature(models.Model):
    """Bullet point shown on a service page ("Includes revision", ...)."""

    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="features")
    feature = models.CharField(max_length=255)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.feature
