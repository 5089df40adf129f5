"""Catalogue API views: categories and services."""

from __future__ import annotations

import logging

from django.db.models import Count, Q  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django.utils.text import slugify  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsAdminOrReadOnly, IsOwnerOrAdmin, IsProviderOrAdmin
from shared.domain.exceptions import Conflict, InvalidOperation
from shared.infrastructure.pagination import pagination_for

from .filters import ServiceFilterSet
from .models import Category, Service
from .serializers import CategorySerializer, ServiceSerializer, ServiceWriteSerializer

logger = logging.getLogger(__name__)


class CategoryViewSet(viewsets.ModelViewSet):
    """Public category list; admins manage the catalogue structure."""

    serializer_class = CategorySerializer
    permission_classes = [IsAdminOrReadOnly]
    pagination_class = None
    lookup_value_regex = r"[\w-]+"

    def get_queryset(self):  # type: ignore
        return Category.objects.annotate(
            services_count=Count("services", filter=Q(services__status=Service.Status.ACTIVE))
        ).order_by("name")

    def get_object(self):  # type: ignore
        # Categories are addressable by id or slug.
        lookup = str(self.kwargs[self.lookup_field])
        filter_kwargs = {"pk": lookup} if lookup.isdigit() else {"slug": lookup}
        obj = get_object_or_404(self.get_queryset(), **filter_kwargs)
        self.check_object_permissions(self.request, obj)
        return obj

    def _ensure_unique(self, name: str, slug: str, exclude_pk=None) -> None:
        duplicates = Category.objects.filter(Q(name__iexact=name) | Q(slug=slug))
        if exclude_pk is not None:
            duplicates = duplicates.exclude(pk=exclude_pk)
        if duplicates.exists():
            raise Conflict("A category with this name or slug already exists")

    def perform_create(self, serializer):  # type: ignore
        name = serializer.validated_data["name"]
        slug = serializer.validated_data.get("slug") or slugify(name)
        self._ensure_unique(name, slug)
        category = serializer.save(slug=slug)
        logger.info(f"Category {category.slug} created by {self.request.user.pk}")

    def perform_update(self, serializer):  # type: ignore
        instance = serializer.instance
        name = serializer.validated_data.get("name", instance.name)
        slug = serializer.validated_data.get("slug") or instance.slug or slugify(name)
        self._ensure_unique(name, slug, exclude_pk=instance.pk)
        serializer.save(slug=slug)

    def perform_destroy(self, instance):  # type: ignore
        if instance.services.exists():
            raise InvalidOperation("Category still has services and cannot be deleted")
        instance.delete()


class ServiceViewSet(viewsets.ModelViewSet):
    """Service listings with search, filters and rating-aware sorting."""

    permission_classes = [IsProviderOrAdmin, IsOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ServiceFilterSet
    pagination_class = pagination_for("services")
    owner_field = "provider"
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        qs = (
            Service.objects.with_rating()
            .select_related("provider", "category")
            .prefetch_related("features")
            .order_by("-created_at", "-id")
        )
        user = self.request.user
        if not user.is_authenticated:
            return qs.active()
        if user.is_staff or user.is_superuser or user.is_admin():
            return qs
        # Owners still see their own inactive or suspended listings.
        return qs.filter(Q(status=Service.Status.ACTIVE) | Q(provider=user))

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return ServiceWriteSerializer
        return ServiceSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = serializer.save(provider=request.user)
        logger.info(f"Service {service.pk} listed by provider {request.user.pk}")
        return Response(self._read(service.pk), status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        service = serializer.save()
        return Response(self._read(service.pk))

    def _read(self, pk):
        service = self.get_queryset().get(pk=pk)
        return ServiceSerializer(service, context=self.get_serializer_context()).data

    def perform_destroy(self, instance):  # type: ignore
        if instance.bookings.exists():
            raise InvalidOperation("Service has bookings; set its status to inactive instead")
        instance.delete()
