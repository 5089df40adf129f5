"""API views for managing reviews."""

from __future__ import annotations

from django.db import models  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.context import Caller
from apps.users.permissions import IsPlatformAdmin
from shared.infrastructure.pagination import pagination_for

from . import services
from .models import Review
from .serializers import (
    ProviderResponseSerializer,
    ReviewCreateSerializer,
    ReviewFlagSerializer,
    ReviewModerationSerializer,
    ReviewSerializer,
)


class ReviewViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Public reviews by service or provider; customers review completed bookings."""

    serializer_class = ReviewSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    pagination_class = pagination_for("reviews")
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        qs = Review.objects.select_related("service", "reviewer", "reviewee").order_by("-created_at", "-id")
        params = self.request.query_params
        if params.get("service"):
            qs = qs.filter(service_id=params["service"])
        if params.get("user"):
            qs = qs.filter(reviewee_id=params["user"])

        user = self.request.user
        if user.is_authenticated and (user.is_staff or user.is_superuser or user.is_admin()):
            if params.get("status"):
                qs = qs.filter(status=params["status"])
            return qs
        visible = models.Q(status=Review.Status.PUBLISHED)
        if user.is_authenticated:
            visible |= models.Q(reviewer=user)
        return qs.filter(visible)

    def list(self, request, *args, **kwargs):  # type: ignore
        for key in ("service", "user"):
            value = request.query_params.get(key)
            if value and not value.isdigit():
                return Response(
                    {"error": f"'{key}' must be a numeric id", "code": "invalid"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
        response = super().list(request, *args, **kwargs)
        if request.query_params.get("service"):
            response.data["rating"] = services.rating_summary_for_service(int(request.query_params["service"]))
        elif request.query_params.get("user"):
            response.data["rating"] = services.rating_summary_for_user(int(request.query_params["user"]))
        return response

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.create_review(Caller.from_request(request), **serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def flag(self, request, pk=None):  # type: ignore
        serializer = ReviewFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.flag_review(Caller.from_request(request), pk, reason=serializer.validated_data["reason"])
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def moderate(self, request, pk=None):  # type: ignore
        serializer = ReviewModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.moderate_review(Caller.from_request(request), pk, status=serializer.validated_data["status"])
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def respond(self, request, pk=None):  # type: ignore
        """Provider's public answer to a review."""
        serializer = ProviderResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.respond_to_review(
            Caller.from_request(request), pk, response=serializer.validated_data["response"]
        )
        return Response(ReviewSerializer(review).data)
