"""User API views."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import filters, mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.reviews.services import rating_summary_for_user
from shared.infrastructure.pagination import pagination_for

from .permissions import IsPlatformAdmin
from .serializers import AdminUserUpdateSerializer, PublicProfileSerializer, UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class UserViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """User management.

    - `me` returns and updates the current user's profile
    - `retrieve` is a public profile with the provider rating
    - list/update of arbitrary accounts is reserved for platform admins
    """

    queryset = User.objects.all()
    pagination_class = pagination_for("users")
    filter_backends = [filters.SearchFilter]
    search_fields = ["email", "username", "first_name", "last_name", "university"]
    http_method_names = ["get", "patch", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action == "retrieve":
            return [permissions.AllowAny()]
        if self.action == "me":
            return [permissions.IsAuthenticated()]
        return [IsPlatformAdmin()]

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return PublicProfileSerializer
        if self.action == "partial_update":
            return AdminUserUpdateSerializer
        return UserSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action == "list":
            role = self.request.query_params.get("role")
            if role:
                qs = qs.filter(role=role)
        elif self.action == "retrieve":
            qs = qs.filter(is_active=True)
        return qs

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        user = self.get_object()
        serializer = PublicProfileSerializer(user, context={"rating": rating_summary_for_user(user.pk)})
        return Response(serializer.data)

    def perform_update(self, serializer):  # type: ignore
        user = serializer.save()
        logger.info(f"Admin {self.request.user.pk} updated user {user.pk}: role={user.role} active={user.is_active}")

    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        """Returns or updates the current user's profile."""
        if request.method == "PATCH":
            serializer = UserSerializer(request.user, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(serializer.data)
        return Response(UserSerializer(request.user).data)
