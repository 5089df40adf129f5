"""Registration and login endpoints issuing JWT pairs."""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema  # type: ignore
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.settings import api_settings as jwt_settings  # type: ignore
from rest_framework_simplejwt.tokens import RefreshToken  # type: ignore

from .auth_serializers import LoginSerializer, RegisterSerializer
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


def issue_tokens(user) -> dict:
    """Fresh refresh/access pair plus the access lifetime in seconds."""
    refresh = RefreshToken.for_user(user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
        "expires_in": int(jwt_settings.ACCESS_TOKEN_LIFETIME.total_seconds()),
    }


class CredentialsView(APIView):
    """Validates a credentials serializer and answers with the user and tokens."""

    permission_classes = [AllowAny]
    authentication_classes: list = []
    serializer_class = None
    success_status = status.HTTP_200_OK

    def resolve_user(self, serializer):  # type: ignore
        raise NotImplementedError

    def post(self, request):  # type: ignore
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.resolve_user(serializer)
        body = {"user": UserSerializer(user).data, "tokens": issue_tokens(user)}
        return Response(body, status=self.success_status)


@extend_schema(tags=["auth"], summary="Create a customer or provider account")
class RegisterView(CredentialsView):
    serializer_class = RegisterSerializer
    success_status = status.HTTP_201_CREATED

    def resolve_user(self, serializer):  # type: ignore
        user = serializer.save()
        logger.info(f"Registered user {user.pk} ({user.role})")
        return user


@extend_schema(tags=["auth"], summary="Log in with e-mail or phone number")
class LoginView(CredentialsView):
    serializer_class = LoginSerializer

    def resolve_user(self, serializer):  # type: ignore
        user = serializer.validated_data["user"]
        logger.info(f"User {user.pk} logged in")
        return user
