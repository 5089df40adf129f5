"""DRF exception handler mapping domain errors to HTTP responses.

Configured as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. It is the single
boundary where failures become responses:

* ``DomainError`` subclasses keep their own status and code;
* DRF and Django exceptions (validation, auth, 404, throttling) are
  reshaped into the same ``{"error", "code"}`` body;
* anything else is logged with its traceback and answered with a generic
  500 that leaks no internals.
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied  # type: ignore
from django.db import IntegrityError  # type: ignore
from django.http import Http404  # type: ignore
from rest_framework import exceptions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore
from rest_framework.views import set_rollback  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _flatten_detail(detail) -> str:
    if isinstance(detail, (list, tuple)) and detail:
        return _flatten_detail(detail[0])
    if isinstance(detail, dict) and detail:
        return _flatten_detail(next(iter(detail.values())))
    return str(detail)


def api_exception_handler(exc, context):  # type: ignore
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"
    set_rollback()

    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.warning(f"{view_name}: {exc.__class__.__name__}: {exc.message}")
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, exceptions.ValidationError):
        return Response(
            {"error": "Invalid input", "code": "invalid", "details": exc.detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, IntegrityError):
        logger.warning(f"{view_name}: integrity error: {exc}")
        return Response(
            {"error": "Resource conflicts with existing data", "code": "conflict"},
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, (exceptions.APIException, Http404, DjangoPermissionDenied)):
        response = drf_exception_handler(exc, context)
        if response is not None:
            detail = response.data.get("detail", response.data) if isinstance(response.data, dict) else response.data
            code = getattr(exc, "default_code", "error")
            if isinstance(exc, Http404):
                code = "not_found"
            elif isinstance(exc, DjangoPermissionDenied):
                code = "permission_denied"
            response.data = {"error": _flatten_detail(detail), "code": code}
            return response

    logger.exception(f"Unhandled exception in {view_name}: {exc}")
    return Response(
        {"error": INTERNAL_ERROR_MESSAGE, "code": "internal_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
