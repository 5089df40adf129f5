"""
Domain Error Taxonomy

Exceptions raised by the service layer of every app. They carry the HTTP
status and a stable machine-readable code; the DRF exception handler in
``shared.infrastructure.exception_handler`` turns them into responses.

- Unauthorized: no or invalid credentials (401)
- Forbidden: authenticated, but not entitled to the resource (403)
- NotFound: referenced entity is absent (404)
- ValidationError: malformed input (400)
- InvalidOperation: well-formed request the current state does not allow (400)
- Conflict: duplicate of a unique fact (409)
- AlreadyPaid: payment requested for a booking that is paid (400)
- PaymentProviderError: the mobile-money gateway refused or failed (502)
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base class for all expected, client-facing failures."""

    status_code = 400
    code = "error"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class Unauthorized(DomainError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required"


class Forbidden(DomainError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have access to this resource"


class NotFound(DomainError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ValidationError(DomainError):
    status_code = 400
    code = "invalid"
    default_message = "Invalid input"


class InvalidOperation(DomainError):
    status_code = 400
    code = "invalid_operation"
    default_message = "Operation is not allowed in the current state"


class Conflict(DomainError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class AlreadyPaid(Conflict):
    status_code = 400
    code = "already_paid"
    default_message = "Booking is already paid"


class PaymentProviderError(DomainError):
    status_code = 502
    code = "payment_provider_error"
    default_message = "Payment provider is unavailable, please try again"
