"""Signature checks and status mapping for provider callbacks."""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from django.conf import settings  # type: ignore

from .gateway import GatewayStatus

SIGNATURE_HEADER = "X-Mpesa-Signature"

STATUS_MAPPING = {
    "SUCCESS": GatewayStatus.COMPLETED,
    "SUCCESSFUL": GatewayStatus.COMPLETED,
    "COMPLETED": GatewayStatus.COMPLETED,
    "PAID": GatewayStatus.COMPLETED,
    "FAILED": GatewayStatus.FAILED,
    "DECLINED": GatewayStatus.FAILED,
    "CANCELLED": GatewayStatus.FAILED,
    "CANCELED": GatewayStatus.FAILED,
    "EXPIRED": GatewayStatus.FAILED,
    "PENDING": GatewayStatus.PENDING,
    "PROCESSING": GatewayStatus.PENDING,
}


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, header_value: Optional[str]) -> bool:
    """Check ``sha256=<hex>`` against the configured shared secret.

    Without a configured secret every callback is rejected.
    """
    secret = getattr(settings, "MPESA_CALLBACK_SECRET", "")
    if not secret or not header_value:
        return False
    scheme, _, digest = header_value.partition("=")
    if scheme.lower() != "sha256" or not digest:
        return False
    return hmac.compare_digest(compute_signature(body, secret), digest.strip())


def map_callback_status(raw_status: str) -> Optional[str]:
    return STATUS_MAPPING.get((raw_status or "").strip().upper())
