"""Kenyan mobile-number validation and normalization.

Both user profiles and M-Pesa transactions store numbers in the
``+254XXXXXXXXX`` form produced by ``normalize_phone_number``.
"""

from __future__ import annotations

import re

from django.core.exceptions import ValidationError  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

COUNTRY_CODE = "254"
MOBILE_NUMBER_PATTERN = re.compile(r"^(?:\+?254|0)[17]\d{8}$")
INVALID_PHONE_MESSAGE = _("Enter a valid Kenyan mobile number, e.g. 0712345678 or +254712345678.")


def clean_phone_number(raw: str) -> str:
    return re.sub(r"[\s\-()]", "", raw or "")


def is_valid_phone_number(raw: str) -> bool:
    return bool(MOBILE_NUMBER_PATTERN.match(clean_phone_number(raw)))


def normalize_phone_number(raw: str) -> str:
    """Return the number in ``+254XXXXXXXXX`` form.

    A leading ``0`` is replaced by the country code; any other number
    without a ``+`` gets one prepended. Validate first: this function does
    not reject malformed input.
    """
    phone = clean_phone_number(raw)
    if phone.startswith("0"):
        return f"+{COUNTRY_CODE}{phone[1:]}"
    if not phone.startswith("+"):
        return f"+{phone}"
    return phone


def validate_phone_number(value: str) -> None:
    """Model-field validator; spaces, dashes and brackets are tolerated."""
    if not is_valid_phone_number(value):
        raise ValidationError(INVALID_PHONE_MESSAGE, code="invalid_phone")
