"""
otpgate/utils/phone_utils.py

Purpose: Phone number normalization

- Canonicalizes regional input (0XXXXXXXX, 216XXXXXXXX, +216XXXXXXXX)
- Validates the canonical shape: "+" + country code + 8 digits
- Helpers for provider-specific formats and log masking
"""

import re
from typing import Optional

from otpgate.utils.validation_utils import to_ascii_digits

DEFAULT_COUNTRY_CODE = "216"
SUBSCRIBER_DIGITS = 8

_SEPARATORS = re.compile(r"[\s\-\(\)\.]")


def normalize_phone(raw: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Normalizes a raw phone number into canonical +<cc>XXXXXXXX form.

    Examples (country_code="216"):
        "0 99-123-456"  -> "+21699123456"
        "0991234567"    -> None
        "099123456"     -> "+21699123456"
        "21699123456"   -> "+21699123456"
        "+216 99 123 456" -> "+21699123456"
        "99123456"      -> "+21699123456"

    Args:
        raw: Phone number as typed by the user
        country_code: Calling code of the supported numbering plan

    Returns:
        Canonical phone string, or None if the input cannot be normalized
    """
    if not raw or not isinstance(raw, str):
        return None

    cleaned = _SEPARATORS.sub("", to_ascii_digits(raw))

    if cleaned.startswith("0"):
        cleaned = f"+{country_code}{cleaned[1:]}"
    elif re.fullmatch(rf"[0-9]{{{SUBSCRIBER_DIGITS}}}", cleaned):
        cleaned = f"+{country_code}{cleaned}"
    elif cleaned.startswith(country_code):
        cleaned = f"+{cleaned}"
    elif not cleaned.startswith("+"):
        cleaned = f"+{country_code}{cleaned}"

    if not is_canonical_phone(cleaned, country_code):
        return None

    return cleaned


def is_canonical_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> bool:
    """
    Checks the exact canonical shape for the numbering plan.
    """
    pattern = rf"^\+{re.escape(country_code)}[0-9]{{{SUBSCRIBER_DIGITS}}}$"
    return bool(re.fullmatch(pattern, phone or ""))


def phone_to_digits(phone: str) -> str:
    """
    Digits-only form (216XXXXXXXX) for APIs that reject a leading "+".
    """
    return re.sub(r"[^0-9]", "", phone or "")


def mask_phone(phone: Optional[str]) -> str:
    """
    Masks the tail of a phone number for logging.

    "+21699123456" -> "+216991*****"
    """
    if not phone:
        return "N/A"
    visible = max(len(phone) - 5, 0)
    return phone[:visible] + "*" * (len(phone) - visible)
