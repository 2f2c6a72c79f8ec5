"""
otpgate/utils/validation_utils.py

Purpose: Input validation

- OTP sanitizing and format checks
- Free-text sanitization for notification bodies
"""

import re
import unicodedata
from typing import Optional

from otpgate.utils.constants import OTP_LENGTH


def to_ascii_digits(text: str) -> str:
    """
    Folds decimal digits of any script (e.g. Arabic-Indic "١٢٣") to ASCII 0-9.
    """
    return "".join(
        str(unicodedata.decimal(ch)) if ch.isdecimal() else ch
        for ch in text
    )


def sanitize_otp(raw_code: Optional[str]) -> str:
    """
    Keeps ASCII digits only ("123 456" and "123-456" both become "123456").
    """
    if not raw_code:
        return ""
    return re.sub(r"[^0-9]", "", to_ascii_digits(str(raw_code)))


def validate_otp_format(otp: str) -> bool:
    """
    Validates OTP format (must be exactly 6 digits).
    """
    if not otp:
        return False

    return bool(re.fullmatch(rf"[0-9]{{{OTP_LENGTH}}}", otp))


def sanitize_input(text: Optional[str], max_length: int = 1000) -> str:
    """
    Sanitizes caller-supplied text before it is interpolated into a message.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = str(text)[:max_length]

    # Keep line breaks, collapse runs of other whitespace
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line).strip()
