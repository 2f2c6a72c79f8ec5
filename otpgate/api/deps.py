"""
otpgate/api/deps.py

Purpose: Request dependencies

- Hands the process-wide services (built once in create_app) to handlers
- Derives the rate-limit client key
- Guards privileged endpoints with the admin bearer token
"""

import secrets
from typing import Optional

from fastapi import Header, Request

from otpgate.core.config import Settings
from otpgate.core.exceptions import AuthenticationError, NotConfiguredError
from otpgate.services.notification_service import NotificationDispatcher
from otpgate.services.otp_service import OtpService
from otpgate.utils.constants import ADMIN_AUTH_REQUIRED_MESSAGE, ADMIN_NOT_CONFIGURED_MESSAGE
from otpgate.utils.phone_utils import normalize_phone


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """
    Client address. Proxy headers are client-controlled, so they are only
    read when the app sits behind a trusted reverse proxy.
    """
    if not trust_proxy_headers:
        return request.client.host if request.client else "unknown"

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def build_client_key(strategy: str, client_ip: str, raw_phone: Optional[str], country_code: str) -> str:
    """
    Rate-limit key for a request.

    - ip:        one quota per source address
    - phone:     one quota per destination number
    - composite: one quota per (address, number) pair
    """
    phone = normalize_phone(raw_phone, country_code) or (raw_phone or "").strip() or "unknown"

    if strategy == "phone":
        return f"phone:{phone}"
    if strategy == "composite":
        return f"ip:{client_ip}|phone:{phone}"
    return f"ip:{client_ip}"


async def require_admin(request: Request, authorization: Optional[str] = Header(default=None)) -> str:
    """
    Accepts "Authorization: Bearer <ADMIN_API_TOKEN>".
    """
    expected = get_settings(request).ADMIN_API_TOKEN
    if not expected:
        raise NotConfiguredError(ADMIN_NOT_CONFIGURED_MESSAGE)

    if not authorization:
        raise AuthenticationError(ADMIN_AUTH_REQUIRED_MESSAGE)

    token = authorization[7:] if authorization.startswith("Bearer ") else authorization
    if not secrets.compare_digest(token.strip().encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError(ADMIN_AUTH_REQUIRED_MESSAGE)

    return "admin"
