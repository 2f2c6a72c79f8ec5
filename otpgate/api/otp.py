"""
otpgate/api/otp.py

Purpose: Phone verification endpoints

POST /otp  -> issue and send a code     {phone}
PUT  /otp  -> verify a submitted code   {phone, code}

Service outcomes are mapped onto HTTP errors here; the service itself
never raises for expected failures.
"""

import math

from fastapi import APIRouter, Depends, Request, Response

from otpgate.api.deps import build_client_key, get_client_ip, get_otp_service, get_settings
from otpgate.core.exceptions import (
    BadCodeError,
    BadPhoneError,
    DeliveryFailedError,
    MissingFieldsError,
    NotConfiguredError,
    RateLimitedError,
    VerificationFailedError,
)
from otpgate.core.logging import get_logger
from otpgate.schemas.otp import SendOTPRequest, SendOTPResponse, VerifyOTPRequest, VerifyOTPResponse
from otpgate.services.otp_service import IssueStatus, OtpService, VerifyStatus
from otpgate.services.rate_limiter import RateLimitDecision
from otpgate.utils.constants import (
    CODE_EXPIRED_MESSAGE,
    CODE_MISMATCH_MESSAGE,
    CODE_NOT_FOUND_MESSAGE,
    INVALID_CODE_MESSAGE,
    INVALID_PHONE_MESSAGE,
    OTP_SENT_MESSAGE,
    OTP_VERIFIED_MESSAGE,
    PHONE_AND_CODE_REQUIRED_MESSAGE,
    PHONE_REQUIRED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SMS_NOT_CONFIGURED_MESSAGE,
    SMS_SEND_FAILED_MESSAGE,
)
from otpgate.utils.time_utils import to_epoch_seconds

logger = get_logger(__name__)

router = APIRouter(tags=["OTP"])


_VERIFY_FAILURES = {
    VerifyStatus.NOT_FOUND: ("CODE_NOT_FOUND", CODE_NOT_FOUND_MESSAGE),
    VerifyStatus.EXPIRED: ("CODE_EXPIRED", CODE_EXPIRED_MESSAGE),
    VerifyStatus.MISMATCH: ("CODE_MISMATCH", CODE_MISMATCH_MESSAGE),
}


def _rate_limit_headers(decision: RateLimitDecision) -> dict:
    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(to_epoch_seconds(decision.reset_time)),
    }


@router.post("/otp", response_model=SendOTPResponse, response_model_exclude_none=True)
async def send_otp(
    payload: SendOTPRequest,
    request: Request,
    response: Response,
    service: OtpService = Depends(get_otp_service),
) -> SendOTPResponse:
    """
    Issues a verification code for a phone number and sends it by SMS.

    Errors:
        400 bad phone, 429 rate limited, 502 provider failure,
        503 provider not configured
    """
    if not payload.phone or not payload.phone.strip():
        raise BadPhoneError(PHONE_REQUIRED_MESSAGE)

    config = get_settings(request)
    client_key = build_client_key(
        config.RATE_LIMIT_KEY_STRATEGY,
        get_client_ip(request, config.TRUST_PROXY_HEADERS),
        payload.phone,
        config.COUNTRY_CODE,
    )

    result = await service.issue_code(payload.phone, client_key)

    if result.status is IssueStatus.NOT_CONFIGURED:
        raise NotConfiguredError(SMS_NOT_CONFIGURED_MESSAGE)

    if result.status is IssueStatus.RATE_LIMITED:
        decision = result.rate_limit
        raise RateLimitedError(
            RATE_LIMITED_MESSAGE.format(minutes=max(math.ceil(decision.retry_after / 60), 1)),
            retry_after=decision.retry_after,
            limit=decision.limit,
            remaining=decision.remaining,
            reset_time=to_epoch_seconds(decision.reset_time),
        )

    if result.status is IssueStatus.BAD_PHONE:
        raise BadPhoneError(INVALID_PHONE_MESSAGE)

    if result.status is IssueStatus.DELIVERY_FAILED:
        raise DeliveryFailedError(result.message or SMS_SEND_FAILED_MESSAGE)

    response.headers.update(_rate_limit_headers(result.rate_limit))
    return SendOTPResponse(success=True, message=OTP_SENT_MESSAGE, code=result.code)


@router.put("/otp", response_model=VerifyOTPResponse)
async def verify_otp(
    payload: VerifyOTPRequest,
    service: OtpService = Depends(get_otp_service),
) -> VerifyOTPResponse:
    """
    Verifies a code previously sent to a phone. Each code verifies once.

    Errors (all 400, distinct codes):
        BAD_PHONE, BAD_CODE, CODE_NOT_FOUND, CODE_EXPIRED, CODE_MISMATCH
    """
    if not payload.phone or not payload.code:
        raise MissingFieldsError(PHONE_AND_CODE_REQUIRED_MESSAGE)

    result = service.verify_code(payload.phone, payload.code)

    if result.status is VerifyStatus.BAD_PHONE:
        raise BadPhoneError(INVALID_PHONE_MESSAGE)

    if result.status is VerifyStatus.BAD_CODE:
        raise BadCodeError(INVALID_CODE_MESSAGE)

    if result.status in _VERIFY_FAILURES:
        code, message = _VERIFY_FAILURES[result.status]
        raise VerificationFailedError(message, code=code)

    return VerifyOTPResponse(success=True, message=OTP_VERIFIED_MESSAGE)
