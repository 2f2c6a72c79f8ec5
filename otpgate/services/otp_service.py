"""
otpgate/services/otp_service.py

Purpose: OTP issuance and verification

- Configuration check -> rate limit -> phone normalization -> code
  generation -> store -> provider send
- Verification: normalization -> code sanitizing -> single-use consume
- Owns the background sweep of expired codes and rate-limit buckets

Per-phone record lifecycle:
    [none]  --issue-->                  ISSUED
    ISSUED  --verify(correct)-->        [none]   (VERIFIED)
    ISSUED  --verify(wrong)-->          ISSUED   (MISMATCH, retry allowed)
    ISSUED  --verify(after expiry)-->   [none]   (EXPIRED, reported once)
    ISSUED  --sweep(after expiry)-->    [none]
    ISSUED  --issue-->                  ISSUED   (old code invalid)
"""

import asyncio
import secrets
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from otpgate.core.logging import get_logger, LogContext
from otpgate.providers.base import DeliveryProvider
from otpgate.services.rate_limiter import RateLimitDecision, RateLimiter
from otpgate.services.verification_store import VerificationOutcome, VerificationStore
from otpgate.utils.constants import OTP_LENGTH, OTP_MESSAGE_TEMPLATE
from otpgate.utils.phone_utils import DEFAULT_COUNTRY_CODE, mask_phone, normalize_phone
from otpgate.utils.validation_utils import sanitize_otp, validate_otp_format

logger = get_logger(__name__)


class IssueStatus(str, Enum):
    SENT = "sent"
    RATE_LIMITED = "rate_limited"
    BAD_PHONE = "bad_phone"
    NOT_CONFIGURED = "not_configured"
    DELIVERY_FAILED = "delivery_failed"


class VerifyStatus(str, Enum):
    VERIFIED = "verified"
    BAD_PHONE = "bad_phone"
    BAD_CODE = "bad_code"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


_OUTCOME_TO_STATUS = {
    VerificationOutcome.VERIFIED: VerifyStatus.VERIFIED,
    VerificationOutcome.NOT_FOUND: VerifyStatus.NOT_FOUND,
    VerificationOutcome.EXPIRED: VerifyStatus.EXPIRED,
    VerificationOutcome.MISMATCH: VerifyStatus.MISMATCH,
}


@dataclass(frozen=True)
class IssueResult:
    status: IssueStatus
    phone: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None
    reference: Optional[str] = None
    rate_limit: Optional[RateLimitDecision] = None

    @property
    def retry_after(self) -> Optional[int]:
        if self.status is IssueStatus.RATE_LIMITED and self.rate_limit:
            return self.rate_limit.retry_after
        return None


@dataclass(frozen=True)
class VerifyResult:
    status: VerifyStatus
    phone: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.status is VerifyStatus.VERIFIED


def generate_otp() -> str:
    """
    Uniformly random code in 100000..999999, always six characters.
    """
    return str(secrets.randbelow(900000) + 100000)


class OtpService:
    """
    Process-wide OTP orchestrator.

    Constructed once at startup and shared by request handlers; the store
    and rate limiter it owns are never mutated from outside.
    """

    def __init__(
        self,
        provider: DeliveryProvider,
        store: Optional[VerificationStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        ttl: timedelta = timedelta(minutes=10),
        app_name: str = "Domobat",
        country_code: str = DEFAULT_COUNTRY_CODE,
        expose_code: bool = False,
        sweep_interval: float = 300.0,
    ):
        self.provider = provider
        self.store = store if store is not None else VerificationStore()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.ttl = ttl
        self.app_name = app_name
        self.country_code = country_code
        self.expose_code = expose_code
        self.sweep_interval = sweep_interval
        self._sweeper: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def issue_code(self, raw_phone: str, client_key: str) -> IssueResult:
        """
        Generates, stores and sends a verification code.

        The configuration check runs before the rate limiter so that a
        misconfigured deployment does not burn client quota.
        """
        if not self.provider.is_configured():
            logger.error(f"OTP requested but {self.provider.name} is not configured")
            return IssueResult(status=IssueStatus.NOT_CONFIGURED)

        decision = self.rate_limiter.check(client_key)
        if not decision.allowed:
            return IssueResult(status=IssueStatus.RATE_LIMITED, rate_limit=decision)

        phone = normalize_phone(raw_phone, self.country_code)
        if phone is None:
            return IssueResult(status=IssueStatus.BAD_PHONE, rate_limit=decision)

        with LogContext(phone=mask_phone(phone), client_key=client_key):
            code = generate_otp()
            self.store.issue(phone, code, self.ttl)

            body = self.render_message(code)
            result = await self.provider.send(phone, body)

            if not result.ok:
                # The stored code stays valid; a resend may still reach the user
                logger.error(f"OTP delivery failed: {result.error_message}")
                return IssueResult(
                    status=IssueStatus.DELIVERY_FAILED,
                    phone=phone,
                    message=result.error_message,
                    rate_limit=decision,
                )

            logger.info("OTP sent")
            return IssueResult(
                status=IssueStatus.SENT,
                phone=phone,
                code=code if self.expose_code else None,
                reference=result.reference,
                rate_limit=decision,
            )

    def render_message(self, code: str) -> str:
        return OTP_MESSAGE_TEMPLATE.format(
            app_name=self.app_name,
            code=code,
            ttl_minutes=int(self.ttl.total_seconds() // 60),
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_code(self, raw_phone: str, raw_code: str) -> VerifyResult:
        """
        Consumes a code for a phone. A code verifies at most once.
        """
        phone = normalize_phone(raw_phone, self.country_code)
        if phone is None:
            return VerifyResult(status=VerifyStatus.BAD_PHONE)

        code = sanitize_otp(raw_code)
        if len(code) != OTP_LENGTH or not validate_otp_format(code):
            return VerifyResult(status=VerifyStatus.BAD_CODE, phone=phone)

        outcome = self.store.verify(phone, code)
        status = _OUTCOME_TO_STATUS[outcome]

        with LogContext(phone=mask_phone(phone)):
            if status is VerifyStatus.VERIFIED:
                logger.info("OTP verified")
            else:
                logger.info(f"OTP verification failed: {status.value}")

        return VerifyResult(status=status, phone=phone)

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def sweep(self) -> int:
        """
        One reclamation pass over expired codes and elapsed rate-limit windows.
        """
        removed = self.store.sweep()
        self.rate_limiter.purge_expired()
        return removed

    async def _sweep_forever(self):
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"OTP sweep failed: {e}", exc_info=True)

    def start(self):
        """
        Starts the periodic sweep. Must be called from a running event loop.
        """
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())
        logger.info(f"OTP sweeper started (every {self.sweep_interval:g}s)")

    async def stop(self):
        """
        Cancels the periodic sweep and waits for it to finish.
        """
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None
        logger.info("OTP sweeper stopped")

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()
