"""
otpgate/services/rate_limiter.py

Purpose: Fixed-window request throttling

- Caps OTP issuance per client key (SMS bombing / cost abuse)
- Rejected requests never increment the counter
- Per-key atomic read-modify-write
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from otpgate.core.logging import get_logger
from otpgate.utils.locks import KeyedLock
from otpgate.utils.time_utils import Clock, SystemClock, seconds_until

logger = get_logger(__name__)


@dataclass
class RateLimitBucket:
    client_key: str
    window_start: datetime
    reset_time: datetime
    count: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_time: datetime
    retry_after: int = 0


class RateLimiter:
    """
    Fixed-window counter keyed by client (IP, phone, or both).

    Args:
        max_requests: Requests allowed per window
        window: Window length
        clock: Time source
    """

    def __init__(self, max_requests: int = 3, window: timedelta = timedelta(minutes=15), clock: Optional[Clock] = None):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window <= timedelta(0):
            raise ValueError("window must be positive")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock if clock is not None else SystemClock()
        self._buckets: Dict[str, RateLimitBucket] = {}
        self._locks = KeyedLock()

    def check(self, client_key: str) -> RateLimitDecision:
        """
        Counts one request for client_key and decides whether it may proceed.
        """
        with self._locks.hold(client_key):
            now = self._clock.now()
            bucket = self._buckets.get(client_key)

            if bucket is None or now >= bucket.reset_time:
                bucket = RateLimitBucket(
                    client_key=client_key,
                    window_start=now,
                    reset_time=now + self.window,
                    count=1,
                )
                self._buckets[client_key] = bucket
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - 1,
                    reset_time=bucket.reset_time,
                )

            if bucket.count < self.max_requests:
                bucket.count += 1
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - bucket.count,
                    reset_time=bucket.reset_time,
                )

            retry_after = max(seconds_until(bucket.reset_time, now), 1)
            logger.warning(f"Rate limit exceeded for {client_key} (retry in {retry_after}s)")
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_time=bucket.reset_time,
                retry_after=retry_after,
            )

    def purge_expired(self) -> int:
        """
        Drops buckets whose window has elapsed. Returns how many were dropped.
        """
        now = self._clock.now()
        removed = 0
        for key, bucket in list(self._buckets.items()):
            if now < bucket.reset_time:
                continue
            with self._locks.hold(key):
                current = self._buckets.get(key)
                if current is not None and now >= current.reset_time:
                    del self._buckets[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._buckets)
