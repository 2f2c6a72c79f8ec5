"""
otpgate/utils/time_utils.py

Purpose: Time and expiry helpers

- Injectable clock so expiry can be tested without real waits
- Expiry and retry-after arithmetic
"""

import math
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


class Clock:
    """
    Time source used by the verification store and the rate limiter.
    """

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return utc_now()


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """
    A record is expired strictly after its expiry instant.
    """
    return now > expires_at


def seconds_until(moment: datetime, now: datetime) -> int:
    """
    Whole seconds from now until moment, rounded up, never below zero.
    """
    return max(math.ceil((moment - now).total_seconds()), 0)


def to_epoch_seconds(dt: datetime) -> int:
    return int(dt.timestamp())
