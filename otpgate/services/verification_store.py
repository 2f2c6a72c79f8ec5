"""
otpgate/services/verification_store.py

Purpose: Outstanding verification codes

- One live record per phone; issuing again replaces the previous code
- Single-use consumption on successful verification
- Lazy expiry on lookup, proactive expiry through sweep()
- Per-phone atomicity, no global lock across phones
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional

from otpgate.core.logging import get_logger
from otpgate.utils.locks import KeyedLock
from otpgate.utils.phone_utils import mask_phone
from otpgate.utils.time_utils import Clock, SystemClock, is_expired

logger = get_logger(__name__)


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class VerificationRecord:
    phone: str
    code: str
    issued_at: datetime
    expires_at: datetime


class VerificationStore:
    """
    In-memory, process-local store of verification records.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock if clock is not None else SystemClock()
        self._records: Dict[str, VerificationRecord] = {}
        self._locks = KeyedLock()

    def issue(self, phone: str, code: str, ttl: timedelta) -> VerificationRecord:
        """
        Stores a code for phone, invalidating any previous one.
        """
        now = self._clock.now()
        record = VerificationRecord(
            phone=phone,
            code=code,
            issued_at=now,
            expires_at=now + ttl,
        )
        with self._locks.hold(phone):
            replaced = phone in self._records
            self._records[phone] = record

        logger.debug(
            f"Verification code issued for {mask_phone(phone)}",
            extra={"replaced": replaced, "expires_at": record.expires_at.isoformat()}
        )
        return record

    def verify(self, phone: str, code: str) -> VerificationOutcome:
        """
        Checks code against the live record for phone.

        - NOT_FOUND: nothing stored (never issued, consumed or swept)
        - EXPIRED:   stored but past expiry; the record is removed
        - MISMATCH:  stored, valid, wrong code; the record is kept
        - VERIFIED:  stored, valid, right code; the record is removed
        """
        with self._locks.hold(phone):
            record = self._records.get(phone)
            if record is None:
                return VerificationOutcome.NOT_FOUND

            if is_expired(record.expires_at, self._clock.now()):
                del self._records[phone]
                return VerificationOutcome.EXPIRED

            if not secrets.compare_digest(record.code.encode("utf-8"), code.encode("utf-8")):
                return VerificationOutcome.MISMATCH

            del self._records[phone]
            return VerificationOutcome.VERIFIED

    def sweep(self) -> int:
        """
        Removes every expired record. Returns how many were removed.
        """
        now = self._clock.now()
        removed = 0
        for phone, record in list(self._records.items()):
            if not is_expired(record.expires_at, now):
                continue
            with self._locks.hold(phone):
                # Re-read under the lock: the phone may have been re-issued
                current = self._records.get(phone)
                if current is not None and is_expired(current.expires_at, now):
                    del self._records[phone]
                    removed += 1

        if removed:
            logger.info(f"Swept {removed} expired verification code(s)")
        return removed

    def get(self, phone: str) -> Optional[VerificationRecord]:
        return self._records.get(phone)

    def __contains__(self, phone: str) -> bool:
        return phone in self._records

    def __len__(self) -> int:
        return len(self._records)
