from typing import Optional, Any, Dict


class OtpGateError(Exception):
    """
    Base exception for the HTTP layer of otpgate.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class BadPhoneError(OtpGateError):
    """
    Raised when a phone number cannot be normalized.
    """
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, code="BAD_PHONE", status_code=400, details=details)


class BadCodeError(OtpGateError):
    """
    Raised when a submitted code is not six digits.
    """
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, code="BAD_CODE", status_code=400, details=details)


class VerificationFailedError(OtpGateError):
    """
    Raised for the verification outcomes NOT_FOUND, EXPIRED and MISMATCH.
    """
    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=400, details=details)


class MissingFieldsError(OtpGateError):
    """
    Raised when a request lacks fields its template requires.
    """
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, code="MISSING_FIELDS", status_code=400, details=details)


class RateLimitedError(OtpGateError):
    """
    Raised when a client exceeded its issuance quota.
    Carries the retry metadata rendered as headers.
    """
    def __init__(self, message: str, retry_after: int, limit: int, remaining: int, reset_time: int):
        super().__init__(message, code="RATE_LIMITED", status_code=429)
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        self.reset_time = reset_time

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_time),
        }


class NotConfiguredError(OtpGateError):
    """
    Raised when the selected provider (or admin auth) lacks configuration.
    """
    def __init__(self, message: str = "Service not configured", details: Optional[Any] = None):
        super().__init__(message, code="NOT_CONFIGURED", status_code=503, details=details)


class DeliveryFailedError(OtpGateError):
    """
    Raised when the upstream messaging provider rejected a send.
    """
    def __init__(self, message: str = "Failed to send message", details: Optional[Any] = None):
        super().__init__(message, code="DELIVERY_FAILED", status_code=502, details=details)


class NotificationFailedError(OtpGateError):
    """
    Raised when an administrative notification could not be dispatched.
    """
    def __init__(self, message: str = "Failed to send notification", details: Optional[Any] = None):
        super().__init__(message, code="NOTIFICATION_FAILED", status_code=500, details=details)


class AuthenticationError(OtpGateError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)
