"""
otpgate/core/config.py

Purpose: Application configuration

- Loads environment variables (and .env)
- Centralizes provider credentials, OTP and rate-limit tuning
- Validates configuration on startup
- Missing provider credentials are NOT fatal: they surface as 503 responses
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


SMS_PROVIDERS = ("infobip", "infobip_whatsapp", "twilio", "twilio_whatsapp", "winsms")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    APP_NAME: str = Field(
        default="Domobat",
        description="Brand name used in outbound message bodies"
    )

    # Phone numbering plan
    COUNTRY_CODE: str = Field(
        default="216",
        description="Country calling code of the supported numbering plan"
    )

    # OTP lifecycle
    OTP_TTL_MINUTES: int = Field(
        default=10,
        description="Validity of an issued verification code"
    )
    OTP_SWEEP_INTERVAL_SECONDS: int = Field(
        default=300,
        description="Interval of the background sweep reclaiming expired codes"
    )
    OTP_DEBUG_ECHO: bool = Field(
        default=False,
        description="Echo issued codes in API responses (never honoured in production)"
    )

    # Rate Limiting
    RATE_LIMIT_WINDOW_MINUTES: int = Field(
        default=15,
        description="Fixed window length for OTP issuance throttling"
    )
    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=3,
        description="Maximum OTP requests per client key per window"
    )
    RATE_LIMIT_KEY_STRATEGY: Literal["ip", "phone", "composite"] = Field(
        default="ip",
        description="How the rate-limit client key is derived"
    )
    TRUST_PROXY_HEADERS: bool = Field(
        default=False,
        description="Take the client IP from X-Forwarded-For / X-Real-IP (only behind a trusted reverse proxy)"
    )

    # Delivery providers
    SMS_PROVIDER: str = Field(
        default="infobip",
        description="Provider used for OTP delivery"
    )
    NOTIFICATION_PROVIDER: str = Field(
        default="infobip_whatsapp",
        description="Provider used for administrative notifications"
    )
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Upper bound on a single provider HTTP call"
    )

    # Infobip
    INFOBIP_BASE_URL: Optional[str] = Field(
        default=None,
        description="Infobip account host, e.g. xxxxx.api.infobip.com"
    )
    INFOBIP_API_KEY: Optional[str] = None
    INFOBIP_SENDER_ID: str = "Domobat"
    INFOBIP_WHATSAPP_NUMBER: Optional[str] = None

    # Twilio
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_WHATSAPP_NUMBER: Optional[str] = None

    # WinSMS
    WINSMS_BASE_URL: str = "https://www.winsmspro.com/sms/sms/api"
    WINSMS_API_KEY: Optional[str] = None
    WINSMS_SENDER_ID: str = "Domobat"

    # Admin access to /notifications
    ADMIN_API_TOKEN: Optional[str] = Field(
        default=None,
        description="Bearer token required for privileged notification dispatch"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @field_validator("SMS_PROVIDER", "NOTIFICATION_PROVIDER")
    @classmethod
    def validate_provider_name(cls, v: str) -> str:
        """Only known provider adapters may be selected."""
        v = v.strip().lower()
        if v not in SMS_PROVIDERS:
            raise ValueError(f"Unknown provider '{v}'. Must be one of: {', '.join(SMS_PROVIDERS)}")
        return v

    @field_validator(
        "OTP_TTL_MINUTES",
        "OTP_SWEEP_INTERVAL_SECONDS",
        "RATE_LIMIT_WINDOW_MINUTES",
        "RATE_LIMIT_MAX_REQUESTS",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("COUNTRY_CODE")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        v = v.strip().lstrip("+")
        if not re.fullmatch(r"[0-9]+", v):
            raise ValueError("COUNTRY_CODE must contain digits only")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def expose_otp_code(self) -> bool:
        """Diagnostic echo of issued codes; always off in production."""
        if self.is_production:
            return False
        return self.is_development or self.OTP_DEBUG_ECHO

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None) -> list:
    """
    Checks settings at startup.

    Nothing here is fatal: an unconfigured provider only disables the
    endpoints that need it. Returns the list of warnings found.
    """
    config = config or settings
    warnings = []

    if config.is_production and config.OTP_DEBUG_ECHO:
        warnings.append("OTP_DEBUG_ECHO is ignored in production")

    if not config.ADMIN_API_TOKEN:
        warnings.append("ADMIN_API_TOKEN is not set; /notifications is disabled")

    if config.SMS_PROVIDER.startswith("infobip") or config.NOTIFICATION_PROVIDER.startswith("infobip"):
        if not (config.INFOBIP_BASE_URL and config.INFOBIP_API_KEY):
            warnings.append("INFOBIP_BASE_URL / INFOBIP_API_KEY are not set")

    if config.SMS_PROVIDER.startswith("twilio") or config.NOTIFICATION_PROVIDER.startswith("twilio"):
        if not (config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN):
            warnings.append("TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN are not set")

    if "winsms" in (config.SMS_PROVIDER, config.NOTIFICATION_PROVIDER) and not config.WINSMS_API_KEY:
        warnings.append("WINSMS_API_KEY is not set")

    return warnings
