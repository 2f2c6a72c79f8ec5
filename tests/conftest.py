"""
Shared fixtures: a controllable clock, an in-memory provider and a test app.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from otpgate.core.config import Settings
from otpgate.main import create_app
from otpgate.providers.base import DeliveryProvider, ProviderResult
from otpgate.services.otp_service import OtpService
from otpgate.services.rate_limiter import RateLimiter
from otpgate.services.verification_store import VerificationStore
from otpgate.utils.time_utils import Clock

ADMIN_TOKEN = "admin-secret"


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start=None):
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class FakeProvider(DeliveryProvider):
    """Records sends instead of calling an upstream API."""

    name = "fake"

    def __init__(self, configured=True, result=None):
        super().__init__(timeout=1.0)
        self.configured = configured
        self.result = result or ProviderResult.success("ref-123")
        self.sent = []

    def is_configured(self):
        return self.configured

    async def _deliver(self, destination, body):
        self.sent.append((destination, body))
        return self.result


def make_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "staging",
        "ADMIN_API_TOKEN": ADMIN_TOKEN,
        "OTP_DEBUG_ECHO": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def notification_provider():
    return FakeProvider(result=ProviderResult.success("wa-789"))


@pytest.fixture
def otp_service(provider, clock):
    return OtpService(
        provider=provider,
        store=VerificationStore(clock=clock),
        rate_limiter=RateLimiter(max_requests=3, window=timedelta(minutes=15), clock=clock),
        ttl=timedelta(minutes=10),
    )


@pytest.fixture
def app(provider, notification_provider, clock):
    return create_app(
        config=make_settings(OTP_DEBUG_ECHO=True),
        sms_provider=provider,
        notification_provider=notification_provider,
        clock=clock,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def settings_factory():
    return make_settings
