"""
otpgate/providers/base.py

Purpose: Outbound messaging provider interface

- One send(destination, body) contract for every upstream API
- Credentials checked before any network call
- Transport failures, timeouts and non-2xx responses become
  ProviderResult(ok=False); nothing is raised across this boundary
- Every HTTP call is bounded by a timeout
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from otpgate.core.logging import get_logger, LogContext
from otpgate.utils.phone_utils import mask_phone

logger = get_logger(__name__)

NOT_CONFIGURED = "NOT_CONFIGURED"
INVALID_PHONE = "INVALID_PHONE"
PROVIDER_ERROR = "PROVIDER_ERROR"
TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"


class ProviderResult(BaseModel):
    """
    Outcome of a provider call.
    """
    ok: bool = Field(..., description="Whether the upstream accepted the message")
    reference: Optional[str] = Field(default=None, description="Provider-assigned message id")
    error_message: Optional[str] = Field(default=None, description="Best-effort upstream error")
    error_code: Optional[str] = Field(default=None, description="Failure class")

    @classmethod
    def success(cls, reference: Optional[Any] = None) -> "ProviderResult":
        return cls(ok=True, reference=str(reference) if reference is not None else None)

    @classmethod
    def failure(cls, message: str, error_code: str = PROVIDER_ERROR) -> "ProviderResult":
        return cls(ok=False, error_message=message, error_code=error_code)

    @property
    def not_configured(self) -> bool:
        return self.error_code == NOT_CONFIGURED


class DeliveryProvider(ABC):
    """
    Base class for messaging provider adapters.

    Subclasses implement is_configured() and _deliver(); send() wraps
    _deliver() with the credential check and error normalization.
    """

    name = "provider"

    def __init__(self, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self._client = client

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether every credential the adapter needs is present."""

    @abstractmethod
    async def _deliver(self, destination: str, body: str) -> ProviderResult:
        """Performs the upstream call. May raise httpx errors."""

    async def send(self, destination: str, body: str) -> ProviderResult:
        """
        Sends body to destination (canonical phone).

        Returns:
            ProviderResult; never raises for provider or network failures
        """
        if not self.is_configured():
            logger.error(f"{self.name} is not configured; message not sent")
            return ProviderResult.failure(
                f"{self.name} service not configured",
                error_code=NOT_CONFIGURED
            )

        with LogContext(provider=self.name, phone=mask_phone(destination)):
            try:
                result = await self._deliver(destination, body)
            except httpx.TimeoutException:
                logger.error(f"{self.name} API timeout")
                return ProviderResult.failure(f"{self.name} API timeout", error_code=TIMEOUT)
            except httpx.RequestError as e:
                logger.error(f"Network error calling {self.name}: {e}")
                return ProviderResult.failure(
                    f"Network error connecting to {self.name}",
                    error_code=NETWORK_ERROR
                )
            except Exception as e:
                logger.error(f"Unexpected error sending via {self.name}: {e}", exc_info=True)
                return ProviderResult.failure(str(e) or f"{self.name} error")

            if result.ok:
                logger.info(f"✅ Message sent via {self.name}: ref={result.reference}")
            else:
                logger.error(f"❌ {self.name} rejected message: {result.error_message}")
            return result

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, timeout=self.timeout, **kwargs)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)


def parse_json(response: httpx.Response) -> Optional[Dict[str, Any]]:
    """
    Response body as a dict, or None when it is not a JSON object.
    """
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def first_present(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    """
    Value of the first key that is present and not None.
    """
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def http_error_text(response: httpx.Response, provider: str) -> str:
    text = response.text.strip()
    return text or f"{provider} API error: {response.status_code} {response.reason_phrase}".strip()
