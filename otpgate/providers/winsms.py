"""
otpgate/providers/winsms.py

Purpose: WinSMS (winsms.tn) delivery

- GET <base>?action=send-sms&api_key=...&to=...&from=...&sms=...&response=json
- Destination is sent digits-only (216XXXXXXXX)
- The API may answer with plain text instead of JSON
"""

from typing import Optional

from otpgate.providers.base import (
    DeliveryProvider,
    ProviderResult,
    first_present,
    http_error_text,
    parse_json,
)
from otpgate.utils.phone_utils import phone_to_digits


class WinSmsProvider(DeliveryProvider):
    """SMS through the WinSMS HTTP API."""

    name = "winsms"

    def __init__(self, base_url: str, api_key: Optional[str], sender_id: str, unicode: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url
        self.api_key = api_key
        self.sender_id = sender_id
        self.unicode = unicode

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def _deliver(self, destination: str, body: str) -> ProviderResult:
        params = {
            "action": "send-sms",
            "api_key": self.api_key,
            "to": phone_to_digits(destination),
            "from": self.sender_id,
            "sms": body,
            "response": "json",
        }
        if self.unicode:
            params["unicode"] = "1"

        response = await self._request(
            "GET",
            self.base_url,
            params=params,
            headers={"Accept": "application/json"},
        )

        data = parse_json(response)

        if data is None:
            text = response.text.strip()
            if not response.is_success:
                return ProviderResult.failure(http_error_text(response, "WinSMS"))
            if "OK" in text.upper() or response.status_code == 200:
                return ProviderResult.success()
            return ProviderResult.failure(text or "WinSMS returned an empty response")

        if not response.is_success:
            message = first_present(data, "error", "message", "msg")
            return ProviderResult.failure(
                str(message) if message else http_error_text(response, "WinSMS")
            )

        return ProviderResult.success(first_present(data, "ref", "reference", "messageId"))
