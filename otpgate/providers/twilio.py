"""
otpgate/providers/twilio.py

Purpose: Twilio SMS / WhatsApp delivery

- Sends through the Twilio REST API (Messages.json), form-encoded
- HTTP basic auth with account SID and auth token
- WhatsApp mode prefixes both numbers with "whatsapp:"
"""

from typing import Optional

from otpgate.providers.base import (
    DeliveryProvider,
    ProviderResult,
    first_present,
    http_error_text,
    parse_json,
)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioProvider(DeliveryProvider):
    """Messages through Twilio's Programmable Messaging API."""

    name = "twilio"

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        whatsapp: bool = False,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.whatsapp = whatsapp
        if whatsapp:
            self.name = "twilio_whatsapp"

    def is_configured(self) -> bool:
        return bool(
            self.account_sid
            and self.auth_token
            and self.from_number
            and self.account_sid != "your_twilio_sid"
        )

    def _address(self, number: str) -> str:
        if self.whatsapp and not number.startswith("whatsapp:"):
            return f"whatsapp:{number}"
        return number

    async def _deliver(self, destination: str, body: str) -> ProviderResult:
        url = f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"
        data = {
            "From": self._address(self.from_number),
            "To": self._address(destination),
            "Body": body,
        }

        response = await self._request(
            "POST",
            url,
            data=data,
            auth=(self.account_sid, self.auth_token),
        )

        payload = parse_json(response) or {}

        if response.status_code not in (200, 201):
            message = first_present(payload, "message", "detail")
            return ProviderResult.failure(
                str(message) if message else http_error_text(response, "Twilio")
            )

        return ProviderResult.success(payload.get("sid"))
