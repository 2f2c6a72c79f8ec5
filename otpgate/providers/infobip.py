"""
otpgate/providers/infobip.py

Purpose: Infobip SMS and WhatsApp delivery

- SMS API v2:       POST https://<base>/sms/2/text/advanced
- WhatsApp API v1:  POST https://<base>/whatsapp/1/message/text
- Auth header:      Authorization: App <api key>
"""

from typing import Any, Dict, Optional

import httpx

from otpgate.providers.base import (
    DeliveryProvider,
    ProviderResult,
    http_error_text,
    parse_json,
)


def _base_url(host: str) -> str:
    host = host.strip().rstrip("/")
    if host.startswith("http://") or host.startswith("https://"):
        return host
    return f"https://{host}"


def extract_infobip_error(response: httpx.Response) -> str:
    """
    Best-effort message from an Infobip error body.

    Handles, in order: violations[], requestError.serviceException.text,
    description (+ action), then the raw body.
    """
    data = parse_json(response) or {}

    violations = data.get("violations")
    if isinstance(violations, list) and violations:
        return ", ".join(
            f"{v.get('property')}: {v.get('violation')}" for v in violations if isinstance(v, dict)
        )

    service_exception = (data.get("requestError") or {}).get("serviceException") or {}
    if service_exception.get("text"):
        return service_exception["text"]

    if data.get("description"):
        action = data.get("action")
        return f"{data['description']}. {action}" if action else data["description"]

    return http_error_text(response, "Infobip")


def extract_message_id(data: Optional[Dict[str, Any]]) -> Optional[str]:
    messages = (data or {}).get("messages") or []
    if messages and isinstance(messages[0], dict):
        return messages[0].get("messageId")
    return None


class InfobipSmsProvider(DeliveryProvider):
    """SMS through Infobip's v2 advanced text endpoint."""

    name = "infobip"

    def __init__(self, base_url: Optional[str], api_key: Optional[str], sender_id: str, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url
        self.api_key = api_key
        self.sender_id = sender_id

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"App {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _payload(self, destination: str, body: str) -> Dict[str, Any]:
        return {
            "messages": [
                {
                    "destinations": [{"to": destination}],
                    "from": self.sender_id,
                    "text": body,
                }
            ]
        }

    def _endpoint(self) -> str:
        return f"{_base_url(self.base_url)}/sms/2/text/advanced"

    async def _deliver(self, destination: str, body: str) -> ProviderResult:
        response = await self._request(
            "POST",
            self._endpoint(),
            json=self._payload(destination, body),
            headers=self._headers(),
        )

        if not response.is_success:
            return ProviderResult.failure(extract_infobip_error(response))

        return ProviderResult.success(extract_message_id(parse_json(response)))


class InfobipWhatsAppProvider(InfobipSmsProvider):
    """WhatsApp text messages through Infobip."""

    name = "infobip_whatsapp"

    def __init__(self, base_url: Optional[str], api_key: Optional[str], sender_id: str,
                 whatsapp_number: Optional[str] = None, **kwargs):
        super().__init__(base_url, api_key, sender_id, **kwargs)
        self.whatsapp_number = whatsapp_number or sender_id

    def _payload(self, destination: str, body: str) -> Dict[str, Any]:
        return {
            "messages": [
                {
                    "from": self.whatsapp_number,
                    "to": destination,
                    "content": {"text": body},
                }
            ]
        }

    def _endpoint(self) -> str:
        return f"{_base_url(self.base_url)}/whatsapp/1/message/text"
