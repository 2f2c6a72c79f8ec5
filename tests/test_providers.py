import json
from urllib.parse import parse_qs

import httpx
import pytest

from otpgate.providers.base import NETWORK_ERROR, NOT_CONFIGURED, PROVIDER_ERROR, TIMEOUT
from otpgate.providers.factory import create_provider
from otpgate.providers.infobip import InfobipSmsProvider, InfobipWhatsAppProvider
from otpgate.providers.twilio import TwilioProvider
from otpgate.providers.winsms import WinSmsProvider

PHONE = "+21699123456"


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def infobip(handler, cls=InfobipSmsProvider):
    return cls(
        base_url="xyz.api.infobip.com",
        api_key="secret",
        sender_id="Domobat",
        client=mock_client(handler),
    )


# ------------------------------------------------------------------
# Infobip
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_infobip_sms_success():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"messageId": "abc-1", "status": {"groupName": "PENDING"}}]})

    result = await infobip(handler).send(PHONE, "Your code is 123456")

    assert result.ok
    assert result.reference == "abc-1"
    assert seen["url"] == "https://xyz.api.infobip.com/sms/2/text/advanced"
    assert seen["auth"] == "App secret"
    message = seen["body"]["messages"][0]
    assert message["destinations"] == [{"to": PHONE}]
    assert message["from"] == "Domobat"
    assert message["text"] == "Your code is 123456"


@pytest.mark.asyncio
@pytest.mark.parametrize("body,expected", [
    ({"requestError": {"serviceException": {"messageId": "UNAUTHORIZED", "text": "Invalid login details"}}},
     "Invalid login details"),
    ({"violations": [{"property": "messages[0].destinations", "violation": "must not be empty"}]},
     "messages[0].destinations: must not be empty"),
    ({"description": "Bad request", "action": "Check the payload"}, "Bad request. Check the payload"),
])
async def test_infobip_error_extraction(body, expected):
    result = await infobip(lambda request: httpx.Response(400, json=body)).send(PHONE, "hi")

    assert not result.ok
    assert result.error_code == PROVIDER_ERROR
    assert result.error_message == expected


@pytest.mark.asyncio
async def test_infobip_raw_error_body():
    result = await infobip(lambda request: httpx.Response(500, text="upstream down")).send(PHONE, "hi")

    assert not result.ok
    assert result.error_message == "upstream down"


@pytest.mark.asyncio
async def test_infobip_whatsapp_payload():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"messageId": "wa-1"}]})

    provider = infobip(handler, cls=InfobipWhatsAppProvider)
    result = await provider.send(PHONE, "مرحبا")

    assert result.ok
    assert result.reference == "wa-1"
    assert seen["url"].endswith("/whatsapp/1/message/text")
    assert seen["body"]["messages"][0] == {"from": "Domobat", "to": PHONE, "content": {"text": "مرحبا"}}


# ------------------------------------------------------------------
# Twilio
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_twilio_success():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["form"] = parse_qs(request.content.decode())
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

    provider = TwilioProvider("AC1", "token", "+15005550006", client=mock_client(handler))
    result = await provider.send(PHONE, "hello")

    assert result.ok
    assert result.reference == "SM123"
    assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC1/Messages.json"
    assert seen["form"] == {"From": ["+15005550006"], "To": [PHONE], "Body": ["hello"]}
    assert seen["auth"].startswith("Basic ")


@pytest.mark.asyncio
async def test_twilio_whatsapp_prefix():
    seen = {}

    def handler(request):
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(201, json={"sid": "SM9"})

    provider = TwilioProvider("AC1", "token", "+14155238886", whatsapp=True, client=mock_client(handler))
    await provider.send(PHONE, "hello")

    assert provider.name == "twilio_whatsapp"
    assert seen["form"]["From"] == ["whatsapp:+14155238886"]
    assert seen["form"]["To"] == [f"whatsapp:{PHONE}"]


@pytest.mark.asyncio
async def test_twilio_error_message():
    def handler(request):
        return httpx.Response(400, json={"code": 21211, "message": "The 'To' number is not valid."})

    provider = TwilioProvider("AC1", "token", "+15005550006", client=mock_client(handler))
    result = await provider.send(PHONE, "hello")

    assert not result.ok
    assert result.error_message == "The 'To' number is not valid."


def test_twilio_placeholder_sid_is_unconfigured():
    assert not TwilioProvider("your_twilio_sid", "token", "+1").is_configured()
    assert not TwilioProvider("AC1", "token", None).is_configured()


# ------------------------------------------------------------------
# WinSMS
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_winsms_success():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["method"] = request.method
        return httpx.Response(200, json={"ref": "W-77", "status": "sent"})

    provider = WinSmsProvider("https://winsms.test/api", "key", "Domobat", client=mock_client(handler))
    result = await provider.send(PHONE, "code 123456")

    assert result.ok
    assert result.reference == "W-77"
    assert seen["method"] == "GET"
    assert seen["params"]["to"] == "21699123456"
    assert seen["params"]["action"] == "send-sms"
    assert seen["params"]["sms"] == "code 123456"


@pytest.mark.asyncio
async def test_winsms_plain_text_ok():
    provider = WinSmsProvider(
        "https://winsms.test/api", "key", "Domobat",
        client=mock_client(lambda request: httpx.Response(200, text="OK")),
    )

    result = await provider.send(PHONE, "code")

    assert result.ok
    assert result.reference is None


@pytest.mark.asyncio
async def test_winsms_json_error():
    provider = WinSmsProvider(
        "https://winsms.test/api", "key", "Domobat",
        client=mock_client(lambda request: httpx.Response(401, json={"error": "Invalid API key"})),
    )

    result = await provider.send(PHONE, "code")

    assert not result.ok
    assert result.error_message == "Invalid API key"


# ------------------------------------------------------------------
# Shared behaviour
# ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unconfigured_provider_makes_no_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    provider = InfobipSmsProvider(base_url=None, api_key=None, sender_id="Domobat", client=mock_client(handler))
    result = await provider.send(PHONE, "hi")

    assert not result.ok
    assert result.not_configured
    assert result.error_code == NOT_CONFIGURED
    assert calls == []


@pytest.mark.asyncio
async def test_timeout_becomes_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await infobip(handler).send(PHONE, "hi")

    assert not result.ok
    assert result.error_code == TIMEOUT


@pytest.mark.asyncio
async def test_network_error_becomes_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await infobip(handler).send(PHONE, "hi")

    assert not result.ok
    assert result.error_code == NETWORK_ERROR


def test_factory_selects_adapters(settings_factory):
    config = settings_factory(
        INFOBIP_BASE_URL="xyz.api.infobip.com",
        INFOBIP_API_KEY="secret",
        TWILIO_ACCOUNT_SID="AC1",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="+15005550006",
        WINSMS_API_KEY="key",
    )

    assert isinstance(create_provider("infobip", config), InfobipSmsProvider)
    assert isinstance(create_provider("infobip_whatsapp", config), InfobipWhatsAppProvider)
    assert create_provider("twilio", config).name == "twilio"
    assert create_provider("twilio_whatsapp", config).name == "twilio_whatsapp"
    assert isinstance(create_provider("WinSMS", config), WinSmsProvider)
    for name in ("infobip", "twilio", "winsms"):
        assert create_provider(name, config).is_configured()


def test_factory_rejects_unknown_provider(settings_factory):
    with pytest.raises(ValueError):
        create_provider("carrier-pigeon", settings_factory())
