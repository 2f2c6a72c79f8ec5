"""
Delivery provider factory
"""
from typing import Optional

import httpx

from otpgate.core.config import Settings
from otpgate.core.logging import get_logger
from otpgate.providers.base import DeliveryProvider
from otpgate.providers.infobip import InfobipSmsProvider, InfobipWhatsAppProvider
from otpgate.providers.twilio import TwilioProvider
from otpgate.providers.winsms import WinSmsProvider

logger = get_logger(__name__)


def create_provider(name: str, config: Settings, client: Optional[httpx.AsyncClient] = None) -> DeliveryProvider:
    """
    Builds the provider adapter selected by name.

    Args:
        name: One of infobip, infobip_whatsapp, twilio, twilio_whatsapp, winsms
        config: Application settings holding the credentials
        client: Shared HTTP client (a short-lived one is used per call when None)

    Returns:
        DeliveryProvider instance (possibly unconfigured)

    Raises:
        ValueError: If name is unknown
    """
    provider_type = name.strip().lower()
    common = {"timeout": config.PROVIDER_TIMEOUT_SECONDS, "client": client}

    if provider_type == "infobip":
        provider = InfobipSmsProvider(
            base_url=config.INFOBIP_BASE_URL,
            api_key=config.INFOBIP_API_KEY,
            sender_id=config.INFOBIP_SENDER_ID,
            **common
        )
    elif provider_type == "infobip_whatsapp":
        provider = InfobipWhatsAppProvider(
            base_url=config.INFOBIP_BASE_URL,
            api_key=config.INFOBIP_API_KEY,
            sender_id=config.INFOBIP_SENDER_ID,
            whatsapp_number=config.INFOBIP_WHATSAPP_NUMBER,
            **common
        )
    elif provider_type == "twilio":
        provider = TwilioProvider(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_PHONE_NUMBER,
            **common
        )
    elif provider_type == "twilio_whatsapp":
        provider = TwilioProvider(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_WHATSAPP_NUMBER or config.TWILIO_PHONE_NUMBER,
            whatsapp=True,
            **common
        )
    elif provider_type == "winsms":
        provider = WinSmsProvider(
            base_url=config.WINSMS_BASE_URL,
            api_key=config.WINSMS_API_KEY,
            sender_id=config.WINSMS_SENDER_ID,
            **common
        )
    else:
        raise ValueError(
            f"Unknown provider: {provider_type}. "
            "Must be one of: infobip, infobip_whatsapp, twilio, twilio_whatsapp, winsms"
        )

    if provider.is_configured():
        logger.info(f"Using {provider.name} provider")
    else:
        logger.warning(f"{provider.name} provider selected but not configured")
    return provider
