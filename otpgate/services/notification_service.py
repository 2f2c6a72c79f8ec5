"""
otpgate/services/notification_service.py

Purpose: Templated administrative notifications

- Renders WhatsApp-style messages for document and application events
- Validates the phone before anything reaches the provider
- Delegates delivery to the configured DeliveryProvider
"""

from enum import Enum
from typing import Any, Dict, List, Mapping

from otpgate.core.logging import get_logger, LogContext
from otpgate.providers.base import DeliveryProvider, ProviderResult, INVALID_PHONE
from otpgate.utils.constants import (
    APPLICANT_GREETING,
    APPLICATION_APPROVED_TEMPLATE,
    APPLICATION_ID_DISPLAY_LENGTH,
    APPLICATION_REJECTED_TEMPLATE,
    DOCUMENT_REJECTION_NO_REASON,
    DOCUMENT_REJECTION_REASON,
    DOCUMENT_REJECTION_TEMPLATE,
    DOCUMENT_REQUEST_TEMPLATE,
    INVALID_PHONE_MESSAGE,
    NOTIFICATION_HEADER,
)
from otpgate.utils.phone_utils import DEFAULT_COUNTRY_CODE, mask_phone, normalize_phone
from otpgate.utils.validation_utils import sanitize_input

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    DOCUMENT_REJECTION = "document_rejection"
    DOCUMENT_REQUEST = "document_request"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    FREE_TEXT = "free_text"


REQUIRED_FIELDS: Dict[NotificationKind, tuple] = {
    NotificationKind.DOCUMENT_REJECTION: ("document_name",),
    NotificationKind.DOCUMENT_REQUEST: ("requested_documents",),
    NotificationKind.APPLICATION_APPROVED: ("application_id",),
    NotificationKind.APPLICATION_REJECTED: ("application_id",),
    NotificationKind.FREE_TEXT: ("message",),
}


def short_application_id(application_id: str) -> str:
    """
    Display form of an application id: first 8 characters, upper-cased.
    """
    return str(application_id).strip()[:APPLICATION_ID_DISPLAY_LENGTH].upper()


def required_fields(kind: NotificationKind) -> tuple:
    return REQUIRED_FIELDS[NotificationKind(kind)]


def missing_fields(kind: NotificationKind, params: Mapping[str, Any]) -> List[str]:
    """
    Required template fields that are absent or empty in params.
    """
    missing = []
    for field in required_fields(kind):
        value = params.get(field)
        if field == "requested_documents":
            if not isinstance(value, (list, tuple)) or not any(sanitize_input(doc) for doc in value):
                missing.append(field)
        elif not sanitize_input(value):
            missing.append(field)
    return missing


class NotificationDispatcher:
    """
    Renders a notification template and sends it through a provider.
    """

    def __init__(self, provider: DeliveryProvider, app_name: str = "Domobat",
                 country_code: str = DEFAULT_COUNTRY_CODE):
        self.provider = provider
        self.app_name = app_name
        self.country_code = country_code

    def render(self, kind: NotificationKind, params: Mapping[str, Any]) -> str:
        """
        Builds the message body for kind.

        Raises:
            ValueError: If a required field is missing
        """
        kind = NotificationKind(kind)
        missing = missing_fields(kind, params)
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        header = NOTIFICATION_HEADER.format(app_name=self.app_name)

        if kind is NotificationKind.FREE_TEXT:
            return sanitize_input(params["message"], max_length=4096)

        if kind is NotificationKind.DOCUMENT_REJECTION:
            reason = sanitize_input(params.get("reason"))
            reason_block = (
                DOCUMENT_REJECTION_REASON.format(reason=reason) if reason else DOCUMENT_REJECTION_NO_REASON
            )
            return DOCUMENT_REJECTION_TEMPLATE.format(
                header=header,
                document_name=sanitize_input(params["document_name"]),
                reason_block=reason_block,
            )

        if kind is NotificationKind.DOCUMENT_REQUEST:
            documents = [sanitize_input(doc) for doc in params["requested_documents"]]
            document_list = "\n".join(
                f"{index}. {doc}" for index, doc in enumerate((d for d in documents if d), 1)
            )
            custom = sanitize_input(params.get("custom_message"))
            return DOCUMENT_REQUEST_TEMPLATE.format(
                header=header,
                document_list=document_list,
                custom_block=f"\n{custom}\n" if custom else "",
            )

        applicant_name = sanitize_input(params.get("applicant_name"))
        greeting = APPLICANT_GREETING.format(applicant_name=applicant_name) if applicant_name else ""
        application_ref = short_application_id(params["application_id"])

        if kind is NotificationKind.APPLICATION_APPROVED:
            custom = sanitize_input(params.get("custom_message"))
            return APPLICATION_APPROVED_TEMPLATE.format(
                header=header,
                greeting=greeting,
                application_ref=application_ref,
                custom_block=f"{custom}\n\n" if custom else "",
            )

        reason = sanitize_input(params.get("reason"))
        return APPLICATION_REJECTED_TEMPLATE.format(
            header=header,
            greeting=greeting,
            application_ref=application_ref,
            reason_block=f"{DOCUMENT_REJECTION_REASON.format(reason=reason)}\n\n" if reason else "",
        )

    async def render_and_send(self, kind: NotificationKind, phone: str, params: Mapping[str, Any]) -> ProviderResult:
        """
        Renders the template for kind and delivers it to phone.

        Returns:
            ProviderResult; INVALID_PHONE without calling the provider when
            phone cannot be normalized
        """
        kind = NotificationKind(kind)
        canonical = normalize_phone(phone, self.country_code)

        with LogContext(kind=kind.value, phone=mask_phone(canonical or phone)):
            if canonical is None:
                logger.warning("Notification rejected: invalid phone number")
                return ProviderResult.failure(INVALID_PHONE_MESSAGE, error_code=INVALID_PHONE)

            body = self.render(kind, params)
            logger.info(f"Dispatching {kind.value} notification via {self.provider.name}")
            return await self.provider.send(canonical, body)
