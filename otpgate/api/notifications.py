"""
otpgate/api/notifications.py

Purpose: Administrative WhatsApp notifications

POST /notifications (admin bearer token)
    {phone, type|kind, documentName?, reason?, requestedDocuments?,
     customMessage?, applicantName?, applicationId?, message?}
"""

from fastapi import APIRouter, Depends

from otpgate.api.deps import get_notification_dispatcher, require_admin
from otpgate.core.exceptions import (
    BadPhoneError,
    MissingFieldsError,
    NotificationFailedError,
)
from otpgate.core.logging import get_logger
from otpgate.providers.base import INVALID_PHONE
from otpgate.schemas.notification import NotificationRequest, NotificationResponse
from otpgate.services.notification_service import NotificationDispatcher, missing_fields
from otpgate.utils.constants import (
    INVALID_PHONE_MESSAGE,
    NOTIFICATION_FAILED_MESSAGE,
    NOTIFICATION_MISSING_FIELDS_MESSAGE,
    NOTIFICATION_SENT_MESSAGE,
    PHONE_REQUIRED_MESSAGE,
)

logger = get_logger(__name__)

router = APIRouter(tags=["Notifications"])


@router.post("/notifications", response_model=NotificationResponse, response_model_exclude_none=True)
async def send_notification(
    payload: NotificationRequest,
    admin: str = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationResponse:
    """
    Renders the selected template and sends it to the applicant.

    Errors:
        400 missing fields or invalid phone, 401 not an admin,
        500 dispatch failure, 503 admin access not configured
    """
    if not payload.phone or not payload.phone.strip():
        raise MissingFieldsError(PHONE_REQUIRED_MESSAGE, details={"missing": ["phone"]})

    kind = payload.resolved_kind()
    if kind is None:
        raise MissingFieldsError(
            NOTIFICATION_MISSING_FIELDS_MESSAGE.format(fields="type or message"),
            details={"missing": ["type"]}
        )

    params = payload.template_params()
    missing = missing_fields(kind, params)
    if missing:
        raise MissingFieldsError(
            NOTIFICATION_MISSING_FIELDS_MESSAGE.format(fields=", ".join(missing)),
            details={"missing": missing}
        )

    result = await dispatcher.render_and_send(kind, payload.phone, params)

    if result.error_code == INVALID_PHONE:
        raise BadPhoneError(INVALID_PHONE_MESSAGE)

    if not result.ok:
        raise NotificationFailedError(result.error_message or NOTIFICATION_FAILED_MESSAGE)

    return NotificationResponse(
        success=True,
        message=NOTIFICATION_SENT_MESSAGE,
        message_id=result.reference,
    )
