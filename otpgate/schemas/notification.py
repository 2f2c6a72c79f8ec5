"""
otpgate/schemas/notification.py

Pydantic models for the privileged /notifications endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from otpgate.services.notification_service import NotificationKind


class NotificationRequest(BaseModel):
    """
    Request schema for notification dispatch.

    Accepts the camelCase names used by the admin dashboard
    (documentName, requestedDocuments, ...) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    phone: Optional[str] = Field(default=None, description="Recipient phone number")
    kind: Optional[NotificationKind] = Field(
        default=None,
        validation_alias="type",
        description="Template to render; free_text when only message is given"
    )
    message: Optional[str] = Field(default=None, description="Free text body")
    document_name: Optional[str] = Field(default=None, alias="documentName")
    reason: Optional[str] = None
    requested_documents: Optional[List[str]] = Field(default=None, alias="requestedDocuments")
    custom_message: Optional[str] = Field(default=None, alias="customMessage")
    applicant_name: Optional[str] = Field(default=None, alias="applicantName")
    application_id: Optional[str] = Field(default=None, alias="applicationId")

    def resolved_kind(self) -> Optional[NotificationKind]:
        if self.kind is not None:
            return self.kind
        if self.message:
            return NotificationKind.FREE_TEXT
        return None

    def template_params(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"phone", "kind"}, exclude_none=True)


class NotificationResponse(BaseModel):
    """Response schema for notification dispatch."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    message_id: Optional[str] = Field(default=None, serialization_alias="messageId")
