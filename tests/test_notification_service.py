import pytest

from otpgate.providers.base import INVALID_PHONE, ProviderResult
from otpgate.services.notification_service import (
    NotificationDispatcher,
    NotificationKind,
    missing_fields,
    short_application_id,
)


@pytest.fixture
def dispatcher(notification_provider):
    return NotificationDispatcher(provider=notification_provider, app_name="Domobat")


def test_short_application_id():
    assert short_application_id("a1b2c3d4-e5f6-7890") == "A1B2C3D4"
    assert short_application_id("abc") == "ABC"


def test_document_rejection_with_and_without_reason(dispatcher):
    with_reason = dispatcher.render(
        NotificationKind.DOCUMENT_REJECTION,
        {"document_name": "بطاقة التعريف", "reason": "صورة غير واضحة"},
    )
    without_reason = dispatcher.render(NotificationKind.DOCUMENT_REJECTION, {"document_name": "بطاقة التعريف"})

    assert "Domobat" in with_reason
    assert "بطاقة التعريف" in with_reason
    assert "صورة غير واضحة" in with_reason
    assert "بطاقة التعريف" in without_reason
    assert "صورة غير واضحة" not in without_reason


def test_document_request_numbers_documents(dispatcher):
    body = dispatcher.render(
        NotificationKind.DOCUMENT_REQUEST,
        {"requested_documents": ["Payslip", "  ", "Lease contract"], "custom_message": "Before Friday"},
    )

    assert "1. Payslip" in body
    assert "2. Lease contract" in body
    assert "Before Friday" in body


def test_application_approved_uses_short_id(dispatcher):
    body = dispatcher.render(
        NotificationKind.APPLICATION_APPROVED,
        {"application_id": "deadbeef-0000-1111", "applicant_name": "Amira"},
    )

    assert "DEADBEEF" in body
    assert "deadbeef-0000" not in body
    assert "Amira" in body


def test_application_rejected_optional_reason(dispatcher):
    body = dispatcher.render(
        NotificationKind.APPLICATION_REJECTED,
        {"application_id": "12345678abcd", "reason": "Incomplete file"},
    )

    assert "12345678" in body
    assert "Incomplete file" in body


def test_free_text_is_sent_as_is(dispatcher):
    assert dispatcher.render(NotificationKind.FREE_TEXT, {"message": "Hello\n  there"}) == "Hello\nthere"


@pytest.mark.parametrize("kind,params,expected", [
    (NotificationKind.DOCUMENT_REJECTION, {}, ["document_name"]),
    (NotificationKind.DOCUMENT_REQUEST, {"requested_documents": []}, ["requested_documents"]),
    (NotificationKind.DOCUMENT_REQUEST, {"requested_documents": "Payslip"}, ["requested_documents"]),
    (NotificationKind.APPLICATION_APPROVED, {"application_id": " "}, ["application_id"]),
    (NotificationKind.APPLICATION_REJECTED, {}, ["application_id"]),
    (NotificationKind.FREE_TEXT, {"message": ""}, ["message"]),
    (NotificationKind.APPLICATION_APPROVED, {"application_id": "abc"}, []),
])
def test_missing_fields(kind, params, expected):
    assert missing_fields(kind, params) == expected


def test_render_rejects_missing_fields(dispatcher):
    with pytest.raises(ValueError):
        dispatcher.render(NotificationKind.DOCUMENT_REJECTION, {"reason": "blurry"})


@pytest.mark.asyncio
async def test_render_and_send(dispatcher, notification_provider):
    result = await dispatcher.render_and_send(NotificationKind.FREE_TEXT, "99 123 456", {"message": "Hi"})

    assert result.ok
    assert result.reference == "wa-789"
    assert notification_provider.sent == [("+21699123456", "Hi")]


@pytest.mark.asyncio
async def test_invalid_phone_never_reaches_provider(dispatcher, notification_provider):
    result = await dispatcher.render_and_send(NotificationKind.FREE_TEXT, "12", {"message": "Hi"})

    assert not result.ok
    assert result.error_code == INVALID_PHONE
    assert notification_provider.sent == []


@pytest.mark.asyncio
async def test_provider_failure_is_returned(dispatcher, notification_provider):
    notification_provider.result = ProviderResult.failure("Template not approved")

    result = await dispatcher.render_and_send(NotificationKind.FREE_TEXT, "+21699123456", {"message": "Hi"})

    assert not result.ok
    assert result.error_message == "Template not approved"
