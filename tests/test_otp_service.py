import asyncio

import pytest

from otpgate.providers.base import ProviderResult
from otpgate.services.otp_service import IssueStatus, OtpService, VerifyStatus, generate_otp
from otpgate.services.rate_limiter import RateLimiter
from otpgate.services.verification_store import VerificationStore

PHONE = "+21699123456"


def test_generate_otp_is_six_digits():
    for _ in range(200):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()
        assert code[0] != "0"


@pytest.mark.asyncio
async def test_issue_and_verify(otp_service, provider):
    result = await otp_service.issue_code("099123456", "ip:1.2.3.4")

    assert result.status is IssueStatus.SENT
    assert result.phone == PHONE
    assert result.reference == "ref-123"
    assert result.code is None

    destination, body = provider.sent[0]
    assert destination == PHONE
    code = otp_service.store.get(PHONE).code
    assert code in body
    assert "Valid for 10 minutes" in body

    assert otp_service.verify_code("+216 99 123 456", code).status is VerifyStatus.VERIFIED
    assert otp_service.verify_code(PHONE, code).status is VerifyStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_expose_code(provider, clock):
    service = OtpService(provider=provider, store=VerificationStore(clock=clock), expose_code=True)

    result = await service.issue_code(PHONE, "ip:1.2.3.4")

    assert result.code == service.store.get(PHONE).code


@pytest.mark.asyncio
async def test_rate_limited_after_three(otp_service, provider):
    for _ in range(3):
        assert (await otp_service.issue_code(PHONE, "ip:1.2.3.4")).status is IssueStatus.SENT

    result = await otp_service.issue_code(PHONE, "ip:1.2.3.4")

    assert result.status is IssueStatus.RATE_LIMITED
    assert result.retry_after > 0
    assert len(provider.sent) == 3


@pytest.mark.asyncio
async def test_not_configured_burns_no_quota(provider, clock):
    provider.configured = False
    service = OtpService(provider=provider, store=VerificationStore(clock=clock))

    result = await service.issue_code(PHONE, "ip:1.2.3.4")

    assert result.status is IssueStatus.NOT_CONFIGURED
    assert len(service.rate_limiter) == 0
    assert len(service.store) == 0
    assert provider.sent == []


@pytest.mark.asyncio
async def test_bad_phone_counts_against_quota(otp_service, provider):
    result = await otp_service.issue_code("12345", "ip:1.2.3.4")

    assert result.status is IssueStatus.BAD_PHONE
    assert result.rate_limit.remaining == 2
    assert provider.sent == []
    assert len(otp_service.store) == 0


@pytest.mark.asyncio
async def test_delivery_failure_keeps_record(otp_service, provider):
    provider.result = ProviderResult.failure("Invalid destination address")

    result = await otp_service.issue_code(PHONE, "ip:1.2.3.4")

    assert result.status is IssueStatus.DELIVERY_FAILED
    assert result.message == "Invalid destination address"
    code = otp_service.store.get(PHONE).code
    assert otp_service.verify_code(PHONE, code).verified


@pytest.mark.asyncio
async def test_reissue_invalidates_old_code(otp_service):
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    first = otp_service.store.get(PHONE).code
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    second = otp_service.store.get(PHONE).code

    if first != second:
        assert otp_service.verify_code(PHONE, first).status is VerifyStatus.MISMATCH
    assert otp_service.verify_code(PHONE, second).verified


@pytest.mark.asyncio
async def test_verify_outcomes(otp_service, clock):
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    code = otp_service.store.get(PHONE).code
    wrong = "111111" if code != "111111" else "222222"

    assert otp_service.verify_code("abc", code).status is VerifyStatus.BAD_PHONE
    assert otp_service.verify_code(PHONE, "12345").status is VerifyStatus.BAD_CODE
    assert otp_service.verify_code(PHONE, "1234567").status is VerifyStatus.BAD_CODE
    assert otp_service.verify_code("+21611111111", code).status is VerifyStatus.NOT_FOUND
    assert otp_service.verify_code(PHONE, wrong).status is VerifyStatus.MISMATCH

    clock.advance(minutes=11)
    assert otp_service.verify_code(PHONE, code).status is VerifyStatus.EXPIRED
    assert otp_service.verify_code(PHONE, code).status is VerifyStatus.NOT_FOUND


@pytest.mark.asyncio
async def test_code_with_separators_is_accepted(otp_service):
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    code = otp_service.store.get(PHONE).code

    assert otp_service.verify_code(PHONE, f"{code[:3]} {code[3:]}").verified


@pytest.mark.asyncio
async def test_sweep_reclaims_expired(otp_service, clock):
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    clock.advance(minutes=16)

    assert otp_service.sweep() == 1
    assert len(otp_service.store) == 0
    assert len(otp_service.rate_limiter) == 0


@pytest.mark.asyncio
async def test_sweeper_lifecycle(provider, clock):
    service = OtpService(provider=provider, store=VerificationStore(clock=clock), sweep_interval=0.01)
    service.store.issue(PHONE, "123456", service.ttl)
    clock.advance(minutes=11)

    service.start()
    assert service.running
    await asyncio.sleep(0.05)
    await service.stop()

    assert not service.running
    assert len(service.store) == 0


def test_injected_collaborators_are_kept(provider, clock):
    store = VerificationStore(clock=clock)
    limiter = RateLimiter(max_requests=7, clock=clock)

    service = OtpService(provider=provider, store=store, rate_limiter=limiter)

    assert service.store is store
    assert service.rate_limiter is limiter


@pytest.mark.asyncio
async def test_arabic_indic_code_is_folded(otp_service):
    await otp_service.issue_code(PHONE, "ip:1.2.3.4")
    code = otp_service.store.get(PHONE).code

    typed = code.translate(str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩"))

    assert otp_service.verify_code("٠٩٩١٢٣٤٥٦", typed).verified


def test_non_decimal_digits_are_a_bad_code(otp_service):
    otp_service.store.issue(PHONE, "123456", otp_service.ttl)

    assert otp_service.verify_code(PHONE, "12345²").status is VerifyStatus.BAD_CODE
