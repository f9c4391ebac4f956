"""
Unit Tests for the OTP login flow
Tests for: send, verify, expiry, attempt limits, single use
"""
import pytest
from unittest.mock import patch

from app.core.exceptions import (
    AuthProviderError,
    EmailDeliveryError,
    InvalidInputError,
    InvalidOtpError,
    OtpExpiredError,
    OtpNotFoundError,
    TooManyAttemptsError,
)
from app.services.otp_service import generate_otp, normalize_email

EMAIL = "student@ceg.edu.in"


def wrong_code(code: str) -> str:
    return "000000" if code != "000000" else "111111"


class TestHelpers:
    def test_generate_otp_is_fixed_width_digits(self):
        with patch("app.services.otp_service.secrets.randbelow", return_value=42):
            code = generate_otp(6)
        assert code == "000042"

        for _ in range(50):
            code = generate_otp()
            assert len(code) == 6
            assert code.isdigit()

    def test_normalize_email(self):
        assert normalize_email("  Student@CEG.edu ") == "student@ceg.edu"
        assert normalize_email(None) == ""


class TestSendOtp:
    """Test OtpService.send_otp"""

    @pytest.mark.asyncio
    async def test_send_stores_record_and_mails_code(self, otp_service, otp_store, email_service, clock):
        result = await otp_service.send_otp(EMAIL)

        assert result == {"message": "OTP sent successfully", "expiresIn": 300}
        record = await otp_store.get(EMAIL)
        assert record.attempts == 0
        assert (record.expires_at - clock()).total_seconds() == 300
        assert email_service.last_code_for(EMAIL) == record.code
        assert email_service.sent[-1]["expires_minutes"] == 5

    @pytest.mark.asyncio
    async def test_send_never_returns_code(self, otp_service, email_service):
        result = await otp_service.send_otp(EMAIL)
        assert email_service.last_code_for(EMAIL) not in result.values()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["", "not-an-email", "a@b", "a b@c.com", None])
    async def test_send_rejects_bad_email(self, otp_service, email_service, email):
        with pytest.raises(InvalidInputError):
            await otp_service.send_otp(email)
        assert email_service.sent == []

    @pytest.mark.asyncio
    async def test_resend_overwrites_previous_code(self, otp_service, otp_store, email_service):
        await otp_service.send_otp(EMAIL)
        first = email_service.last_code_for(EMAIL)
        await otp_service.send_otp(EMAIL)

        record = await otp_store.get(EMAIL)
        assert record.code == email_service.last_code_for(EMAIL)
        assert len(email_service.sent) == 2
        assert len(otp_store) == 1
        if first != record.code:
            with pytest.raises(InvalidOtpError):
                await otp_service.verify_otp(EMAIL, first)

    @pytest.mark.asyncio
    async def test_delivery_failure_raises(self, otp_service, email_service):
        email_service.deliver = False

        with pytest.raises(EmailDeliveryError) as exc_info:
            await otp_service.send_otp(EMAIL)
        assert exc_info.value.status_code == 500


class TestVerifyOtp:
    """Test OtpService.verify_otp"""

    @pytest.mark.asyncio
    async def test_verify_succeeds_exactly_once(self, otp_service, email_service, identity):
        await otp_service.send_otp(EMAIL)
        code = email_service.last_code_for(EMAIL)

        result = await otp_service.verify_otp(EMAIL, code)

        uid = identity.users[EMAIL]
        assert result == {"message": "OTP verified successfully", "token": f"custom-token-{uid}"}
        assert identity.custom_tokens == [(uid, {"email": EMAIL, "verified": True})]

        with pytest.raises(OtpNotFoundError):
            await otp_service.verify_otp(EMAIL, code)

    @pytest.mark.asyncio
    async def test_email_is_case_insensitive(self, otp_service, email_service):
        await otp_service.send_otp(EMAIL.upper())
        code = email_service.last_code_for(EMAIL)

        result = await otp_service.verify_otp(f"  {EMAIL} ", code)
        assert "token" in result

    @pytest.mark.asyncio
    async def test_same_email_maps_to_same_uid(self, otp_service, email_service, identity):
        for _ in range(2):
            await otp_service.send_otp(EMAIL)
            await otp_service.verify_otp(EMAIL, email_service.last_code_for(EMAIL))

        uids = {uid for uid, _ in identity.custom_tokens}
        assert len(uids) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,code", [(EMAIL, None), (None, "123456"), ("", ""), (EMAIL, "  ")])
    async def test_missing_fields(self, otp_service, email, code):
        with pytest.raises(InvalidInputError):
            await otp_service.verify_otp(email, code)

    @pytest.mark.asyncio
    async def test_unknown_email(self, otp_service):
        with pytest.raises(OtpNotFoundError):
            await otp_service.verify_otp(EMAIL, "123456")

    @pytest.mark.asyncio
    async def test_wrong_code_increments_attempts(self, otp_service, otp_store, email_service):
        await otp_service.send_otp(EMAIL)
        code = email_service.last_code_for(EMAIL)

        with pytest.raises(InvalidOtpError) as exc_info:
            await otp_service.verify_otp(EMAIL, wrong_code(code))

        assert exc_info.value.details == {"attempts": 1}
        record = await otp_store.get(EMAIL)
        assert record is not None
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_three_wrong_codes_exhaust_record(self, otp_service, otp_store, email_service):
        await otp_service.send_otp(EMAIL)
        code = email_service.last_code_for(EMAIL)

        for _ in range(3):
            with pytest.raises(InvalidOtpError):
                await otp_service.verify_otp(EMAIL, wrong_code(code))

        with pytest.raises(TooManyAttemptsError):
            await otp_service.verify_otp(EMAIL, code)
        assert await otp_store.get(EMAIL) is None

    @pytest.mark.asyncio
    async def test_two_wrong_codes_then_right_code_succeeds(self, otp_service, email_service):
        await otp_service.send_otp(EMAIL)
        code = email_service.last_code_for(EMAIL)

        for _ in range(2):
            with pytest.raises(InvalidOtpError):
                await otp_service.verify_otp(EMAIL, wrong_code(code))

        result = await otp_service.verify_otp(EMAIL, code)
        assert result["message"] == "OTP verified successfully"

    @pytest.mark.asyncio
    async def test_expired_code(self, otp_service, otp_store, email_service, clock):
        await otp_service.send_otp(EMAIL)
        code = email_service.last_code_for(EMAIL)

        clock.advance(minutes=5, seconds=1)

        with pytest.raises(OtpExpiredError):
            await otp_service.verify_otp(EMAIL, code)
        assert await otp_store.get(EMAIL) is None

    @pytest.mark.asyncio
    async def test_code_valid_at_exact_deadline(self, otp_service, email_service, clock):
        await otp_service.send_otp(EMAIL)
        clock.advance(minutes=5)

        result = await otp_service.verify_otp(EMAIL, email_service.last_code_for(EMAIL))
        assert "token" in result

    @pytest.mark.asyncio
    async def test_swept_record_reads_as_not_found(self, otp_service, otp_store, email_service, clock):
        await otp_service.send_otp(EMAIL)
        clock.advance(minutes=6)
        await otp_store.sweep_expired()

        with pytest.raises(OtpNotFoundError):
            await otp_service.verify_otp(EMAIL, email_service.last_code_for(EMAIL))

    @pytest.mark.asyncio
    async def test_token_failure_is_upstream_error(self, otp_service, email_service, identity):
        identity.fail_token_minting = True
        await otp_service.send_otp(EMAIL)

        with pytest.raises(AuthProviderError) as exc_info:
            await otp_service.verify_otp(EMAIL, email_service.last_code_for(EMAIL))
        assert exc_info.value.status_code == 500
