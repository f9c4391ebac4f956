"""
OTP login flow: issue a code by email, redeem it for a custom auth token.

Per-email lifecycle: NONE -> ISSUED -> {VERIFIED, EXPIRED, EXHAUSTED}.
A new send always replaces the previous record for the address.
"""

import re
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.exceptions import (
    EmailDeliveryError,
    InvalidInputError,
    InvalidOtpError,
    OtpExpiredError,
    OtpNotFoundError,
    TooManyAttemptsError,
)
from app.core.logging_config import logger
from app.core.security import IdentityProvider
from app.services.email_service import EmailService
from app.services.otp_store import Clock, OtpRecord, OtpStore, utc_now

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def generate_otp(length: int = settings.OTP_LENGTH) -> str:
    """Uniformly random fixed-width decimal code, leading zeros allowed"""
    return str(secrets.randbelow(10 ** length)).zfill(length)


class OtpService:
    def __init__(
        self,
        store: OtpStore,
        identity: IdentityProvider,
        email_service: EmailService,
        clock: Clock = utc_now,
        ttl_seconds: int = settings.OTP_TTL_SECONDS,
        max_attempts: int = settings.OTP_MAX_ATTEMPTS,
    ):
        self.store = store
        self.identity = identity
        self.email_service = email_service
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts

    async def send_otp(self, email: Optional[str]) -> Dict[str, Any]:
        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise InvalidInputError("Please use a valid email address", field="email")

        code = generate_otp()
        record = OtpRecord(
            code=code,
            expires_at=self.clock() + timedelta(seconds=self.ttl_seconds),
            attempts=0,
        )
        await self.store.put(email, record, self.ttl_seconds)

        sent = await self.email_service.send_otp_email(email, code, expires_minutes=self.ttl_seconds // 60)
        if not sent:
            logger.log_auth_event(event="send_otp", success=False, user_email=email, reason="email delivery failed")
            raise EmailDeliveryError(cause=f"delivery to {email} failed")

        logger.log_auth_event(event="send_otp", success=True, user_email=email)
        return {"message": "OTP sent successfully", "expiresIn": self.ttl_seconds}

    async def verify_otp(self, email: Optional[str], code: Optional[str]) -> Dict[str, Any]:
        email = normalize_email(email)
        code = (code or "").strip()
        if not email or not code:
            raise InvalidInputError("Email and OTP are required")

        record = await self.store.get(email)
        if record is None:
            logger.log_auth_event(event="verify_otp", success=False, user_email=email, reason="no record")
            raise OtpNotFoundError()

        if record.is_expired(self.clock()):
            await self.store.delete(email)
            logger.log_auth_event(event="verify_otp", success=False, user_email=email, reason="expired")
            raise OtpExpiredError()

        if record.attempts >= self.max_attempts:
            await self.store.delete(email)
            logger.log_auth_event(event="verify_otp", success=False, user_email=email, reason="attempts exhausted")
            raise TooManyAttemptsError()

        if not secrets.compare_digest(record.code, code):
            failed = record.with_failed_attempt()
            if not await self.store.update(email, failed):
                # Swept or consumed between the read and the write
                raise OtpNotFoundError()
            logger.log_auth_event(
                event="verify_otp", success=False, user_email=email,
                reason=f"wrong code (attempt {failed.attempts})"
            )
            raise InvalidOtpError(attempts=failed.attempts)

        # Single use: only the caller that actually removes the record proceeds
        if not await self.store.compare_and_delete(email, record):
            raise OtpNotFoundError()

        uid = await self.identity.get_or_create_user(email)
        token = await self.identity.create_custom_token(uid, {"email": email, "verified": True})

        logger.log_auth_event(event="verify_otp", success=True, user_email=email, uid=uid)
        return {"message": "OTP verified successfully", "token": token}
