"""
Email Service for CEG Connect
=============================
Sends transactional email over SMTP (aiosmtplib). The only message the
backend sends today is the login OTP.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from app.core.config import settings
from app.core.logging_config import logger


class EmailService:
    """Async email service using SMTP"""

    def __init__(
        self,
        smtp_host: str = settings.SMTP_HOST,
        smtp_port: int = settings.SMTP_PORT,
        smtp_user: str = settings.SMTP_USER,
        smtp_password: str = settings.SMTP_PASSWORD,
        from_email: str = settings.EMAIL_FROM,
        from_name: str = settings.EMAIL_FROM_NAME,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    async def send_otp_email(self, to_email: str, otp: str, expires_minutes: int) -> bool:
        """Send the login verification code"""
        subject = f"{settings.APP_NAME} - Your OTP Code"

        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: linear-gradient(135deg, #36B3A1 0%, #6B5A5A 100%); padding: 20px; text-align: center;">
                <h1 style="color: white; margin: 0;">{settings.APP_NAME}</h1>
                <p style="color: white; margin: 5px 0 0 0;">Your College Community</p>
            </div>
            <div style="padding: 30px; background: #f9f9f9;">
                <h2 style="color: #333; margin-bottom: 20px;">Your Verification Code</h2>
                <p style="color: #666; margin-bottom: 30px;">
                    Use the following code to verify your email address:
                </p>
                <div style="background: white; padding: 20px; border-radius: 8px; text-align: center; border: 2px solid #36B3A1;">
                    <h1 style="color: #36B3A1; font-size: 32px; margin: 0; letter-spacing: 5px;">{otp}</h1>
                </div>
                <p style="color: #666; margin-top: 20px; font-size: 14px;">
                    This code will expire in {expires_minutes} minutes. If you didn't request this code, please ignore this email.
                </p>
            </div>
        </div>
        """

        text_content = (
            f"Your {settings.APP_NAME} verification code is {otp}.\n"
            f"It expires in {expires_minutes} minutes. If you didn't request this code, ignore this email."
        )

        return await self.send_email(to_email, subject, html_content, text_content)
