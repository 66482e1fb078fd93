"""
Email service — sends verification codes via SMTP.

In development (no SMTP configured), emails are logged to the console
so you can see what *would* be sent without configuring a mail server.
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from taskauth.config import Settings

logger = logging.getLogger(__name__)


def _build_html_body(otp: str, ttl_hours: int) -> str:
    return f"""
    <html>
    <body style="font-family:sans-serif;color:#333">
      <h2>Verify your email</h2>
      <p>Use the code below to finish setting up your account:</p>
      <p style="font-size:1.6em;font-weight:bold;letter-spacing:0.2em">{otp}</p>
      <p style="margin-top:1em;font-size:0.9em;color:#888">
        The code expires in {ttl_hours} hour(s). If you did not create an
        account you can ignore this email.
      </p>
    </body>
    </html>
    """


class OtpMailer:
    """Delivers one-time verification codes to an email address."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send_verification_otp(self, to_email: str, otp: str) -> None:
        settings = self._settings
        ttl_hours = max(1, settings.otp_ttl_seconds // 3600)
        subject = "Account verification code"

        # ── Console fallback (dev mode) ───────────────────────────────
        if not settings.smtp_enabled():
            logger.info(
                "📧 [DEV] Would send email to %s:\n  Subject: %s\n  Code: %s",
                to_email,
                subject,
                otp,
            )
            return

        # ── Real SMTP send ────────────────────────────────────────────
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_from_email
        msg["To"] = to_email

        plain = (
            f"Your verification code is {otp}.\n\n"
            f"It expires in {ttl_hours} hour(s)."
        )
        msg.attach(MIMEText(plain, "plain"))
        msg.attach(MIMEText(_build_html_body(otp, ttl_hours), "html"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                start_tls=settings.smtp_use_tls,
            )
            logger.info("Verification email sent to %s", to_email)
        except Exception:
            logger.exception("Failed to send verification email to %s", to_email)
            raise
