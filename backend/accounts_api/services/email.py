"""Outbound email over SMTP, plus the account lifecycle templates."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from accounts_api.config import Settings, settings

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "Sign-up Verification API"


def _redact(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailSender:
    def __init__(
        self,
        *,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        smtp_use_tls: bool = True,
        from_email: str = "",
        timeout: float = 10.0,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.timeout = timeout

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "EmailSender":
        return cls(
            smtp_host=cfg.smtp_host,
            smtp_port=cfg.smtp_port,
            smtp_user=cfg.smtp_user,
            smtp_password=cfg.smtp_password,
            smtp_use_tls=cfg.smtp_use_tls,
            from_email=cfg.email_from,
            timeout=cfg.smtp_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def _deliver(self, to: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        if self.smtp_use_tls:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to, msg.as_string())
        else:
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=self.timeout) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to, msg.as_string())

    async def send(self, to: str, subject: str, html_body: str) -> bool:
        """Send an email. Fire-and-forget: failures are logged and reported as False, never raised."""
        if not self.is_configured:
            logger.info("Email (dev mode, not sent) to=%s subject=%s", _redact(to), subject)
            if settings.app_env != "production":
                logger.debug("Email body: %s", html_body)
            return True
        try:
            await asyncio.to_thread(self._deliver, to, subject, html_body)
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.warning("Email send failed to=%s subject=%s: %s", _redact(to), subject, e)
            return False
        logger.info("Email sent to=%s subject=%s", _redact(to), subject)
        return True


async def send_verification_email(sender: EmailSender, email: str, token: str, origin: str | None) -> bool:
    if origin:
        verify_url = f"{origin}/account/verify-email?token={token}"
        message = (
            "<p>Please click the below link to verify your email address:</p>"
            f'<p><a href="{html.escape(verify_url)}">{html.escape(verify_url)}</a></p>'
        )
    else:
        message = (
            "<p>Please use the below token to verify your email address with the "
            "<code>/accounts/verify-email</code> api route:</p>"
            f"<p><code>{token}</code></p>"
        )
    return await sender.send(
        email,
        f"{SUBJECT_PREFIX} - Verify Email",
        f"<h4>Verify Email</h4><p>Thanks for registering!</p>{message}",
    )


async def send_already_registered_email(sender: EmailSender, email: str, origin: str | None) -> bool:
    if origin:
        message = (
            "<p>If you don't know your password please visit the "
            f'<a href="{html.escape(origin)}/account/forgot-password">forgot password</a> page.</p>'
        )
    else:
        message = (
            "<p>If you don't know your password you can reset it via the "
            "<code>/accounts/forgot-password</code> api route.</p>"
        )
    return await sender.send(
        email,
        f"{SUBJECT_PREFIX} - Email Already Registered",
        "<h4>Email Already Registered</h4>"
        f"<p>Your email <strong>{html.escape(email)}</strong> is already registered.</p>{message}",
    )


async def send_password_reset_email(sender: EmailSender, email: str, token: str, origin: str | None) -> bool:
    if origin:
        reset_url = f"{origin}/account/reset-password?token={token}"
        message = (
            "<p>Please click the below link to reset your password, the link will be valid for 1 day:</p>"
            f'<p><a href="{html.escape(reset_url)}">{html.escape(reset_url)}</a></p>'
        )
    else:
        message = (
            "<p>Please use the below token to reset your password with the "
            "<code>/accounts/reset-password</code> api route:</p>"
            f"<p><code>{token}</code></p>"
        )
    return await sender.send(
        email,
        f"{SUBJECT_PREFIX} - Reset Password",
        f"<h4>Reset Password Email</h4>{message}",
    )
