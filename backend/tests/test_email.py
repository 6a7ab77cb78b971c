"""EmailSender: dev-mode logging, SMTP delivery, failures reported not raised."""

import logging
import smtplib
from unittest.mock import MagicMock, patch

import pytest

from accounts_api.config import settings
from accounts_api.services.email import EmailSender, send_password_reset_email


def _sender(**kwargs) -> EmailSender:
    return EmailSender(
        smtp_host="smtp.test",
        smtp_port=587,
        smtp_user="mailer",
        smtp_password="secret",
        from_email="noreply@test.com",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_unconfigured_sender_logs_instead_of_sending():
    sender = EmailSender()
    assert not sender.is_configured
    with patch("smtplib.SMTP") as smtp:
        assert await sender.send("a@test.com", "Hello", "<p>hi</p>") is True
    smtp.assert_not_called()


@pytest.mark.asyncio
async def test_send_uses_starttls_and_login():
    server = MagicMock()
    with patch("smtplib.SMTP") as smtp:
        smtp.return_value.__enter__.return_value = server
        assert await _sender().send("a@test.com", "Hello", "<p>hi</p>") is True
    smtp.assert_called_once_with("smtp.test", 587, timeout=10.0)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "secret")
    from_addr, to_addr, raw = server.sendmail.call_args.args
    assert (from_addr, to_addr) == ("noreply@test.com", "a@test.com")
    assert "Subject: Hello" in raw


@pytest.mark.asyncio
async def test_send_failure_returns_false():
    with patch("smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, b"busy")):
        assert await _sender().send("a@test.com", "Hello", "<p>hi</p>") is False
    with patch("smtplib.SMTP", side_effect=OSError("unreachable")):
        assert await _sender().send("a@test.com", "Hello", "<p>hi</p>") is False


@pytest.mark.asyncio
async def test_reset_email_without_origin_contains_token():
    sender = EmailSender()
    with patch.object(EmailSender, "send", autospec=True, return_value=True) as send:
        await send_password_reset_email(sender, "a@test.com", "tok123", None)
    _, to, subject, body = send.call_args.args
    assert to == "a@test.com"
    assert subject == "Sign-up Verification API - Reset Password"
    assert "<code>tok123</code>" in body


@pytest.mark.asyncio
async def test_production_dev_mode_send_never_logs_body(caplog):
    sender = EmailSender()
    caplog.set_level(logging.DEBUG, logger="accounts_api.services.email")
    with patch.object(settings, "app_env", "production"):
        assert await send_password_reset_email(sender, "a@test.com", "RESETTOKEN123", None) is True
    assert "Reset Password" in caplog.text
    assert "RESETTOKEN123" not in caplog.text


@pytest.mark.asyncio
async def test_development_dev_mode_send_logs_body(caplog):
    sender = EmailSender()
    caplog.set_level(logging.DEBUG, logger="accounts_api.services.email")
    with patch.object(settings, "app_env", "development"):
        await send_password_reset_email(sender, "a@test.com", "RESETTOKEN123", None)
    assert "RESETTOKEN123" in caplog.text
