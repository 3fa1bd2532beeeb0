"""
Unit tests for notifier adapters, message templates and delivery.
"""
import asyncio
import smtplib
import time
from unittest.mock import AsyncMock

import pytest

from identity_service.core.exceptions import DeliveryError
from identity_service.interfaces.notifier_interface import INotifier
from identity_service.services.notification_service import (
    LoggingNotifier,
    SmtpNotifier,
    deliver,
    reset_email,
    verification_email,
)


@pytest.fixture
def smtp_notifier():
    return SmtpNotifier(
        host="smtp.example.com",
        username="mailer",
        password="mailer-password",
        from_email="no-reply@example.com",
        from_name="Identity",
        timeout=1.0,
    )


class TestSmtpNotifier:
    """Test suite for SmtpNotifier."""

    @pytest.mark.unit
    def test_implements_protocol(self, smtp_notifier):
        assert isinstance(smtp_notifier, INotifier)

    @pytest.mark.unit
    def test_from_settings(self, settings):
        notifier = SmtpNotifier.from_settings(settings.model_copy(update={"SMTP_HOST": "smtp.example.com"}))

        assert notifier.host == "smtp.example.com"
        assert notifier.port == 465
        assert notifier.use_ssl is True
        assert notifier.timeout == settings.NOTIFIER_TIMEOUT_SECONDS

    @pytest.mark.unit
    def test_build_message(self, smtp_notifier):
        message = smtp_notifier.build_message("alice@example.com", "Verify your email", "<p>1234567</p>")

        assert message["To"] == "alice@example.com"
        assert message["From"] == "Identity <no-reply@example.com>"
        assert message["Subject"] == "Verify your email"
        html = message.get_body(preferencelist=("html",))
        assert "<p>1234567</p>" in html.get_content()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_send_success(self, smtp_notifier, monkeypatch):
        delivered = []
        monkeypatch.setattr(smtp_notifier, "_deliver", lambda message, timeout: delivered.append((message, timeout)))

        assert await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>") is True

        assert delivered[0][0]["To"] == "alice@example.com"
        assert delivered[0][1] == 1.0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_send_uses_shorter_caller_timeout(self, smtp_notifier, monkeypatch):
        timeouts = []
        monkeypatch.setattr(smtp_notifier, "_deliver", lambda message, timeout: timeouts.append(timeout))

        await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>", timeout=0.5)

        assert timeouts == [0.5]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self, smtp_notifier, monkeypatch):
        def refuse(message, timeout):
            raise smtplib.SMTPRecipientsRefused({"alice@example.com": (550, b"no such user")})

        monkeypatch.setattr(smtp_notifier, "_deliver", refuse)

        assert await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>") is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connection_failure_returns_false(self, smtp_notifier, monkeypatch):
        def unreachable(message, timeout):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(smtp_notifier, "_deliver", unreachable)

        assert await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>") is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_slow_relay_times_out(self, smtp_notifier, monkeypatch):
        monkeypatch.setattr(smtp_notifier, "_deliver", lambda message, timeout: time.sleep(0.3))

        assert await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>", timeout=0.05) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_expired_timeout_skips_delivery(self, smtp_notifier, monkeypatch):
        delivered = []
        monkeypatch.setattr(smtp_notifier, "_deliver", lambda message, timeout: delivered.append(message))

        assert await smtp_notifier.send("alice@example.com", "Subject", "<p>hi</p>", timeout=0) is False
        assert delivered == []


class TestLoggingNotifier:
    """Test suite for LoggingNotifier."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reports_success_without_keeping_messages(self):
        notifier = LoggingNotifier()

        for _ in range(3):
            assert await notifier.send("alice@example.com", "Verify your email", "<strong>1234567</strong>") is True

        assert vars(notifier) == {}


class TestTemplates:
    """Test suite for message templates."""

    @pytest.mark.unit
    def test_verification_email(self):
        subject, body = verification_email("1234567", "https://app.example.com/verify-email")

        assert subject == "Verify your email"
        assert "<strong>1234567</strong>" in body
        assert "https://app.example.com/verify-email?code=1234567" in body

    @pytest.mark.unit
    def test_reset_email_keeps_existing_query(self):
        subject, body = reset_email("7654321", "https://app.example.com/reset?lang=en")

        assert subject == "Reset your password"
        assert "https://app.example.com/reset?lang=en&code=7654321" in body


class TestDeliver:
    """Test suite for deliver."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success(self):
        notifier = AsyncMock()
        notifier.send.return_value = True

        await deliver(notifier, "alice@example.com", "Subject", "<p>hi</p>")

        notifier.send.assert_awaited_once_with("alice@example.com", "Subject", "<p>hi</p>", timeout=None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_raises(self):
        notifier = AsyncMock()
        notifier.send.return_value = False

        with pytest.raises(DeliveryError):
            await deliver(notifier, "alice@example.com", "Subject", "<p>hi</p>")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_notifier_exception_raises_delivery_error(self):
        notifier = AsyncMock()
        notifier.send.side_effect = RuntimeError("boom")

        with pytest.raises(DeliveryError):
            await deliver(notifier, "alice@example.com", "Subject", "<p>hi</p>")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_deadline_becomes_timeout(self):
        notifier = AsyncMock()
        notifier.send.return_value = True
        deadline = asyncio.get_running_loop().time() + 30

        await deliver(notifier, "alice@example.com", "Subject", "<p>hi</p>", deadline=deadline)

        timeout = notifier.send.await_args.kwargs["timeout"]
        assert 0 < timeout <= 30

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_passed_deadline(self):
        notifier = AsyncMock()
        deadline = asyncio.get_running_loop().time() - 1

        with pytest.raises(DeliveryError):
            await deliver(notifier, "alice@example.com", "Subject", "<p>hi</p>", deadline=deadline)

        notifier.send.assert_not_awaited()
