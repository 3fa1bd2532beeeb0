"""
Outbound notification adapters and message templates.

SmtpNotifier delivers through smtplib on a worker thread and waits for it
with a timeout, so callers get a plain ``bool`` back. LoggingNotifier is used
when no SMTP host is configured.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Tuple
from urllib.parse import urlencode

import structlog

from ..core.config import Settings
from ..core.exceptions import DeliveryError
from ..interfaces.notifier_interface import INotifier

logger = structlog.get_logger()


class SmtpNotifier:
    """Notifier backed by an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 465,
        use_ssl: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_email: str = "no-reply@example.com",
        from_name: str = "Identity Service",
        timeout: float = 10.0
    ):
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpNotifier":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            use_ssl=settings.SMTP_SSL,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_email=settings.EMAILS_FROM_EMAIL,
            from_name=settings.EMAILS_FROM_NAME,
            timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        )

    def build_message(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _connect(self, timeout: float) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(host=self.host, port=self.port, timeout=timeout)
        return smtplib.SMTP(host=self.host, port=self.port, timeout=timeout)

    def _deliver(self, message: EmailMessage, timeout: float) -> None:
        with self._connect(timeout) as conn:
            if self.username:
                conn.login(self.username, self.password or "")
            conn.send_message(message)

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        timeout: Optional[float] = None
    ) -> bool:
        """Deliver a message; False on any delivery failure or timeout."""
        limit = self.timeout if timeout is None else min(timeout, self.timeout)
        if limit <= 0:
            logger.warning("Email not sent, deadline already passed", subject=subject)
            return False

        message = self.build_message(to, subject, html_body)
        try:
            await asyncio.wait_for(asyncio.to_thread(self._deliver, message, limit), timeout=limit)
        except asyncio.TimeoutError:
            logger.error("Email delivery timed out", subject=subject, timeout=limit)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email delivery failed", subject=subject, error=str(e))
            return False

        logger.info("Email sent", subject=subject)
        return True


class LoggingNotifier:
    """Development notifier that logs the subject and drops the message."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        timeout: Optional[float] = None
    ) -> bool:
        logger.info("Email delivery skipped, no SMTP host configured", subject=subject)
        return True


def _link(base_url: str, code: str) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'code': code})}"


def verification_email(code: str, verify_url: str) -> Tuple[str, str]:
    """Subject and HTML body for an email verification code."""
    link = _link(verify_url, code)
    body = (
        "<p>Welcome! Please confirm your email address.</p>"
        f"<p>Your verification code is <strong>{code}</strong>.</p>"
        f'<p>Or follow this link: <a href="{link}">{link}</a></p>'
    )
    return "Verify your email", body


def reset_email(code: str, reset_url: str) -> Tuple[str, str]:
    """Subject and HTML body for a password reset code."""
    link = _link(reset_url, code)
    body = (
        "<p>We received a request to reset your password.</p>"
        f"<p>Your reset code is <strong>{code}</strong>.</p>"
        f'<p>Or follow this link: <a href="{link}">{link}</a></p>'
        "<p>If you did not ask for this, you can ignore this email.</p>"
    )
    return "Reset your password", body


async def deliver(
    notifier: INotifier,
    to: str,
    subject: str,
    html_body: str,
    deadline: Optional[float] = None
) -> None:
    """
    Send through ``notifier`` and raise on failure.

    Args:
        deadline: Absolute event loop time (``loop.time()``) by which delivery
            must finish; None leaves the notifier's own timeout in charge

    Raises:
        DeliveryError: If the notifier reports failure or the deadline passed
    """
    timeout = None
    if deadline is not None:
        timeout = deadline - asyncio.get_running_loop().time()
        if timeout <= 0:
            logger.warning("Delivery deadline passed before sending", subject=subject)
            raise DeliveryError()

    try:
        sent = await notifier.send(to, subject, html_body, timeout=timeout)
    except Exception as e:
        logger.error("Notifier raised during delivery", subject=subject, error=str(e))
        raise DeliveryError() from e

    if not sent:
        raise DeliveryError()
