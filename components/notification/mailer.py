"""
Outbound email for one-time codes and payment confirmations.

A single mailer is built at application start (``create_mailer``) and closed
at shutdown. Every transport raises ``NotificationError`` when a message could
not be handed over; callers decide whether that is fatal.
"""
from typing import Optional

import httpx
import structlog

from components.core.config import Settings, get_settings

logger = structlog.get_logger(__name__)

OTP_SUBJECT = "Your iBank OTP"
CONFIRMATION_SUBJECT = "Payment confirmation"


class NotificationError(Exception):
    """Raised when a message could not be delivered to the transport."""


class Mailer:
    """Base mailer: subclasses implement ``send``."""

    async def send(self, to: str, subject: str, text: str) -> None:
        raise NotImplementedError

    async def send_otp(self, to: str, code: str, ttl_minutes: int) -> None:
        await self.send(
            to,
            OTP_SUBJECT,
            f"Your OTP code is {code} (valid {ttl_minutes} minutes).",
        )

    async def send_confirmation(self, to: str, details: str) -> None:
        await self.send(
            to,
            CONFIRMATION_SUBJECT,
            f"Your payment was successful: {details}",
        )

    async def close(self) -> None:
        return None


class LogMailer(Mailer):
    """
    Mailer that only writes a log line.

    Used when no provider is configured. Only the recipient and subject are
    logged; the body may contain a code and is dropped.
    """

    async def send(self, to: str, subject: str, text: str) -> None:
        logger.info("mail_not_delivered", to=to, subject=subject)


class BrevoMailer(Mailer):
    """Mailer backed by the Brevo transactional email HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str,
        api_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.api_url = api_url
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, to: str, subject: str, text: str) -> None:
        try:
            response = await self.client.post(
                self.api_url,
                headers={
                    "api-key": self.api_key,
                    "Content-Type": "application/json",
                },
                json={
                    "sender": {"name": self.sender_name, "email": self.sender_email},
                    "to": [{"email": to}],
                    "subject": subject,
                    "textContent": text,
                },
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Mail transport error: {e}") from e

        if response.status_code not in (200, 201, 202):
            raise NotificationError(
                f"Brevo rejected message ({response.status_code}): {response.text}"
            )
        logger.info("mail_sent", to=to, subject=subject)

    async def close(self) -> None:
        await self.client.aclose()


def create_mailer(settings: Optional[Settings] = None) -> Mailer:
    """Build the mailer selected by MAIL_TRANSPORT."""
    settings = settings or get_settings()
    transport = settings.MAIL_TRANSPORT.lower()

    if transport == "brevo":
        if not settings.BREVO_API_KEY:
            raise ValueError("BREVO_API_KEY is not set")
        return BrevoMailer(
            api_key=settings.BREVO_API_KEY,
            sender_email=settings.MAIL_FROM,
            sender_name=settings.MAIL_SENDER_NAME,
            api_url=settings.BREVO_API_URL,
            timeout=settings.MAIL_TIMEOUT_SECONDS,
        )
    if transport == "log":
        logger.info("mail_transport_log_only")
        return LogMailer()
    raise ValueError(f"Unknown MAIL_TRANSPORT: {settings.MAIL_TRANSPORT}")
