# greenghost/services/mailer.py
"""
Outgoing mail capability.

Everything that sends mail receives a ``Mailer`` explicitly. The app builds
one at startup with ``build_mailer`` and hands it out through the
``get_mailer`` dependency, so tests can swap in a fake.
"""
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Request
from fastapi_mail import FastMail, MessageSchema, MessageType, ConnectionConfig
from pydantic import NameEmail
import logging

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    error: Optional[str] = None


class Mailer(Protocol):
    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        from_address: str,
        display_name: Optional[str] = None,
    ) -> SendResult:
        ...


class SmtpMailer:
    """Sends through the configured SMTP server with fastapi-mail."""

    def __init__(self, settings):
        self.conf = ConnectionConfig(
            MAIL_USERNAME=settings.EMAIL_HOST_USER,
            MAIL_PASSWORD=settings.EMAIL_HOST_PASSWORD,
            MAIL_FROM=settings.MARKETING_FROM,
            MAIL_FROM_NAME=settings.EMAIL_FROM_NAME,
            MAIL_PORT=settings.EMAIL_PORT,
            MAIL_SERVER=settings.EMAIL_HOST,
            MAIL_STARTTLS=not settings.EMAIL_USE_SSL,
            MAIL_SSL_TLS=settings.EMAIL_USE_SSL,
            USE_CREDENTIALS=bool(settings.EMAIL_HOST_USER),
            VALIDATE_CERTS=True,
        )
        # one client per configured sender; ad-hoc campaign senders get a throwaway client
        self._clients = {
            address: self._build_client(address)
            for address in {settings.VERIFICATION_FROM, settings.WELCOME_FROM, settings.MARKETING_FROM}
        }

    def _build_client(self, from_address: str) -> FastMail:
        # fastapi-mail takes the sender from the connection config
        return FastMail(self.conf.model_copy(update={"MAIL_FROM": from_address}))

    def _client_for(self, from_address: str) -> FastMail:
        client = self._clients.get(from_address)
        return client if client is not None else self._build_client(from_address)

    async def send(self, to, subject, html, from_address, display_name=None) -> SendResult:
        recipient = NameEmail(name=display_name, email=to) if display_name else to
        try:
            message = MessageSchema(
                subject=subject,
                recipients=[recipient],
                body=html,
                subtype=MessageType.html,
            )
            await self._client_for(from_address).send_message(message)
            logger.info(f"'{subject}' sent to {to} from {from_address}")
            return SendResult(success=True)
        except Exception as e:
            logger.warning(f"Failed to send '{subject}' to {to}: {str(e)}")
            return SendResult(success=False, error=str(e))


class ConsoleMailer:
    """Development fallback when no SMTP host is configured: log and succeed."""

    async def send(self, to, subject, html, from_address, display_name=None) -> SendResult:
        logger.info("=" * 50)
        logger.info(f"[EMAIL] To: {to} | From: {from_address} | Subject: {subject}")
        logger.info(html)
        logger.info("=" * 50)
        return SendResult(success=True)


def build_mailer(settings) -> Mailer:
    if settings.EMAIL_HOST:
        logger.info(f"SMTP mailer configured for {settings.EMAIL_HOST}:{settings.EMAIL_PORT}")
        return SmtpMailer(settings)
    logger.warning("EMAIL_HOST not set, emails will be logged instead of sent")
    return ConsoleMailer()


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
