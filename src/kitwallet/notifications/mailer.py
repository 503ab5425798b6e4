"""E-mail notification service.

Mails go through an HTTP relay when one is configured, otherwise they are
only logged. Sending never raises: a failed mail is logged and reported as
False to the caller.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

import httpx

from kitwallet.config import Settings, get_settings

logger = logging.getLogger(__name__)


class MailType(str, Enum):
    """Templates known to the mail relay."""

    WITHDRAWAL_REQUEST = "withdrawal_request"


class Mailer(ABC):
    """Abstract e-mail sender."""

    @abstractmethod
    async def send_email(
        self,
        mail_type: MailType,
        recipient: str,
        data: dict[str, Any],
        user_settings: Optional[dict[str, Any]] = None,
        domain: Optional[str] = None,
    ) -> bool:
        """Send a templated mail.

        Args:
            mail_type: Template to render
            recipient: Destination address
            data: Template variables
            user_settings: Recipient preferences (language, ...)
            domain: Domain used for links in the mail

        Returns:
            True if the mail was accepted for delivery
        """
        pass


class LogMailer(Mailer):
    """Mailer that only logs (development and tests)."""

    async def send_email(
        self,
        mail_type: MailType,
        recipient: str,
        data: dict[str, Any],
        user_settings: Optional[dict[str, Any]] = None,
        domain: Optional[str] = None,
    ) -> bool:
        logger.info("[MAIL] %s to %s: %s", mail_type.value, recipient, data)
        return True


class HttpMailer(Mailer):
    """Mailer posting JSON messages to a mail relay."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        sender: str = "no-reply@localhost",
        default_domain: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.default_domain = default_domain
        self.timeout = timeout
        self._client = client

    async def send_email(
        self,
        mail_type: MailType,
        recipient: str,
        data: dict[str, Any],
        user_settings: Optional[dict[str, Any]] = None,
        domain: Optional[str] = None,
    ) -> bool:
        message = {
            "type": mail_type.value,
            "from": self.sender,
            "to": recipient,
            "data": data,
            "language": (user_settings or {}).get("language", "en"),
            "domain": domain or self.default_domain,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        try:
            if self._client is not None:
                response = await self._client.post(self.api_url, json=message, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.api_url, json=message, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Failed to send {mail_type.value} mail to {recipient}: {e}")
            return False

        if response.status_code >= 400:
            logger.error(
                f"Mail relay rejected {mail_type.value} mail to {recipient}: "
                f"{response.status_code} {response.text}"
            )
            return False

        return True


def create_mailer(settings: Optional[Settings] = None) -> Mailer:
    """Build the mailer for the current settings."""
    settings = settings or get_settings()
    if not settings.mail_api_url:
        logger.warning("Mail relay not configured - mails are only logged")
        return LogMailer()
    return HttpMailer(
        api_url=settings.mail_api_url,
        api_key=settings.mail_api_key,
        sender=settings.mail_sender,
        default_domain=settings.default_domain,
    )
