"""Email sender interface + the default Resend-backed implementation.

Without RESEND_API_KEY the default sender logs the message instead of
sending it (local/dev and tests).
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from app.core.config import settings
from app.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0


class EmailSendError(Exception):
    """Email provider rejected or failed the send."""

    pass


class EmailSender(Protocol):
    def send(self, to: list[str], subject: str, html: str) -> None:
        """Send one message to all recipients. Raises EmailSendError on failure."""


class ResendEmailSender:
    """Posts to the Resend HTTP API, retrying transient failures."""

    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.from_email = from_email or settings.EMAIL_FROM
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: list[str], subject: str, html: str) -> None:
        recipients = [addr for addr in to if addr]
        if not recipients:
            logger.warning("Email '%s' has no recipients, skipping", subject)
            return

        if not self.is_configured():
            logger.info("Email dry run (no RESEND_API_KEY): to=%s subject=%s", recipients, subject)
            return

        payload = {
            "from": self.from_email,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        with httpx.Client(timeout=RESEND_TIMEOUT_SECONDS, transport=self._transport) as client:
            response = request_with_retries(
                lambda: client.post(RESEND_SEND_URL, headers=headers, json=payload),
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                retry_statuses=DEFAULT_RETRY_STATUSES,
            )

        if 200 <= response.status_code < 300:
            return

        detail = None
        try:
            data = response.json()
            if isinstance(data, dict):
                detail = data.get("message") or data.get("error")
        except ValueError:
            detail = None
        if detail:
            raise EmailSendError(f"Resend API error: {response.status_code} ({detail})")
        raise EmailSendError(f"Resend API error: {response.status_code}")


_default_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    global _default_sender
    if _default_sender is None:
        _default_sender = ResendEmailSender()
    return _default_sender


def set_email_sender(sender: EmailSender | None) -> None:
    """Override the process-wide sender (tests). None restores the default."""
    global _default_sender
    _default_sender = sender
