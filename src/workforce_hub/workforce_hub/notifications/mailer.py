from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import requests

from ..core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class EmailMessage:
    to: Sequence[str]
    subject: str
    html: str


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> str:
        """Deliver the message and return the provider's message id."""

        raise NotImplementedError


class ResendEmailSender(EmailSender):
    """Sends through the Resend HTTP API."""

    def __init__(self, api_key: str, sender: str, *, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self._api_key = api_key
        self._sender = sender
        self._timeout = timeout
        self._session = session or requests.Session()

    def send(self, message: EmailMessage) -> str:
        try:
            resp = self._session.post(
                RESEND_API_URL,
                json={"from": self._sender, "to": list(message.to), "subject": message.subject, "html": message.html},
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("Email provider unreachable: %s", e)
            raise ExternalServiceError("Failed to send email") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if not resp.ok:
            logger.error("Email provider rejected message (%s): %s", resp.status_code, body)
            raise ExternalServiceError(body.get("message") or "Failed to send email")

        logger.info("Email sent to %d recipient(s): %s", len(message.to), message.subject)
        return str(body.get("id") or "")


class LoggingEmailSender(EmailSender):
    """Used when no provider key is configured (local development)."""

    def send(self, message: EmailMessage) -> str:
        logger.info("Email (not sent, no provider configured) to %s: %s", ", ".join(message.to), message.subject)
        return ""
