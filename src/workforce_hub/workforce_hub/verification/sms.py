from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from ..core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class SmsSender(Protocol):
    def send(self, to: str, body: str) -> str:
        raise NotImplementedError


class TwilioSmsSender(SmsSender):
    """Sends through the Twilio REST API (form-encoded, basic auth)."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout = timeout
        self._session = session or requests.Session()

    def send(self, to: str, body: str) -> str:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise ExternalServiceError("Twilio credentials not configured")

        try:
            resp = self._session.post(
                TWILIO_MESSAGES_URL.format(sid=self._account_sid),
                data={"To": to, "From": self._from_number, "Body": body},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("SMS provider unreachable: %s", e)
            raise ExternalServiceError("Failed to send SMS") from e

        try:
            result = resp.json()
        except ValueError:
            result = {}

        if not resp.ok:
            logger.error("Twilio error (%s): %s", resp.status_code, result.get("message"))
            raise ExternalServiceError(result.get("message") or "Failed to send SMS")

        logger.info("SMS sent: %s", result.get("sid"))
        return str(result.get("sid") or "")


class LoggingSmsSender(SmsSender):
    """Development sender: logs that a message would be sent, never the body."""

    def send(self, to: str, body: str) -> str:
        logger.info("SMS (not sent, no provider configured) to %s", to)
        return ""
