from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import utc_now
from ..notifications.model import EventType
from ..notifications.outbox import OutboxPublisher
from ..notifications.payloads import SlaAlert
from ..users.repository import UserRepository
from .model import ResolutionRequest
from .repository import ResolutionRequestRepository
from .rules import warning_cutoff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlaScanResult:
    breaches: int = 0
    warnings: int = 0


class SlaMonitor:
    """Queues at most one breach alert and one warning per resolution request.

    The ``*_alerted_at`` columns are claimed with a conditional UPDATE before
    publishing, so overlapping scans cannot alert twice.
    """

    def __init__(self, requests: ResolutionRequestRepository, users: UserRepository, publisher: OutboxPublisher):
        self._requests = requests
        self._users = users
        self._publisher = publisher

    def scan(self, now: Optional[datetime] = None) -> SlaScanResult:
        now = now or utc_now()
        breaches = warnings = 0

        for req in self._requests.list_due_before(warning_cutoff(now)):
            if req.sla_due_at <= now:
                if req.breach_alerted_at is None and self._alert(req, breach=True, now=now):
                    breaches += 1
            elif req.warning_alerted_at is None and self._alert(req, breach=False, now=now):
                warnings += 1

        if breaches or warnings:
            logger.info("SLA scan queued %d breach alert(s), %d warning(s)", breaches, warnings)
        return SlaScanResult(breaches=breaches, warnings=warnings)

    def _alert(self, req: ResolutionRequest, *, breach: bool, now: datetime) -> bool:
        if breach:
            claimed = self._requests.claim_breach_alert(request_id=req.request_id, now=now)
        else:
            claimed = self._requests.claim_warning_alert(request_id=req.request_id, now=now)
        if not claimed:
            return False

        raised_by = self._users.get_by_id(req.raised_by)
        alert = SlaAlert(
            request_id=req.request_id,
            title=req.title,
            priority=req.priority,
            sla_due_at=req.sla_due_at,
            category=req.category,
            is_breach=breach,
            raised_by_name=raised_by.full_name if raised_by else None,
        )
        try:
            self._publisher.publish(EventType.SLA_ALERT, alert.to_payload(), now=now)
        except Exception:
            logger.exception("Failed to queue SLA alert for request %s; releasing claim", req.request_id)
            self._requests.release_alert_claim(request_id=req.request_id, breach=breach)
            return False
        return True
