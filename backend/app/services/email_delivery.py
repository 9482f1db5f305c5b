"""Logged email delivery with retry.

Every transactional email is written to ``email_logs`` before it is sent.
Failed sends stay on the log with their error and are retried by the worker
with exponential backoff until ``EMAIL_MAX_ATTEMPTS`` is reached.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog, EmailStatus
from app.repositories.email_log_repository import EmailLogRepository
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

RETRY_BASE_MINUTES = 5


def next_attempt_at(log: EmailLog) -> datetime | None:
    """When ``log`` becomes eligible for another attempt; None means now."""
    if not log.attempts or log.last_attempt_at is None:
        return None
    last = log.last_attempt_at
    if last.tzinfo is None:
        last = last.replace(tzinfo=UTC)
    backoff = RETRY_BASE_MINUTES * 2 ** (int(log.attempts) - 1)
    return last + timedelta(minutes=backoff)


class EmailDeliveryService:
    def __init__(self, db: Session, email_service: EmailService | None = None):
        self.db = db
        self.repo = EmailLogRepository(db)
        self.email_service = email_service or EmailService()

    def queue(
        self,
        *,
        tenant_id: UUID,
        template: str,
        to_email: str,
        subject: str,
        html_body: str,
        academy_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EmailLog:
        """Record a pending email without sending it."""
        return self.repo.create(
            tenant_id=tenant_id,
            template=template,
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            academy_id=academy_id,
            metadata=metadata,
        )

    async def deliver(self, log: EmailLog) -> bool:
        """Attempt to send a logged email and record the outcome on the log."""
        if log.status == EmailStatus.SENT.value:
            return True
        try:
            sent = await self.email_service.send_email(
                to=str(log.to_email), subject=str(log.subject), html_body=str(log.html_body)
            )
        except Exception as e:
            logger.exception("Failed to send %s email to %s", log.template, log.to_email)
            self.repo.mark_failed(log, str(e) or e.__class__.__name__)
            return False

        if not sent:
            self.repo.mark_failed(log, "Email service reported failure")
            return False
        self.repo.mark_sent(log)
        return True

    async def send(
        self,
        *,
        tenant_id: UUID,
        template: str,
        to_email: str,
        subject: str,
        html_body: str,
        academy_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EmailLog:
        """Log and immediately attempt to send an email."""
        log = self.queue(
            tenant_id=tenant_id,
            template=template,
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            academy_id=academy_id,
            metadata=metadata,
        )
        await self.deliver(log)
        return log

    async def retry_pending(self, now: datetime | None = None) -> dict[str, int]:
        """Retry pending and failed emails whose backoff has elapsed."""
        now = now or datetime.now(UTC)
        stats = {"attempted": 0, "sent": 0, "failed": 0}
        for log in self.repo.get_retryable(settings.EMAIL_MAX_ATTEMPTS):
            eligible_at = next_attempt_at(log)
            if eligible_at is not None and now < eligible_at:
                continue
            stats["attempted"] += 1
            if await self.deliver(log):
                stats["sent"] += 1
            else:
                stats["failed"] += 1
        return stats
