from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.email_log import EmailLog, EmailStatus
from app.models.shared import utc_now


class EmailLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
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
        log = EmailLog(
            tenant_id=tenant_id,
            academy_id=academy_id,
            template=template,
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            status=EmailStatus.PENDING.value,
            attempts=0,
            metadata_=metadata,
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        return log

    def get_by_id(self, email_log_id: UUID) -> EmailLog | None:
        return self.db.query(EmailLog).filter(EmailLog.id == email_log_id).first()

    def get_retryable(self, max_attempts: int, limit: int = 100) -> list[EmailLog]:
        """Pending or failed emails with attempts left, oldest first."""
        return (
            self.db.query(EmailLog)
            .filter(
                or_(
                    EmailLog.status == EmailStatus.PENDING.value,
                    EmailLog.status == EmailStatus.FAILED.value,
                ),
                EmailLog.attempts < max_attempts,
            )
            .order_by(EmailLog.created_at.asc())
            .limit(limit)
            .all()
        )

    def was_sent_since(self, template: str, to_email: str, since: datetime, key: str) -> bool:
        """Whether ``template`` already went to ``to_email`` for ``key`` after ``since``."""
        rows = (
            self.db.query(EmailLog)
            .filter(
                EmailLog.template == template,
                EmailLog.to_email == to_email,
                EmailLog.created_at >= since,
            )
            .all()
        )
        return any((row.metadata_ or {}).get("key") == key for row in rows)

    def mark_sent(self, log: EmailLog) -> EmailLog:
        now = utc_now()
        log.status = EmailStatus.SENT.value  # type: ignore[assignment]
        log.attempts = (log.attempts or 0) + 1  # type: ignore[assignment]
        log.last_attempt_at = now  # type: ignore[assignment]
        log.sent_at = now  # type: ignore[assignment]
        log.last_error = None  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(log)
        return log

    def mark_failed(self, log: EmailLog, error: str) -> EmailLog:
        log.status = EmailStatus.FAILED.value  # type: ignore[assignment]
        log.attempts = (log.attempts or 0) + 1  # type: ignore[assignment]
        log.last_attempt_at = utc_now()  # type: ignore[assignment]
        log.last_error = error[:2000]  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(log)
        return log
