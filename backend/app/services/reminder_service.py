"""Payment reminders for guardians and overdue alerts for academy staff."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db_retry import with_db_retry
from app.models.academy import Academy
from app.models.athlete import Athlete
from app.models.charge import Charge
from app.repositories.charge_repository import ChargeRepository
from app.repositories.email_log_repository import EmailLogRepository
from app.repositories.guardian_repository import GuardianRepository
from app.repositories.notification_repository import NotificationRepository
from app.services.email_delivery import EmailDeliveryService
from app.services.email_service import (
    TEMPLATE_PAYMENT_REMINDER,
    EmailService,
    render_payment_reminder,
)
from app.services.notification_service import CATEGORY_PAYMENT, NotificationService

logger = logging.getLogger(__name__)


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


class ReminderService:
    def __init__(self, db: Session, email_service: EmailService | None = None):
        self.db = db
        self.charges = ChargeRepository(db)
        self.delivery = EmailDeliveryService(db, email_service)

    def _lookup(self, charges: list[Charge]) -> tuple[dict[UUID, Athlete], dict[UUID, Academy]]:
        athlete_ids = {c.athlete_id for c in charges}
        academy_ids = {c.academy_id for c in charges}
        athletes = self.db.query(Athlete).filter(Athlete.id.in_(athlete_ids)).all()
        academies = self.db.query(Academy).filter(Academy.id.in_(academy_ids)).all()
        return (
            {a.id: a for a in athletes},  # type: ignore[misc]
            {a.id: a for a in academies},  # type: ignore[misc]
        )

    async def send_payment_reminders(self, today: date | None = None) -> dict[str, int]:
        """Email every notifiable guardian about pending charges due by ``today``.

        Each guardian gets at most one reminder per charge per day, so two
        pending charges mean two emails. A failed send is logged and recorded
        on its email log; the others continue.
        """
        today = today or date.today()
        charges = with_db_retry(lambda: self.charges.get_pending_due_by(today), table="charges")
        stats = {"charges": len(charges), "sent": 0, "failed": 0, "skipped": 0}
        if not charges:
            return stats

        athletes, academies = self._lookup(charges)
        recipients = GuardianRepository(self.db).get_email_recipients(
            list({c.athlete_id for c in charges})  # type: ignore[arg-type]
        )
        logs = EmailLogRepository(self.db)
        since = _start_of(today)

        for charge in charges:
            guardians = recipients.get(charge.athlete_id, [])  # type: ignore[call-overload]
            athlete = athletes.get(charge.athlete_id)  # type: ignore[call-overload]
            academy = academies.get(charge.academy_id)  # type: ignore[call-overload]
            if not guardians or athlete is None or academy is None:
                stats["skipped"] += 1
                continue
            for guardian in guardians:
                email = str(guardian.email)
                if logs.was_sent_since(TEMPLATE_PAYMENT_REMINDER, email, since, str(charge.id)):
                    stats["skipped"] += 1
                    continue
                subject, html_body = render_payment_reminder(
                    charge, academy, str(athlete.name), guardian.name  # type: ignore[arg-type]
                )
                log = await self.delivery.send(
                    tenant_id=charge.tenant_id,  # type: ignore[arg-type]
                    academy_id=charge.academy_id,  # type: ignore[arg-type]
                    template=TEMPLATE_PAYMENT_REMINDER,
                    to_email=email,
                    subject=subject,
                    html_body=html_body,
                    metadata={"key": str(charge.id), "charge_id": str(charge.id)},
                )
                if log.status == "sent":
                    stats["sent"] += 1
                else:
                    stats["failed"] += 1

        logger.info(
            "Payment reminders: %d sent, %d failed, %d skipped",
            stats["sent"],
            stats["failed"],
            stats["skipped"],
        )
        return stats

    def create_overdue_alerts(self, today: date | None = None) -> int:
        """Notify staff of pending charges at least the configured days past due.

        Each charge is alerted at most once per reminder window.
        """
        today = today or date.today()
        days = settings.PAYMENT_REMINDER_DAYS_OVERDUE
        cutoff = today - timedelta(days=days)
        charges = with_db_retry(lambda: self.charges.get_pending_due_by(cutoff), table="charges")
        if not charges:
            return 0

        athletes, _ = self._lookup(charges)
        notifications = NotificationRepository(self.db)
        service = NotificationService(self.db)
        since = _start_of(today - timedelta(days=days - 1)) if days > 1 else _start_of(today)

        created = 0
        for charge in charges:
            if notifications.exists_since(CATEGORY_PAYMENT, charge.id, since):  # type: ignore[arg-type]
                continue
            athlete = athletes.get(charge.athlete_id)  # type: ignore[call-overload]
            service.notify_overdue_charge(
                tenant_id=charge.tenant_id,  # type: ignore[arg-type]
                academy_id=charge.academy_id,  # type: ignore[arg-type]
                charge_id=charge.id,  # type: ignore[arg-type]
                athlete_name=str(athlete.name) if athlete else "Unknown athlete",
                label=str(charge.label),
                days_overdue=(today - charge.due_date).days,  # type: ignore[operator]
            )
            created += 1
        logger.info("Created %d overdue payment alerts", created)
        return created
