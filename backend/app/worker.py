import logging
from datetime import date
from typing import Any
from uuid import UUID

from arq import cron

from app.core.database import SessionLocal
from app.repositories.email_log_repository import EmailLogRepository
from app.services.email_delivery import EmailDeliveryService
from app.services.reminder_service import ReminderService
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def send_payment_reminders_task(ctx: dict[str, Any]) -> dict[str, int]:
    """Background task: email guardians about pending charges due by today.

    Runs daily.
    """
    db = SessionLocal()
    try:
        stats = await ReminderService(db).send_payment_reminders(date.today())
        logger.info("Payment reminder run finished: %s", stats)
        return stats
    finally:
        db.close()


async def payment_alerts_task(ctx: dict[str, Any]) -> int:
    """Background task: in-app alerts for charges left unpaid past the grace period.

    Runs daily.
    """
    db = SessionLocal()
    try:
        count = ReminderService(db).create_overdue_alerts(date.today())
        if count > 0:
            logger.info("Created %d payment alerts", count)
        return count
    finally:
        db.close()


async def retry_failed_emails_task(ctx: dict[str, Any]) -> int:
    """Background task: retry pending and failed emails with exponential backoff.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        stats = await EmailDeliveryService(db).retry_pending()
        if stats["attempted"] > 0:
            logger.info(
                "Retried %d emails: %d sent, %d failed",
                stats["attempted"],
                stats["sent"],
                stats["failed"],
            )
        return stats["sent"]
    finally:
        db.close()


async def deliver_email_task(ctx: dict[str, Any], email_log_id: str) -> bool:
    """Background task: deliver one queued email.

    Args:
        ctx: ARQ worker context.
        email_log_id: UUID string of the email log row.

    Returns:
        Whether the email was sent.
    """
    db = SessionLocal()
    try:
        log = EmailLogRepository(db).get_by_id(UUID(email_log_id))
        if log is None:
            logger.warning("Email log %s not found", email_log_id)
            return False
        return await EmailDeliveryService(db).deliver(log)
    finally:
        db.close()


class WorkerSettings:
    functions = [
        send_payment_reminders_task,
        payment_alerts_task,
        retry_failed_emails_task,
        deliver_email_task,
    ]
    cron_jobs = [
        cron(send_payment_reminders_task, hour=8, minute=0),  # daily at 08:00
        cron(payment_alerts_task, hour=8, minute=30),  # daily at 08:30
        cron(
            retry_failed_emails_task,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
        ),
    ]
    redis_settings = redis_settings
