"""Tests for worker background tasks and cron job registration."""

import uuid
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core import database as db_module
from app.models.email_log import EmailLog
from app.models.notification import Notification
from app.worker import (
    WorkerSettings,
    deliver_email_task,
    payment_alerts_task,
    retry_failed_emails_task,
    send_payment_reminders_task,
)


class TestSendPaymentRemindersTask:
    @pytest.mark.asyncio
    async def test_returns_stats(self):
        mock_service = MagicMock()
        mock_service.send_payment_reminders = AsyncMock(
            return_value={"charges": 2, "sent": 2, "failed": 0, "skipped": 0}
        )

        with (
            patch("app.worker.SessionLocal", db_module.SessionLocal),
            patch("app.worker.ReminderService", return_value=mock_service),
        ):
            result = await send_payment_reminders_task({})

        assert result["sent"] == 2
        mock_service.send_payment_reminders.assert_awaited_once_with(date.today())

    @pytest.mark.asyncio
    async def test_sends_for_due_charges(self, make_academy, make_athlete, make_guardian, make_charge):
        athlete = make_athlete(make_academy())
        make_guardian(athlete)
        make_charge(athlete, due_date=date.today() - timedelta(days=1))

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await send_payment_reminders_task({})

        assert result == {"charges": 1, "sent": 1, "failed": 0, "skipped": 0}


class TestPaymentAlertsTask:
    @pytest.mark.asyncio
    async def test_creates_alerts(self, db_session, make_academy, make_athlete, make_charge):
        athlete = make_athlete(make_academy())
        make_charge(athlete, due_date=date.today() - timedelta(days=30))

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await payment_alerts_task({})

        assert result == 1
        assert db_session.query(Notification).count() == 1

    @pytest.mark.asyncio
    async def test_nothing_overdue(self):
        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            assert await payment_alerts_task({}) == 0


class TestRetryFailedEmailsTask:
    @pytest.mark.asyncio
    async def test_returns_sent_count(self):
        mock_service = MagicMock()
        mock_service.retry_pending = AsyncMock(
            return_value={"attempted": 3, "sent": 2, "failed": 1}
        )

        with (
            patch("app.worker.SessionLocal", db_module.SessionLocal),
            patch("app.worker.EmailDeliveryService", return_value=mock_service),
        ):
            result = await retry_failed_emails_task({})

        assert result == 2

    @pytest.mark.asyncio
    async def test_closes_session_on_error(self):
        mock_db = MagicMock()
        mock_service = MagicMock()
        mock_service.retry_pending = AsyncMock(side_effect=RuntimeError("boom"))

        with (
            patch("app.worker.SessionLocal", return_value=mock_db),
            patch("app.worker.EmailDeliveryService", return_value=mock_service),
            pytest.raises(RuntimeError),
        ):
            await retry_failed_emails_task({})

        mock_db.close.assert_called_once()


class TestDeliverEmailTask:
    @pytest.mark.asyncio
    async def test_missing_log(self):
        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            assert await deliver_email_task({}, str(uuid.uuid4())) is False

    @pytest.mark.asyncio
    async def test_delivers_pending_log(self, db_session, default_tenant_id):
        log = EmailLog(
            tenant_id=default_tenant_id,
            template="plan_limits_exceeded",
            to_email="owner@example.com",
            subject="Plan changed",
            html_body="<p>Plan changed</p>",
        )
        db_session.add(log)
        db_session.commit()
        log_id = log.id

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            assert await deliver_email_task({}, str(log_id)) is True

        db_session.expire_all()
        stored = db_session.get(EmailLog, log_id)
        assert stored.status == "sent"
        assert stored.attempts == 1


class TestWorkerSettings:
    def test_functions_registered(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {
            "send_payment_reminders_task",
            "payment_alerts_task",
            "retry_failed_emails_task",
            "deliver_email_task",
        }

    def test_cron_jobs(self):
        jobs = {job.coroutine.__name__: job for job in WorkerSettings.cron_jobs}
        assert len(jobs) == 3

        reminders = jobs["send_payment_reminders_task"]
        assert reminders.hour == 8
        assert reminders.minute == 0

        alerts = jobs["payment_alerts_task"]
        assert alerts.hour == 8
        assert alerts.minute == 30

        retry = jobs["retry_failed_emails_task"]
        assert retry.minute == set(range(0, 60, 5))

    def test_redis_settings(self):
        from app.tasks import redis_settings

        assert WorkerSettings.redis_settings is redis_settings
