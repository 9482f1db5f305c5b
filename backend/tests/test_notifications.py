"""Tests for in-app notifications: service helpers and API."""

import uuid

import pytest

from app.repositories.notification_repository import NotificationRepository
from app.services.notification_service import (
    CATEGORY_PAYMENT,
    CATEGORY_PLAN,
    CATEGORY_SUBSCRIPTION,
    NotificationService,
)


@pytest.fixture
def service(db_session):
    return NotificationService(db_session)


@pytest.fixture
def seed_notifications(service, default_tenant_id, make_academy):
    academy = make_academy()
    service.notify_overdue_charge(
        tenant_id=default_tenant_id,
        academy_id=academy.id,
        charge_id=uuid.uuid4(),
        athlete_name="Ana",
        label="Competition monthly fee - November 2025",
        days_overdue=9,
    )
    service.notify_plan_limits_exceeded(
        tenant_id=default_tenant_id, plan_name="Free", violation_count=2
    )
    service.notify_subscription_payment_failed(tenant_id=default_tenant_id, invoice_id="in_123")
    return academy


class TestNotificationService:
    def test_overdue_charge(self, seed_notifications, db_session, default_tenant_id):
        notifications = NotificationRepository(db_session).get_all(
            default_tenant_id, category=CATEGORY_PAYMENT
        )

        assert len(notifications) == 1
        assert notifications[0].resource_type == "charge"
        assert notifications[0].academy_id == seed_notifications.id
        assert "9 days overdue" in notifications[0].message

    def test_categories(self, seed_notifications, db_session, default_tenant_id):
        categories = {
            n.category for n in NotificationRepository(db_session).get_all(default_tenant_id)
        }

        assert categories == {CATEGORY_PAYMENT, CATEGORY_PLAN, CATEGORY_SUBSCRIPTION}


class TestNotificationsAPI:
    def test_list_and_filter(self, client, seed_notifications):
        assert len(client.get("/v1/notifications/").json()) == 3

        payment = client.get("/v1/notifications/", params={"category": "payment"}).json()
        assert len(payment) == 1

        by_academy = client.get(
            "/v1/notifications/", params={"academy_id": str(seed_notifications.id)}
        ).json()
        assert [n["category"] for n in by_academy] == ["payment"]

    def test_unread_count_and_mark_read(self, client, seed_notifications):
        assert client.get("/v1/notifications/unread_count").json() == {"unread_count": 3}

        notification_id = client.get("/v1/notifications/").json()[0]["id"]
        response = client.post(f"/v1/notifications/{notification_id}/read")
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        assert client.get("/v1/notifications/unread_count").json() == {"unread_count": 2}
        unread = client.get("/v1/notifications/", params={"is_read": False}).json()
        assert len(unread) == 2

    def test_mark_all_read(self, client, seed_notifications):
        response = client.post("/v1/notifications/read_all")

        assert response.json() == {"marked_count": 3}
        assert client.get("/v1/notifications/unread_count").json() == {"unread_count": 0}

    def test_mark_read_not_found(self, client):
        response = client.post(f"/v1/notifications/{uuid.uuid4()}/read")

        assert response.status_code == 404

    def test_other_tenant_sees_nothing(self, client, seed_notifications):
        response = client.get("/v1/notifications/", headers={"X-Tenant-Id": str(uuid.uuid4())})

        assert response.json() == []
