"""Staff notifications, always scoped to one tenant."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.core.sorting import apply_order_by
from app.models.notification import Notification


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def _for_tenant(self, tenant_id: UUID) -> Query:
        return self.db.query(Notification).filter(Notification.tenant_id == tenant_id)

    def _unread(self, tenant_id: UUID) -> Query:
        return self._for_tenant(tenant_id).filter(Notification.is_read.is_(False))

    def create(self, *, tenant_id: UUID, **fields: Any) -> Notification:
        notification = Notification(tenant_id=tenant_id, **fields)
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
        is_read: bool | None = None,
        academy_id: UUID | None = None,
        order_by: str | None = None,
    ) -> list[Notification]:
        filters = {"category": category, "is_read": is_read, "academy_id": academy_id}
        query = self._for_tenant(tenant_id)
        for column, value in filters.items():
            if value is not None:
                query = query.filter(getattr(Notification, column) == value)
        query = apply_order_by(query, Notification, order_by)
        return query.offset(skip).limit(limit).all()

    def exists_since(self, category: str, resource_id: UUID, since: datetime) -> bool:
        """Whether a ``category`` notification about ``resource_id`` was raised after ``since``."""
        match = (
            self.db.query(Notification.id)
            .filter(
                Notification.category == category,
                Notification.resource_id == resource_id,
                Notification.created_at >= since,
            )
            .first()
        )
        return match is not None

    def count_unread(self, tenant_id: UUID) -> int:
        return self._unread(tenant_id).count()

    def mark_as_read(self, notification_id: UUID, tenant_id: UUID) -> Notification | None:
        notification = self._for_tenant(tenant_id).filter(Notification.id == notification_id).first()
        if notification is None:
            return None
        notification.is_read = True  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, tenant_id: UUID) -> int:
        marked = self._unread(tenant_id).update({Notification.is_read: True}, synchronize_session=False)
        self.db.commit()
        return marked
