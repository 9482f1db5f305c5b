"""Append-only store for audit entries.

Entries are never updated or deleted; reads are tenant scoped and support the
filters exposed on ``GET /v1/audit_logs``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.audit_log import AuditLog


class AuditLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, *, commit: bool = True, **fields: Any) -> AuditLog:
        entry = AuditLog(**fields)
        self.db.add(entry)
        if commit:
            self.db.commit()
            self.db.refresh(entry)
        return entry

    def get_all(
        self,
        tenant_id: UUID,
        skip: int = 0,
        limit: int = 100,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        action: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        order_by: str | None = None,
    ) -> list[AuditLog]:
        conditions = [AuditLog.tenant_id == tenant_id]
        if resource_type is not None:
            conditions.append(AuditLog.resource_type == resource_type)
        if resource_id is not None:
            conditions.append(AuditLog.resource_id == resource_id)
        if action is not None:
            conditions.append(AuditLog.action == action)
        if start_date is not None:
            conditions.append(AuditLog.created_at >= start_date)
        if end_date is not None:
            conditions.append(AuditLog.created_at <= end_date)
        query = apply_order_by(self.db.query(AuditLog).filter(*conditions), AuditLog, order_by)
        return query.offset(skip).limit(limit).all()
