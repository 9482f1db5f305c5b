"""Audit trail for academy records.

Entries are written by the services that change state. ``actor_id`` comes from
the ``X-User-Id`` header; entries without one are attributed to the system
(worker jobs, processor webhooks).
"""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.repositories.audit_log_repository import AuditLogRepository

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_STATUS_CHANGED = "status_changed"


def actor_type_for(actor_id: str | None) -> str:
    return "user" if actor_id else "system"


def diff_fields(old: dict[str, Any], new: dict[str, Any]) -> dict[str, Any]:
    """``{field: {"old": ..., "new": ...}}`` for every field whose value differs."""
    return {
        key: {"old": old.get(key), "new": new.get(key)}
        for key in sorted(set(old) | set(new))
        if old.get(key) != new.get(key)
    }


class AuditService:
    def __init__(self, db: Session):
        self.repo = AuditLogRepository(db)

    def _record(
        self,
        action: str,
        resource_type: str,
        resource_id: UUID,
        tenant_id: UUID,
        changes: dict[str, Any],
        actor_id: str | None,
        commit: bool = True,
    ) -> AuditLog:
        return self.repo.create(
            tenant_id=tenant_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            changes=changes,
            actor_type=actor_type_for(actor_id),
            actor_id=actor_id,
            commit=commit,
        )

    def log_create(
        self,
        resource_type: str,
        resource_id: UUID,
        tenant_id: UUID,
        actor_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self._record(ACTION_CREATED, resource_type, resource_id, tenant_id, data or {}, actor_id)

    def log_update(
        self,
        resource_type: str,
        resource_id: UUID,
        tenant_id: UUID,
        actor_id: str | None = None,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> None:
        """Record the changed fields; nothing is written when no field changed."""
        changes = diff_fields(old_data or {}, new_data or {})
        if changes:
            self._record(ACTION_UPDATED, resource_type, resource_id, tenant_id, changes, actor_id)

    def log_status_change(
        self,
        resource_type: str,
        resource_id: UUID,
        tenant_id: UUID,
        old_status: str,
        new_status: str,
        actor_id: str | None = None,
        commit: bool = True,
    ) -> None:
        """Record a status transition. With ``commit=False`` the caller commits."""
        self._record(
            ACTION_STATUS_CHANGED,
            resource_type,
            resource_id,
            tenant_id,
            {"status": {"old": old_status, "new": new_status}},
            actor_id,
            commit,
        )
