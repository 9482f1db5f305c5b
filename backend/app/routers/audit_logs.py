"""Read-only access to the tenant's audit trail."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.repositories.audit_log_repository import AuditLogRepository
from app.schemas.audit_log import AuditLogResponse

router = APIRouter()

Skip = Query(default=0, ge=0)
Limit = Query(default=100, ge=1, le=1000)


@router.get("/", response_model=list[AuditLogResponse], summary="List audit logs")
async def list_audit_logs(
    skip: int = Skip,
    limit: int = Limit,
    resource_type: str | None = None,
    resource_id: UUID | None = None,
    action: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    order_by: str | None = None,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[AuditLogResponse]:
    """Filter by resource, action (created, updated, status_changed) or a date window."""
    entries = AuditLogRepository(db).get_all(
        tenant_id,
        skip=skip,
        limit=limit,
        resource_type=resource_type,
        resource_id=resource_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        order_by=order_by,
    )
    return [AuditLogResponse.model_validate(entry) for entry in entries]


@router.get(
    "/{resource_type}/{resource_id}",
    response_model=list[AuditLogResponse],
    summary="History of one record",
)
async def get_resource_audit_trail(
    resource_type: str,
    resource_id: UUID,
    skip: int = Skip,
    limit: int = Limit,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[AuditLogResponse]:
    entries = AuditLogRepository(db).get_all(
        tenant_id, skip=skip, limit=limit, resource_type=resource_type, resource_id=resource_id
    )
    return [AuditLogResponse.model_validate(entry) for entry in entries]
