from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.notification import Notification
from app.repositories.notification_repository import NotificationRepository
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationCountResponse,
    NotificationResponse,
)

router = APIRouter()


@router.get("/", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    category: str | None = None,
    is_read: bool | None = None,
    academy_id: UUID | None = None,
    order_by: str | None = None,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Notification]:
    return NotificationRepository(db).get_all(
        tenant_id,
        skip=skip,
        limit=limit,
        category=category,
        is_read=is_read,
        academy_id=academy_id,
        order_by=order_by,
    )


@router.get("/unread_count", response_model=NotificationCountResponse)
async def unread_count(
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> NotificationCountResponse:
    return NotificationCountResponse(unread_count=NotificationRepository(db).count_unread(tenant_id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    responses={404: {"description": "Notification not found"}},
)
async def mark_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Notification:
    notification = NotificationRepository(db).mark_as_read(notification_id, tenant_id)
    if notification is None:
        raise NotFoundError("Notification")
    return notification


@router.post("/read_all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(marked_count=NotificationRepository(db).mark_all_as_read(tenant_id))
