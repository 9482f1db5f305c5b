from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.billing_item import BillingItem
from app.repositories.academy_repository import AcademyRepository
from app.repositories.billing_item_repository import BillingItemRepository
from app.schemas.billing_item import (
    BillingItemCreate,
    BillingItemDeleteResponse,
    BillingItemResponse,
    BillingItemUpdate,
)

router = APIRouter()


@router.get("/", response_model=list[BillingItemResponse], summary="List billing items")
async def list_billing_items(
    academy_id: UUID | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[BillingItem]:
    return BillingItemRepository(db).get_all(
        tenant_id, skip=skip, limit=limit, academy_id=academy_id, is_active=is_active
    )


@router.get(
    "/{item_id}",
    response_model=BillingItemResponse,
    responses={404: {"description": "Billing item not found"}},
)
async def get_billing_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> BillingItem:
    item = BillingItemRepository(db).get_by_id(item_id, tenant_id)
    if not item:
        raise NotFoundError("Billing item")
    return item


@router.post(
    "/",
    response_model=BillingItemResponse,
    status_code=201,
    responses={404: {"description": "Academy not found"}},
)
async def create_billing_item(
    data: BillingItemCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> BillingItem:
    if not AcademyRepository(db).get_by_id(data.academy_id, tenant_id):
        raise NotFoundError("Academy")
    return BillingItemRepository(db).create(data, tenant_id)


@router.patch(
    "/{item_id}",
    response_model=BillingItemResponse,
    responses={404: {"description": "Billing item not found"}},
)
async def update_billing_item(
    item_id: UUID,
    data: BillingItemUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> BillingItem:
    item = BillingItemRepository(db).update(item_id, data, tenant_id)
    if not item:
        raise NotFoundError("Billing item")
    return item


@router.delete(
    "/{item_id}",
    response_model=BillingItemDeleteResponse,
    responses={404: {"description": "Billing item not found"}},
)
async def delete_billing_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> dict[str, Any]:
    """Delete a billing item; items already used by charges are deactivated instead."""
    found, deactivated = BillingItemRepository(db).delete(item_id, tenant_id)
    if not found:
        raise NotFoundError("Billing item")
    return {"id": item_id, "deleted": not deactivated, "deactivated": deactivated}
