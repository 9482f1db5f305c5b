from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.core.errors import DuplicateError, NotFoundError, ValidationError
from app.models.group import Group, GroupMembership
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.billing_item_repository import BillingItemRepository
from app.repositories.group_repository import GroupRepository
from app.schemas.group import (
    GroupCreate,
    GroupMemberCreate,
    GroupMembershipResponse,
    GroupMemberUpdate,
    GroupResponse,
    GroupUpdate,
)
from app.services.plan_limits import RESOURCE_GROUPS, assert_within_plan_limits

router = APIRouter()


def _get_group(group_id: UUID, db: Session, tenant_id: UUID) -> Group:
    group = GroupRepository(db).get_by_id(group_id, tenant_id)
    if not group:
        raise NotFoundError("Group")
    return group


def _check_billing_item(
    db: Session, billing_item_id: UUID | None, academy_id: UUID, tenant_id: UUID
) -> None:
    if billing_item_id is None:
        return
    item = BillingItemRepository(db).get_by_id(billing_item_id, tenant_id)
    if not item or item.academy_id != academy_id:
        raise NotFoundError("Billing item")


@router.get("/", response_model=list[GroupResponse], summary="List groups")
async def list_groups(
    response: Response,
    academy_id: UUID | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Group]:
    repo = GroupRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(tenant_id, academy_id=academy_id))
    return repo.get_all(
        tenant_id, skip=skip, limit=limit, academy_id=academy_id, order_by=order_by
    )


@router.get(
    "/{group_id}",
    response_model=GroupResponse,
    responses={404: {"description": "Group not found"}},
)
async def get_group(
    group_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Group:
    return _get_group(group_id, db, tenant_id)


@router.post(
    "/",
    response_model=GroupResponse,
    status_code=201,
    responses={
        402: {"description": "Group limit of the current plan reached"},
        404: {"description": "Academy or billing item not found"},
    },
)
async def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Group:
    assert_within_plan_limits(db, tenant_id, RESOURCE_GROUPS, data.academy_id)
    _check_billing_item(db, data.billing_item_id, data.academy_id, tenant_id)
    return GroupRepository(db).create(data, tenant_id)


@router.patch(
    "/{group_id}",
    response_model=GroupResponse,
    responses={404: {"description": "Group not found"}},
)
async def update_group(
    group_id: UUID,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Group:
    group = _get_group(group_id, db, tenant_id)
    _check_billing_item(db, data.billing_item_id, group.academy_id, tenant_id)  # type: ignore[arg-type]
    updated = GroupRepository(db).update(group_id, data, tenant_id)
    assert updated is not None
    return updated


@router.delete(
    "/{group_id}",
    status_code=204,
    responses={404: {"description": "Group not found"}},
)
async def delete_group(
    group_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not GroupRepository(db).delete(group_id, tenant_id):
        raise NotFoundError("Group")


@router.get(
    "/{group_id}/members",
    response_model=list[GroupMembershipResponse],
    responses={404: {"description": "Group not found"}},
)
async def list_members(
    group_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[GroupMembership]:
    _get_group(group_id, db, tenant_id)
    return GroupRepository(db).get_memberships(group_id)


@router.post(
    "/{group_id}/members",
    response_model=GroupMembershipResponse,
    status_code=201,
    responses={
        404: {"description": "Group or athlete not found"},
        409: {"description": "Athlete already in group"},
    },
)
async def add_member(
    group_id: UUID,
    data: GroupMemberCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GroupMembership:
    group = _get_group(group_id, db, tenant_id)
    athlete = AthleteRepository(db).get_by_id(data.athlete_id, tenant_id)
    if not athlete:
        raise NotFoundError("Athlete")
    if athlete.academy_id != group.academy_id:
        raise ValidationError("Athlete belongs to a different academy")
    repo = GroupRepository(db)
    if repo.get_membership(group_id, data.athlete_id):
        raise DuplicateError("Athlete is already a member of this group")
    return repo.add_member(group, data.athlete_id, data.custom_fee_cents)


@router.patch(
    "/{group_id}/members/{athlete_id}",
    response_model=GroupMembershipResponse,
    responses={404: {"description": "Membership not found"}},
)
async def update_member(
    group_id: UUID,
    athlete_id: UUID,
    data: GroupMemberUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GroupMembership:
    """Set or clear the athlete's custom monthly fee in this group."""
    _get_group(group_id, db, tenant_id)
    membership = GroupRepository(db).update_member_fee(
        group_id, athlete_id, data.custom_fee_cents
    )
    if not membership:
        raise NotFoundError("Membership")
    return membership


@router.delete(
    "/{group_id}/members/{athlete_id}",
    status_code=204,
    responses={404: {"description": "Membership not found"}},
)
async def remove_member(
    group_id: UUID,
    athlete_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    _get_group(group_id, db, tenant_id)
    if not GroupRepository(db).remove_member(group_id, athlete_id):
        raise NotFoundError("Membership")
