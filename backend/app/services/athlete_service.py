"""Athlete updates that touch group membership and billing."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.athlete import Athlete
from app.models.group import Group
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.group_repository import GroupRepository
from app.schemas.athlete import AthleteCreate, AthleteUpdate
from app.services.audit_service import AuditService
from app.services.charge_generation import sync_current_period_charges


def _academy_group(db: Session, group_id: UUID, athlete_academy_id: UUID, tenant_id: UUID) -> Group:
    group = GroupRepository(db).get_by_id(group_id, tenant_id)
    if group is None:
        raise NotFoundError("Group")
    if group.academy_id != athlete_academy_id:
        raise ValidationError("Group belongs to a different academy")
    return group


def create_athlete(
    db: Session, data: AthleteCreate, tenant_id: UUID, actor_id: str | None = None
) -> Athlete:
    group = None
    if data.group_id is not None:
        group = _academy_group(db, data.group_id, data.academy_id, tenant_id)
    athlete = AthleteRepository(db).create(data, tenant_id)
    if group is not None:
        GroupRepository(db).ensure_member(group, athlete.id)  # type: ignore[arg-type]
        db.commit()
    AuditService(db).log_create(
        resource_type="athlete",
        resource_id=athlete.id,  # type: ignore[arg-type]
        tenant_id=tenant_id,
        actor_id=actor_id,
        data={"name": athlete.name, "group_id": str(athlete.group_id) if athlete.group_id else None},
    )
    return athlete


def update_athlete(
    db: Session,
    athlete_id: UUID,
    data: AthleteUpdate,
    tenant_id: UUID,
    actor_id: str | None = None,
    today: date | None = None,
) -> tuple[Athlete, int]:
    """Apply ``data`` to an athlete. Returns the athlete and the re-priced charge count.

    Moving to another group replaces the old membership row with one in the
    new group and re-prices the athlete's pending/overdue charges of the
    current period. Clearing the group removes all of the athlete's memberships.
    """
    athlete = AthleteRepository(db).get_by_id(athlete_id, tenant_id)
    if athlete is None:
        raise NotFoundError("Athlete")

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("status") is not None:
        update_data["status"] = update_data["status"].value
    old = {key: getattr(athlete, key) for key in update_data}

    new_group = None
    group_changed = "group_id" in update_data and update_data["group_id"] != athlete.group_id
    previous_group_id = athlete.group_id
    if group_changed:
        if update_data["group_id"] is not None:
            new_group = _academy_group(
                db, update_data["group_id"], athlete.academy_id, tenant_id  # type: ignore[arg-type]
            )

    for key, value in update_data.items():
        setattr(athlete, key, value)

    synced = 0
    if group_changed:
        repo = GroupRepository(db)
        if new_group is None:
            repo.remove_memberships(athlete.id)  # type: ignore[arg-type]
        elif previous_group_id is not None:
            repo.remove_memberships(athlete.id, previous_group_id)  # type: ignore[arg-type]
    if new_group is not None:
        GroupRepository(db).ensure_member(new_group, athlete.id)  # type: ignore[arg-type]
        synced = sync_current_period_charges(db, athlete, new_group, today)
    db.commit()
    db.refresh(athlete)

    AuditService(db).log_update(
        resource_type="athlete",
        resource_id=athlete.id,  # type: ignore[arg-type]
        tenant_id=tenant_id,
        actor_id=actor_id,
        old_data={k: str(v) if v is not None else None for k, v in old.items()},
        new_data={
            k: str(getattr(athlete, k)) if getattr(athlete, k) is not None else None
            for k in update_data
        },
    )
    return athlete, synced
