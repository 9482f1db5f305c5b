from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant, get_current_user_id
from app.core.database import get_db
from app.core.errors import DuplicateError, NotFoundError
from app.models.athlete import Athlete, AthleteStatus
from app.models.guardian import AthleteGuardian
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.attendance_repository import AttendanceRepository
from app.repositories.guardian_repository import GuardianRepository
from app.schemas.athlete import (
    AthleteCreate,
    AthleteResponse,
    AthleteUpdate,
    AthleteUpdateResponse,
)
from app.schemas.attendance import (
    AthleteAttendanceRecord,
    AttendanceRecordResponse,
    AttendanceSummary,
)
from app.schemas.guardian import AthleteGuardianCreate, AthleteGuardianResponse
from app.services.athlete_service import create_athlete, update_athlete
from app.services.attendance_service import attendance_summary
from app.services.plan_limits import RESOURCE_ATHLETES, assert_within_plan_limits

router = APIRouter()


def _get_athlete(athlete_id: UUID, db: Session, tenant_id: UUID) -> Athlete:
    athlete = AthleteRepository(db).get_by_id(athlete_id, tenant_id)
    if not athlete:
        raise NotFoundError("Athlete")
    return athlete


@router.get("/", response_model=list[AthleteResponse], summary="List athletes")
async def list_athletes(
    response: Response,
    academy_id: UUID | None = Query(default=None),
    group_id: UUID | None = Query(default=None),
    status: AthleteStatus | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Athlete]:
    repo = AthleteRepository(db)
    status_value = status.value if status else None
    response.headers["X-Total-Count"] = str(
        repo.count(tenant_id, academy_id=academy_id, group_id=group_id, status=status_value)
    )
    return repo.get_all(
        tenant_id,
        skip=skip,
        limit=limit,
        academy_id=academy_id,
        group_id=group_id,
        status=status_value,
        order_by=order_by,
    )


@router.get(
    "/{athlete_id}",
    response_model=AthleteResponse,
    responses={404: {"description": "Athlete not found"}},
)
async def get_athlete(
    athlete_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Athlete:
    return _get_athlete(athlete_id, db, tenant_id)


@router.post(
    "/",
    response_model=AthleteResponse,
    status_code=201,
    responses={
        402: {"description": "Athlete limit of the current plan reached"},
        404: {"description": "Academy or group not found"},
    },
)
async def create_athlete_endpoint(
    data: AthleteCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> Athlete:
    assert_within_plan_limits(db, tenant_id, RESOURCE_ATHLETES, data.academy_id)
    return create_athlete(db, data, tenant_id, actor_id)


@router.patch(
    "/{athlete_id}",
    response_model=AthleteUpdateResponse,
    responses={404: {"description": "Athlete or group not found"}},
)
async def update_athlete_endpoint(
    athlete_id: UUID,
    data: AthleteUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> dict[str, Any]:
    """Update an athlete. A group change re-prices current-period open charges."""
    athlete, synced = update_athlete(db, athlete_id, data, tenant_id, actor_id)
    payload = AthleteResponse.model_validate(athlete).model_dump()
    payload["synced_charges"] = synced
    return payload


@router.delete(
    "/{athlete_id}",
    status_code=204,
    responses={404: {"description": "Athlete not found"}},
)
async def delete_athlete(
    athlete_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not AthleteRepository(db).delete(athlete_id, tenant_id):
        raise NotFoundError("Athlete")


@router.get(
    "/{athlete_id}/guardians",
    response_model=list[AthleteGuardianResponse],
    responses={404: {"description": "Athlete not found"}},
)
async def list_athlete_guardians(
    athlete_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[AthleteGuardian]:
    _get_athlete(athlete_id, db, tenant_id)
    return GuardianRepository(db).get_links_for_athlete(athlete_id)


@router.post(
    "/{athlete_id}/guardians",
    response_model=AthleteGuardianResponse,
    status_code=201,
    responses={
        404: {"description": "Athlete or guardian not found"},
        409: {"description": "Guardian already linked"},
    },
)
async def link_guardian(
    athlete_id: UUID,
    data: AthleteGuardianCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> AthleteGuardian:
    _get_athlete(athlete_id, db, tenant_id)
    repo = GuardianRepository(db)
    if not repo.get_by_id(data.guardian_id, tenant_id):
        raise NotFoundError("Guardian")
    if repo.get_link(athlete_id, data.guardian_id):
        raise DuplicateError("Guardian is already linked to this athlete")
    return repo.link(athlete_id, data, tenant_id)


@router.delete(
    "/{athlete_id}/guardians/{guardian_id}",
    status_code=204,
    responses={404: {"description": "Link not found"}},
)
async def unlink_guardian(
    athlete_id: UUID,
    guardian_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    _get_athlete(athlete_id, db, tenant_id)
    if not GuardianRepository(db).unlink(athlete_id, guardian_id):
        raise NotFoundError("Guardian link")


@router.get(
    "/{athlete_id}/attendance",
    response_model=list[AthleteAttendanceRecord],
    responses={404: {"description": "Athlete not found"}},
)
async def list_athlete_attendance(
    athlete_id: UUID,
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[AthleteAttendanceRecord]:
    """The athlete's attendance, most recent session first."""
    _get_athlete(athlete_id, db, tenant_id)
    rows = AttendanceRepository(db).get_for_athlete(
        athlete_id, tenant_id, date_from, date_to, skip=skip, limit=limit
    )
    return [
        AthleteAttendanceRecord(
            **AttendanceRecordResponse.model_validate(record).model_dump(),
            session_date=session.session_date,  # type: ignore[arg-type]
            class_id=session.class_id,  # type: ignore[arg-type]
        )
        for record, session in rows
    ]


@router.get(
    "/{athlete_id}/attendance/summary",
    response_model=AttendanceSummary,
    responses={404: {"description": "Athlete not found"}},
)
async def get_athlete_attendance_summary(
    athlete_id: UUID,
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> AttendanceSummary:
    _get_athlete(athlete_id, db, tenant_id)
    return attendance_summary(db, athlete_id, tenant_id, date_from, date_to)
