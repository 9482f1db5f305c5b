from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant, get_current_user_id
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.attendance import AttendanceRecord
from app.models.class_session import ClassSession
from app.repositories.attendance_repository import AttendanceRepository
from app.repositories.class_session_repository import ClassSessionRepository
from app.repositories.gym_class_repository import GymClassRepository
from app.schemas.attendance import AttendanceMarkRequest, AttendanceRecordResponse
from app.schemas.class_session import (
    ClassSessionCreate,
    ClassSessionResponse,
    ClassSessionUpdate,
)
from app.services.attendance_service import get_session, mark_attendance

router = APIRouter()


@router.get("/", response_model=list[ClassSessionResponse], summary="List class sessions")
async def list_class_sessions(
    response: Response,
    academy_id: UUID | None = Query(default=None),
    class_id: UUID | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[ClassSession]:
    """Sessions in date order, optionally within ``date_from``..``date_to`` inclusive."""
    repo = ClassSessionRepository(db)
    filters = {
        "academy_id": academy_id,
        "class_id": class_id,
        "date_from": date_from,
        "date_to": date_to,
    }
    response.headers["X-Total-Count"] = str(repo.count(tenant_id, **filters))
    return repo.get_all(tenant_id, skip=skip, limit=limit, **filters)


@router.get(
    "/{session_id}",
    response_model=ClassSessionResponse,
    responses={404: {"description": "Class session not found"}},
)
async def get_class_session(
    session_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> ClassSession:
    return get_session(db, session_id, tenant_id)


@router.post(
    "/",
    response_model=ClassSessionResponse,
    status_code=201,
    responses={404: {"description": "Class not found"}},
)
async def create_class_session(
    data: ClassSessionCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> ClassSession:
    gym_class = GymClassRepository(db).get_by_id(data.class_id, tenant_id)
    if not gym_class:
        raise NotFoundError("Class")
    return ClassSessionRepository(db).create(data, gym_class)


@router.patch(
    "/{session_id}",
    response_model=ClassSessionResponse,
    responses={404: {"description": "Class session not found"}},
)
async def update_class_session(
    session_id: UUID,
    data: ClassSessionUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> ClassSession:
    session = ClassSessionRepository(db).update(session_id, data, tenant_id)
    if not session:
        raise NotFoundError("Class session")
    return session


@router.delete(
    "/{session_id}",
    status_code=204,
    responses={404: {"description": "Class session not found"}},
)
async def delete_class_session(
    session_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not ClassSessionRepository(db).delete(session_id, tenant_id):
        raise NotFoundError("Class session")


@router.get(
    "/{session_id}/attendance",
    response_model=list[AttendanceRecordResponse],
    responses={404: {"description": "Class session not found"}},
)
async def list_session_attendance(
    session_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[AttendanceRecord]:
    get_session(db, session_id, tenant_id)
    return AttendanceRepository(db).get_for_session(session_id)


@router.post(
    "/{session_id}/attendance",
    response_model=list[AttendanceRecordResponse],
    responses={
        400: {"description": "Cancelled session or athlete of another academy"},
        404: {"description": "Class session not found"},
    },
)
async def record_session_attendance(
    session_id: UUID,
    data: AttendanceMarkRequest,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> list[AttendanceRecord]:
    """Mark athletes present, absent, late or excused. Re-marking overwrites."""
    return mark_attendance(db, session_id, data, tenant_id, actor_id=actor_id)
