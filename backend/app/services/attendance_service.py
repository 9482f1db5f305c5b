"""Attendance taking for class sessions.

Marking is idempotent per (session, athlete): marking again overwrites the
status and notes. Only athletes of the session's academy can be marked, and a
cancelled session accepts no attendance. The attendance rate counts
``present`` records over all recorded sessions; ``late`` and ``excused`` are
reported separately.
"""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.athlete import Athlete
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.class_session import ClassSession, ClassSessionStatus
from app.repositories.attendance_repository import AttendanceRepository
from app.repositories.class_session_repository import ClassSessionRepository
from app.schemas.attendance import AttendanceMarkRequest, AttendanceSummary

logger = logging.getLogger(__name__)


def get_session(db: Session, session_id: UUID, tenant_id: UUID) -> ClassSession:
    session = ClassSessionRepository(db).get_by_id(session_id, tenant_id)
    if session is None:
        raise NotFoundError("Class session")
    return session


def mark_attendance(
    db: Session,
    session_id: UUID,
    request: AttendanceMarkRequest,
    tenant_id: UUID,
    actor_id: str | None = None,
) -> list[AttendanceRecord]:
    session = get_session(db, session_id, tenant_id)
    if session.status == ClassSessionStatus.CANCELLED.value:
        raise ValidationError("Attendance cannot be taken for a cancelled session")

    athlete_ids = [entry.athlete_id for entry in request.entries]
    known = {
        row[0]
        for row in db.query(Athlete.id)
        .filter(
            Athlete.id.in_(athlete_ids),
            Athlete.tenant_id == tenant_id,
            Athlete.academy_id == session.academy_id,
        )
        .all()
    }
    unknown = [str(athlete_id) for athlete_id in athlete_ids if athlete_id not in known]
    if unknown:
        raise ValidationError(
            "Athletes do not belong to the session's academy",
            details={"athlete_ids": unknown},
        )

    records = AttendanceRepository(db).upsert(session, request.entries, actor_id)
    db.commit()
    for record in records:
        db.refresh(record)
    logger.info("Recorded attendance of %d athletes for session %s", len(records), session.id)
    return records


def attendance_summary(
    db: Session,
    athlete_id: UUID,
    tenant_id: UUID,
    date_from: date | None = None,
    date_to: date | None = None,
) -> AttendanceSummary:
    counts = AttendanceRepository(db).status_counts(athlete_id, tenant_id, date_from, date_to)
    total = sum(counts.values())
    present = counts.get(AttendanceStatus.PRESENT.value, 0)
    return AttendanceSummary(
        athlete_id=athlete_id,
        total_sessions=total,
        present=present,
        absent=counts.get(AttendanceStatus.ABSENT.value, 0),
        late=counts.get(AttendanceStatus.LATE.value, 0),
        excused=counts.get(AttendanceStatus.EXCUSED.value, 0),
        attendance_rate=round(present / total * 100, 2) if total else 0.0,
    )
