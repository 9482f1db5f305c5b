from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models.attendance import AttendanceRecord
from app.models.class_session import ClassSession
from app.schemas.attendance import AttendanceEntry


class AttendanceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_for_session(self, session_id: UUID) -> list[AttendanceRecord]:
        return (
            self.db.query(AttendanceRecord)
            .filter(AttendanceRecord.session_id == session_id)
            .order_by(AttendanceRecord.created_at.asc())
            .all()
        )

    def upsert(
        self, session: ClassSession, entries: list[AttendanceEntry], recorded_by: str | None
    ) -> list[AttendanceRecord]:
        """Create or overwrite one record per entry. The caller commits."""
        existing = {
            row.athlete_id: row
            for row in self.db.query(AttendanceRecord)
            .filter(
                AttendanceRecord.session_id == session.id,
                AttendanceRecord.athlete_id.in_([entry.athlete_id for entry in entries]),
            )
            .all()
        }
        records = []
        for entry in entries:
            record = existing.get(entry.athlete_id)  # type: ignore[call-overload]
            if record is None:
                record = AttendanceRecord(
                    tenant_id=session.tenant_id,
                    session_id=session.id,
                    athlete_id=entry.athlete_id,
                )
                self.db.add(record)
            record.status = entry.status.value  # type: ignore[assignment]
            record.notes = entry.notes  # type: ignore[assignment]
            record.recorded_by = recorded_by  # type: ignore[assignment]
            records.append(record)
        return records

    def _for_athlete(
        self,
        columns: tuple[Any, ...],
        athlete_id: UUID,
        tenant_id: UUID,
        date_from: date | None,
        date_to: date | None,
    ) -> Query:
        query = (
            self.db.query(*columns)
            .join(ClassSession, ClassSession.id == AttendanceRecord.session_id)
            .filter(
                AttendanceRecord.athlete_id == athlete_id,
                AttendanceRecord.tenant_id == tenant_id,
            )
        )
        if date_from is not None:
            query = query.filter(ClassSession.session_date >= date_from)
        if date_to is not None:
            query = query.filter(ClassSession.session_date <= date_to)
        return query

    def get_for_athlete(
        self,
        athlete_id: UUID,
        tenant_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[tuple[AttendanceRecord, ClassSession]]:
        """The athlete's records with their sessions, most recent session first."""
        query = self._for_athlete(
            (AttendanceRecord, ClassSession), athlete_id, tenant_id, date_from, date_to
        )
        return (
            query.order_by(ClassSession.session_date.desc()).offset(skip).limit(limit).all()
        )  # type: ignore[return-value]

    def status_counts(
        self,
        athlete_id: UUID,
        tenant_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> dict[str, int]:
        columns = (AttendanceRecord.status, func.count(AttendanceRecord.id))
        rows = (
            self._for_athlete(columns, athlete_id, tenant_id, date_from, date_to)
            .group_by(AttendanceRecord.status)
            .all()
        )
        return {status: count for status, count in rows}
