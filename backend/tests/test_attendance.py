"""Class session and attendance tests."""

import uuid
from datetime import date, time

import pytest

from app.models.class_session import ClassSession
from app.models.gym_class import GymClass
from app.schemas.attendance import AttendanceEntry, AttendanceMarkRequest
from app.services.attendance_service import attendance_summary, mark_attendance


@pytest.fixture
def academy(make_academy):
    return make_academy()


@pytest.fixture
def gym_class(db_session, academy):
    gym_class = GymClass(
        tenant_id=academy.tenant_id,
        academy_id=academy.id,
        name="Beginners",
        weekday=0,
        start_time=time(17, 0),
        end_time=time(18, 30),
    )
    db_session.add(gym_class)
    db_session.commit()
    db_session.refresh(gym_class)
    return gym_class


@pytest.fixture
def make_session(db_session, gym_class):
    def _make(session_date: date = date(2026, 10, 5), status: str = "scheduled") -> ClassSession:
        session = ClassSession(
            tenant_id=gym_class.tenant_id,
            academy_id=gym_class.academy_id,
            class_id=gym_class.id,
            session_date=session_date,
            start_time=gym_class.start_time,
            end_time=gym_class.end_time,
            status=status,
        )
        db_session.add(session)
        db_session.commit()
        db_session.refresh(session)
        return session

    return _make


def _mark(client, session_id, *entries):
    return client.post(
        f"/v1/class_sessions/{session_id}/attendance",
        json={
            "entries": [
                {"athlete_id": str(athlete_id), "status": status} for athlete_id, status in entries
            ]
        },
    )


class TestClassSessionsAPI:
    def test_create_copies_class_times(self, client, gym_class):
        response = client.post(
            "/v1/class_sessions/",
            json={"class_id": str(gym_class.id), "session_date": "2026-10-05"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["academy_id"] == str(gym_class.academy_id)
        assert data["start_time"] == "17:00:00"
        assert data["end_time"] == "18:30:00"
        assert data["status"] == "scheduled"

    def test_create_keeps_given_times(self, client, gym_class):
        response = client.post(
            "/v1/class_sessions/",
            json={
                "class_id": str(gym_class.id),
                "session_date": "2026-10-05",
                "start_time": "09:00:00",
                "end_time": "10:00:00",
            },
        )

        assert response.json()["start_time"] == "09:00:00"

    def test_create_unknown_class(self, client):
        response = client.post(
            "/v1/class_sessions/",
            json={"class_id": str(uuid.uuid4()), "session_date": "2026-10-05"},
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Class not found"

    def test_end_before_start_rejected(self, client, gym_class):
        response = client.post(
            "/v1/class_sessions/",
            json={
                "class_id": str(gym_class.id),
                "session_date": "2026-10-05",
                "start_time": "10:00:00",
                "end_time": "09:00:00",
            },
        )

        assert response.status_code == 400

    def test_list_filters_by_date_range(self, client, make_session, gym_class):
        make_session(date(2026, 9, 28))
        make_session(date(2026, 10, 5))
        make_session(date(2026, 10, 12))

        response = client.get(
            "/v1/class_sessions/",
            params={
                "class_id": str(gym_class.id),
                "date_from": "2026-10-01",
                "date_to": "2026-10-31",
            },
        )

        assert response.headers["X-Total-Count"] == "2"
        assert [row["session_date"] for row in response.json()] == ["2026-10-05", "2026-10-12"]

    def test_update_and_delete(self, client, make_session):
        session = make_session()

        response = client.patch(
            f"/v1/class_sessions/{session.id}", json={"status": "cancelled", "notes": "Holiday"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        assert client.delete(f"/v1/class_sessions/{session.id}").status_code == 204
        assert client.get(f"/v1/class_sessions/{session.id}").status_code == 404

    def test_other_tenant_cannot_read(self, client, make_session):
        session = make_session()

        response = client.get(
            f"/v1/class_sessions/{session.id}", headers={"X-Tenant-Id": str(uuid.uuid4())}
        )

        assert response.status_code == 404


class TestMarkAttendanceAPI:
    def test_mark_and_list_by_session(self, client, make_session, make_athlete, academy):
        session = make_session()
        ana = make_athlete(academy, "Ana")
        bea = make_athlete(academy, "Bea")

        response = _mark(client, session.id, (ana.id, "present"), (bea.id, "absent"))

        assert response.status_code == 200
        assert len(response.json()) == 2
        listed = client.get(f"/v1/class_sessions/{session.id}/attendance").json()
        assert {row["athlete_id"]: row["status"] for row in listed} == {
            str(ana.id): "present",
            str(bea.id): "absent",
        }

    def test_marking_again_overwrites(self, client, make_session, make_athlete, academy):
        session = make_session()
        ana = make_athlete(academy, "Ana")
        _mark(client, session.id, (ana.id, "absent"))

        response = _mark(client, session.id, (ana.id, "late"))

        assert response.status_code == 200
        listed = client.get(f"/v1/class_sessions/{session.id}/attendance").json()
        assert len(listed) == 1
        assert listed[0]["status"] == "late"

    def test_records_actor(self, client, make_session, make_athlete, academy):
        session = make_session()
        ana = make_athlete(academy, "Ana")
        coach_id = str(uuid.uuid4())

        response = client.post(
            f"/v1/class_sessions/{session.id}/attendance",
            json={"entries": [{"athlete_id": str(ana.id), "status": "present"}]},
            headers={"X-User-Id": coach_id},
        )

        assert response.json()[0]["recorded_by"] == coach_id

    def test_athlete_of_other_academy_rejected(
        self, client, make_session, make_athlete, make_academy
    ):
        session = make_session()
        other = make_athlete(make_academy("other-club"), "Carla")

        response = _mark(client, session.id, (other.id, "present"))

        assert response.status_code == 400
        assert response.json()["details"]["athlete_ids"] == [str(other.id)]

    def test_cancelled_session_rejected(self, client, make_session, make_athlete, academy):
        session = make_session(status="cancelled")
        ana = make_athlete(academy, "Ana")

        response = _mark(client, session.id, (ana.id, "present"))

        assert response.status_code == 400

    def test_duplicate_athlete_rejected(self, client, make_session, make_athlete, academy):
        session = make_session()
        ana = make_athlete(academy, "Ana")

        response = _mark(client, session.id, (ana.id, "present"), (ana.id, "absent"))

        assert response.status_code == 400

    def test_unknown_session(self, client, make_athlete, academy):
        ana = make_athlete(academy, "Ana")

        response = _mark(client, uuid.uuid4(), (ana.id, "present"))

        assert response.status_code == 404


class TestAthleteAttendanceAPI:
    def test_list_by_athlete_most_recent_first(
        self, client, make_session, make_athlete, academy, gym_class
    ):
        ana = make_athlete(academy, "Ana")
        first = make_session(date(2026, 10, 5))
        second = make_session(date(2026, 10, 12))
        _mark(client, first.id, (ana.id, "present"))
        _mark(client, second.id, (ana.id, "absent"))

        response = client.get(f"/v1/athletes/{ana.id}/attendance")

        assert response.status_code == 200
        rows = response.json()
        assert [row["session_date"] for row in rows] == ["2026-10-12", "2026-10-05"]
        assert rows[0]["class_id"] == str(gym_class.id)

    def test_summary(self, client, make_session, make_athlete, academy):
        ana = make_athlete(academy, "Ana")
        statuses = ["present", "present", "absent", "late"]
        for day, status in zip((5, 12, 19, 26), statuses):
            _mark(client, make_session(date(2026, 10, day)).id, (ana.id, status))

        response = client.get(f"/v1/athletes/{ana.id}/attendance/summary")

        assert response.json() == {
            "athlete_id": str(ana.id),
            "total_sessions": 4,
            "present": 2,
            "absent": 1,
            "late": 1,
            "excused": 0,
            "attendance_rate": 50.0,
        }

    def test_summary_date_range(self, client, make_session, make_athlete, academy):
        ana = make_athlete(academy, "Ana")
        _mark(client, make_session(date(2026, 9, 28)).id, (ana.id, "absent"))
        _mark(client, make_session(date(2026, 10, 5)).id, (ana.id, "present"))

        response = client.get(
            f"/v1/athletes/{ana.id}/attendance/summary", params={"date_from": "2026-10-01"}
        )

        assert response.json()["total_sessions"] == 1
        assert response.json()["attendance_rate"] == 100.0

    def test_unknown_athlete(self, client):
        assert client.get(f"/v1/athletes/{uuid.uuid4()}/attendance").status_code == 404


class TestAttendanceService:
    def test_summary_without_records(self, db_session, make_athlete, academy, default_tenant_id):
        ana = make_athlete(academy, "Ana")

        summary = attendance_summary(db_session, ana.id, default_tenant_id)

        assert summary.total_sessions == 0
        assert summary.attendance_rate == 0.0

    def test_mark_writes_records(self, db_session, make_session, make_athlete, academy):
        session = make_session()
        ana = make_athlete(academy, "Ana")
        request = AttendanceMarkRequest(
            entries=[AttendanceEntry(athlete_id=ana.id, status="excused", notes="Injury")]
        )

        records = mark_attendance(db_session, session.id, request, session.tenant_id, "coach-1")

        assert len(records) == 1
        assert records[0].status == "excused"
        assert records[0].notes == "Injury"
        assert records[0].tenant_id == session.tenant_id
