"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core import database as db_module
from app.core.database import Base
from app.models.academy import Academy
from app.models.athlete import Athlete, AthleteStatus
from app.models.billing_item import BillingItem
from app.models.charge import Charge, ChargeStatus
from app.models.group import Group, GroupMembership
from app.models.guardian import AthleteGuardian, Guardian
from app.models.tenant import Tenant
from app.repositories.plan_repository import PlanRepository
from app.routers.charges import generation_rate_limiter
from app.routers.public import public_rate_limiter

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known default tenant ID used across all tests
DEFAULT_TENANT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OWNER_EMAIL = "owner@example.com"


def _seed(session: Session) -> None:
    """Insert the default tenant and the default plans."""
    tenant = session.query(Tenant).filter(Tenant.id == DEFAULT_TENANT_ID).first()
    if tenant is None:
        session.add(
            Tenant(
                id=DEFAULT_TENANT_ID,
                name="Default Test Tenant",
                owner_name="Olga Owner",
                owner_email=OWNER_EMAIL,
            )
        )
        session.commit()
    PlanRepository(session).ensure_defaults()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data and rate limits after each
    test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    generation_rate_limiter.reset()
    public_rate_limiter.reset()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def default_tenant_id():
    """Return the default tenant ID for tests."""
    return DEFAULT_TENANT_ID


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    session = _TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Create test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def make_academy(db_session):
    def _make(slug: str = "flip-club", **overrides) -> Academy:  # type: ignore[no-untyped-def]
        values = {
            "tenant_id": DEFAULT_TENANT_ID,
            "name": "Flip Club",
            "slug": slug,
            "academy_type": "artistic",
            "currency": "EUR",
            "is_public": False,
        }
        values.update(overrides)
        academy = Academy(**values)
        db_session.add(academy)
        db_session.commit()
        db_session.refresh(academy)
        return academy

    return _make


@pytest.fixture
def make_billing_item(db_session):
    def _make(academy: Academy, amount_cents: int = 4000, **overrides) -> BillingItem:  # type: ignore[no-untyped-def]
        values = {
            "tenant_id": academy.tenant_id,
            "academy_id": academy.id,
            "name": "Monthly tuition",
            "amount_cents": amount_cents,
            "currency": "EUR",
            "periodicity": "monthly",
            "is_active": True,
        }
        values.update(overrides)
        item = BillingItem(**values)
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)
        return item

    return _make


@pytest.fixture
def make_group(db_session):
    def _make(academy: Academy, name: str = "Competition", **overrides) -> Group:  # type: ignore[no-untyped-def]
        values = {
            "tenant_id": academy.tenant_id,
            "academy_id": academy.id,
            "name": name,
        }
        values.update(overrides)
        group = Group(**values)
        db_session.add(group)
        db_session.commit()
        db_session.refresh(group)
        return group

    return _make


@pytest.fixture
def make_athlete(db_session):
    def _make(  # type: ignore[no-untyped-def]
        academy: Academy,
        name: str = "Ana",
        group: Group | None = None,
        custom_fee_cents: int | None = None,
        status: str = AthleteStatus.ACTIVE.value,
    ) -> Athlete:
        athlete = Athlete(
            tenant_id=academy.tenant_id,
            academy_id=academy.id,
            group_id=group.id if group is not None else None,
            name=name,
            status=status,
        )
        db_session.add(athlete)
        db_session.flush()
        if group is not None:
            db_session.add(
                GroupMembership(
                    tenant_id=academy.tenant_id,
                    group_id=group.id,
                    athlete_id=athlete.id,
                    custom_fee_cents=custom_fee_cents,
                )
            )
        db_session.commit()
        db_session.refresh(athlete)
        return athlete

    return _make


@pytest.fixture
def make_guardian(db_session):
    def _make(  # type: ignore[no-untyped-def]
        athlete: Athlete,
        email: str | None = "parent@example.com",
        name: str = "Pat Parent",
        notify_email: bool = True,
    ) -> Guardian:
        guardian = Guardian(tenant_id=athlete.tenant_id, name=name, email=email)
        db_session.add(guardian)
        db_session.flush()
        db_session.add(
            AthleteGuardian(
                tenant_id=athlete.tenant_id,
                athlete_id=athlete.id,
                guardian_id=guardian.id,
                is_primary=True,
                notify_email=notify_email,
            )
        )
        db_session.commit()
        db_session.refresh(guardian)
        return guardian

    return _make


@pytest.fixture
def make_charge(db_session):
    def _make(  # type: ignore[no-untyped-def]
        athlete: Athlete,
        amount_cents: int = 5000,
        period: str = "2025-11",
        status: str = ChargeStatus.PENDING.value,
        due_date: date | None = date(2025, 11, 30),
        **overrides,
    ) -> Charge:
        values = {
            "tenant_id": athlete.tenant_id,
            "academy_id": athlete.academy_id,
            "athlete_id": athlete.id,
            "label": f"Monthly fee {period}",
            "amount_cents": amount_cents,
            "currency": "EUR",
            "period": period,
            "due_date": due_date,
            "status": status,
        }
        values.update(overrides)
        charge = Charge(**values)
        db_session.add(charge)
        db_session.commit()
        db_session.refresh(charge)
        return charge

    return _make
