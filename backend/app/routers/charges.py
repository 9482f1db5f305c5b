from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant, get_current_user_id
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import NotFoundError, ValidationError
from app.core.rate_limiter import RateLimiter
from app.models.charge import Charge, ChargeStatus
from app.repositories.athlete_repository import AthleteRepository
from app.repositories.charge_repository import ChargeRepository
from app.repositories.guardian_repository import GuardianRepository
from app.schemas.charge import (
    BulkChargeRequest,
    ChargeCheckoutResponse,
    ChargeCreate,
    ChargeResponse,
    ChargeUpdate,
    GenerateMonthlyRequest,
    GenerateMonthlyResponse,
    MarkPaidRequest,
)
from app.services.audit_service import AuditService
from app.services.charge_generation import MonthlyChargeGenerator
from app.services.charge_status import ChargeStatusService
from app.services.payment_provider import get_payment_provider

router = APIRouter()

generation_rate_limiter = RateLimiter(max_requests=settings.RATE_LIMIT_GENERATION_PER_MINUTE)

PAYABLE_STATUSES = {ChargeStatus.PENDING.value, ChargeStatus.OVERDUE.value, ChargeStatus.PARTIAL.value}


def _parse_statuses(status: str | None) -> list[str] | None:
    """``"pending,overdue"`` -> ``["pending", "overdue"]``; unknown values are rejected."""
    if not status:
        return None
    values = [s.strip() for s in status.split(",") if s.strip()]
    valid = {s.value for s in ChargeStatus}
    unknown = [s for s in values if s not in valid]
    if unknown:
        raise ValidationError(f"Unknown charge status: {', '.join(unknown)}")
    return values


@router.get("/", response_model=list[ChargeResponse], summary="List charges")
async def list_charges(
    response: Response,
    academy_id: UUID | None = Query(default=None),
    period: str | None = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    group_id: UUID | None = Query(default=None),
    athlete_id: UUID | None = Query(default=None),
    status: str | None = Query(default=None, description="Comma separated statuses"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Charge]:
    repo = ChargeRepository(db)
    statuses = _parse_statuses(status)
    filters: dict[str, Any] = {
        "academy_id": academy_id,
        "period": period,
        "group_id": group_id,
        "athlete_id": athlete_id,
        "statuses": statuses,
    }
    response.headers["X-Total-Count"] = str(repo.count(tenant_id, **filters))
    return repo.get_all(tenant_id, skip=skip, limit=limit, order_by=order_by, **filters)


@router.post(
    "/generate_monthly",
    response_model=GenerateMonthlyResponse,
    status_code=201,
    summary="Generate monthly charges",
    responses={
        200: {"description": "Nothing to generate"},
        404: {"description": "Academy or group not found"},
        429: {"description": "Too many generation requests"},
    },
)
async def generate_monthly(
    data: GenerateMonthlyRequest,
    response: Response,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GenerateMonthlyResponse:
    """Create a pending charge per active athlete for the period.

    Responds 201 when at least one charge was created, else 200.
    """
    generation_rate_limiter.hit(str(tenant_id))
    result = MonthlyChargeGenerator(db).generate(
        tenant_id,
        data.academy_id,
        data.period,
        group_id=data.group_id,
        skip_duplicates=data.skip_duplicates,
    )
    response.status_code = 201 if result.created else 200
    return GenerateMonthlyResponse(
        created=result.created, skipped=result.skipped, charge_ids=result.charge_ids
    )


@router.post(
    "/bulk",
    response_model=GenerateMonthlyResponse,
    status_code=201,
    summary="Charge a group for a billing item",
    responses={
        200: {"description": "Nothing to create"},
        404: {"description": "Academy, group or billing item not found"},
    },
)
async def create_bulk_charges(
    data: BulkChargeRequest,
    response: Response,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GenerateMonthlyResponse:
    generation_rate_limiter.hit(str(tenant_id))
    result = MonthlyChargeGenerator(db).create_bulk(tenant_id, data)
    response.status_code = 201 if result.created else 200
    return GenerateMonthlyResponse(
        created=result.created, skipped=result.skipped, charge_ids=result.charge_ids
    )


@router.get(
    "/{charge_id}",
    response_model=ChargeResponse,
    responses={404: {"description": "Charge not found"}},
)
async def get_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Charge:
    return ChargeStatusService(db).get_charge(charge_id, tenant_id)


@router.post(
    "/",
    response_model=ChargeResponse,
    status_code=201,
    responses={404: {"description": "Athlete not found"}},
)
async def create_charge(
    data: ChargeCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> Charge:
    athlete = AthleteRepository(db).get_by_id(data.athlete_id, tenant_id)
    if not athlete or athlete.academy_id != data.academy_id:
        raise NotFoundError("Athlete")
    charge = ChargeRepository(db).create(data, tenant_id)
    AuditService(db).log_create(
        resource_type="charge",
        resource_id=charge.id,  # type: ignore[arg-type]
        tenant_id=tenant_id,
        actor_id=actor_id,
        data={"label": charge.label, "amount_cents": charge.amount_cents, "period": charge.period},
    )
    return charge


@router.patch(
    "/{charge_id}",
    response_model=ChargeResponse,
    responses={
        400: {"description": "Invalid status transition"},
        404: {"description": "Charge not found"},
    },
)
async def update_charge(
    charge_id: UUID,
    data: ChargeUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> Charge:
    return ChargeStatusService(db).update(charge_id, tenant_id, data, actor_id)


@router.post(
    "/{charge_id}/mark_paid",
    response_model=ChargeResponse,
    responses={
        400: {"description": "Charge cannot be paid from its current status"},
        404: {"description": "Charge not found"},
    },
)
async def mark_paid(
    charge_id: UUID,
    data: MarkPaidRequest | None = None,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> Charge:
    data = data or MarkPaidRequest()
    return ChargeStatusService(db).mark_paid(
        charge_id,
        tenant_id,
        payment_method=data.payment_method.value if data.payment_method else None,
        paid_at=data.paid_at,
        actor_id=actor_id,
    )


@router.post(
    "/{charge_id}/checkout",
    response_model=ChargeCheckoutResponse,
    responses={
        400: {"description": "Charge is not payable"},
        404: {"description": "Charge not found"},
        503: {"description": "Payment processor not configured"},
    },
)
async def create_charge_checkout(
    charge_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> ChargeCheckoutResponse:
    """Create a card payment link for a single charge."""
    charge = ChargeStatusService(db).get_charge(charge_id, tenant_id)
    if charge.status not in PAYABLE_STATUSES:
        raise ValidationError(f"Charge with status '{charge.status}' cannot be paid online")

    guardians = GuardianRepository(db).get_email_recipients([charge.athlete_id])  # type: ignore[list-item]
    emails = [g.email for g in guardians.get(charge.athlete_id, [])]  # type: ignore[call-overload]
    session = get_payment_provider().create_charge_checkout(
        charge_id=charge.id,  # type: ignore[arg-type]
        tenant_id=tenant_id,
        label=str(charge.label),
        amount_cents=int(charge.amount_cents),  # type: ignore[arg-type]
        currency=str(charge.currency),
        success_url=f"{settings.APP_BASE_URL}/payments/success?charge={charge.id}",
        cancel_url=f"{settings.APP_BASE_URL}/payments/cancel?charge={charge.id}",
        customer_email=emails[0] if emails else None,  # type: ignore[arg-type]
    )
    charge.provider_checkout_id = session.provider_checkout_id  # type: ignore[assignment]
    db.commit()
    return ChargeCheckoutResponse(charge_id=charge_id, checkout_url=session.checkout_url)


@router.delete(
    "/{charge_id}",
    status_code=204,
    responses={404: {"description": "Charge not found"}},
)
async def delete_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not ChargeRepository(db).delete(charge_id, tenant_id):
        raise NotFoundError("Charge")
