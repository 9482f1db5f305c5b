from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant, get_current_user_id
from app.core.database import get_db
from app.core.errors import DuplicateError, NotFoundError
from app.models.academy import Academy
from app.repositories.academy_repository import AcademyRepository
from app.schemas.academy import AcademyCreate, AcademyResponse, AcademyUpdate
from app.services.audit_service import AuditService
from app.services.plan_limits import RESOURCE_ACADEMIES, assert_within_plan_limits

router = APIRouter()


@router.get("/", response_model=list[AcademyResponse], summary="List academies")
async def list_academies(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Academy]:
    repo = AcademyRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(tenant_id))
    return repo.get_all(tenant_id, skip=skip, limit=limit, order_by=order_by)


@router.get(
    "/{academy_id}",
    response_model=AcademyResponse,
    responses={404: {"description": "Academy not found"}},
)
async def get_academy(
    academy_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Academy:
    academy = AcademyRepository(db).get_by_id(academy_id, tenant_id)
    if not academy:
        raise NotFoundError("Academy")
    return academy


@router.post(
    "/",
    response_model=AcademyResponse,
    status_code=201,
    responses={
        402: {"description": "Academy limit of the current plan reached"},
        409: {"description": "Slug already in use"},
    },
)
async def create_academy(
    data: AcademyCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> Academy:
    assert_within_plan_limits(db, tenant_id, RESOURCE_ACADEMIES)
    repo = AcademyRepository(db)
    if repo.slug_exists(data.slug):
        raise DuplicateError(f"Academy slug '{data.slug}' is already in use")
    academy = repo.create(data, tenant_id)
    AuditService(db).log_create(
        resource_type="academy",
        resource_id=academy.id,  # type: ignore[arg-type]
        tenant_id=tenant_id,
        actor_id=actor_id,
        data={"name": academy.name, "slug": academy.slug},
    )
    return academy


@router.patch(
    "/{academy_id}",
    response_model=AcademyResponse,
    responses={404: {"description": "Academy not found"}},
)
async def update_academy(
    academy_id: UUID,
    data: AcademyUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Academy:
    academy = AcademyRepository(db).update(academy_id, data, tenant_id)
    if not academy:
        raise NotFoundError("Academy")
    return academy


@router.delete(
    "/{academy_id}",
    status_code=204,
    responses={404: {"description": "Academy not found"}},
)
async def delete_academy(
    academy_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not AcademyRepository(db).delete(academy_id, tenant_id):
        raise NotFoundError("Academy")
