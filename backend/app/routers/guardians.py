from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.guardian import Guardian
from app.repositories.guardian_repository import GuardianRepository
from app.schemas.guardian import GuardianCreate, GuardianResponse, GuardianUpdate

router = APIRouter()


@router.get("/", response_model=list[GuardianResponse], summary="List guardians")
async def list_guardians(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[Guardian]:
    repo = GuardianRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(tenant_id))
    return repo.get_all(tenant_id, skip=skip, limit=limit)


@router.get(
    "/{guardian_id}",
    response_model=GuardianResponse,
    responses={404: {"description": "Guardian not found"}},
)
async def get_guardian(
    guardian_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Guardian:
    guardian = GuardianRepository(db).get_by_id(guardian_id, tenant_id)
    if not guardian:
        raise NotFoundError("Guardian")
    return guardian


@router.post("/", response_model=GuardianResponse, status_code=201)
async def create_guardian(
    data: GuardianCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Guardian:
    return GuardianRepository(db).create(data, tenant_id)


@router.patch(
    "/{guardian_id}",
    response_model=GuardianResponse,
    responses={404: {"description": "Guardian not found"}},
)
async def update_guardian(
    guardian_id: UUID,
    data: GuardianUpdate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> Guardian:
    guardian = GuardianRepository(db).update(guardian_id, data, tenant_id)
    if not guardian:
        raise NotFoundError("Guardian")
    return guardian


@router.delete(
    "/{guardian_id}",
    status_code=204,
    responses={404: {"description": "Guardian not found"}},
)
async def delete_guardian(
    guardian_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not GuardianRepository(db).delete(guardian_id, tenant_id):
        raise NotFoundError("Guardian")
