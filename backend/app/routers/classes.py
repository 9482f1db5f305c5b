from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.models.gym_class import GymClass
from app.repositories.group_repository import GroupRepository
from app.repositories.gym_class_repository import GymClassRepository
from app.schemas.gym_class import GymClassCreate, GymClassResponse
from app.services.plan_limits import RESOURCE_CLASSES, assert_within_plan_limits

router = APIRouter()


@router.get("/", response_model=list[GymClassResponse], summary="List classes")
async def list_classes(
    response: Response,
    academy_id: UUID | None = Query(default=None),
    group_id: UUID | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[GymClass]:
    repo = GymClassRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(tenant_id, academy_id=academy_id))
    return repo.get_all(
        tenant_id, skip=skip, limit=limit, academy_id=academy_id, group_id=group_id
    )


@router.get(
    "/{class_id}",
    response_model=GymClassResponse,
    responses={404: {"description": "Class not found"}},
)
async def get_class(
    class_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GymClass:
    gym_class = GymClassRepository(db).get_by_id(class_id, tenant_id)
    if not gym_class:
        raise NotFoundError("Class")
    return gym_class


@router.post(
    "/",
    response_model=GymClassResponse,
    status_code=201,
    responses={
        402: {"description": "Class limit of the current plan reached"},
        404: {"description": "Academy or group not found"},
    },
)
async def create_class(
    data: GymClassCreate,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> GymClass:
    assert_within_plan_limits(db, tenant_id, RESOURCE_CLASSES, data.academy_id)
    if data.group_id is not None:
        group = GroupRepository(db).get_by_id(data.group_id, tenant_id)
        if not group or group.academy_id != data.academy_id:
            raise NotFoundError("Group")
    return GymClassRepository(db).create(data, tenant_id)


@router.delete(
    "/{class_id}",
    status_code=204,
    responses={404: {"description": "Class not found"}},
)
async def delete_class(
    class_id: UUID,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> None:
    if not GymClassRepository(db).delete(class_id, tenant_id):
        raise NotFoundError("Class")
