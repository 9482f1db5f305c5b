"""Public academy directory. No tenant header required."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.rate_limiter import RateLimiter
from app.models.academy import Academy, AcademyType
from app.repositories.academy_repository import AcademyRepository
from app.schemas.academy import PublicAcademyResponse

router = APIRouter()

public_rate_limiter = RateLimiter(max_requests=settings.RATE_LIMIT_PUBLIC_PER_MINUTE)


def _rate_limit(request: Request) -> None:
    client = request.client.host if request.client else "unknown"
    public_rate_limiter.hit(client)


@router.get(
    "/academies",
    response_model=list[PublicAcademyResponse],
    summary="List public academies",
    responses={429: {"description": "Too many requests"}},
)
async def list_public_academies(
    city: str | None = Query(default=None),
    country: str | None = Query(default=None, min_length=2, max_length=2),
    academy_type: AcademyType | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _: None = Depends(_rate_limit),
) -> list[Academy]:
    return AcademyRepository(db).get_public(
        city=city,
        country=country,
        academy_type=academy_type.value if academy_type else None,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/academies/{slug}",
    response_model=PublicAcademyResponse,
    responses={404: {"description": "Academy not found"}, 429: {"description": "Too many requests"}},
)
async def get_public_academy(
    slug: str,
    db: Session = Depends(get_db),
    _: None = Depends(_rate_limit),
) -> Academy:
    academy = AcademyRepository(db).get_public_by_slug(slug)
    if not academy:
        raise NotFoundError("Academy")
    return academy
