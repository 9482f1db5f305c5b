from uuid import UUID

from fastapi import HTTPException, Request

from app.models.shared import DEFAULT_TENANT_ID


def _parse_uuid_header(request: Request, name: str) -> UUID | None:
    raw = request.headers.get(name)
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name} header") from None


def get_current_tenant(request: Request) -> UUID:
    """Resolve the tenant from the ``X-Tenant-Id`` header.

    Requests without the header fall back to the default tenant, which keeps
    single-tenant deployments and local tooling working without extra setup.
    """
    return _parse_uuid_header(request, "X-Tenant-Id") or DEFAULT_TENANT_ID


def get_current_user_id(request: Request) -> str | None:
    """Return the acting user from ``X-User-Id``; recorded as the audit actor."""
    user_id = _parse_uuid_header(request, "X-User-Id")
    return str(user_id) if user_id else None
