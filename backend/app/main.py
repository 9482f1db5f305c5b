import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.routers import (
    academies,
    athletes,
    audit_logs,
    billing,
    billing_items,
    charges,
    class_sessions,
    classes,
    groups,
    guardians,
    notifications,
    plans,
    public,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# (router module, path segment, tag, tag description)
ROUTERS = [
    (academies, "academies", "Academies", "Academies owned by the tenant."),
    (public, "public", "Public", "Directory of public academies, no tenant header needed."),
    (athletes, "athletes", "Athletes", "Athletes and their guardian links."),
    (guardians, "guardians", "Guardians", "Parents and contacts who receive reminders."),
    (groups, "groups", "Groups", "Training groups, their fee and members."),
    (classes, "classes", "Classes", "Weekly class schedule per group."),
    (
        class_sessions,
        "class_sessions",
        "Class Sessions",
        "Dated class sessions and the attendance taken at them.",
    ),
    (billing_items, "billing_items", "Billing Items", "Reusable fee definitions."),
    (charges, "charges", "Charges", "Monthly generation, payment status and checkout."),
    (plans, "plans", "Plans", "Academy plans and their limits."),
    (billing, "billing", "Billing", "The tenant's own plan subscription and Stripe webhook."),
    (notifications, "notifications", "Notifications", "Staff notifications."),
    (audit_logs, "audit_logs", "Audit Logs", "Who changed what, and when."),
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Management API for gymnastics academies: athletes, groups, classes, "
        "guardians, monthly charges and the academy's own plan subscription."
    ),
    openapi_tags=[{"name": tag, "description": about} for _, _, tag, about in ROUTERS],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

register_exception_handlers(app)

for module, segment, tag, _ in ROUTERS:
    app.include_router(module.router, prefix=f"/v1/{segment}", tags=[tag])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
