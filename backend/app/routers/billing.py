"""Tenant subscription endpoints: current plan, limits, plan changes and Stripe."""

import json
import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.auth import get_current_tenant, get_current_user_id
from app.core.database import get_db
from app.models.subscription_invoice import SubscriptionInvoice
from app.repositories.subscription_invoice_repository import SubscriptionInvoiceRepository
from app.schemas.subscription import (
    ChangePlanRequest,
    ChangePlanResponse,
    CheckoutRequest,
    LimitsResponse,
    SessionUrlResponse,
    SubscriptionInvoiceResponse,
    SubscriptionResponse,
    WebhookAck,
)
from app.services.payment_provider import get_payment_provider
from app.services.plan_limits import get_remaining_limits
from app.services.stripe_webhook_service import StripeWebhookService
from app.services.subscription_service import SubscriptionService, subscription_payload
from app.tasks import enqueue_deliver_email

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/subscription", response_model=SubscriptionResponse, summary="Current subscription")
async def get_subscription(
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> SubscriptionResponse:
    subscription, plan = SubscriptionService(db).get(tenant_id)
    return SubscriptionResponse(**subscription_payload(subscription, plan))


@router.get("/limits", response_model=LimitsResponse, summary="Plan usage and remaining limits")
async def get_limits(
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> dict[str, Any]:
    return get_remaining_limits(db, tenant_id)


@router.post(
    "/change_plan",
    response_model=ChangePlanResponse,
    summary="Change the tenant plan",
    responses={
        400: {"description": "Usage exceeds the target plan limits and force was not set"},
        404: {"description": "Plan not found"},
    },
)
async def change_plan(
    data: ChangePlanRequest,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
    actor_id: str | None = Depends(get_current_user_id),
) -> ChangePlanResponse:
    """Switch plans. A downgrade below current usage needs ``force: true``."""
    result = SubscriptionService(db).change_plan(
        tenant_id, data.plan_code.value, force=data.force, actor_id=actor_id
    )
    if result.email_log_id is not None:
        try:
            await enqueue_deliver_email(result.email_log_id)
        except Exception:
            # The email log stays pending and the retry job picks it up
            logger.exception("Failed to enqueue plan change email %s", result.email_log_id)
    return ChangePlanResponse(
        subscription=SubscriptionResponse(**subscription_payload(result.subscription, result.plan)),
        previous_plan_code=result.previous_plan_code,
        violations=result.violations,  # type: ignore[arg-type]
        forced=result.forced,
    )


@router.post(
    "/checkout",
    response_model=SessionUrlResponse,
    summary="Start a plan checkout",
    responses={
        400: {"description": "Plan cannot be purchased online"},
        503: {"description": "Payment processor not configured"},
    },
)
async def create_checkout(
    data: CheckoutRequest,
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> SessionUrlResponse:
    url = SubscriptionService(db).create_checkout(
        tenant_id, data.plan_code.value, data.success_url, data.cancel_url
    )
    return SessionUrlResponse(url=url)


@router.post(
    "/portal",
    response_model=SessionUrlResponse,
    summary="Open the billing portal",
    responses={400: {"description": "No billing account yet"}},
)
async def create_portal(
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> SessionUrlResponse:
    return SessionUrlResponse(url=SubscriptionService(db).create_portal(tenant_id))


@router.get("/invoices", response_model=list[SubscriptionInvoiceResponse])
async def list_invoices(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    tenant_id: UUID = Depends(get_current_tenant),
) -> list[SubscriptionInvoice]:
    return SubscriptionInvoiceRepository(db).get_all(tenant_id, skip=skip, limit=limit)


@router.post(
    "/webhook",
    response_model=WebhookAck,
    summary="Stripe webhook receiver",
    responses={
        400: {"description": "Invalid JSON payload"},
        401: {"description": "Invalid signature"},
    },
)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
) -> WebhookAck:
    payload = await request.body()
    if not get_payment_provider().verify_webhook_signature(payload, stripe_signature or ""):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from None
    if not isinstance(event, dict) or not event.get("id"):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    record, status = StripeWebhookService(db).process(event)
    return WebhookAck(event_id=str(record.provider_event_id), status=status)
