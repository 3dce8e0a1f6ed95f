"""Subscription routes."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..audit.service import audit
from ..auth.models import User
from ..config import settings
from ..database.base import get_db
from ..dependencies import get_current_user
from .schemas import Plan, SubscribeRequest, WebhookPayload
from .service import (
    SIGNATURE_HEADER,
    WebhookPayloadError,
    WebhookSignatureError,
    can_cancel,
    handle_webhook_event,
    subscribe,
    subscription_state,
    verify_signature,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


@router.get("")
@router.get("/", include_in_schema=False)
def get_subscription(user: User = Depends(get_current_user)):
    return JSONResponse({"data": subscription_state(user)})


@router.post("/subscribe")
def subscribe_route(
    request: Request,
    body: SubscribeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        plan = Plan(body.plan)
    except ValueError:
        return JSONResponse({"message": "Invalid subscription plan"}, status_code=400)

    subscribe(db, user, plan)
    audit(db, request, "subscribe", f"plan={plan}", user_id=user.id)
    db.commit()
    return JSONResponse({
        "data": subscription_state(user),
        "message": f"Successfully subscribed to Premium ({plan})",
    })


@router.post("/cancel")
def cancel_route(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not can_cancel(user):
        return JSONResponse({"message": "No active subscription to cancel"}, status_code=400)

    # Downgrade happens when the provider sends subscription_canceled at period end.
    audit(db, request, "subscription_cancel_requested", user_id=user.id)
    db.commit()
    return JSONResponse({
        "data": subscription_state(user),
        "message": "Subscription will be canceled at the end of the billing period",
    })


async def raw_body(request: Request) -> bytes:
    """Read the unparsed body; the signature covers the exact bytes."""
    return await request.body()


@router.post("/webhook")
def webhook(request: Request, raw: bytes = Depends(raw_body), db: Session = Depends(get_db)):
    if not settings.webhook_secret:
        logger.error("Webhook received but WEBHOOK_SECRET is not configured")
        return JSONResponse({"message": "Webhook endpoint not configured"}, status_code=503)

    try:
        verify_signature(settings.webhook_secret, raw, request.headers.get(SIGNATURE_HEADER))
    except WebhookSignatureError as e:
        logger.warning("Rejected webhook: %s", e)
        return JSONResponse({"message": "Invalid webhook signature"}, status_code=401)

    try:
        payload = WebhookPayload.model_validate_json(raw)
    except ValidationError:
        return JSONResponse({"message": "Invalid webhook payload"}, status_code=400)

    try:
        outcome = handle_webhook_event(db, payload)
        if outcome != "duplicate":
            audit(db, request, "webhook", f"event={payload.event}, id={payload.event_id}, outcome={outcome}")
        db.commit()
    except WebhookPayloadError as e:
        db.rollback()
        return JSONResponse({"message": str(e)}, status_code=400)
    except IntegrityError:
        db.rollback()
        outcome = "duplicate"

    if outcome == "duplicate":
        return JSONResponse({"received": True, "duplicate": True})
    return JSONResponse({"received": True})
