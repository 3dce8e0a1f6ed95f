"""Subscription service: plan purchase and billing webhook handling.

Webhooks are authenticated with an HMAC-SHA256 of the raw request body
(hex digest in ``X-Webhook-Signature``) and de-duplicated by ``eventId``.
"""

import calendar
import hashlib
import hmac
import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from ..auth.models import PAID_TIERS, SubscriptionTier, User, as_utc
from ..auth.service import get_user_by_id
from .models import WebhookEvent
from .schemas import Plan, WebhookPayload

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"


class WebhookSignatureError(Exception):
    """Raised when a webhook signature is missing or does not match."""


class WebhookPayloadError(Exception):
    """Raised when a recognised event lacks the data it needs."""


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def plan_expiry(plan: Plan, now: datetime | None = None) -> datetime:
    now = now or datetime.now(UTC)
    return add_months(now, 1 if plan == Plan.MONTHLY else 12)


def subscription_state(user: User) -> dict:
    expiry = as_utc(user.subscription_expiry)
    return {
        "subscription": str(user.subscription or SubscriptionTier.FREE),
        "subscriptionExpiry": expiry.isoformat() if expiry else None,
    }


def subscribe(db: Session, user: User, plan: Plan) -> User:
    user.subscription = SubscriptionTier.PREMIUM
    user.subscription_expiry = plan_expiry(plan)
    db.flush()
    logger.info("User %s subscribed (%s) until %s", user.id, plan, user.subscription_expiry)
    return user


def can_cancel(user: User) -> bool:
    return user.subscription in PAID_TIERS


# ── Webhooks ──────────────────────────────────────────────────────────


def sign_payload(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> None:
    if not signature:
        raise WebhookSignatureError("missing signature")
    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]
    if not hmac.compare_digest(sign_payload(secret, body), signature.strip().lower()):
        raise WebhookSignatureError("signature mismatch")


def _record_event(db: Session, payload: WebhookPayload) -> bool:
    """Store the event id. Returns False when it was already processed."""
    if not payload.event_id:
        return True
    if db.query(WebhookEvent).filter(WebhookEvent.event_id == payload.event_id).first():
        return False
    # a concurrent delivery of the same id fails the unique constraint at flush
    db.add(WebhookEvent(event_id=payload.event_id, event_type=payload.event, user_id=payload.user_id or ""))
    db.flush()
    return True


def _period_end(payload: WebhookPayload) -> datetime:
    end = payload.subscription.current_period_end if payload.subscription else None
    if end is None:
        raise WebhookPayloadError("subscription.currentPeriodEnd is required")
    return as_utc(end)


def handle_webhook_event(db: Session, payload: WebhookPayload) -> str:
    """Apply a billing event. Returns the outcome label."""
    if not _record_event(db, payload):
        logger.info("Webhook event %s already processed, skipping", payload.event_id)
        return "duplicate"

    event = payload.event
    if event in ("subscription_created", "subscription_updated", "subscription_canceled"):
        user = get_user_by_id(db, payload.user_id)
        if not user:
            logger.warning("Webhook %s for unknown user %s", event, payload.user_id)
            outcome = "unknown_user"
        elif event == "subscription_created":
            user.subscription = SubscriptionTier.PREMIUM
            user.subscription_expiry = _period_end(payload)
            outcome = "applied"
        elif event == "subscription_updated":
            user.subscription_expiry = _period_end(payload)
            outcome = "applied"
        else:
            user.subscription = SubscriptionTier.FREE
            user.subscription_expiry = None
            outcome = "applied"
    elif event == "payment_failed":
        logger.warning("Payment failed for user %s", payload.user_id)
        outcome = "logged"
    else:
        logger.info("Unhandled webhook event: %s", event)
        outcome = "unhandled"

    if payload.event_id:
        db.query(WebhookEvent).filter(WebhookEvent.event_id == payload.event_id).update({"outcome": outcome})
    db.flush()
    logger.info("Webhook %s (%s) for user %s: %s", event, payload.event_id, payload.user_id, outcome)
    return outcome
