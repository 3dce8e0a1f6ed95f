"""Subscription request schemas."""

import datetime as dt
import enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Plan(enum.StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscribeRequest(BaseModel):
    plan: str | None = None


class WebhookSubscription(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}

    current_period_end: dt.datetime | None = None


class WebhookPayload(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "ignore"}

    event: str = Field(..., min_length=1, max_length=50)
    event_id: str | None = Field(None, max_length=255)
    user_id: str | None = None
    subscription: WebhookSubscription | None = None
