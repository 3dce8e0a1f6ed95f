"""Processed billing webhook events (idempotency ledger)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from ..database.base import Base


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    user_id = Column(String(64), default="")
    outcome = Column(String(50), default="")
    received_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
