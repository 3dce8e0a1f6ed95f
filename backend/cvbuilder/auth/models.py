"""User model for authentication and subscription state."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from ..database.base import Base


class UserRole(enum.StrEnum):
    USER = "user"
    ADMIN = "admin"


class SubscriptionTier(enum.StrEnum):
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


PAID_TIERS = (SubscriptionTier.PREMIUM, SubscriptionTier.ENTERPRISE)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda e: [r.value for r in e]),
        default=UserRole.USER,
        nullable=False,
    )
    subscription = Column(
        SQLEnum(SubscriptionTier, values_callable=lambda e: [t.value for t in e]),
        default=SubscriptionTier.FREE,
        nullable=False,
    )
    subscription_expiry = Column(DateTime(timezone=True), nullable=True)
    password_reset_token = Column(String(128), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)
    email_verification_token = Column(String(128), nullable=True)
    email_verified = Column(Boolean, default=False)
    created_cvs = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    cvs = relationship("CV", back_populates="user", cascade="all, delete-orphan")

    def has_reached_free_limit(self, limit: int) -> bool:
        """Lapsed paid plans fall back to the free quota."""
        return not self.is_premium and (self.created_cvs or 0) >= limit

    def has_active_subscription(self) -> bool:
        """Free is always active; paid tiers need an expiry in the future."""
        if self.subscription == SubscriptionTier.FREE:
            return True
        expiry = as_utc(self.subscription_expiry)
        return expiry is not None and expiry > datetime.now(UTC)

    @property
    def is_premium(self) -> bool:
        return self.subscription in PAID_TIERS and self.has_active_subscription()

    def to_public_dict(self) -> dict:
        expiry = as_utc(self.subscription_expiry)
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": str(self.role or UserRole.USER),
            "subscription": str(self.subscription or SubscriptionTier.FREE),
            "subscriptionExpiry": expiry.isoformat() if expiry else None,
            "createdCVs": self.created_cvs or 0,
            "emailVerified": bool(self.email_verified),
        }
