"""Initial schema: users, CVs, audit/notification logs, webhook events.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = sa.Enum("user", "admin", name="userrole")
subscription_tier = sa.Enum("free", "premium", "enterprise", name="subscriptiontier")
cv_template = sa.Enum(
    "modern", "classic", "minimal", "professional", "creative", "executive", "technical", name="cvtemplate"
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("subscription", subscription_tier, nullable=False, server_default="free"),
        sa.Column("subscription_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(128), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_verification_token", sa.String(128), nullable=True),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_cvs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_password_reset_token", "users", ["password_reset_token"])

    op.create_table(
        "cvs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("template", cv_template, nullable=False, server_default="modern"),
        sa.Column("personal_info", sa.JSON()),
        sa.Column("summary", sa.Text(), server_default=""),
        sa.Column("work_experience", sa.JSON()),
        sa.Column("education", sa.JSON()),
        sa.Column("skills", sa.JSON()),
        sa.Column("languages", sa.JSON()),
        sa.Column("projects", sa.JSON()),
        sa.Column("certifications", sa.JSON()),
        sa.Column("custom_sections", sa.JSON()),
        sa.Column("references", sa.JSON()),
        sa.Column("metadata", sa.JSON()),
        sa.Column("privacy", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_cvs_user_id", "cvs", ["user_id"])
    op.create_index("idx_cvs_user_created", "cvs", ["user_id", "created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("detail", sa.Text(), server_default=""),
        sa.Column("method", sa.String(10), server_default=""),
        sa.Column("path", sa.String(255), server_default=""),
        sa.Column("ip_address", sa.String(45), server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("idx_audit_user_created", "audit_logs", ["user_id", "created_at"])

    op.create_table(
        "notification_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("recipient", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(500), server_default=""),
        sa.Column("detail", sa.Text(), server_default=""),
        sa.Column("sent_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notification_logs_user_id", "notification_logs", ["user_id"])

    op.create_table(
        "webhook_events",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("user_id", sa.String(64), server_default=""),
        sa.Column("outcome", sa.String(50), server_default=""),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_webhook_events_event_id", "webhook_events", ["event_id"], unique=True)


def downgrade() -> None:
    op.drop_table("webhook_events")
    op.drop_table("notification_logs")
    op.drop_table("audit_logs")
    op.drop_table("cvs")
    op.drop_table("users")
    cv_template.drop(op.get_bind(), checkfirst=True)
    subscription_tier.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
