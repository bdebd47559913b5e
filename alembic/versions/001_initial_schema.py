"""Initial schema: users, categories, tasks, progress, notifications, stats.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JsonType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        sa.Column("package", sa.String(16), server_default="free", nullable=False),
        sa.Column("package_activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("package_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_notification_read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
        sa.CheckConstraint("package IN ('free', 'basic', 'plus')", name="ck_users_package"),
    )

    # --- categories ---
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("icon", sa.String(64), nullable=False),
        sa.Column("color", sa.String(7), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("estimated_time_frame", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_categories_order", "categories", ["order"])

    # --- tasks ---
    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False,
        ),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("estimated_duration", sa.String(32), nullable=False),
        sa.Column("difficulty", sa.String(8), nullable=False),
        sa.Column("external_links", JsonType, nullable=False),
        sa.Column("helpful_links", JsonType, nullable=False),
        sa.Column("tips", JsonType, nullable=False),
        sa.Column("requirements", JsonType, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_tasks_category_order", "tasks", ["category_id", "order"])

    # --- user_progress ---
    op.create_table(
        "user_progress",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("overall_progress", sa.Integer(), nullable=False),
        sa.Column("category_progress", JsonType, nullable=False),
        sa.Column("completed_tasks", JsonType, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("priority", sa.String(8), nullable=False),
        sa.Column("action_required", sa.Boolean(), nullable=False),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("entity_type", sa.String(16), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("entity_action", sa.String(16), nullable=True),
        sa.Column("changes", JsonType, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])
    op.create_index(
        "ix_notifications_entity", "notifications", ["user_id", "entity_type", "entity_id", "entity_action"],
    )
    op.create_index("ix_notifications_expires_at", "notifications", ["expires_at"])

    # --- stats ---
    op.create_table(
        "stats",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("paid_user_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.execute("INSERT INTO stats (id, paid_user_count) VALUES ('global-stats', 0)")


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("stats")
    op.drop_index("ix_notifications_expires_at", table_name="notifications")
    op.drop_index("ix_notifications_entity", table_name="notifications")
    op.drop_index("ix_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("user_progress")
    op.drop_index("ix_tasks_category_order", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_categories_order", table_name="categories")
    op.drop_table("categories")
    op.drop_table("users")
