"""create task templates table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_create_task_templates"
down_revision = "0001_create_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_templates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="TODO"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="MEDIUM"),
        sa.Column("recurrence_type", sa.String(length=20), nullable=False),
        sa.Column("recurrence_interval", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("default_assignee_ids", sa.JSON(), nullable=False),
        sa.Column("default_customer_id", sa.String(length=36), nullable=True),
        sa.Column("default_tags", sa.JSON(), nullable=False),
        sa.Column("default_estimated_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column(
            "created_by_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_generated_date", sa.Date(), nullable=True),
        sa.CheckConstraint("recurrence_interval >= 1", name="ck_task_templates_interval_positive"),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_task_templates_window"
        ),
    )
    op.create_index("ix_task_templates_created_by_id", "task_templates", ["created_by_id"], unique=False)
    op.create_index("ix_task_templates_is_active", "task_templates", ["is_active"], unique=False)
    op.create_index("ix_task_templates_recurrence_type", "task_templates", ["recurrence_type"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_task_templates_recurrence_type", table_name="task_templates")
    op.drop_index("ix_task_templates_is_active", table_name="task_templates")
    op.drop_index("ix_task_templates_created_by_id", table_name="task_templates")
    op.drop_table("task_templates")
