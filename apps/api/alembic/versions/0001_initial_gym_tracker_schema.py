"""initial_gym_tracker_schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Adds:
- app_user (role + is_active, email unique)
- program / workout (coach-owned)
- user_program (assignment; UNIQUE user/program; completed_at nullable)
- user_progress (UNIQUE user/workout; status pending|done)
- program_feedback (UNIQUE user/program)
- audit_log (append-only admin audit)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "app_user",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("role IN ('client', 'coach', 'super_admin')", name="ck_app_user_role"),
    )

    op.create_table(
        "program",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("coach_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
    )
    op.create_index("ix_program_coach_id", "program", ["coach_id"], unique=False)

    op.create_table(
        "workout",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("program_id", sa.Uuid(), sa.ForeignKey("program.id"), nullable=False),
        sa.Column("target_muscle", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("weight_equipment", sa.Text(), nullable=True),
        sa.CheckConstraint("sets > 0", name="ck_workout_sets_positive"),
    )
    op.create_index("ix_workout_program_id", "workout", ["program_id"], unique=False)

    op.create_table(
        "user_program",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=False),
        sa.Column("program_id", sa.Uuid(), sa.ForeignKey("program.id"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "program_id", name="uq_user_program_user_program"),
    )
    op.create_index("ix_user_program_user_id", "user_program", ["user_id"], unique=False)
    op.create_index("ix_user_program_program_id", "user_program", ["program_id"], unique=False)

    op.create_table(
        "user_progress",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=False),
        sa.Column("workout_id", sa.Uuid(), sa.ForeignKey("workout.id"), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "workout_id", name="uq_user_progress_user_workout"),
        sa.CheckConstraint("status IN ('pending', 'done')", name="ck_user_progress_status"),
    )
    op.create_index("ix_user_progress_user_id", "user_progress", ["user_id"], unique=False)
    op.create_index("ix_user_progress_workout_id", "user_progress", ["workout_id"], unique=False)
    op.create_index("ix_user_progress_user_status", "user_progress", ["user_id", "status"], unique=False)

    op.create_table(
        "program_feedback",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=False),
        sa.Column("program_id", sa.Uuid(), sa.ForeignKey("program.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.UniqueConstraint("user_id", "program_id", name="uq_program_feedback_user_program"),
    )
    op.create_index("ix_program_feedback_user_id", "program_feedback", ["user_id"], unique=False)
    op.create_index("ix_program_feedback_program_id", "program_feedback", ["program_id"], unique=False)

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("target_id", sa.Uuid(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column(
            "detail",
            sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"),
            nullable=False,
        ),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
    )
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"], unique=False)
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"], unique=False)
    op.create_index("ix_audit_log_target_id", "audit_log", ["target_id"], unique=False)
    op.create_index("ix_audit_log_action", "audit_log", ["action"], unique=False)


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("program_feedback")
    op.drop_table("user_progress")
    op.drop_table("user_program")
    op.drop_table("workout")
    op.drop_table("program")
    op.drop_table("app_user")
