from sqlalchemy import Column, Integer, Boolean, CheckConstraint, DateTime, ForeignKey, JSON, Text, Uuid, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
from core.permissions import Role
import uuid
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONPayload = JSON().with_variant(JSONB(), "postgresql")

PROGRESS_PENDING = "pending"
PROGRESS_DONE = "done"


class User(Base):
    __tablename__ = "app_user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=True)  # Written by the login service and admin resets
    role = Column(Text, default=Role.CLIENT.value, nullable=False)  # 'client', 'coach', 'super_admin'

    # --- ACCOUNT SAFETY ---
    # Only super_admin can flip this. Inactive users are rejected on every request.
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('client', 'coach', 'super_admin')",
            name="ck_app_user_role",
        ),
    )


class Program(Base):
    """A coach-owned, ordered set of workouts. Ownership never changes."""

    __tablename__ = "program"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    coach_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)

    workouts = relationship("Workout", back_populates="program", order_by="Workout.created_at")


class Workout(Base):
    __tablename__ = "workout"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    program_id = Column(Uuid(as_uuid=True), ForeignKey("program.id"), nullable=False, index=True)
    target_muscle = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    sets = Column(Integer, nullable=False)
    weight_equipment = Column(Text, nullable=True)

    program = relationship("Program", back_populates="workouts")

    __table_args__ = (
        CheckConstraint("sets > 0", name="ck_workout_sets_positive"),
    )


class UserProgram(Base):
    """
    Assignment of a program to a user.

    completed_at stays NULL until every UserProgress row for the pair is done,
    then it is stamped once and never cleared.
    """

    __tablename__ = "user_program"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=False, index=True)
    program_id = Column(Uuid(as_uuid=True), ForeignKey("program.id"), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "program_id", name="uq_user_program_user_program"),
    )


class UserProgress(Base):
    """Per-(user, workout) completion status. Created in bulk at assignment time."""

    __tablename__ = "user_progress"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=False, index=True)
    workout_id = Column(Uuid(as_uuid=True), ForeignKey("workout.id"), nullable=False, index=True)
    status = Column(Text, default=PROGRESS_PENDING, nullable=False)  # 'pending' | 'done'
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "workout_id", name="uq_user_progress_user_workout"),
        CheckConstraint("status IN ('pending', 'done')", name="ck_user_progress_status"),
    )


class ProgramFeedback(Base):
    """Write-once feedback on a completed program (one per user per program)."""

    __tablename__ = "program_feedback"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=False, index=True)
    program_id = Column(Uuid(as_uuid=True), ForeignKey("program.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "program_id", name="uq_program_feedback_user_program"),
    )


class AuditLog(Base):
    """
    Append-only audit log for admin actions.

    Non-negotiable invariants:
    - write-only from the application (no update/delete in code paths)
    - bounded detail payload (no passwords or hashes)
    """

    __tablename__ = "audit_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    actor_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=False, index=True)
    action = Column(Text, nullable=False, index=True)  # role_change | password_reset | activation_toggle

    target_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=True, index=True)
    detail = Column(JSONPayload, nullable=False, default=dict)

    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)


Index("ix_user_progress_user_status", UserProgress.user_id, UserProgress.status)
