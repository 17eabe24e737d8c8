"""
Workout progress and program completion.

Marking a workout done is a one-way pending -> done transition. In the same
transaction the owning program is re-evaluated: once no entry for the
(user, program) pair is left outside 'done', the assignment's completed_at
is stamped. The stamp is written with ``completed_at IS NULL`` in the WHERE
clause, so repeated or racing final completions leave the first timestamp
in place.

Completions for the same (user, program) are serialized by locking the
assignment row first (SELECT ... FOR UPDATE). Without the lock, two
transactions finishing the last two workouts under read-committed could each
still see the other's entry as pending and neither would stamp.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from core.database import unit_of_work
from core.exceptions import NotFoundError
from core.permissions import Action, Caller, authorize
from models import PROGRESS_DONE, UserProgram, UserProgress, Workout

logger = logging.getLogger(__name__)


@dataclass
class MarkDoneResult:
    entry: UserProgress
    program_id: UUID
    program_completed: bool
    completed_at: Optional[datetime]
    newly_completed: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def count_unfinished(db: Session, *, user_id: UUID, program_id: UUID) -> int:
    """Progress entries for the pair that are not done yet."""
    return (
        db.query(UserProgress)
        .join(Workout, Workout.id == UserProgress.workout_id)
        .filter(
            UserProgress.user_id == user_id,
            Workout.program_id == program_id,
            UserProgress.status != PROGRESS_DONE,
        )
        .count()
    )


def mark_workout_done(
    db: Session,
    caller: Optional[Caller],
    *,
    user_id: UUID,
    workout_id: UUID,
) -> MarkDoneResult:
    authorize(caller, Action.MARK_WORKOUT_DONE, subject_user_id=user_id)

    with unit_of_work(db):
        workout = db.query(Workout).filter(Workout.id == workout_id).first()
        if workout is None:
            raise NotFoundError("Workout", str(workout_id))
        program_id = workout.program_id

        assignment = (
            db.query(UserProgram)
            .filter(UserProgram.user_id == user_id, UserProgram.program_id == program_id)
            .with_for_update()
            .first()
        )

        entry = (
            db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.workout_id == workout_id)
            .first()
        )
        if entry is None or assignment is None:
            raise NotFoundError("Progress entry", f"user={user_id} workout={workout_id}")

        now = _utcnow()
        entry.status = PROGRESS_DONE
        entry.updated_at = now
        db.flush()

        newly_completed = False
        if count_unfinished(db, user_id=user_id, program_id=program_id) == 0:
            stamped = db.execute(
                update(UserProgram)
                .where(
                    UserProgram.id == assignment.id,
                    UserProgram.completed_at.is_(None),
                )
                .values(completed_at=now)
                .execution_options(synchronize_session=False)
            )
            newly_completed = stamped.rowcount == 1
            db.refresh(assignment)

        completed_at = assignment.completed_at

    if newly_completed:
        logger.info(
            "Program completed",
            extra={
                "extra_fields": {
                    "user_id": str(user_id),
                    "program_id": str(program_id),
                    "completed_at": completed_at.isoformat() if completed_at else None,
                }
            },
        )

    return MarkDoneResult(
        entry=entry,
        program_id=program_id,
        program_completed=completed_at is not None,
        completed_at=completed_at,
        newly_completed=newly_completed,
    )
