"""
Program assignment.

Assigning a program creates the user_program row and one pending
user_progress row per workout the program has at that moment. Both inserts
share one transaction: if the progress rows cannot be written, the
assignment is rolled back with them.

The program row is locked (SELECT ... FOR UPDATE) before the workout list
is read. ``add_workout`` takes the same lock, so a workout is either in the
list read here or sees this assignment when it materializes entries.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import unit_of_work
from core.exceptions import ConflictError, NotFoundError
from core.permissions import Action, Caller, authorize
from models import PROGRESS_PENDING, Program, User, UserProgram, UserProgress, Workout

logger = logging.getLogger(__name__)


def _materialize_progress(db: Session, *, user_id: UUID, workout_ids: List[UUID]) -> int:
    db.add_all(
        [UserProgress(user_id=user_id, workout_id=wid, status=PROGRESS_PENDING) for wid in workout_ids]
    )
    db.flush()
    return len(workout_ids)


def assign_program(
    db: Session,
    caller: Optional[Caller],
    *,
    user_id: UUID,
    program_id: UUID,
) -> Tuple[UserProgram, int]:
    """
    Assign ``program_id`` to ``user_id``.

    Returns the new assignment and the number of progress entries created.
    A zero-workout program is assigned with no entries and stays incomplete.
    """
    authorize(caller, Action.ASSIGN_PROGRAM)

    try:
        with unit_of_work(db):
            if db.query(User.id).filter(User.id == user_id).first() is None:
                raise NotFoundError("User", str(user_id))
            program = db.query(Program).filter(Program.id == program_id).with_for_update().first()
            if program is None:
                raise NotFoundError("Program", str(program_id))

            exists = (
                db.query(UserProgram.id)
                .filter(UserProgram.user_id == user_id, UserProgram.program_id == program_id)
                .first()
            )
            if exists is not None:
                raise ConflictError("Program already assigned")

            assignment = UserProgram(user_id=user_id, program_id=program_id, completed_at=None)
            db.add(assignment)
            db.flush()

            workout_ids = [
                wid
                for (wid,) in db.query(Workout.id).filter(Workout.program_id == program_id).all()
            ]
            created = _materialize_progress(db, user_id=user_id, workout_ids=workout_ids)
    except IntegrityError:
        # A concurrent request inserted the same pair between our check and insert.
        raise ConflictError("Program already assigned")

    logger.info(
        "Program assigned",
        extra={
            "extra_fields": {
                "user_id": str(user_id),
                "program_id": str(program_id),
                "progress_entries": created,
                "assigned_by": str(caller.user_id),
            }
        },
    )
    return assignment, created
