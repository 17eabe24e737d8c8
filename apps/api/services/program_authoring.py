"""
Coach-side program authoring: create programs, add workouts.

Adding a workout to a program that is already assigned also creates a
pending progress entry for every assignee, so each assignee keeps exactly
one entry per workout of the program. Assignments already marked complete
keep their completed_at.

``add_workout`` locks the program row before inserting, the same lock
``assign_program`` takes, so assignment and workout creation on one program
run one after the other.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.database import unit_of_work
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from core.permissions import Action, Caller, Role, authorize
from models import PROGRESS_PENDING, Program, User, UserProgram, UserProgress, Workout

logger = logging.getLogger(__name__)


def create_program(
    db: Session,
    caller: Optional[Caller],
    *,
    name: str,
    description: str,
    coach_id: Optional[UUID] = None,
) -> Program:
    authorize(caller, Action.CREATE_PROGRAM)

    if caller.role == Role.COACH:
        if coach_id is not None and coach_id != caller.user_id:
            raise ForbiddenError("Coaches can only create their own programs")
        coach_id = caller.user_id
    elif coach_id is None:
        raise ValidationError("coach_id is required", field="coach_id")

    with unit_of_work(db):
        owner = db.query(User).filter(User.id == coach_id).first()
        if owner is None:
            raise NotFoundError("User", str(coach_id))
        if owner.role != Role.COACH.value:
            raise ValidationError("Program owner must be a coach", field="coach_id")

        program = Program(coach_id=coach_id, name=name.strip(), description=description.strip())
        db.add(program)
        db.flush()

    logger.info(f"Program {program.id} created for coach {coach_id}")
    return program


def add_workout(
    db: Session,
    caller: Optional[Caller],
    *,
    program_id: UUID,
    target_muscle: str,
    description: str,
    sets: int,
    weight_equipment: Optional[str] = None,
) -> Workout:
    authorize(caller, Action.ADD_WORKOUT)
    if sets is None or sets < 1:
        raise ValidationError("sets must be a positive integer", field="sets")

    with unit_of_work(db):
        program = db.query(Program).filter(Program.id == program_id).with_for_update().first()
        if program is None:
            raise NotFoundError("Program", str(program_id))
        if caller.role == Role.COACH and program.coach_id != caller.user_id:
            raise ForbiddenError("You can only add workouts to your own programs")

        workout = Workout(
            program_id=program_id,
            target_muscle=target_muscle.strip(),
            description=description.strip(),
            sets=sets,
            weight_equipment=weight_equipment,
        )
        db.add(workout)
        db.flush()

        assignees = [
            uid for (uid,) in db.query(UserProgram.user_id).filter(UserProgram.program_id == program_id).all()
        ]
        db.add_all(
            [UserProgress(user_id=uid, workout_id=workout.id, status=PROGRESS_PENDING) for uid in assignees]
        )

    if assignees:
        logger.info(f"Workout {workout.id} added to program {program_id}; {len(assignees)} assignee(s) updated")
    return workout
