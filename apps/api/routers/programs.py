"""
Programs API Router

Coach-facing program authoring and program assignment.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from core.auth import get_current_caller
from core.database import get_db
from core.permissions import Caller
from schemas import (
    AssignProgramRequest,
    AssignProgramResponse,
    AssignmentResponse,
    ProgramCreate,
    ProgramResponse,
    WorkoutCreate,
    WorkoutResponse,
)
from services.program_assignment import assign_program
from services.program_authoring import add_workout, create_program

router = APIRouter(prefix="/v1/programs", tags=["programs"])


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
def create_program_endpoint(
    request: ProgramCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    return create_program(
        db,
        caller,
        name=request.name,
        description=request.description,
        coach_id=request.coach_id,
    )


@router.post("/{program_id}/workouts", response_model=WorkoutResponse, status_code=status.HTTP_201_CREATED)
def add_workout_endpoint(
    program_id: UUID,
    request: WorkoutCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    return add_workout(
        db,
        caller,
        program_id=program_id,
        target_muscle=request.target_muscle,
        description=request.description,
        sets=request.sets,
        weight_equipment=request.weight_equipment,
    )


@router.post(
    "/{program_id}/assignments",
    response_model=AssignProgramResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_program_endpoint(
    program_id: UUID,
    request: AssignProgramRequest,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """
    Assign a program to a user and initialize one pending progress entry per workout.

    Re-assigning the same program to the same user is rejected with 409.
    """
    assignment, created = assign_program(db, caller, user_id=request.user_id, program_id=program_id)
    return AssignProgramResponse(
        message="Program assigned and progress initialized",
        assignment=AssignmentResponse.model_validate(assignment),
        progress_entries=created,
    )
