"""
Progress API Router

Marks individual workouts done; program completion is derived server-side.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_caller
from core.database import get_db
from core.permissions import Caller
from schemas import MarkWorkoutRequest, MarkWorkoutResponse, ProgressEntryResponse
from services.progress_tracker import mark_workout_done

router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.patch("/mark-workout", response_model=MarkWorkoutResponse)
def mark_workout_endpoint(
    request: MarkWorkoutRequest,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """
    Mark one workout done for a user.

    Clients may only mark their own workouts; coaches and admins may mark any.
    Marking an already-done workout is accepted and does not re-stamp completion.
    """
    result = mark_workout_done(db, caller, user_id=request.user_id, workout_id=request.workout_id)
    return MarkWorkoutResponse(
        message="Workout marked as done",
        progress=ProgressEntryResponse.model_validate(result.entry),
        program_id=result.program_id,
        program_completed=result.program_completed,
        completed_at=result.completed_at,
    )
