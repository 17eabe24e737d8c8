"""
Program Feedback API Endpoints

One feedback message per user per program, accepted only after the
program is complete.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import get_current_caller
from core.database import get_db
from core.permissions import Caller
from schemas import FeedbackCreate, FeedbackResponse
from services.feedback_gate import submit_feedback

router = APIRouter(prefix="/v1/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def submit_feedback_endpoint(
    request: FeedbackCreate,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    return submit_feedback(
        db,
        caller,
        user_id=request.user_id,
        program_id=request.program_id,
        message=request.message,
    )
