"""
Post-completion program feedback.

Preconditions are checked in a fixed order, each with its own error:
assigned -> completed -> not already submitted. Feedback is write-once.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import unit_of_work
from core.exceptions import (
    DuplicateFeedbackError,
    NotAssignedError,
    NotCompletedError,
    ValidationError,
)
from core.permissions import Action, Caller, authorize
from models import ProgramFeedback, UserProgram

logger = logging.getLogger(__name__)


def submit_feedback(
    db: Session,
    caller: Optional[Caller],
    *,
    user_id: UUID,
    program_id: UUID,
    message: str,
) -> ProgramFeedback:
    authorize(caller, Action.SUBMIT_FEEDBACK, subject_user_id=user_id)

    message = (message or "").strip()
    if not message:
        raise ValidationError("Feedback message must not be empty", field="message")

    try:
        with unit_of_work(db):
            assignment = (
                db.query(UserProgram)
                .filter(UserProgram.user_id == user_id, UserProgram.program_id == program_id)
                .first()
            )
            if assignment is None:
                raise NotAssignedError()
            if assignment.completed_at is None:
                raise NotCompletedError()

            already = (
                db.query(ProgramFeedback.id)
                .filter(ProgramFeedback.user_id == user_id, ProgramFeedback.program_id == program_id)
                .first()
            )
            if already is not None:
                raise DuplicateFeedbackError()

            feedback = ProgramFeedback(user_id=user_id, program_id=program_id, message=message)
            db.add(feedback)
            db.flush()
    except IntegrityError:
        raise DuplicateFeedbackError()

    logger.info(
        "Program feedback submitted",
        extra={"extra_fields": {"user_id": str(user_id), "program_id": str(program_id)}},
    )
    return feedback
