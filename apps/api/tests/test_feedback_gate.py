"""Feedback preconditions: assigned -> completed -> not duplicate."""
import pytest

from core.exceptions import (
    DuplicateFeedbackError,
    ForbiddenError,
    NotAssignedError,
    NotCompletedError,
    ValidationError,
)
from models import ProgramFeedback
from services.feedback_gate import submit_feedback
from services.program_assignment import assign_program
from services.progress_tracker import mark_workout_done


@pytest.fixture
def assigned(db_session, as_caller, coach_user, client_user, program):
    assignment, _ = assign_program(db_session, as_caller(coach_user), user_id=client_user.id, program_id=program.id)
    return assignment


@pytest.fixture
def completed(db_session, as_caller, client_user, assigned, workouts):
    for w in workouts:
        mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=w.id)
    return assigned


class TestSubmitFeedback:
    def test_not_assigned(self, db_session, as_caller, client_user, program):
        with pytest.raises(NotAssignedError) as exc:
            submit_feedback(db_session, as_caller(client_user), user_id=client_user.id, program_id=program.id, message="hi")
        assert exc.value.error_code == "NOT_ASSIGNED"

    def test_not_completed(self, db_session, as_caller, client_user, program, assigned, workouts):
        mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=workouts[0].id)

        with pytest.raises(NotCompletedError) as exc:
            submit_feedback(db_session, as_caller(client_user), user_id=client_user.id, program_id=program.id, message="hi")
        assert exc.value.error_code == "NOT_COMPLETED"
        assert db_session.query(ProgramFeedback).count() == 0

    def test_first_succeeds_second_is_duplicate(self, db_session, as_caller, client_user, program, completed):
        caller = as_caller(client_user)
        feedback = submit_feedback(db_session, caller, user_id=client_user.id, program_id=program.id, message="great")
        assert feedback.message == "great"
        assert feedback.id is not None

        with pytest.raises(DuplicateFeedbackError) as exc:
            submit_feedback(db_session, caller, user_id=client_user.id, program_id=program.id, message="again")
        assert exc.value.error_code == "DUPLICATE_FEEDBACK"
        assert db_session.query(ProgramFeedback).count() == 1

    def test_blank_message_is_validation_error(self, db_session, as_caller, client_user, program, completed):
        with pytest.raises(ValidationError):
            submit_feedback(db_session, as_caller(client_user), user_id=client_user.id, program_id=program.id, message="   ")

    def test_cannot_submit_for_another_user(self, db_session, as_caller, coach_user, client_user, program, completed):
        with pytest.raises(ForbiddenError):
            submit_feedback(db_session, as_caller(coach_user), user_id=client_user.id, program_id=program.id, message="x")
        assert db_session.query(ProgramFeedback).count() == 0
