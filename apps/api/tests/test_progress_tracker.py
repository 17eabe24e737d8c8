"""
Workout progress and derived program completion.

Covers:
- completion only after every workout is done, in any order
- completed_at stamped once, even when the last workout is marked again
  or another transaction stamps it mid-way
- no vacuous completion for zero-workout programs
- clients limited to their own progress
"""
from datetime import datetime
from itertools import permutations
from uuid import uuid4

import pytest
from sqlalchemy import update

import services.progress_tracker as progress_tracker
from core.exceptions import ForbiddenError, NotFoundError
from models import UserProgram, UserProgress
from services.program_assignment import assign_program
from services.program_authoring import add_workout
from services.progress_tracker import count_unfinished, mark_workout_done


@pytest.fixture
def assigned(db_session, as_caller, coach_user, client_user, program):
    assignment, _ = assign_program(db_session, as_caller(coach_user), user_id=client_user.id, program_id=program.id)
    return assignment


class TestMarkWorkoutDone:
    def test_first_workout_leaves_program_incomplete(self, db_session, as_caller, client_user, assigned, workouts):
        result = mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=workouts[0].id)

        assert result.entry.status == "done"
        assert result.program_completed is False
        assert result.completed_at is None
        assert count_unfinished(db_session, user_id=client_user.id, program_id=assigned.program_id) == 1

    def test_last_workout_stamps_completion(self, db_session, as_caller, client_user, assigned, workouts):
        caller = as_caller(client_user)
        mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[0].id)
        result = mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[1].id)

        assert result.program_completed is True
        assert result.newly_completed is True
        assert result.completed_at is not None
        db_session.refresh(assigned)
        assert assigned.completed_at == result.completed_at

    @pytest.mark.parametrize("order", list(permutations(range(3))))
    def test_any_order_completes_exactly_once(
        self, db_session, as_caller, coach_user, client_user, make_program, order
    ):
        program = make_program(coach_user, workouts=3, name="Three Day Split")
        assign_program(db_session, as_caller(coach_user), user_id=client_user.id, program_id=program.id)
        workout_ids = [w.id for w in program.workouts]

        stamps = []
        for i in order:
            result = mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=workout_ids[i])
            stamps.append(result.newly_completed)

        assert stamps == [False, False, True]

    def test_repeating_final_completion_does_not_restamp(self, db_session, as_caller, client_user, assigned, workouts):
        caller = as_caller(client_user)
        for w in workouts:
            mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=w.id)
        db_session.refresh(assigned)
        first_stamp = assigned.completed_at

        again = mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[-1].id)

        assert again.newly_completed is False
        assert again.program_completed is True
        assert again.completed_at == first_stamp

    def test_existing_stamp_is_never_overwritten(self, db_session, as_caller, client_user, assigned, workouts):
        # Simulates a racing transaction that stamped first.
        earlier = datetime(2020, 1, 1, 12, 0, 0)
        assigned.completed_at = earlier
        db_session.commit()

        caller = as_caller(client_user)
        for w in workouts:
            result = mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=w.id)

        assert result.newly_completed is False
        db_session.refresh(assigned)
        assert assigned.completed_at.replace(tzinfo=None) == earlier

    def test_stamp_landing_between_count_and_update_is_kept(
        self, db_session, as_caller, client_user, assigned, workouts, monkeypatch
    ):
        caller = as_caller(client_user)
        mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[0].id)

        racing_stamp = datetime(2021, 6, 1, 8, 30, 0)
        real_count = progress_tracker.count_unfinished

        def count_then_competing_stamp(db, *, user_id, program_id):
            remaining = real_count(db, user_id=user_id, program_id=program_id)
            db.execute(
                update(UserProgram)
                .where(UserProgram.id == assigned.id)
                .values(completed_at=racing_stamp)
                .execution_options(synchronize_session=False)
            )
            return remaining

        monkeypatch.setattr(progress_tracker, "count_unfinished", count_then_competing_stamp)

        result = mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[1].id)

        assert result.newly_completed is False
        assert result.program_completed is True
        assert result.completed_at.replace(tzinfo=None) == racing_stamp

    def test_workout_not_assigned_is_not_found(self, db_session, as_caller, coach_user, client_user, make_program):
        other = make_program(coach_user, workouts=1, name="Not Assigned")
        with pytest.raises(NotFoundError):
            mark_workout_done(
                db_session, as_caller(client_user), user_id=client_user.id, workout_id=other.workouts[0].id
            )

    def test_unknown_workout_is_not_found(self, db_session, as_caller, client_user, assigned):
        with pytest.raises(NotFoundError):
            mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=uuid4())

    def test_zero_workout_program_never_completes(
        self, db_session, as_caller, coach_user, client_user, make_program, program, workouts
    ):
        empty = make_program(coach_user, workouts=0, name="Empty")
        assignment, _ = assign_program(db_session, as_caller(coach_user), user_id=client_user.id, program_id=empty.id)

        # A workout from a different program cannot complete the empty one.
        with pytest.raises(NotFoundError):
            mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=workouts[0].id)

        db_session.refresh(assignment)
        assert assignment.completed_at is None

    def test_workout_added_after_assignment_can_complete_program(
        self, db_session, as_caller, coach_user, client_user, make_program
    ):
        empty = make_program(coach_user, workouts=0, name="Grows Later")
        assignment, _ = assign_program(db_session, as_caller(coach_user), user_id=client_user.id, program_id=empty.id)

        workout = add_workout(
            db_session,
            as_caller(coach_user),
            program_id=empty.id,
            target_muscle="core",
            description="Planks",
            sets=3,
        )
        result = mark_workout_done(db_session, as_caller(client_user), user_id=client_user.id, workout_id=workout.id)

        assert result.program_completed is True
        db_session.refresh(assignment)
        assert assignment.completed_at is not None

    def test_client_cannot_mark_someone_elses_workout(
        self, db_session, as_caller, make_user, client_user, assigned, workouts
    ):
        stranger = make_user("client", name="Stranger")
        with pytest.raises(ForbiddenError):
            mark_workout_done(db_session, as_caller(stranger), user_id=client_user.id, workout_id=workouts[0].id)

        entry = (
            db_session.query(UserProgress)
            .filter(UserProgress.user_id == client_user.id, UserProgress.workout_id == workouts[0].id)
            .one()
        )
        assert entry.status == "pending"

    def test_coach_can_mark_for_client(self, db_session, as_caller, coach_user, client_user, assigned, workouts):
        result = mark_workout_done(db_session, as_caller(coach_user), user_id=client_user.id, workout_id=workouts[0].id)
        assert result.entry.status == "done"

    def test_done_never_reverts(self, db_session, as_caller, client_user, assigned, workouts):
        caller = as_caller(client_user)
        mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[0].id)
        mark_workout_done(db_session, caller, user_id=client_user.id, workout_id=workouts[0].id)

        statuses = {
            e.workout_id: e.status
            for e in db_session.query(UserProgress).filter(UserProgress.user_id == client_user.id)
        }
        assert statuses[workouts[0].id] == "done"
        assert statuses[workouts[1].id] == "pending"
        assert db_session.query(UserProgram).filter(UserProgram.completed_at.isnot(None)).count() == 0
