"""Tests for logging sets and completing or cancelling a started workout."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from fitcoach.errors import Conflict, Forbidden, InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import WorkoutAssignment, WorkoutBlock, WorkoutLog, WorkoutSession, WorkoutSetLog
from fitcoach.services.workout_day import REUSE_SESSION, start_workout_day
from fitcoach.services.workout_logs import cancel_session, complete_workout, log_set
from fitcoach.utils.capabilities import ReadCapability, grant_write

NOW = datetime(2025, 11, 3, 7, 30)


def _cap(user):
    return ReadCapability(user.id, user.role)


def _write(user):
    return grant_write(_cap(user), user.id)


@pytest.fixture
def started(enrolled, athlete):
    return start_workout_day(_cap(athlete), now=NOW)


class TestLogSet:
    def test_numbers_sets_per_exercise(self, started, athlete) -> None:
        first = log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "weight_kg": 50, "reps_completed": 10})
        second = log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "weight_kg": 50, "reps_completed": 9})
        other = log_set(_write(athlete), started["log_id"], {"exercise_id": 7, "reps_completed": 12})
        db.session.commit()

        assert (first.set_number, second.set_number, other.set_number) == (1, 2, 1)
        assert first.client_id == athlete.id
        assert WorkoutSetLog.query.filter_by(workout_log_id=started["log_id"]).count() == 3

    def test_explicit_set_number_kept(self, started, athlete) -> None:
        set_log = log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "set_number": 4})
        assert set_log.set_number == 4

    def test_block_must_belong_to_workout(self, started, athlete, enrolled) -> None:
        upper_block = WorkoutBlock.query.filter_by(template_id=enrolled["upper"].id).first()
        lower_block = WorkoutBlock.query.filter_by(template_id=enrolled["lower"].id).first()

        set_log = log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "block_id": upper_block.id})
        assert set_log.block_id == upper_block.id
        with pytest.raises(InvalidArgument):
            log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "block_id": lower_block.id})

    def test_invalid_payload(self, started, athlete) -> None:
        with pytest.raises(InvalidArgument):
            log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "reps_completed": -1})
        with pytest.raises(InvalidArgument):
            log_set(_write(athlete), started["log_id"], {"weight_kg": 20})

    def test_other_clients_log(self, started, other_athlete) -> None:
        with pytest.raises(Forbidden):
            log_set(_write(other_athlete), started["log_id"], {"exercise_id": 101})

    def test_unknown_log(self, athlete) -> None:
        with pytest.raises(NotFound):
            log_set(_write(athlete), 4242, {"exercise_id": 101})


class TestCompleteWorkout:
    def test_closes_log_session_and_assignment(self, started, athlete) -> None:
        log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "weight_kg": 40, "reps_completed": 10})
        log_set(_write(athlete), started["log_id"], {"exercise_id": 101, "weight_kg": 45, "reps_completed": 8})

        log, totals = complete_workout(_write(athlete), started["log_id"], now=NOW + timedelta(minutes=50))
        db.session.commit()

        assert log.completed_at == NOW + timedelta(minutes=50)
        assert totals == {"sets": 2, "reps": 18, "volume_kg": 760, "duration_minutes": 50}
        assert db.session.get(WorkoutSession, started["session_id"]).status == "completed"
        assert db.session.get(WorkoutAssignment, started["workout_assignment_id"]).status == "completed"

    def test_given_duration_wins(self, started, athlete) -> None:
        _, totals = complete_workout(_write(athlete), started["log_id"], duration_minutes=35, now=NOW)
        assert totals["duration_minutes"] == 35
        assert totals["sets"] == 0

    def test_completing_twice_conflicts(self, started, athlete) -> None:
        complete_workout(_write(athlete), started["log_id"], now=NOW)
        with pytest.raises(Conflict):
            complete_workout(_write(athlete), started["log_id"], now=NOW)

    def test_next_start_on_same_day_is_fresh(self, started, athlete) -> None:
        complete_workout(_write(athlete), started["log_id"], now=NOW)
        db.session.commit()

        again = start_workout_day(_cap(athlete), now=NOW)
        assert again["reused_existing"] is False
        assert again["program_schedule_id"] == started["program_schedule_id"]
        assert again["workout_assignment_id"] != started["workout_assignment_id"]

    def test_other_client_forbidden(self, started, other_athlete) -> None:
        with pytest.raises(Forbidden):
            complete_workout(_write(other_athlete), started["log_id"], now=NOW)
        assert db.session.get(WorkoutLog, started["log_id"]).completed_at is None


class TestCancelSession:
    def test_cancelled_session_is_not_resumed(self, started, athlete) -> None:
        session = cancel_session(_write(athlete), started["session_id"], now=NOW)
        db.session.commit()

        assert session.status == "cancelled"
        assert db.session.get(WorkoutAssignment, started["workout_assignment_id"]).status == "skipped"

        again = start_workout_day(_cap(athlete), now=NOW)
        assert again["reused_existing"] is False
        assert again["workout_assignment_id"] != started["workout_assignment_id"]

        resumed = start_workout_day(_cap(athlete), now=NOW)
        assert resumed["reuse_reason"] == REUSE_SESSION
        assert resumed["workout_assignment_id"] == again["workout_assignment_id"]

    def test_cancelled_log_takes_no_sets(self, started, athlete) -> None:
        cancel_session(_write(athlete), started["session_id"], now=NOW)
        with pytest.raises(Conflict):
            log_set(_write(athlete), started["log_id"], {"exercise_id": 101})

    def test_only_in_progress_sessions(self, started, athlete) -> None:
        complete_workout(_write(athlete), started["log_id"], now=NOW)
        with pytest.raises(Conflict):
            cancel_session(_write(athlete), started["session_id"], now=NOW)

    def test_unknown_session(self, athlete) -> None:
        with pytest.raises(NotFound):
            cancel_session(_write(athlete), 4242)
