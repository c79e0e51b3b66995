"""Tests for program assignments and the client's progress pointer."""

from __future__ import annotations

import pytest

from fitcoach.errors import Conflict, InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import ClientProgressionRule, ProgramDayCompletion, ProgramProgress
from fitcoach.services.program_progress import (
    ScheduleStructure,
    advance_progress,
    assign_program,
    build_schedule_structure,
    get_current_workout,
    position_labels,
    update_assignment_status,
)
from fitcoach.services.program_schedule import set_day


def _progress(assignment):
    return ProgramProgress.query.filter_by(program_assignment_id=assignment.id).one()


class TestScheduleStructure:
    def test_gaps_are_collapsed_into_indices(self, make_program, make_template) -> None:
        program = make_program(duration_weeks=4)
        template = make_template()
        for week, day in [(3, 5), (1, 4), (3, 1), (1, 1)]:
            set_day(program.id, week, day, template.id)

        structure = build_schedule_structure(program.id)
        assert structure.week_numbers == [1, 3]
        assert [row.day_of_week for row in structure.days(1)] == [1, 5]
        assert structure.row(1, 1).week_number == 3
        assert structure.row(2, 0) is None
        assert structure.row(0, 2) is None

    def test_next_position(self, make_program, make_template) -> None:
        program = make_program(duration_weeks=2)
        template = make_template()
        for week, day in [(1, 0), (1, 3), (2, 0)]:
            set_day(program.id, week, day, template.id)

        structure = build_schedule_structure(program.id)
        assert structure.next_position(0, 0) == (0, 1)
        assert structure.next_position(0, 1) == (1, 0)
        assert structure.next_position(1, 0) is None

    def test_empty_schedule_is_falsy(self) -> None:
        assert not ScheduleStructure([])

    def test_position_labels(self) -> None:
        assert position_labels(2, 3) == ("Week 2", "Day 3", "Week 2 • Day 3")


class TestGetCurrentWorkout:
    def test_no_program(self, athlete) -> None:
        assert get_current_workout(athlete.id)["status"] == "no_program"

    def test_active_day(self, enrolled, athlete) -> None:
        info = get_current_workout(athlete.id)

        assert info["status"] == "active"
        assert info["template_id"] == enrolled["upper"].id
        assert info["program_schedule_id"] == enrolled["rows"][(1, 0)].id
        assert info["program_assignment_id"] == enrolled["assignment"].id
        assert info["position_label"] == "Week 1 • Day 1"
        assert info["total_weeks"] == 2
        assert info["days_in_current_week"] == 2
        assert info["program_name"] == "Strength Block"

    def test_missing_progress_created_at_start(self, enrolled, athlete) -> None:
        db.session.delete(_progress(enrolled["assignment"]))
        db.session.commit()

        info = get_current_workout(athlete.id)
        assert info["status"] == "active"
        progress = _progress(enrolled["assignment"])
        assert (progress.current_week_index, progress.current_day_index) == (0, 0)

    def test_no_schedule(self, make_program, athlete) -> None:
        program = make_program()
        assign_program(program.id, athlete.id)
        db.session.commit()
        assert get_current_workout(athlete.id)["status"] == "no_schedule"

    def test_invalid_state(self, enrolled, athlete) -> None:
        progress = _progress(enrolled["assignment"])
        progress.current_week_index = 5
        db.session.commit()

        info = get_current_workout(athlete.id)
        assert info["status"] == "invalid_state"
        assert "week_index=5" in info["message"]

    def test_completed(self, enrolled, athlete) -> None:
        _progress(enrolled["assignment"]).is_completed = True
        db.session.commit()
        assert get_current_workout(athlete.id)["status"] == "completed"

    def test_inactive_assignment_ignored(self, enrolled, athlete) -> None:
        update_assignment_status(enrolled["assignment"].id, "paused")
        db.session.commit()
        assert get_current_workout(athlete.id)["status"] == "no_program"


class TestAdvanceProgress:
    def test_walks_days_then_weeks_then_completes(self, enrolled, athlete, coach) -> None:
        first = advance_progress(athlete.id, completed_by=athlete.id)
        assert first["status"] == "advanced"
        assert first["completed"] == {"week_index": 0, "day_index": 0}
        assert (first["current_week_index"], first["current_day_index"]) == (0, 1)

        second = advance_progress(athlete.id, completed_by=coach.id, notes="Felt strong")
        assert (second["current_week_index"], second["current_day_index"]) == (1, 0)
        assert get_current_workout(athlete.id)["position_label"] == "Week 2 • Day 1"

        advance_progress(athlete.id)
        last = advance_progress(athlete.id)
        assert last["status"] == "advanced"
        assert last["is_completed"] is True
        assert _progress(enrolled["assignment"]).is_completed is True

        assert advance_progress(athlete.id)["status"] == "completed"
        assert ProgramDayCompletion.query.count() == 4

    def test_records_who_completed(self, enrolled, athlete, coach) -> None:
        advance_progress(athlete.id, completed_by=coach.id, notes="Good session")
        completion = ProgramDayCompletion.query.one()
        assert completion.completed_by == coach.id
        assert completion.notes == "Good session"

    def test_duplicate_completion_is_reported(self, enrolled, athlete) -> None:
        db.session.add(ProgramDayCompletion(
            program_assignment_id=enrolled["assignment"].id, week_index=0, day_index=0
        ))
        db.session.commit()

        result = advance_progress(athlete.id)
        assert result["status"] == "already_completed"
        progress = _progress(enrolled["assignment"])
        assert (progress.current_week_index, progress.current_day_index) == (0, 0)

    def test_no_program(self, athlete) -> None:
        with pytest.raises(NotFound) as exc:
            advance_progress(athlete.id)
        assert exc.value.payload["status"] == "no_program"

    def test_pointer_outside_schedule(self, enrolled, athlete) -> None:
        _progress(enrolled["assignment"]).current_day_index = 9
        db.session.commit()
        with pytest.raises(InvalidArgument):
            advance_progress(athlete.id)


class TestAssignProgram:
    def test_creates_progress_pointer(self, make_program, athlete) -> None:
        program = make_program()
        assignment = assign_program(program.id, athlete.id)
        db.session.commit()

        progress = _progress(assignment)
        assert (progress.current_week_index, progress.current_day_index, progress.is_completed) == (0, 0, False)
        assert assignment.coach_id == program.coach_id
        assert assignment.status == "active"

    def test_second_active_assignment_conflicts(self, make_program, athlete) -> None:
        program = make_program()
        assign_program(program.id, athlete.id)
        db.session.commit()

        with pytest.raises(Conflict):
            assign_program(program.id, athlete.id)

    def test_inactive_duplicate_allowed(self, make_program, athlete) -> None:
        program = make_program()
        assign_program(program.id, athlete.id)
        db.session.commit()

        paused = assign_program(program.id, athlete.id, status="paused")
        db.session.commit()
        assert paused.status == "paused"

    def test_reactivating_duplicate_conflicts(self, make_program, athlete) -> None:
        program = make_program()
        assign_program(program.id, athlete.id)
        paused = assign_program(program.id, athlete.id, status="paused")
        db.session.commit()

        with pytest.raises(Conflict):
            update_assignment_status(paused.id, "active")

    def test_cancelling_drops_client_rules(self, enrolled, athlete) -> None:
        assignment = enrolled["assignment"]
        assert ClientProgressionRule.query.filter_by(program_assignment_id=assignment.id).count() > 0

        update_assignment_status(assignment.id, "cancelled")
        db.session.commit()
        assert ClientProgressionRule.query.filter_by(program_assignment_id=assignment.id).count() == 0

    def test_pausing_keeps_client_rules(self, enrolled, athlete) -> None:
        assignment = enrolled["assignment"]
        before = ClientProgressionRule.query.filter_by(program_assignment_id=assignment.id).count()

        update_assignment_status(assignment.id, "paused")
        assert ClientProgressionRule.query.filter_by(program_assignment_id=assignment.id).count() == before

    def test_client_must_exist(self, make_program, coach) -> None:
        program = make_program()
        with pytest.raises(NotFound):
            assign_program(program.id, 4242)
        with pytest.raises(NotFound):
            assign_program(program.id, coach.id)

    def test_unknown_status(self, make_program, athlete) -> None:
        program = make_program()
        with pytest.raises(InvalidArgument):
            assign_program(program.id, athlete.id, status="archived")
