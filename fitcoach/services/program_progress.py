"""Program assignments and the client's pointer into the schedule.

The pointer (``ProgramProgress``) holds indices, not week numbers: weeks are
the sorted distinct ``week_number`` values of the schedule and days are each
week's rows sorted by ``day_of_week``. Gaps in either are allowed.
"""
import logging
from datetime import date

from sqlalchemy.exc import IntegrityError

from fitcoach.errors import Conflict, InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import (
    ProgramAssignment,
    ProgramDayCompletion,
    ProgramProgress,
    ProgramSchedule,
    User,
)
from fitcoach.models.program_assignment import ASSIGNMENT_STATUSES
from fitcoach.services.program_schedule import get_program
from fitcoach.services.progression_rules import copy_program_rules_to_client, delete_client_progression_rules

logger = logging.getLogger(__name__)


class ScheduleStructure:
    def __init__(self, rows):
        self.week_numbers = sorted({row.week_number for row in rows})
        self.days_by_week = {week: [] for week in self.week_numbers}
        for row in sorted(rows, key=lambda r: (r.week_number, r.day_of_week)):
            self.days_by_week[row.week_number].append(row)

    def __bool__(self):
        return bool(self.week_numbers)

    def days(self, week_index):
        if not 0 <= week_index < len(self.week_numbers):
            return []
        return self.days_by_week[self.week_numbers[week_index]]

    def row(self, week_index, day_index):
        days = self.days(week_index)
        if not 0 <= day_index < len(days):
            return None
        return days[day_index]

    def next_position(self, week_index, day_index):
        """Index pair after (week_index, day_index), or None at the end."""
        if day_index + 1 < len(self.days(week_index)):
            return week_index, day_index + 1
        if week_index + 1 < len(self.week_numbers):
            return week_index + 1, 0
        return None


def build_schedule_structure(program_id):
    rows = ProgramSchedule.query.filter_by(program_id=program_id).all()
    return ScheduleStructure(rows)


def position_labels(week_number, day_position):
    week_label = f"Week {week_number}"
    day_label = f"Day {day_position}"
    return week_label, day_label, f"{week_label} • {day_label}"


def get_active_assignment(client_id):
    return (
        ProgramAssignment.query
        .filter_by(client_id=client_id, status="active")
        .order_by(ProgramAssignment.created_at.desc(), ProgramAssignment.id.desc())
        .first()
    )


def get_or_create_progress(assignment):
    progress = ProgramProgress.query.filter_by(program_assignment_id=assignment.id).first()
    if progress:
        return progress
    progress = ProgramProgress(
        program_assignment_id=assignment.id,
        current_week_index=0,
        current_day_index=0,
        is_completed=False,
    )
    db.session.add(progress)
    try:
        db.session.commit()
    except IntegrityError:
        # created concurrently
        db.session.rollback()
        progress = ProgramProgress.query.filter_by(program_assignment_id=assignment.id).one()
    return progress


def get_current_workout(client_id):
    """Resolve the client's current program day.

    Returns a dict whose ``status`` is one of ``active``, ``completed``,
    ``no_program``, ``no_schedule`` or ``invalid_state``.
    """
    assignment = get_active_assignment(client_id)
    if not assignment:
        return {"status": "no_program", "message": "No active program assignment"}

    program = assignment.program
    info = {
        "program_assignment_id": assignment.id,
        "program_id": assignment.program_id,
        "program_name": assignment.name or (program.name if program else "Program"),
    }

    progress = get_or_create_progress(assignment)
    info["current_week_index"] = progress.current_week_index
    info["current_day_index"] = progress.current_day_index

    if progress.is_completed:
        info.update(status="completed", message="Program completed", is_completed=True)
        return info

    structure = build_schedule_structure(assignment.program_id)
    if not structure:
        info.update(status="no_schedule", message="No training days configured in program schedule")
        return info

    row = structure.row(progress.current_week_index, progress.current_day_index)
    if row is None:
        info.update(
            status="invalid_state",
            message=(
                f"Invalid progress state: week_index={progress.current_week_index}, "
                f"day_index={progress.current_day_index}"
            ),
            total_weeks=len(structure.week_numbers),
        )
        return info

    days = structure.days(progress.current_week_index)
    week_label, day_label, position_label = position_labels(row.week_number, progress.current_day_index + 1)
    info.update(
        status="active",
        message="Workout ready",
        is_completed=False,
        week_label=week_label,
        day_label=day_label,
        position_label=position_label,
        template_id=row.template_id,
        program_schedule_id=row.id,
        week_number=row.week_number,
        day_of_week=row.day_of_week,
        day_position=progress.current_day_index + 1,
        total_weeks=len(structure.week_numbers),
        days_in_current_week=len(days),
    )
    return info


def advance_progress(client_id, completed_by=None, notes=None):
    """Mark the current program day complete and move the pointer.

    Returns a dict with ``status`` ``advanced``, ``already_completed`` or
    ``completed``. Commits.
    """
    assignment = get_active_assignment(client_id)
    if not assignment:
        raise NotFound("No active program assignment", payload={"status": "no_program"})

    progress = get_or_create_progress(assignment)
    week_index = progress.current_week_index
    day_index = progress.current_day_index
    result = {
        "program_assignment_id": assignment.id,
        "program_id": assignment.program_id,
        "current_week_index": week_index,
        "current_day_index": day_index,
    }

    if progress.is_completed:
        result.update(status="completed", is_completed=True, message="Program already completed")
        return result

    structure = build_schedule_structure(assignment.program_id)
    if structure.row(week_index, day_index) is None:
        raise InvalidArgument(
            "Progress does not point at a scheduled day",
            payload={"current_week_index": week_index, "current_day_index": day_index},
        )

    db.session.add(ProgramDayCompletion(
        program_assignment_id=assignment.id,
        week_index=week_index,
        day_index=day_index,
        completed_by=completed_by,
        notes=notes,
    ))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Day %s/%s of assignment %s already completed", week_index, day_index, assignment.id)
        result.update(status="already_completed", message="Day already completed")
        return result

    position = structure.next_position(week_index, day_index)
    if position is None:
        values = {"is_completed": True}
        next_week, next_day = week_index, day_index
    else:
        next_week, next_day = position
        values = {"current_week_index": next_week, "current_day_index": next_day}

    updated = ProgramProgress.query.filter_by(
        id=progress.id,
        current_week_index=week_index,
        current_day_index=day_index,
        is_completed=False,
    ).update(values, synchronize_session="fetch")
    db.session.commit()

    if not updated:
        logger.warning("Progress of assignment %s moved concurrently", assignment.id)
        result.update(status="already_completed", message="Day already completed")
        return result

    logger.info(
        "Assignment %s advanced from %s/%s to %s/%s%s",
        assignment.id, week_index, day_index, next_week, next_day,
        " (program completed)" if position is None else "",
    )
    result.update(
        status="advanced",
        message="Program completed" if position is None else "Day completed",
        completed={"week_index": week_index, "day_index": day_index},
        current_week_index=next_week,
        current_day_index=next_day,
        is_completed=position is None,
    )
    return result


def assign_program(program_id, client_id, start_date=None, status="active", coach_id=None):
    """Assign a program to a client: assignment, progress pointer and rule snapshot."""
    program = get_program(program_id)
    client = db.session.get(User, client_id)
    if not client or not client.is_client:
        raise NotFound(f"Client {client_id} not found")
    if status not in ASSIGNMENT_STATUSES:
        raise InvalidArgument(f"Unknown assignment status '{status}'")

    assignment = ProgramAssignment(
        program_id=program.id,
        client_id=client.id,
        coach_id=coach_id or program.coach_id,
        name=program.name,
        start_date=start_date or date.today(),
        duration_weeks=program.duration_weeks,
        status=status,
    )
    db.session.add(assignment)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(
            f"Client {client_id} already has an active assignment of program {program_id}"
        )

    db.session.add(ProgramProgress(program_assignment_id=assignment.id))
    copy_program_rules_to_client(program.id, assignment.id, client.id)
    db.session.flush()
    logger.info("Assigned program %s to client %s (assignment %s)", program.id, client.id, assignment.id)
    return assignment


def update_assignment_status(assignment_id, status):
    assignment = db.session.get(ProgramAssignment, assignment_id)
    if not assignment:
        raise NotFound(f"Program assignment {assignment_id} not found")
    if status not in ASSIGNMENT_STATUSES:
        raise InvalidArgument(f"Unknown assignment status '{status}'")

    assignment.status = status
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Client already has an active assignment of this program")

    if status == "cancelled":
        deleted = delete_client_progression_rules(assignment.id)
        logger.info("Cancelled assignment %s, dropped %d client rules", assignment.id, deleted)
    return assignment
