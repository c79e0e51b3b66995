import logging

from fitcoach.errors import InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import (
    ClientProgressionRule,
    Program,
    ProgramSchedule,
    WorkoutLog,
    WorkoutSession,
)
from fitcoach.schemas.program import load_payload, program_schema
from fitcoach.services.progression_rules import (
    copy_workout_to_program,
    delete_progression_rules,
    materialize_rules,
)
from fitcoach.services.templates import get_template

logger = logging.getLogger(__name__)


def create_program(coach_id, payload):
    data = load_payload(program_schema, payload)
    program = Program(coach_id=coach_id, **data)
    db.session.add(program)
    db.session.flush()
    logger.info("Coach %s created program %s", coach_id, program.id)
    return program


def get_program(program_id):
    program = db.session.get(Program, program_id)
    if not program:
        raise NotFound(f"Program {program_id} not found")
    return program


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _check_week(program, week_number):
    if not _is_int(week_number) or not 1 <= week_number <= program.duration_weeks:
        raise InvalidArgument(
            f"week_number must be between 1 and {program.duration_weeks}",
            payload={"week_number": week_number},
        )


def _check_day(day_of_week):
    if not _is_int(day_of_week) or not 0 <= day_of_week <= 6:
        raise InvalidArgument("day_of_week must be between 0 and 6", payload={"day_of_week": day_of_week})


def get_schedule_row(program_id, schedule_id):
    row = ProgramSchedule.query.filter_by(id=schedule_id, program_id=program_id).first()
    if not row:
        raise NotFound(f"Schedule day {schedule_id} not found in program {program_id}")
    return row


def list_schedule(program_id, week_number=None):
    get_program(program_id)
    query = ProgramSchedule.query.filter_by(program_id=program_id)
    if week_number is not None:
        query = query.filter_by(week_number=week_number)
    return query.order_by(ProgramSchedule.week_number, ProgramSchedule.day_of_week).all()


def _swap_template(row, template):
    row.template_id = template.id
    deleted = delete_progression_rules(row.id, row.week_number)
    rules = copy_workout_to_program(row.program_id, row.id, template.id, row.week_number)
    logger.info(
        "Schedule %s week %s now runs template %s (%d rules replaced by %d)",
        row.id, row.week_number, template.id, deleted, len(rules),
    )
    return rules


def set_day(program_id, week_number, day_of_week, template_id):
    """Upsert the (week, day) slot and materialize its rules.

    Re-setting the same template leaves the week's rules alone; a different
    template replaces them.
    """
    program = get_program(program_id)
    _check_week(program, week_number)
    _check_day(day_of_week)
    template = get_template(template_id)

    row = ProgramSchedule.query.filter_by(
        program_id=program_id, week_number=week_number, day_of_week=day_of_week
    ).first()

    if row is None:
        row = ProgramSchedule(
            program_id=program_id,
            week_number=week_number,
            day_of_week=day_of_week,
            template_id=template.id,
        )
        db.session.add(row)
        db.session.flush()
        materialize_rules(row)
    elif row.template_id != template.id:
        _swap_template(row, template)
    return row


def auto_fill_from_week1(program_id):
    """Copy Week 1's days into weeks 2..duration_weeks.

    Slots that already have a schedule row are skipped, so re-running never
    clobbers a week the coach has changed.
    """
    program = get_program(program_id)
    week_one = ProgramSchedule.query.filter_by(program_id=program_id, week_number=1).order_by(
        ProgramSchedule.day_of_week
    ).all()
    taken = {
        (row.week_number, row.day_of_week)
        for row in ProgramSchedule.query.filter(
            ProgramSchedule.program_id == program_id, ProgramSchedule.week_number > 1
        )
    }

    created = []
    skipped = 0
    for week_number in range(2, program.duration_weeks + 1):
        for source in week_one:
            if (week_number, source.day_of_week) in taken:
                skipped += 1
                continue
            row = ProgramSchedule(
                program_id=program_id,
                week_number=week_number,
                day_of_week=source.day_of_week,
                template_id=source.template_id,
            )
            db.session.add(row)
            db.session.flush()
            materialize_rules(row)
            created.append(row)

    logger.info("Auto-filled program %s: %d days created, %d skipped", program_id, len(created), skipped)
    return created


def replace_template(program_id, schedule_id, new_template_id):
    """Point a schedule day at another template and rebuild that week's rules.

    Old rules are deleted and flushed before the new ones are written.
    """
    row = get_schedule_row(program_id, schedule_id)
    template = get_template(new_template_id)
    rules = _swap_template(row, template)
    return row, rules


def remove_day(program_id, schedule_id):
    row = get_schedule_row(program_id, schedule_id)
    delete_progression_rules(row.id, row.week_number)

    # keep execution history, just drop the link to the removed day
    for model in (WorkoutSession, WorkoutLog, ClientProgressionRule):
        model.query.filter_by(program_schedule_id=row.id).update(
            {"program_schedule_id": None}, synchronize_session="fetch"
        )

    db.session.delete(row)
    db.session.flush()
    logger.info("Removed schedule day %s from program %s", schedule_id, program_id)
