"""Start or resume the workout for a client's current program day.

The program day, ``(program_assignment_id, program_schedule_id)``, is the
idempotency key; the same template may run on several days. Lookups go
in-progress session first, then open log, then create. A partial unique
index on in-progress sessions makes the losing side of a concurrent start
fail its insert, after which it drops its own assignment and returns the
winner's.

Before the tag columns are migrated every tagged query fails; the resolver
then matches on template only and reports ``migration_needed``. Any other
database error propagates.
"""
import logging
from collections import namedtuple
from datetime import datetime

from flask import current_app
from sqlalchemy import insert, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fitcoach.errors import Conflict, InvalidProgramConfiguration, NotFound, ProgramInactive
from fitcoach.extensions import db
from fitcoach.models import (
    ProgramAssignment,
    WorkoutAssignment,
    WorkoutLog,
    WorkoutSession,
    WorkoutTemplate,
)
from fitcoach.services.program_progress import get_current_workout
from fitcoach.utils.capabilities import grant_write

logger = logging.getLogger(__name__)

REUSE_SESSION = "in_progress_session_by_program_day"
REUSE_LOG = "incomplete_log_by_program_day"
REUSE_TEMPLATE = "existing_assignment_template_fallback"

Reuse = namedtuple("Reuse", "assignment_id reason session_id log_id")

TAG_COLUMNS = ("program_assignment_id", "program_schedule_id")

_RACE_LOST = object()


def is_missing_tag_column(exc):
    """True when ``exc`` is the database rejecting an unmigrated tag column."""
    message = str(getattr(exc, "orig", exc)).lower()
    if "no such column" not in message and "does not exist" not in message and "unknown column" not in message:
        return False
    return any(column in message for column in TAG_COLUMNS)


def find_program_day_workout(client_id, program_assignment_id, program_schedule_id):
    """Existing workout for this exact program day, or None.

    Raises SQLAlchemyError when the tag columns do not exist yet. Logs whose
    session was cancelled are not resumed.
    """
    session = (
        WorkoutSession.query
        .filter_by(
            client_id=client_id,
            program_assignment_id=program_assignment_id,
            program_schedule_id=program_schedule_id,
            status="in_progress",
        )
        .order_by(WorkoutSession.started_at.desc(), WorkoutSession.id.desc())
        .first()
    )
    if session:
        return Reuse(session.assignment_id, REUSE_SESSION, session.id, None)

    log = (
        WorkoutLog.query
        .outerjoin(WorkoutSession, WorkoutLog.workout_session_id == WorkoutSession.id)
        .filter(
            WorkoutLog.client_id == client_id,
            WorkoutLog.program_assignment_id == program_assignment_id,
            WorkoutLog.program_schedule_id == program_schedule_id,
            WorkoutLog.completed_at.is_(None),
            or_(WorkoutSession.id.is_(None), WorkoutSession.status != "cancelled"),
        )
        .order_by(WorkoutLog.started_at.desc(), WorkoutLog.id.desc())
        .first()
    )
    if log:
        return Reuse(log.workout_assignment_id, REUSE_LOG, log.workout_session_id, log.id)
    return None


def find_template_workout(client_id, template_id):
    assignment = (
        WorkoutAssignment.query
        .filter(
            WorkoutAssignment.client_id == client_id,
            WorkoutAssignment.workout_template_id == template_id,
            WorkoutAssignment.status.in_(("assigned", "active")),
        )
        .order_by(WorkoutAssignment.created_at.desc(), WorkoutAssignment.id.desc())
        .first()
    )
    if assignment:
        return Reuse(assignment.id, REUSE_TEMPLATE, None, None)
    return None


def _insert_session(assignment, day, tagged, now):
    values = {
        "assignment_id": assignment.id,
        "client_id": assignment.client_id,
        "status": "in_progress",
        "started_at": now,
    }
    if tagged:
        values["program_assignment_id"] = day["program_assignment_id"]
        values["program_schedule_id"] = day["program_schedule_id"]
    result = db.session.execute(insert(WorkoutSession.__table__).values(**values))
    db.session.commit()
    return result.inserted_primary_key[0]


def _insert_log(assignment, session_id, day, tagged, now):
    values = {
        "workout_assignment_id": assignment.id,
        "workout_session_id": session_id,
        "client_id": assignment.client_id,
        "started_at": now,
    }
    if tagged:
        values["program_assignment_id"] = day["program_assignment_id"]
        values["program_schedule_id"] = day["program_schedule_id"]
    result = db.session.execute(insert(WorkoutLog.__table__).values(**values))
    db.session.commit()
    return result.inserted_primary_key[0]


def _create_workout(write_cap, day, tagged, now):
    """Create assignment, then session and log as best-effort companions.

    Returns ``(assignment_id, session_id, log_id)`` or ``_RACE_LOST``.
    """
    template = db.session.get(WorkoutTemplate, day["template_id"])
    if not template:
        raise NotFound(f"Workout template {day['template_id']} not found")

    program_assignment = db.session.get(ProgramAssignment, day["program_assignment_id"])
    write_cap.require_owner(program_assignment.client_id)

    position_label = day["position_label"]
    assignment = WorkoutAssignment(
        workout_template_id=template.id,
        client_id=program_assignment.client_id,
        coach_id=program_assignment.coach_id,
        name=f"{position_label}: {template.name}",
        description=template.description,
        estimated_duration=template.estimated_duration or current_app.config.get("DEFAULT_ESTIMATED_DURATION", 60),
        assigned_date=now.date(),
        scheduled_date=now.date(),
        status="assigned",
        notes=f"Program: {day['program_name']} - {position_label}",
    )
    db.session.add(assignment)
    db.session.commit()
    assignment_id = assignment.id

    session_id = None
    try:
        session_id = _insert_session(assignment, day, tagged, now)
    except IntegrityError:
        db.session.rollback()
        logger.info(
            "Lost start race for client %s program day %s/%s, dropping assignment %s",
            assignment.client_id, day["program_assignment_id"], day["program_schedule_id"], assignment_id,
        )
        db.session.delete(db.session.get(WorkoutAssignment, assignment_id))
        db.session.commit()
        return _RACE_LOST
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Failed to create workout session for assignment {assignment_id}: {e}")

    log_id = None
    try:
        log_id = _insert_log(assignment, session_id, day, tagged, now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Failed to create workout log for assignment {assignment_id}: {e}")

    return assignment_id, session_id, log_id


def start_workout_day(cap, client_id=None, now=None):
    """Return the workout for the client's current program day, creating it once.

    ``cap`` is the caller's ReadCapability; starting another user's workout
    raises Forbidden before anything is read.
    """
    client_id = cap.user_id if client_id is None else int(client_id)
    write_cap = grant_write(cap, client_id)
    now = now or datetime.utcnow()

    day = get_current_workout(client_id)
    if day["status"] != "active":
        payload = {k: day[k] for k in ("program_assignment_id", "program_id") if k in day}
        raise ProgramInactive(day.get("message", "No active program"), day["status"], payload)

    missing = [k for k in ("template_id", "program_schedule_id", "program_assignment_id") if not day.get(k)]
    if missing:
        raise InvalidProgramConfiguration("Program day is not fully configured", payload={"missing": missing})

    response = {
        "template_id": day["template_id"],
        "week_number": day["week_number"],
        "day_position": day["day_position"],
        "position_label": day["position_label"],
        "program_assignment_id": day["program_assignment_id"],
        "program_schedule_id": day["program_schedule_id"],
        "migration_needed": False,
    }

    for attempt in range(2):
        tagged = True
        try:
            reuse = find_program_day_workout(client_id, day["program_assignment_id"], day["program_schedule_id"])
        except SQLAlchemyError as e:
            db.session.rollback()
            if not is_missing_tag_column(e):
                raise
            logger.warning(f"Program-day tags unavailable, matching by template: {e}")
            tagged = False
            response["migration_needed"] = True
            reuse = find_template_workout(client_id, day["template_id"])

        if reuse:
            logger.info("Reusing assignment %s for client %s (%s)", reuse.assignment_id, client_id, reuse.reason)
            response.update(
                workout_assignment_id=reuse.assignment_id,
                reused_existing=True,
                reuse_reason=reuse.reason,
                session_id=reuse.session_id,
                log_id=reuse.log_id,
            )
            return response

        created = _create_workout(write_cap, day, tagged, now)
        if created is _RACE_LOST:
            continue

        assignment_id, session_id, log_id = created
        logger.info(
            "Started assignment %s for client %s at %s",
            assignment_id, client_id, day["position_label"],
        )
        response.update(
            workout_assignment_id=assignment_id,
            reused_existing=False,
            reuse_reason=None,
            session_id=session_id,
            log_id=log_id,
        )
        return response

    raise Conflict(
        "Workout for this program day was started concurrently, retry",
        payload={"program_schedule_id": day["program_schedule_id"]},
    )
