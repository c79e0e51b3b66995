"""Logging sets into an open workout and closing it out.

A workout log stays open (``completed_at`` NULL) until it is completed;
completing it also completes its session and assignment, so the next start
on the same program day creates a fresh workout. Cancelling a session
leaves its log open but the resolver no longer resumes it.
"""
import logging
from datetime import datetime

from fitcoach.errors import Conflict, InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import WorkoutAssignment, WorkoutBlock, WorkoutLog, WorkoutSession, WorkoutSetLog
from fitcoach.schemas.program import load_payload, set_log_schema

logger = logging.getLogger(__name__)


def _get_open_log(write_cap, log_id):
    log = db.session.get(WorkoutLog, log_id)
    if not log:
        raise NotFound(f"Workout log {log_id} not found")
    write_cap.require_owner(log.client_id)

    if log.completed_at is not None:
        raise Conflict("Workout log is already completed", payload={"log_id": log.id})
    if log.workout_session_id:
        session = db.session.get(WorkoutSession, log.workout_session_id)
        if session and session.status == "cancelled":
            raise Conflict("Workout session was cancelled", payload={"session_id": session.id})
    return log


def _next_set_number(log, exercise_id, block_id):
    count = WorkoutSetLog.query.filter_by(workout_log_id=log.id, exercise_id=exercise_id, block_id=block_id).count()
    return count + 1


def log_set(write_cap, log_id, payload, now=None):
    """Record one performed set against an open workout log."""
    data = load_payload(set_log_schema, payload)
    data.pop("client_id", None)
    log = _get_open_log(write_cap, log_id)

    block_id = data.get("block_id")
    if block_id is not None:
        block = db.session.get(WorkoutBlock, block_id)
        assignment = db.session.get(WorkoutAssignment, log.workout_assignment_id)
        if not block or block.template_id != assignment.workout_template_id:
            raise InvalidArgument("Block is not part of this workout", payload={"block_id": block_id})

    if data.get("set_number") is None:
        data["set_number"] = _next_set_number(log, data["exercise_id"], block_id)

    set_log = WorkoutSetLog(
        workout_log_id=log.id,
        client_id=log.client_id,
        completed_at=now or datetime.utcnow(),
        **data,
    )
    db.session.add(set_log)
    db.session.flush()
    return set_log


def workout_totals(log, duration_minutes=None, now=None):
    sets = log.set_logs
    if duration_minutes is None:
        started_at = log.started_at or now
        duration_minutes = round((now - started_at).total_seconds() / 60)
    return {
        "sets": len(sets),
        "reps": sum(s.reps_completed or 0 for s in sets),
        "volume_kg": sum((s.weight_kg or 0) * (s.reps_completed or 0) for s in sets),
        "duration_minutes": duration_minutes,
    }


def complete_workout(write_cap, log_id, duration_minutes=None, now=None):
    """Close the log, its session and its assignment.

    Returns ``(log, totals)``; totals are summed from this log's sets only.
    """
    log = _get_open_log(write_cap, log_id)
    now = now or datetime.utcnow()
    totals = workout_totals(log, duration_minutes, now)

    log.completed_at = now
    if log.workout_session_id:
        session = db.session.get(WorkoutSession, log.workout_session_id)
        if session and session.status == "in_progress":
            session.status = "completed"
            session.completed_at = now

    assignment = db.session.get(WorkoutAssignment, log.workout_assignment_id)
    if assignment:
        assignment.status = "completed"

    db.session.flush()
    logger.info("Completed workout log %s for client %s (%d sets)", log.id, log.client_id, totals["sets"])
    return log, totals


def cancel_session(write_cap, session_id, now=None):
    session = db.session.get(WorkoutSession, session_id)
    if not session:
        raise NotFound(f"Workout session {session_id} not found")
    write_cap.require_owner(session.client_id)
    if session.status != "in_progress":
        raise Conflict(f"Workout session is already {session.status}", payload={"session_id": session.id})

    session.status = "cancelled"
    session.completed_at = now or datetime.utcnow()

    assignment = db.session.get(WorkoutAssignment, session.assignment_id)
    if assignment and assignment.status != "completed":
        assignment.status = "skipped"

    db.session.flush()
    logger.info("Cancelled workout session %s for client %s", session.id, session.client_id)
    return session
