from flask import Blueprint, request, jsonify

from fitcoach.schemas.program import (
    advance_progress_schema,
    complete_workout_schema,
    load_payload,
    set_log_schema,
    workout_day_schema,
)
from fitcoach.services.program_progress import advance_progress, get_active_assignment, get_current_workout
from fitcoach.services.workout_day import start_workout_day
from fitcoach.services.workout_logs import cancel_session, complete_workout, log_set
from fitcoach.utils.capabilities import grant_write
from fitcoach.utils.decorators import role_required
from fitcoach.utils.session import commit_session

workout_day_bp = Blueprint("workout_day", __name__)


def _authorize_client(cap, client_id):
    """The client, the coach of their active program, or an admin."""
    if client_id is None or client_id == cap.user_id:
        return grant_write(cap, cap.user_id)
    assignment = get_active_assignment(client_id)
    coaches = (assignment.coach_id,) if assignment else ()
    return grant_write(cap, client_id, also_allowed=coaches)


@workout_day_bp.route("/start", methods=["POST"])
@role_required()
def start(cap):
    """Start or resume the workout for the client's current program day"""
    data = load_payload(workout_day_schema, request.get_json(silent=True))
    result = start_workout_day(cap, data.get("client_id"))
    return jsonify(result), 200


@workout_day_bp.route("/current", methods=["GET"])
@role_required()
def current(cap):
    client_id = request.args.get("client_id", type=int)
    write_cap = _authorize_client(cap, client_id)
    info = get_current_workout(write_cap.owner_id)
    return jsonify(info), 200


@workout_day_bp.route("/advance", methods=["POST"])
@role_required()
def advance(cap):
    """Mark the current program day complete"""
    data = load_payload(advance_progress_schema, request.get_json(silent=True))
    write_cap = _authorize_client(cap, data.get("client_id"))

    result = advance_progress(write_cap.owner_id, completed_by=cap.user_id, notes=data.get("notes"))
    if result["status"] == "advanced":
        return jsonify(result), 200

    result["error"] = "conflict"
    result["msg"] = result.pop("message")
    return jsonify(result), 409


@workout_day_bp.route("/logs/<int:log_id>/sets", methods=["POST"])
@role_required()
def log_set_view(log_id, cap):
    data = load_payload(set_log_schema, request.get_json(silent=True))
    write_cap = _authorize_client(cap, data.get("client_id"))

    set_log = log_set(write_cap, log_id, data)
    commit_session("logging set")
    return jsonify(set_log.to_dict()), 201


@workout_day_bp.route("/logs/<int:log_id>/complete", methods=["POST"])
@role_required()
def complete_workout_view(log_id, cap):
    """Close an open workout log and report its totals"""
    data = load_payload(complete_workout_schema, request.get_json(silent=True))
    write_cap = _authorize_client(cap, data.get("client_id"))

    log, totals = complete_workout(write_cap, log_id, data.get("duration_minutes"))
    commit_session("completing workout")
    return jsonify({"workout_log": log.to_dict(), "totals": totals}), 200


@workout_day_bp.route("/sessions/<int:session_id>/cancel", methods=["POST"])
@role_required()
def cancel_session_view(session_id, cap):
    data = load_payload(workout_day_schema, request.get_json(silent=True))
    write_cap = _authorize_client(cap, data.get("client_id"))

    session = cancel_session(write_cap, session_id)
    commit_session("cancelling workout session")
    return jsonify(session.to_dict()), 200
