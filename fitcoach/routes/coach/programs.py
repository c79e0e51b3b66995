from flask import request, jsonify

from fitcoach.errors import Forbidden, NotFound
from fitcoach.extensions import db
from fitcoach.models import ProgramAssignment
from fitcoach.schemas.program import assignment_status_schema, load_payload, program_assignment_schema
from fitcoach.services.program_progress import assign_program, update_assignment_status
from fitcoach.services.program_schedule import create_program, list_schedule
from fitcoach.services.progression_rules import get_client_progression_rules
from fitcoach.utils.capabilities import is_elevated
from fitcoach.utils.decorators import role_required
from fitcoach.utils.session import commit_session

from . import coach_bp, get_owned_program, COACH_ROLES


def _owned_assignment(cap, assignment_id):
    assignment = db.session.get(ProgramAssignment, assignment_id)
    if not assignment:
        raise NotFound(f"Program assignment {assignment_id} not found")
    if assignment.coach_id != cap.user_id and not is_elevated(cap):
        raise Forbidden("You do not manage this assignment")
    return assignment


@coach_bp.route("/api/programs", methods=["POST"])
@role_required(*COACH_ROLES)
def create_program_view(cap):
    """Create a new program owned by the calling coach"""
    program = create_program(cap.user_id, request.get_json(silent=True))
    commit_session("creating program")
    return jsonify(program.to_dict()), 201


@coach_bp.route("/api/programs/<int:program_id>", methods=["GET"])
@role_required(*COACH_ROLES)
def get_program_view(program_id, cap):
    program = get_owned_program(cap, program_id)
    data = program.to_dict()
    data["schedule"] = [row.to_dict() for row in list_schedule(program.id)]
    return jsonify(data), 200


@coach_bp.route("/api/programs/<int:program_id>/assignments", methods=["POST"])
@role_required(*COACH_ROLES)
def assign_program_view(program_id, cap):
    """Assign a program to a client and snapshot its rules for them"""
    program = get_owned_program(cap, program_id)
    data = load_payload(program_assignment_schema, request.get_json(silent=True))

    assignment = assign_program(
        program.id,
        data["client_id"],
        start_date=data.get("start_date"),
        status=data["status"],
        coach_id=cap.user_id,
    )
    commit_session("assigning program")
    return jsonify(assignment.to_dict()), 201


@coach_bp.route("/api/assignments/<int:assignment_id>", methods=["PATCH"])
@role_required(*COACH_ROLES)
def update_assignment_view(assignment_id, cap):
    assignment = _owned_assignment(cap, assignment_id)
    data = load_payload(assignment_status_schema, request.get_json(silent=True))
    assignment = update_assignment_status(assignment.id, data["status"])
    commit_session("updating assignment status")
    return jsonify(assignment.to_dict()), 200


@coach_bp.route("/api/assignments/<int:assignment_id>/progression-rules", methods=["GET"])
@role_required(*COACH_ROLES)
def get_client_rules_view(assignment_id, cap):
    assignment = _owned_assignment(cap, assignment_id)
    rules = get_client_progression_rules(assignment.id)
    return jsonify({"rules": [rule.to_dict() for rule in rules]}), 200
