from flask import request, jsonify

from fitcoach.errors import InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import ProgressionRule
from fitcoach.schemas.program import load_payload, progression_rule_create_schema, replace_exercise_schema
from fitcoach.services.program_schedule import get_schedule_row
from fitcoach.services.progression_rules import (
    create_progression_rule,
    delete_progression_rules,
    get_progression_rules,
    replace_exercise,
    update_progression_rule,
)
from fitcoach.utils.decorators import role_required
from fitcoach.utils.session import commit_session

from . import coach_bp, get_owned_program, COACH_ROLES


def _owned_rule(cap, rule_id):
    rule = db.session.get(ProgressionRule, rule_id)
    if not rule:
        raise NotFound(f"Progression rule {rule_id} not found")
    get_owned_program(cap, rule.program_id)
    return rule


@coach_bp.route("/api/programs/<int:program_id>/progression-rules", methods=["GET"])
@role_required(*COACH_ROLES)
def list_progression_rules(program_id, cap):
    program = get_owned_program(cap, program_id)
    week_number = request.args.get("week_number", type=int)
    schedule_id = request.args.get("schedule_id", type=int)
    if week_number is None or schedule_id is None:
        raise InvalidArgument("week_number and schedule_id query parameters are required")

    rules, is_placeholder = get_progression_rules(program.id, week_number, schedule_id)
    return jsonify({
        "week_number": week_number,
        "program_schedule_id": schedule_id,
        "is_placeholder": is_placeholder,
        "rules": [rule.to_dict() for rule in rules],
    }), 200


@coach_bp.route("/api/programs/<int:program_id>/progression-rules", methods=["POST"])
@role_required(*COACH_ROLES)
def add_progression_rule(program_id, cap):
    program = get_owned_program(cap, program_id)
    data = load_payload(progression_rule_create_schema, request.get_json(silent=True))

    rule = create_progression_rule(
        program.id,
        data["program_schedule_id"],
        data["week_number"],
        data["block_type"],
        data["parameters"],
    )
    commit_session("creating progression rule")
    return jsonify(rule.to_dict()), 201


@coach_bp.route(
    "/api/programs/<int:program_id>/schedule/<int:schedule_id>/progression-rules", methods=["DELETE"]
)
@role_required(*COACH_ROLES)
def clear_progression_rules(program_id, schedule_id, cap):
    program = get_owned_program(cap, program_id)
    row = get_schedule_row(program.id, schedule_id)
    week_number = request.args.get("week_number", default=row.week_number, type=int)

    deleted = delete_progression_rules(row.id, week_number)
    commit_session("deleting progression rules")
    return jsonify({"deleted": deleted}), 200


@coach_bp.route("/api/progression-rules/<int:rule_id>", methods=["PATCH"])
@role_required(*COACH_ROLES)
def patch_progression_rule(rule_id, cap):
    """Edit one week's rule; other weeks keep their own values"""
    rule = _owned_rule(cap, rule_id)
    patch = request.get_json(silent=True)
    if not isinstance(patch, dict) or not patch:
        raise InvalidArgument("Request body must be a non-empty JSON object")

    rule = update_progression_rule(rule.id, patch)
    commit_session("updating progression rule")
    return jsonify(rule.to_dict()), 200


@coach_bp.route("/api/progression-rules/<int:rule_id>/replace-exercise", methods=["POST"])
@role_required(*COACH_ROLES)
def replace_rule_exercise(rule_id, cap):
    rule = _owned_rule(cap, rule_id)
    data = load_payload(replace_exercise_schema, request.get_json(silent=True))

    rule = replace_exercise(rule.id, data["exercise_id"])
    commit_session("replacing exercise")
    return jsonify(rule.to_dict()), 200
