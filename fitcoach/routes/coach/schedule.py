from flask import request, jsonify

from fitcoach.schemas.program import load_payload, replace_template_schema, schedule_day_schema
from fitcoach.services.program_schedule import (
    auto_fill_from_week1,
    list_schedule,
    remove_day,
    replace_template,
    set_day,
)
from fitcoach.utils.decorators import role_required
from fitcoach.utils.session import commit_session

from . import coach_bp, get_owned_program, get_owned_template, COACH_ROLES


@coach_bp.route("/api/programs/<int:program_id>/schedule", methods=["GET"])
@role_required(*COACH_ROLES)
def get_schedule(program_id, cap):
    program = get_owned_program(cap, program_id)
    week_number = request.args.get("week_number", type=int)
    rows = list_schedule(program.id, week_number)
    return jsonify({"schedule": [row.to_dict() for row in rows]}), 200


@coach_bp.route("/api/programs/<int:program_id>/schedule", methods=["PUT"])
@role_required(*COACH_ROLES)
def set_schedule_day(program_id, cap):
    """Assign a template to one (week, day) and materialize its rules"""
    program = get_owned_program(cap, program_id)
    data = load_payload(schedule_day_schema, request.get_json(silent=True))
    template = get_owned_template(cap, data["template_id"])

    row = set_day(program.id, data["week_number"], data["day_of_week"], template.id)
    commit_session("saving schedule day")
    return jsonify({"schedule_id": row.id, "schedule": row.to_dict()}), 200


@coach_bp.route("/api/programs/<int:program_id>/schedule/<int:schedule_id>", methods=["DELETE"])
@role_required(*COACH_ROLES)
def delete_schedule_day(program_id, schedule_id, cap):
    program = get_owned_program(cap, program_id)
    remove_day(program.id, schedule_id)
    commit_session("removing schedule day")
    return jsonify({"msg": "Schedule day removed"}), 200


@coach_bp.route("/api/programs/<int:program_id>/schedule/auto-fill", methods=["POST"])
@role_required(*COACH_ROLES)
def auto_fill_schedule(program_id, cap):
    """Copy week 1 into every later week, keeping days already set"""
    program = get_owned_program(cap, program_id)
    created = auto_fill_from_week1(program.id)
    commit_session("auto-filling schedule")
    return jsonify({
        "created": [row.to_dict() for row in created],
        "schedule": [row.to_dict() for row in list_schedule(program.id)],
    }), 200


@coach_bp.route("/api/programs/<int:program_id>/schedule/<int:schedule_id>/replace", methods=["POST"])
@role_required(*COACH_ROLES)
def replace_schedule_template(program_id, schedule_id, cap):
    program = get_owned_program(cap, program_id)
    data = load_payload(replace_template_schema, request.get_json(silent=True))
    template = get_owned_template(cap, data["template_id"])

    row, rules = replace_template(program.id, schedule_id, template.id)
    commit_session("replacing schedule template")
    return jsonify({
        "schedule": row.to_dict(),
        "rules": [rule.to_dict() for rule in rules],
    }), 200
