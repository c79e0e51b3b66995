from flask import request, jsonify

from fitcoach.schemas.blocks import describe_block_types
from fitcoach.services.templates import create_template, list_templates
from fitcoach.utils.decorators import role_required
from fitcoach.utils.session import commit_session

from . import coach_bp, get_owned_template, COACH_ROLES


@coach_bp.route("/api/workout-templates", methods=["POST"])
@role_required(*COACH_ROLES)
def create_template_view(cap):
    template = create_template(cap.user_id, request.get_json(silent=True))
    commit_session("creating workout template")
    return jsonify(template.to_dict(include_blocks=True)), 201


@coach_bp.route("/api/workout-templates", methods=["GET"])
@role_required(*COACH_ROLES)
def list_templates_view(cap):
    templates = list_templates(cap.user_id)
    return jsonify([template.to_dict() for template in templates]), 200


@coach_bp.route("/api/workout-templates/<int:template_id>", methods=["GET"])
@role_required(*COACH_ROLES)
def get_template_view(template_id, cap):
    template = get_owned_template(cap, template_id)
    return jsonify(template.to_dict(include_blocks=True)), 200


@coach_bp.route("/api/block-types", methods=["GET"])
@role_required(*COACH_ROLES)
def block_types_view(cap):
    """Field lists per block type for building rule editors"""
    return jsonify({"block_types": describe_block_types()}), 200
