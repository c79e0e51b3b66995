import logging

from fitcoach.errors import InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import WorkoutBlock, WorkoutBlockExercise, WorkoutTemplate
from fitcoach.schemas.blocks import validate_rule
from fitcoach.schemas.program import load_payload, workout_template_schema
from fitcoach.services.template_rules import template_rule_fields

logger = logging.getLogger(__name__)


def get_template(template_id):
    template = db.session.get(WorkoutTemplate, template_id)
    if not template:
        raise NotFound(f"Workout template {template_id} not found")
    return template


def list_templates(coach_id):
    return (
        WorkoutTemplate.query
        .filter_by(coach_id=coach_id)
        .order_by(WorkoutTemplate.created_at.desc(), WorkoutTemplate.id.desc())
        .all()
    )


def create_template(coach_id, payload):
    """Create a template with its blocks and exercises.

    Every block must produce valid progression rules, otherwise a program
    could never be scheduled with it; the template is rejected instead.
    """
    data = load_payload(workout_template_schema, payload)

    template = WorkoutTemplate(
        coach_id=coach_id,
        name=data["name"],
        description=data.get("description"),
        estimated_duration=data.get("estimated_duration"),
    )
    for block_index, block_data in enumerate(data["blocks"], start=1):
        block = WorkoutBlock(
            block_type=block_data["block_type"],
            block_order=block_data.get("block_order", block_index),
            block_name=block_data.get("block_name"),
            block_notes=block_data.get("block_notes"),
            rest_seconds=block_data.get("rest_seconds"),
            total_sets=block_data.get("total_sets"),
            duration_seconds=block_data.get("duration_seconds"),
        )
        for exercise_index, exercise_data in enumerate(block_data["exercises"], start=1):
            exercise_data = dict(exercise_data)
            exercise_data.setdefault("exercise_order", exercise_index)
            block.exercises.append(WorkoutBlockExercise(**exercise_data))
        template.blocks.append(block)

    errors = {}
    for block, fields in template_rule_fields(template):
        try:
            validate_rule(block.block_type, fields)
        except InvalidArgument as exc:
            errors.setdefault(f"block_{block.block_order}", exc.payload.get("errors"))
    if errors:
        raise InvalidArgument("Template blocks are missing parameters", payload={"errors": errors})

    db.session.add(template)
    db.session.flush()
    logger.info("Created workout template %s with %d blocks", template.id, len(template.blocks))
    return template
