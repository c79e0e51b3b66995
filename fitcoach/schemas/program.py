from marshmallow import RAISE, ValidationError, fields, validate, validates_schema

from fitcoach.errors import InvalidArgument
from fitcoach.extensions import ma
from fitcoach.models.program_assignment import ASSIGNMENT_STATUSES
from fitcoach.schemas.blocks import BLOCK_TYPES, Reps

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class StrictSchema(ma.Schema):
    class Meta:
        unknown = RAISE


class ProgramSchema(StrictSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    duration_weeks = fields.Integer(load_default=4, validate=validate.Range(min=1, max=52))
    difficulty_level = fields.String(load_default="beginner", validate=validate.OneOf(DIFFICULTY_LEVELS))
    target_audience = fields.String(allow_none=True, validate=validate.Length(max=150))


class ScheduleDaySchema(StrictSchema):
    week_number = fields.Integer(required=True)
    day_of_week = fields.Integer(required=True)
    template_id = fields.Integer(required=True)


class ReplaceTemplateSchema(StrictSchema):
    template_id = fields.Integer(required=True)


class ProgramAssignmentSchema(StrictSchema):
    client_id = fields.Integer(required=True)
    start_date = fields.Date(allow_none=True)
    status = fields.String(load_default="active", validate=validate.OneOf(ASSIGNMENT_STATUSES))


class AssignmentStatusSchema(StrictSchema):
    status = fields.String(required=True, validate=validate.OneOf(ASSIGNMENT_STATUSES))


class TemplateExerciseSchema(StrictSchema):
    exercise_id = fields.Integer(required=True)
    exercise_order = fields.Integer(validate=validate.Range(min=1))
    exercise_letter = fields.String(allow_none=True, validate=validate.Length(max=2))
    sets = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    reps = Reps(allow_none=True)
    weight_kg = fields.Float(allow_none=True, validate=validate.Range(min=0))
    load_percentage = fields.Float(allow_none=True, validate=validate.Range(min=0, max=100))
    rir = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    tempo = fields.String(allow_none=True, validate=validate.Length(max=20))
    rest_seconds = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    notes = fields.String(allow_none=True)
    # drop_sets, cluster, rest_pause, time_protocol, pyramid_sets, ladder_sets
    config = fields.Dict(keys=fields.String(), load_default=dict)


class TemplateBlockSchema(StrictSchema):
    block_type = fields.String(required=True, validate=validate.OneOf(list(BLOCK_TYPES)))
    block_order = fields.Integer(validate=validate.Range(min=1))
    block_name = fields.String(allow_none=True, validate=validate.Length(max=150))
    block_notes = fields.String(allow_none=True)
    rest_seconds = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    total_sets = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    duration_seconds = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    exercises = fields.List(fields.Nested(TemplateExerciseSchema), required=True, validate=validate.Length(min=1))

    @validates_schema
    def check_exercise_count(self, data, **kwargs):
        kind = BLOCK_TYPES.get(data.get("block_type"))
        if kind and len(data.get("exercises", [])) < kind.min_exercises:
            raise ValidationError(
                f"{kind.name} needs at least {kind.min_exercises} exercises.", "exercises"
            )


class WorkoutTemplateSchema(StrictSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(allow_none=True)
    estimated_duration = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    blocks = fields.List(fields.Nested(TemplateBlockSchema), load_default=list)


class ProgressionRuleCreateSchema(StrictSchema):
    program_schedule_id = fields.Integer(required=True)
    week_number = fields.Integer(required=True)
    block_type = fields.String(required=True)
    parameters = fields.Dict(keys=fields.String(), required=True)


class ReplaceExerciseSchema(StrictSchema):
    exercise_id = fields.Integer(required=True)


class WorkoutDaySchema(StrictSchema):
    client_id = fields.Integer(allow_none=True)


class AdvanceProgressSchema(StrictSchema):
    client_id = fields.Integer(allow_none=True)
    notes = fields.String(allow_none=True)


class SetLogSchema(StrictSchema):
    client_id = fields.Integer(allow_none=True)
    exercise_id = fields.Integer(required=True)
    block_id = fields.Integer(allow_none=True)
    set_number = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    weight_kg = fields.Float(allow_none=True, validate=validate.Range(min=0))
    reps_completed = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    rir = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    notes = fields.String(allow_none=True)


class CompleteWorkoutSchema(StrictSchema):
    client_id = fields.Integer(allow_none=True)
    duration_minutes = fields.Integer(allow_none=True, validate=validate.Range(min=0))


program_schema = ProgramSchema()
schedule_day_schema = ScheduleDaySchema()
replace_template_schema = ReplaceTemplateSchema()
program_assignment_schema = ProgramAssignmentSchema()
assignment_status_schema = AssignmentStatusSchema()
workout_template_schema = WorkoutTemplateSchema()
progression_rule_create_schema = ProgressionRuleCreateSchema()
replace_exercise_schema = ReplaceExerciseSchema()
workout_day_schema = WorkoutDaySchema()
advance_progress_schema = AdvanceProgressSchema()
set_log_schema = SetLogSchema()
complete_workout_schema = CompleteWorkoutSchema()


def load_payload(schema, data, **kwargs):
    """Load ``data`` with ``schema``, raising InvalidArgument on bad input."""
    try:
        return schema.load(data if data is not None else {}, **kwargs)
    except ValidationError as err:
        raise InvalidArgument("Invalid request payload", payload={"errors": err.messages})
