"""Exercise block types and the parameter schema of each.

A progression rule is a tagged union: ``block_type`` selects one schema
below, and only that schema's fields (plus the identity fields every rule
carries) may be set on the rule. Validation dispatches on the tag.
"""
from collections import namedtuple

from marshmallow import RAISE, ValidationError, fields, validate, validates_schema

from fitcoach.errors import InvalidArgument
from fitcoach.extensions import ma

REPS_PATTERN = r"^(\d+(-\d+)?|(?i:max|amrap|failure))$"
EMOM_MODES = ("target_reps", "target_time")

IDENTITY_FIELDS = (
    "exercise_id",
    "exercise_order",
    "exercise_letter",
    "block_order",
    "block_name",
    "notes",
    "weight_kg",
    "load_percentage",
)


class Reps(fields.String):
    """Rep count, range or named target ("10", "8-12", "AMRAP"). Integers are kept as their text."""

    def __init__(self, **kwargs):
        kwargs.setdefault(
            "validate",
            validate.Regexp(REPS_PATTERN, error="Expected reps like '10', '8-12' or 'AMRAP'."),
        )
        super().__init__(**kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return super()._deserialize(value, attr, data, **kwargs)


def _count(required=False, minimum=0):
    return fields.Integer(
        required=required,
        allow_none=not required,
        validate=validate.Range(min=minimum),
    )


def _seconds(required=False):
    return _count(required=required)


def _reps(required=False):
    return Reps(required=required, allow_none=not required)


class RuleIdentitySchema(ma.Schema):
    class Meta:
        unknown = RAISE

    exercise_id = fields.Integer(required=True)
    exercise_order = fields.Integer(validate=validate.Range(min=1))
    exercise_letter = fields.String(allow_none=True, validate=validate.Length(max=2))
    block_order = fields.Integer(validate=validate.Range(min=1))
    block_name = fields.String(allow_none=True, validate=validate.Length(max=150))
    notes = fields.String(allow_none=True)
    weight_kg = fields.Float(allow_none=True, validate=validate.Range(min=0))
    load_percentage = fields.Float(allow_none=True, validate=validate.Range(min=0, max=100))


class StraightSetSchema(RuleIdentitySchema):
    sets = _count(required=True, minimum=1)
    reps = _reps(required=True)
    rest_seconds = _seconds()
    tempo = fields.String(allow_none=True, validate=validate.Length(max=20))
    rir = _count()


class SupersetSchema(RuleIdentitySchema):
    first_exercise_reps = _reps(required=True)
    second_exercise_reps = _reps(required=True)
    sets = _count(minimum=1)
    rest_between_pairs = _seconds()
    tempo = fields.String(allow_none=True, validate=validate.Length(max=20))
    rir = _count()


class GiantSetSchema(RuleIdentitySchema):
    rounds = _count(required=True, minimum=1)
    reps = _reps()
    rest_after_seconds = _seconds()
    tempo = fields.String(allow_none=True, validate=validate.Length(max=20))


class DropSetSchema(RuleIdentitySchema):
    exercise_reps = _reps(required=True)
    drop_set_reps = _reps(required=True)
    weight_reduction_percentage = fields.Float(required=True, validate=validate.Range(min=0, max=100))
    sets = _count(minimum=1)
    rest_seconds = _seconds()


class ClusterSetSchema(RuleIdentitySchema):
    reps_per_cluster = _count(required=True, minimum=1)
    clusters_per_set = _count(required=True, minimum=1)
    intra_cluster_rest = _seconds()
    sets = _count(minimum=1)
    rest_seconds = _seconds()


class RestPauseSchema(RuleIdentitySchema):
    rest_pause_duration = _seconds(required=True)
    max_rest_pauses = _count(required=True, minimum=1)
    reps = _reps()
    sets = _count(minimum=1)
    rest_seconds = _seconds()


class PyramidSchema(RuleIdentitySchema):
    pyramid_order = _count(required=True, minimum=1)
    reps = _reps(required=True)
    sets = _count(minimum=1)
    rest_seconds = _seconds()


class PreExhaustionSchema(RuleIdentitySchema):
    isolation_reps = _reps(required=True)
    compound_reps = _reps(required=True)
    compound_exercise_id = fields.Integer(required=True)
    sets = _count(minimum=1)
    rest_between_pairs = _seconds()


class AmrapSchema(RuleIdentitySchema):
    duration_minutes = _count(required=True, minimum=1)
    target_reps = _count()


class EmomSchema(RuleIdentitySchema):
    emom_mode = fields.String(required=True, validate=validate.OneOf(EMOM_MODES))
    duration_minutes = _count(required=True, minimum=1)
    target_reps = _count(minimum=1)
    work_seconds = _seconds()

    @validates_schema
    def check_mode_target(self, data, **kwargs):
        mode = data.get("emom_mode")
        if mode == "target_reps" and data.get("target_reps") is None:
            raise ValidationError("Required when emom_mode is target_reps.", "target_reps")
        if mode == "target_time" and data.get("work_seconds") is None:
            raise ValidationError("Required when emom_mode is target_time.", "work_seconds")


class TabataSchema(RuleIdentitySchema):
    work_seconds = _seconds(required=True)
    rest_seconds = _seconds(required=True)
    rounds = _count(required=True, minimum=1)
    rest_after_set = _seconds()


class ForTimeSchema(RuleIdentitySchema):
    time_cap_minutes = _count(required=True, minimum=1)
    target_reps = _count()


class LadderSchema(RuleIdentitySchema):
    ladder_order = _count(required=True, minimum=1)
    reps = _reps(required=True)
    rest_seconds = _seconds()


BlockType = namedtuple("BlockType", "name description schema min_exercises")

BLOCK_TYPES = {
    "straight_set": BlockType("Straight Set", "Traditional sets with rest between each set", StraightSetSchema, 1),
    "superset": BlockType("Superset", "Two exercises performed back-to-back with rest after the pair", SupersetSchema, 2),
    "giant_set": BlockType("Giant Set", "Three or more exercises performed back-to-back", GiantSetSchema, 3),
    "drop_set": BlockType("Drop Set", "Reduce weight and continue without rest", DropSetSchema, 1),
    "cluster_set": BlockType("Cluster Set", "Short rests between clusters within a set", ClusterSetSchema, 1),
    "rest_pause": BlockType("Rest-Pause Set", "Brief rest-pause between efforts with same weight", RestPauseSchema, 1),
    "pyramid": BlockType("Pyramid Set", "Progressive weight/rep schemes", PyramidSchema, 1),
    "pre_exhaustion": BlockType("Pre-Exhaustion", "Isolation exercise followed by compound movement", PreExhaustionSchema, 2),
    "amrap": BlockType("AMRAP", "As Many Rounds As Possible in given time", AmrapSchema, 1),
    "emom": BlockType("EMOM", "Every Minute On the Minute protocol", EmomSchema, 1),
    "tabata": BlockType("Tabata", "20 seconds work, 10 seconds rest protocol", TabataSchema, 1),
    "for_time": BlockType("For Time", "Complete all exercises as fast as possible", ForTimeSchema, 1),
    "ladder": BlockType("Ladder", "Ascending or descending rep schemes", LadderSchema, 1),
}

BLOCK_FIELDS = {
    block_type: tuple(name for name in kind.schema._declared_fields if name not in IDENTITY_FIELDS)
    for block_type, kind in BLOCK_TYPES.items()
}


def get_block_schema(block_type):
    """Return a fresh schema instance for ``block_type``."""
    kind = BLOCK_TYPES.get(block_type)
    if kind is None:
        raise InvalidArgument(
            f"Unknown block_type '{block_type}'",
            payload={"allowed": sorted(BLOCK_TYPES)},
        )
    return kind.schema()


def _required_fields(block_type):
    schema = get_block_schema(block_type)
    return tuple(name for name, field in schema.fields.items() if field.required)


def validate_rule(block_type, data):
    """Validate a full set of rule fields for ``block_type``.

    Unknown fields, fields of another block type and missing required fields
    are all rejected; nothing is defaulted here.
    """
    schema = get_block_schema(block_type)
    try:
        return schema.load(data)
    except ValidationError as err:
        raise InvalidArgument(f"Invalid {block_type} rule", payload={"errors": err.messages})


def describe_block_types():
    result = []
    for block_type, kind in BLOCK_TYPES.items():
        required = _required_fields(block_type)
        result.append({
            "block_type": block_type,
            "name": kind.name,
            "description": kind.description,
            "min_exercises": kind.min_exercises,
            "required": list(required),
            "optional": [name for name in BLOCK_FIELDS[block_type] if name not in required],
        })
    return result
