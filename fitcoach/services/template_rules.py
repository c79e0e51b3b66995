"""Turn a workout template's blocks into progression rule field sets.

Each block type keeps its parameters in a different place on the template
(block columns, exercise columns, or the exercise's ``config`` JSON), so
conversion dispatches on ``block_type``. Nothing here touches the session.
"""
from fitcoach.schemas.blocks import BLOCK_FIELDS, IDENTITY_FIELDS

DEFAULT_DROP_PERCENTAGE = 20
TABATA_DEFAULTS = {"work_seconds": 20, "rest_seconds": 10, "rounds": 8}


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _leading_int(reps):
    """'8-12' -> 8, '10' -> 10, anything else -> None."""
    if reps is None:
        return None
    head = str(reps).split("-")[0].strip()
    return int(head) if head.isdigit() else None


def _minutes(seconds):
    return seconds // 60 if seconds else None


def _config(exercise):
    return exercise.config or {}


def _identity(block, exercise):
    return {
        "exercise_id": exercise.exercise_id,
        "exercise_order": exercise.exercise_order,
        "exercise_letter": exercise.exercise_letter,
        "block_order": block.block_order,
        "block_name": block.block_name,
        "notes": exercise.notes,
        "weight_kg": exercise.weight_kg,
        "load_percentage": exercise.load_percentage,
    }


def _by_letter(exercises, letter, position):
    for exercise in exercises:
        if exercise.exercise_letter == letter:
            return exercise
    return exercises[position] if len(exercises) > position else None


def _straight_set(block, exercise):
    return [{
        "sets": _first(exercise.sets, block.total_sets),
        "reps": exercise.reps,
        "rest_seconds": _first(exercise.rest_seconds, block.rest_seconds),
        "tempo": exercise.tempo,
        "rir": exercise.rir,
    }]


def _superset(block, exercise):
    first = _by_letter(block.exercises, "A", 0)
    second = _by_letter(block.exercises, "B", 1)
    return [{
        "first_exercise_reps": first.reps if first else None,
        "second_exercise_reps": second.reps if second else None,
        "sets": _first(exercise.sets, block.total_sets),
        "rest_between_pairs": block.rest_seconds,
        "tempo": exercise.tempo,
        "rir": exercise.rir,
    }]


def _giant_set(block, exercise):
    return [{
        "rounds": _first(block.total_sets, exercise.sets),
        "reps": exercise.reps,
        "rest_after_seconds": block.rest_seconds,
        "tempo": exercise.tempo,
    }]


def _drop_set(block, exercise):
    drops = _config(exercise).get("drop_sets") or []
    initial = next((d for d in drops if d.get("drop_order") == 1), drops[0] if drops else {})
    return [{
        "exercise_reps": exercise.reps,
        "drop_set_reps": initial.get("reps"),
        "weight_reduction_percentage": _first(initial.get("drop_percentage"), DEFAULT_DROP_PERCENTAGE),
        "sets": _first(exercise.sets, block.total_sets),
        "rest_seconds": _first(block.rest_seconds, exercise.rest_seconds),
        "weight_kg": _first(initial.get("weight_kg"), exercise.weight_kg),
    }]


def _cluster_set(block, exercise):
    cluster = _config(exercise).get("cluster") or {}
    return [{
        "reps_per_cluster": cluster.get("reps_per_cluster"),
        "clusters_per_set": cluster.get("clusters_per_set"),
        "intra_cluster_rest": cluster.get("intra_cluster_rest"),
        "sets": exercise.sets,
        "rest_seconds": _first(cluster.get("inter_set_rest"), exercise.rest_seconds),
    }]


def _rest_pause(block, exercise):
    config = _config(exercise).get("rest_pause") or {}
    return [{
        "rest_pause_duration": config.get("rest_pause_duration"),
        "max_rest_pauses": config.get("max_rest_pauses"),
        "reps": exercise.reps,
        "sets": exercise.sets,
        "rest_seconds": exercise.rest_seconds,
    }]


def _pre_exhaustion(block, exercise):
    isolation = _by_letter(block.exercises, "A", 0)
    compound = _by_letter(block.exercises, "B", 1)
    return [{
        "isolation_reps": isolation.reps if isolation else None,
        "compound_reps": compound.reps if compound else None,
        "compound_exercise_id": compound.exercise_id if compound else None,
        "sets": _first(exercise.sets, block.total_sets),
        "rest_between_pairs": block.rest_seconds,
    }]


def _amrap(block, exercise):
    protocol = _config(exercise).get("time_protocol") or {}
    return [{
        "duration_minutes": _first(protocol.get("total_duration_minutes"), _minutes(block.duration_seconds)),
        "target_reps": _first(protocol.get("target_reps"), _leading_int(exercise.reps)),
    }]


def _emom(block, exercise):
    protocol = _config(exercise).get("time_protocol") or {}
    return [{
        "emom_mode": protocol.get("emom_mode") or "target_reps",
        "duration_minutes": _first(protocol.get("total_duration_minutes"), _minutes(block.duration_seconds)),
        "target_reps": _first(protocol.get("target_reps"), _leading_int(exercise.reps)),
        "work_seconds": protocol.get("work_seconds"),
    }]


def _tabata(block, exercise):
    protocol = _config(exercise).get("time_protocol") or {}
    fields = {name: protocol.get(name) or default for name, default in TABATA_DEFAULTS.items()}
    fields["rest_after_set"] = block.rest_seconds
    return [fields]


def _for_time(block, exercise):
    protocol = _config(exercise).get("time_protocol") or {}
    return [{
        "time_cap_minutes": _first(
            protocol.get("time_cap_minutes"),
            protocol.get("total_duration_minutes"),
            _minutes(block.duration_seconds),
        ),
        "target_reps": _first(protocol.get("target_reps"), _leading_int(exercise.reps)),
    }]


def _steps(exercise, key, order_field):
    steps = _config(exercise).get(key) or [{}]
    rules = []
    for index, step in enumerate(steps, start=1):
        rules.append({
            order_field: _first(step.get(order_field), index),
            "reps": _first(step.get("reps"), exercise.reps),
            "weight_kg": _first(step.get("weight_kg"), exercise.weight_kg),
            "rest_seconds": _first(step.get("rest_seconds"), exercise.rest_seconds),
        })
    return rules


def _pyramid(block, exercise):
    rules = _steps(exercise, "pyramid_sets", "pyramid_order")
    for rule in rules:
        rule["sets"] = exercise.sets
    return rules


def _ladder(block, exercise):
    return _steps(exercise, "ladder_sets", "ladder_order")


CONVERTERS = {
    "straight_set": _straight_set,
    "superset": _superset,
    "giant_set": _giant_set,
    "drop_set": _drop_set,
    "cluster_set": _cluster_set,
    "rest_pause": _rest_pause,
    "pyramid": _pyramid,
    "pre_exhaustion": _pre_exhaustion,
    "amrap": _amrap,
    "emom": _emom,
    "tabata": _tabata,
    "for_time": _for_time,
    "ladder": _ladder,
}


def _exercise_sort_key(block):
    if block.block_type == "giant_set":
        return lambda e: (e.exercise_letter or "A", e.exercise_order or 0)
    return lambda e: (e.exercise_order or 0, e.id or 0)


def block_rule_fields(block):
    """Return the rule field dicts a single template block produces.

    None values are dropped so a missing required parameter surfaces as a
    missing field when the result is validated.
    """
    convert = CONVERTERS[block.block_type]
    allowed = set(IDENTITY_FIELDS) | set(BLOCK_FIELDS[block.block_type])
    result = []
    for exercise in sorted(block.exercises, key=_exercise_sort_key(block)):
        for fields in convert(block, exercise):
            merged = _identity(block, exercise)
            merged.update(fields)
            result.append({k: v for k, v in merged.items() if v is not None and k in allowed})
    return result


def template_rule_fields(template):
    """[(block, fields), ...] for every rule the template produces, in order."""
    drafts = []
    for block in sorted(template.blocks, key=lambda b: (b.block_order or 0, b.id or 0)):
        for fields in block_rule_fields(block):
            drafts.append((block, fields))
    return drafts
