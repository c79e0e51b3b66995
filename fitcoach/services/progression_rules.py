"""Per-week progression rule store.

Rules are keyed by (program_schedule_id, week_number). A week's rows are
always its own copies: materializing a later week snapshots values, it never
points back at Week 1. Rows copied into a week > 1 start as placeholders and
the whole (schedule, week) pair becomes customized on its first write.

Functions here flush but never commit; the caller owns the transaction.
"""
import logging

from fitcoach.errors import InvalidArgument, NotFound
from fitcoach.extensions import db
from fitcoach.models import ClientProgressionRule, ProgramSchedule, ProgressionRule
from fitcoach.schemas.blocks import BLOCK_FIELDS, IDENTITY_FIELDS, validate_rule
from fitcoach.services.template_rules import template_rule_fields
from fitcoach.services.templates import get_template

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = ("id", "program_id", "program_schedule_id", "week_number", "block_type", "block_id", "is_placeholder")


def _ordered(query):
    return query.order_by(
        ProgressionRule.block_order,
        ProgressionRule.exercise_order,
        ProgressionRule.pyramid_order,
        ProgressionRule.ladder_order,
        ProgressionRule.id,
    )


def _get_rule(rule_id):
    rule = db.session.get(ProgressionRule, rule_id)
    if not rule:
        raise NotFound(f"Progression rule {rule_id} not found")
    return rule


def _get_schedule_row(program_id, schedule_id):
    row = ProgramSchedule.query.filter_by(id=schedule_id, program_id=program_id).first()
    if not row:
        raise NotFound(f"Schedule day {schedule_id} not found in program {program_id}")
    return row


def _mark_customized(schedule_id, week_number):
    ProgressionRule.query.filter_by(
        program_schedule_id=schedule_id, week_number=week_number, is_placeholder=True
    ).update({"is_placeholder": False}, synchronize_session="fetch")


def copy_workout_to_program(program_id, schedule_id, template_id, week_number):
    """Write one rule per template block exercise into (schedule_id, week_number).

    All rules are validated before anything is added, so a bad block leaves
    the week untouched.
    """
    template = get_template(template_id)
    is_placeholder = week_number > 1

    rules = []
    for block, fields in template_rule_fields(template):
        data = validate_rule(block.block_type, fields)
        rules.append(ProgressionRule(
            program_id=program_id,
            program_schedule_id=schedule_id,
            week_number=week_number,
            block_id=block.id,
            block_type=block.block_type,
            is_placeholder=is_placeholder,
            **data,
        ))

    db.session.add_all(rules)
    db.session.flush()
    logger.info(
        "Copied template %s into program %s schedule %s week %s: %d rules",
        template_id, program_id, schedule_id, week_number, len(rules),
    )
    return rules


def copy_week_one_rules(program_id, schedule_id, week_number, source_schedule_id):
    """Snapshot the Week 1 rules of ``source_schedule_id`` into a later week."""
    source = _ordered(
        ProgressionRule.query.filter_by(program_schedule_id=source_schedule_id, week_number=1)
    ).all()

    rules = [
        ProgressionRule(
            program_id=program_id,
            program_schedule_id=schedule_id,
            week_number=week_number,
            block_id=rule.block_id,
            block_type=rule.block_type,
            is_placeholder=True,
            **rule.parameters(),
        )
        for rule in source
    ]
    db.session.add_all(rules)
    db.session.flush()
    logger.info(
        "Copied %d week 1 rules from schedule %s into schedule %s week %s",
        len(rules), source_schedule_id, schedule_id, week_number,
    )
    return rules


def materialize_rules(schedule):
    """Create the rules for a freshly assigned schedule row.

    A later week inherits Week 1's current values when Week 1 runs the same
    template on the same weekday; otherwise the template itself is copied.
    """
    if schedule.week_number > 1:
        source = ProgramSchedule.query.filter_by(
            program_id=schedule.program_id,
            week_number=1,
            day_of_week=schedule.day_of_week,
        ).first()
        if source and source.template_id == schedule.template_id:
            rules = copy_week_one_rules(schedule.program_id, schedule.id, schedule.week_number, source.id)
            if rules:
                return rules
    return copy_workout_to_program(schedule.program_id, schedule.id, schedule.template_id, schedule.week_number)


def get_progression_rules(program_id, week_number, schedule_id):
    """Return ``(rules, is_placeholder)`` for one program day and week."""
    _get_schedule_row(program_id, schedule_id)
    rules = _ordered(
        ProgressionRule.query.filter_by(
            program_id=program_id, program_schedule_id=schedule_id, week_number=week_number
        )
    ).all()
    is_placeholder = any(rule.is_placeholder for rule in rules)
    return rules, is_placeholder


def create_progression_rule(program_id, schedule_id, week_number, block_type, fields):
    schedule = _get_schedule_row(program_id, schedule_id)
    if schedule.week_number != week_number:
        raise InvalidArgument(
            f"Schedule day {schedule_id} belongs to week {schedule.week_number}, not week {week_number}"
        )
    data = validate_rule(block_type, fields)
    data = {k: v for k, v in data.items() if v is not None}

    _mark_customized(schedule_id, week_number)
    rule = ProgressionRule(
        program_id=program_id,
        program_schedule_id=schedule_id,
        week_number=week_number,
        block_type=block_type,
        is_placeholder=False,
        **data,
    )
    db.session.add(rule)
    db.session.flush()
    return rule


def update_progression_rule(rule_id, patch):
    """Apply ``patch`` to one rule, validated against its block type.

    The merged result must still satisfy the block schema. Only this row is
    written, plus the placeholder flag of its own (schedule, week).
    """
    rule = _get_rule(rule_id)
    protected = sorted(set(patch) & set(PROTECTED_FIELDS))
    if protected:
        raise InvalidArgument("Fields cannot be changed", payload={"fields": protected})

    merged = {k: v for k, v in rule.parameters().items() if v is not None}
    merged.update(patch)
    data = validate_rule(rule.block_type, merged)

    for name in IDENTITY_FIELDS + BLOCK_FIELDS[rule.block_type]:
        if name in data:
            setattr(rule, name, data[name])
        elif name in patch:
            setattr(rule, name, None)

    _mark_customized(rule.program_schedule_id, rule.week_number)
    db.session.flush()
    logger.info("Updated progression rule %s (week %s)", rule.id, rule.week_number)
    return rule


def replace_exercise(rule_id, new_exercise_id):
    """Swap the exercise of a rule, keeping every other parameter."""
    rule = _get_rule(rule_id)
    if new_exercise_id is None:
        raise InvalidArgument("exercise_id is required")
    rule.exercise_id = int(new_exercise_id)
    _mark_customized(rule.program_schedule_id, rule.week_number)
    db.session.flush()
    return rule


def delete_progression_rules(schedule_id, week_number):
    deleted = ProgressionRule.query.filter_by(
        program_schedule_id=schedule_id, week_number=week_number
    ).delete(synchronize_session="fetch")
    db.session.flush()
    logger.info("Deleted %d rules for schedule %s week %s", deleted, schedule_id, week_number)
    return deleted


def copy_program_rules_to_client(program_id, program_assignment_id, client_id):
    """Snapshot every program rule for a newly assigned client."""
    source = ProgressionRule.query.filter_by(program_id=program_id).order_by(
        ProgressionRule.week_number, ProgressionRule.block_order, ProgressionRule.exercise_order, ProgressionRule.id
    ).all()

    rows = [
        ClientProgressionRule(
            client_id=client_id,
            program_assignment_id=program_assignment_id,
            program_schedule_id=rule.program_schedule_id,
            source_rule_id=rule.id,
            week_number=rule.week_number,
            block_id=rule.block_id,
            block_type=rule.block_type,
            **rule.parameters(),
        )
        for rule in source
    ]
    db.session.add_all(rows)
    db.session.flush()
    logger.info(
        "Copied %d program %s rules to client %s (assignment %s)",
        len(rows), program_id, client_id, program_assignment_id,
    )
    return rows


def get_client_progression_rules(program_assignment_id):
    return ClientProgressionRule.query.filter_by(program_assignment_id=program_assignment_id).order_by(
        ClientProgressionRule.week_number,
        ClientProgressionRule.block_order,
        ClientProgressionRule.exercise_order,
        ClientProgressionRule.id,
    ).all()


def delete_client_progression_rules(program_assignment_id):
    deleted = ClientProgressionRule.query.filter_by(
        program_assignment_id=program_assignment_id
    ).delete(synchronize_session="fetch")
    db.session.flush()
    return deleted
