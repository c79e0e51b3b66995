from datetime import datetime
from fitcoach.extensions import db
from fitcoach.schemas.blocks import IDENTITY_FIELDS, BLOCK_FIELDS


class RuleParametersMixin:
    """Columns shared by program-level and client-level progression rules.

    Only the columns listed for the row's ``block_type`` carry meaning; the
    rest stay NULL.
    """

    block_id = db.Column(db.Integer)  # originating workout_blocks.id
    block_type = db.Column(db.String(30), nullable=False)
    block_order = db.Column(db.Integer, nullable=False, default=1)
    block_name = db.Column(db.String(150))

    exercise_id = db.Column(db.Integer, nullable=False)
    exercise_order = db.Column(db.Integer, nullable=False, default=1)
    exercise_letter = db.Column(db.String(2))
    notes = db.Column(db.Text)
    weight_kg = db.Column(db.Float)
    load_percentage = db.Column(db.Float)

    # straight_set / pyramid / rest_pause / ladder
    sets = db.Column(db.Integer)
    reps = db.Column(db.String(20))
    rest_seconds = db.Column(db.Integer)
    tempo = db.Column(db.String(20))
    rir = db.Column(db.Integer)

    # superset / pre_exhaustion
    first_exercise_reps = db.Column(db.String(20))
    second_exercise_reps = db.Column(db.String(20))
    rest_between_pairs = db.Column(db.Integer)
    isolation_reps = db.Column(db.String(20))
    compound_reps = db.Column(db.String(20))
    compound_exercise_id = db.Column(db.Integer)

    # giant_set / tabata
    rounds = db.Column(db.Integer)
    rest_after_seconds = db.Column(db.Integer)

    # drop_set
    exercise_reps = db.Column(db.String(20))
    drop_set_reps = db.Column(db.String(20))
    weight_reduction_percentage = db.Column(db.Float)

    # cluster_set
    reps_per_cluster = db.Column(db.Integer)
    clusters_per_set = db.Column(db.Integer)
    intra_cluster_rest = db.Column(db.Integer)

    # rest_pause
    rest_pause_duration = db.Column(db.Integer)
    max_rest_pauses = db.Column(db.Integer)

    # amrap / emom / tabata / for_time
    duration_minutes = db.Column(db.Integer)
    target_reps = db.Column(db.Integer)
    emom_mode = db.Column(db.String(20))
    work_seconds = db.Column(db.Integer)
    rest_after_set = db.Column(db.Integer)
    time_cap_minutes = db.Column(db.Integer)

    # pyramid / ladder steps
    pyramid_order = db.Column(db.Integer)
    ladder_order = db.Column(db.Integer)

    def parameters(self):
        """Identity fields plus the fields of this rule's block type."""
        names = IDENTITY_FIELDS + BLOCK_FIELDS.get(self.block_type, ())
        return {name: getattr(self, name) for name in names}


class ProgressionRule(RuleParametersMixin, db.Model):
    """Per-week snapshot of one exercise's parameters inside a program day.

    Rows are keyed by (program_schedule_id, week_number); weeks never share
    rows, so editing one week cannot leak into another.
    """

    __tablename__ = "program_progression_rules"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    program_schedule_id = db.Column(db.Integer, db.ForeignKey("program_schedule.id"), nullable=False)
    week_number = db.Column(db.Integer, nullable=False)
    is_placeholder = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("idx_progression_rules_schedule_week", "program_schedule_id", "week_number"),
    )

    def to_dict(self):
        data = {
            "id": self.id,
            "program_id": self.program_id,
            "program_schedule_id": self.program_schedule_id,
            "week_number": self.week_number,
            "block_type": self.block_type,
            "block_id": self.block_id,
            "is_placeholder": self.is_placeholder,
        }
        data.update(self.parameters())
        return data

    def __repr__(self):
        return f"<ProgressionRule {self.block_type} week={self.week_number} schedule={self.program_schedule_id}>"


class ClientProgressionRule(RuleParametersMixin, db.Model):
    """Client-specific copy of a program's rules, taken at assignment time."""

    __tablename__ = "client_program_progression_rules"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    program_assignment_id = db.Column(
        db.Integer, db.ForeignKey("program_assignments.id"), nullable=False, index=True
    )
    program_schedule_id = db.Column(db.Integer, db.ForeignKey("program_schedule.id"), nullable=True)
    source_rule_id = db.Column(db.Integer, nullable=True)
    week_number = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        data = {
            "id": self.id,
            "client_id": self.client_id,
            "program_assignment_id": self.program_assignment_id,
            "program_schedule_id": self.program_schedule_id,
            "week_number": self.week_number,
            "block_type": self.block_type,
        }
        data.update(self.parameters())
        return data
