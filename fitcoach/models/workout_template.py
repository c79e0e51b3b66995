from datetime import datetime
from fitcoach.extensions import db


class WorkoutTemplate(db.Model):
    __tablename__ = "workout_templates"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    estimated_duration = db.Column(db.Integer)  # minutes
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    coach = db.relationship("User", back_populates="workout_templates")
    blocks = db.relationship(
        "WorkoutBlock",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="WorkoutBlock.block_order"
    )

    def to_dict(self, include_blocks=False):
        data = {
            "id": self.id,
            "coach_id": self.coach_id,
            "name": self.name,
            "description": self.description,
            "estimated_duration": self.estimated_duration,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_blocks:
            data["blocks"] = [block.to_dict() for block in self.blocks]
        return data

    def __repr__(self):
        return f"<WorkoutTemplate {self.name}>"


class WorkoutBlock(db.Model):
    __tablename__ = "workout_blocks"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey("workout_templates.id"), nullable=False, index=True)
    block_type = db.Column(db.String(30), nullable=False)
    block_order = db.Column(db.Integer, nullable=False, default=1)
    block_name = db.Column(db.String(150))
    block_notes = db.Column(db.Text)

    rest_seconds = db.Column(db.Integer)      # rest after the block / between rounds
    total_sets = db.Column(db.Integer)
    duration_seconds = db.Column(db.Integer)  # amrap, emom, tabata

    template = db.relationship("WorkoutTemplate", back_populates="blocks")
    exercises = db.relationship(
        "WorkoutBlockExercise",
        back_populates="block",
        cascade="all, delete-orphan",
        order_by="WorkoutBlockExercise.exercise_order"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "block_type": self.block_type,
            "block_order": self.block_order,
            "block_name": self.block_name,
            "block_notes": self.block_notes,
            "rest_seconds": self.rest_seconds,
            "total_sets": self.total_sets,
            "duration_seconds": self.duration_seconds,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
        }


class WorkoutBlockExercise(db.Model):
    __tablename__ = "workout_block_exercises"

    id = db.Column(db.Integer, primary_key=True)
    block_id = db.Column(db.Integer, db.ForeignKey("workout_blocks.id"), nullable=False, index=True)
    exercise_id = db.Column(db.Integer, nullable=False)
    exercise_order = db.Column(db.Integer, nullable=False, default=1)
    exercise_letter = db.Column(db.String(2))  # A, B, C for supersets/giant sets

    sets = db.Column(db.Integer)
    reps = db.Column(db.String(20))  # may be a range like "8-12"
    weight_kg = db.Column(db.Float)
    load_percentage = db.Column(db.Float)
    rir = db.Column(db.Integer)
    tempo = db.Column(db.String(20))
    rest_seconds = db.Column(db.Integer)
    notes = db.Column(db.Text)

    # drop_sets / cluster / rest_pause / time_protocol / pyramid_sets / ladder_sets
    config = db.Column(db.JSON, default=dict)

    block = db.relationship("WorkoutBlock", back_populates="exercises")

    def to_dict(self):
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "exercise_order": self.exercise_order,
            "exercise_letter": self.exercise_letter,
            "sets": self.sets,
            "reps": self.reps,
            "weight_kg": self.weight_kg,
            "load_percentage": self.load_percentage,
            "rir": self.rir,
            "tempo": self.tempo,
            "rest_seconds": self.rest_seconds,
            "notes": self.notes,
            "config": self.config or {},
        }
