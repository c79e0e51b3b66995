from datetime import datetime
from fitcoach.extensions import db
from sqlalchemy.orm import relationship


class WorkoutLog(db.Model):
    __tablename__ = "workout_logs"

    id = db.Column(db.Integer, primary_key=True)
    workout_assignment_id = db.Column(db.Integer, db.ForeignKey("workout_assignments.id"), nullable=False, index=True)
    workout_session_id = db.Column(db.Integer, db.ForeignKey("workout_sessions.id"), nullable=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)  # NULL while the workout is open
    notes = db.Column(db.Text)

    program_assignment_id = db.Column(db.Integer, db.ForeignKey("program_assignments.id"), nullable=True)
    program_schedule_id = db.Column(db.Integer, db.ForeignKey("program_schedule.id"), nullable=True)

    set_logs = relationship(
        "WorkoutSetLog",
        back_populates="workout_log",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_workout_logs_program_day", "client_id", "program_assignment_id", "program_schedule_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "workout_assignment_id": self.workout_assignment_id,
            "workout_session_id": self.workout_session_id,
            "client_id": self.client_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "program_assignment_id": self.program_assignment_id,
            "program_schedule_id": self.program_schedule_id,
        }


class WorkoutSetLog(db.Model):
    __tablename__ = "workout_set_logs"

    id = db.Column(db.Integer, primary_key=True)
    workout_log_id = db.Column(db.Integer, db.ForeignKey("workout_logs.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    block_id = db.Column(db.Integer, db.ForeignKey("workout_blocks.id"), nullable=True)
    exercise_id = db.Column(db.Integer, nullable=False)
    set_number = db.Column(db.Integer, nullable=False)
    weight_kg = db.Column(db.Float)
    reps_completed = db.Column(db.Integer)
    rir = db.Column(db.Integer)
    notes = db.Column(db.Text)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)

    workout_log = relationship("WorkoutLog", back_populates="set_logs")

    def to_dict(self):
        return {
            "id": self.id,
            "workout_log_id": self.workout_log_id,
            "client_id": self.client_id,
            "block_id": self.block_id,
            "exercise_id": self.exercise_id,
            "set_number": self.set_number,
            "weight_kg": self.weight_kg,
            "reps_completed": self.reps_completed,
            "rir": self.rir,
            "notes": self.notes,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
