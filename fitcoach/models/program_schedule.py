from datetime import datetime
from fitcoach.extensions import db


class ProgramSchedule(db.Model):
    """One (week, day_of_week) slot of a program pointing at a workout template."""

    __tablename__ = "program_schedule"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    week_number = db.Column(db.Integer, nullable=False, default=1)
    day_of_week = db.Column(db.Integer, nullable=False)  # 0..6
    template_id = db.Column(db.Integer, db.ForeignKey("workout_templates.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    program = db.relationship("Program", back_populates="schedule")
    template = db.relationship("WorkoutTemplate")

    __table_args__ = (
        db.UniqueConstraint("program_id", "week_number", "day_of_week", name="uq_program_schedule_slot"),
        db.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_program_schedule_day"),
        db.CheckConstraint("week_number >= 1", name="check_program_schedule_week"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "week_number": self.week_number,
            "day_of_week": self.day_of_week,
            "template_id": self.template_id,
        }
