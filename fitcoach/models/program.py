from datetime import datetime
from fitcoach.extensions import db


class Program(db.Model):
    __tablename__ = "programs"

    id = db.Column(db.Integer, primary_key=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    duration_weeks = db.Column(db.Integer, nullable=False, default=4)
    difficulty_level = db.Column(
        db.String(20),
        db.CheckConstraint("difficulty_level IN ('beginner','intermediate','advanced')"),
        default="beginner"
    )
    target_audience = db.Column(db.String(150))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # relationships
    coach = db.relationship("User", back_populates="programs")
    schedule = db.relationship(
        "ProgramSchedule",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="(ProgramSchedule.week_number, ProgramSchedule.day_of_week)"
    )
    assignments = db.relationship(
        "ProgramAssignment",
        back_populates="program",
        cascade="all, delete-orphan",
        lazy="dynamic"
    )

    __table_args__ = (
        db.CheckConstraint("duration_weeks >= 1", name="check_program_duration_weeks"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "coach_id": self.coach_id,
            "name": self.name,
            "description": self.description,
            "duration_weeks": self.duration_weeks,
            "difficulty_level": self.difficulty_level,
            "target_audience": self.target_audience,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Program {self.name}>"
