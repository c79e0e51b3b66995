from datetime import datetime, date
from fitcoach.extensions import db

ASSIGNMENT_STATUSES = ("assigned", "active", "paused", "completed", "cancelled")


class ProgramAssignment(db.Model):
    __tablename__ = "program_assignments"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(150))
    start_date = db.Column(db.Date, nullable=False, default=date.today)
    duration_weeks = db.Column(db.Integer)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('assigned','active','paused','completed','cancelled')"),
        nullable=False,
        default="assigned",
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    program = db.relationship("Program", back_populates="assignments")
    client = db.relationship("User", foreign_keys=[client_id], back_populates="program_assignments")
    coach = db.relationship("User", foreign_keys=[coach_id])
    progress = db.relationship(
        "ProgramProgress",
        back_populates="assignment",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        # at most one active assignment per (client, program)
        db.Index(
            "uq_program_assignments_active",
            "client_id",
            "program_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "client_id": self.client_id,
            "coach_id": self.coach_id,
            "name": self.name,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "duration_weeks": self.duration_weeks,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ProgramProgress(db.Model):
    """The client's pointer into the program schedule.

    ``current_week_index`` and ``current_day_index`` are indices into the
    sorted distinct weeks and each week's sorted days, not week numbers.
    """

    __tablename__ = "program_progress"

    id = db.Column(db.Integer, primary_key=True)
    program_assignment_id = db.Column(
        db.Integer, db.ForeignKey("program_assignments.id"), nullable=False, unique=True
    )
    current_week_index = db.Column(db.Integer, nullable=False, default=0)
    current_day_index = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignment = db.relationship("ProgramAssignment", back_populates="progress")

    def to_dict(self):
        return {
            "program_assignment_id": self.program_assignment_id,
            "current_week_index": self.current_week_index,
            "current_day_index": self.current_day_index,
            "is_completed": self.is_completed,
        }


class ProgramDayCompletion(db.Model):
    __tablename__ = "program_day_completions"

    id = db.Column(db.Integer, primary_key=True)
    program_assignment_id = db.Column(
        db.Integer, db.ForeignKey("program_assignments.id"), nullable=False, index=True
    )
    week_index = db.Column(db.Integer, nullable=False)
    day_index = db.Column(db.Integer, nullable=False)
    completed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            "program_assignment_id", "week_index", "day_index", name="uq_program_day_completion"
        ),
    )
