from datetime import datetime
from fitcoach.extensions import db


class WorkoutSession(db.Model):
    __tablename__ = "workout_sessions"

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey("workout_assignments.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('in_progress','completed','cancelled')"),
        nullable=False,
        default="in_progress",
    )
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)

    # Program-day tag: which exact scheduled occurrence this session belongs to
    program_assignment_id = db.Column(db.Integer, db.ForeignKey("program_assignments.id"), nullable=True)
    program_schedule_id = db.Column(db.Integer, db.ForeignKey("program_schedule.id"), nullable=True)

    assignment = db.relationship("WorkoutAssignment")

    __table_args__ = (
        # the losing side of a concurrent start must observe the winner's row
        db.Index(
            "uq_workout_sessions_in_progress_program_day",
            "client_id",
            "program_assignment_id",
            "program_schedule_id",
            unique=True,
            sqlite_where=db.text("status = 'in_progress'"),
            postgresql_where=db.text("status = 'in_progress'"),
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "client_id": self.client_id,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "program_assignment_id": self.program_assignment_id,
            "program_schedule_id": self.program_schedule_id,
        }
