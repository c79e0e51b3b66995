from datetime import datetime, date
from fitcoach.extensions import db


class WorkoutAssignment(db.Model):
    """A concrete, dated instance of a template handed to a client."""

    __tablename__ = "workout_assignments"

    id = db.Column(db.Integer, primary_key=True)
    workout_template_id = db.Column(db.Integer, db.ForeignKey("workout_templates.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    coach_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    estimated_duration = db.Column(db.Integer, default=60)
    assigned_date = db.Column(db.Date, default=date.today)
    scheduled_date = db.Column(db.Date, default=date.today)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('assigned','active','in_progress','completed','skipped')"),
        nullable=False,
        default="assigned",
    )
    is_customized = db.Column(db.Boolean, default=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    template = db.relationship("WorkoutTemplate")

    __table_args__ = (
        db.Index("idx_workout_assignments_client_template", "client_id", "workout_template_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "workout_template_id": self.workout_template_id,
            "client_id": self.client_id,
            "coach_id": self.coach_id,
            "name": self.name,
            "description": self.description,
            "estimated_duration": self.estimated_duration,
            "assigned_date": self.assigned_date.isoformat() if self.assigned_date else None,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "status": self.status,
            "notes": self.notes,
        }
