from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from fitcoach.extensions import db

USERS_TABLE = "users"


class User(db.Model):
    __tablename__ = USERS_TABLE

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(150), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.String(20),
        db.CheckConstraint("role IN ('admin','coach','client')"),
        nullable=False,
    )
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('pending','active','suspended')"),
        default="active",
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Programs authored as coach
    programs = db.relationship("Program", back_populates="coach", lazy="dynamic", cascade="all, delete-orphan")
    workout_templates = db.relationship("WorkoutTemplate", back_populates="coach", lazy="dynamic", cascade="all, delete-orphan")

    # Programs received as client
    program_assignments = db.relationship(
        "ProgramAssignment",
        back_populates="client",
        foreign_keys="ProgramAssignment.client_id",
        lazy="dynamic",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_users_email", "email"),
        db.Index("idx_users_role", "role"),
    )

    # Helpers
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def is_coach(self):
        return self.role == "coach"

    @property
    def is_client(self):
        return self.role == "client"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "status": self.status,
        }

    def __repr__(self):
        return f"<User {self.email}>"
