"""Shared fixtures: an app on in-memory SQLite, seeded users, template and program factories."""

from __future__ import annotations

import pytest
from flask_jwt_extended import create_access_token

from fitcoach import create_app
from fitcoach.extensions import db
from fitcoach.models import User
from fitcoach.services.program_progress import assign_program
from fitcoach.services.program_schedule import create_program, set_day
from fitcoach.services.templates import create_template

PASSWORD = "Secret123!"


@pytest.fixture
def app():
    """Application with a fresh schema for every test."""
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email: str, name: str, role: str, status: str = "active") -> User:
    user = User(email=email, name=name, role=role, status=status)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def coach(app) -> User:
    return _make_user("coach@example.com", "Carla Coach", "coach")


@pytest.fixture
def other_coach(app) -> User:
    return _make_user("coach2@example.com", "Otto Coach", "coach")


@pytest.fixture
def athlete(app) -> User:
    return _make_user("client@example.com", "Alex Client", "client")


@pytest.fixture
def other_athlete(app) -> User:
    return _make_user("client2@example.com", "Sam Client", "client")


@pytest.fixture
def admin(app) -> User:
    return _make_user("admin@example.com", "Ada Admin", "admin")


@pytest.fixture
def auth_headers(app):
    """Build Authorization headers for a user."""

    def _headers(user: User) -> dict:
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers


def straight_block(exercise_id: int = 101, sets: int = 3, reps: str = "10", rest_seconds: int = 60) -> dict:
    return {
        "block_type": "straight_set",
        "exercises": [{"exercise_id": exercise_id, "sets": sets, "reps": reps, "rest_seconds": rest_seconds}],
    }


@pytest.fixture
def block_payloads() -> dict:
    """One template block per block type, each complete enough to produce rules."""
    return {
        "straight_set": straight_block(),
        "superset": {
            "block_type": "superset",
            "total_sets": 3,
            "rest_seconds": 90,
            "exercises": [
                {"exercise_id": 201, "exercise_letter": "A", "reps": "10"},
                {"exercise_id": 202, "exercise_letter": "B", "reps": "12"},
            ],
        },
        "giant_set": {
            "block_type": "giant_set",
            "total_sets": 3,
            "rest_seconds": 120,
            "exercises": [
                {"exercise_id": 303, "exercise_letter": "C", "reps": "10"},
                {"exercise_id": 301, "exercise_letter": "A", "reps": "10"},
                {"exercise_id": 302, "exercise_letter": "B", "reps": "10"},
            ],
        },
        "drop_set": {
            "block_type": "drop_set",
            "exercises": [{
                "exercise_id": 401, "sets": 3, "reps": "8",
                "config": {"drop_sets": [{"drop_order": 1, "reps": "6", "drop_percentage": 25}]},
            }],
        },
        "cluster_set": {
            "block_type": "cluster_set",
            "exercises": [{
                "exercise_id": 501, "sets": 4,
                "config": {"cluster": {
                    "reps_per_cluster": 2, "clusters_per_set": 4,
                    "intra_cluster_rest": 15, "inter_set_rest": 120,
                }},
            }],
        },
        "rest_pause": {
            "block_type": "rest_pause",
            "exercises": [{
                "exercise_id": 601, "sets": 2, "reps": "8",
                "config": {"rest_pause": {"rest_pause_duration": 15, "max_rest_pauses": 3}},
            }],
        },
        "pyramid": {
            "block_type": "pyramid",
            "exercises": [{
                "exercise_id": 701, "sets": 1, "reps": "10",
                "config": {"pyramid_sets": [
                    {"reps": "12", "weight_kg": 40},
                    {"reps": "10", "weight_kg": 50},
                    {"reps": "8", "weight_kg": 60},
                ]},
            }],
        },
        "pre_exhaustion": {
            "block_type": "pre_exhaustion",
            "rest_seconds": 60,
            "exercises": [
                {"exercise_id": 801, "exercise_letter": "A", "reps": "15"},
                {"exercise_id": 802, "exercise_letter": "B", "reps": "8"},
            ],
        },
        "amrap": {
            "block_type": "amrap",
            "duration_seconds": 600,
            "exercises": [{"exercise_id": 901, "reps": "15"}],
        },
        "emom": {
            "block_type": "emom",
            "duration_seconds": 720,
            "exercises": [{"exercise_id": 1001, "reps": "5"}],
        },
        "tabata": {
            "block_type": "tabata",
            "exercises": [{"exercise_id": 1101}],
        },
        "for_time": {
            "block_type": "for_time",
            "duration_seconds": 900,
            "exercises": [{"exercise_id": 1201, "reps": "50"}],
        },
        "ladder": {
            "block_type": "ladder",
            "exercises": [{
                "exercise_id": 1301,
                "config": {"ladder_sets": [{"reps": "2"}, {"reps": "4"}, {"reps": "6"}]},
            }],
        },
    }


@pytest.fixture
def make_template(coach):
    """Create and commit a workout template owned by ``coach``."""

    def _make(blocks=None, name="Upper A", estimated_duration=45, owner=None):
        payload = {
            "name": name,
            "estimated_duration": estimated_duration,
            "blocks": blocks if blocks is not None else [straight_block()],
        }
        template = create_template((owner or coach).id, payload)
        db.session.commit()
        return template

    return _make


@pytest.fixture
def make_program(coach):
    """Create and commit a program owned by ``coach``."""

    def _make(duration_weeks=4, name="Strength Block", owner=None):
        program = create_program((owner or coach).id, {"name": name, "duration_weeks": duration_weeks})
        db.session.commit()
        return program

    return _make


@pytest.fixture
def enrolled(make_program, make_template, athlete):
    """A two-week program, two days a week, assigned to ``athlete``.

    Returns a dict with the program, templates, schedule rows and assignment.
    """
    program = make_program(duration_weeks=2)
    upper = make_template(name="Upper A")
    lower = make_template(blocks=[straight_block(exercise_id=150, sets=5, reps="5")], name="Lower A")

    rows = {
        (1, 0): set_day(program.id, 1, 0, upper.id),
        (1, 3): set_day(program.id, 1, 3, lower.id),
        (2, 0): set_day(program.id, 2, 0, upper.id),
        (2, 3): set_day(program.id, 2, 3, lower.id),
    }
    assignment = assign_program(program.id, athlete.id)
    db.session.commit()
    return {
        "program": program,
        "upper": upper,
        "lower": lower,
        "rows": rows,
        "assignment": assignment,
    }
