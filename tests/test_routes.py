"""HTTP contract tests through the Flask test client."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from conftest import PASSWORD, straight_block
from fitcoach.extensions import db
from fitcoach.models import ProgramProgress, ProgramSchedule, ProgressionRule, User, WorkoutLog, WorkoutSetLog
from fitcoach.services import workout_day
from fitcoach.services.program_schedule import set_day
from fitcoach.services.workout_day import start_workout_day
from fitcoach.utils.capabilities import ReadCapability


def _first_rule_id(client, program_id, row, headers):
    response = client.get(
        f"/coach/api/programs/{program_id}/progression-rules",
        query_string={"week_number": row.week_number, "schedule_id": row.id},
        headers=headers,
    )
    return response.get_json()["rules"][0]["id"]


class TestAuth:
    def test_login_returns_token(self, client, coach) -> None:
        response = client.post("/api/auth/login", json={"email": "coach@example.com", "password": PASSWORD})
        assert response.status_code == 200
        body = response.get_json()
        assert body["access_token"]
        assert body["user"]["role"] == "coach"

    def test_login_bad_password(self, client, coach) -> None:
        response = client.post("/api/auth/login", json={"email": "coach@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthenticated"

    def test_login_suspended(self, client, coach) -> None:
        coach.status = "suspended"
        db.session.commit()
        response = client.post("/api/auth/login", json={"email": "coach@example.com", "password": PASSWORD})
        assert response.status_code == 403

    def test_me(self, client, athlete, auth_headers) -> None:
        response = client.get("/api/auth/me", headers=auth_headers(athlete))
        assert response.status_code == 200
        assert response.get_json()["email"] == "client@example.com"

    def test_missing_token(self, client) -> None:
        response = client.post("/workout-day/start", json={})
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthenticated"

    def test_garbage_token(self, client) -> None:
        response = client.post("/workout-day/start", json={}, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestCoachApi:
    def test_create_program(self, client, coach, auth_headers) -> None:
        response = client.post(
            "/coach/api/programs",
            json={"name": "Hypertrophy", "duration_weeks": 6},
            headers=auth_headers(coach),
        )
        assert response.status_code == 201
        body = response.get_json()
        assert (body["name"], body["duration_weeks"], body["coach_id"]) == ("Hypertrophy", 6, coach.id)

    def test_client_cannot_use_coach_api(self, client, athlete, auth_headers) -> None:
        response = client.post("/coach/api/programs", json={"name": "Mine"}, headers=auth_headers(athlete))
        assert response.status_code == 403
        assert response.get_json()["error"] == "forbidden"

    def test_other_coach_cannot_read_program(self, client, make_program, other_coach, auth_headers) -> None:
        program = make_program()
        response = client.get(f"/coach/api/programs/{program.id}", headers=auth_headers(other_coach))
        assert response.status_code == 403

    def test_admin_can_read_program(self, client, make_program, admin, auth_headers) -> None:
        program = make_program()
        response = client.get(f"/coach/api/programs/{program.id}", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.get_json()["schedule"] == []

    def test_put_schedule_day(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        template = make_template()
        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": 1, "day_of_week": 2, "template_id": template.id},
            headers=auth_headers(coach),
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["schedule"]["day_of_week"] == 2

        response = client.get(
            f"/coach/api/programs/{program.id}/progression-rules",
            query_string={"week_number": 1, "schedule_id": body["schedule_id"]},
            headers=auth_headers(coach),
        )
        assert response.status_code == 200
        rules = response.get_json()
        assert rules["is_placeholder"] is False
        assert [(r["sets"], r["reps"]) for r in rules["rules"]] == [(3, "10")]

    def test_put_schedule_day_invalid_day(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": 1, "day_of_week": 9, "template_id": make_template().id},
            headers=auth_headers(coach),
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_argument"

    def test_put_schedule_unknown_field(self, client, coach, make_program, auth_headers) -> None:
        program = make_program()
        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": 1, "day_of_week": 1, "template_id": 1, "colour": "red"},
            headers=auth_headers(coach),
        )
        assert response.status_code == 400
        assert "colour" in response.get_json()["errors"]

    def test_rules_query_requires_parameters(self, client, coach, make_program, auth_headers) -> None:
        program = make_program()
        response = client.get(f"/coach/api/programs/{program.id}/progression-rules", headers=auth_headers(coach))
        assert response.status_code == 400

    def test_patch_rule_customizes_week(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        row = set_day(program.id, 2, 0, make_template().id)
        db.session.commit()
        rules = client.get(
            f"/coach/api/programs/{program.id}/progression-rules",
            query_string={"week_number": 2, "schedule_id": row.id},
            headers=auth_headers(coach),
        ).get_json()
        assert rules["is_placeholder"] is True

        rule_id = rules["rules"][0]["id"]
        response = client.patch(
            f"/coach/api/progression-rules/{rule_id}", json={"reps": "8-12"}, headers=auth_headers(coach)
        )
        assert response.status_code == 200
        assert response.get_json()["reps"] == "8-12"
        assert response.get_json()["is_placeholder"] is False

    def test_patch_rule_rejects_bad_value(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        row = set_day(program.id, 1, 0, make_template().id)
        db.session.commit()
        rule_id = _first_rule_id(client, program.id, row, auth_headers(coach))

        response = client.patch(
            f"/coach/api/progression-rules/{rule_id}", json={"sets": "12-15"}, headers=auth_headers(coach)
        )
        assert response.status_code == 400
        assert "sets" in response.get_json()["errors"]

    def test_replace_exercise(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        row = set_day(program.id, 1, 0, make_template().id)
        db.session.commit()
        rule_id = _first_rule_id(client, program.id, row, auth_headers(coach))

        response = client.post(
            f"/coach/api/progression-rules/{rule_id}/replace-exercise",
            json={"exercise_id": 999},
            headers=auth_headers(coach),
        )
        body = response.get_json()
        assert response.status_code == 200
        assert (body["exercise_id"], body["sets"], body["reps"], body["rest_seconds"]) == (999, 3, "10", 60)

    def test_create_template_rejects_unknown_block(self, client, coach, auth_headers) -> None:
        response = client.post(
            "/coach/api/workout-templates",
            json={"name": "Odd", "blocks": [{"block_type": "hiit", "exercises": [{"exercise_id": 1}]}]},
            headers=auth_headers(coach),
        )
        assert response.status_code == 400

    def test_create_template_rejects_short_giant_set(self, client, coach, auth_headers) -> None:
        block = {
            "block_type": "giant_set",
            "total_sets": 3,
            "exercises": [{"exercise_id": 1, "reps": "10"}, {"exercise_id": 2, "reps": "10"}],
        }
        response = client.post(
            "/coach/api/workout-templates", json={"name": "Short", "blocks": [block]}, headers=auth_headers(coach)
        )
        assert response.status_code == 400

    def test_create_template(self, client, coach, auth_headers, block_payloads) -> None:
        response = client.post(
            "/coach/api/workout-templates",
            json={"name": "All", "blocks": list(block_payloads.values())},
            headers=auth_headers(coach),
        )
        assert response.status_code == 201
        assert len(response.get_json()["blocks"]) == 13

    def test_block_types(self, client, coach, auth_headers) -> None:
        response = client.get("/coach/api/block-types", headers=auth_headers(coach))
        assert response.status_code == 200
        assert len(response.get_json()["block_types"]) == 13

    def test_auto_fill_and_replace(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program(duration_weeks=2)
        set_day(program.id, 1, 0, make_template().id)
        db.session.commit()

        response = client.post(f"/coach/api/programs/{program.id}/schedule/auto-fill", headers=auth_headers(coach))
        assert response.status_code == 200
        created = response.get_json()["created"]
        assert [row["week_number"] for row in created] == [2]

        other = make_template(blocks=[straight_block(exercise_id=5)], name="Other")
        response = client.post(
            f"/coach/api/programs/{program.id}/schedule/{created[0]['id']}/replace",
            json={"template_id": other.id},
            headers=auth_headers(coach),
        )
        assert response.status_code == 200
        assert [rule["exercise_id"] for rule in response.get_json()["rules"]] == [5]

    def test_assign_program_twice_conflicts(self, client, coach, athlete, make_program, auth_headers) -> None:
        program = make_program()
        url = f"/coach/api/programs/{program.id}/assignments"
        first = client.post(url, json={"client_id": athlete.id}, headers=auth_headers(coach))
        assert first.status_code == 201

        second = client.post(url, json={"client_id": athlete.id}, headers=auth_headers(coach))
        assert second.status_code == 409
        assert second.get_json()["error"] == "conflict"


class TestWorkoutDayApi:
    def test_start_and_resume(self, client, enrolled, athlete, auth_headers) -> None:
        first = client.post("/workout-day/start", json={}, headers=auth_headers(athlete))
        assert first.status_code == 200
        body = first.get_json()
        assert body["reused_existing"] is False
        assert body["position_label"] == "Week 1 • Day 1"

        second = client.post("/workout-day/start", json={}, headers=auth_headers(athlete))
        assert second.get_json()["workout_assignment_id"] == body["workout_assignment_id"]
        assert second.get_json()["reused_existing"] is True

    def test_start_without_program(self, client, athlete, auth_headers) -> None:
        response = client.post("/workout-day/start", json={}, headers=auth_headers(athlete))
        assert response.status_code == 404
        body = response.get_json()
        assert (body["error"], body["status"]) == ("program_inactive", "no_program")

    def test_start_completed_program(self, client, enrolled, athlete, auth_headers) -> None:
        progress = ProgramProgress.query.filter_by(program_assignment_id=enrolled["assignment"].id).one()
        progress.is_completed = True
        db.session.commit()

        response = client.post("/workout-day/start", json={}, headers=auth_headers(athlete))
        assert response.status_code == 409
        assert response.get_json()["status"] == "completed"

    def test_start_for_other_client_forbidden(self, client, enrolled, athlete, other_athlete, auth_headers) -> None:
        response = client.post(
            "/workout-day/start", json={"client_id": athlete.id}, headers=auth_headers(other_athlete)
        )
        assert response.status_code == 403

    def test_current(self, client, enrolled, athlete, coach, auth_headers) -> None:
        response = client.get("/workout-day/current", headers=auth_headers(athlete))
        assert response.status_code == 200
        assert response.get_json()["status"] == "active"

        response = client.get(
            "/workout-day/current", query_string={"client_id": athlete.id}, headers=auth_headers(coach)
        )
        assert response.status_code == 200

    def test_advance_by_coach(self, client, enrolled, athlete, coach, auth_headers) -> None:
        response = client.post(
            "/workout-day/advance", json={"client_id": athlete.id, "notes": "Done"}, headers=auth_headers(coach)
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "advanced"
        assert (body["current_week_index"], body["current_day_index"]) == (0, 1)

    def test_advance_other_coach_forbidden(self, client, enrolled, athlete, other_coach, auth_headers) -> None:
        response = client.post(
            "/workout-day/advance", json={"client_id": athlete.id}, headers=auth_headers(other_coach)
        )
        assert response.status_code == 403

    def test_advance_finished_program(self, client, enrolled, athlete, auth_headers) -> None:
        for _ in range(4):
            assert client.post("/workout-day/advance", json={}, headers=auth_headers(athlete)).status_code == 200

        response = client.post("/workout-day/advance", json={}, headers=auth_headers(athlete))
        assert response.status_code == 409
        body = response.get_json()
        assert (body["error"], body["status"]) == ("conflict", "completed")


class TestSetLogs:
    def test_set_logs_attach_to_workout_log(self, enrolled, athlete) -> None:
        result = start_workout_day(ReadCapability(athlete.id, athlete.role))
        log = db.session.get(WorkoutLog, result["log_id"])
        log.set_logs.append(WorkoutSetLog(
            client_id=athlete.id, exercise_id=101, set_number=1, weight_kg=60, reps_completed=10, rir=2
        ))
        log.set_logs.append(WorkoutSetLog(
            client_id=athlete.id, exercise_id=101, set_number=2, weight_kg=60, reps_completed=9, rir=1
        ))
        db.session.commit()

        stored = WorkoutSetLog.query.filter_by(workout_log_id=log.id).order_by(WorkoutSetLog.set_number).all()
        assert [s.reps_completed for s in stored] == [10, 9]


class TestCreateUserCommand:
    def test_creates_user(self, app) -> None:
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-user", "--email", "New@Example.com", "--name", "New Coach",
            "--role", "coach", "--password", "longenough",
        ])
        assert result.exit_code == 0, result.output
        user = User.query.filter_by(email="new@example.com").one()
        assert user.role == "coach"
        assert user.check_password("longenough")

    def test_rejects_short_password(self, app) -> None:
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-user", "--email", "x@example.com", "--name", "X", "--password", "short",
        ])
        assert result.exit_code != 0
        assert User.query.filter_by(email="x@example.com").first() is None


class TestTemplateOwnership:
    def test_other_coach_cannot_schedule_template(
        self, client, coach, other_coach, make_program, make_template, auth_headers
    ) -> None:
        template = make_template(owner=coach)
        program = make_program(owner=other_coach)

        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": 1, "day_of_week": 0, "template_id": template.id},
            headers=auth_headers(other_coach),
        )
        assert response.status_code == 403
        assert ProgramSchedule.query.filter_by(program_id=program.id).count() == 0
        assert ProgressionRule.query.count() == 0

    def test_other_coach_cannot_replace_with_template(
        self, client, coach, other_coach, make_program, make_template, auth_headers
    ) -> None:
        theirs = make_template(owner=coach)
        own = make_template(owner=other_coach, name="Own")
        program = make_program(owner=other_coach)
        row = set_day(program.id, 1, 0, own.id)
        db.session.commit()

        response = client.post(
            f"/coach/api/programs/{program.id}/schedule/{row.id}/replace",
            json={"template_id": theirs.id},
            headers=auth_headers(other_coach),
        )
        assert response.status_code == 403
        assert db.session.get(ProgramSchedule, row.id).template_id == own.id

    def test_admin_may_schedule_any_template(
        self, client, coach, admin, make_program, make_template, auth_headers
    ) -> None:
        template = make_template(owner=coach)
        program = make_program(owner=coach)
        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": 1, "day_of_week": 0, "template_id": template.id},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200

    def test_boolean_week_rejected(self, client, coach, make_program, make_template, auth_headers) -> None:
        program = make_program()
        template = make_template()
        response = client.put(
            f"/coach/api/programs/{program.id}/schedule",
            json={"week_number": True, "day_of_week": 0, "template_id": template.id},
            headers=auth_headers(coach),
        )
        assert response.status_code == 400


class TestWorkoutLifecycleApi:
    def test_log_sets_then_complete(self, client, enrolled, athlete, auth_headers) -> None:
        started = client.post("/workout-day/start", json={}, headers=auth_headers(athlete)).get_json()
        log_id = started["log_id"]

        for weight, reps in [(60, 10), (60, 8)]:
            response = client.post(
                f"/workout-day/logs/{log_id}/sets",
                json={"exercise_id": 101, "weight_kg": weight, "reps_completed": reps},
                headers=auth_headers(athlete),
            )
            assert response.status_code == 201
        assert response.get_json()["set_number"] == 2

        response = client.post(
            f"/workout-day/logs/{log_id}/complete", json={"duration_minutes": 42}, headers=auth_headers(athlete)
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["totals"] == {"sets": 2, "reps": 18, "volume_kg": 1080, "duration_minutes": 42}
        assert body["workout_log"]["completed_at"] is not None

        again = client.post("/workout-day/start", json={}, headers=auth_headers(athlete)).get_json()
        assert again["reused_existing"] is False
        assert again["workout_assignment_id"] != started["workout_assignment_id"]

    def test_set_on_completed_log_conflicts(self, client, enrolled, athlete, auth_headers) -> None:
        log_id = client.post("/workout-day/start", json={}, headers=auth_headers(athlete)).get_json()["log_id"]
        client.post(f"/workout-day/logs/{log_id}/complete", json={}, headers=auth_headers(athlete))

        response = client.post(
            f"/workout-day/logs/{log_id}/sets", json={"exercise_id": 101}, headers=auth_headers(athlete)
        )
        assert response.status_code == 409

    def test_other_client_cannot_log(self, client, enrolled, athlete, other_athlete, auth_headers) -> None:
        log_id = client.post("/workout-day/start", json={}, headers=auth_headers(athlete)).get_json()["log_id"]
        response = client.post(
            f"/workout-day/logs/{log_id}/sets", json={"exercise_id": 101}, headers=auth_headers(other_athlete)
        )
        assert response.status_code == 403
        assert WorkoutSetLog.query.count() == 0

    def test_cancel_session(self, client, enrolled, athlete, auth_headers) -> None:
        started = client.post("/workout-day/start", json={}, headers=auth_headers(athlete)).get_json()

        response = client.post(
            f"/workout-day/sessions/{started['session_id']}/cancel", json={}, headers=auth_headers(athlete)
        )
        assert response.status_code == 200
        assert response.get_json()["status"] == "cancelled"

        response = client.post(
            f"/workout-day/sessions/{started['session_id']}/cancel", json={}, headers=auth_headers(athlete)
        )
        assert response.status_code == 409

    def test_store_error_on_start_is_unavailable(self, client, enrolled, athlete, auth_headers, monkeypatch) -> None:
        def locked(*args):
            raise OperationalError("SELECT workout_sessions.id", {}, Exception("database is locked"))

        monkeypatch.setattr(workout_day, "find_program_day_workout", locked)
        response = client.post("/workout-day/start", json={}, headers=auth_headers(athlete))
        assert response.status_code == 503
        assert response.get_json()["error"] == "upstream_unavailable"
