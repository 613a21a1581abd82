from __future__ import annotations

from datetime import date, datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import select

TODAY = date(2024, 1, 10)
NOW = datetime(2024, 1, 10, 12, 0)
ATHLETE = 2
OTHER_ATHLETE = 3
TEAMMATE = 4


def _seed():
    from coaching.db import session_scope
    from coaching.models import Profile, Program, ProgramEnrollment, Workout, WorkoutExercise

    with session_scope() as s:
        s.add_all(
            [
                Profile(id=1, first_name="Casey", last_name="Coach", email="coach@example.com", role="coach"),
                Profile(id=ATHLETE, first_name="Alex", last_name="Athlete", email="alex@example.com"),
                Profile(id=OTHER_ATHLETE, first_name="Sam", last_name="Lifter", email="sam@example.com"),
            ]
        )
        s.flush()
        s.add_all(
            [
                Program(id=10, title="Strength Block", duration_weeks=4, created_by=1),
                Program(id=11, title="Hypertrophy Block", duration_weeks=6, created_by=1),
            ]
        )
        s.flush()
        s.add_all(
            [
                ProgramEnrollment(
                    id=1,
                    athlete_id=ATHLETE,
                    program_id=10,
                    status="active",
                    start_date=date(2024, 1, 1),
                    enrolled_at=datetime(2024, 1, 1, 8, 0),
                ),
                ProgramEnrollment(id=2, athlete_id=OTHER_ATHLETE, program_id=11, status="pending"),
            ]
        )
        squat = Workout(
            id=1,
            title="Squat Volume",
            program_id=10,
            day_number=7,
            is_template=True,
            coach_notes="Focus Area: Lower body\n\nStay braced",
        )
        squat.exercises = [WorkoutExercise(exercise_name="Back Squat", order_in_workout=0, target_sets=5, target_reps="5")]
        s.add_all(
            [
                squat,
                Workout(id=2, title="Bench", program_id=10, day_number=1, scheduled_date=date(2024, 1, 20)),
                Workout(id=3, title="Recovery Run", athlete_id=ATHLETE, scheduled_date=date(2024, 1, 9)),
                Workout(id=4, title="Bonus Week", program_id=10, day_number=30),
                Workout(id=5, title="Hypertrophy Day 1", program_id=11, day_number=1),
            ]
        )


def _enroll_teammate():
    from coaching.db import session_scope
    from coaching.models import Profile, ProgramEnrollment, Workout

    with session_scope() as s:
        s.add(Profile(id=TEAMMATE, first_name="Jo", last_name="Teammate", email="jo@example.com"))
        s.flush()
        s.add_all(
            [
                ProgramEnrollment(id=3, athlete_id=TEAMMATE, program_id=10, status="active", start_date=date(2024, 1, 1)),
                Workout(id=6, title="Accessory Day", program_id=10, day_number=2, athlete_id=ATHLETE),
            ]
        )


def _build_client(tmp_path, monkeypatch, *, today=TODAY, now=NOW, rate_limiter=None):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("APP_ENV", "test")

    from coaching.config import get_settings
    from coaching.db import Base, get_engine, reset_engine

    get_settings.cache_clear()
    reset_engine()
    Base.metadata.create_all(get_engine())
    _seed()

    from api.deps import get_now, get_today
    from api.main import create_app

    app = create_app(rate_limiter=rate_limiter)
    app.dependency_overrides[get_today] = lambda: today
    app.dependency_overrides[get_now] = lambda: now
    return TestClient(app)


def test_health_sets_request_id(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "app_env": "test"}
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert client.get("/api/v1/health").headers["X-Request-ID"]


def test_calendar_merges_program_and_personal_workouts(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    resp = client.get(f"/api/v1/athletes/{ATHLETE}/calendar")
    assert resp.status_code == 200
    items = resp.json()["items"]
    assert [(i["id"], i["scheduled_date"]) for i in items] == [
        (1, "2024-01-08"),
        (3, "2024-01-09"),
        (2, "2024-01-20"),
    ]
    squat = items[0]
    assert squat["source_kind"] == "program"
    assert squat["is_template"] is True
    assert squat["focus_area"] == "Lower body"
    assert squat["exercises"][0]["name"] == "Back Squat"
    assert items[2]["source_kind"] == "explicit"


def test_calendar_date_range(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    resp = client.get(f"/api/v1/athletes/{ATHLETE}/calendar", params={"start": "2024-01-01", "end": "2024-01-08"})
    assert [i["id"] for i in resp.json()["items"]] == [1]

    assert client.get(f"/api/v1/athletes/{ATHLETE}/calendar", params={"start": "2024-01-01"}).status_code == 422
    assert (
        client.get(f"/api/v1/athletes/{ATHLETE}/calendar", params={"start": "2024-01-09", "end": "2024-01-01"}).status_code
        == 422
    )


def test_pending_enrollment_hides_program_workouts(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    assert client.get(f"/api/v1/athletes/{OTHER_ATHLETE}/calendar").json()["items"] == []


def test_month_grid(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    body = client.get(f"/api/v1/athletes/{ATHLETE}/calendar/month", params={"anchor": "2024-01-15"}).json()
    cells = body["cells"]
    assert len(cells) == 42
    assert cells[0]["date"] == "2023-12-31"
    assert cells[0]["in_month"] is False
    by_date = {c["date"]: c for c in cells}
    assert [w["id"] for w in by_date["2024-01-08"]["workouts"]] == [1]
    assert by_date["2024-01-10"]["is_today"] is True


def test_week_window(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    body = client.get(
        f"/api/v1/athletes/{ATHLETE}/calendar/week", params={"anchor": "2024-01-10", "start_index": 5}
    ).json()
    assert body["days"][0]["date"] == "2024-01-07"
    assert body["days"][0]["label"] == "Sun, Jan 7"
    assert body["start_index"] == 4
    assert [d["date"] for d in body["visible"]] == ["2024-01-11", "2024-01-12", "2024-01-13"]
    by_date = {d["date"]: d for d in body["days"]}
    assert [w["id"] for w in by_date["2024-01-09"]["workouts"]] == [3]


def test_events_include_milestones(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    events = client.get(f"/api/v1/athletes/{ATHLETE}/events").json()
    ids = [e["id"] for e in events]
    assert ids[0] == "start-1"
    assert {"1", "2", "3"} <= set(ids)
    assert events[0]["title"] == "Program starts: Strength Block"


def test_schedule_program_workout_by_date(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    _enroll_teammate()
    resp = client.post("/api/v1/workouts/6/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-16"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["day_number"] == 14
    assert body["scheduled_date"] == "2024-01-16"

    items = client.get(f"/api/v1/athletes/{ATHLETE}/calendar").json()["items"]
    assert ("2024-01-16", 6) in [(i["scheduled_date"], i["id"]) for i in items]


def test_schedule_rest_day_is_rejected(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    _enroll_teammate()
    resp = client.post("/api/v1/workouts/6/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-14"})
    assert resp.status_code == 422
    assert resp.json()["detail"] == {
        "code": "INVALID_SCHEDULE_DATE",
        "message": "Selected date falls outside this program's training days",
    }


def test_schedule_requires_enrollment_in_program(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    resp = client.post("/api/v1/workouts/5/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-16"})
    assert resp.status_code == 422
    assert client.post("/api/v1/workouts/999/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-16"}).status_code == 404


def test_schedule_personal_workout_uses_explicit_date(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    resp = client.post("/api/v1/workouts/3/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-12"})
    assert resp.status_code == 200
    assert resp.json()["scheduled_date"] == "2024-01-12"
    items = client.get(f"/api/v1/athletes/{ATHLETE}/calendar").json()["items"]
    assert ("2024-01-12", 3) in [(i["scheduled_date"], i["id"]) for i in items]


def test_schedule_refuses_shared_and_foreign_workouts(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    _enroll_teammate()
    shared = client.post("/api/v1/workouts/1/schedule", json={"athlete_id": ATHLETE, "target_date": "2024-01-16"})
    assert shared.status_code == 409
    assert shared.json()["detail"]["code"] == "WORKOUT_NOT_OWNED"

    foreign = client.post("/api/v1/workouts/6/schedule", json={"athlete_id": TEAMMATE, "target_date": "2024-01-16"})
    assert foreign.status_code == 409
    personal = client.post("/api/v1/workouts/3/schedule", json={"athlete_id": TEAMMATE, "target_date": "2024-01-12"})
    assert personal.status_code == 409

    items = client.get(f"/api/v1/athletes/{TEAMMATE}/calendar").json()["items"]
    assert [(i["id"], i["scheduled_date"]) for i in items] == [(1, "2024-01-08"), (2, "2024-01-20")]


def test_checkin_submit_edit_and_review_flow(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    created = client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE, "readiness_score": 8, "notes": "felt good"})
    assert created.status_code == 201
    check_in = created.json()
    assert check_in["status"] == "submitted"
    assert check_in["submitted_at"].startswith("2024-01-10T12:00")

    edited = client.post(
        "/api/v1/workouts/1/checkins",
        json={"athlete_id": ATHLETE, "readiness_score": 7, "notes": "actually tired", "media_urls": ["https://cdn/set.mp4"]},
    )
    assert edited.status_code == 200
    assert edited.json()["id"] == check_in["id"]
    assert edited.json()["notes"] == "actually tired"
    assert edited.json()["media_urls"] == ["https://cdn/set.mp4"]

    reviewed = client.put(
        f"/api/v1/checkins/{check_in['id']}/review", json={"status": "needs_revision", "coach_notes": "Film from the side"}
    )
    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "needs_revision"
    assert reviewed.json()["coach_notes"] == "Film from the side"

    again = client.put(f"/api/v1/checkins/{check_in['id']}/review", json={"status": "reviewed"})
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "INVALID_CHECKIN_TRANSITION"

    lookup = client.get(f"/api/v1/athletes/{ATHLETE}/checkins/lookup").json()
    assert lookup[0]["workout_id"] == 1
    assert lookup[0]["can_edit"] is True
    assert lookup[0]["revision_deadline"].startswith("2024-01-11T12:00")

    from coaching.db import session_scope
    from coaching.models import Notification, Workout

    with session_scope() as s:
        notes = s.execute(select(Notification).where(Notification.athlete_id == ATHLETE)).scalars().all()
        assert [n.type for n in notes] == ["checkin_followup"]
        assert s.get(Workout, 1).is_completed is False


def test_locked_checkin_cannot_be_edited(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    from coaching.db import session_scope
    from coaching.models import WorkoutCheckIn

    with session_scope() as s:
        s.add(WorkoutCheckIn(id=50, workout_id=3, athlete_id=ATHLETE, submitted_at=NOW - timedelta(hours=25)))

    resp = client.post("/api/v1/workouts/3/checkins", json={"athlete_id": ATHLETE, "notes": "too late"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "CHECKIN_LOCKED"

    lookup = client.get(f"/api/v1/athletes/{ATHLETE}/checkins/lookup").json()
    assert lookup[0]["can_edit"] is False
    assert "more than 24 hours" in lookup[0]["locked_message"]


def test_checkin_validation_and_ownership(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    assert client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE, "readiness_score": 11}).status_code == 422
    assert client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE, "achieved_pr": True}).status_code == 422
    assert client.post("/api/v1/workouts/3/checkins", json={"athlete_id": OTHER_ATHLETE}).status_code == 403
    assert client.post("/api/v1/workouts/999/checkins", json={"athlete_id": ATHLETE}).status_code == 404


def test_checkin_submission_is_rate_limited(tmp_path, monkeypatch):
    from api.rate_limit import RateLimitStore

    client = _build_client(tmp_path, monkeypatch, rate_limiter=RateLimitStore(1, 60))
    assert client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE}).status_code == 201
    limited = client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE})
    assert limited.status_code == 429
    assert limited.headers["Retry-After"] == "60"


def test_enrollment_maintenance_is_idempotent(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch, today=date(2024, 1, 25))
    first = client.post(f"/api/v1/athletes/{ATHLETE}/enrollments/maintenance").json()
    assert first == {"updated": 1, "notifications_created": 1}
    second = client.post(f"/api/v1/athletes/{ATHLETE}/enrollments/maintenance").json()
    assert second == {"updated": 0, "notifications_created": 0}

    from coaching.db import session_scope
    from coaching.models import Notification, ProgramEnrollment

    with session_scope() as s:
        assert s.get(ProgramEnrollment, 1).end_date == date(2024, 1, 29)
        note = s.execute(select(Notification)).scalar_one()
        assert note.title == "Program ending soon: Strength Block"
        assert note.action_url == "/?page=programs&enrollment=1"


def test_enrollment_status_transitions(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    approved = client.put("/api/v1/enrollments/2/status", json={"status": "active"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "active"
    assert approved.json()["start_date"] == "2024-01-10"

    rejected = client.put("/api/v1/enrollments/2/status", json={"status": "pending"})
    assert rejected.status_code == 409
    assert rejected.json()["detail"]["code"] == "INVALID_ENROLLMENT_TRANSITION"
    assert client.put("/api/v1/enrollments/2/status", json={"status": "paused"}).status_code == 422


def test_athlete_summary(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    client.post("/api/v1/workouts/3/checkins", json={"athlete_id": ATHLETE, "readiness_score": 6})
    body = client.get(f"/api/v1/athletes/{ATHLETE}/summary").json()
    assert body["total_workouts"] == 3
    assert body["completed_workouts"] == 1
    assert body["check_in_counts"]["submitted"] == 1
    assert body["enrollments"][0]["end_date"] == "2024-01-29"
    assert body["weekly_check_ins"][0]["week"] == "2024-01-08"
    assert body["weekly_check_ins"][0]["avg_readiness"] == 6.0


def test_checkin_on_shared_workout_stays_with_its_athlete(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    _enroll_teammate()
    assert client.get(f"/api/v1/athletes/{TEAMMATE}/summary").json()["completed_workouts"] == 0

    assert client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE, "readiness_score": 8}).status_code == 201

    mine = {i["id"]: i for i in client.get(f"/api/v1/athletes/{ATHLETE}/calendar").json()["items"]}
    assert mine[1]["is_completed"] is True
    assert client.get(f"/api/v1/athletes/{ATHLETE}/summary").json()["completed_workouts"] == 1

    theirs = {i["id"]: i for i in client.get(f"/api/v1/athletes/{TEAMMATE}/calendar").json()["items"]}
    assert theirs[1]["is_completed"] is False
    assert theirs[1]["check_ins"] == []
    summary = client.get(f"/api/v1/athletes/{TEAMMATE}/summary").json()
    assert summary["completed_workouts"] == 0
    assert summary["streak"] == 0
    events = client.get(f"/api/v1/athletes/{TEAMMATE}/events", params={"on": "2024-01-08"}).json()
    assert [(e["id"], e["status"]) for e in events] == [("1", "pending")]


def test_events_for_a_single_day(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    events = client.get(f"/api/v1/athletes/{ATHLETE}/events", params={"on": "2024-01-01"}).json()
    assert [e["id"] for e in events] == ["start-1"]
    assert client.get(f"/api/v1/athletes/{ATHLETE}/events", params={"on": "2024-01-02"}).json() == []


def test_list_checkins_by_status(tmp_path, monkeypatch):
    client = _build_client(tmp_path, monkeypatch)
    first = client.post("/api/v1/workouts/1/checkins", json={"athlete_id": ATHLETE}).json()
    client.post("/api/v1/workouts/3/checkins", json={"athlete_id": ATHLETE})
    client.put(f"/api/v1/checkins/{first['id']}/review", json={"status": "needs_revision"})

    assert len(client.get(f"/api/v1/athletes/{ATHLETE}/checkins").json()) == 2
    flagged = client.get(f"/api/v1/athletes/{ATHLETE}/checkins", params={"status": "needs_revision"}).json()
    assert [c["id"] for c in flagged] == [first["id"]]
    assert client.get(f"/api/v1/athletes/{ATHLETE}/checkins", params={"status": "bogus"}).status_code == 422
