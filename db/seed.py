"""Demo data seeder: one coach, one athlete, a strength block and a few personal sessions.

The program-linked workouts only carry day-numbers; their calendar dates come
from the athlete's enrollment start, so the seeded calendar always opens on the
current program week.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from coaching.config import get_settings
from coaching.dates import align_to_monday, today
from coaching.db import session_scope
from coaching.logging_config import log_context, setup_logging
from coaching.models import Profile, Program, ProgramEnrollment, Workout, WorkoutExercise
from coaching.services.workout_notes import serialize_coach_notes

logger = logging.getLogger(__name__)

PROGRAM_WEEKS = 4

# (day_number, title, focus area, [(exercise, sets, reps, rpe)])
BLOCK_SESSIONS: list[tuple[int, str, str, list[tuple[str, int, str, float]]]] = [
    (1, "Squat Volume", "Lower body strength", [("Back Squat", 5, "5", 7.0), ("Romanian Deadlift", 3, "8", 7.0)]),
    (2, "Bench Technique", "Upper body pressing", [("Bench Press", 5, "3", 6.5), ("Chin-up", 3, "AMRAP", 8.0)]),
    (3, "Conditioning", "Aerobic base", [("Bike Intervals", 8, "30s on / 90s off", 8.0)]),
    (4, "Deadlift Heavy", "Posterior chain", [("Deadlift", 4, "3", 8.0), ("Hip Thrust", 3, "10", 7.0)]),
    (5, "Overhead Strength", "Shoulders", [("Overhead Press", 5, "5", 7.5), ("Row", 4, "10", 7.0)]),
    (6, "Accessory Circuit", "Mobility and core", [("Split Squat", 3, "10", 6.0), ("Plank", 3, "45s", 6.0)]),
]


def run_migrations() -> None:
    cfg = Config("alembic.ini")
    command.upgrade(cfg, "head")


def seed_profiles() -> tuple[int, int]:
    with session_scope() as s:
        coach = s.execute(select(Profile).where(Profile.email == "coach@liftacademy.test")).scalar_one_or_none()
        if coach is None:
            coach = Profile(first_name="Casey", last_name="Coach", email="coach@liftacademy.test", role="coach")
            s.add(coach)
        athlete = s.execute(select(Profile).where(Profile.email == "athlete@liftacademy.test")).scalar_one_or_none()
        if athlete is None:
            athlete = Profile(first_name="Alex", last_name="Athlete", email="athlete@liftacademy.test", role="athlete")
            s.add(athlete)
        s.flush()
        return coach.id, athlete.id


def seed_program(coach_id: int, athlete_id: int) -> int:
    with session_scope() as s:
        program = s.execute(select(Program).where(Program.title == "Foundations Strength Block")).scalar_one_or_none()
        if program is not None:
            return program.id
        program = Program(
            title="Foundations Strength Block",
            description="Four weeks of six-day training to build a strength base.",
            duration_weeks=PROGRAM_WEEKS,
            created_by=coach_id,
        )
        s.add(program)
        s.flush()

        for week in range(PROGRAM_WEEKS):
            for day_in_week, title, focus, exercises in BLOCK_SESSIONS:
                workout = Workout(
                    title=f"W{week + 1} {title}",
                    program_id=program.id,
                    day_number=week * len(BLOCK_SESSIONS) + day_in_week,
                    duration_minutes=60,
                    focus_area=focus,
                    coach_notes=serialize_coach_notes(focus, "Leave two reps in reserve on the top set."),
                    is_template=True,
                )
                workout.exercises = [
                    WorkoutExercise(exercise_name=name, order_in_workout=i, target_sets=sets, target_reps=reps, target_rpe=rpe)
                    for i, (name, sets, reps, rpe) in enumerate(exercises)
                ]
                s.add(workout)

        start = align_to_monday(today())
        s.add(
            ProgramEnrollment(
                athlete_id=athlete_id,
                program_id=program.id,
                status="active",
                start_date=start,
                end_date=start + timedelta(weeks=PROGRAM_WEEKS),
                enrolled_at=datetime.now(),
            )
        )
        return program.id


def seed_personal_workouts(athlete_id: int) -> None:
    with session_scope() as s:
        existing = s.execute(select(Workout.id).where(Workout.athlete_id == athlete_id)).first()
        if existing:
            return
        base = today()
        s.add_all(
            [
                Workout(title="Easy Recovery Run", athlete_id=athlete_id, scheduled_date=base + timedelta(days=1), duration_minutes=30),
                Workout(title="Yoga Flow", athlete_id=athlete_id, scheduled_date=base + timedelta(days=3), duration_minutes=45),
            ]
        )


def main() -> None:
    setup_logging(get_settings().log_level)
    run_migrations()
    coach_id, athlete_id = seed_profiles()
    program_id = seed_program(coach_id, athlete_id)
    seed_personal_workouts(athlete_id)
    logger.info("seeding complete", extra=log_context(athlete_id=athlete_id, program_id=program_id))


if __name__ == "__main__":
    main()
