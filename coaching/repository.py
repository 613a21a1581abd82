"""Read/write helpers between ORM rows and the scheduling core's records."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict
from typing import Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload

from coaching.logging_config import log_context
from coaching.models import CheckInMedia, Notification, ProgramEnrollment, Workout, WorkoutCheckIn
from coaching.records import CheckInRecord, EnrollmentRecord, ExerciseTarget, WorkoutRecord
from coaching.services.enrollments import MaintenancePlan

logger = logging.getLogger(__name__)

RENEWAL_ACTION_URL = "/?page=programs&enrollment={enrollment_id}"


def to_enrollment_record(row: ProgramEnrollment) -> EnrollmentRecord:
    return EnrollmentRecord(
        id=row.id,
        athlete_id=row.athlete_id,
        program_id=row.program_id,
        status=row.status,
        start_date=row.start_date,
        enrolled_at=row.enrolled_at,
        created_at=row.created_at,
        end_date=row.end_date,
        duration_weeks=row.program.duration_weeks if row.program else None,
        program_title=row.program.title if row.program else None,
    )


def to_check_in_record(row: WorkoutCheckIn) -> CheckInRecord:
    return CheckInRecord(
        id=row.id,
        workout_id=row.workout_id,
        athlete_id=row.athlete_id,
        submitted_at=row.submitted_at,
        status=row.status,
        revision_requested_at=row.revision_requested_at,
        readiness_score=row.readiness_score,
        energy_level=row.energy_level,
        soreness_level=row.soreness_level,
        notes=row.notes or "",
        coach_notes=row.coach_notes or "",
        achieved_pr=bool(row.achieved_pr),
        pr_exercise=row.pr_exercise,
        pr_value=row.pr_value,
        pr_unit=row.pr_unit,
        media_urls=tuple(m.media_url for m in row.media),
    )


def to_workout_record(row: Workout) -> WorkoutRecord:
    return WorkoutRecord(
        id=row.id,
        title=row.title,
        program_id=row.program_id,
        day_number=row.day_number,
        scheduled_date=row.scheduled_date,
        athlete_id=row.athlete_id,
        duration_minutes=row.duration_minutes,
        description=row.description or "",
        coach_notes=row.coach_notes or "",
        focus_area=row.focus_area,
        is_template=bool(row.is_template),
        is_completed=bool(row.is_completed),
        exercises=tuple(
            ExerciseTarget(
                name=e.exercise_name,
                order=e.order_in_workout,
                target_sets=e.target_sets,
                target_reps=e.target_reps,
                target_weight=e.target_weight,
                target_rpe=e.target_rpe,
                rest_seconds=e.rest_seconds,
                notes=e.notes or "",
            )
            for e in row.exercises
        ),
        check_ins=tuple(to_check_in_record(c) for c in row.check_ins),
    )


def load_enrollments(s: Session, athlete_id: int) -> list[EnrollmentRecord]:
    rows = s.execute(
        select(ProgramEnrollment)
        .where(ProgramEnrollment.athlete_id == athlete_id)
        .order_by(ProgramEnrollment.created_at.desc(), ProgramEnrollment.id.desc())
    ).scalars().unique().all()
    return [to_enrollment_record(r) for r in rows]


def load_workouts(s: Session, athlete_id: int, program_ids: Sequence[int]) -> list[WorkoutRecord]:
    """The athlete's personal workouts plus shared workouts of the given programs."""
    condition = Workout.athlete_id == athlete_id
    if program_ids:
        condition = or_(condition, and_(Workout.athlete_id.is_(None), Workout.program_id.in_(list(program_ids))))
    rows = s.execute(
        select(Workout)
        .where(condition)
        .options(
            selectinload(Workout.exercises),
            selectinload(Workout.check_ins).selectinload(WorkoutCheckIn.media),
        )
        .order_by(Workout.id)
    ).scalars().all()
    return [to_workout_record(r) for r in rows]


def load_check_ins(s: Session, athlete_id: int) -> list[CheckInRecord]:
    rows = s.execute(
        select(WorkoutCheckIn)
        .where(WorkoutCheckIn.athlete_id == athlete_id)
        .options(selectinload(WorkoutCheckIn.media))
        .order_by(WorkoutCheckIn.submitted_at.desc())
    ).scalars().all()
    return [to_check_in_record(r) for r in rows]


def store_check_in(s: Session, row: WorkoutCheckIn, record: CheckInRecord) -> WorkoutCheckIn:
    """Copy a transitioned record back onto its row."""
    values = asdict(record)
    media_urls = values.pop("media_urls")
    for key in ("id", "workout_id", "athlete_id"):
        values.pop(key)
    for key, value in values.items():
        setattr(row, key, value)
    existing = {m.media_url for m in row.media}
    for url in media_urls:
        if url not in existing:
            row.media.append(CheckInMedia(media_url=url, media_type="video" if url.endswith((".mp4", ".mov")) else "image"))
    row.updated_at = dt.datetime.now()
    s.flush()
    return row


def apply_maintenance_plan(s: Session, plan: MaintenancePlan, athlete_id: Optional[int] = None) -> tuple[int, int]:
    """Persist a maintenance plan; returns ``(updated, notifications_created)``."""
    now = dt.datetime.now()
    for update in plan.updates:
        row = s.get(ProgramEnrollment, update.enrollment_id)
        if row is None:
            continue
        row.start_date = update.start_date
        row.end_date = update.end_date
        row.status = update.status
        row.updated_at = now

    created = 0
    for reminder in plan.reminders:
        recipient = athlete_id if athlete_id is not None else reminder.athlete_id
        action_url = RENEWAL_ACTION_URL.format(enrollment_id=reminder.enrollment_id)
        exists = s.execute(
            select(Notification.id).where(Notification.athlete_id == recipient, Notification.action_url == action_url).limit(1)
        ).first()
        if exists:
            continue
        s.add(
            Notification(
                athlete_id=recipient,
                title=reminder.title,
                message=reminder.message,
                type="program_update",
                action_url=action_url,
            )
        )
        created += 1
    s.flush()
    logger.info("enrollment maintenance applied", extra=log_context(updated=len(plan.updates), notifications_created=created))
    return len(plan.updates), created


def notify(s: Session, athlete_id: int, title: str, message: str, type_: str, action_url: Optional[str] = None) -> None:
    s.add(Notification(athlete_id=athlete_id, title=title, message=message, type=type_, action_url=action_url))
