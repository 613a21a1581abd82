from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from api.deps import get_db, get_now, get_today, rate_limited
from api.schemas import (
    AthleteSummaryOut,
    CalendarEventOut,
    CalendarOut,
    CalendarWorkoutOut,
    CheckInLookupItem,
    CheckInOut,
    CompletionAlertOut,
    EnrollmentOut,
    EnrollmentStatusOut,
    ExerciseOut,
    HealthOut,
    MaintenanceOut,
    MonthCellOut,
    MonthGridOut,
    ScheduleResultOut,
    WeekDayOut,
    WeekWindowOut,
    WeeklyCheckInItem,
)
from coaching.config import get_settings
from coaching.dates import format_for_display
from coaching.errors import ScheduleAssignmentError, WorkoutOwnershipError
from coaching.logging_config import log_context
from coaching.models import ProgramEnrollment, Workout, WorkoutCheckIn
from coaching.records import CHECKIN_NEEDS_REVISION, CHECKIN_STATUSES, ENROLLMENT_ACTIVE, CheckInRecord
from coaching.repository import (
    apply_maintenance_plan,
    load_check_ins,
    load_enrollments,
    load_workouts,
    notify,
    store_check_in,
    to_check_in_record,
)
from coaching.services.calendar_events import calculate_streak, events_for_date, generate_calendar_events
from coaching.services.calendar_view import build_month_grid, build_week_window, clamp_window_start, is_in_month
from coaching.services.checkin_summary import filter_by_status, status_counts, weekly_checkin_summary
from coaching.services.checkin_window import (
    apply_athlete_resubmission,
    apply_coach_review,
    build_checkin_lookup,
    locked_message,
)
from coaching.services.enrollments import (
    accessible_program_ids,
    enrollment_status_view,
    plan_enrollment_maintenance,
    program_completion_alerts,
    transition_enrollment,
)
from coaching.services.reconciler import (
    ResolvedWorkout,
    group_by_date_key,
    reconcile_workouts_for_calendar,
)
from coaching.services.schedule import compute_scheduled_date, derive_program_schedule, resolve_day_number_for_program
from coaching.services.workout_notes import workout_focus_area
from coaching.validators import CheckInReviewInput, CheckInSubmitInput, EnrollmentStatusInput, WorkoutScheduleInput

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

OUTSIDE_TRAINING_DAYS = "Selected date falls outside this program's training days"
SHARED_PROGRAM_WORKOUT = "Shared program workouts cannot be rescheduled for a single athlete"
REVIEWED_MESSAGE = "Your recent check-in has been reviewed."
REVISION_REQUESTED_MESSAGE = "Coach requested an update on your latest check-in."


def _workout_out(item: ResolvedWorkout) -> CalendarWorkoutOut:
    workout = item.workout
    return CalendarWorkoutOut(
        id=workout.id,
        title=workout.title,
        scheduled_date=item.scheduled_date,
        source_kind=item.source_kind.value,
        program_id=workout.program_id,
        day_number=workout.day_number,
        is_template=item.is_template,
        is_completed=item.is_completed,
        duration_minutes=workout.duration_minutes,
        description=workout.description,
        coach_notes=workout.coach_notes,
        focus_area=workout_focus_area(workout),
        exercises=[ExerciseOut.model_validate(e) for e in workout.exercises],
        check_ins=[CheckInOut.model_validate(c) for c in item.check_ins],
    )


def _calendar(s: Session, athlete_id: int, today: date, date_range=None) -> list[ResolvedWorkout]:
    enrollments = load_enrollments(s, athlete_id)
    workouts = load_workouts(s, athlete_id, accessible_program_ids(enrollments, today))
    return reconcile_workouts_for_calendar(workouts, enrollments, athlete_id, date_range, today=today)


@router.get("/health", response_model=HealthOut, tags=["system"])
def health():
    return HealthOut(status="ok", app_env=get_settings().app_env)


@router.get("/athletes/{athlete_id}/calendar", response_model=CalendarOut, tags=["calendar"])
def athlete_calendar(
    athlete_id: int,
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    s: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    if (start is None) != (end is None):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="start and end must be given together")
    if start is not None and end is not None and start > end:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="start must not be after end")
    resolved = _calendar(s, athlete_id, today, (start, end) if start is not None else None)
    return CalendarOut(athlete_id=athlete_id, start=start, end=end, items=[_workout_out(i) for i in resolved])


@router.get("/athletes/{athlete_id}/calendar/month", response_model=MonthGridOut, tags=["calendar"])
def athlete_month(
    athlete_id: int,
    anchor: Optional[date] = Query(default=None),
    s: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    base = anchor or today
    cells = build_month_grid(base)
    grouped = group_by_date_key(_calendar(s, athlete_id, today, (cells[0], cells[-1])))
    return MonthGridOut(
        anchor=base,
        cells=[
            MonthCellOut(
                date=day,
                in_month=is_in_month(day, base),
                is_today=day == today,
                workouts=[_workout_out(i) for i in grouped.get(day.isoformat(), [])],
            )
            for day in cells
        ],
    )


@router.get("/athletes/{athlete_id}/calendar/week", response_model=WeekWindowOut, tags=["calendar"])
def athlete_week(
    athlete_id: int,
    anchor: Optional[date] = Query(default=None),
    start_index: int = Query(default=0),
    s: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    base = anchor or today
    week = build_week_window(base)
    grouped = group_by_date_key(_calendar(s, athlete_id, today, (week[0], week[-1])))
    days = [
        WeekDayOut(
            date=day,
            label=format_for_display(day, {"weekday": "short", "month": "short", "day": "numeric"}),
            workouts=[_workout_out(i) for i in grouped.get(day.isoformat(), [])],
        )
        for day in week
    ]
    first = clamp_window_start(start_index, len(days))
    size = get_settings().weekly_visible_days
    return WeekWindowOut(anchor=base, start_index=first, days=days, visible=days[first : first + size])


@router.get("/athletes/{athlete_id}/events", response_model=list[CalendarEventOut], tags=["calendar"])
def athlete_events(
    athlete_id: int,
    on: Optional[date] = Query(default=None),
    s: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    enrollments = load_enrollments(s, athlete_id)
    workouts = load_workouts(s, athlete_id, accessible_program_ids(enrollments, today))
    resolved = reconcile_workouts_for_calendar(workouts, enrollments, athlete_id, today=today)
    events = generate_calendar_events(resolved, enrollments, today)
    if on is not None:
        events = events_for_date(events, on)
    return [CalendarEventOut.model_validate(e) for e in sorted(events, key=lambda e: e.date)]


@router.get("/athletes/{athlete_id}/summary", response_model=AthleteSummaryOut, tags=["calendar"])
def athlete_summary(athlete_id: int, s: Session = Depends(get_db), today: date = Depends(get_today)):
    enrollments = load_enrollments(s, athlete_id)
    resolved = _calendar(s, athlete_id, today)
    check_ins = load_check_ins(s, athlete_id)
    weekly = weekly_checkin_summary(check_ins)
    weekly_items = [
        WeeklyCheckInItem(
            week=row["week"],
            check_ins=int(row["check_ins"]),
            avg_readiness=None if math.isnan(row["avg_readiness"]) else float(row["avg_readiness"]),
            needs_revision=int(row["needs_revision"]),
            reviewed=int(row["reviewed"]),
            prs=int(row["prs"]),
        )
        for row in weekly.to_dict(orient="records")
    ]
    return AthleteSummaryOut(
        athlete_id=athlete_id,
        total_workouts=len(resolved),
        completed_workouts=sum(1 for i in resolved if i.is_completed),
        streak=calculate_streak(resolved, today),
        check_in_counts=status_counts(check_ins),
        enrollments=[EnrollmentStatusOut.model_validate(enrollment_status_view(e, today)) for e in enrollments],
        completion_alerts=[CompletionAlertOut.model_validate(a) for a in program_completion_alerts(enrollments, today)],
        weekly_check_ins=weekly_items,
    )


@router.post("/workouts/{workout_id}/schedule", response_model=ScheduleResultOut, tags=["coach"])
def schedule_workout(
    workout_id: int,
    payload: WorkoutScheduleInput,
    s: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    row = s.get(Workout, workout_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found")
    if row.athlete_id is not None and row.athlete_id != payload.athlete_id:
        raise WorkoutOwnershipError("Workout belongs to another athlete")

    if row.program_id is None:
        row.scheduled_date = payload.target_date
        row.day_number = resolve_day_number_for_program([], None, payload.target_date) or row.day_number
        if row.athlete_id is None:
            row.athlete_id = payload.athlete_id
        scheduled = payload.target_date
    else:
        enrollments = [e for e in load_enrollments(s, payload.athlete_id) if e.program_id == row.program_id]
        if not enrollments:
            raise ScheduleAssignmentError("Athlete is not enrolled in this program")
        # Shared program rows place the workout for every enrolled athlete.
        if row.athlete_id is None:
            raise WorkoutOwnershipError(SHARED_PROGRAM_WORKOUT)
        day_number = resolve_day_number_for_program(enrollments, row.program_id, payload.target_date, today=today)
        if day_number is None:
            raise ScheduleAssignmentError(OUTSIDE_TRAINING_DAYS)
        enrollment = next((e for e in enrollments if e.status == ENROLLMENT_ACTIVE), enrollments[0])
        schedule = derive_program_schedule(enrollment, today=today)
        if not schedule.covers_day_number(day_number):
            raise ScheduleAssignmentError(OUTSIDE_TRAINING_DAYS)
        row.day_number = day_number
        row.scheduled_date = None
        scheduled = compute_scheduled_date(schedule.start, day_number)

    row.updated_at = datetime.now()
    s.flush()
    logger.info(
        "workout scheduled",
        extra=log_context(workout_id=row.id, athlete_id=payload.athlete_id, day_number=row.day_number),
    )
    return ScheduleResultOut(
        workout_id=row.id,
        athlete_id=payload.athlete_id,
        program_id=row.program_id,
        day_number=row.day_number,
        scheduled_date=scheduled,
    )


@router.get("/athletes/{athlete_id}/checkins", response_model=list[CheckInOut], tags=["checkins"])
def list_checkins(
    athlete_id: int,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    s: Session = Depends(get_db),
):
    check_ins = load_check_ins(s, athlete_id)
    if status_filter is not None:
        if status_filter not in CHECKIN_STATUSES:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown check-in status")
        check_ins = filter_by_status(check_ins, status_filter)
    return [CheckInOut.model_validate(c) for c in check_ins]


@router.get("/athletes/{athlete_id}/checkins/lookup",response_model=list[CheckInLookupItem], tags=["checkins"])
def checkin_lookup(athlete_id: int, s: Session = Depends(get_db), now: datetime = Depends(get_now)):
    lookup = build_checkin_lookup(load_check_ins(s, athlete_id), now=now)
    return [
        CheckInLookupItem(
            workout_id=workout_id,
            check_in=CheckInOut.model_validate(meta.check_in),
            can_edit=meta.can_edit,
            revision_deadline=meta.revision_deadline,
            locked_message=None if meta.can_edit else locked_message(meta.check_in),
        )
        for workout_id, meta in sorted(lookup.items())
    ]


@router.post(
    "/workouts/{workout_id}/checkins",
    response_model=CheckInOut,
    tags=["checkins"],
    dependencies=[Depends(rate_limited("checkin_submit"))],
)
def submit_checkin(
    workout_id: int,
    payload: CheckInSubmitInput,
    response: Response,
    s: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    workout = s.get(Workout, workout_id)
    if workout is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found")
    if workout.athlete_id is not None and workout.athlete_id != payload.athlete_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Workout belongs to another athlete")

    rows = s.execute(
        select(WorkoutCheckIn)
        .where(WorkoutCheckIn.workout_id == workout_id, WorkoutCheckIn.athlete_id == payload.athlete_id)
        .options(selectinload(WorkoutCheckIn.media))
    ).scalars().all()
    content = payload.model_dump(exclude={"athlete_id"})
    content["media_urls"] = tuple(content["media_urls"])

    meta = build_checkin_lookup([to_check_in_record(r) for r in rows], now=now).get(workout_id)
    if meta is not None:
        updated = apply_athlete_resubmission(meta.check_in, now=now, **content)
        row = next(r for r in rows if r.id == meta.check_in.id)
        store_check_in(s, row, updated)
        logger.info("checkin resubmitted", extra=log_context(checkin_id=row.id, workout_id=workout_id))
        return CheckInOut.model_validate(to_check_in_record(row))

    record = CheckInRecord(id=None, workout_id=workout_id, athlete_id=payload.athlete_id, submitted_at=now, **content)
    row = WorkoutCheckIn(workout_id=workout_id, athlete_id=payload.athlete_id)
    s.add(row)
    store_check_in(s, row, record)
    if workout.athlete_id == payload.athlete_id:
        workout.is_completed = True
    s.flush()
    response.status_code = status.HTTP_201_CREATED
    logger.info("checkin submitted", extra=log_context(checkin_id=row.id, workout_id=workout_id))
    return CheckInOut.model_validate(to_check_in_record(row))


@router.put("/checkins/{checkin_id}/review", response_model=CheckInOut, tags=["coach"])
def review_checkin(
    checkin_id: int,
    payload: CheckInReviewInput,
    s: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    row = s.get(WorkoutCheckIn, checkin_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Check-in not found")
    updated = apply_coach_review(to_check_in_record(row), payload.status, coach_notes=payload.coach_notes, now=now)
    store_check_in(s, row, updated)

    if updated.status == CHECKIN_NEEDS_REVISION:
        notify(s, row.athlete_id, "Check-in needs an update", REVISION_REQUESTED_MESSAGE, "checkin_followup")
    else:
        notify(s, row.athlete_id, "Check-in reviewed", REVIEWED_MESSAGE, "checkin_update")
    return CheckInOut.model_validate(to_check_in_record(row))


@router.post("/athletes/{athlete_id}/enrollments/maintenance", response_model=MaintenanceOut, tags=["enrollments"])
def run_enrollment_maintenance(athlete_id: int, s: Session = Depends(get_db), today: date = Depends(get_today)):
    plan = plan_enrollment_maintenance(load_enrollments(s, athlete_id), today)
    updated, created = apply_maintenance_plan(s, plan, athlete_id)
    return MaintenanceOut(updated=updated, notifications_created=created)


@router.put("/enrollments/{enrollment_id}/status", response_model=EnrollmentOut, tags=["enrollments"])
def update_enrollment_status(
    enrollment_id: int,
    payload: EnrollmentStatusInput,
    s: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    row = s.get(ProgramEnrollment, enrollment_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")
    row.status = transition_enrollment(row.status, payload.status)
    if row.status == ENROLLMENT_ACTIVE:
        if row.enrolled_at is None:
            row.enrolled_at = now
        if row.start_date is None:
            row.start_date = now.date()
    row.updated_at = now
    s.flush()
    logger.info("enrollment status changed", extra=log_context(enrollment_id=row.id, status=row.status))
    return EnrollmentOut.model_validate(row)
