from __future__ import annotations

from datetime import date as dt_date
from datetime import datetime as dt_datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class HealthOut(BaseModel):
    status: str
    app_env: str


class ExerciseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    order: int
    target_sets: Optional[int] = None
    target_reps: Optional[str] = None
    target_weight: Optional[float] = None
    target_rpe: Optional[float] = None
    rest_seconds: Optional[int] = None
    notes: str = ""


class CheckInOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    workout_id: int
    athlete_id: int
    submitted_at: Optional[dt_datetime] = None
    status: str
    revision_requested_at: Optional[dt_datetime] = None
    readiness_score: Optional[int] = None
    energy_level: Optional[str] = None
    soreness_level: Optional[str] = None
    notes: str = ""
    coach_notes: str = ""
    achieved_pr: bool = False
    pr_exercise: Optional[str] = None
    pr_value: Optional[float] = None
    pr_unit: Optional[str] = None
    media_urls: list[str] = []


class CalendarWorkoutOut(BaseModel):
    id: int
    title: str
    scheduled_date: dt_date
    source_kind: str
    program_id: Optional[int] = None
    day_number: Optional[int] = None
    is_template: bool
    is_completed: bool
    duration_minutes: Optional[int] = None
    description: str = ""
    coach_notes: str = ""
    focus_area: Optional[str] = None
    exercises: list[ExerciseOut] = []
    check_ins: list[CheckInOut] = []


class CalendarOut(BaseModel):
    athlete_id: int
    start: Optional[dt_date] = None
    end: Optional[dt_date] = None
    items: list[CalendarWorkoutOut]


class MonthCellOut(BaseModel):
    date: dt_date
    in_month: bool
    is_today: bool
    workouts: list[CalendarWorkoutOut] = []


class MonthGridOut(BaseModel):
    anchor: dt_date
    cells: list[MonthCellOut]


class WeekDayOut(BaseModel):
    date: dt_date
    label: str
    workouts: list[CalendarWorkoutOut] = []


class WeekWindowOut(BaseModel):
    anchor: dt_date
    start_index: int
    days: list[WeekDayOut]
    visible: list[WeekDayOut]


class CalendarEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    date: dt_date
    type: str
    status: str
    program_id: Optional[int] = None
    workout_id: Optional[int] = None
    description: Optional[str] = None
    duration: Optional[int] = None


class CheckInLookupItem(BaseModel):
    workout_id: int
    check_in: CheckInOut
    can_edit: bool
    revision_deadline: Optional[dt_datetime] = None
    locked_message: Optional[str] = None


class ScheduleResultOut(BaseModel):
    workout_id: int
    athlete_id: int
    program_id: Optional[int] = None
    day_number: Optional[int] = None
    scheduled_date: dt_date


class EnrollmentStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_id: int
    start_date: dt_date
    end_date: dt_date
    effective_status: str
    days_remaining: int
    is_expired: bool
    is_ending_soon: bool


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    athlete_id: int
    program_id: Optional[int] = None
    status: str
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None


class MaintenanceOut(BaseModel):
    updated: int
    notifications_created: int


class CompletionAlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_id: int
    title: str
    end_date_label: str
    status: str


class WeeklyCheckInItem(BaseModel):
    week: str
    check_ins: int
    avg_readiness: Optional[float] = None
    needs_revision: int
    reviewed: int
    prs: int


class AthleteSummaryOut(BaseModel):
    athlete_id: int
    total_workouts: int
    completed_workouts: int
    streak: int
    check_in_counts: dict[str, int]
    enrollments: list[EnrollmentStatusOut]
    completion_alerts: list[CompletionAlertOut]
    weekly_check_ins: list[WeeklyCheckInItem]
