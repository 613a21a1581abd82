from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional, Sequence

from coaching.dates import parse_flexible_date
from coaching.dates import today as local_today
from coaching.records import CHECKIN_NEEDS_REVISION, CHECKIN_REVIEWED, CheckInRecord, EnrollmentRecord
from coaching.services.calendar_view import week_range
from coaching.services.reconciler import ResolvedWorkout


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    date: date
    type: str  # "workout" | "milestone"
    status: str  # "pending" | "active" | "completed"
    program_id: Optional[Any] = None
    workout_id: Optional[Any] = None
    description: Optional[str] = None
    duration: Optional[int] = None


def latest_check_in(check_ins: Sequence[CheckInRecord]) -> Optional[CheckInRecord]:
    if not check_ins:
        return None
    return max(check_ins, key=lambda c: c.submitted_at)


def workout_event_status(item: ResolvedWorkout) -> str:
    latest = latest_check_in(item.check_ins)
    if item.is_completed or (latest is not None and latest.status == CHECKIN_REVIEWED):
        return "completed"
    if latest is not None and latest.status == CHECKIN_NEEDS_REVISION:
        return "pending"
    if latest is not None:
        return "active"
    return "pending"


def generate_calendar_events(
    resolved: Iterable[ResolvedWorkout],
    enrollments: Iterable[EnrollmentRecord],
    today: Optional[date] = None,
) -> list[CalendarEvent]:
    """Workout and program milestone events for the athlete's calendar.

    Future workouts are only listed up to the end of next week.
    """
    current = today or local_today()
    horizon = week_range(week_range(current).end + timedelta(days=1)).end
    events: list[CalendarEvent] = []

    for item in resolved:
        if item.scheduled_date > current and item.scheduled_date > horizon:
            continue
        latest = latest_check_in(item.check_ins)
        description = (
            f"Latest check-in: {latest.status.replace('_', ' ')}" if latest else (item.workout.description or None)
        )
        events.append(
            CalendarEvent(
                id=str(item.id),
                title=item.title,
                date=item.scheduled_date,
                type="workout",
                status=workout_event_status(item),
                program_id=item.workout.program_id,
                workout_id=item.id,
                description=description,
                duration=item.workout.duration_minutes or None,
            )
        )

    for enrollment in enrollments:
        title = enrollment.program_title or "Program"
        for prefix, raw, label, description in (
            ("start", enrollment.start_date, "Program starts", "Program start date"),
            ("end", enrollment.end_date, "Program ends", "Program completion date"),
        ):
            milestone = parse_flexible_date(raw)
            if milestone is None:
                continue
            events.append(
                CalendarEvent(
                    id=f"{prefix}-{enrollment.id}",
                    title=f"{label}: {title}",
                    date=milestone,
                    type="milestone",
                    status="completed" if milestone <= current else "pending",
                    program_id=enrollment.program_id,
                    description=description,
                )
            )
    return events


def events_for_date(events: Iterable[CalendarEvent], day: Any) -> list[CalendarEvent]:
    target = parse_flexible_date(day)
    return [event for event in events if event.date == target]


def calculate_streak(resolved: Iterable[ResolvedWorkout], today: Optional[date] = None) -> int:
    """Consecutive completed workouts counting back from today, allowing one-day gaps."""
    completions: list[date] = []
    for item in resolved:
        latest = latest_check_in(item.check_ins)
        if not item.is_completed and latest is None:
            continue
        completed_on = parse_flexible_date(latest.submitted_at) if latest else item.scheduled_date
        if completed_on is not None:
            completions.append(completed_on)

    streak = 0
    cursor = today or local_today()
    for completed_on in sorted(completions, reverse=True):
        if (cursor - completed_on).days <= 1:
            streak += 1
            cursor = completed_on
        else:
            break
    return streak
