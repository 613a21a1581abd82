"""Merge program-linked and personal workouts into one dated calendar list.

Raw workouts arrive in two shapes: some carry an explicit scheduled date,
others only a day-number inside a program. ``classify_workout`` tags each one
once, and ``reconcile_with_report`` resolves the tags against the athlete's
active enrollments into ``ResolvedWorkout`` rows sorted by date.

Workouts that cannot be placed are left out rather than reported as errors: a
pending enrollment or a day beyond the paid duration is a normal state. The
report keeps the reason for each omission so callers can tell them apart.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Union

from coaching.dates import format_date_only, parse_flexible_date
from coaching.logging_config import log_context
from coaching.records import CheckInRecord, EnrollmentRecord, WorkoutRecord
from coaching.services.schedule import ProgramSchedule, build_schedule_index, compute_scheduled_date

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    EXPLICIT = "explicit"
    PROGRAM = "program"


class OmissionReason(str, Enum):
    UNPLACEABLE = "unplaceable"
    NO_ACTIVE_ENROLLMENT = "no_active_enrollment"
    BEYOND_DURATION = "beyond_duration"
    BEYOND_END_DATE = "beyond_end_date"
    OUTSIDE_RANGE = "outside_range"


@dataclass(frozen=True)
class ExplicitPlacement:
    scheduled_date: date


@dataclass(frozen=True)
class ProgramPlacement:
    program_id: Any
    day_number: int


@dataclass(frozen=True)
class Unplaceable:
    detail: str


Placement = Union[ExplicitPlacement, ProgramPlacement, Unplaceable]


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class ResolvedWorkout:
    workout: WorkoutRecord
    scheduled_date: date
    source_kind: SourceKind
    check_ins: tuple[CheckInRecord, ...] = ()
    is_template: bool = False

    @property
    def id(self) -> Any:
        return self.workout.id

    @property
    def title(self) -> str:
        return self.workout.title

    @property
    def date_key(self) -> str:
        return format_date_only(self.scheduled_date)

    @property
    def is_completed(self) -> bool:
        """Completion as seen by this athlete.

        Shared program workouts carry no per-athlete flag, so only the athlete's
        own check-ins count for them.
        """
        if self.workout.athlete_id is None and self.workout.program_id is not None:
            return bool(self.check_ins)
        return self.workout.is_completed


@dataclass(frozen=True)
class Omission:
    workout_id: Any
    reason: OmissionReason


@dataclass
class ReconcileReport:
    resolved: list[ResolvedWorkout] = field(default_factory=list)
    omitted: list[Omission] = field(default_factory=list)

    def omitted_ids(self, reason: Optional[OmissionReason] = None) -> list[Any]:
        return [o.workout_id for o in self.omitted if reason is None or o.reason == reason]


def classify_workout(workout: WorkoutRecord) -> Placement:
    """Tag a raw workout by how its calendar date is obtained.

    An explicit date always wins over a day-number. Templates that belong to no
    program are never placed on a calendar.
    """
    if workout.is_template and workout.program_id is None:
        return Unplaceable("template workout without a program")
    explicit = parse_flexible_date(workout.scheduled_date)
    if explicit is not None:
        return ExplicitPlacement(explicit)
    day_number = workout.day_number
    if workout.program_id is None:
        return Unplaceable("personal workout without a scheduled date")
    if day_number is None or isinstance(day_number, bool) or day_number <= 0:
        return Unplaceable("program workout without a valid day number")
    return ProgramPlacement(workout.program_id, int(day_number))


def coerce_date_range(date_range: Any) -> Optional[DateRange]:
    """Inclusive bounds from a ``(start, end)`` pair; an unparseable bound means no range."""
    if date_range is None or isinstance(date_range, DateRange):
        return date_range
    start, end = date_range
    start_date, end_date = parse_flexible_date(start), parse_flexible_date(end)
    if start_date is None or end_date is None:
        logger.debug("ignoring unparseable date range", extra=log_context(start=str(start), end=str(end)))
        return None
    return DateRange(start_date, end_date)


def _place(
    placement: Placement,
    schedules: dict[Any, ProgramSchedule],
    cadence: Optional[int],
) -> tuple[Optional[date], Optional[SourceKind], Optional[OmissionReason]]:
    if isinstance(placement, ExplicitPlacement):
        return placement.scheduled_date, SourceKind.EXPLICIT, None
    if isinstance(placement, Unplaceable):
        return None, None, OmissionReason.UNPLACEABLE

    schedule = schedules.get(placement.program_id)
    if schedule is None:
        return None, None, OmissionReason.NO_ACTIVE_ENROLLMENT
    if not schedule.covers_day_number(placement.day_number):
        return None, None, OmissionReason.BEYOND_DURATION
    resolved = compute_scheduled_date(schedule.start, placement.day_number, cadence)
    if resolved is None:
        return None, None, OmissionReason.UNPLACEABLE
    if schedule.end is not None and resolved > schedule.end:
        return None, None, OmissionReason.BEYOND_END_DATE
    return resolved, SourceKind.PROGRAM, None


def reconcile_with_report(
    workouts: Iterable[WorkoutRecord],
    enrollments: Iterable[EnrollmentRecord],
    athlete_id: Any,
    date_range: Any = None,
    *,
    today: Optional[date] = None,
    cadence: Optional[int] = None,
) -> ReconcileReport:
    bounds = coerce_date_range(date_range)
    schedules = build_schedule_index(enrollments, today=today, cadence=cadence)
    report = ReconcileReport()

    for workout in workouts:
        resolved, kind, reason = _place(classify_workout(workout), schedules, cadence)
        if resolved is not None and bounds is not None and resolved not in bounds:
            reason = OmissionReason.OUTSIDE_RANGE
        if reason is not None or resolved is None or kind is None:
            report.omitted.append(Omission(workout.id, reason or OmissionReason.UNPLACEABLE))
            continue
        report.resolved.append(
            ResolvedWorkout(
                workout=workout,
                scheduled_date=resolved,
                source_kind=kind,
                check_ins=tuple(c for c in workout.check_ins if c.athlete_id == athlete_id),
                is_template=workout.is_template if workout.athlete_id is not None else True,
            )
        )

    # sorted() is stable, so equal dates keep their input order.
    report.resolved = sorted(report.resolved, key=lambda item: item.scheduled_date)

    if report.omitted:
        counts: dict[str, int] = defaultdict(int)
        for omission in report.omitted:
            counts[omission.reason.value] += 1
        logger.debug(
            "workouts omitted from calendar",
            extra=log_context(athlete_id=athlete_id, omitted=dict(counts), resolved=len(report.resolved)),
        )
    return report


def reconcile_workouts_for_calendar(
    workouts: Iterable[WorkoutRecord],
    enrollments: Iterable[EnrollmentRecord],
    athlete_id: Any,
    date_range: Any = None,
    *,
    today: Optional[date] = None,
    cadence: Optional[int] = None,
) -> list[ResolvedWorkout]:
    """Dated, ascending list of the athlete's visible workouts."""
    return reconcile_with_report(
        workouts, enrollments, athlete_id, date_range, today=today, cadence=cadence
    ).resolved


def group_by_date_key(resolved: Sequence[ResolvedWorkout]) -> dict[str, list[ResolvedWorkout]]:
    grouped: dict[str, list[ResolvedWorkout]] = {}
    for item in resolved:
        grouped.setdefault(item.date_key, []).append(item)
    return grouped


def workouts_for_date(resolved: Sequence[ResolvedWorkout], day: Any) -> list[ResolvedWorkout]:
    target = parse_flexible_date(day)
    if target is None:
        return []
    return [item for item in resolved if item.scheduled_date == target]


def workout_for_date(resolved: Sequence[ResolvedWorkout], day: Any) -> Optional[ResolvedWorkout]:
    """The "current workout" a dashboard shows for a selected day."""
    matches = workouts_for_date(resolved, day)
    return matches[0] if matches else None
