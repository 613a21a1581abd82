from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from coaching.config import get_settings
from coaching.dates import align_to_monday, parse_flexible_date
from coaching.dates import today as local_today
from coaching.records import EnrollmentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramSchedule:
    start: Optional[date]
    end: Optional[date]
    total_training_days: Optional[int]

    def covers_day_number(self, day_number: int) -> bool:
        return self.total_training_days is None or day_number <= self.total_training_days


def _cadence(cadence: Optional[int]) -> int:
    return int(cadence or get_settings().training_days_per_week)


def known_duration_weeks(duration_weeks: Any) -> Optional[int]:
    if isinstance(duration_weeks, bool) or not isinstance(duration_weeks, (int, float)):
        return None
    if duration_weeks != duration_weeks or duration_weeks <= 0:  # NaN or non-positive
        return None
    return int(duration_weeks)


def raw_start_anchor(enrollment: EnrollmentRecord) -> Optional[date]:
    return (
        parse_flexible_date(enrollment.start_date)
        or parse_flexible_date(enrollment.enrolled_at)
        or parse_flexible_date(enrollment.created_at)
    )


def derive_program_schedule(
    enrollment: EnrollmentRecord,
    *,
    today: Optional[date] = None,
    cadence: Optional[int] = None,
) -> ProgramSchedule:
    """Date window and training-day budget for one enrollment.

    The start anchor is the explicit start date, else the enrollment timestamp,
    else the creation timestamp (today when none is set), moved back to its
    Monday. The end is the explicit end date when present, otherwise the last
    day of the final program week. Without a duration the window is open-ended.
    """
    per_week = _cadence(cadence)
    start = align_to_monday(raw_start_anchor(enrollment) or today or local_today())
    weeks = known_duration_weeks(enrollment.duration_weeks)

    end = parse_flexible_date(enrollment.end_date)
    if end is None and start is not None and weeks is not None:
        end = start + timedelta(days=weeks * 7 - 1)

    total = weeks * per_week if weeks is not None else None
    return ProgramSchedule(start=start, end=end, total_training_days=total)


def build_schedule_index(
    enrollments: Iterable[EnrollmentRecord],
    *,
    today: Optional[date] = None,
    cadence: Optional[int] = None,
) -> dict[Any, ProgramSchedule]:
    """Schedules keyed by program id; only active enrollments can anchor day-numbers.

    When an athlete holds two active enrollments in the same program the later
    entry in ``enrollments`` wins.
    """
    index: dict[Any, ProgramSchedule] = {}
    for enrollment in enrollments:
        if not enrollment.is_active or enrollment.program_id is None:
            continue
        schedule = derive_program_schedule(enrollment, today=today, cadence=cadence)
        if schedule.start is None:
            continue
        if enrollment.program_id in index:
            logger.debug("duplicate active enrollment for program %s", enrollment.program_id)
        index[enrollment.program_id] = schedule
    return index


def compute_scheduled_date(start: Any, day_number: Optional[int], cadence: Optional[int] = None) -> Optional[date]:
    """Calendar date of training day ``day_number`` counted from ``start``.

    Each program week holds ``cadence`` training days; day-numbers past the
    cadence roll into the following calendar week.
    """
    anchor = parse_flexible_date(start)
    if anchor is None or day_number is None or isinstance(day_number, bool) or day_number <= 0:
        return None
    per_week = _cadence(cadence)
    index = int(day_number) - 1
    weeks_offset, day_offset = divmod(index, per_week)
    return anchor + timedelta(days=weeks_offset * 7 + day_offset)


def compute_day_number_from_date(schedule_start: Any, target_date: Any, cadence: Optional[int] = None) -> Optional[int]:
    """Inverse of :func:`compute_scheduled_date`.

    Returns ``None`` when the target precedes the schedule start or lands on a
    rest day, i.e. its offset within the week is at or beyond the cadence.
    """
    base = parse_flexible_date(schedule_start)
    target = parse_flexible_date(target_date)
    if base is None or target is None or target < base:
        return None
    per_week = _cadence(cadence)
    weeks_offset, day_offset = divmod((target - base).days, 7)
    if day_offset >= per_week:
        return None
    return weeks_offset * per_week + day_offset + 1


def resolve_day_number_for_program(
    enrollments: Iterable[EnrollmentRecord],
    program_id: Optional[Any],
    target_date: Any,
    *,
    today: Optional[date] = None,
    cadence: Optional[int] = None,
) -> Optional[int]:
    """Day-number a coach-picked date maps to for ``program_id``.

    Without a program the target's own Monday anchors the count. Returns
    ``None`` when the program has no enrollment for this athlete or when the
    date falls outside the program's training days.
    """
    target = parse_flexible_date(target_date)
    if target is None:
        return None
    if program_id is None:
        return compute_day_number_from_date(align_to_monday(target), target, cadence)

    matches = [e for e in enrollments if e.program_id == program_id]
    if not matches:
        return None
    enrollment = next((e for e in matches if e.is_active), matches[0])
    schedule = derive_program_schedule(enrollment, today=today, cadence=cadence)
    return compute_day_number_from_date(schedule.start, target, cadence)
