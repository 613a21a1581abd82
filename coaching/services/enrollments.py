"""Enrollment lifecycle: approval transitions, effective status and renewal upkeep.

The maintenance planner is the pure half of the nightly/at-login sweep: it
decides which enrollments need start/end dates backfilled, which active ones
have run past their end date, and which athletes should get a renewal
reminder. The repository applies the plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from coaching.config import get_settings
from coaching.dates import days_between, format_for_display, parse_flexible_date
from coaching.dates import today as local_today
from coaching.errors import EnrollmentTransitionError
from coaching.logging_config import log_context
from coaching.records import (
    ENROLLMENT_ACTIVE,
    ENROLLMENT_CANCELLED,
    ENROLLMENT_COMPLETED,
    ENROLLMENT_PENDING,
    EnrollmentRecord,
)
from coaching.services.schedule import known_duration_weeks, raw_start_anchor

logger = logging.getLogger(__name__)

RENEWAL_MESSAGE = "Renew now to keep access without interruption."

_TRANSITIONS: dict[str, set[str]] = {
    ENROLLMENT_PENDING: {ENROLLMENT_ACTIVE, ENROLLMENT_CANCELLED},
    ENROLLMENT_ACTIVE: {ENROLLMENT_COMPLETED, ENROLLMENT_CANCELLED},
}


def transition_enrollment(current: str, target: str) -> str:
    if target not in _TRANSITIONS.get(current, set()):
        raise EnrollmentTransitionError(f"Cannot move enrollment from {current} to {target}")
    return target


@dataclass(frozen=True)
class EnrollmentStatusView:
    enrollment_id: Any
    start_date: date
    end_date: date
    effective_status: str
    days_remaining: int
    is_expired: bool
    is_ending_soon: bool


def _weeks_or_default(enrollment: EnrollmentRecord) -> int:
    return known_duration_weeks(enrollment.duration_weeks) or get_settings().default_program_weeks


def _window(enrollment: EnrollmentRecord, today: date) -> tuple[date, date]:
    start = raw_start_anchor(enrollment) or today
    end = parse_flexible_date(enrollment.end_date) or start + timedelta(weeks=_weeks_or_default(enrollment))
    return start, end


def enrollment_status_view(enrollment: EnrollmentRecord, today: Optional[date] = None) -> EnrollmentStatusView:
    """Dashboard view of an enrollment's remaining time.

    An active enrollment past its end date reads as completed even before the
    maintenance sweep has persisted the change.
    """
    current = today or local_today()
    start, end = _window(enrollment, current)
    days_remaining = days_between(current, end)
    is_expired = end < current
    effective = ENROLLMENT_COMPLETED if enrollment.status == ENROLLMENT_ACTIVE and is_expired else enrollment.status
    return EnrollmentStatusView(
        enrollment_id=enrollment.id,
        start_date=start,
        end_date=end,
        effective_status=effective,
        days_remaining=days_remaining,
        is_expired=is_expired,
        is_ending_soon=0 <= days_remaining <= get_settings().ending_soon_days,
    )


def accessible_program_ids(enrollments: Iterable[EnrollmentRecord], today: Optional[date] = None) -> list[Any]:
    """Programs whose workouts the athlete may currently load."""
    ids: list[Any] = []
    for enrollment in enrollments:
        if enrollment.program_id is None:
            continue
        view = enrollment_status_view(enrollment, today)
        if view.effective_status == ENROLLMENT_ACTIVE and not view.is_expired and enrollment.program_id not in ids:
            ids.append(enrollment.program_id)
    return ids


@dataclass(frozen=True)
class MaintenanceUpdate:
    enrollment_id: Any
    start_date: date
    end_date: date
    status: str


@dataclass(frozen=True)
class RenewalReminder:
    enrollment_id: Any
    athlete_id: Any
    title: str
    message: str
    days_until_end: int


@dataclass
class MaintenancePlan:
    updates: list[MaintenanceUpdate] = field(default_factory=list)
    reminders: list[RenewalReminder] = field(default_factory=list)


def plan_enrollment_maintenance(
    enrollments: Iterable[EnrollmentRecord],
    today: Optional[date] = None,
) -> MaintenancePlan:
    current = today or local_today()
    plan = MaintenancePlan()
    for enrollment in enrollments:
        if enrollment.status == ENROLLMENT_CANCELLED:
            continue
        start = parse_flexible_date(enrollment.start_date) or parse_flexible_date(enrollment.enrolled_at) or current
        end = parse_flexible_date(enrollment.end_date) or start + timedelta(weeks=_weeks_or_default(enrollment))

        next_status = enrollment.status
        if next_status == ENROLLMENT_ACTIVE and end < current:
            next_status = ENROLLMENT_COMPLETED

        if next_status != enrollment.status or enrollment.start_date is None or enrollment.end_date is None:
            plan.updates.append(MaintenanceUpdate(enrollment.id, start, end, next_status))

        days_until_end = days_between(current, end)
        if next_status == ENROLLMENT_ACTIVE and 0 <= days_until_end <= get_settings().ending_soon_days:
            plan.reminders.append(
                RenewalReminder(
                    enrollment_id=enrollment.id,
                    athlete_id=enrollment.athlete_id,
                    title=f"Program ending soon: {enrollment.program_title or 'Your program'}",
                    message=RENEWAL_MESSAGE,
                    days_until_end=days_until_end,
                )
            )

    logger.info(
        "enrollment maintenance planned",
        extra=log_context(updates=len(plan.updates), reminders=len(plan.reminders)),
    )
    return plan


@dataclass(frozen=True)
class CompletionAlert:
    enrollment_id: Any
    title: str
    end_date_label: str
    status: str


def program_completion_alerts(
    enrollments: Iterable[EnrollmentRecord],
    today: Optional[date] = None,
) -> list[CompletionAlert]:
    """Programs that ended yesterday, for the "how did it go?" banner."""
    current = today or local_today()
    alerts: list[CompletionAlert] = []
    for enrollment in enrollments:
        end = parse_flexible_date(enrollment.end_date)
        if end is None or days_between(end, current) != 1:
            continue
        alerts.append(
            CompletionAlert(
                enrollment_id=enrollment.id,
                title=enrollment.program_title or "Program",
                end_date_label=format_for_display(end, {"month": "short", "day": "numeric", "year": "numeric"}),
                status=enrollment.status,
            )
        )
    return alerts
