from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from coaching.config import get_settings
from coaching.errors import CheckInLockedError, CheckInTransitionError
from coaching.logging_config import log_context
from coaching.records import (
    CHECKIN_NEEDS_REVISION,
    CHECKIN_REVIEWED,
    CHECKIN_SUBMITTED,
    CheckInRecord,
)

logger = logging.getLogger(__name__)

REVISION_EXPIRED_MESSAGE = "The 24-hour revision window has expired for this check-in."
SUBMISSION_LOCKED_MESSAGE = "This check-in is locked because it was submitted more than 24 hours ago."

_ATHLETE_EDITABLE_FIELDS = {
    "readiness_score",
    "energy_level",
    "soreness_level",
    "notes",
    "achieved_pr",
    "pr_exercise",
    "pr_value",
    "pr_unit",
    "media_urls",
}


@dataclass(frozen=True)
class CheckInEditability:
    can_edit: bool
    revision_deadline: Optional[datetime]


@dataclass(frozen=True)
class CheckInMeta:
    check_in: CheckInRecord
    can_edit: bool
    revision_deadline: Optional[datetime]


def revision_window(hours: Optional[int] = None) -> timedelta:
    return timedelta(hours=hours if hours is not None else get_settings().revision_window_hours)


def _as_local_naive(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def evaluate_checkin_editability(
    check_in: CheckInRecord,
    *,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> CheckInEditability:
    """Whether the athlete may still change ``check_in``.

    A check-in is editable for one window after submission. A coach's revision
    request opens a fresh window measured from the request, which can reopen a
    check-in whose original window has already closed.
    """
    current = _as_local_naive(now) or datetime.now()
    span = window or revision_window()

    submitted_at = _as_local_naive(check_in.submitted_at)
    can_edit = submitted_at is not None and current - submitted_at <= span

    deadline: Optional[datetime] = None
    requested_at = _as_local_naive(check_in.revision_requested_at)
    if check_in.status == CHECKIN_NEEDS_REVISION and requested_at is not None:
        deadline = requested_at + span
        if not can_edit:
            can_edit = current <= deadline

    return CheckInEditability(can_edit=can_edit, revision_deadline=deadline)


def build_checkin_lookup(
    check_ins: Iterable[CheckInRecord],
    *,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> dict[Any, CheckInMeta]:
    """The check-in each workout opens when the athlete taps it.

    The most recent check-in is the default; a check-in that is still editable
    takes precedence over a newer one that is locked.
    """
    by_workout: dict[Any, list[CheckInMeta]] = {}
    for check_in in check_ins:
        status = evaluate_checkin_editability(check_in, now=now, window=window)
        by_workout.setdefault(check_in.workout_id, []).append(
            CheckInMeta(check_in, status.can_edit, status.revision_deadline)
        )

    lookup: dict[Any, CheckInMeta] = {}
    for workout_id, entries in by_workout.items():
        entries.sort(key=lambda meta: _as_local_naive(meta.check_in.submitted_at) or datetime.min, reverse=True)
        lookup[workout_id] = next((meta for meta in entries if meta.can_edit), entries[0])
    return lookup


def locked_message(check_in: CheckInRecord) -> str:
    if check_in.status == CHECKIN_NEEDS_REVISION:
        return REVISION_EXPIRED_MESSAGE
    return SUBMISSION_LOCKED_MESSAGE


def apply_coach_review(
    check_in: CheckInRecord,
    status: str,
    *,
    coach_notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInRecord:
    """Coach decision on a submitted check-in: ``reviewed`` or ``needs_revision``."""
    if status not in {CHECKIN_REVIEWED, CHECKIN_NEEDS_REVISION}:
        raise CheckInTransitionError(f"Coaches can only mark check-ins reviewed or needs_revision, not {status!r}")
    if check_in.status != CHECKIN_SUBMITTED:
        raise CheckInTransitionError(f"Check-in is {check_in.status}; only submitted check-ins can be reviewed")

    changes: dict[str, Any] = {"status": status}
    if coach_notes is not None:
        changes["coach_notes"] = coach_notes
    if status == CHECKIN_NEEDS_REVISION:
        changes["revision_requested_at"] = _as_local_naive(now) or datetime.now()
    logger.info("checkin reviewed", extra=log_context(checkin_id=check_in.id, status=status))
    return replace(check_in, **changes)


def apply_athlete_resubmission(
    check_in: CheckInRecord,
    *,
    now: Optional[datetime] = None,
    **content: Any,
) -> CheckInRecord:
    """Athlete edit of an existing check-in while its window is open.

    Answering a revision request puts the check-in back to ``submitted``,
    clears the request and restarts the submission clock.
    """
    unknown = set(content) - _ATHLETE_EDITABLE_FIELDS
    if unknown:
        raise CheckInTransitionError(f"Fields not editable by athletes: {sorted(unknown)}")

    current = _as_local_naive(now) or datetime.now()
    if not evaluate_checkin_editability(check_in, now=current).can_edit:
        raise CheckInLockedError(locked_message(check_in))

    changes = {key: value for key, value in content.items()}
    if check_in.status == CHECKIN_NEEDS_REVISION:
        changes.update(status=CHECKIN_SUBMITTED, revision_requested_at=None, submitted_at=current)
    return replace(check_in, **changes)
