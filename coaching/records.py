"""In-memory records the scheduling core consumes.

The persistence layer (``coaching.repository``) builds these from ORM rows; tests
and other callers can construct them directly. Date-ish fields keep whatever the
source delivered (``date``, ``datetime`` or string) and are normalized by
``coaching.dates`` at the point of use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

ENROLLMENT_PENDING = "pending"
ENROLLMENT_ACTIVE = "active"
ENROLLMENT_COMPLETED = "completed"
ENROLLMENT_CANCELLED = "cancelled"
ENROLLMENT_STATUSES = (ENROLLMENT_PENDING, ENROLLMENT_ACTIVE, ENROLLMENT_COMPLETED, ENROLLMENT_CANCELLED)

CHECKIN_SUBMITTED = "submitted"
CHECKIN_REVIEWED = "reviewed"
CHECKIN_NEEDS_REVISION = "needs_revision"
CHECKIN_STATUSES = (CHECKIN_SUBMITTED, CHECKIN_REVIEWED, CHECKIN_NEEDS_REVISION)


@dataclass(frozen=True)
class EnrollmentRecord:
    id: Any
    athlete_id: Any
    program_id: Optional[Any]
    status: str
    start_date: Any = None
    enrolled_at: Any = None
    created_at: Any = None
    end_date: Any = None
    duration_weeks: Optional[int] = None
    program_title: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == ENROLLMENT_ACTIVE


@dataclass(frozen=True)
class CheckInRecord:
    id: Any
    workout_id: Any
    athlete_id: Any
    submitted_at: datetime
    status: str = CHECKIN_SUBMITTED
    revision_requested_at: Optional[datetime] = None
    readiness_score: Optional[int] = None
    energy_level: Optional[str] = None
    soreness_level: Optional[str] = None
    notes: str = ""
    coach_notes: str = ""
    achieved_pr: bool = False
    pr_exercise: Optional[str] = None
    pr_value: Optional[float] = None
    pr_unit: Optional[str] = None
    media_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExerciseTarget:
    name: str
    order: int = 0
    target_sets: Optional[int] = None
    target_reps: Optional[str] = None
    target_weight: Optional[float] = None
    target_rpe: Optional[float] = None
    rest_seconds: Optional[int] = None
    notes: str = ""


@dataclass(frozen=True)
class WorkoutRecord:
    id: Any
    title: str
    program_id: Optional[Any] = None
    day_number: Optional[int] = None
    scheduled_date: Any = None
    athlete_id: Optional[Any] = None
    duration_minutes: Optional[int] = None
    description: str = ""
    coach_notes: str = ""
    focus_area: Optional[str] = None
    is_template: bool = False
    is_completed: bool = False
    exercises: tuple[ExerciseTarget, ...] = ()
    check_ins: tuple[CheckInRecord, ...] = field(default_factory=tuple)
