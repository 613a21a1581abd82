from __future__ import annotations

from datetime import date, datetime

import pytest

from coaching.errors import EnrollmentTransitionError
from coaching.records import EnrollmentRecord
from coaching.services.enrollments import (
    RENEWAL_MESSAGE,
    accessible_program_ids,
    enrollment_status_view,
    plan_enrollment_maintenance,
    program_completion_alerts,
    transition_enrollment,
)


def _enrollment(**overrides):
    fields = dict(
        id=1,
        athlete_id=7,
        program_id=10,
        status="active",
        start_date=date(2024, 1, 1),
        duration_weeks=4,
        program_title="Strength Block",
    )
    fields.update(overrides)
    return EnrollmentRecord(**fields)


def test_allowed_transitions():
    assert transition_enrollment("pending", "active") == "active"
    assert transition_enrollment("pending", "cancelled") == "cancelled"
    assert transition_enrollment("active", "completed") == "completed"


def test_rejected_transitions():
    for current, target in [("completed", "active"), ("active", "pending"), ("cancelled", "active")]:
        with pytest.raises(EnrollmentTransitionError):
            transition_enrollment(current, target)


def test_status_view_ending_soon():
    view = enrollment_status_view(_enrollment(), date(2024, 1, 26))
    assert view.end_date == date(2024, 1, 29)
    assert view.days_remaining == 3
    assert view.is_ending_soon is True
    assert view.is_expired is False
    assert view.effective_status == "active"


def test_status_view_expired_reads_completed():
    view = enrollment_status_view(_enrollment(), date(2024, 2, 1))
    assert view.is_expired is True
    assert view.effective_status == "completed"


def test_accessible_programs_skip_pending_and_expired():
    enrollments = [
        _enrollment(id=1, program_id=10),
        _enrollment(id=2, program_id=11, status="pending"),
        _enrollment(id=3, program_id=12, end_date=date(2024, 1, 5)),
    ]
    assert accessible_program_ids(enrollments, date(2024, 1, 10)) == [10]


def test_maintenance_backfills_dates_and_reminds():
    enrollment = _enrollment(start_date=None, enrolled_at=datetime(2024, 1, 1, 8, 0))
    plan = plan_enrollment_maintenance([enrollment], date(2024, 1, 25))

    assert len(plan.updates) == 1
    update = plan.updates[0]
    assert (update.start_date, update.end_date, update.status) == (date(2024, 1, 1), date(2024, 1, 29), "active")

    assert len(plan.reminders) == 1
    reminder = plan.reminders[0]
    assert reminder.title == "Program ending soon: Strength Block"
    assert reminder.message == RENEWAL_MESSAGE
    assert reminder.days_until_end == 4


def test_maintenance_completes_past_enrollments():
    enrollment = _enrollment(end_date=date(2024, 1, 20))
    plan = plan_enrollment_maintenance([enrollment], date(2024, 1, 25))
    assert [u.status for u in plan.updates] == ["completed"]
    assert plan.reminders == []


def test_maintenance_leaves_settled_and_cancelled_alone():
    settled = _enrollment(id=1, end_date=date(2024, 3, 1))
    cancelled = _enrollment(id=2, status="cancelled", start_date=None)
    plan = plan_enrollment_maintenance([settled, cancelled], date(2024, 1, 25))
    assert plan.updates == []
    assert plan.reminders == []


def test_maintenance_default_duration_and_title():
    enrollment = _enrollment(duration_weeks=None, program_title=None, start_date=date(2024, 1, 1))
    plan = plan_enrollment_maintenance([enrollment], date(2024, 1, 25))
    assert plan.updates[0].end_date == date(2024, 1, 29)
    assert plan.reminders[0].title == "Program ending soon: Your program"


def test_completion_alert_for_yesterday():
    alerts = program_completion_alerts(
        [_enrollment(id=1, end_date=date(2024, 1, 24)), _enrollment(id=2, end_date=date(2024, 1, 20))],
        date(2024, 1, 25),
    )
    assert len(alerts) == 1
    assert alerts[0].enrollment_id == 1
    assert alerts[0].end_date_label == "Jan 24, 2024"
    assert alerts[0].title == "Strength Block"
