from __future__ import annotations

from datetime import date, datetime

from coaching.records import CheckInRecord, EnrollmentRecord, WorkoutRecord
from coaching.services.reconciler import (
    ExplicitPlacement,
    OmissionReason,
    ProgramPlacement,
    SourceKind,
    Unplaceable,
    classify_workout,
    coerce_date_range,
    group_by_date_key,
    reconcile_with_report,
    reconcile_workouts_for_calendar,
    workout_for_date,
    workouts_for_date,
)

ATHLETE = 7
TODAY = date(2024, 1, 10)


def _enrollment(**overrides):
    fields = dict(id=1, athlete_id=ATHLETE, program_id=10, status="active", start_date=date(2024, 1, 1), duration_weeks=4)
    fields.update(overrides)
    return EnrollmentRecord(**fields)


def _reconcile(workouts, enrollments, date_range=None):
    return reconcile_workouts_for_calendar(workouts, enrollments, ATHLETE, date_range, today=TODAY, cadence=6)


def test_end_to_end_program_and_explicit_workouts():
    a = WorkoutRecord(id="A", title="Squat", program_id=10, day_number=7)
    b = WorkoutRecord(id="B", title="Bench", program_id=10, day_number=1, scheduled_date="2024-01-20")

    resolved = _reconcile([a, b], [_enrollment()])
    assert [(r.id, r.scheduled_date) for r in resolved] == [("A", date(2024, 1, 8)), ("B", date(2024, 1, 20))]
    assert resolved[0].source_kind is SourceKind.PROGRAM
    assert resolved[1].source_kind is SourceKind.EXPLICIT

    in_range = _reconcile([a, b], [_enrollment()], (date(2024, 1, 1), date(2024, 1, 14)))
    assert [r.id for r in in_range] == ["A"]


def test_classify_workout_tags():
    assert classify_workout(WorkoutRecord(id=1, title="x", scheduled_date="2024-01-02", day_number=3, program_id=10)) == ExplicitPlacement(date(2024, 1, 2))
    assert classify_workout(WorkoutRecord(id=2, title="x", program_id=10, day_number=3)) == ProgramPlacement(10, 3)
    assert isinstance(classify_workout(WorkoutRecord(id=3, title="x", is_template=True)), Unplaceable)
    assert isinstance(classify_workout(WorkoutRecord(id=4, title="x", day_number=3)), Unplaceable)
    assert isinstance(classify_workout(WorkoutRecord(id=5, title="x", program_id=10, day_number=0)), Unplaceable)


def test_omission_reasons_are_reported():
    workouts = [
        WorkoutRecord(id=1, title="pending program", program_id=20, day_number=1),
        WorkoutRecord(id=2, title="past duration", program_id=10, day_number=25),
        WorkoutRecord(id=3, title="after end date", program_id=11, day_number=13),
        WorkoutRecord(id=4, title="template", is_template=True),
        WorkoutRecord(id=5, title="outside range", scheduled_date=date(2024, 3, 1)),
        WorkoutRecord(id=6, title="visible", program_id=10, day_number=2),
    ]
    enrollments = [
        _enrollment(id=1, program_id=10),
        _enrollment(id=2, program_id=20, status="pending"),
        _enrollment(id=3, program_id=11, end_date=date(2024, 1, 10)),
    ]
    report = reconcile_with_report(
        workouts, enrollments, ATHLETE, (date(2024, 1, 1), date(2024, 1, 31)), today=TODAY, cadence=6
    )

    assert [r.id for r in report.resolved] == [6]
    assert report.omitted_ids(OmissionReason.NO_ACTIVE_ENROLLMENT) == [1]
    assert report.omitted_ids(OmissionReason.BEYOND_DURATION) == [2]
    assert report.omitted_ids(OmissionReason.BEYOND_END_DATE) == [3]
    assert report.omitted_ids(OmissionReason.UNPLACEABLE) == [4]
    assert report.omitted_ids(OmissionReason.OUTSIDE_RANGE) == [5]
    assert len(report.omitted_ids()) == 5


def test_program_without_enrollment_is_omitted_silently():
    workout = WorkoutRecord(id=1, title="x", program_id=99, day_number=1)
    assert _reconcile([workout], [_enrollment()]) == []


def test_last_training_day_is_included():
    workout = WorkoutRecord(id=1, title="final", program_id=10, day_number=24)
    resolved = _reconcile([workout], [_enrollment()])
    assert resolved[0].scheduled_date == date(2024, 1, 27)


def test_equal_dates_keep_input_order_and_output_is_deterministic():
    workouts = [
        WorkoutRecord(id="late", title="late", scheduled_date=date(2024, 1, 12)),
        WorkoutRecord(id="first", title="first", scheduled_date=date(2024, 1, 9)),
        WorkoutRecord(id="second", title="second", program_id=10, day_number=8),
    ]
    first = _reconcile(workouts, [_enrollment()])
    second = _reconcile(workouts, [_enrollment()])
    assert [r.id for r in first] == ["first", "second", "late"]
    assert first == second


def test_check_ins_are_filtered_to_the_athlete():
    mine = CheckInRecord(id=1, workout_id=1, athlete_id=ATHLETE, submitted_at=datetime(2024, 1, 8, 9))
    theirs = CheckInRecord(id=2, workout_id=1, athlete_id=8, submitted_at=datetime(2024, 1, 8, 10))
    workout = WorkoutRecord(id=1, title="shared", program_id=10, day_number=7, check_ins=(mine, theirs))
    resolved = _reconcile([workout], [_enrollment()])
    assert resolved[0].check_ins == (mine,)


def test_shared_program_workout_is_marked_template():
    shared = WorkoutRecord(id=1, title="shared", program_id=10, day_number=1)
    personal = WorkoutRecord(id=2, title="personal", athlete_id=ATHLETE, scheduled_date=date(2024, 1, 2))
    resolved = {r.id: r for r in _reconcile([shared, personal], [_enrollment()])}
    assert resolved[1].is_template is True
    assert resolved[2].is_template is False


def test_coerce_date_range():
    assert coerce_date_range(None) is None
    bounds = coerce_date_range(("2024-01-01", date(2024, 1, 7)))
    assert date(2024, 1, 7) in bounds
    assert date(2024, 1, 8) not in bounds
    assert coerce_date_range(("nope", "2024-01-07")) is None


def test_unparseable_range_shows_everything():
    workouts = [
        WorkoutRecord(id=1, title="a", scheduled_date=date(2024, 1, 9)),
        WorkoutRecord(id=2, title="b", scheduled_date=date(2024, 3, 1)),
    ]
    assert [r.id for r in _reconcile(workouts, [], ("2024-01-01", "not a date"))] == [1, 2]


def test_group_and_lookup_by_date():
    workouts = [
        WorkoutRecord(id=1, title="a", scheduled_date=date(2024, 1, 9)),
        WorkoutRecord(id=2, title="b", scheduled_date=date(2024, 1, 9)),
        WorkoutRecord(id=3, title="c", scheduled_date=date(2024, 1, 11)),
    ]
    resolved = _reconcile(workouts, [])
    grouped = group_by_date_key(resolved)
    assert [r.id for r in grouped["2024-01-09"]] == [1, 2]
    assert [r.id for r in workouts_for_date(resolved, "2024-01-11")] == [3]
    assert workout_for_date(resolved, date(2024, 1, 9)).id == 1
    assert workout_for_date(resolved, date(2024, 1, 10)) is None


def test_duration_exhaustion_two_weeks():
    enrollments = [_enrollment(duration_weeks=2)]
    workouts = [
        WorkoutRecord(id=12, title="last", program_id=10, day_number=12),
        WorkoutRecord(id=13, title="over", program_id=10, day_number=13),
    ]
    report = reconcile_with_report(workouts, enrollments, ATHLETE, today=TODAY, cadence=6)
    assert [r.id for r in report.resolved] == [12]
    assert report.resolved[0].scheduled_date == date(2024, 1, 13)
    assert report.omitted_ids(OmissionReason.BEYOND_DURATION) == [13]


def test_shared_workout_completion_comes_from_own_check_ins():
    other = CheckInRecord(id=1, workout_id=1, athlete_id=8, submitted_at=datetime(2024, 1, 8, 9))
    shared_done_by_other = WorkoutRecord(id=1, title="shared", program_id=10, day_number=7, is_completed=True, check_ins=(other,))
    mine = CheckInRecord(id=2, workout_id=2, athlete_id=ATHLETE, submitted_at=datetime(2024, 1, 9, 9))
    shared_done_by_me = WorkoutRecord(id=2, title="shared", program_id=10, day_number=8, check_ins=(mine,))
    owned = WorkoutRecord(id=3, title="owned", program_id=10, day_number=9, athlete_id=ATHLETE, is_completed=True)

    resolved = {r.id: r for r in _reconcile([shared_done_by_other, shared_done_by_me, owned], [_enrollment()])}
    assert resolved[1].is_completed is False
    assert resolved[2].is_completed is True
    assert resolved[3].is_completed is True
