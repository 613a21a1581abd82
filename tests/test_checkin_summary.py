from __future__ import annotations

from datetime import datetime

import pandas as pd

from coaching.records import CheckInRecord
from coaching.services.checkin_summary import (
    SUMMARY_COLUMNS,
    filter_by_status,
    status_counts,
    weekly_checkin_summary,
)


def _check_in(id, submitted_at, **kwargs):
    return CheckInRecord(id=id, workout_id=id, athlete_id=7, submitted_at=submitted_at, **kwargs)


def _sample():
    return [
        _check_in(1, datetime(2024, 1, 8, 7), readiness_score=8),
        _check_in(2, datetime(2024, 1, 10, 7), readiness_score=6, status="needs_revision"),
        _check_in(3, datetime(2024, 1, 15, 7), status="reviewed", achieved_pr=True, pr_exercise="Squat"),
    ]


def test_status_counts_include_every_status():
    assert status_counts([]) == {"submitted": 0, "reviewed": 0, "needs_revision": 0}
    assert status_counts(_sample()) == {"submitted": 1, "reviewed": 1, "needs_revision": 1}


def test_filter_by_status():
    assert [c.id for c in filter_by_status(_sample(), "needs_revision")] == [2]


def test_weekly_summary_groups_monday_weeks():
    df = weekly_checkin_summary(_sample())
    assert list(df.columns) == SUMMARY_COLUMNS
    assert df["week"].tolist() == ["2024-01-08", "2024-01-15"]

    first = df.iloc[0]
    assert first["check_ins"] == 2
    assert first["avg_readiness"] == 7.0
    assert first["needs_revision"] == 1
    assert first["prs"] == 0

    second = df.iloc[1]
    assert second["reviewed"] == 1
    assert second["prs"] == 1
    assert pd.isna(second["avg_readiness"])


def test_weekly_summary_empty():
    df = weekly_checkin_summary([])
    assert df.empty
    assert list(df.columns) == SUMMARY_COLUMNS
