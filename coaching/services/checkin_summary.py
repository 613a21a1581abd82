"""Coach-side roll-ups of athlete check-ins."""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from coaching.records import CHECKIN_STATUSES, CheckInRecord

SUMMARY_COLUMNS = ["week", "check_ins", "avg_readiness", "needs_revision", "reviewed", "prs"]


def status_counts(check_ins: Iterable[CheckInRecord]) -> dict[str, int]:
    counts = {status: 0 for status in CHECKIN_STATUSES}
    for check_in in check_ins:
        counts[check_in.status] = counts.get(check_in.status, 0) + 1
    return counts


def filter_by_status(check_ins: Iterable[CheckInRecord], status: str) -> list[CheckInRecord]:
    return [c for c in check_ins if c.status == status]


def weekly_checkin_summary(check_ins: Iterable[CheckInRecord]) -> pd.DataFrame:
    """Aggregate check-ins into Monday-start weeks.

    Returns a DataFrame with columns: week, check_ins, avg_readiness,
    needs_revision, reviewed, prs.
    """
    rows = [
        {
            "submitted_at": c.submitted_at,
            "readiness_score": c.readiness_score,
            "needs_revision": c.status == "needs_revision",
            "reviewed": c.status == "reviewed",
            "pr": bool(c.achieved_pr),
        }
        for c in check_ins
    ]
    if not rows:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    df = pd.DataFrame(rows)
    df["submitted_at"] = pd.to_datetime(df["submitted_at"], utc=True).dt.tz_localize(None)
    df["readiness_score"] = pd.to_numeric(df["readiness_score"], errors="coerce")
    df["week"] = df["submitted_at"].dt.to_period("W-SUN").dt.start_time.dt.date.astype(str)
    out = df.groupby("week", as_index=False).agg(
        check_ins=("submitted_at", "count"),
        avg_readiness=("readiness_score", "mean"),
        needs_revision=("needs_revision", "sum"),
        reviewed=("reviewed", "sum"),
        prs=("pr", "sum"),
    )
    out["avg_readiness"] = out["avg_readiness"].round(2)
    return out[SUMMARY_COLUMNS]
