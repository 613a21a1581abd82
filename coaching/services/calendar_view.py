from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional, Sequence

from coaching.config import get_settings
from coaching.dates import align_to_monday, parse_flexible_date, today, week_start_sunday

MONTH_GRID_CELLS = 42


@dataclass(frozen=True)
class WeekRange:
    start: date
    end: date

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end


def build_month_grid(anchor: Any = None) -> list[date]:
    """Six Sunday-first weeks covering the anchor's month, padded with adjacent days."""
    base = parse_flexible_date(anchor) or today()
    first = base.replace(day=1)
    start = week_start_sunday(first)
    return [start + timedelta(days=i) for i in range(MONTH_GRID_CELLS)]


def build_week_window(anchor: Any = None) -> list[date]:
    start = week_start_sunday(anchor)
    return [start + timedelta(days=i) for i in range(7)]


def clamp_window_start(start_index: int, days: int = 7, size: Optional[int] = None) -> int:
    window = size if size is not None else get_settings().weekly_visible_days
    upper = max(0, days - window)
    return min(max(int(start_index), 0), upper)


def visible_window(week: Sequence[date], start_index: int = 0, size: Optional[int] = None) -> list[date]:
    """Compact slice of a week for narrow screens."""
    window = size if size is not None else get_settings().weekly_visible_days
    start = clamp_window_start(start_index, len(week), window)
    return list(week[start : start + window])


def week_range(anchor: Any = None) -> WeekRange:
    """Monday-to-Sunday range holding ``anchor``; used by the weekly schedule list."""
    start = align_to_monday(parse_flexible_date(anchor) or today())
    return WeekRange(start=start, end=start + timedelta(days=6))


def is_in_month(day: date, anchor: Any) -> bool:
    base = parse_flexible_date(anchor)
    return base is not None and (day.year, day.month) == (base.year, base.month)
