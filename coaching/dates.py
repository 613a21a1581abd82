"""Calendar date helpers shared by the schedule, reconciler and calendar views.

Everything here works on naive calendar dates in the single local calendar the
academy operates in. Bad input never raises: parsers return ``None`` and
formatters return an empty string, because these run on every calendar render.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional

import pandas as pd

_ISO_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

DEFAULT_DISPLAY_OPTIONS: dict[str, str] = {"month": "short", "day": "numeric", "year": "numeric"}


def today() -> date:
    return date.today()


def parse_flexible_date(value: Any) -> Optional[date]:
    """Normalize ``value`` to a calendar date, or ``None`` when it cannot be parsed.

    Bare ``YYYY-MM-DD`` prefixes are matched literally before any general
    parsing so that a date-only string is never shifted by a UTC conversion.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    match = _ISO_DATE_PREFIX.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    moment = parsed.to_pydatetime()
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def format_date_only(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def to_date_key(value: Any) -> Optional[str]:
    """``YYYY-MM-DD`` equality key for "is this on that day" comparisons."""
    parsed = parse_flexible_date(value)
    return format_date_only(parsed) if parsed else None


def format_for_display(value: Any, options: Optional[Mapping[str, str]] = None) -> str:
    """Render a date for people, e.g. ``Jan 8, 2024`` or ``Monday, January 8``.

    ``options`` follows the browser ``Intl.DateTimeFormat`` vocabulary
    (``weekday``/``month``/``day``/``year`` with ``long``/``short``/``numeric``/``2-digit``).
    """
    parsed = parse_flexible_date(value)
    if parsed is None:
        return ""
    opts = dict(options or DEFAULT_DISPLAY_OPTIONS)
    try:
        return _render(parsed, opts)
    except (TypeError, ValueError):
        return ""


def _render(value: date, opts: dict[str, str]) -> str:
    weekday = {"long": "%A", "short": "%a", "narrow": "%a"}.get(opts.get("weekday", ""), "")
    weekday_text = value.strftime(weekday) if weekday else ""
    if opts.get("weekday") == "narrow":
        weekday_text = weekday_text[:1]

    day_style = opts.get("day")
    day_text = ""
    if day_style == "2-digit":
        day_text = f"{value.day:02d}"
    elif day_style:
        day_text = str(value.day)

    year_style = opts.get("year")
    year_text = ""
    if year_style == "2-digit":
        year_text = f"{value.year % 100:02d}"
    elif year_style:
        year_text = str(value.year)

    month_style = opts.get("month")
    if month_style in {"numeric", "2-digit"}:
        month_text = f"{value.month:02d}" if month_style == "2-digit" else str(value.month)
        body = "/".join(part for part in (month_text, day_text, year_text) if part)
        return f"{weekday_text}, {body}" if weekday_text and body else (body or weekday_text)

    month_text = ""
    if month_style == "long":
        month_text = value.strftime("%B")
    elif month_style in {"short", "narrow"}:
        month_text = value.strftime("%b")
        if month_style == "narrow":
            month_text = month_text[:1]

    body = " ".join(part for part in (month_text, day_text) if part)
    if year_text:
        body = f"{body}, {year_text}" if body else year_text
    if weekday_text:
        return f"{weekday_text}, {body}" if body else weekday_text
    return body


def align_to_monday(value: Any) -> Optional[date]:
    """Monday on or before ``value``; program weeks start on Monday."""
    parsed = parse_flexible_date(value)
    if parsed is None:
        return None
    return parsed - timedelta(days=parsed.weekday())


def week_start_sunday(value: Any = None) -> date:
    """Sunday on or before ``value`` (today when omitted); calendar grids start on Sunday."""
    parsed = parse_flexible_date(value) or today()
    return parsed - timedelta(days=(parsed.weekday() + 1) % 7)


def days_between(start: date, end: date) -> int:
    return (end - start).days
