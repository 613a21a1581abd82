from __future__ import annotations

from typing import Optional

from coaching.records import WorkoutRecord

FOCUS_AREA_PREFIX = "Focus Area:"


def serialize_coach_notes(focus_area: Optional[str], coach_notes: Optional[str]) -> Optional[str]:
    """Pack a focus area and free-text notes into the single stored notes field."""
    segments: list[str] = []
    focus = (focus_area or "").strip()
    notes = (coach_notes or "").strip()
    if focus:
        segments.append(f"{FOCUS_AREA_PREFIX} {focus}")
    if notes:
        segments.append(notes)
    combined = "\n\n".join(segments).strip()
    return combined or None


def deserialize_coach_notes(raw_notes: Optional[str]) -> tuple[str, str]:
    """Inverse of :func:`serialize_coach_notes`; returns ``(focus_area, coach_notes)``."""
    if not raw_notes:
        return "", ""
    first_line, _, rest = raw_notes.replace("\r\n", "\n").partition("\n")
    if first_line.startswith(FOCUS_AREA_PREFIX):
        return first_line[len(FOCUS_AREA_PREFIX) :].strip(), rest.strip()
    return "", raw_notes


def workout_focus_area(workout: Optional[WorkoutRecord]) -> Optional[str]:
    if workout is None:
        return None
    if workout.focus_area:
        return workout.focus_area
    focus, _ = deserialize_coach_notes(workout.coach_notes)
    return focus or None
