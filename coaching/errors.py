from __future__ import annotations


class CoachingError(Exception):
    """Base class for domain rule violations surfaced to API callers."""


class CheckInLockedError(CoachingError):
    pass


class CheckInTransitionError(CoachingError):
    pass


class EnrollmentTransitionError(CoachingError):
    pass


class ScheduleAssignmentError(CoachingError):
    pass


class WorkoutOwnershipError(CoachingError):
    pass
