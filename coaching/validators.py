"""Pydantic validation models for all user-facing data entry points."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from coaching.records import CHECKIN_NEEDS_REVISION, CHECKIN_REVIEWED, ENROLLMENT_STATUSES

LEVELS = {"low", "medium", "high"}
MAX_MEDIA_ITEMS = 5


class CheckInSubmitInput(BaseModel):
    athlete_id: int = Field(gt=0)
    readiness_score: Optional[int] = Field(default=None, ge=1, le=10)
    energy_level: Optional[str] = None
    soreness_level: Optional[str] = None
    notes: str = Field(default="", max_length=4000)
    achieved_pr: bool = False
    pr_exercise: Optional[str] = Field(default=None, max_length=120)
    pr_value: Optional[float] = Field(default=None, gt=0)
    pr_unit: Optional[str] = None
    media_urls: list[str] = Field(default_factory=list)

    @field_validator("energy_level", "soreness_level")
    @classmethod
    def valid_level(cls, v):
        if v is not None and v not in LEVELS:
            raise ValueError(f"level must be one of {sorted(LEVELS)}")
        return v

    @field_validator("media_urls")
    @classmethod
    def media_limit(cls, v):
        if len(v) > MAX_MEDIA_ITEMS:
            raise ValueError(f"at most {MAX_MEDIA_ITEMS} media attachments are allowed")
        return v

    @model_validator(mode="after")
    def pr_details_required(self):
        if self.achieved_pr and not self.pr_exercise:
            raise ValueError("pr_exercise is required when achieved_pr is set")
        return self


class CheckInReviewInput(BaseModel):
    status: str
    coach_notes: Optional[str] = Field(default=None, max_length=4000)

    @field_validator("status")
    @classmethod
    def valid_status(cls, v):
        allowed = {CHECKIN_REVIEWED, CHECKIN_NEEDS_REVISION}
        if v not in allowed:
            raise ValueError(f"status must be one of {sorted(allowed)}")
        return v


class WorkoutScheduleInput(BaseModel):
    athlete_id: int = Field(gt=0)
    target_date: date


class EnrollmentStatusInput(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def valid_status(cls, v):
        if v not in ENROLLMENT_STATUSES:
            raise ValueError(f"status must be one of {list(ENROLLMENT_STATUSES)}")
        return v
