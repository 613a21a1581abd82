from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Profile(Base):
    __tablename__ = "profiles"
    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    email: Mapped[str] = mapped_column(String(200), unique=True)
    role: Mapped[str] = mapped_column(String(20), default="athlete")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
    __table_args__ = (CheckConstraint("role in ('athlete','coach','admin')", name="ck_profiles_role"),)


class Program(Base):
    __tablename__ = "programs"
    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(160))
    description: Mapped[str] = mapped_column(Text, default="")
    duration_weeks: Mapped[int | None] = mapped_column(Integer)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"))
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)


class ProgramEnrollment(Base):
    __tablename__ = "program_enrollments"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), index=True)
    program_id: Mapped[int | None] = mapped_column(ForeignKey("programs.id"), index=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    start_date: Mapped[dt.date | None] = mapped_column(Date)
    end_date: Mapped[dt.date | None] = mapped_column(Date)
    enrolled_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime)

    program: Mapped[Program | None] = relationship(lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status in ('pending','active','completed','cancelled')",
            name="ck_program_enrollments_status",
        ),
    )


class Workout(Base):
    __tablename__ = "workouts"
    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(160))
    description: Mapped[str] = mapped_column(Text, default="")
    program_id: Mapped[int | None] = mapped_column(ForeignKey("programs.id"), index=True)
    athlete_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), index=True)
    day_number: Mapped[int | None] = mapped_column(Integer)
    scheduled_date: Mapped[dt.date | None] = mapped_column(Date)
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    coach_notes: Mapped[str | None] = mapped_column(Text)
    focus_area: Mapped[str | None] = mapped_column(String(120))
    is_template: Mapped[bool] = mapped_column(Boolean, default=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime)

    exercises: Mapped[list["WorkoutExercise"]] = relationship(
        back_populates="workout", order_by="WorkoutExercise.order_in_workout", cascade="all, delete-orphan"
    )
    check_ins: Mapped[list["WorkoutCheckIn"]] = relationship(back_populates="workout", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("day_number is null or day_number >= 1", name="ck_workouts_day_number"),
        Index("ix_workouts_program_day", "program_id", "day_number"),
    )


class WorkoutExercise(Base):
    __tablename__ = "workout_exercises"
    id: Mapped[int] = mapped_column(primary_key=True)
    workout_id: Mapped[int] = mapped_column(ForeignKey("workouts.id"), index=True)
    exercise_name: Mapped[str] = mapped_column(String(160))
    order_in_workout: Mapped[int] = mapped_column(Integer, default=0)
    target_sets: Mapped[int | None] = mapped_column(Integer)
    target_reps: Mapped[str | None] = mapped_column(String(40))
    target_weight: Mapped[float | None] = mapped_column(Float)
    target_rpe: Mapped[float | None] = mapped_column(Float)
    rest_seconds: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)

    workout: Mapped[Workout] = relationship(back_populates="exercises")


class WorkoutCheckIn(Base):
    __tablename__ = "workout_checkins"
    id: Mapped[int] = mapped_column(primary_key=True)
    workout_id: Mapped[int] = mapped_column(ForeignKey("workouts.id"), index=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), index=True)
    status: Mapped[str] = mapped_column(String(20), default="submitted")
    submitted_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
    revision_requested_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    readiness_score: Mapped[int | None] = mapped_column(Integer)
    energy_level: Mapped[str | None] = mapped_column(String(10))
    soreness_level: Mapped[str | None] = mapped_column(String(10))
    notes: Mapped[str] = mapped_column(Text, default="")
    coach_notes: Mapped[str] = mapped_column(Text, default="")
    achieved_pr: Mapped[bool] = mapped_column(Boolean, default=False)
    pr_exercise: Mapped[str | None] = mapped_column(String(120))
    pr_value: Mapped[float | None] = mapped_column(Float)
    pr_unit: Mapped[str | None] = mapped_column(String(10))
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime)

    workout: Mapped[Workout] = relationship(back_populates="check_ins")
    media: Mapped[list["CheckInMedia"]] = relationship(cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("status in ('submitted','reviewed','needs_revision')", name="ck_workout_checkins_status"),
        CheckConstraint("readiness_score is null or readiness_score between 1 and 10", name="ck_checkin_readiness"),
        Index("ix_checkins_athlete_workout", "athlete_id", "workout_id"),
    )


class CheckInMedia(Base):
    __tablename__ = "workout_checkin_media"
    id: Mapped[int] = mapped_column(primary_key=True)
    checkin_id: Mapped[int] = mapped_column(ForeignKey("workout_checkins.id"), index=True)
    media_url: Mapped[str] = mapped_column(String(500))
    media_type: Mapped[str] = mapped_column(String(10), default="image")


class Notification(Base):
    __tablename__ = "notifications"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(40))
    action_url: Mapped[str | None] = mapped_column(String(300))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.now)
