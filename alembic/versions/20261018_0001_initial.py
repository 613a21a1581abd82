"""coaching calendar schema"""

from alembic import op
import sqlalchemy as sa


revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="athlete"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("role in ('athlete','coach','admin')", name="ck_profiles_role"),
    )

    op.create_table(
        "programs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration_weeks", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "program_enrollments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id"), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("enrolled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "status in ('pending','active','completed','cancelled')",
            name="ck_program_enrollments_status",
        ),
    )
    op.create_index("ix_program_enrollments_athlete_id", "program_enrollments", ["athlete_id"])
    op.create_index("ix_program_enrollments_program_id", "program_enrollments", ["program_id"])

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("program_id", sa.Integer(), sa.ForeignKey("programs.id"), nullable=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("day_number", sa.Integer(), nullable=True),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("coach_notes", sa.Text(), nullable=True),
        sa.Column("focus_area", sa.String(length=120), nullable=True),
        sa.Column("is_template", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("day_number is null or day_number >= 1", name="ck_workouts_day_number"),
    )
    op.create_index("ix_workouts_program_id", "workouts", ["program_id"])
    op.create_index("ix_workouts_athlete_id", "workouts", ["athlete_id"])
    op.create_index("ix_workouts_program_day", "workouts", ["program_id", "day_number"])

    op.create_table(
        "workout_exercises",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workout_id", sa.Integer(), sa.ForeignKey("workouts.id"), nullable=False),
        sa.Column("exercise_name", sa.String(length=160), nullable=False),
        sa.Column("order_in_workout", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("target_sets", sa.Integer(), nullable=True),
        sa.Column("target_reps", sa.String(length=40), nullable=True),
        sa.Column("target_weight", sa.Float(), nullable=True),
        sa.Column("target_rpe", sa.Float(), nullable=True),
        sa.Column("rest_seconds", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_workout_exercises_workout_id", "workout_exercises", ["workout_id"])

    op.create_table(
        "workout_checkins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workout_id", sa.Integer(), sa.ForeignKey("workouts.id"), nullable=False),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="submitted"),
        sa.Column("submitted_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("revision_requested_at", sa.DateTime(), nullable=True),
        sa.Column("readiness_score", sa.Integer(), nullable=True),
        sa.Column("energy_level", sa.String(length=10), nullable=True),
        sa.Column("soreness_level", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("coach_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("achieved_pr", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("pr_exercise", sa.String(length=120), nullable=True),
        sa.Column("pr_value", sa.Float(), nullable=True),
        sa.Column("pr_unit", sa.String(length=10), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status in ('submitted','reviewed','needs_revision')", name="ck_workout_checkins_status"),
        sa.CheckConstraint("readiness_score is null or readiness_score between 1 and 10", name="ck_checkin_readiness"),
    )
    op.create_index("ix_workout_checkins_workout_id", "workout_checkins", ["workout_id"])
    op.create_index("ix_workout_checkins_athlete_id", "workout_checkins", ["athlete_id"])
    op.create_index("ix_checkins_athlete_workout", "workout_checkins", ["athlete_id", "workout_id"])

    op.create_table(
        "workout_checkin_media",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("checkin_id", sa.Integer(), sa.ForeignKey("workout_checkins.id"), nullable=False),
        sa.Column("media_url", sa.String(length=500), nullable=False),
        sa.Column("media_type", sa.String(length=10), nullable=False, server_default="image"),
    )
    op.create_index("ix_workout_checkin_media_checkin_id", "workout_checkin_media", ["checkin_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("athlete_id", sa.Integer(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("action_url", sa.String(length=300), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_notifications_athlete_id", "notifications", ["athlete_id"])


def downgrade() -> None:
    for t in [
        "notifications",
        "workout_checkin_media",
        "workout_checkins",
        "workout_exercises",
        "workouts",
        "program_enrollments",
        "programs",
        "profiles",
    ]:
        op.drop_table(t)
