"""Initial fuel ledger schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "subject_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.String(length=100), nullable=False, unique=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("protein_g_per_kg", sa.Float(), nullable=True),
        sa.Column("carb_factor", sa.Float(), nullable=True),
        sa.Column("hr_max", sa.Integer(), nullable=True),
        sa.Column("glycogen_capacity_override_g", sa.Float(), nullable=True),
        sa.Column("starting_debt_g", sa.Float(), nullable=True),
        sa.Column(
            "baseline_prompt_dismissed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_subject_settings_subject_id",
        "subject_settings",
        ["subject_id"],
        unique=False,
    )

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.String(length=100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sport", sa.String(length=50), nullable=True),
        sa.Column("duration_min", sa.Float(), nullable=True),
        sa.Column("tss", sa.Float(), nullable=True),
        sa.Column("calories", sa.Float(), nullable=True),
        sa.Column("if_score", sa.Float(), nullable=True),
        sa.Column("avg_hr", sa.Float(), nullable=True),
        sa.Column("avg_power", sa.Float(), nullable=True),
        sa.Column("depletion_g", sa.Integer(), nullable=True),
        sa.Column("depletion_method", sa.String(length=30), nullable=True),
        sa.Column("intensity_bucket", sa.String(length=20), nullable=True),
        sa.Column("intensity_source", sa.String(length=20), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_workouts_subject_id", "workouts", ["subject_id"], unique=False)
    op.create_index("ix_workouts_date", "workouts", ["date"], unique=False)
    op.create_index("ix_workouts_subject_date", "workouts", ["subject_id", "date"], unique=False)

    op.create_table(
        "day_intakes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.String(length=100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("carbs_g", sa.Float(), nullable=True),
        sa.Column("protein_g", sa.Float(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("subject_id", "date", name="uq_day_intakes_subject_date"),
    )
    op.create_index("ix_day_intakes_subject_id", "day_intakes", ["subject_id"], unique=False)
    op.create_index("ix_day_intakes_date", "day_intakes", ["date"], unique=False)

    op.create_table(
        "day_summaries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.String(length=100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("capacity_g", sa.Integer(), nullable=False),
        sa.Column("supercomp_cap_g", sa.Integer(), nullable=False),
        sa.Column("store_start_g", sa.Integer(), nullable=False),
        sa.Column("store_end_g", sa.Integer(), nullable=False),
        sa.Column("deficit_start_g", sa.Integer(), nullable=False),
        sa.Column("surplus_start_g", sa.Integer(), nullable=False),
        sa.Column("fill_pct_start", sa.Integer(), nullable=False),
        sa.Column("deficit_end_g", sa.Integer(), nullable=False),
        sa.Column("surplus_end_g", sa.Integer(), nullable=False),
        sa.Column("fill_pct", sa.Integer(), nullable=False),
        sa.Column("debt_start_g", sa.Integer(), nullable=False),
        sa.Column("debt_end_g", sa.Integer(), nullable=False),
        sa.Column("depletion_total_g", sa.Integer(), nullable=False),
        sa.Column("repletion_g", sa.Integer(), nullable=False),
        sa.Column("has_intake", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("intake_type", sa.String(length=20), nullable=False),
        sa.Column("intake_confidence", sa.String(length=10), nullable=False),
        sa.Column("carbs_logged_g", sa.Float(), nullable=False, server_default="0"),
        sa.Column("protein_logged_g", sa.Float(), nullable=False, server_default="0"),
        sa.Column("estimated_intake_g", sa.Integer(), nullable=True),
        sa.Column("carb_target_g", sa.Integer(), nullable=False),
        sa.Column("protein_target_g", sa.Integer(), nullable=False),
        sa.Column("alignment_score", sa.Integer(), nullable=True),
        sa.Column("readiness_score", sa.Integer(), nullable=False),
        sa.Column("risk_flag", sa.String(length=10), nullable=False),
        sa.Column("is_hard_day", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_rest_day", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_tss", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_duration_min", sa.Float(), nullable=False, server_default="0"),
        sa.Column("intensity_mix", sa.JSON(), nullable=True),
        sa.Column("sport_mix", sa.JSON(), nullable=True),
        sa.Column("debt_trend", sa.String(length=20), nullable=True),
        sa.Column("insight_headline", sa.Text(), nullable=True),
        sa.Column("insight_action", sa.Text(), nullable=True),
        sa.Column("insight_why", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("subject_id", "date", name="uq_day_summaries_subject_date"),
    )
    op.create_index("ix_day_summaries_subject_id", "day_summaries", ["subject_id"], unique=False)
    op.create_index("ix_day_summaries_date", "day_summaries", ["date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_day_summaries_date", table_name="day_summaries")
    op.drop_index("ix_day_summaries_subject_id", table_name="day_summaries")
    op.drop_table("day_summaries")
    op.drop_index("ix_day_intakes_date", table_name="day_intakes")
    op.drop_index("ix_day_intakes_subject_id", table_name="day_intakes")
    op.drop_table("day_intakes")
    op.drop_index("ix_workouts_subject_date", table_name="workouts")
    op.drop_index("ix_workouts_date", table_name="workouts")
    op.drop_index("ix_workouts_subject_id", table_name="workouts")
    op.drop_table("workouts")
    op.drop_index("ix_subject_settings_subject_id", table_name="subject_settings")
    op.drop_table("subject_settings")
