"""SQLAlchemy ORM models for subjects, training, intake and ledger history."""
from datetime import date, datetime
from sqlalchemy import Integer, Date, DateTime, Float, String, Boolean, Text, JSON, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fuel_ledger.database import Base


class SubjectProfile(Base):
    """Per-subject physiology and preferences read by the ledger."""

    __tablename__ = "subject_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    protein_g_per_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    carb_factor: Mapped[float | None] = mapped_column(Float, nullable=True)
    hr_max: Mapped[int | None] = mapped_column(Integer, nullable=True)  # bpm
    glycogen_capacity_override_g: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Baseline for histories that start mid-block
    starting_debt_g: Mapped[float | None] = mapped_column(Float, nullable=True)
    baseline_prompt_dismissed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Workout(Base):
    """Imported training session plus the ledger's per-workout assessment."""

    __tablename__ = "workouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    sport: Mapped[str | None] = mapped_column(String(50), nullable=True)
    duration_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    tss: Mapped[float | None] = mapped_column(Float, nullable=True)
    calories: Mapped[float | None] = mapped_column(Float, nullable=True)
    if_score: Mapped[float | None] = mapped_column(Float, nullable=True)  # intensity factor
    avg_hr: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_power: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Written back by each ledger run
    depletion_g: Mapped[int | None] = mapped_column(Integer, nullable=True)
    depletion_method: Mapped[str | None] = mapped_column(String(30), nullable=True)  # tss_clamped_by_cal, tss_only
    intensity_bucket: Mapped[str | None] = mapped_column(String(20), nullable=True)  # easy, moderate, hard, unknown
    intensity_source: Mapped[str | None] = mapped_column(String(20), nullable=True)  # if, hr, unknown

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_workouts_subject_date", "subject_id", "date"),
    )


class DayIntake(Base):
    """Logged nutrition for one subject and day."""

    __tablename__ = "day_intakes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    carbs_g: Mapped[float | None] = mapped_column(Float, nullable=True)
    protein_g: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("subject_id", "date", name="uq_day_intakes_subject_date"),
    )


class DaySummary(Base):
    """Persisted ledger day. One row per subject and calendar date."""

    __tablename__ = "day_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Store
    capacity_g: Mapped[int] = mapped_column(Integer, nullable=False)
    supercomp_cap_g: Mapped[int] = mapped_column(Integer, nullable=False)
    store_start_g: Mapped[int] = mapped_column(Integer, nullable=False)
    store_end_g: Mapped[int] = mapped_column(Integer, nullable=False)
    deficit_start_g: Mapped[int] = mapped_column(Integer, nullable=False)
    surplus_start_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fill_pct_start: Mapped[int] = mapped_column(Integer, nullable=False)
    deficit_end_g: Mapped[int] = mapped_column(Integer, nullable=False)
    surplus_end_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fill_pct: Mapped[int] = mapped_column(Integer, nullable=False)

    # Legacy debt projection, bounded to [-150, 900]
    debt_start_g: Mapped[int] = mapped_column(Integer, nullable=False)
    debt_end_g: Mapped[int] = mapped_column(Integer, nullable=False)

    # Flows
    depletion_total_g: Mapped[int] = mapped_column(Integer, nullable=False)
    repletion_g: Mapped[int] = mapped_column(Integer, nullable=False)

    # Intake
    has_intake: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    intake_type: Mapped[str] = mapped_column(String(20), nullable=False)  # logged, estimated, none
    intake_confidence: Mapped[str] = mapped_column(String(10), nullable=False)  # high, low
    carbs_logged_g: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    protein_logged_g: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    estimated_intake_g: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Targets and scores
    carb_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    protein_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    alignment_score: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0-100, null without intake
    readiness_score: Mapped[int] = mapped_column(Integer, nullable=False)  # 0-100
    risk_flag: Mapped[str] = mapped_column(String(10), nullable=False)  # green, yellow, orange, red

    # Training summary
    is_hard_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_rest_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    total_tss: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    total_duration_min: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    intensity_mix: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    sport_mix: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Second pass
    debt_trend: Mapped[str | None] = mapped_column(String(20), nullable=True)  # increasing, decreasing, stable
    insight_headline: Mapped[str | None] = mapped_column(Text, nullable=True)
    insight_action: Mapped[str | None] = mapped_column(Text, nullable=True)
    insight_why: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("subject_id", "date", name="uq_day_summaries_subject_date"),
    )
