"""Load inputs, run the ledger and persist its results for one subject."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuel_ledger.config import get_settings
from fuel_ledger.database import SessionLocal
from fuel_ledger.models.database_models import DayIntake, DaySummary, SubjectProfile, Workout
from fuel_ledger.models.ledger_types import (
    IntakeRecord,
    LedgerDay,
    ProgressCallback,
    SubjectSettings,
    TrainingRecord,
    WorkoutAssessment,
)
from fuel_ledger.services.baseline_detection import BASELINE_WINDOW_DAYS, should_show_baseline_prompt
from fuel_ledger.services.ledger import build_ledger
from fuel_ledger.services.thresholds import WHAT_IF_EXTRA_CARBS, calculate_what_if_store


logger = logging.getLogger(__name__)

SUBJECT_SETTING_FIELDS = (
    "weight_kg",
    "protein_g_per_kg",
    "carb_factor",
    "hr_max",
    "glycogen_capacity_override_g",
    "starting_debt_g",
    "baseline_prompt_dismissed",
)


@dataclass
class RecomputeResult:
    """Outcome of a recompute run. Failures carry the message and the day being written."""

    success: bool
    days_processed: int = 0
    start_date: date | None = None
    end_date: date | None = None
    error: str | None = None
    failed_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "days_processed": self.days_processed,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "error": self.error,
            "failed_date": self.failed_date.isoformat() if self.failed_date else None,
        }


class LedgerService:
    """Recompute and query the glycogen ledger for a subject."""

    def __init__(self, db: Session | None = None):
        """Initialize with optional database session."""
        self.db = db or SessionLocal()

    # ------------------------------------------------------------------
    # Subject settings
    # ------------------------------------------------------------------

    def get_subject_settings(self, subject_id: str) -> SubjectSettings:
        """Validated settings for a subject; defaults when no profile exists."""
        profile = self.db.query(SubjectProfile).filter(SubjectProfile.subject_id == subject_id).first()
        if profile is None:
            logger.info("No settings stored for subject %s - using defaults", subject_id)
            return SubjectSettings()
        return SubjectSettings.model_validate(profile)

    def upsert_subject_settings(self, subject_id: str, values: dict[str, Any]) -> SubjectProfile:
        """Create or update a subject's stored settings. Unknown keys are ignored."""
        unknown = sorted(set(values) - set(SUBJECT_SETTING_FIELDS))
        if unknown:
            logger.warning("Ignoring unknown subject settings for %s: %s", subject_id, ", ".join(unknown))

        profile = self.db.query(SubjectProfile).filter(SubjectProfile.subject_id == subject_id).first()
        if profile is None:
            profile = SubjectProfile(subject_id=subject_id)
            self.db.add(profile)

        for field_name in SUBJECT_SETTING_FIELDS:
            if field_name in values:
                setattr(profile, field_name, values[field_name])

        self.db.commit()
        return profile

    def list_subject_ids(self) -> list[str]:
        """Every subject with stored settings or imported workouts."""
        profile_ids = {row[0] for row in self.db.query(SubjectProfile.subject_id).all()}
        workout_ids = {row[0] for row in self.db.query(Workout.subject_id).distinct().all()}
        return sorted(profile_ids | workout_ids)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def load_training_records(self, subject_id: str, start_date: date, end_date: date) -> list[TrainingRecord]:
        workouts = (
            self.db.query(Workout)
            .filter(
                Workout.subject_id == subject_id,
                Workout.date >= start_date,
                Workout.date <= end_date,
            )
            .order_by(Workout.date, Workout.id)
            .all()
        )
        return [
            TrainingRecord(
                id=w.id,
                date=w.date,
                duration_min=w.duration_min,
                tss=w.tss,
                calories=w.calories,
                if_score=w.if_score,
                avg_hr=w.avg_hr,
                avg_power=w.avg_power,
                sport=w.sport,
            )
            for w in workouts
        ]

    def load_intakes(self, subject_id: str, start_date: date, end_date: date) -> list[IntakeRecord]:
        intakes = (
            self.db.query(DayIntake)
            .filter(
                DayIntake.subject_id == subject_id,
                DayIntake.date >= start_date,
                DayIntake.date <= end_date,
            )
            .order_by(DayIntake.date)
            .all()
        )
        return [IntakeRecord(date=i.date, carbs_g=i.carbs_g, protein_g=i.protein_g) for i in intakes]

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def recompute(
        self,
        subject_id: str,
        days: int | None = None,
        end_date: date | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> RecomputeResult:
        """
        Rebuild the ledger for the last ``days`` days ending at ``end_date``.

        Every day in the window is recomputed from scratch and upserted, so
        running the same window twice leaves identical rows. Each day is
        committed on its own; when a write fails, earlier days stay committed
        and the result names the failing date.

        Args:
            subject_id: Subject to recompute
            days: Window length in days (default: ``ledger_window_days`` setting)
            end_date: Last day of the window (default: today)
            on_progress: Optional ``(current, total, message)`` callback

        Returns:
            RecomputeResult describing success or the failure point
        """
        days = days if days is not None else get_settings().ledger_window_days
        end_date = end_date or date.today()

        if days < 1:
            return RecomputeResult(success=False, error=f"days must be at least 1, got {days}")

        start_date = end_date - timedelta(days=days - 1)
        logger.info(
            "Recomputing ledger for %s | %s..%s (%d days)",
            subject_id,
            start_date.isoformat(),
            end_date.isoformat(),
            days,
        )

        try:
            subject_settings = self.get_subject_settings(subject_id)
            records = self.load_training_records(subject_id, start_date, end_date)
            intakes = self.load_intakes(subject_id, start_date, end_date)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load ledger inputs for %s", subject_id)
            self.db.rollback()
            return RecomputeResult(
                success=False,
                start_date=start_date,
                end_date=end_date,
                error=f"Failed to load ledger inputs: {exc}",
            )

        try:
            run = build_ledger(records, intakes, subject_settings, start_date, end_date, on_progress=on_progress)
        except Exception as exc:
            logger.exception("Ledger run failed for %s", subject_id)
            return RecomputeResult(
                success=False,
                start_date=start_date,
                end_date=end_date,
                error=f"Ledger run failed: {exc}",
            )

        try:
            self._write_assessments(subject_id, run.assessments)
        except SQLAlchemyError as exc:
            logger.exception("Failed to store workout assessments for %s", subject_id)
            self.db.rollback()
            return RecomputeResult(
                success=False,
                start_date=start_date,
                end_date=end_date,
                error=f"Failed to store workout assessments: {exc}",
            )

        days_written = 0
        for day in run.days:
            try:
                self._upsert_day_summary(subject_id, day)
                self.db.commit()
            except SQLAlchemyError as exc:
                logger.exception("Failed to write ledger day %s for %s", day.date.isoformat(), subject_id)
                self.db.rollback()
                return RecomputeResult(
                    success=False,
                    days_processed=days_written,
                    start_date=start_date,
                    end_date=end_date,
                    error=f"Failed to write ledger day {day.date.isoformat()}: {exc}",
                    failed_date=day.date,
                )
            days_written += 1

        logger.info("Ledger recomputed for %s | %d days written", subject_id, days_written)
        return RecomputeResult(
            success=True,
            days_processed=days_written,
            start_date=start_date,
            end_date=end_date,
        )

    def _write_assessments(self, subject_id: str, assessments: tuple[WorkoutAssessment, ...]) -> None:
        by_id = {a.record_id: a for a in assessments if a.record_id is not None}
        if not by_id:
            return

        workouts = (
            self.db.query(Workout)
            .filter(Workout.subject_id == subject_id, Workout.id.in_(by_id.keys()))
            .all()
        )
        for workout in workouts:
            assessment = by_id[workout.id]
            workout.depletion_g = assessment.depletion_g
            workout.depletion_method = assessment.depletion_method
            workout.intensity_bucket = assessment.intensity_bucket
            workout.intensity_source = assessment.intensity_source
        self.db.flush()

    def _upsert_day_summary(self, subject_id: str, day: LedgerDay) -> DaySummary:
        summary = (
            self.db.query(DaySummary)
            .filter(DaySummary.subject_id == subject_id, DaySummary.date == day.date)
            .first()
        )
        if summary is None:
            summary = DaySummary(subject_id=subject_id, date=day.date)
            self.db.add(summary)

        for key, value in day.to_dict().items():
            if key == "date":
                continue
            setattr(summary, key, value)
        return summary

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_days(self, subject_id: str, days: int | None = None) -> list[DaySummary]:
        """Most recent ``days`` persisted summaries, oldest first."""
        query = (
            self.db.query(DaySummary)
            .filter(DaySummary.subject_id == subject_id)
            .order_by(DaySummary.date.desc())
        )
        if days is not None:
            query = query.limit(days)
        return list(reversed(query.all()))

    def baseline_prompt(self, subject_id: str) -> dict[str, Any]:
        """Whether to ask the subject for a starting debt, judged on the first stored days."""
        settings = self.get_subject_settings(subject_id)
        first_days = (
            self.db.query(DaySummary)
            .filter(DaySummary.subject_id == subject_id)
            .order_by(DaySummary.date)
            .limit(BASELINE_WINDOW_DAYS)
            .all()
        )
        return should_show_baseline_prompt(settings, first_days)

    def what_if(self, subject_id: str, extra_carbs: float = WHAT_IF_EXTRA_CARBS) -> dict[str, Any] | None:
        """Project the latest day's store with extra carbs. None when nothing is stored yet."""
        latest = (
            self.db.query(DaySummary)
            .filter(DaySummary.subject_id == subject_id)
            .order_by(DaySummary.date.desc())
            .first()
        )
        if latest is None:
            return None

        projection = calculate_what_if_store(latest.store_end_g, latest.capacity_g, extra_carbs)
        return {
            "date": latest.date.isoformat(),
            "extra_carbs_g": extra_carbs,
            "store_before_g": latest.store_end_g,
            "fill_pct_before": latest.fill_pct,
            "readiness_before": latest.readiness_score,
            **projection,
        }
