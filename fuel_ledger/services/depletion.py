"""Glycogen depletion and intensity classification for training records."""
from __future__ import annotations

import logging
from typing import Iterable

from fuel_ledger.models.ledger_types import (
    DEFAULT_HR_MAX,
    DepletionMethod,
    IntensityBucket,
    IntensitySource,
    TrainingRecord,
    WorkoutAssessment,
    as_finite,
)
from fuel_ledger.services.thresholds import (
    DEPLETION_CALORIES_CLAMP_HIGH,
    DEPLETION_CALORIES_CLAMP_LOW,
    DEPLETION_CALORIES_MULTIPLIER,
    DEPLETION_TSS_MULTIPLIER,
    HR_EASY_MAX,
    HR_MODERATE_MAX,
    IF_EASY_MAX,
    IF_MODERATE_MAX,
    clamp,
    round_half_up,
)


logger = logging.getLogger(__name__)

INTENSITY_BUCKETS: tuple[IntensityBucket, ...] = ("easy", "moderate", "hard", "unknown")


def calculate_workout_depletion(record: TrainingRecord) -> tuple[int, DepletionMethod]:
    """
    Estimate glycogen depletion for a single session.

    TSS drives the estimate (TSS x 1.2). When calories are known the TSS
    estimate is clamped into 70-130% of the calorie-based estimate
    (calories x 0.20), which guards against a badly calibrated FTP.

    Args:
        record: Training session

    Returns:
        Tuple of (depletion in whole grams, method used)

    Example:
        >>> calculate_workout_depletion(TrainingRecord(date=date(2025, 2, 15), tss=100, calories=500))
        (120, 'tss_clamped_by_cal')
    """
    tss = as_finite(record.tss)
    calories = as_finite(record.calories)
    from_stress = tss * DEPLETION_TSS_MULTIPLIER if tss else 0.0

    if calories and calories > 0:
        from_calories = calories * DEPLETION_CALORIES_MULTIPLIER
        depletion = clamp(
            from_stress,
            from_calories * DEPLETION_CALORIES_CLAMP_LOW,
            from_calories * DEPLETION_CALORIES_CLAMP_HIGH,
        )
        return round_half_up(depletion), "tss_clamped_by_cal"

    return round_half_up(from_stress), "tss_only"


def _bucket_from_if(intensity_factor: float) -> IntensityBucket:
    if intensity_factor < IF_EASY_MAX:
        return "easy"
    if intensity_factor < IF_MODERATE_MAX:
        return "moderate"
    return "hard"


def _bucket_from_hr(avg_hr: float, hr_max: float) -> IntensityBucket:
    ratio = avg_hr / hr_max
    if ratio < HR_EASY_MAX:
        return "easy"
    if ratio <= HR_MODERATE_MAX:
        return "moderate"
    return "hard"


def determine_intensity_bucket(
    record: TrainingRecord,
    hr_max: float = DEFAULT_HR_MAX,
) -> tuple[IntensityBucket, IntensitySource]:
    """Classify a session, preferring intensity factor over heart rate.

    Missing, non-positive and non-finite readings count as absent.
    """
    if_score = as_finite(record.if_score)
    if if_score and if_score > 0:
        return _bucket_from_if(if_score), "if"

    avg_hr = as_finite(record.avg_hr)
    if avg_hr and avg_hr > 0 and hr_max:
        return _bucket_from_hr(avg_hr, hr_max), "hr"

    return "unknown", "unknown"


def assess_workout(record: TrainingRecord, hr_max: float = DEFAULT_HR_MAX) -> WorkoutAssessment:
    """Derive the fields written back onto a training record."""
    depletion_g, method = calculate_workout_depletion(record)
    bucket, source = determine_intensity_bucket(record, hr_max)
    return WorkoutAssessment(
        record_id=record.id,
        date=record.date,
        depletion_g=depletion_g,
        depletion_method=method,
        intensity_bucket=bucket,
        intensity_source=source,
    )


def assess_workouts(records: Iterable[TrainingRecord], hr_max: float = DEFAULT_HR_MAX) -> list[WorkoutAssessment]:
    assessments = [assess_workout(record, hr_max) for record in records]
    logger.debug("Assessed %d workouts (hr_max=%s)", len(assessments), hr_max)
    return assessments


def calculate_day_depletion(assessments: Iterable[WorkoutAssessment]) -> int:
    return sum(a.depletion_g for a in assessments)


def get_intensity_mix(assessments: Iterable[WorkoutAssessment]) -> dict[str, int]:
    """Count sessions per intensity bucket."""
    mix = {bucket: 0 for bucket in INTENSITY_BUCKETS}
    for assessment in assessments:
        mix[assessment.intensity_bucket] += 1
    return mix


def get_sport_mix(records: Iterable[TrainingRecord]) -> dict[str, float]:
    """Minutes trained per sport tag."""
    mix: dict[str, float] = {}
    for record in records:
        sport = record.sport or "other"
        mix[sport] = mix.get(sport, 0) + (as_finite(record.duration_min) or 0)
    return mix
