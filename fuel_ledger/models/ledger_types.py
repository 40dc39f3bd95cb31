"""Domain types shared by the ledger engine and its collaborators."""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, field_validator


logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_KG = 70.0
DEFAULT_PROTEIN_G_PER_KG = 1.8
DEFAULT_CARB_FACTOR = 1.0
DEFAULT_HR_MAX = 180

IntensityBucket = Literal["easy", "moderate", "hard", "unknown"]
IntensitySource = Literal["if", "hr", "unknown"]
DepletionMethod = Literal["tss_clamped_by_cal", "tss_only"]
IntakeType = Literal["logged", "estimated", "none"]
IntakeConfidence = Literal["high", "low"]
RiskFlag = Literal["green", "yellow", "orange", "red"]
DebtTrend = Literal["increasing", "decreasing", "stable"]

ProgressCallback = Callable[[int, int, str], None]


def as_finite(value: Any) -> float | None:
    """Return value as a finite float, or None when it cannot be used."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class SubjectSettings(BaseModel):
    """
    Per-subject constants read by a ledger run.

    Invalid or non-finite values never fail validation: they are replaced by
    the documented defaults and a warning is logged.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    weight_kg: float = DEFAULT_WEIGHT_KG
    protein_g_per_kg: float = DEFAULT_PROTEIN_G_PER_KG
    carb_factor: float = DEFAULT_CARB_FACTOR
    hr_max: int = DEFAULT_HR_MAX
    glycogen_capacity_override_g: float | None = None
    starting_debt_g: float | None = None
    baseline_prompt_dismissed: bool = False

    @field_validator("weight_kg", mode="before")
    @classmethod
    def coerce_weight(cls, value: Any) -> float:
        number = as_finite(value)
        if number is None or number <= 0:
            if value is not None:
                logger.warning("Invalid weight_kg %r - using default %.1f kg", value, DEFAULT_WEIGHT_KG)
            return DEFAULT_WEIGHT_KG
        return number

    @field_validator("protein_g_per_kg", mode="before")
    @classmethod
    def coerce_protein_preference(cls, value: Any) -> float:
        number = as_finite(value)
        if number is None or number <= 0:
            if value is not None:
                logger.warning(
                    "Invalid protein_g_per_kg %r - using default %.1f g/kg",
                    value,
                    DEFAULT_PROTEIN_G_PER_KG,
                )
            return DEFAULT_PROTEIN_G_PER_KG
        return number

    @field_validator("carb_factor", mode="before")
    @classmethod
    def coerce_carb_factor(cls, value: Any) -> float:
        number = as_finite(value)
        if number is None or number <= 0:
            if value is not None:
                logger.warning("Invalid carb_factor %r - using default %.1f", value, DEFAULT_CARB_FACTOR)
            return DEFAULT_CARB_FACTOR
        return number

    @field_validator("hr_max", mode="before")
    @classmethod
    def coerce_hr_max(cls, value: Any) -> int:
        number = as_finite(value)
        if number is None or number <= 0:
            if value is not None:
                logger.warning("Invalid hr_max %r - using default %d bpm", value, DEFAULT_HR_MAX)
            return DEFAULT_HR_MAX
        return int(round(number))

    @field_validator("glycogen_capacity_override_g", mode="before")
    @classmethod
    def coerce_capacity_override(cls, value: Any) -> float | None:
        number = as_finite(value)
        if number is None or number <= 0:
            if value is not None:
                logger.warning("Ignoring invalid glycogen capacity override %r", value)
            return None
        return number

    @field_validator("starting_debt_g", mode="before")
    @classmethod
    def coerce_starting_debt(cls, value: Any) -> float | None:
        number = as_finite(value)
        if number is None and value is not None:
            logger.warning("Ignoring invalid starting debt %r", value)
        return number

    @field_validator("baseline_prompt_dismissed", mode="before")
    @classmethod
    def coerce_dismissed(cls, value: Any) -> bool:
        return bool(value)


@dataclass(frozen=True)
class TrainingRecord:
    """One training session as delivered by the import pipeline."""

    date: date
    duration_min: float | None = None
    tss: float | None = None
    calories: float | None = None
    if_score: float | None = None
    avg_hr: float | None = None
    avg_power: float | None = None
    sport: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class IntakeRecord:
    """One day's logged nutrition."""

    date: date
    carbs_g: float | None = None
    protein_g: float | None = None


@dataclass(frozen=True)
class WorkoutAssessment:
    """Depletion and intensity derived for a single TrainingRecord."""

    record_id: int | None
    date: date
    depletion_g: int
    depletion_method: DepletionMethod
    intensity_bucket: IntensityBucket
    intensity_source: IntensitySource


@dataclass(frozen=True)
class IntakeResolution:
    """How a day's intake was resolved for the ledger."""

    has_intake: bool
    intake_type: IntakeType
    confidence: IntakeConfidence
    carbs_logged: float
    protein_logged: float
    estimated_intake_g: int | None
    repletion_g: float


@dataclass(frozen=True)
class StoreMetrics:
    deficit: float
    surplus: float
    fill_pct: int


@dataclass(frozen=True)
class LedgerContext:
    """Constants of a single ledger run, derived once from the subject settings."""

    settings: SubjectSettings
    capacity_g: int
    supercomp_cap_g: int
    protein_target_g: int


@dataclass(frozen=True)
class LedgerState:
    """Carried state of the fold: the store level at the end of the last processed day."""

    store_g: float
    days_processed: int = 0


@dataclass(frozen=True)
class DayInputs:
    """Everything the fold needs for a single calendar day."""

    date: date
    records: tuple[TrainingRecord, ...] = ()
    assessments: tuple[WorkoutAssessment, ...] = ()
    intake: IntakeRecord | None = None


@dataclass(frozen=True)
class LedgerDay:
    """Fully derived ledger record for one calendar day."""

    date: date

    # Store (canonical representation)
    capacity_g: int
    supercomp_cap_g: int
    store_start_g: int
    store_end_g: int
    deficit_start_g: int
    surplus_start_g: int
    fill_pct_start: int
    deficit_end_g: int
    surplus_end_g: int
    fill_pct: int

    # Legacy debt projection
    debt_start_g: int
    debt_end_g: int

    # Flows
    depletion_total_g: int
    repletion_g: int

    # Intake
    has_intake: bool
    intake_type: IntakeType
    intake_confidence: IntakeConfidence
    carbs_logged_g: float
    protein_logged_g: float
    estimated_intake_g: int | None

    # Targets and scores
    carb_target_g: int
    protein_target_g: int
    alignment_score: int | None
    readiness_score: int
    risk_flag: RiskFlag

    # Training summary
    is_hard_day: bool
    is_rest_day: bool
    total_tss: float
    total_duration_min: float
    intensity_mix: dict[str, int] = field(default_factory=dict)
    sport_mix: dict[str, float] = field(default_factory=dict)

    # Second pass
    debt_trend: DebtTrend | None = None
    insight_headline: str | None = None
    insight_action: str | None = None
    insight_why: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LedgerRun:
    """Result of a complete two-pass ledger computation."""

    days: tuple[LedgerDay, ...]
    assessments: tuple[WorkoutAssessment, ...]
    capacity_g: int
    supercomp_cap_g: int
