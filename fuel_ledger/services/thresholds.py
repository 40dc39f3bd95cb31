"""
Glycogen ledger thresholds, targets and scoring.

The store model tracks the modeled glycogen level in grams. Capacity is the
100% fill level derived from body weight; the store may rise above capacity
(supercompensation) up to a fixed multiple of it. Every band used for scoring
and advisory text is an ordered table of ``(lower_bound, outcome)`` pairs that
is evaluated top-down by :func:`lookup_band`.
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence, TypeVar

from fuel_ledger.models.ledger_types import RiskFlag, StoreMetrics, TrainingRecord, as_finite


T = TypeVar("T")

NEG_INF = float("-inf")

# Glycogen store
CAPACITY_PER_KG = 7.0
SUPERCOMP_MULTIPLIER = 1.20
INITIAL_FILL_RATIO = 1.0

# Fill-percentage bands
FILL_LOADED_MIN = 100
FILL_GREEN_MIN = 80
FILL_YELLOW_MIN = 60
FILL_ORANGE_MIN = 40

RISK_FLAG_BANDS: tuple[tuple[float, RiskFlag], ...] = (
    (FILL_GREEN_MIN, "green"),
    (FILL_YELLOW_MIN, "yellow"),
    (FILL_ORANGE_MIN, "orange"),
    (NEG_INF, "red"),
)

# (band start, fill span, readiness at band start, readiness span)
READINESS_BANDS: tuple[tuple[float, tuple[float, float, float, float]], ...] = (
    (100, (100, 20, 95, 5)),
    (80, (80, 20, 80, 15)),
    (60, (60, 20, 60, 20)),
    (40, (40, 20, 35, 25)),
    (NEG_INF, (0, 40, 10, 25)),
)
READINESS_FILL_MAX = 120

# Legacy debt projection bounds
DEBT_MIN = -150
DEBT_MAX = 900

# Repletion
REPLETION_EFFICIENCY = 0.70
REPLETION_CAP_PER_DAY = 500
DEFAULT_INTAKE_RATIO = 0.60

# Depletion
DEPLETION_TSS_MULTIPLIER = 1.2
DEPLETION_CALORIES_MULTIPLIER = 0.20
DEPLETION_CALORIES_CLAMP_LOW = 0.7
DEPLETION_CALORIES_CLAMP_HIGH = 1.3

# Intensity
IF_EASY_MAX = 0.75
IF_MODERATE_MAX = 0.88
HR_EASY_MAX = 0.75
HR_MODERATE_MAX = 0.85

# Hard day
HARD_DAY_TSS_THRESHOLD = 90
HARD_DAY_DEPLETION_THRESHOLD = 350
HARD_DAY_IF_THRESHOLD = 0.88
HARD_DAY_DURATION_MIN_THRESHOLD = 45

# Carbohydrate target
CARB_BASE_MULTIPLIER = 3.0
CARB_TRAINING_MULTIPLIER = 0.8
CARB_PAYDOWN_MULTIPLIER = 0.25
CARB_PAYDOWN_CAP = 200
CARB_SURPLUS_REDUCTION = 0.50
CARB_SURPLUS_REDUCTION_CAP = 100
CARB_MIN_MULTIPLIER = 2.0
CARB_MAX_MULTIPLIER = 8.0

# Protein target
PROTEIN_DEFAULT_MULTIPLIER = 1.8
PROTEIN_MIN_MULTIPLIER = 1.6
PROTEIN_MAX_MULTIPLIER = 2.2

# Alignment
ALIGNMENT_CARB_WEIGHT = 0.6
ALIGNMENT_PROTEIN_WEIGHT = 0.4

# What-if
WHAT_IF_EXTRA_CARBS = 200
WHAT_IF_CREDIT_MULTIPLIER = REPLETION_EFFICIENCY


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def round_to_nearest(value: float, multiple: int) -> int:
    """Round to the nearest multiple, e.g. ``round_to_nearest(137, 25) == 125``."""
    return round_half_up(value / multiple) * multiple


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def lookup_band(value: float, bands: Sequence[tuple[float, T]]) -> T:
    """
    Return the outcome of the first band whose lower bound is <= value.

    Bands are evaluated top-down, so they must be ordered by descending lower
    bound. The last band should use ``-inf`` to catch everything else.

    Raises:
        ValueError: If no band matches (table without a catch-all row).
    """
    for lower_bound, outcome in bands:
        if value >= lower_bound:
            return outcome
    raise ValueError(f"No band matches value {value!r}")


# ============================================================================
# Store model
# ============================================================================


def calculate_glycogen_capacity(weight_kg: float, capacity_override: float | None = None) -> int:
    """
    Baseline (100% fill) glycogen capacity in grams.

    An override wins when it is at least 1 g once rounded; anything smaller
    falls back to the weight-based capacity.
    """
    if capacity_override and capacity_override > 0:
        override = round_half_up(capacity_override)
        if override > 0:
            return override
    return round_half_up(weight_kg * CAPACITY_PER_KG)


def calculate_supercomp_cap(capacity: float) -> int:
    """Maximum store level, above which intake is not credited."""
    return round_half_up(capacity * SUPERCOMP_MULTIPLIER)


def derive_store_metrics(store_g: float, capacity: float) -> StoreMetrics:
    return StoreMetrics(
        deficit=max(0.0, capacity - store_g),
        surplus=max(0.0, store_g - capacity),
        fill_pct=round_half_up(store_g / capacity * 100) if capacity > 0 else 0,
    )


def calculate_bounded_debt(capacity: float, store_g: float) -> float:
    """Legacy debt view of a store level: ``capacity - store`` within the fixed bounds."""
    return clamp(capacity - store_g, DEBT_MIN, DEBT_MAX)


def get_risk_flag_from_fill(fill_pct: float) -> RiskFlag:
    return lookup_band(fill_pct, RISK_FLAG_BANDS)


def calculate_readiness_from_fill(fill_pct: float) -> int:
    """
    Readiness score (0-100) from fill percentage.

    Piecewise linear, non-decreasing in fill:
        100-120% -> 95-100
        80-100%  -> 80-95
        60-80%   -> 60-80
        40-60%   -> 35-60
        0-40%    -> 10-35
    """
    fill = clamp(fill_pct, 0, READINESS_FILL_MAX)
    band_start, fill_span, score_base, score_span = lookup_band(fill, READINESS_BANDS)
    fraction = min(1.0, (fill - band_start) / fill_span)
    return round_half_up(score_base + score_span * fraction)


# ============================================================================
# Repletion
# ============================================================================


def calculate_repletion(carbs_g: float | None) -> float:
    """Glycogen grams restored by the carbohydrate eaten on one day."""
    if not carbs_g or carbs_g <= 0:
        return 0.0
    return min(carbs_g * REPLETION_EFFICIENCY, REPLETION_CAP_PER_DAY)


# ============================================================================
# Targets
# ============================================================================


def calculate_store_carb_target(
    weight_kg: float,
    depletion_total: float,
    deficit: float = 0.0,
    surplus: float = 0.0,
) -> int:
    """
    Carbohydrate target for a day, aware of the store position.

    A deficit adds a capped paydown allowance on top of the base and training
    needs; a surplus removes a capped amount. The result is clamped to
    2-8 g/kg.

    Example:
        >>> calculate_store_carb_target(85, 68)
        309
    """
    base = weight_kg * CARB_BASE_MULTIPLIER
    training_add = depletion_total * CARB_TRAINING_MULTIPLIER
    paydown_add = min(deficit * CARB_PAYDOWN_MULTIPLIER, CARB_PAYDOWN_CAP)
    surplus_reduce = min(surplus * CARB_SURPLUS_REDUCTION, CARB_SURPLUS_REDUCTION_CAP)

    target = base + training_add + paydown_add - surplus_reduce
    minimum = weight_kg * CARB_MIN_MULTIPLIER
    maximum = weight_kg * CARB_MAX_MULTIPLIER
    return round_half_up(clamp(target, minimum, maximum))


def calculate_protein_target(weight_kg: float, protein_g_per_kg: float = PROTEIN_DEFAULT_MULTIPLIER) -> int:
    target = weight_kg * protein_g_per_kg
    minimum = weight_kg * PROTEIN_MIN_MULTIPLIER
    maximum = weight_kg * PROTEIN_MAX_MULTIPLIER
    return round_half_up(clamp(target, minimum, maximum))


# ============================================================================
# Scores and day classification
# ============================================================================


def calculate_alignment_score(
    carbs_logged: float,
    carb_target: float,
    protein_logged: float,
    protein_target: float,
) -> int:
    """How well intake matched targets, 60% carbs / 40% protein, 0-100."""
    if not carb_target or not protein_target:
        return 0

    carb_score = min(100.0, carbs_logged / carb_target * 100)
    protein_score = min(100.0, protein_logged / protein_target * 100)
    return round_half_up(ALIGNMENT_CARB_WEIGHT * carb_score + ALIGNMENT_PROTEIN_WEIGHT * protein_score)


def is_hard_day(total_tss: float, depletion_total: float, records: Iterable[TrainingRecord] = ()) -> bool:
    """
    A day is hard on high total load, high depletion, or one long intense session.
    """
    if total_tss >= HARD_DAY_TSS_THRESHOLD:
        return True
    if depletion_total >= HARD_DAY_DEPLETION_THRESHOLD:
        return True
    return any(
        (as_finite(record.if_score) or 0) >= HARD_DAY_IF_THRESHOLD
        and (as_finite(record.duration_min) or 0) >= HARD_DAY_DURATION_MIN_THRESHOLD
        for record in records
    )


# ============================================================================
# What-if
# ============================================================================


def calculate_what_if_store(
    current_store: float,
    capacity: float,
    extra_carbs: float = WHAT_IF_EXTRA_CARBS,
) -> dict[str, int]:
    """Project the store, fill and readiness if ``extra_carbs`` more were eaten."""
    supercomp_cap = calculate_supercomp_cap(capacity)
    credit = max(0.0, extra_carbs) * WHAT_IF_CREDIT_MULTIPLIER
    store_after = min(current_store + credit, supercomp_cap)
    metrics = derive_store_metrics(store_after, capacity)

    return {
        "store_after_g": round_half_up(store_after),
        "fill_pct_after": metrics.fill_pct,
        "readiness_after": calculate_readiness_from_fill(metrics.fill_pct),
        "surplus_after_g": round_half_up(metrics.surplus),
    }
