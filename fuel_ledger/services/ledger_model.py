"""Pure per-day ledger helpers shared by the fold and its tests."""
from __future__ import annotations

from fuel_ledger.models.ledger_types import IntakeRecord, IntakeResolution, as_finite
from fuel_ledger.services.thresholds import (
    DEFAULT_INTAKE_RATIO,
    calculate_repletion,
    round_half_up,
)


def resolve_daily_intake(intake: IntakeRecord | None, carb_target: float) -> IntakeResolution:
    """
    Decide where a day's carbohydrate for repletion comes from.

    - A logged row is trusted as-is (negatives floored to zero).
    - Without a row, 60% of the carb target is assumed eaten. The estimate
      stands in for the carbs figure, but the day still counts as unlogged.
    - Without a row or a usable target, repletion is zero.

    Every branch yields a defined repletion value, so a missing log never
    freezes the ledger.
    """
    if intake is not None:
        carbs = max(0.0, as_finite(intake.carbs_g) or 0.0)
        protein = max(0.0, as_finite(intake.protein_g) or 0.0)
        return IntakeResolution(
            has_intake=True,
            intake_type="logged",
            confidence="high",
            carbs_logged=carbs,
            protein_logged=protein,
            estimated_intake_g=None,
            repletion_g=calculate_repletion(carbs),
        )

    target = as_finite(carb_target)
    if target is not None and target > 0:
        estimated = round_half_up(target * DEFAULT_INTAKE_RATIO)
        return IntakeResolution(
            has_intake=False,
            intake_type="estimated",
            confidence="low",
            carbs_logged=float(estimated),
            protein_logged=0.0,
            estimated_intake_g=estimated,
            repletion_g=calculate_repletion(estimated),
        )

    return IntakeResolution(
        has_intake=False,
        intake_type="none",
        confidence="low",
        carbs_logged=0.0,
        protein_logged=0.0,
        estimated_intake_g=None,
        repletion_g=0.0,
    )
