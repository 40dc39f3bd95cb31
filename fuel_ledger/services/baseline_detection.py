"""Detect imports that start in the middle of a training block."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from fuel_ledger.models.ledger_types import SubjectSettings
from fuel_ledger.services.thresholds import round_half_up


logger = logging.getLogger(__name__)

BASELINE_WINDOW_DAYS = 3
BASELINE_TSS_THRESHOLD = 250
BASELINE_DEPLETION_THRESHOLD = 450


def detect_ongoing_training_block(days: Sequence[Any]) -> dict[str, Any]:
    """
    Inspect the first three chronological days of a fresh history.

    A freshly imported history assumes full stores on day one. When those
    first days already carry heavy load, the athlete was probably mid-block
    and should be asked for a starting debt.

    Triggers when:
        - total TSS across the first 3 days >= 250, or
        - any single day depletes >= 450 g

    Args:
        days: Ledger days or persisted summaries, sorted oldest first

    Returns:
        Dict with should_prompt, reason, tss_3day and max_depletion_g
    """
    if len(days) < BASELINE_WINDOW_DAYS:
        return {
            "should_prompt": False,
            "reason": None,
            "tss_3day": 0,
            "max_depletion_g": 0,
        }

    first_days = days[:BASELINE_WINDOW_DAYS]
    tss_3day = sum(day.total_tss or 0 for day in first_days)
    max_depletion = max(day.depletion_total_g or 0 for day in first_days)

    reason = None
    if tss_3day >= BASELINE_TSS_THRESHOLD:
        reason = f"High training load detected: {round_half_up(tss_3day)} TSS in first 3 days"
    elif max_depletion >= BASELINE_DEPLETION_THRESHOLD:
        reason = (
            f"Heavy session detected: {round_half_up(max_depletion)}g glycogen depletion in a single day"
        )

    if reason:
        logger.info("Baseline prompt triggered | %s", reason)

    return {
        "should_prompt": reason is not None,
        "reason": reason,
        "tss_3day": round_half_up(tss_3day),
        "max_depletion_g": round_half_up(max_depletion),
    }


def should_show_baseline_prompt(settings: SubjectSettings, days: Sequence[Any]) -> dict[str, Any]:
    """Run detection unless a baseline is already set or the prompt was dismissed."""
    if settings.starting_debt_g and settings.starting_debt_g > 0:
        return {"show": False, "reason": None}

    if settings.baseline_prompt_dismissed:
        return {"show": False, "reason": None}

    detection = detect_ongoing_training_block(days)
    return {"show": detection["should_prompt"], "reason": detection["reason"]}
