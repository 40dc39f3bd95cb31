"""
Coach-style insight text for ledger days.

Text is produced by a fixed, priority-ordered rule set; the same day always
yields the same headline, action and why. Insights are advisory only and are
never fed back into the ledger.
"""
from __future__ import annotations

import math

from fuel_ledger.models.ledger_types import DebtTrend, LedgerDay
from fuel_ledger.services.thresholds import (
    DEFAULT_INTAKE_RATIO,
    FILL_GREEN_MIN,
    FILL_LOADED_MIN,
    FILL_ORANGE_MIN,
    FILL_YELLOW_MIN,
    NEG_INF,
    lookup_band,
    round_half_up,
    round_to_nearest,
)


HEADLINE_BANDS: tuple[tuple[float, str], ...] = (
    (FILL_LOADED_MIN, "Loaded and ready: buffer above baseline."),
    (FILL_GREEN_MIN, "Topped up, you're ready."),
    (FILL_YELLOW_MIN, "Slightly low, manageable today."),
    (FILL_ORANGE_MIN, "Compromised: fuel matters today."),
    (NEG_INF, "High risk: you're running on empty."),
)

STORE_DROP_CLAUSE_G = -120
STORE_RECOVERY_CLAUSE_G = 50

# (upper bound of missed carbs in grams, tier); first tier whose bound is >= missed wins
CARB_ACTION_TIERS: tuple[tuple[float, str], ...] = (
    (0, "on_track"),
    (60, "small_top_up"),
    (200, "priority"),
    (math.inf, "recovery_push"),
)
PRIORITY_ROUNDING_G = 25
RECOVERY_ROUNDING_G = 50

LARGE_MISS_G = 100

TREND_SENTENCES: dict[str, str] = {
    "increasing": " 3-day debt trend is rising.",
    "decreasing": " 3-day debt trend is improving.",
    "stable": " 3-day debt trend is stable.",
}


def missed_carbs(day: LedgerDay) -> float:
    return max(0.0, day.carb_target_g - day.carbs_logged_g)


def store_delta(day: LedgerDay) -> int:
    return day.store_end_g - day.store_start_g


def generate_headline(day: LedgerDay) -> str:
    headline = lookup_band(day.fill_pct, HEADLINE_BANDS)

    delta = store_delta(day)
    if delta < STORE_DROP_CLAUSE_G:
        headline += " Stores dropped after back-to-back load."
    elif day.repletion_g > day.depletion_total_g and delta > STORE_RECOVERY_CLAUSE_G:
        headline += " Nice, you built stores back up."

    return headline


def _carb_action(day: LedgerDay) -> str:
    missed = missed_carbs(day)
    tier = next(tier for limit, tier in CARB_ACTION_TIERS if missed <= limit)

    if tier == "on_track":
        if day.surplus_end_g > 0:
            return "Maintain normal intake: your buffer handles the load."
        return "You're on track, maintain current intake."
    if tier == "small_top_up":
        return f"Small top-up: add ~{round_half_up(missed)}g carbs today."
    if tier == "priority":
        return f"Priority: add ~{round_to_nearest(missed, PRIORITY_ROUNDING_G)}g carbs by evening."
    return f"Recovery push: aim for +{round_to_nearest(missed, RECOVERY_ROUNDING_G)}g carbs across the day."


def generate_action(day: LedgerDay, is_hard_tomorrow: bool = False) -> str:
    action = _carb_action(day)
    action += f" Protein: {round_half_up(day.protein_target_g)}g (split across meals)."

    if day.is_hard_day or is_hard_tomorrow:
        action += " Front-load carbs earlier + include a carb snack after training."
    elif day.is_rest_day and day.surplus_end_g > 0:
        action += " Rest day with buffer, steady intake is fine."
    elif day.is_rest_day:
        action += " Steady carbs, focus on recovery."

    if day.intake_type == "estimated":
        action += " Intake not logged; fueling is estimated."
    elif day.intake_type == "none":
        action += " Intake unknown; repletion assumed minimal."

    return action


def generate_why(
    day: LedgerDay,
    is_back_to_back: bool = False,
    debt_trend: DebtTrend = "stable",
) -> str:
    """
    Explain the day's position, most important reason first.

    Priority:
        1. Surplus buffer
        2. Hard day on low stores
        3. Back-to-back hard days
        4. Stores rebuilt
        5. Deficit with a large carb miss
        6. Default "good range"

    Then appends a very-low-stores warning, the 3-day trend and an intake
    caveat where they apply.
    """
    fill_pct = day.fill_pct

    if day.surplus_end_g > 0:
        why = (
            f"You have a {round_half_up(day.surplus_end_g)}g buffer above baseline ({fill_pct}% fill). "
            "This buffer absorbs tomorrow's training cost before you dip into deficit. "
            "Great position, maintain steady intake."
        )
    elif day.is_hard_day and fill_pct < FILL_YELLOW_MIN:
        why = (
            "Yesterday's load wasn't fully replaced, so you're carrying a deficit into today. "
            "If you keep intensity high without topping up, quality and recovery can stall."
        )
    elif is_back_to_back:
        why = (
            "This is a heavy block. Your body adapts when you replace the cost, "
            "so today's fueling is what protects tomorrow's session."
        )
    elif store_delta(day) > STORE_RECOVERY_CLAUSE_G:
        why = (
            "You're replenishing faster than you're spending, that's what good recovery looks like. "
            "Keep it steady and you'll be set up for the next hard effort."
        )
    elif fill_pct < FILL_YELLOW_MIN and missed_carbs(day) > LARGE_MISS_G:
        why = (
            "You're running a deficit that's starting to add up. "
            "Consistent under-fueling shows up as fatigue, poor sleep, and reduced training quality."
        )
    else:
        why = (
            "Your glycogen stores are in a good range. "
            "Matching your targets today keeps you ready for whatever comes next."
        )

    if fill_pct < FILL_ORANGE_MIN:
        why += " Very low stores often show up as cravings, restless sleep and higher perceived effort."

    why += TREND_SENTENCES.get(debt_trend or "stable", TREND_SENTENCES["stable"])

    if day.intake_type == "estimated" and day.carb_target_g > 0:
        estimated = day.estimated_intake_g
        if estimated is None:
            estimated = round_half_up(day.carb_target_g * DEFAULT_INTAKE_RATIO)
        why += (
            f" Intake was not logged, so the model used {estimated}g "
            f"(~{round_half_up(DEFAULT_INTAKE_RATIO * 100)}% of target) for repletion."
        )
    elif day.intake_type == "none":
        why += " Intake was not logged and no estimate was possible, so repletion was set to 0g."
    elif day.intake_type == "logged" and day.carbs_logged_g == 0:
        why += " Intake is logged at 0g carbs."

    return why


def generate_day_insights(
    day: LedgerDay,
    *,
    is_hard_tomorrow: bool = False,
    is_back_to_back: bool = False,
    debt_trend: DebtTrend = "stable",
) -> dict[str, str]:
    """Return headline, action and why for one day given its neighbour flags."""
    return {
        "headline": generate_headline(day),
        "action": generate_action(day, is_hard_tomorrow=is_hard_tomorrow),
        "why": generate_why(day, is_back_to_back=is_back_to_back, debt_trend=debt_trend),
    }
