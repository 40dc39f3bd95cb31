"""Short-window trend classification for the legacy debt series."""
from __future__ import annotations

from typing import Sequence

from fuel_ledger.models.ledger_types import DebtTrend, LedgerDay


TREND_WINDOW_DAYS = 3
# Average change per day (grams) that still counts as flat.
TREND_DEAD_BAND_G_PER_DAY = 10


def calculate_debt_trend(debt_values: Sequence[float]) -> DebtTrend:
    """
    Classify the slope of up to three chronological debt values.

    Example:
        >>> calculate_debt_trend([120, 150, 190])
        'increasing'
        >>> calculate_debt_trend([150, 155, 160])
        'stable'
    """
    values = list(debt_values)[-TREND_WINDOW_DAYS:]
    if len(values) < 2:
        return "stable"

    slope = (values[-1] - values[0]) / (len(values) - 1)
    if slope > TREND_DEAD_BAND_G_PER_DAY:
        return "increasing"
    if slope < -TREND_DEAD_BAND_G_PER_DAY:
        return "decreasing"
    return "stable"


def trailing_debt_trend(days: Sequence[LedgerDay], index: int) -> DebtTrend:
    """Trend of ``debt_end_g`` for the day at ``index`` and up to two days before it."""
    start = max(0, index - (TREND_WINDOW_DAYS - 1))
    return calculate_debt_trend([day.debt_end_g for day in days[start:index + 1]])
