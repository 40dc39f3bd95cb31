"""
Glycogen ledger engine.

The ledger is a fold over calendar days. Each step takes the store level left
by the previous day, applies that day's depletion and repletion, and emits a
fully derived :class:`LedgerDay`. The fold must run in date order because
every day starts where the previous one ended.

A second pass over the finished days adds what needs neighbouring days: the
3-day debt trend and the insight text. It returns new objects and leaves the
first-pass days untouched.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Sequence

from fuel_ledger.models.ledger_types import (
    DayInputs,
    IntakeRecord,
    LedgerContext,
    LedgerDay,
    LedgerRun,
    LedgerState,
    ProgressCallback,
    SubjectSettings,
    TrainingRecord,
    WorkoutAssessment,
    as_finite,
)
from fuel_ledger.services.depletion import (
    assess_workouts,
    calculate_day_depletion,
    get_intensity_mix,
    get_sport_mix,
)
from fuel_ledger.services.insights import generate_day_insights
from fuel_ledger.services.ledger_model import resolve_daily_intake
from fuel_ledger.services.thresholds import (
    INITIAL_FILL_RATIO,
    calculate_alignment_score,
    calculate_bounded_debt,
    calculate_glycogen_capacity,
    calculate_protein_target,
    calculate_readiness_from_fill,
    calculate_store_carb_target,
    calculate_supercomp_cap,
    clamp,
    derive_store_metrics,
    get_risk_flag_from_fill,
    is_hard_day,
    round_half_up,
)
from fuel_ledger.services.trends import trailing_debt_trend


logger = logging.getLogger(__name__)


def create_context(settings: SubjectSettings) -> LedgerContext:
    capacity = calculate_glycogen_capacity(settings.weight_kg, settings.glycogen_capacity_override_g)
    return LedgerContext(
        settings=settings,
        capacity_g=capacity,
        supercomp_cap_g=calculate_supercomp_cap(capacity),
        protein_target_g=calculate_protein_target(settings.weight_kg, settings.protein_g_per_kg),
    )


def initial_state(context: LedgerContext) -> LedgerState:
    """Store level before the first day: full, or lowered by a configured starting debt."""
    starting_debt = context.settings.starting_debt_g
    if starting_debt is not None:
        store = context.capacity_g - starting_debt
    else:
        store = context.capacity_g * INITIAL_FILL_RATIO
    return LedgerState(store_g=clamp(store, 0, context.supercomp_cap_g))


def advance_day(context: LedgerContext, state: LedgerState, inputs: DayInputs) -> tuple[LedgerState, LedgerDay]:
    """
    Apply one calendar day to the ledger.

    Args:
        context: Run-wide constants (capacity, supercomp cap, settings)
        state: Store level carried over from the previous day
        inputs: The day's training records, their assessments and intake

    Returns:
        Tuple of (state for the next day, derived day record)
    """
    settings = context.settings
    capacity = context.capacity_g

    store_start = state.store_g
    depletion_total = calculate_day_depletion(inputs.assessments)
    start_metrics = derive_store_metrics(store_start, capacity)

    carb_target = calculate_store_carb_target(
        weight_kg=settings.weight_kg,
        depletion_total=depletion_total,
        deficit=start_metrics.deficit,
        surplus=start_metrics.surplus,
    )
    intake = resolve_daily_intake(inputs.intake, carb_target)

    store_end = clamp(store_start - depletion_total + intake.repletion_g, 0, context.supercomp_cap_g)
    end_metrics = derive_store_metrics(store_end, capacity)

    total_tss = sum(as_finite(record.tss) or 0 for record in inputs.records)
    alignment_score = None
    if intake.has_intake:
        alignment_score = calculate_alignment_score(
            carbs_logged=intake.carbs_logged,
            carb_target=carb_target,
            protein_logged=intake.protein_logged,
            protein_target=context.protein_target_g,
        )

    day = LedgerDay(
        date=inputs.date,
        capacity_g=capacity,
        supercomp_cap_g=context.supercomp_cap_g,
        store_start_g=round_half_up(store_start),
        store_end_g=round_half_up(store_end),
        deficit_start_g=round_half_up(start_metrics.deficit),
        surplus_start_g=round_half_up(start_metrics.surplus),
        fill_pct_start=start_metrics.fill_pct,
        deficit_end_g=round_half_up(end_metrics.deficit),
        surplus_end_g=round_half_up(end_metrics.surplus),
        fill_pct=end_metrics.fill_pct,
        debt_start_g=round_half_up(calculate_bounded_debt(capacity, store_start)),
        debt_end_g=round_half_up(calculate_bounded_debt(capacity, store_end)),
        depletion_total_g=depletion_total,
        repletion_g=round_half_up(intake.repletion_g),
        has_intake=intake.has_intake,
        intake_type=intake.intake_type,
        intake_confidence=intake.confidence,
        carbs_logged_g=intake.carbs_logged,
        protein_logged_g=intake.protein_logged,
        estimated_intake_g=intake.estimated_intake_g,
        carb_target_g=carb_target,
        protein_target_g=context.protein_target_g,
        alignment_score=alignment_score,
        readiness_score=calculate_readiness_from_fill(end_metrics.fill_pct),
        risk_flag=get_risk_flag_from_fill(end_metrics.fill_pct),
        is_hard_day=is_hard_day(total_tss, depletion_total, inputs.records),
        is_rest_day=len(inputs.records) == 0,
        total_tss=total_tss,
        total_duration_min=sum(as_finite(record.duration_min) or 0 for record in inputs.records),
        intensity_mix=get_intensity_mix(inputs.assessments),
        sport_mix=get_sport_mix(inputs.records),
    )

    next_state = LedgerState(store_g=store_end, days_processed=state.days_processed + 1)
    return next_state, day


def run_first_pass(
    context: LedgerContext,
    day_inputs: Sequence[DayInputs],
    on_progress: ProgressCallback | None = None,
) -> list[LedgerDay]:
    """
    Fold over the days in chronological order.

    Raises:
        ValueError: If the inputs are not in strictly ascending date order
    """
    for previous, current in zip(day_inputs, day_inputs[1:]):
        if current.date <= previous.date:
            raise ValueError(
                f"Ledger days must be strictly ascending: {current.date.isoformat()} "
                f"follows {previous.date.isoformat()}"
            )

    state = initial_state(context)
    days: list[LedgerDay] = []
    total = len(day_inputs)

    for index, inputs in enumerate(day_inputs):
        state, day = advance_day(context, state, inputs)
        days.append(day)
        if on_progress:
            on_progress(index + 1, total, f"Processed day {index + 1}/{total}")

    return days


def run_second_pass(days: Sequence[LedgerDay]) -> list[LedgerDay]:
    """Attach debt trend and insight text; reads neighbouring days, never mutates them."""
    annotated: list[LedgerDay] = []
    last_index = len(days) - 1

    for index, day in enumerate(days):
        debt_trend = trailing_debt_trend(days, index)
        is_hard_tomorrow = index < last_index and days[index + 1].is_hard_day
        is_back_to_back = index > 0 and day.is_hard_day and days[index - 1].is_hard_day

        insights = generate_day_insights(
            day,
            is_hard_tomorrow=is_hard_tomorrow,
            is_back_to_back=is_back_to_back,
            debt_trend=debt_trend,
        )
        annotated.append(
            replace(
                day,
                debt_trend=debt_trend,
                insight_headline=insights["headline"],
                insight_action=insights["action"],
                insight_why=insights["why"],
            )
        )

    return annotated


def date_range(start_date: date, end_date: date) -> list[date]:
    """All calendar dates from start to end, inclusive."""
    if end_date < start_date:
        raise ValueError(f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}")
    return [start_date + timedelta(days=offset) for offset in range((end_date - start_date).days + 1)]


def build_day_inputs(
    records: Iterable[TrainingRecord],
    intakes: Iterable[IntakeRecord],
    start_date: date,
    end_date: date,
    hr_max: float,
) -> tuple[list[DayInputs], list[WorkoutAssessment]]:
    """
    Assess every record and group records, assessments and intake by date.

    Records and intakes outside the window are ignored. Assessment order
    follows record order so results are reproducible.
    """
    window = date_range(start_date, end_date)
    in_window = [record for record in records if start_date <= record.date <= end_date]
    assessments = assess_workouts(in_window, hr_max)

    records_by_date: dict[date, list[TrainingRecord]] = defaultdict(list)
    assessments_by_date: dict[date, list[WorkoutAssessment]] = defaultdict(list)
    for record, assessment in zip(in_window, assessments):
        records_by_date[record.date].append(record)
        assessments_by_date[record.date].append(assessment)

    intakes_by_date: dict[date, IntakeRecord] = {}
    for intake in intakes:
        if not start_date <= intake.date <= end_date:
            continue
        if intake.date in intakes_by_date:
            logger.warning("Duplicate intake for %s - keeping the last one", intake.date.isoformat())
        intakes_by_date[intake.date] = intake

    day_inputs = [
        DayInputs(
            date=day,
            records=tuple(records_by_date.get(day, ())),
            assessments=tuple(assessments_by_date.get(day, ())),
            intake=intakes_by_date.get(day),
        )
        for day in window
    ]
    return day_inputs, assessments


def build_ledger(
    records: Iterable[TrainingRecord],
    intakes: Iterable[IntakeRecord],
    settings: SubjectSettings,
    start_date: date,
    end_date: date,
    on_progress: ProgressCallback | None = None,
) -> LedgerRun:
    """
    Run both ledger passes over ``[start_date, end_date]``.

    Args:
        records: Training sessions (any order; those outside the window are ignored)
        intakes: Logged nutrition rows
        settings: Validated subject settings
        start_date: First day of the window
        end_date: Last day of the window (inclusive)
        on_progress: Optional ``(current, total, message)`` callback, called once per day

    Returns:
        LedgerRun with one LedgerDay per calendar date and one assessment per record
    """
    context = create_context(settings)
    day_inputs, assessments = build_day_inputs(records, intakes, start_date, end_date, settings.hr_max)

    logger.info(
        "Running ledger | %s..%s | days=%d workouts=%d capacity=%dg",
        start_date.isoformat(),
        end_date.isoformat(),
        len(day_inputs),
        len(assessments),
        context.capacity_g,
    )

    days = run_first_pass(context, day_inputs, on_progress=on_progress)
    days = run_second_pass(days)

    return LedgerRun(
        days=tuple(days),
        assessments=tuple(assessments),
        capacity_g=context.capacity_g,
        supercomp_cap_g=context.supercomp_cap_g,
    )
