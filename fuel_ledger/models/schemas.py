"""Pydantic models describing API payloads."""
from datetime import date
from pydantic import BaseModel, ConfigDict, Field


class RecomputeResponse(BaseModel):
    """Schema for a successful recompute run."""

    success: bool
    days_processed: int = Field(ge=0)
    start_date: date
    end_date: date


class LedgerDayResponse(BaseModel):
    """Schema for one persisted ledger day."""

    model_config = ConfigDict(from_attributes=True)

    date: date

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

    debt_start_g: int
    debt_end_g: int

    depletion_total_g: int
    repletion_g: int

    has_intake: bool
    intake_type: str
    intake_confidence: str
    carbs_logged_g: float
    protein_logged_g: float
    estimated_intake_g: int | None = None

    carb_target_g: int
    protein_target_g: int
    alignment_score: int | None = Field(None, ge=0, le=100)
    readiness_score: int = Field(ge=0, le=100)
    risk_flag: str

    is_hard_day: bool
    is_rest_day: bool
    total_tss: float
    total_duration_min: float
    intensity_mix: dict[str, int] = {}
    sport_mix: dict[str, float] = {}

    debt_trend: str | None = None
    insight_headline: str | None = None
    insight_action: str | None = None
    insight_why: str | None = None


class LedgerDaysResponse(BaseModel):
    """Schema for the day list endpoint."""

    subject_id: str
    count: int
    days: list[LedgerDayResponse] = []


class BaselinePromptResponse(BaseModel):
    """Schema for the starting-debt prompt check."""

    subject_id: str
    show: bool
    reason: str | None = None


class WhatIfResponse(BaseModel):
    """Schema for the extra-carbs projection of the latest day."""

    date: date
    extra_carbs_g: float
    store_before_g: int
    fill_pct_before: int
    readiness_before: int
    store_after_g: int
    fill_pct_after: int
    readiness_after: int
    surplus_after_g: int
