"""Glycogen ledger API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fuel_ledger.database import get_db
from fuel_ledger.models.schemas import (
    BaselinePromptResponse,
    LedgerDayResponse,
    LedgerDaysResponse,
    RecomputeResponse,
    WhatIfResponse,
)
from fuel_ledger.services.ledger_service import LedgerService
from fuel_ledger.services.thresholds import WHAT_IF_EXTRA_CARBS


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ledger", tags=["ledger"])


@router.post("/{subject_id}/recompute", response_model=RecomputeResponse)
async def recompute_ledger(
    subject_id: str,
    days: int | None = Query(None, ge=1, le=365),
    db: Session = Depends(get_db),
) -> RecomputeResponse:
    """
    Rebuild the ledger for a subject.

    Args:
        subject_id: Subject to recompute
        days: Window length in days (default: configured ledger window)
        db: Database session

    Returns:
        Summary of the processed window

    Raises:
        HTTPException: 500 if the run fails, with the failing date in the detail
    """
    result = LedgerService(db).recompute(subject_id, days=days)

    if not result.success:
        logger.error("Recompute failed for %s: %s", subject_id, result.error)
        raise HTTPException(status_code=500, detail=result.error or "Ledger recompute failed")

    return RecomputeResponse(
        success=True,
        days_processed=result.days_processed,
        start_date=result.start_date,
        end_date=result.end_date,
    )


@router.get("/{subject_id}/days", response_model=LedgerDaysResponse)
async def get_ledger_days(
    subject_id: str,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
) -> LedgerDaysResponse:
    """Return the most recent persisted ledger days, oldest first."""
    summaries = LedgerService(db).list_days(subject_id, days=days)
    return LedgerDaysResponse(
        subject_id=subject_id,
        count=len(summaries),
        days=[LedgerDayResponse.model_validate(s) for s in summaries],
    )


@router.get("/{subject_id}/baseline-prompt", response_model=BaselinePromptResponse)
async def get_baseline_prompt(
    subject_id: str,
    db: Session = Depends(get_db),
) -> BaselinePromptResponse:
    """Check whether the subject's history looks like it started mid training block."""
    prompt = LedgerService(db).baseline_prompt(subject_id)
    return BaselinePromptResponse(subject_id=subject_id, show=prompt["show"], reason=prompt["reason"])


@router.get("/{subject_id}/what-if", response_model=WhatIfResponse)
async def get_what_if(
    subject_id: str,
    extra_carbs: float = Query(WHAT_IF_EXTRA_CARBS, ge=0, le=1000),
    db: Session = Depends(get_db),
) -> WhatIfResponse:
    """
    Project the latest ledger day if ``extra_carbs`` more grams were eaten.

    Raises:
        HTTPException: 404 if the subject has no ledger days yet
    """
    projection = LedgerService(db).what_if(subject_id, extra_carbs=extra_carbs)

    if projection is None:
        raise HTTPException(status_code=404, detail="No ledger days found for subject")

    return WhatIfResponse(**projection)
