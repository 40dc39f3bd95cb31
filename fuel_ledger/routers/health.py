"""Router exposing basic system endpoints."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuel_ledger.database import get_db
from fuel_ledger.models.database_models import DaySummary


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])

STALENESS_THRESHOLD_HOURS = 26


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/ledger-status")
async def get_ledger_status(db: Session = Depends(get_db)) -> dict:
    """
    Check how recently any ledger day was written.

    The scheduler recomputes once a day, so anything older than the
    threshold means the nightly job has not run.

    Returns:
        dict: {
            "last_recompute": ISO timestamp or None,
            "is_stale": bool,
            "staleness_threshold_hours": int,
        }
    """
    try:
        latest = db.query(DaySummary).order_by(DaySummary.updated_at.desc()).first()
    except SQLAlchemyError:
        logger.exception("Ledger status check failed")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to check ledger status")

    if latest is None or latest.updated_at is None:
        return {
            "last_recompute": None,
            "is_stale": True,
            "staleness_threshold_hours": STALENESS_THRESHOLD_HOURS,
        }

    last_recompute = latest.updated_at
    if last_recompute.tzinfo is None:
        # Stored timestamps are naive UTC
        last_recompute = last_recompute.replace(tzinfo=timezone.utc)

    threshold = datetime.now(timezone.utc) - timedelta(hours=STALENESS_THRESHOLD_HOURS)
    return {
        "last_recompute": last_recompute.isoformat(),
        "is_stale": last_recompute < threshold,
        "staleness_threshold_hours": STALENESS_THRESHOLD_HOURS,
    }
