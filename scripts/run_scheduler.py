"""Standalone scheduler process for nightly ledger recomputes."""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from filelock import FileLock

from fuel_ledger.config import get_settings
from fuel_ledger.logging_config import configure_logging
from fuel_ledger.database import SessionLocal, run_migrations
from fuel_ledger.services.ledger_service import LedgerService


logger = logging.getLogger("scheduler")


def acquire_lock(lock_path: Path) -> FileLock:
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path))
    lock.acquire(timeout=0)
    return lock


def perform_daily_recompute() -> Dict[str, Dict[str, Any]]:
    """
    Recompute the ledger window for every known subject.

    A failing subject is logged and recorded; the remaining subjects still run.

    Returns:
        dict: mapping subject_id -> RecomputeResult payload
    """
    db = SessionLocal()
    summary: Dict[str, Dict[str, Any]] = {}

    try:
        service = LedgerService(db)
        subject_ids = service.list_subject_ids()
        logger.info("Recomputing ledger for %d subject(s)", len(subject_ids))

        for subject_id in subject_ids:
            result = service.recompute(subject_id)
            summary[subject_id] = result.to_dict()

            if result.success:
                logger.info(
                    "Recompute summary for %s | days=%d | %s..%s",
                    subject_id,
                    result.days_processed,
                    result.start_date.isoformat(),
                    result.end_date.isoformat(),
                )
            else:
                logger.error(
                    "Recompute failed for %s | failed_date=%s | %s",
                    subject_id,
                    result.failed_date.isoformat() if result.failed_date else None,
                    result.error,
                )

        return summary
    except Exception:
        db.rollback()
        logger.exception("Unhandled error during ledger recompute loop")
        raise
    finally:
        db.close()


async def run_daily_job() -> None:
    start = datetime.now(timezone.utc)
    logger.info("Daily scheduler job started")

    try:
        summary = await asyncio.to_thread(perform_daily_recompute)
    except Exception:
        logger.exception("Daily recompute failed")
        return

    failed = [subject_id for subject_id, details in summary.items() if not details["success"]]
    if failed:
        logger.warning("Recompute failed for %d subject(s): %s", len(failed), ", ".join(failed))

    elapsed = (datetime.now(timezone.utc) - start).total_seconds()
    logger.info("Daily scheduler job finished in %.2fs", elapsed)
    for subject_id, details in summary.items():
        logger.debug("Detail %s -> %s", subject_id, details)


async def run_once() -> None:
    await run_daily_job()


async def main(run_now: bool) -> None:
    configure_logging()
    settings = get_settings()
    run_migrations()

    scheduler_log = settings.log_dir / "scheduler.log"
    if not any(isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", "") == str(scheduler_log) for h in logger.handlers):
        handler = logging.FileHandler(scheduler_log, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    lock_path = settings.scheduler_lock_file
    lock = acquire_lock(lock_path)
    logger.info("Acquired scheduler lock at %s", lock_path)
    try:
        if run_now:
            await run_once()
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_daily_job,
            "cron",
            hour=settings.scheduler_hour,
            minute=settings.scheduler_minute,
        )
        scheduler.start()

        logger.info(
            "Scheduler running (cron %02d:%02d). Press Ctrl+C to exit.",
            settings.scheduler_hour,
            settings.scheduler_minute,
        )
        await asyncio.Event().wait()
    finally:
        lock.release()
        logger.info("Released scheduler lock at %s", lock_path)
        if lock_path.exists():
            lock_path.unlink()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run ledger scheduler process")
    parser.add_argument("--run-now", action="store_true", help="Execute job immediately and exit")
    args = parser.parse_args()

    try:
        asyncio.run(main(run_now=args.run_now))
    except TimeoutError:
        logger.warning("Scheduler already running; exiting.")
