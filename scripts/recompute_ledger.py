"""Recompute the glycogen ledger for one subject from the command line."""
import argparse
import sys
from pathlib import Path
from typing import Any

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import yaml

from fuel_ledger.database import SessionLocal, run_migrations
from fuel_ledger.logging_config import configure_logging
from fuel_ledger.services.ledger_service import LedgerService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute the glycogen ledger for a subject",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recompute the configured window (default 60 days)
  python scripts/recompute_ledger.py --subject alice

  # Recompute 90 days after updating settings from YAML
  python scripts/recompute_ledger.py --subject alice --days 90 --settings-file alice.yaml
        """
    )
    parser.add_argument("--subject", required=True, help="Subject identifier")
    parser.add_argument("--days", type=int, default=None, help="Window length in days (1-365)")
    parser.add_argument("--settings-file", type=Path, default=None, help="YAML file with subject settings")
    args = parser.parse_args(argv)

    if args.days is not None and not 1 <= args.days <= 365:
        parser.error("--days must be between 1 and 365")
    return args


def load_settings_file(path: Path) -> dict[str, Any]:
    """Read subject settings from YAML. A top-level ``subject`` mapping is unwrapped."""
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of settings")

    subject = data.get("subject", data)
    if not isinstance(subject, dict):
        raise ValueError(f"'subject' in {path} must be a mapping")
    return subject


def _print_progress(current: int, total: int, message: str) -> None:
    if current == total or current % 10 == 0:
        print(f"  [{current}/{total}] {message}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()

    print("Ensuring database schema is up to date...")
    run_migrations()

    db = SessionLocal()
    try:
        service = LedgerService(db)

        if args.settings_file:
            values = load_settings_file(args.settings_file)
            service.upsert_subject_settings(args.subject, values)
            print(f"✅ Updated settings for {args.subject} from {args.settings_file}")

        print(f"📅 Recomputing ledger for {args.subject}")
        print(f"{'='*60}")
        result = service.recompute(args.subject, days=args.days, on_progress=_print_progress)
    finally:
        db.close()

    print(f"{'='*60}")
    if not result.success:
        print(f"❌ Recompute failed: {result.error}")
        if result.failed_date:
            print(f"   Failed on {result.failed_date.isoformat()} after {result.days_processed} day(s)")
        return 1

    print(f"📊 Summary:")
    print(f"  Window: {result.start_date.isoformat()} to {result.end_date.isoformat()}")
    print(f"  Days written: {result.days_processed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
