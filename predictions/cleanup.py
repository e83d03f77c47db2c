"""
Retention sweep for prediction records.

Not run by the service itself; schedule it externally (cron, CI job):

    studio-cleanup --days 7
"""
import argparse
import logging

from auth.models import SessionLocal
from core.config import PREDICTION_RETENTION_DAYS
from predictions.models import init_db
from predictions.store import cleanup_old_predictions

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete old prediction records.")
    parser.add_argument(
        "--days",
        type=int,
        default=PREDICTION_RETENTION_DAYS,
        help=f"Delete records older than this many days (default: {PREDICTION_RETENTION_DAYS})",
    )
    args = parser.parse_args(argv)

    if args.days < 1:
        parser.error("--days must be at least 1")

    logging.basicConfig(level=logging.INFO)
    init_db()

    db = SessionLocal()
    try:
        deleted = cleanup_old_predictions(db, days=args.days)
    finally:
        db.close()

    print(f"Deleted {deleted} prediction(s) older than {args.days} day(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
