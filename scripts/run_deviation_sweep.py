#!/usr/bin/env python3
"""Run the deviation detector once over every active objective (cron entry point)."""

import argparse
import logging
import sys
from uuid import UUID

from telofy.core.config import Base, SessionLocal, engine, settings
from telofy.services.deviations import deviation_detector


def main() -> int:
    parser = argparse.ArgumentParser(description="Flag deviations on active objectives")
    parser.add_argument("--user-id", type=UUID, default=None, help="Only sweep this user's objectives")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (fresh local databases)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        report = deviation_detector.sweep(db, user_id=args.user_id)

    print(
        f"Scanned {report.objectives_scanned} objective(s), "
        f"created {report.deviations_created} deviation(s), "
        f"{len(report.failures)} failure(s)."
    )
    for failure in report.failures:
        print(f"  {failure.objective_id}: {failure.error}", file=sys.stderr)
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
