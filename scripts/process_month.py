"""
Process one month of electricity consumption from the CLI.

Exit code 0 on success, 1 when the run fails or the period is invalid.
"""

from __future__ import annotations

import argparse
import json
import logging
import os

from app.config import get_period_settings
from app.domain.period import InvalidPeriodError, TargetPeriod, ensure_supported
from app.services.month_processing_service import get_month_processing_service
from db.session import session_scope

logger = logging.getLogger("scripts.process_month")


def main() -> int:
    parser = argparse.ArgumentParser(description="Download, aggregate and store one month of consumption data.")
    parser.add_argument("--year", type=int, required=True, help="Calendar year, e.g. 2024.")
    parser.add_argument("--month", type=int, required=True, help="Calendar month, 1-12.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    settings = get_period_settings()
    try:
        period = ensure_supported(
            TargetPeriod(year=args.year, month=args.month),
            min_year=settings.min_year,
            max_year=settings.resolved_max_year(),
        )
    except InvalidPeriodError as exc:
        logger.error("Invalid period year=%s month=%s: %s", args.year, args.month, exc)
        return 1

    service = get_month_processing_service()
    with session_scope() as db:
        result = service.process_month(db=db, period=period)

    payload = {
        "success": result.success,
        "month": result.month,
        "records_processed": result.records_processed,
        "records_filtered": result.records_filtered,
        "regions_aggregated": result.regions_aggregated,
        "error_message": result.error_message,
        "processing_time_seconds": result.processing_time.total_seconds(),
    }
    print(json.dumps(payload, indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
