"""
app/services/consumption_query_service.py

Read-side access to persisted consumption aggregates and run history.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from functools import lru_cache

from sqlalchemy.orm import Session

from app.domain.consumption import RegionConsumption
from app.domain.period import month_start, shift_months
from db.models.processing_log import ProcessingLog
from db.repositories.consumption_repository import ConsumptionRepository, ensure_utc
from db.repositories.processing_log_repository import ProcessingLogRepository

logger = logging.getLogger(__name__)


class ConsumptionQueryService:
    """
    Re-aggregates stored rows per (region, month). Never writes.
    """

    def resolve_month_range(
        self,
        *,
        db: Session,
        from_month: datetime | None = None,
        to_month: datetime | None = None,
    ) -> tuple[datetime, datetime]:
        """
        Fill missing bounds from the latest stored month and the month before it.

        With an empty store the current calendar month is the anchor.
        """

        if from_month is not None and to_month is not None:
            return month_start(from_month), month_start(to_month)

        latest = ConsumptionRepository(db).get_latest_month()
        if latest is not None:
            anchor = latest
            logger.info("Using defaults based on latest available data anchor=%s", anchor.strftime("%Y-%m"))
        else:
            anchor = datetime.now(timezone.utc)
            logger.warning("No consumption data stored, using current month anchor=%s", anchor.strftime("%Y-%m"))

        resolved_to = month_start(to_month) if to_month is not None else month_start(anchor)
        resolved_from = month_start(from_month) if from_month is not None else shift_months(anchor, -1)
        return resolved_from, resolved_to

    def get_consumption_by_region(
        self,
        *,
        db: Session,
        from_month: datetime | None = None,
        to_month: datetime | None = None,
    ) -> list[RegionConsumption]:
        resolved_from, resolved_to = self.resolve_month_range(
            db=db,
            from_month=from_month,
            to_month=to_month,
        )
        logger.info(
            "Retrieving consumption data from=%s to=%s",
            resolved_from.strftime("%Y-%m"),
            resolved_to.strftime("%Y-%m"),
        )

        rows = ConsumptionRepository(db).get_by_month_range(resolved_from, resolved_to)
        if not rows:
            logger.info("No consumption records found for the requested range")
            return []

        totals: dict[tuple[str, datetime], Decimal] = {}
        counts: dict[tuple[str, datetime], int] = {}
        for row in rows:
            key = (row.region, ensure_utc(row.month))
            totals[key] = totals.get(key, Decimal("0")) + Decimal(row.total_consumption)
            counts[key] = counts.get(key, 0) + row.record_count

        result = [
            RegionConsumption(
                region=region,
                month=month,
                total_consumption=total,
                apartment_count=counts[(region, month)],
                average_consumption=(
                    total / counts[(region, month)] if counts[(region, month)] > 0 else Decimal("0")
                ),
            )
            for (region, month), total in totals.items()
        ]
        result.sort(key=lambda item: (item.month, item.region))

        logger.info(
            "Retrieved consumption rows=%s regions=%s months=%s",
            len(result),
            len({item.region for item in result}),
            len({item.month for item in result}),
        )
        return result

    def get_processing_history(self, *, db: Session, take: int = 10) -> list[ProcessingLog]:
        """
        Most recent run logs, newest first. Bounds on *take* are the caller's job.
        """

        logger.info("Retrieving recent processing logs take=%s", take)
        return ProcessingLogRepository(db).get_recent_logs(take)


@lru_cache(maxsize=1)
def get_consumption_query_service() -> ConsumptionQueryService:
    return ConsumptionQueryService()
