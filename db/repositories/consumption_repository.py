"""
db/repositories/consumption_repository.py

Persistence layer for per-region monthly consumption aggregates.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.domain.consumption import AggregatedConsumption
from db.models.consumption_record import ConsumptionRecord


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes read back from stores without tz support.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ConsumptionRepository:
    """
    Repository for writing and querying ConsumptionRecord rows.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_records(self, records: Sequence[AggregatedConsumption]) -> int:
        if not records:
            return 0

        self._session.add_all(
            [
                ConsumptionRecord(
                    region=record.region,
                    building_type=record.building_type,
                    month=record.month,
                    total_consumption=record.total_consumption,
                    record_count=record.record_count,
                    processed_at=record.processed_at,
                    source_file=record.source_file,
                )
                for record in records
            ]
        )
        self._session.flush()
        return len(records)

    def month_exists(self, month: datetime) -> bool:
        stmt = select(ConsumptionRecord.id).where(ConsumptionRecord.month == month).limit(1)
        return self._session.scalars(stmt).first() is not None

    def delete_by_month(self, month: datetime) -> int:
        result = self._session.execute(
            delete(ConsumptionRecord)
            .where(ConsumptionRecord.month == month)
            .execution_options(synchronize_session=False)
        )
        self._session.flush()
        return result.rowcount or 0

    def get_by_month_range(self, from_month: datetime, to_month: datetime) -> list[ConsumptionRecord]:
        """
        Return rows with ``from_month <= month <= to_month``, ordered by month then region.
        """

        stmt = (
            select(ConsumptionRecord)
            .where(
                ConsumptionRecord.month >= from_month,
                ConsumptionRecord.month <= to_month,
            )
            .order_by(ConsumptionRecord.month.asc(), ConsumptionRecord.region.asc())
        )
        return list(self._session.scalars(stmt).all())

    def get_latest_month(self) -> datetime | None:
        latest = self._session.scalar(select(func.max(ConsumptionRecord.month)))
        return ensure_utc(latest) if latest is not None else None
