"""
app/services/consumption_aggregator.py

Apartment filter and per-region aggregation of parsed consumption rows.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from decimal import Decimal

from app.domain.consumption import AggregatedConsumption, RawConsumptionRecord
from app.domain.period import TargetPeriod

logger = logging.getLogger(__name__)

APARTMENT_BUILDING_TYPE = "Butas"


class ConsumptionAggregator:
    """
    Stateless filter and group-by for one target period.
    """

    def __init__(self, building_type: str = APARTMENT_BUILDING_TYPE) -> None:
        self._building_type = building_type
        self._building_type_key = building_type.casefold()

    def filter_apartments(self, records: Iterable[RawConsumptionRecord]) -> list[RawConsumptionRecord]:
        """
        Keep records whose building type matches the apartment marker, ignoring case.
        """

        return [
            record
            for record in records
            if record.building_type.casefold() == self._building_type_key
        ]

    def aggregate(
        self,
        records: Sequence[RawConsumptionRecord],
        period: TargetPeriod,
        *,
        processed_at: datetime | None = None,
    ) -> list[AggregatedConsumption]:
        """
        Sum every hourly value per region and count the rows folded in.

        Regions appear in first-seen order. No records means no aggregates.
        """

        totals: dict[str, Decimal] = {}
        counts: dict[str, int] = {}
        for record in records:
            totals[record.region] = totals.get(record.region, Decimal("0")) + record.total
            counts[record.region] = counts.get(record.region, 0) + 1

        stamp = processed_at or datetime.now(timezone.utc)
        aggregated = [
            AggregatedConsumption(
                region=region,
                building_type=self._building_type,
                month=period.month_start,
                total_consumption=total,
                record_count=counts[region],
                processed_at=stamp,
                source_file=period.file_name,
            )
            for region, total in totals.items()
        ]
        logger.info(
            "Aggregated consumption month=%s records=%s regions=%s",
            period.label,
            len(records),
            len(aggregated),
        )
        return aggregated
