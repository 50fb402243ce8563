"""
app/domain/consumption.py

Domain models flowing through the monthly processing pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal


@dataclass(frozen=True)
class RawConsumptionRecord:
    """
    One parsed CSV row.

    ``hourly_consumption`` maps the 0-based hourly column index to its value,
    in column order. Blank or unparseable cells are absent, not zero.
    """

    region: str
    building_type: str
    hourly_consumption: dict[int, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum(self.hourly_consumption.values(), Decimal("0"))


@dataclass(frozen=True)
class AggregatedConsumption:
    """
    One (region, month) aggregate prepared for persistence.
    """

    region: str
    building_type: str
    month: datetime
    total_consumption: Decimal
    record_count: int
    processed_at: datetime
    source_file: str


@dataclass(frozen=True)
class ProcessingResult:
    """
    Outcome of one "process period" run. Never raised, always returned.
    """

    success: bool
    month: str
    records_processed: int = 0
    records_filtered: int = 0
    regions_aggregated: int = 0
    error_message: str | None = None
    processing_time: timedelta = timedelta(0)


@dataclass(frozen=True)
class RegionConsumption:
    """
    Read-side re-aggregation of persisted rows for one (region, month).
    """

    region: str
    month: datetime
    total_consumption: Decimal
    apartment_count: int
    average_consumption: Decimal
