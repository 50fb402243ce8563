"""
app/domain package marker.
"""

from app.domain.cancellation import CancellationToken, ProcessingCancelledError
from app.domain.consumption import (
    AggregatedConsumption,
    ProcessingResult,
    RawConsumptionRecord,
    RegionConsumption,
)
from app.domain.period import InvalidPeriodError, TargetPeriod
from app.domain.processing_status import InvalidStatusTransitionError, ProcessingStatus

__all__ = [
    "AggregatedConsumption",
    "CancellationToken",
    "InvalidPeriodError",
    "InvalidStatusTransitionError",
    "ProcessingCancelledError",
    "ProcessingResult",
    "ProcessingStatus",
    "RawConsumptionRecord",
    "RegionConsumption",
    "TargetPeriod",
]
