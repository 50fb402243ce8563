"""
app/services package marker.
"""

from app.services.consumption_aggregator import APARTMENT_BUILDING_TYPE, ConsumptionAggregator
from app.services.consumption_query_service import (
    ConsumptionQueryService,
    get_consumption_query_service,
)
from app.services.month_processing_service import (
    MonthProcessingService,
    get_month_processing_service,
)

__all__ = [
    "APARTMENT_BUILDING_TYPE",
    "ConsumptionAggregator",
    "ConsumptionQueryService",
    "get_consumption_query_service",
    "MonthProcessingService",
    "get_month_processing_service",
]
