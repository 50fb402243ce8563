"""
app/schemas package marker.
"""

from app.schemas.electricity import (
    HealthResponse,
    ProcessingLogResponse,
    ProcessingResultResponse,
    RegionConsumptionResponse,
    TriggerProcessingRequest,
)

__all__ = [
    "HealthResponse",
    "ProcessingLogResponse",
    "ProcessingResultResponse",
    "RegionConsumptionResponse",
    "TriggerProcessingRequest",
]
