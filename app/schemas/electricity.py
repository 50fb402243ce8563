"""
Schemas for electricity processing, consumption and history endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.consumption import ProcessingResult, RegionConsumption


class TriggerProcessingRequest(BaseModel):
    year: int = Field(..., description="Calendar year of the target period")
    month: int = Field(..., description="Calendar month of the target period")


class ProcessingResultResponse(BaseModel):
    success: bool
    month: str
    records_processed: int = 0
    records_filtered: int = 0
    regions_aggregated: int = 0
    error_message: str | None = None
    processing_time_seconds: float = 0.0

    @classmethod
    def from_result(cls, result: ProcessingResult) -> ProcessingResultResponse:
        return cls(
            success=result.success,
            month=result.month,
            records_processed=result.records_processed,
            records_filtered=result.records_filtered,
            regions_aggregated=result.regions_aggregated,
            error_message=result.error_message,
            processing_time_seconds=result.processing_time.total_seconds(),
        )


class RegionConsumptionResponse(BaseModel):
    region: str
    month: datetime
    total_consumption: float
    apartment_count: int
    average_consumption: float

    @classmethod
    def from_domain(cls, item: RegionConsumption) -> RegionConsumptionResponse:
        return cls(
            region=item.region,
            month=item.month,
            total_consumption=float(item.total_consumption),
            apartment_count=item.apartment_count,
            average_consumption=float(item.average_consumption),
        )


class ProcessingLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    started_at: datetime
    completed_at: datetime | None = None
    month: str
    status: str
    error_message: str | None = None
    records_processed: int = 0
    records_filtered: int = 0


class HealthResponse(BaseModel):
    healthy: bool
    timestamp: datetime
    database: str
