"""
Electricity consumption processing and query endpoints.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_period_settings
from app.domain.period import InvalidPeriodError, TargetPeriod, ensure_supported
from app.schemas.electricity import (
    ProcessingLogResponse,
    ProcessingResultResponse,
    RegionConsumptionResponse,
    TriggerProcessingRequest,
)
from app.services.consumption_query_service import (
    ConsumptionQueryService,
    get_consumption_query_service,
)
from app.services.month_processing_service import (
    MonthProcessingService,
    get_month_processing_service,
)
from db.session import get_db

logger = logging.getLogger(__name__)

MAX_HISTORY_TAKE = 100

router = APIRouter(prefix="/api/electricity", tags=["electricity"])


@router.get("/consumption", response_model=list[RegionConsumptionResponse])
def get_consumption(
    from_month: date | None = Query(default=None, alias="fromMonth", description="First month, inclusive"),
    to_month: date | None = Query(default=None, alias="toMonth", description="Last month, inclusive"),
    db: Session = Depends(get_db),
    query_service: ConsumptionQueryService = Depends(get_consumption_query_service),
) -> list[RegionConsumptionResponse]:
    logger.info("Getting consumption data from=%s to=%s", from_month, to_month)
    try:
        items = query_service.get_consumption_by_region(
            db=db,
            from_month=_to_datetime(from_month),
            to_month=_to_datetime(to_month),
        )
    except SQLAlchemyError as exc:
        logger.exception("Error retrieving consumption data")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving consumption data",
        ) from exc
    return [RegionConsumptionResponse.from_domain(item) for item in items]


@router.get("/processing-history", response_model=list[ProcessingLogResponse])
def get_processing_history(
    take: int = Query(default=10, description="Number of most recent runs, 1-100"),
    db: Session = Depends(get_db),
    query_service: ConsumptionQueryService = Depends(get_consumption_query_service),
) -> list[ProcessingLogResponse]:
    if take < 1 or take > MAX_HISTORY_TAKE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Take parameter must be between 1 and {MAX_HISTORY_TAKE}",
        )

    try:
        logs = query_service.get_processing_history(db=db, take=take)
    except SQLAlchemyError as exc:
        logger.exception("Error retrieving processing history")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving processing history",
        ) from exc
    return [ProcessingLogResponse.model_validate(log) for log in logs]


@router.post("/trigger-processing", response_model=ProcessingResultResponse)
def trigger_processing(
    request: TriggerProcessingRequest,
    db: Session = Depends(get_db),
    processing_service: MonthProcessingService = Depends(get_month_processing_service),
) -> ProcessingResultResponse:
    settings = get_period_settings()
    try:
        period = ensure_supported(
            TargetPeriod(year=request.year, month=request.month),
            min_year=settings.min_year,
            max_year=settings.resolved_max_year(),
        )
    except InvalidPeriodError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid year or month: {exc}",
        ) from exc

    logger.info("Manually triggering processing month=%s", period.label)
    result = processing_service.process_month(db=db, period=period)
    return ProcessingResultResponse.from_result(result)


def _to_datetime(value: date | None) -> datetime | None:
    if value is None:
        return None
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
