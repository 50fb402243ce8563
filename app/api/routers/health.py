"""
Liveness endpoint backed by a database round trip.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.schemas.electricity import HealthResponse
from db.session import get_db, ping

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
def check_health(db: Session = Depends(get_db)) -> HealthResponse | JSONResponse:
    try:
        ping(db)
    except SQLAlchemyError as exc:
        logger.error("Health check failed database=disconnected error=%s", exc)
        payload = HealthResponse(
            healthy=False,
            timestamp=datetime.now(timezone.utc),
            database="disconnected",
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=payload.model_dump(mode="json"),
        )

    logger.debug("Health check passed")
    return HealthResponse(
        healthy=True,
        timestamp=datetime.now(timezone.utc),
        database="connected",
    )
