"""
app/scheduler/jobs.py

APScheduler-based background processing of recently published months.

Schedule
--------
  monthly_processing: every ``SCHEDULER_INTERVAL_MINUTES`` (default 60),
  optionally once immediately at startup.

Each run processes the configured latest published month and the month
before it, one after the other, each in its own session. A failed month is
logged and does not stop the next one; cancellation stops the run.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; cancel the token and shut it down on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import SchedulerSettings, get_scheduler_settings
from app.domain.cancellation import CancellationToken, ProcessingCancelledError
from app.domain.period import InvalidPeriodError, TargetPeriod
from app.services.month_processing_service import (
    MonthProcessingService,
    get_month_processing_service,
)
from db.session import session_scope

logger = logging.getLogger(__name__)

JOB_ID = "monthly_processing"


def periods_to_process(settings: SchedulerSettings) -> list[TargetPeriod]:
    """
    Return the latest published period followed by the one before it.

    A previous month outside the supported range is skipped, and an invalid
    latest period yields nothing.
    """

    try:
        latest = TargetPeriod(year=settings.latest_year, month=settings.latest_month)
    except InvalidPeriodError as exc:
        logger.error("Scheduler: invalid latest period configured: %s", exc)
        return []

    try:
        previous = latest.previous()
    except InvalidPeriodError as exc:
        logger.warning("Scheduler: skipping month before %s: %s", latest.label, exc)
        return [latest]
    return [latest, previous]


def run_monthly_processing(
    cancel_token: CancellationToken,
    settings: SchedulerSettings | None = None,
    service: MonthProcessingService | None = None,
) -> None:
    """
    Process every period from :func:`periods_to_process` sequentially.
    """

    settings = settings or get_scheduler_settings()
    service = service or get_month_processing_service()
    logger.info("Scheduler: monthly_processing starting")

    for period in periods_to_process(settings):
        if cancel_token.cancelled:
            logger.info("Scheduler: monthly_processing cancelled before month=%s", period.label)
            return
        try:
            with session_scope() as db:
                result = service.process_month(db=db, period=period, cancel_token=cancel_token)
        except ProcessingCancelledError:
            logger.info("Scheduler: monthly_processing cancelled month=%s", period.label)
            return
        except Exception as exc:  # noqa: BLE001
            logger.error("Scheduler: monthly_processing error month=%s: %s", period.label, exc)
            continue

        if result.success:
            logger.info(
                "Scheduler: processed month=%s records=%s apartments=%s regions=%s duration_s=%.2f",
                result.month,
                result.records_processed,
                result.records_filtered,
                result.regions_aggregated,
                result.processing_time.total_seconds(),
            )
        else:
            logger.warning(
                "Scheduler: processing failed month=%s error=%s",
                result.month,
                result.error_message,
            )

    logger.info("Scheduler: monthly_processing complete")


def build_scheduler(
    cancel_token: CancellationToken,
    settings: SchedulerSettings | None = None,
) -> BackgroundScheduler:
    """
    Build the scheduler and register the processing job.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown()`` at the
    appropriate lifecycle points.
    """

    settings = settings or get_scheduler_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    job_options: dict[str, object] = {}
    if settings.process_on_startup:
        job_options["next_run_time"] = datetime.now(timezone.utc)

    scheduler.add_job(
        run_monthly_processing,
        trigger="interval",
        minutes=settings.interval_minutes,
        args=[cancel_token],
        kwargs={"settings": settings},
        id=JOB_ID,
        name="Monthly electricity processing",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
        **job_options,
    )
    return scheduler
