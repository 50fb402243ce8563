"""
app/services/month_processing_service.py

Monthly processing pipeline orchestrator.

Sequences one run for a single target month:

    Locator → Fetcher → Parser → Aggregator → ConsumptionRepository

and tracks it in a ``ProcessingLog`` whose status is committed before each
phase starts, so other sessions can watch progress:

    Started → Downloading → Parsing → Aggregating → Saving → Completed
                                                   (any) → Failed

Failure contract
----------------
- Any exception inside a run ends it as ``Failed`` and is returned as a
  ``ProcessingResult(success=False)``; nothing is raised to the caller.
- ``ProcessingCancelledError`` is the one exception that propagates. The log
  keeps the status it last reached.
- Supersession happens inside the ``Saving`` phase. ``Saving`` is committed
  first; delete-by-month and the insert of the new aggregates then commit in
  one transaction together with the ``Completed`` status.
- A second concurrent run for a period already in flight in this process is
  rejected with a failure result and no log entry.
"""

from __future__ import annotations

import io
import logging
import threading
import time
from datetime import timedelta
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_data_source_settings, get_download_settings
from app.connectors.file_fetcher import CSVFileFetcher
from app.connectors.source_locator import SourceLocator, build_source_locator
from app.domain.cancellation import CancellationToken, ProcessingCancelledError
from app.domain.consumption import AggregatedConsumption, ProcessingResult
from app.domain.period import TargetPeriod
from app.domain.processing_status import ProcessingStatus
from app.parsing.consumption_csv import ConsumptionCSVParser
from app.services.consumption_aggregator import ConsumptionAggregator
from db.models.processing_log import ProcessingLog
from db.repositories.consumption_repository import ConsumptionRepository
from db.repositories.processing_log_repository import ProcessingLogRepository

logger = logging.getLogger(__name__)


class InFlightPeriods:
    """
    Non-blocking per-period guard shared by every caller of one service.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[str] = set()

    def try_acquire(self, label: str) -> bool:
        with self._lock:
            if label in self._active:
                return False
            self._active.add(label)
            return True

    def release(self, label: str) -> None:
        with self._lock:
            self._active.discard(label)


class MonthProcessingService:
    """
    Runs the monthly pipeline for one period at a time per session.
    """

    def __init__(
        self,
        *,
        locator: SourceLocator,
        fetcher: CSVFileFetcher,
        parser: ConsumptionCSVParser | None = None,
        aggregator: ConsumptionAggregator | None = None,
    ) -> None:
        self._locator = locator
        self._fetcher = fetcher
        self._parser = parser or ConsumptionCSVParser()
        self._aggregator = aggregator or ConsumptionAggregator()
        self._in_flight = InFlightPeriods()

    def process_month(
        self,
        *,
        db: Session,
        period: TargetPeriod,
        cancel_token: CancellationToken | None = None,
    ) -> ProcessingResult:
        """
        Process *period* end to end and return its outcome.
        """

        started = time.monotonic()
        label = period.label
        if not self._in_flight.try_acquire(label):
            logger.warning("Processing already in progress month=%s", label)
            return ProcessingResult(
                success=False,
                month=label,
                error_message=f"Processing already in progress for {label}",
                processing_time=_elapsed(started),
            )

        try:
            return self._run(
                db=db,
                period=period,
                token=cancel_token or CancellationToken(),
                started=started,
            )
        finally:
            self._in_flight.release(label)

    def _run(
        self,
        *,
        db: Session,
        period: TargetPeriod,
        token: CancellationToken,
        started: float,
    ) -> ProcessingResult:
        label = period.label
        log_repository = ProcessingLogRepository(db)
        logger.info("Starting processing month=%s", label)

        try:
            log = log_repository.create_log(month=label)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to create processing log month=%s", label)
            return ProcessingResult(
                success=False,
                month=label,
                error_message=_describe("Unexpected error", exc),
                processing_time=_elapsed(started),
            )

        try:
            self._advance(db, log_repository, log, ProcessingStatus.DOWNLOADING)
            try:
                buffer = self._download(period, token)
            except ProcessingCancelledError:
                raise
            except Exception as exc:
                logger.error("Failed to download CSV file=%s error=%s", period.file_name, exc)
                return self._fail(
                    db,
                    log_repository,
                    log,
                    label,
                    _describe("Failed to download CSV", exc),
                    started,
                )

            self._advance(db, log_repository, log, ProcessingStatus.PARSING)
            try:
                logger.info("Parsing CSV file=%s", period.file_name)
                with buffer:
                    raw_records = list(self._parser.parse(buffer, cancel_token=token))
            except ProcessingCancelledError:
                raise
            except Exception as exc:
                logger.error("Failed to parse CSV file=%s error=%s", period.file_name, exc)
                return self._fail(
                    db,
                    log_repository,
                    log,
                    label,
                    _describe("Failed to parse CSV", exc),
                    started,
                )

            self._advance(db, log_repository, log, ProcessingStatus.AGGREGATING)
            apartments = self._aggregator.filter_apartments(raw_records)
            logger.info(
                "Filtered apartment records month=%s apartments=%s total=%s",
                label,
                len(apartments),
                len(raw_records),
            )
            aggregated = self._aggregator.aggregate(apartments, period)
            log_repository.record_counts(
                log,
                records_processed=len(raw_records),
                records_filtered=len(apartments),
            )
            db.commit()

            token.raise_if_cancelled()
            self._advance(db, log_repository, log, ProcessingStatus.SAVING)
            self._replace_month(db, log_repository, log, period, aggregated)
        except ProcessingCancelledError:
            last_status = log.status
            db.rollback()
            logger.warning("Processing cancelled month=%s last_status=%s", label, last_status)
            raise
        except Exception as exc:
            logger.exception("Unexpected error processing month=%s", label)
            return self._fail(
                db,
                log_repository,
                log,
                label,
                _describe("Unexpected error", exc),
                started,
            )

        elapsed = _elapsed(started)
        logger.info(
            "Completed processing month=%s records=%s apartments=%s regions=%s duration_ms=%d",
            label,
            len(raw_records),
            len(apartments),
            len(aggregated),
            elapsed.total_seconds() * 1000,
        )
        return ProcessingResult(
            success=True,
            month=label,
            records_processed=len(raw_records),
            records_filtered=len(apartments),
            regions_aggregated=len(aggregated),
            processing_time=elapsed,
        )

    def _download(self, period: TargetPeriod, token: CancellationToken) -> io.BytesIO:
        logger.info("Downloading CSV file=%s", period.file_name)
        url = self._locator.resolve(period.file_name, cancel_token=token)
        return self._fetcher.download(url, cancel_token=token)

    @staticmethod
    def _advance(
        db: Session,
        repository: ProcessingLogRepository,
        log: ProcessingLog,
        status: ProcessingStatus,
    ) -> None:
        repository.update_status(log, status)
        db.commit()
        logger.info("Processing status month=%s status=%s", log.month, status.value)

    @staticmethod
    def _replace_month(
        db: Session,
        log_repository: ProcessingLogRepository,
        log: ProcessingLog,
        period: TargetPeriod,
        aggregated: list[AggregatedConsumption],
    ) -> None:
        """
        Delete any prior rows for the month, then insert the new set.

        Runs after the ``Saving`` status has been committed on its own. The
        delete, the insert and the ``Completed`` status then share a single
        commit, so a failure here leaves the month's earlier rows in place
        and the log at ``Saving`` until :meth:`_fail` marks it ``Failed``.
        """

        repository = ConsumptionRepository(db)
        month = period.month_start
        try:
            if repository.month_exists(month):
                deleted = repository.delete_by_month(month)
                logger.info("Superseding existing data month=%s deleted_rows=%s", period.label, deleted)
            inserted = repository.add_records(aggregated)
            log_repository.mark_completed(log)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        logger.info("Saved consumption records month=%s rows=%s", period.label, inserted)

    @staticmethod
    def _fail(
        db: Session,
        repository: ProcessingLogRepository,
        log: ProcessingLog,
        label: str,
        message: str,
        started: float,
    ) -> ProcessingResult:
        try:
            db.rollback()
            repository.mark_failed(log, error_message=message)
            db.commit()
        except Exception:  # noqa: BLE001
            db.rollback()
            logger.exception("Failed to record processing failure month=%s", label)
        logger.error("Processing failed month=%s error=%s", label, message)
        return ProcessingResult(
            success=False,
            month=label,
            error_message=message,
            processing_time=_elapsed(started),
        )


def _elapsed(started: float) -> timedelta:
    return timedelta(seconds=time.monotonic() - started)


def _describe(prefix: str, exc: BaseException) -> str:
    detail = str(exc).strip() or type(exc).__name__
    return f"{prefix}: {detail}"


@lru_cache(maxsize=1)
def get_month_processing_service() -> MonthProcessingService:
    """
    Build and cache the processing service so the in-flight guard is shared.
    """

    http_settings = get_download_settings()
    return MonthProcessingService(
        locator=build_source_locator(
            settings=get_data_source_settings(),
            http_settings=http_settings,
        ),
        fetcher=CSVFileFetcher(http_settings=http_settings),
    )
