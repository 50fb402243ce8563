"""
Repository for processing run audit entries.

The caller controls commit/rollback; this repository only flushes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.processing_status import ProcessingStatus, ensure_transition
from db.models.processing_log import ProcessingLog


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_log(self, *, month: str) -> ProcessingLog:
        log = ProcessingLog(
            id=uuid.uuid4(),
            started_at=_now_utc(),
            month=month,
            status=ProcessingStatus.STARTED.value,
            records_processed=0,
            records_filtered=0,
        )
        self._session.add(log)
        self._session.flush()
        return log

    def get_log(self, log_id: uuid.UUID) -> ProcessingLog | None:
        return self._session.get(ProcessingLog, log_id)

    def get_recent_logs(self, count: int) -> list[ProcessingLog]:
        stmt = (
            select(ProcessingLog)
            .order_by(ProcessingLog.started_at.desc())
            .limit(max(1, count))
        )
        return list(self._session.scalars(stmt).all())

    def update_status(self, log: ProcessingLog, status: ProcessingStatus) -> ProcessingLog:
        """
        Move *log* to *status*, rejecting transitions the state machine forbids.
        """

        ensure_transition(log.processing_status, status)
        log.status = status.value
        self._session.flush()
        return log

    def record_counts(
        self,
        log: ProcessingLog,
        *,
        records_processed: int,
        records_filtered: int,
    ) -> ProcessingLog:
        log.records_processed = records_processed
        log.records_filtered = records_filtered
        self._session.flush()
        return log

    def mark_completed(self, log: ProcessingLog) -> ProcessingLog:
        self.update_status(log, ProcessingStatus.COMPLETED)
        log.completed_at = _now_utc()
        log.error_message = None
        self._session.flush()
        return log

    def mark_failed(self, log: ProcessingLog, *, error_message: str) -> ProcessingLog:
        self.update_status(log, ProcessingStatus.FAILED)
        log.completed_at = _now_utc()
        log.error_message = error_message
        self._session.flush()
        return log
