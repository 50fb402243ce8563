"""
db/models/processing_log.py

Audit entry for one monthly processing run.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.processing_status import ProcessingStatus
from db.base import Base


class ProcessingLog(Base):
    __tablename__ = "processing_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    month: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Period label, YYYY-MM",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ProcessingStatus.STARTED.value,
        comment="Started, Downloading, Parsing, Aggregating, Saving, Completed, Failed",
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_filtered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (Index("ix_processing_logs_started_at", "started_at"),)

    @property
    def processing_status(self) -> ProcessingStatus:
        return ProcessingStatus(self.status)
