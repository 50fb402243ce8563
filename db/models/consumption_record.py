"""
db/models/consumption_record.py

Per-region monthly apartment consumption aggregate.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class ConsumptionRecord(Base):
    """
    At most one live row per (region, month). Uniqueness is maintained by
    replacing the whole month on every successful run, not by a constraint.
    """

    __tablename__ = "consumption_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    region: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Network operator grouping (source column Tinklas)",
    )
    building_type: Mapped[str] = mapped_column(String(50), nullable=False)
    month: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="First day of the month, UTC",
    )
    total_consumption: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_file: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        Index("ix_consumption_records_region_month", "region", "month"),
        Index("ix_consumption_records_month", "month"),
    )
