"""
tests/test_consumption_query_service.py

Read-side re-aggregation and processing history over the in-memory store.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.domain.consumption import AggregatedConsumption
from app.services.consumption_query_service import ConsumptionQueryService
from db.models.processing_log import ProcessingLog
from db.repositories.consumption_repository import ConsumptionRepository


def _month(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _aggregate(region: str, month: datetime, total: str, count: int) -> AggregatedConsumption:
    return AggregatedConsumption(
        region=region,
        building_type="Butas",
        month=month,
        total_consumption=Decimal(total),
        record_count=count,
        processed_at=datetime(2024, 11, 5, tzinfo=timezone.utc),
        source_file=f"{month:%Y-%m}.csv",
    )


@pytest.fixture()
def service() -> ConsumptionQueryService:
    return ConsumptionQueryService()


@pytest.fixture()
def seeded(db_session: Session) -> Session:
    ConsumptionRepository(db_session).add_records(
        [
            _aggregate("ESO", _month(2024, 8), "100.00", 10),
            _aggregate("Regionas2", _month(2024, 9), "30.00", 3),
            _aggregate("ESO", _month(2024, 9), "50.00", 5),
            _aggregate("ESO", _month(2024, 10), "60.00", 4),
            _aggregate("ESO", _month(2024, 10), "20.00", 4),
        ]
    )
    db_session.commit()
    return db_session


class TestConsumptionByRegion:
    def test_explicit_range_is_inclusive_and_ordered(self, service: ConsumptionQueryService, seeded: Session) -> None:
        result = service.get_consumption_by_region(db=seeded, from_month=_month(2024, 8), to_month=_month(2024, 9))

        assert [(item.region, item.month) for item in result] == [
            ("ESO", _month(2024, 8)),
            ("ESO", _month(2024, 9)),
            ("Regionas2", _month(2024, 9)),
        ]

    def test_rows_for_same_region_and_month_are_combined(self, service: ConsumptionQueryService, seeded: Session) -> None:
        (item,) = service.get_consumption_by_region(db=seeded, from_month=_month(2024, 10), to_month=_month(2024, 10))

        assert item.total_consumption == Decimal("80")
        assert item.apartment_count == 8
        assert item.average_consumption == Decimal("10")

    def test_bounds_are_normalized_to_month_start(self, service: ConsumptionQueryService, seeded: Session) -> None:
        result = service.get_consumption_by_region(
            db=seeded,
            from_month=datetime(2024, 9, 20, 13, 0, tzinfo=timezone.utc),
            to_month=datetime(2024, 9, 2, tzinfo=timezone.utc),
        )
        assert {item.month for item in result} == {_month(2024, 9)}

    def test_defaults_to_latest_month_and_previous(self, service: ConsumptionQueryService, seeded: Session) -> None:
        result = service.get_consumption_by_region(db=seeded)
        assert sorted({item.month for item in result}) == [_month(2024, 9), _month(2024, 10)]

    def test_missing_lower_bound_is_one_month_before_latest(self, service: ConsumptionQueryService, seeded: Session) -> None:
        resolved = service.resolve_month_range(db=seeded, to_month=_month(2024, 8))
        assert resolved == (_month(2024, 9), _month(2024, 8))

    def test_empty_store_falls_back_to_current_month(self, service: ConsumptionQueryService, db_session: Session) -> None:
        from_month, to_month = service.resolve_month_range(db=db_session)
        now = datetime.now(timezone.utc)

        assert (to_month.year, to_month.month) == (now.year, now.month)
        assert to_month - from_month <= timedelta(days=31)
        assert service.get_consumption_by_region(db=db_session) == []

    def test_zero_count_average_is_zero(self, service: ConsumptionQueryService, db_session: Session) -> None:
        ConsumptionRepository(db_session).add_records([_aggregate("ESO", _month(2024, 10), "0.00", 0)])
        db_session.commit()

        (item,) = service.get_consumption_by_region(db=db_session, from_month=_month(2024, 10), to_month=_month(2024, 10))
        assert item.average_consumption == Decimal("0")

    def test_reading_never_writes(self, service: ConsumptionQueryService, seeded: Session) -> None:
        service.get_consumption_by_region(db=seeded)
        assert not seeded.new and not seeded.dirty and not seeded.deleted


class TestProcessingHistory:
    @pytest.fixture()
    def logs(self, db_session: Session) -> Session:
        start = datetime(2024, 11, 1, tzinfo=timezone.utc)
        for offset in range(5):
            db_session.add(
                ProcessingLog(
                    id=uuid.uuid4(),
                    started_at=start + timedelta(hours=offset),
                    month=f"2024-{offset + 5:02d}",
                    status="Completed",
                    records_processed=offset,
                    records_filtered=offset,
                )
            )
        db_session.commit()
        return db_session

    def test_newest_first(self, service: ConsumptionQueryService, logs: Session) -> None:
        history = service.get_processing_history(db=logs, take=10)
        assert [log.month for log in history] == ["2024-09", "2024-08", "2024-07", "2024-06", "2024-05"]

    def test_take_limits_results(self, service: ConsumptionQueryService, logs: Session) -> None:
        assert len(service.get_processing_history(db=logs, take=2)) == 2
