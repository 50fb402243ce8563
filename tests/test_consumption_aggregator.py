"""
tests/test_consumption_aggregator.py

Apartment filtering and per-region aggregation.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.domain.consumption import RawConsumptionRecord
from app.domain.period import TargetPeriod
from app.parsing.consumption_csv import ConsumptionCSVParser
from app.services.consumption_aggregator import ConsumptionAggregator
from conftest import SCENARIO_CSV

PERIOD = TargetPeriod(year=2024, month=10)


def _record(region: str, building_type: str, *values: str) -> RawConsumptionRecord:
    return RawConsumptionRecord(
        region=region,
        building_type=building_type,
        hourly_consumption={index: Decimal(value) for index, value in enumerate(values)},
    )


@pytest.fixture()
def aggregator() -> ConsumptionAggregator:
    return ConsumptionAggregator()


class TestFilter:
    @pytest.mark.parametrize("label", ["Butas", "butas", "BUTAS"])
    def test_apartment_marker_matches_ignoring_case(self, aggregator: ConsumptionAggregator, label: str) -> None:
        assert len(aggregator.filter_apartments([_record("ESO", label, "1")])) == 1

    @pytest.mark.parametrize("label", ["Namas", "Butas ir namas", "Buta", ""])
    def test_other_categories_are_excluded(self, aggregator: ConsumptionAggregator, label: str) -> None:
        assert aggregator.filter_apartments([_record("ESO", label, "1")]) == []


class TestAggregate:
    def test_scenario_totals_and_counts(self, aggregator: ConsumptionAggregator) -> None:
        raw = list(ConsumptionCSVParser().parse(io.BytesIO(SCENARIO_CSV.encode("utf-8"))))
        stamp = datetime(2024, 11, 2, 8, 0, tzinfo=timezone.utc)

        result = aggregator.aggregate(aggregator.filter_apartments(raw), PERIOD, processed_at=stamp)

        assert [(r.region, r.total_consumption, r.record_count) for r in result] == [
            ("ESO", Decimal("6.0"), 2),
            ("Regionas2", Decimal("1.5"), 1),
        ]
        first = result[0]
        assert first.building_type == "Butas"
        assert first.month == datetime(2024, 10, 1, tzinfo=timezone.utc)
        assert first.source_file == "2024-10.csv"
        assert first.processed_at == stamp

    def test_only_non_apartment_rows_yield_nothing(self, aggregator: ConsumptionAggregator) -> None:
        filtered = aggregator.filter_apartments([_record("ESO", "Namas", "10", "10")])
        assert aggregator.aggregate(filtered, PERIOD) == []

    def test_empty_input_yields_empty_output(self, aggregator: ConsumptionAggregator) -> None:
        assert aggregator.aggregate([], PERIOD) == []

    def test_record_without_values_still_counts(self, aggregator: ConsumptionAggregator) -> None:
        (result,) = aggregator.aggregate([_record("ESO", "Butas"), _record("ESO", "Butas", "2")], PERIOD)
        assert result.total_consumption == Decimal("2")
        assert result.record_count == 2

    def test_aggregation_is_associative_over_batches(self, aggregator: ConsumptionAggregator) -> None:
        batch_a = [_record("ESO", "Butas", "1.5", "2.0"), _record("Regionas2", "Butas", "0.25")]
        batch_b = [_record("ESO", "Butas", "1.0", "-0.5"), _record("ESO", "Butas", "3")]

        combined = {r.region: (r.total_consumption, r.record_count) for r in aggregator.aggregate(batch_a + batch_b, PERIOD)}
        partial: dict[str, tuple[Decimal, int]] = {}
        for batch in (batch_a, batch_b):
            for r in aggregator.aggregate(batch, PERIOD):
                total, count = partial.get(r.region, (Decimal("0"), 0))
                partial[r.region] = (total + r.total_consumption, count + r.record_count)

        assert combined == partial
