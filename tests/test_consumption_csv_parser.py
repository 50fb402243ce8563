"""
tests/test_consumption_csv_parser.py

Pytest unit tests for ConsumptionCSVParser and parse_decimal.

Coverage
--------
- Canonical scenario rows and hourly indexing
- Comma and period decimal separators
- Rows with empty region or building type skipped
- Blank and non-numeric hourly cells omitted, not zeroed
- Values too large for storage and ``_`` grouped digits omitted
- Header validation before any row is read
- UTF-8 BOM, blank lines, whitespace trimming
- Undecodable lines skipped without aborting
- Cancellation between rows
"""

from __future__ import annotations

import io
from decimal import Decimal

import pytest

from app.domain.cancellation import CancellationToken, ProcessingCancelledError
from app.parsing.consumption_csv import ConsumptionCSVParser, CSVFormatError, parse_decimal
from conftest import SCENARIO_CSV


def _stream(text: str, *, bom: bool = False) -> io.BytesIO:
    payload = text.encode("utf-8")
    if bom:
        payload = b"\xef\xbb\xbf" + payload
    return io.BytesIO(payload)


@pytest.fixture()
def parser() -> ConsumptionCSVParser:
    return ConsumptionCSVParser()


# ---------------------------------------------------------------------------
# parse_decimal
# ---------------------------------------------------------------------------


class TestParseDecimal:
    def test_comma_and_period_separators_are_equal(self) -> None:
        assert parse_decimal("1,5") == parse_decimal("1.5") == Decimal("1.5")

    @pytest.mark.parametrize("raw", ["", "   ", None, "abc", "1,2,3", "NaN", "Infinity"])
    def test_unusable_values_yield_none(self, raw: str | None) -> None:
        assert parse_decimal(raw) is None

    @pytest.mark.parametrize("raw, expected", [("-0,25", Decimal("-0.25")), ("0", Decimal("0")), (" 7 ", Decimal("7"))])
    def test_negative_zero_and_padded_values_are_kept(self, raw: str, expected: Decimal) -> None:
        assert parse_decimal(raw) == expected

    @pytest.mark.parametrize("raw", ["1e999999999", "-1e999999999", "1e16", "10000000000000000", "-12345678901234567,5"])
    def test_values_too_large_to_store_yield_none(self, raw: str) -> None:
        assert parse_decimal(raw) is None

    def test_largest_storable_value_is_kept(self) -> None:
        assert parse_decimal("9999999999999999,99") == Decimal("9999999999999999.99")

    @pytest.mark.parametrize("raw", ["1_5", "1_000,5", "_1"])
    def test_underscore_grouping_yields_none(self, raw: str) -> None:
        assert parse_decimal(raw) is None


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class TestRows:
    def test_scenario_rows_are_parsed_in_order(self, parser: ConsumptionCSVParser) -> None:
        records = list(parser.parse(_stream(SCENARIO_CSV)))

        assert [(r.region, r.building_type) for r in records] == [
            ("ESO", "Butas"),
            ("ESO", "Butas"),
            ("Regionas2", "Butas"),
            ("ESO", "Namas"),
        ]
        assert records[0].hourly_consumption == {0: Decimal("1.5"), 1: Decimal("2.0")}
        assert records[0].total == Decimal("3.5")

    def test_hourly_index_follows_column_position_not_header_text(self, parser: ConsumptionCSVParser) -> None:
        csv_text = "Tinklas;Objekto tipas;x;y;z\nESO;Butas;1;2;3\n"
        (record,) = parser.parse(_stream(csv_text))
        assert list(record.hourly_consumption.items()) == [
            (0, Decimal("1")),
            (1, Decimal("2")),
            (2, Decimal("3")),
        ]

    def test_accepts_any_number_of_hourly_columns(self, parser: ConsumptionCSVParser) -> None:
        hours = ";".join(f"H{i}" for i in range(24))
        values = ";".join("1" for _ in range(24))
        (record,) = parser.parse(_stream(f"Tinklas;Objekto tipas;{hours}\nESO;Butas;{values}\n"))
        assert len(record.hourly_consumption) == 24
        assert record.total == Decimal("24")

    def test_rows_missing_region_or_type_are_skipped(self, parser: ConsumptionCSVParser) -> None:
        csv_text = (
            "Tinklas;Objekto tipas;H1\n"
            "ESO;Butas;1\n"
            ";Butas;2\n"
            "ESO;  ;3\n"
            "Regionas2;Butas;4\n"
        )
        records = list(parser.parse(_stream(csv_text)))
        assert [r.region for r in records] == ["ESO", "Regionas2"]

    def test_non_numeric_cell_is_omitted_without_touching_other_cells(self, parser: ConsumptionCSVParser) -> None:
        csv_text = "Tinklas;Objekto tipas;H1;H2;H3\nESO;Butas;1,0;n/a;2,0\nESO;Butas;1;1;1\n"
        first, second = parser.parse(_stream(csv_text))
        assert first.hourly_consumption == {0: Decimal("1.0"), 2: Decimal("2.0")}
        assert len(second.hourly_consumption) == 3

    def test_oversized_cell_is_omitted_and_row_kept(self, parser: ConsumptionCSVParser) -> None:
        csv_text = "Tinklas;Objekto tipas;H1;H2\nESO;Butas;1e999999999;1,0\n"
        (record,) = parser.parse(_stream(csv_text))
        assert record.hourly_consumption == {1: Decimal("1.0")}
        assert record.total == Decimal("1.0")

    def test_blank_cells_are_omitted_not_zeroed(self, parser: ConsumptionCSVParser) -> None:
        (record,) = parser.parse(_stream("Tinklas;Objekto tipas;H1;H2\nESO;Butas;;  5 \n"))
        assert record.hourly_consumption == {1: Decimal("5")}

    def test_short_row_keeps_available_cells(self, parser: ConsumptionCSVParser) -> None:
        (record,) = parser.parse(_stream("Tinklas;Objekto tipas;H1;H2;H3\nESO;Butas;2\n"))
        assert record.hourly_consumption == {0: Decimal("2")}

    def test_negative_values_are_preserved(self, parser: ConsumptionCSVParser) -> None:
        (record,) = parser.parse(_stream("Tinklas;Objekto tipas;H1;H2\nESO;Butas;-1,5;0\n"))
        assert record.total == Decimal("-1.5")

    def test_fields_are_trimmed(self, parser: ConsumptionCSVParser) -> None:
        (record,) = parser.parse(_stream("Tinklas;Objekto tipas;H1\n  ESO  ; Butas ;1\n"))
        assert (record.region, record.building_type) == ("ESO", "Butas")


# ---------------------------------------------------------------------------
# File-level handling
# ---------------------------------------------------------------------------


class TestFileHandling:
    def test_two_column_header_raises_before_any_row(self, parser: ConsumptionCSVParser) -> None:
        with pytest.raises(CSVFormatError):
            parser.parse(_stream("Tinklas;Objekto tipas\nESO;Butas\n"))

    def test_empty_file_raises_format_error(self, parser: ConsumptionCSVParser) -> None:
        with pytest.raises(CSVFormatError):
            parser.parse(_stream(""))

    def test_byte_order_mark_is_ignored(self, parser: ConsumptionCSVParser) -> None:
        records = list(parser.parse(_stream(SCENARIO_CSV, bom=True)))
        assert records[0].region == "ESO"
        assert len(records) == 4

    def test_blank_lines_are_ignored(self, parser: ConsumptionCSVParser) -> None:
        csv_text = "\nTinklas;Objekto tipas;H1\n\nESO;Butas;1\n   \nRegionas2;Butas;2\n"
        assert len(list(parser.parse(_stream(csv_text)))) == 2

    def test_crlf_line_endings(self, parser: ConsumptionCSVParser) -> None:
        records = list(parser.parse(_stream(SCENARIO_CSV.replace("\n", "\r\n"))))
        assert records[2].hourly_consumption == {0: Decimal("0.5"), 1: Decimal("1.0")}

    def test_undecodable_line_is_skipped(self, parser: ConsumptionCSVParser) -> None:
        payload = b"Tinklas;Objekto tipas;H1\nESO;Butas;1\nESO;\xff\xfe;2\nRegionas2;Butas;3\n"
        records = list(parser.parse(io.BytesIO(payload)))
        assert [r.region for r in records] == ["ESO", "Regionas2"]

    def test_parses_from_start_even_if_stream_was_read(self, parser: ConsumptionCSVParser) -> None:
        stream = _stream(SCENARIO_CSV)
        stream.read()
        assert len(list(parser.parse(stream))) == 4

    def test_cancellation_stops_iteration(self, parser: ConsumptionCSVParser) -> None:
        token = CancellationToken()
        records = parser.parse(_stream(SCENARIO_CSV), cancel_token=token)
        next(records)
        token.cancel()
        with pytest.raises(ProcessingCancelledError):
            next(records)
