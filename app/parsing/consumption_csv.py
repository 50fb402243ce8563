"""
app/parsing/consumption_csv.py

Permissive parser for the portal's semicolon-delimited consumption extracts.

Layout: column 0 is the network region ("Tinklas"), column 1 the building
category ("Objekto tipas"), every further column one hourly value. Hourly
header labels are informational; values are indexed by column position.
"""

from __future__ import annotations

import codecs
import csv
import logging
from collections.abc import Iterator
from decimal import Decimal, InvalidOperation
from typing import BinaryIO

from app.domain.cancellation import CancellationToken
from app.domain.consumption import RawConsumptionRecord

logger = logging.getLogger(__name__)

DELIMITER = ";"
MIN_HEADER_COLUMNS = 3
FIRST_HOURLY_COLUMN = 2
# Integer digits that fit the Numeric(18, 2) consumption columns.
MAX_INTEGER_DIGITS = 16


class CSVFormatError(ValueError):
    """
    Raised when the file cannot be parsed at all (header missing or too short).
    """


def parse_decimal(raw_value: str | None) -> Decimal | None:
    """
    Parse a locale-tolerant decimal, accepting ``,`` as the separator.

    Blank, unparseable, non-finite and out-of-range values yield None, as do
    values using ``_`` digit grouping.
    """

    if raw_value is None:
        return None
    value = raw_value.strip()
    if not value or "_" in value:
        return None
    try:
        parsed = Decimal(value.replace(",", "."))
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    if parsed and parsed.adjusted() >= MAX_INTEGER_DIGITS:
        return None
    return parsed


class _Utf8Lines:
    """
    Decode a byte stream line by line so one bad line does not sink the file.

    Lines that fail to decode after the header are skipped and counted;
    ``line_number`` tracks the source line last read.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.line_number = 0
        self.undecodable_lines = 0
        self._header_pending = True

    def __iter__(self) -> Iterator[str]:
        for raw_line in self._stream:
            self.line_number += 1
            if self.line_number == 1 and raw_line.startswith(codecs.BOM_UTF8):
                raw_line = raw_line[len(codecs.BOM_UTF8) :]
            try:
                text = raw_line.decode("utf-8")
            except UnicodeDecodeError as exc:
                if self._header_pending:
                    raise CSVFormatError("CSV header must be UTF-8 encoded.") from exc
                self.undecodable_lines += 1
                logger.warning(
                    "Skipping undecodable CSV line=%s error=%s",
                    self.line_number,
                    exc,
                )
                continue
            if self._header_pending and text.strip():
                self._header_pending = False
            yield text


class ConsumptionCSVParser:
    """
    Converts a downloaded extract into :class:`RawConsumptionRecord` items.
    """

    def parse(
        self,
        stream: BinaryIO,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[RawConsumptionRecord]:
        """
        Validate the header eagerly, then return a single-pass record iterator.

        Header problems raise :class:`CSVFormatError` from this call, before
        any data row is read. Row problems are logged and skipped.
        """

        token = cancel_token or CancellationToken()
        stream.seek(0)
        lines = _Utf8Lines(stream)
        reader = csv.reader(lines, delimiter=DELIMITER)

        header = self._read_header(reader)
        logger.info("CSV header columns: %s", ", ".join(header))
        hourly_columns = range(FIRST_HOURLY_COLUMN, len(header))

        return self._iter_records(reader, lines, hourly_columns, token)

    @staticmethod
    def _read_header(reader: Iterator[list[str]]) -> list[str]:
        try:
            for row in reader:
                header = [cell.strip() for cell in row]
                if any(header):
                    break
            else:
                raise CSVFormatError("CSV file has invalid or missing header.")
        except csv.Error as exc:
            raise CSVFormatError(f"Invalid CSV header: {exc}") from exc

        if len(header) < MIN_HEADER_COLUMNS:
            raise CSVFormatError(
                f"CSV file has invalid or missing header: expected at least "
                f"{MIN_HEADER_COLUMNS} columns, found {len(header)}."
            )
        return header

    def _iter_records(
        self,
        reader: Iterator[list[str]],
        lines: _Utf8Lines,
        hourly_columns: range,
        token: CancellationToken,
    ) -> Iterator[RawConsumptionRecord]:
        parsed = 0
        skipped = 0
        while True:
            token.raise_if_cancelled()
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                skipped += 1
                logger.warning("Error parsing CSV line=%s, skipping error=%s", lines.line_number, exc)
                continue

            fields = [cell.strip() for cell in row]
            if not any(fields):
                continue

            try:
                record = self._parse_row(fields, hourly_columns)
            except Exception as exc:
                skipped += 1
                logger.warning("Error parsing CSV line=%s, skipping error=%s", lines.line_number, exc)
                continue

            if record is None:
                skipped += 1
                logger.warning(
                    "Skipping CSV line=%s due to missing region or building type",
                    lines.line_number,
                )
                continue

            parsed += 1
            yield record

        logger.info(
            "Parsed consumption CSV records=%s skipped_rows=%s undecodable_lines=%s",
            parsed,
            skipped,
            lines.undecodable_lines,
        )

    @staticmethod
    def _parse_row(fields: list[str], hourly_columns: range) -> RawConsumptionRecord | None:
        region = fields[0] if len(fields) > 0 else ""
        building_type = fields[1] if len(fields) > 1 else ""
        if not region or not building_type:
            return None

        hourly: dict[int, Decimal] = {}
        for hour_index, column in enumerate(hourly_columns):
            if column >= len(fields):
                break
            value = parse_decimal(fields[column])
            if value is not None:
                hourly[hour_index] = value

        return RawConsumptionRecord(
            region=region,
            building_type=building_type,
            hourly_consumption=hourly,
        )
