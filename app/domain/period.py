"""
app/domain/period.py

Target period value object: one (year, month) processing unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

MIN_SUPPORTED_YEAR = 2020
MAX_SUPPORTED_YEAR = 2100


class InvalidPeriodError(ValueError):
    """
    Raised when a (year, month) pair is outside the supported range.
    """


@dataclass(frozen=True, order=True)
class TargetPeriod:
    """
    Immutable (year, month) pair.

    Construction enforces the hard bounds only; deployment-specific bounds
    (configured lower year, current-year ceiling) are checked with
    :func:`ensure_supported`.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not MIN_SUPPORTED_YEAR <= self.year <= MAX_SUPPORTED_YEAR:
            raise InvalidPeriodError(
                f"year must be between {MIN_SUPPORTED_YEAR} and {MAX_SUPPORTED_YEAR}, got {self.year}."
            )
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"month must be between 1 and 12, got {self.month}.")

    @classmethod
    def from_datetime(cls, value: datetime) -> TargetPeriod:
        return cls(year=value.year, month=value.month)

    @property
    def label(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def file_name(self) -> str:
        return f"{self.label}.csv"

    @property
    def month_start(self) -> datetime:
        """First day of the month at midnight UTC."""
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    def previous(self) -> TargetPeriod:
        if self.month == 1:
            return TargetPeriod(year=self.year - 1, month=12)
        return TargetPeriod(year=self.year, month=self.month - 1)

    def __str__(self) -> str:
        return self.label


def ensure_supported(period: TargetPeriod, *, min_year: int, max_year: int) -> TargetPeriod:
    """
    Validate *period* against configured bounds and return it unchanged.
    """

    if period.year < min_year or period.year > max_year:
        raise InvalidPeriodError(
            f"year {period.year} is outside the supported range {min_year}-{max_year}."
        )
    return period


def month_start(value: datetime) -> datetime:
    """
    Normalize any datetime to the first day of its month at midnight UTC.

    Naive values are treated as UTC.
    """

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return datetime(value.year, value.month, 1, tzinfo=timezone.utc)


def shift_months(value: datetime, months: int) -> datetime:
    """
    Return the month start *months* away from the month containing *value*.
    """

    start = month_start(value)
    index = start.year * 12 + (start.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)
