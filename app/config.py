"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_int_env(name: str) -> int | None:
    """
    Read an optional integer; unset or malformed values yield None.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError:
        return None


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class DownloadSettings:
    """
    Shared HTTP behavior for the dataset page fetch and the file download.

    ``max_retries`` is the total number of attempts each retry loop makes.
    """

    max_retries: int = 3
    max_delay_seconds: float = 30.0
    timeout_seconds: float = 300.0
    chunk_size_bytes: int = 64 * 1024


@dataclass(frozen=True)
class DataSourceSettings:
    """
    Location of the open-data portal publishing the monthly extracts.
    """

    dataset_page_url: str = "https://data.gov.lt/datasets/1975/"
    base_url: str = "https://data.gov.lt"
    link_prefix: str = "/media/filer_public/"
    url_template: str | None = None


@dataclass(frozen=True)
class PeriodSettings:
    """
    Supported processing window. ``max_year=None`` means the current UTC year.
    """

    min_year: int = 2020
    max_year: int | None = None

    def resolved_max_year(self) -> int:
        if self.max_year is not None:
            return self.max_year
        return datetime.now(timezone.utc).year


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Periodic processing settings.

    The portal publishes with a lag, so the latest processable month is
    configured explicitly rather than derived from the clock.
    """

    enabled: bool = True
    interval_minutes: int = 60
    process_on_startup: bool = True
    latest_year: int = 2024
    latest_month: int = 10


@lru_cache(maxsize=1)
def get_download_settings() -> DownloadSettings:
    """
    Return cached download settings from environment variables.
    """

    return DownloadSettings(
        max_retries=max(1, _get_int_env("DOWNLOAD_MAX_RETRIES", 3)),
        max_delay_seconds=max(0.0, _get_float_env("DOWNLOAD_MAX_DELAY_SECONDS", 30.0)),
        timeout_seconds=max(1.0, _get_float_env("DOWNLOAD_TIMEOUT_SECONDS", 300.0)),
        chunk_size_bytes=max(1024, _get_int_env("DOWNLOAD_CHUNK_SIZE_BYTES", 64 * 1024)),
    )


@lru_cache(maxsize=1)
def get_data_source_settings() -> DataSourceSettings:
    """
    Return cached data source settings from environment variables.
    """

    return DataSourceSettings(
        dataset_page_url=_get_str_env(
            "DATA_SOURCE_DATASET_PAGE_URL", "https://data.gov.lt/datasets/1975/"
        ),
        base_url=_get_str_env("DATA_SOURCE_BASE_URL", "https://data.gov.lt"),
        link_prefix=_get_str_env("DATA_SOURCE_LINK_PREFIX", "/media/filer_public/"),
        url_template=_get_optional_str_env("DATA_SOURCE_URL_TEMPLATE"),
    )


@lru_cache(maxsize=1)
def get_period_settings() -> PeriodSettings:
    """
    Return cached supported-period bounds.
    """

    return PeriodSettings(
        min_year=_get_int_env("PERIOD_MIN_YEAR", 2020),
        max_year=_get_optional_int_env("PERIOD_MAX_YEAR"),
    )


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """
    Return cached scheduler settings from environment variables.
    """

    return SchedulerSettings(
        enabled=_get_bool_env("SCHEDULER_ENABLED", True),
        interval_minutes=max(1, _get_int_env("SCHEDULER_INTERVAL_MINUTES", 60)),
        process_on_startup=_get_bool_env("SCHEDULER_PROCESS_ON_STARTUP", True),
        latest_year=_get_int_env("SCHEDULER_LATEST_YEAR", 2024),
        latest_month=min(12, max(1, _get_int_env("SCHEDULER_LATEST_MONTH", 10))),
    )
