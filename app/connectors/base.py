"""
app/connectors/base.py

Shared HTTP mechanics for the open-data portal connectors.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import TypeVar

import requests

from app.config import DownloadSettings
from app.domain.cancellation import CancellationToken

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
MAX_JITTER_FRACTION = 0.5

T = TypeVar("T")


class ConnectorRequestError(RuntimeError):
    """
    Base class for failures talking to the open-data portal.
    """


class NonRetryableStatusError(ConnectorRequestError):
    """
    Raised on the first non-success status that is not worth retrying.
    """

    def __init__(self, message: str, *, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RetryableRequestsExhaustedError(ConnectorRequestError):
    """
    Raised when every attempt failed with a retryable status or transport error.
    """

    def __init__(self, message: str, *, attempts: int, last_error: Exception | None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class DownloadURLNotFoundError(ConnectorRequestError):
    """
    Raised when the dataset page loads but holds no link for the requested file.
    """


def compute_backoff_seconds(
    attempt: int,
    *,
    max_delay_seconds: float,
    rng: Callable[[], float] = random.random,
) -> float:
    """
    Exponential backoff with up to 50% jitter, capped at *max_delay_seconds*.

    ``attempt`` is the 1-based number of the attempt that just failed.
    """

    jitter = rng() * MAX_JITTER_FRACTION
    return min(max_delay_seconds, (2.0**attempt) * (1.0 + jitter))


class BaseConnector:
    """
    Connector base providing a bounded GET retry loop.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: DownloadSettings,
        session: requests.Session | None = None,
        rng: Callable[[], float] | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = max(1, http_settings.max_retries)
        self._max_delay_seconds = http_settings.max_delay_seconds
        self._chunk_size_bytes = http_settings.chunk_size_bytes
        self._rng = rng or random.random

    def _get_with_retry(
        self,
        *,
        url: str,
        cancel_token: CancellationToken,
        handle: Callable[[requests.Response], T],
        stream: bool = False,
    ) -> T:
        """
        GET *url* until a 2xx response is handed to *handle*.

        Retryable statuses and ``requests`` transport errors back off and try
        again; any other non-success status raises immediately.
        """

        last_error: Exception | None = None
        for attempt in range(1, self._max_retries + 1):
            cancel_token.raise_if_cancelled()
            logger.info(
                "Connector request source=%s attempt=%s/%s url=%s",
                self.source,
                attempt,
                self._max_retries,
                url,
            )
            try:
                response = self._session.request(
                    method="GET",
                    url=url,
                    timeout=self._timeout_seconds,
                    stream=stream,
                )
                try:
                    status_code = response.status_code
                    if 200 <= status_code < 300:
                        return handle(response)
                    if status_code not in RETRYABLE_STATUS_CODES:
                        logger.error(
                            "Connector request failed source=%s status=%s url=%s",
                            self.source,
                            status_code,
                            url,
                        )
                        raise NonRetryableStatusError(
                            f"{self.source}: request failed with non-retryable status {status_code}.",
                            status_code=status_code,
                            url=url,
                        )
                    last_error = requests.HTTPError(
                        f"Retryable HTTP status code: {status_code}",
                        response=response,
                    )
                    logger.warning(
                        "Connector request got retryable status source=%s status=%s url=%s",
                        self.source,
                        status_code,
                        url,
                    )
                finally:
                    response.close()
            except requests.RequestException as exc:
                last_error = exc
                logger.warning(
                    "Connector request transport error source=%s attempt=%s/%s error=%s",
                    self.source,
                    attempt,
                    self._max_retries,
                    exc,
                )

            if attempt >= self._max_retries:
                break

            backoff_seconds = compute_backoff_seconds(
                attempt,
                max_delay_seconds=self._max_delay_seconds,
                rng=self._rng,
            )
            logger.info(
                "Connector request retry source=%s wait_seconds=%.2f url=%s",
                self.source,
                backoff_seconds,
                url,
            )
            cancel_token.wait(backoff_seconds)

        logger.error(
            "Connector request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        raise RetryableRequestsExhaustedError(
            f"{self.source}: request failed after {self._max_retries} attempts: {last_error}",
            attempts=self._max_retries,
            last_error=last_error,
        ) from last_error
