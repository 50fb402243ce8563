"""
app/connectors package marker.
"""

from app.connectors.base import (
    BaseConnector,
    ConnectorRequestError,
    DownloadURLNotFoundError,
    NonRetryableStatusError,
    RetryableRequestsExhaustedError,
)
from app.connectors.file_fetcher import CSVFileFetcher
from app.connectors.source_locator import (
    DatasetPageLocator,
    SourceLocator,
    TemplatedURLLocator,
    build_source_locator,
)

__all__ = [
    "BaseConnector",
    "ConnectorRequestError",
    "CSVFileFetcher",
    "DatasetPageLocator",
    "DownloadURLNotFoundError",
    "NonRetryableStatusError",
    "RetryableRequestsExhaustedError",
    "SourceLocator",
    "TemplatedURLLocator",
    "build_source_locator",
]
