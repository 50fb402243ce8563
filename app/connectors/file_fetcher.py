"""
app/connectors/file_fetcher.py

Resilient download of a resolved file URL into memory.
"""

from __future__ import annotations

import io
import logging

import requests

from app.config import DownloadSettings
from app.connectors.base import BaseConnector
from app.domain.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class CSVFileFetcher(BaseConnector):
    """
    Downloads the full file body and returns it as a rewound buffer.

    The parser seeks while inspecting the header, so the body is buffered
    rather than streamed through.
    """

    def __init__(
        self,
        *,
        http_settings: DownloadSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="file_download", http_settings=http_settings, session=session)

    def download(self, url: str, *, cancel_token: CancellationToken) -> io.BytesIO:
        def _read_body(response: requests.Response) -> io.BytesIO:
            buffer = io.BytesIO()
            for chunk in response.iter_content(chunk_size=self._chunk_size_bytes):
                cancel_token.raise_if_cancelled()
                if chunk:
                    buffer.write(chunk)
            buffer.seek(0)
            return buffer

        buffer = self._get_with_retry(
            url=url,
            cancel_token=cancel_token,
            handle=_read_body,
            stream=True,
        )
        logger.info(
            "Downloaded file url=%s size_bytes=%s",
            url,
            buffer.getbuffer().nbytes,
        )
        return buffer
