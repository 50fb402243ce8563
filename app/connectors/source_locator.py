"""
app/connectors/source_locator.py

Resolution of a monthly file name to its download URL.

The portal serves files under hashed subpaths that cannot be predicted, so
the default locator scrapes the dataset landing page for a matching link.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from app.config import DataSourceSettings, DownloadSettings
from app.connectors.base import BaseConnector, DownloadURLNotFoundError
from app.domain.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class SourceLocator(Protocol):
    def resolve(self, file_name: str, *, cancel_token: CancellationToken) -> str:
        ...


def build_link_pattern(link_prefix: str, file_name: str) -> re.Pattern[str]:
    """
    Match ``<prefix><hex-hash path>/<file_name>``, e.g.
    ``/media/filer_public/b2/3d/b23d5d9d-7f07-49a5-9ad8-8ec8917cdf82/2024-10.csv``.
    """

    return re.compile(
        rf"{re.escape(link_prefix.rstrip('/'))}/[a-f0-9/\-]+/{re.escape(file_name)}",
        flags=re.IGNORECASE,
    )


def extract_download_path(html: str, *, link_prefix: str, file_name: str) -> str | None:
    """
    Return the first link path in *html* that embeds *file_name*.

    Anchor ``href`` values are checked first; the raw markup is searched as a
    fallback for links rendered outside anchors.
    """

    pattern = build_link_pattern(link_prefix, file_name)
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=True):
        match = pattern.search(str(anchor["href"]))
        if match:
            return match.group(0)

    match = pattern.search(html)
    return match.group(0) if match else None


class DatasetPageLocator(BaseConnector):
    """
    Finds the download URL by scanning the dataset landing page.
    """

    def __init__(
        self,
        *,
        settings: DataSourceSettings,
        http_settings: DownloadSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="dataset_page", http_settings=http_settings, session=session)
        self._settings = settings

    def resolve(self, file_name: str, *, cancel_token: CancellationToken) -> str:
        logger.info(
            "Fetching dataset page to find download URL file=%s page=%s",
            file_name,
            self._settings.dataset_page_url,
        )
        html = self._get_with_retry(
            url=self._settings.dataset_page_url,
            cancel_token=cancel_token,
            handle=lambda response: response.text,
        )

        path = extract_download_path(
            html,
            link_prefix=self._settings.link_prefix,
            file_name=file_name,
        )
        if path is None:
            logger.warning("Download URL not found in dataset page file=%s", file_name)
            raise DownloadURLNotFoundError(f"Download URL not found in dataset page for {file_name}")

        url = urljoin(self._settings.base_url.rstrip("/") + "/", path)
        logger.info("Found download URL file=%s url=%s", file_name, url)
        return url


class TemplatedURLLocator:
    """
    Builds the download URL directly from a ``{file_name}`` template.
    """

    def __init__(self, template: str) -> None:
        if "{file_name}" not in template:
            raise ValueError("URL template must contain a '{file_name}' placeholder.")
        self._template = template

    def resolve(self, file_name: str, *, cancel_token: CancellationToken) -> str:
        cancel_token.raise_if_cancelled()
        return self._template.format(file_name=file_name)


def build_source_locator(
    *,
    settings: DataSourceSettings,
    http_settings: DownloadSettings,
    session: requests.Session | None = None,
) -> SourceLocator:
    if settings.url_template:
        return TemplatedURLLocator(settings.url_template)
    return DatasetPageLocator(settings=settings, http_settings=http_settings, session=session)
