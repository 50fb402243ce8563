"""
tests/conftest.py

Shared fixtures: an in-memory SQLite store standing in for PostgreSQL and
small fakes for the HTTP layer. Nothing here touches the network.
"""

from __future__ import annotations

import io
from collections.abc import Iterator

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401
from app.config import DownloadSettings
from db.base import Base
from db.session import build_session_factory

SCENARIO_CSV = (
    "Tinklas;Objekto tipas;00:00-01:00;01:00-02:00\n"
    "ESO;Butas;1,5;2,0\n"
    "ESO;Butas;1,0;1,5\n"
    "Regionas2;Butas;0,5;1,0\n"
    "ESO;Namas;10;10\n"
)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fast_http_settings() -> DownloadSettings:
    """Three attempts with no real sleeping between them."""
    return DownloadSettings(max_retries=3, max_delay_seconds=0.0, timeout_seconds=5.0, chunk_size_bytes=4)


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"") -> None:
        self.status_code = status_code
        self._body = body
        self.closed = False

    @property
    def text(self) -> str:
        return self._body.decode("utf-8")

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        stream = io.BytesIO(self._body)
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Replays a scripted list of outcomes; each item is a FakeResponse or an
    exception instance to raise from ``request``.
    """

    def __init__(self, outcomes: list[FakeResponse | Exception]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, object]] = []

    def request(self, **kwargs: object) -> FakeResponse:
        self.calls.append(kwargs)
        if not self._outcomes:
            raise AssertionError("FakeSession ran out of scripted outcomes")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def transport_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection reset by peer")
