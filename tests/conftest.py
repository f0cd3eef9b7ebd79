from __future__ import annotations

import os
from pathlib import Path
import sys
from typing import Any, Iterator, Mapping

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from docstore.client import DataStoreClient  # noqa: E402
from docstore.identity import StaticIdentityProvider  # noqa: E402
from docstore.local_transport import LocalTransport  # noqa: E402
from docstore.transport import Method, TransportResponse  # noqa: E402


class RecordingTransport:
    """Wraps another transport and remembers every request it forwards."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: list[tuple[Method, str, str | None]] = []

    async def send(
        self,
        method: Method,
        partition: str,
        document_id: str | None = None,
        *,
        body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self.calls.append((method, partition, document_id))
        return await self.inner.send(method, partition, document_id, body=body, headers=headers)


@pytest.fixture
def identity() -> StaticIdentityProvider:
    return StaticIdentityProvider("42")


@pytest.fixture
def local_transport() -> LocalTransport:
    return LocalTransport()


@pytest.fixture
def recorder(local_transport: LocalTransport) -> RecordingTransport:
    return RecordingTransport(local_transport)


@pytest.fixture
def client(identity: StaticIdentityProvider, recorder: RecordingTransport) -> DataStoreClient:
    return DataStoreClient(identity, recorder, page_size=2)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """
    Drop DOCSTORE_* variables so settings tests never see the developer's environment.

    Also removes anything a test loaded from an env file (python-dotenv writes
    straight to os.environ, behind monkeypatch's back).
    """
    for name in list(os.environ):
        if name.startswith("DOCSTORE_"):
            monkeypatch.delenv(name, raising=False)
    yield
    for name in list(os.environ):
        if name.startswith("DOCSTORE_"):
            os.environ.pop(name, None)
