"""
Network collaborator interface and the httpx-backed implementation.

REST layout used by `HttpTransport`:

    GET    {base}/partitions/{partition}/documents/{id}   read
    GET    {base}/partitions/{partition}/documents        list (x-ms-max-item-count / x-ms-continuation)
    POST   {base}/partitions/{partition}/documents        create
    PUT    {base}/partitions/{partition}/documents/{id}   replace (If-Match)
    DELETE {base}/partitions/{partition}/documents/{id}   delete
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol
from urllib.parse import quote

import httpx

from .errors import TransportError
from .identity import TokenProvider

logger = logging.getLogger(__name__)

# Wire header names
PAGE_SIZE_HEADER = "x-ms-max-item-count"
CONTINUATION_HEADER = "x-ms-continuation"
IF_MATCH_HEADER = "If-Match"
ETAG_HEADER = "ETag"
APP_SECRET_HEADER = "App-Secret"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        return find_header(self.headers, name)


def find_header(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Case-insensitive header lookup."""
    if not headers:
        return None
    lowered = name.lower()
    for k, v in headers.items():
        if k.lower() == lowered:
            return v
    return None


class Transport(Protocol):
    async def send(
        self,
        method: Method,
        partition: str,
        document_id: str | None = None,
        *,
        body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """
        Perform one request against the store.

        Non-2xx statuses are returned, not raised. Raises TransportError when no
        response could be obtained.
        """
        ...


def document_path(partition: str, document_id: str | None = None) -> str:
    path = f"/partitions/{quote(partition, safe='')}/documents"
    if document_id is not None:
        path += f"/{quote(document_id, safe='')}"
    return path


class HttpTransport(Transport):
    """
    Talks to the remote store over HTTP with httpx.

    Pass `client` to share a connection pool (or to test with httpx.MockTransport);
    otherwise an AsyncClient is created and owned by this transport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider | None = None,
        app_secret: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        debug_log_requests: bool = False,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._app_secret = app_secret
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._debug_log_requests = debug_log_requests

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._app_secret:
            headers[APP_SECRET_HEADER] = self._app_secret
        if self._token_provider is not None:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    async def send(
        self,
        method: Method,
        partition: str,
        document_id: str | None = None,
        *,
        body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        url = self._base_url + document_path(partition, document_id)
        if self._debug_log_requests:
            logger.info("HTTP REQUEST: %s %s", method.value, url)

        try:
            response = await self._client.request(
                method.value,
                url,
                json=body,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as e:
            logger.warning("HTTP REQUEST: %s %s failed: %r", method.value, url, e)
            raise TransportError(f"{method.value} {url} failed: {e}", cause=e) from e

        if self._debug_log_requests:
            logger.info("HTTP RESPONSE: %s %s -> %s", method.value, url, response.status_code)

        return TransportResponse(
            status_code=response.status_code,
            body=_response_body(response),
            headers=dict(response.headers),
        )


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        # Leave the raw text for the decoder to report.
        return response.text
