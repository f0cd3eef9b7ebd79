"""
CRUD access to a partitioned document store.

Every operation resolves the partition, (de)serializes through the codec,
awaits the transport once and hands back a result envelope. Failures of any
kind come back inside the envelope, never as exceptions. If a `completion`
callable is given it is called exactly once with the same result the
coroutine returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator, Callable, Optional, TypeVar

from . import codec
from .envelope import Document, Documents
from .errors import (
    DataStoreError,
    DeserializationError,
    InvalidArgumentError,
    TransportError,
    WriteNotAllowedError,
    error_for_status,
)
from .identity import IdentityProvider
from .partitions import ResolvedPartition, resolve_partition
from .transport import (
    CONTINUATION_HEADER,
    ETAG_HEADER,
    IF_MATCH_HEADER,
    PAGE_SIZE_HEADER,
    Method,
    Transport,
    TransportResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DocumentCompletion = Callable[[Document[Any]], None]
DocumentsCompletion = Callable[[Documents[Any]], None]
DeleteCompletion = Callable[[Optional[DataStoreError]], None]

DEFAULT_PAGE_SIZE = 50


class OperationState(str, Enum):
    CREATED = "created"
    PARTITION_RESOLVED = "partition_resolved"
    ENCODED = "encoded"
    SKIPPED = "skipped"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"


@dataclass
class _Operation:
    name: str
    partition: str
    document_id: str | None = None
    state: OperationState = OperationState.CREATED

    def advance(self, state: OperationState) -> None:
        self.state = state
        logger.debug("DOCSTORE %s: %s/%s -> %s", self.name, self.partition, self.document_id or "*", state.value)

    def finish(self, error: DataStoreError | None) -> None:
        self.advance(OperationState.COMPLETED)
        if error is not None:
            logger.info(
                "DOCSTORE %s: %s/%s failed: %s (%s)",
                self.name,
                self.partition,
                self.document_id or "*",
                error.kind.value,
                error.message,
            )


def _require_document_id(document_id: Any) -> str:
    if not isinstance(document_id, str) or not document_id:
        raise InvalidArgumentError("document id must be a non-empty string")
    return document_id


def _status_message(response: TransportResponse) -> str:
    body = response.body
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return f"store answered HTTP {response.status_code}"


def _timestamp(raw: Any) -> datetime | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return datetime.fromtimestamp(raw, tz=timezone.utc)


def _document_from_record(
    partition: str,
    document_id: str,
    record: Any,
    document_type: type[T],
    *,
    etag: str | None = None,
) -> Document[T]:
    """
    Build a success envelope from a stored record:
      { "id": ..., "PartitionKey": ..., "document": {...}, "_etag": ..., "_ts": ... }
    Raises DeserializationError.
    """
    if not isinstance(record, dict) or "document" not in record:
        raise DeserializationError("response is not a stored document record", payload=record)

    value = codec.decode(record["document"], document_type)
    record_etag = record.get("_etag")
    record_partition = record.get("PartitionKey")
    record_id = record.get("id")
    return Document.success(
        record_partition if isinstance(record_partition, str) and record_partition else partition,
        record_id if isinstance(record_id, str) and record_id else document_id,
        value,
        etag=record_etag if isinstance(record_etag, str) else etag,
        last_updated=_timestamp(record.get("_ts")),
    )


class DataStoreClient:
    """
    Typed CRUD client for a partitioned document store.

    Holds no mutable state of its own: the identity provider is read once per
    call and the transport does the I/O, so one client can be shared freely
    across tasks.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        transport: Transport,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        owns_transport: bool = False,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._identity = identity
        self._transport = transport
        self._page_size = page_size
        self._owns_transport = owns_transport

    async def __aenter__(self) -> "DataStoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if self._owns_transport and aclose is not None:
            await aclose()

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _resolve(self, op: _Operation, partition: str, *, write: bool) -> ResolvedPartition:
        resolved = resolve_partition(partition, self._identity)
        op.partition = resolved.name
        op.advance(OperationState.PARTITION_RESOLVED)
        if write and not resolved.writable:
            raise WriteNotAllowedError(f"partition {resolved.name!r} is read-only")
        return resolved

    async def _send(
        self,
        op: _Operation,
        method: Method,
        document_id: str | None = None,
        *,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> TransportResponse:
        op.advance(OperationState.DISPATCHED)
        try:
            response = await self._transport.send(method, op.partition, document_id, body=body, headers=headers)
        except DataStoreError:
            raise
        except Exception as e:
            raise TransportError(f"{method.value} {op.partition}/{document_id or ''} failed: {e!r}", cause=e) from e

        if not response.is_success:
            raise error_for_status(response.status_code, _status_message(response), payload=response.body)
        return response

    def _write_body(self, op: _Operation, document_id: str, document: Any) -> dict[str, Any]:
        payload = codec.encode(document)
        op.advance(OperationState.ENCODED)
        return {"id": document_id, "PartitionKey": op.partition, "document": payload}

    @staticmethod
    def _deliver(result: Any, completion: Callable[[Any], None] | None) -> Any:
        if completion is not None:
            completion(result)
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def read(
        self,
        partition: str,
        document_id: str,
        document_type: type[T],
        *,
        completion: DocumentCompletion | None = None,
    ) -> Document[T]:
        """Read one document. Fails NotFound if absent."""
        op = _Operation("READ", partition, document_id)
        try:
            _require_document_id(document_id)
            self._resolve(op, partition, write=False)
            op.advance(OperationState.SKIPPED)
            response = await self._send(op, Method.GET, document_id)
            result: Document[T] = _document_from_record(
                op.partition, document_id, response.body, document_type, etag=response.header(ETAG_HEADER)
            )
        except DataStoreError as e:
            result = Document.failure(op.partition, document_id, e)
        op.finish(result.error)
        return self._deliver(result, completion)

    async def create(
        self,
        partition: str,
        document_id: str,
        document: T,
        *,
        completion: DocumentCompletion | None = None,
    ) -> Document[T]:
        """Create a document. Fails Conflict if the id is already taken in the partition."""
        op = _Operation("CREATE", partition, document_id)
        try:
            _require_document_id(document_id)
            self._resolve(op, partition, write=True)
            body = self._write_body(op, document_id, document)
            response = await self._send(op, Method.POST, body=body)
            result: Document[T] = _document_from_record(
                op.partition, document_id, response.body, type(document), etag=response.header(ETAG_HEADER)
            )
        except DataStoreError as e:
            result = Document.failure(op.partition, document_id, e)
        op.finish(result.error)
        return self._deliver(result, completion)

    async def replace(
        self,
        partition: str,
        document_id: str,
        document: T,
        *,
        expected_version: str | None = None,
        completion: DocumentCompletion | None = None,
    ) -> Document[T]:
        """
        Replace an existing document. Fails NotFound if absent.

        With `expected_version` (an etag from an earlier result) the write only
        applies if the stored document is still at that version; otherwise it
        fails VersionConflict.
        """
        op = _Operation("REPLACE", partition, document_id)
        try:
            _require_document_id(document_id)
            self._resolve(op, partition, write=True)
            body = self._write_body(op, document_id, document)
            headers = {IF_MATCH_HEADER: expected_version} if expected_version else None
            response = await self._send(op, Method.PUT, document_id, body=body, headers=headers)
            result: Document[T] = _document_from_record(
                op.partition, document_id, response.body, type(document), etag=response.header(ETAG_HEADER)
            )
        except DataStoreError as e:
            result = Document.failure(op.partition, document_id, e)
        op.finish(result.error)
        return self._deliver(result, completion)

    async def delete(
        self,
        partition: str,
        document_id: str,
        *,
        completion: DeleteCompletion | None = None,
    ) -> DataStoreError | None:
        """
        Delete a document. Returns None on success, otherwise the error.

        Not idempotent: deleting an already-deleted document yields NotFound.
        """
        op = _Operation("DELETE", partition, document_id)
        error: DataStoreError | None = None
        try:
            _require_document_id(document_id)
            self._resolve(op, partition, write=True)
            op.advance(OperationState.SKIPPED)
            await self._send(op, Method.DELETE, document_id)
        except DataStoreError as e:
            error = e
        op.finish(error)
        return self._deliver(error, completion)

    async def list(
        self,
        partition: str,
        document_type: type[T],
        *,
        page_size: int | None = None,
        continuation_token: str | None = None,
        completion: DocumentsCompletion | None = None,
    ) -> Documents[T]:
        """
        Read one page of a partition.

        Pass the previous page's `continuation_token` to get the next one. Items
        that fail to decode come back as failed entries; the page itself still
        succeeds.
        """
        op = _Operation("LIST", partition)
        try:
            size = self._page_size if page_size is None else page_size
            if isinstance(size, bool) or not isinstance(size, int) or size < 1:
                raise InvalidArgumentError("page_size must be a positive integer")

            self._resolve(op, partition, write=False)
            op.advance(OperationState.SKIPPED)
            headers = {PAGE_SIZE_HEADER: str(size)}
            if continuation_token:
                headers[CONTINUATION_HEADER] = continuation_token
            response = await self._send(op, Method.GET, headers=headers)

            body = response.body
            records = body.get("Documents") if isinstance(body, dict) else None
            if not isinstance(records, list):
                raise DeserializationError("response is not a document listing", payload=body)

            result: Documents[T] = Documents(
                op.partition,
                tuple(self._page_item(op.partition, record, document_type) for record in records),
                continuation_token=response.header(CONTINUATION_HEADER) or None,
            )
        except DataStoreError as e:
            result = Documents.failure(op.partition, e)
        op.finish(result.error)
        return self._deliver(result, completion)

    @staticmethod
    def _page_item(partition: str, record: Any, document_type: type[T]) -> Document[T]:
        document_id = record.get("id") if isinstance(record, dict) else None
        document_id = document_id if isinstance(document_id, str) else ""
        try:
            return _document_from_record(partition, document_id, record, document_type)
        except DeserializationError as e:
            logger.warning("DOCSTORE LIST: %s/%s does not decode: %s", partition, document_id or "?", e.message)
            return Document.failure(partition, document_id, e)

    async def iter_pages(
        self,
        partition: str,
        document_type: type[T],
        *,
        page_size: int | None = None,
    ) -> AsyncIterator[Documents[T]]:
        """Yield every page of a partition in order. A failed page is yielded and ends the iteration."""
        token: str | None = None
        while True:
            page = await self.list(partition, document_type, page_size=page_size, continuation_token=token)
            yield page
            if not page.ok or not page.has_next_page:
                return
            token = page.continuation_token
