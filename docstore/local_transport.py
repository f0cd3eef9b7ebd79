"""
In-process emulator of the remote document store contract.

Answers the same requests `HttpTransport` sends, with the same statuses and
wire shapes, so the client can run without a server (local development,
tests). Listings are ordered by document id; continuation tokens are opaque
offsets into that order.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Mapping

from .local_store import KeyedLockRegistry, MemoryPartitionStore, PartitionStore
from .partitions import READONLY_PARTITION
from .transport import (
    CONTINUATION_HEADER,
    ETAG_HEADER,
    IF_MATCH_HEADER,
    PAGE_SIZE_HEADER,
    Method,
    Transport,
    TransportResponse,
    find_header,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def _error(status_code: int, message: str) -> TransportResponse:
    return TransportResponse(status_code=status_code, body={"code": status_code, "message": message})


class LocalTransport(Transport):
    def __init__(self, store: PartitionStore | None = None) -> None:
        self._store = store if store is not None else MemoryPartitionStore()
        self._locks = KeyedLockRegistry()

    @property
    def store(self) -> PartitionStore:
        return self._store

    def seed(self, partition: str, document_id: str, document: dict[str, Any]) -> dict[str, Any]:
        """
        Write a record directly, bypassing the client-facing rules.

        This is how the read-only partition gets content.
        """
        with self._locks.lock_for(partition):
            records = self._store.load(partition)
            record = self._new_record(partition, document_id, document)
            records[document_id] = record
            self._store.save(partition, records)
        return record

    async def send(
        self,
        method: Method,
        partition: str,
        document_id: str | None = None,
        *,
        body: dict[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        return await asyncio.to_thread(self._handle, method, partition, document_id, body, headers)

    def _handle(
        self,
        method: Method,
        partition: str,
        document_id: str | None,
        body: dict[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> TransportResponse:
        if method is not Method.GET and partition == READONLY_PARTITION:
            return _error(403, "writes are not allowed in the readonly partition")

        with self._locks.lock_for(partition):
            if method is Method.GET and document_id is None:
                return self._list(partition, headers)
            if method is Method.GET:
                return self._read(partition, document_id)
            if method is Method.POST:
                return self._create(partition, body)
            if method is Method.PUT:
                return self._replace(partition, document_id, body, headers)
            if method is Method.DELETE:
                return self._delete(partition, document_id)
        return _error(405, f"unsupported method {method}")

    def _new_record(self, partition: str, document_id: str, document: Any) -> dict[str, Any]:
        return {
            "id": document_id,
            "PartitionKey": partition,
            "document": document,
            "_etag": f'"{uuid.uuid4().hex}"',
            "_ts": int(time.time()),
        }

    def _read(self, partition: str, document_id: str | None) -> TransportResponse:
        record = self._store.load(partition).get(document_id or "")
        if not isinstance(record, dict):
            return _error(404, f"document {document_id} not found")
        return TransportResponse(200, record, {ETAG_HEADER: record["_etag"]})

    def _list(self, partition: str, headers: Mapping[str, str] | None) -> TransportResponse:
        records = self._store.load(partition)
        ordered = [records[k] for k in sorted(records) if isinstance(records[k], dict)]

        try:
            page_size = int(find_header(headers, PAGE_SIZE_HEADER) or DEFAULT_PAGE_SIZE)
            offset = int(find_header(headers, CONTINUATION_HEADER) or 0)
        except ValueError:
            return _error(400, "invalid page size or continuation token")
        if page_size < 1 or offset < 0:
            return _error(400, "invalid page size or continuation token")

        page = ordered[offset : offset + page_size]
        response_headers: dict[str, str] = {}
        if offset + page_size < len(ordered):
            response_headers[CONTINUATION_HEADER] = str(offset + page_size)
        return TransportResponse(200, {"Documents": page}, response_headers)

    def _create(self, partition: str, body: dict[str, Any] | None) -> TransportResponse:
        document_id = (body or {}).get("id")
        if not isinstance(document_id, str) or not document_id:
            return _error(400, "document id is required")

        records = self._store.load(partition)
        if document_id in records:
            return _error(409, f"document {document_id} already exists")

        record = self._new_record(partition, document_id, (body or {}).get("document"))
        records[document_id] = record
        self._store.save(partition, records)
        logger.debug("LOCAL STORE: created %s/%s", partition, document_id)
        return TransportResponse(201, record, {ETAG_HEADER: record["_etag"]})

    def _replace(
        self,
        partition: str,
        document_id: str | None,
        body: dict[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> TransportResponse:
        records = self._store.load(partition)
        current = records.get(document_id or "")
        if not isinstance(current, dict):
            return _error(404, f"document {document_id} not found")

        expected = find_header(headers, IF_MATCH_HEADER)
        if expected is not None and expected != current.get("_etag"):
            return _error(412, f"document {document_id} has changed")

        record = self._new_record(partition, document_id or "", (body or {}).get("document"))
        records[record["id"]] = record
        self._store.save(partition, records)
        logger.debug("LOCAL STORE: replaced %s/%s", partition, document_id)
        return TransportResponse(200, record, {ETAG_HEADER: record["_etag"]})

    def _delete(self, partition: str, document_id: str | None) -> TransportResponse:
        records = self._store.load(partition)
        if records.pop(document_id or "", None) is None:
            return _error(404, f"document {document_id} not found")
        self._store.save(partition, records)
        logger.debug("LOCAL STORE: deleted %s/%s", partition, document_id)
        return TransportResponse(204)
