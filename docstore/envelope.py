from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Iterator, TypeVar

from .errors import DataStoreError, EnvelopeAccessError

T = TypeVar("T")

_MISSING: Any = object()


@dataclass(frozen=True)
class Document(Generic[T]):
    """
    Result of a single-document operation: a deserialized value or an error, never both.

    Build with `Document.success(...)` / `Document.failure(...)`. Check `.ok`
    (or `.error`) before touching `.value`.
    """

    partition: str
    document_id: str
    _value: Any = field(default=_MISSING, repr=False)
    etag: str | None = None
    last_updated: datetime | None = None
    error: DataStoreError | None = None

    def __post_init__(self) -> None:
        has_value = self._value is not _MISSING
        if has_value == (self.error is not None):
            raise ValueError("Document holds exactly one of a value or an error")

    @classmethod
    def success(
        cls,
        partition: str,
        document_id: str,
        value: T,
        *,
        etag: str | None = None,
        last_updated: datetime | None = None,
    ) -> "Document[T]":
        return cls(partition, document_id, value, etag=etag, last_updated=last_updated)

    @classmethod
    def failure(cls, partition: str, document_id: str, error: DataStoreError) -> "Document[T]":
        return cls(partition, document_id, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def value(self) -> T:
        if self.error is not None:
            raise EnvelopeAccessError(
                f"document {self.partition}/{self.document_id} holds an error: {self.error!r}"
            ) from self.error
        return self._value


@dataclass(frozen=True)
class Documents(Generic[T]):
    """One page of a partition listing."""

    partition: str
    items: tuple[Document[T], ...] = ()
    continuation_token: str | None = None
    error: DataStoreError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and (self.items or self.continuation_token):
            raise ValueError("a failed listing carries no items")

    @classmethod
    def failure(cls, partition: str, error: DataStoreError) -> "Documents[T]":
        return cls(partition, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_next_page(self) -> bool:
        return self.continuation_token is not None

    @property
    def values(self) -> list[T]:
        """Values of the successfully decoded items, in page order."""
        return [d.value for d in self.items if d.ok]

    def __iter__(self) -> Iterator[Document[T]]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
