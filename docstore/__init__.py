from __future__ import annotations

from .bootstrap import create_client
from .client import DataStoreClient, OperationState
from .codec import decode, encode
from .envelope import Document, Documents
from .errors import (
    ConflictError,
    DataStoreError,
    DeserializationError,
    EnvelopeAccessError,
    ErrorKind,
    HttpStatusError,
    IdentityUnavailableError,
    InvalidArgumentError,
    NotFoundError,
    SerializationError,
    TransportError,
    VersionConflictError,
    WriteNotAllowedError,
)
from .identity import IdentityProvider, JwtIdentityProvider, StaticIdentityProvider
from .local_store import DiskPartitionStore, MemoryPartitionStore, PartitionStore
from .local_transport import LocalTransport
from .partitions import READONLY_PARTITION, USER_PARTITION, ResolvedPartition, resolve_partition
from .settings import Settings, get_settings
from .transport import HttpTransport, Method, Transport, TransportResponse

__all__ = [
    "create_client",
    "DataStoreClient",
    "OperationState",
    "decode",
    "encode",
    "Document",
    "Documents",
    "ConflictError",
    "DataStoreError",
    "DeserializationError",
    "EnvelopeAccessError",
    "ErrorKind",
    "HttpStatusError",
    "IdentityUnavailableError",
    "InvalidArgumentError",
    "NotFoundError",
    "SerializationError",
    "TransportError",
    "VersionConflictError",
    "WriteNotAllowedError",
    "IdentityProvider",
    "JwtIdentityProvider",
    "StaticIdentityProvider",
    "DiskPartitionStore",
    "MemoryPartitionStore",
    "PartitionStore",
    "LocalTransport",
    "READONLY_PARTITION",
    "USER_PARTITION",
    "ResolvedPartition",
    "resolve_partition",
    "Settings",
    "get_settings",
    "HttpTransport",
    "Method",
    "Transport",
    "TransportResponse",
]
