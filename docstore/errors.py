from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    IDENTITY_UNAVAILABLE = "identity_unavailable"
    WRITE_NOT_ALLOWED = "write_not_allowed"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VERSION_CONFLICT = "version_conflict"
    SERIALIZATION = "serialization"
    DESERIALIZATION = "deserialization"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    INVALID_ARGUMENT = "invalid_argument"


class DataStoreError(Exception):
    """
    Structured error delivered inside result envelopes.

    Carries a kind, a human-readable message and the underlying cause (if any).
    Instances are values: the client returns them, it never raises them across
    the async boundary.
    """

    kind: ClassVar[ErrorKind]

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code
        self.payload = payload
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class IdentityUnavailableError(DataStoreError):
    kind = ErrorKind.IDENTITY_UNAVAILABLE


class WriteNotAllowedError(DataStoreError):
    kind = ErrorKind.WRITE_NOT_ALLOWED


class NotFoundError(DataStoreError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(DataStoreError):
    kind = ErrorKind.CONFLICT


class VersionConflictError(DataStoreError):
    kind = ErrorKind.VERSION_CONFLICT


class SerializationError(DataStoreError):
    kind = ErrorKind.SERIALIZATION


class DeserializationError(DataStoreError):
    """Raw payload is kept on `.payload` for diagnostics."""

    kind = ErrorKind.DESERIALIZATION


class TransportError(DataStoreError):
    kind = ErrorKind.TRANSPORT


class HttpStatusError(DataStoreError):
    kind = ErrorKind.HTTP_STATUS


class InvalidArgumentError(DataStoreError):
    kind = ErrorKind.INVALID_ARGUMENT


class EnvelopeAccessError(RuntimeError):
    """Raised when reading the value of an envelope that holds an error."""


_STATUS_ERRORS: dict[int, type[DataStoreError]] = {
    403: WriteNotAllowedError,
    404: NotFoundError,
    409: ConflictError,
    412: VersionConflictError,
}


def error_for_status(status_code: int, message: str, *, payload: Any = None) -> DataStoreError:
    error_cls = _STATUS_ERRORS.get(status_code, HttpStatusError)
    return error_cls(message, status_code=status_code, payload=payload)
