"""
Document codec: typed application documents <-> JSON-compatible dicts.

Any type pydantic can validate and dump qualifies as a serializable document
(BaseModel subclasses, dataclasses, TypedDicts, plain dicts). The document
type is passed at the call boundary because the operations are generic.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .errors import DeserializationError, SerializationError

T = TypeVar("T")


@lru_cache(maxsize=256)
def _adapter_for(document_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(document_type)


def encode(document: Any) -> dict[str, Any]:
    """Dump a document to a JSON object. Raises SerializationError."""
    try:
        payload = _adapter_for(type(document)).dump_python(document, mode="json")
    except (PydanticSerializationError, PydanticUserError, TypeError, ValueError) as e:
        raise SerializationError(f"cannot serialize {type(document).__name__}: {e}", cause=e) from e

    if not isinstance(payload, dict):
        raise SerializationError(
            f"{type(document).__name__} must serialize to a JSON object, got {type(payload).__name__}"
        )
    return payload


def decode(payload: Any, document_type: type[T]) -> T:
    """Validate a JSON payload into `document_type`. Raises DeserializationError carrying the raw payload."""
    name = getattr(document_type, "__name__", repr(document_type))
    try:
        adapter = _adapter_for(document_type)
    except (PydanticUserError, TypeError) as e:
        raise DeserializationError(f"{name} is not a serializable document type", cause=e, payload=payload) from e

    try:
        return adapter.validate_python(payload)
    except ValidationError as e:
        raise DeserializationError(
            f"payload does not match {name}: {e.error_count()} validation error(s)",
            cause=e,
            payload=payload,
        ) from e
