from __future__ import annotations

from dataclasses import dataclass

from .errors import IdentityUnavailableError, InvalidArgumentError
from .identity import IdentityProvider

# An authenticated user can read/write documents in this partition.
USER_PARTITION = "user-{user_id}"

# Everyone can read documents in this partition; clients may not write to it.
READONLY_PARTITION = "readonly"


@dataclass(frozen=True)
class ResolvedPartition:
    name: str
    writable: bool = True


def resolve_partition(partition: str, identity: IdentityProvider) -> ResolvedPartition:
    """
    Map a partition key (possibly the user template) to the concrete partition name.

    The identity provider is read once, at call time.
    """
    if not isinstance(partition, str) or not partition.strip():
        raise InvalidArgumentError("partition must be a non-empty string")

    if partition == USER_PARTITION:
        try:
            user_id = identity.current_user_id()
        except Exception as e:
            raise IdentityUnavailableError(f"identity provider failed: {e!r}", cause=e) from e
        if not isinstance(user_id, str) or not user_id.strip():
            raise IdentityUnavailableError("no authenticated user to resolve the user partition")
        return ResolvedPartition(name=USER_PARTITION.format(user_id=user_id.strip()))

    if partition == READONLY_PARTITION:
        return ResolvedPartition(name=partition, writable=False)

    return ResolvedPartition(name=partition)
