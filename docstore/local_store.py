from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)


class PartitionStore(Protocol):
    """
    Storage behind the local emulator: one JSON object per partition,
    mapping document id -> stored record.
    """

    def load(self, partition: str) -> dict[str, Any]:
        """Return the partition's records (never None; empty for unknown partitions)."""
        ...

    def save(self, partition: str, records: dict[str, Any]) -> None:
        """Persist the partition's records atomically."""
        ...


class KeyedLockRegistry:
    """
    Provides a stable lock per key (partition name) to avoid global contention.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


class MemoryPartitionStore(PartitionStore):
    def __init__(self) -> None:
        self._partitions: dict[str, dict[str, Any]] = {}

    def load(self, partition: str) -> dict[str, Any]:
        # Round-trip through JSON so callers never share mutable state with the store.
        return json.loads(json.dumps(self._partitions.get(partition, {})))

    def save(self, partition: str, records: dict[str, Any]) -> None:
        self._partitions[partition] = json.loads(json.dumps(records))


class DiskPartitionStore(PartitionStore):
    """
    Stores each partition as `<data_dir>/partitions/<percent-encoded partition>.json`.

    - Missing, empty or corrupt files load as an empty partition.
    - Writes go to a temp file that then replaces the target.
    """

    def __init__(self, data_dir: Path) -> None:
        self._dir = Path(data_dir) / "partitions"
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, partition: str) -> Path:
        # Distinct partitions map to distinct files.
        return self._dir / f"{quote(partition, safe='')}.json"

    def load(self, partition: str) -> dict[str, Any]:
        path = self.path_for(partition)
        if not path.exists():
            return {}
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("LOCAL STORE LOAD: ignoring corrupt %s: %r", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, partition: str, records: dict[str, Any]) -> None:
        path = self.path_for(partition)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, sort_keys=True)
            f.write("\n")
        tmp_path.replace(path)
