"""Storage contract shared by every backend.

Handlers depend on :class:`StorageBackend` only. Concrete backends must
implement every abstract method, so an incomplete backend fails at
instantiation rather than on first use.
"""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from crudbase.core.exceptions import PersistenceError
from crudbase.core.logging import get_logger
from crudbase.domain.entities.record import (
    HEALTH_CHECK_COLLECTION,
    Clock,
    Collection,
    Document,
    Record,
    collection_names,
    to_iso,
    utc_now,
)

logger = get_logger(__name__)


class StorageType(str, Enum):
    """Known storage backends, in fallback order."""

    FILE = "file"
    MEMORY = "memory"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Every operation is a coroutine. Mutating operations are serialized per
    instance through ``self._lock`` so a read-modify-write cannot interleave
    with another one on the same backend.
    """

    storage_type: StorageType

    HEALTH_CHECK_COLLECTION = HEALTH_CHECK_COLLECTION

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._lock = asyncio.Lock()
        self._probe_lock = asyncio.Lock()
        self.initialized = False

    def _now(self) -> str:
        return to_iso(self._clock())

    @abstractmethod
    async def init(self) -> None:
        """Prepare underlying resources. Safe to call more than once.

        Raises:
            InitializationError: If the backend cannot reach a usable state.
        """
        ...

    @abstractmethod
    async def get_collection(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> Collection:
        """Copy of every record in ``collection`` matching ``filters``."""
        ...

    @abstractmethod
    async def get_record(self, collection: str, record_id: str) -> Record | None:
        """Copy of a single record, or None if absent."""
        ...

    @abstractmethod
    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        """Store a new record, auto-creating the collection."""
        ...

    @abstractmethod
    async def update_record(
        self, collection: str, record_id: str, patch: Mapping[str, Any]
    ) -> Record | None:
        """Shallow-merge ``patch`` onto a record, or None if absent."""
        ...

    @abstractmethod
    async def delete_record(self, collection: str, record_id: str) -> bool:
        """Remove a record. False if the collection or record is missing."""
        ...

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Point-in-time statistics computed from the current document."""
        ...

    @abstractmethod
    async def create_backup(self) -> dict[str, Any]:
        """Full copy of the document plus descriptive metadata."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Reset to the default seed structure."""
        ...

    @abstractmethod
    async def _drop_collection(self, collection: str) -> None:
        """Remove a whole collection. Used to clean up after health probes."""
        ...

    async def health_check(self) -> bool:
        """Run a create/read/update/delete round-trip on a throwaway collection.

        Never raises: any failure is logged and reported as ``False``. The
        probe collection is dropped afterwards whatever the outcome. Probes
        on one backend run one at a time, so a finishing probe never drops
        the collection under a running one.
        """
        probe = self.HEALTH_CHECK_COLLECTION
        healthy = False
        async with self._probe_lock:
            try:
                healthy = await self._probe(probe)
            except Exception as e:
                logger.error(
                    "Storage health check failed",
                    storage_type=self.storage_type.value,
                    error=str(e),
                    exc_type=type(e).__name__,
                )
            finally:
                try:
                    await self._drop_collection(probe)
                except Exception as cleanup_error:
                    logger.warning(
                        "Health check cleanup failed",
                        storage_type=self.storage_type.value,
                        error=str(cleanup_error),
                    )
                    healthy = False
        return healthy

    async def _probe(self, probe: str) -> bool:
        created = await self.create_record(probe, {"name": "health-check", "probe": True})
        record_id = created.get("id")
        if not record_id:
            return False

        read_back = await self.get_record(probe, record_id)
        if not read_back or read_back.get("name") != "health-check":
            return False

        updated = await self.update_record(probe, record_id, {"status": "updated"})
        if not updated or updated.get("status") != "updated":
            return False

        return await self.delete_record(probe, record_id)

    async def write_backup(self, directory: str | Path) -> Path:
        """Write :meth:`create_backup` output to a timestamped JSON file.

        Args:
            directory: Directory receiving ``storage-backup-<timestamp>.json``.

        Returns:
            Path of the written backup file.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        backup = await self.create_backup()
        stamp = backup["metadata"]["backupCreated"].replace(":", "-").replace(".", "-")
        target = Path(directory) / f"storage-backup-{stamp}.json"
        try:
            await asyncio.to_thread(write_json_atomic, target, backup)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write backup file: {e}", operation="write_backup"
            ) from e
        logger.info(
            "Backup written",
            storage_type=self.storage_type.value,
            path=str(target),
        )
        return target

    @staticmethod
    def summarize(document: Document) -> dict[str, Any]:
        """Collection counts shared by every backend's stats."""
        names = collection_names(document)
        counts = {name: len(document[name]) for name in names}
        return {
            "totalCollections": len(names),
            "totalRecords": sum(counts.values()),
            "collections": counts,
        }


def write_json_atomic(path: Path, payload: Any) -> None:
    """Serialize ``payload`` next to ``path`` and atomically replace it.

    The previous file stays intact until the new one is completely written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise
