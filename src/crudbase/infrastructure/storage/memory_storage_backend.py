"""In-memory storage backend.

Holds the document in a process-local dict. Fast and isolated, which makes
it the default for tests and the last resort during failover. Nothing
survives a restart.
"""

import asyncio
import json
from copy import deepcopy
from typing import Any, Mapping

from crudbase.core.exceptions import ValidationError
from crudbase.core.logging import get_logger
from crudbase.domain.entities.record import (
    ID_FIELD,
    Clock,
    Collection,
    Document,
    Record,
    apply_patch,
    build_record,
    collection_names,
    matches_filter,
    seed_document,
)
from crudbase.domain.services.record_id_generator import RecordIdGenerator
from crudbase.infrastructure.storage.base import StorageBackend, StorageType

logger = get_logger(__name__)

MEMORY_ID_PREFIX = "mem"
VOLATILE_WARNING = "Data will be lost when application restarts"


class MemoryStorageBackend(StorageBackend):
    """Storage backend keeping every collection in process memory.

    Records handed out are deep copies; mutating them never changes stored
    state.
    """

    storage_type = StorageType.MEMORY

    def __init__(
        self,
        clock: Clock | None = None,
        id_generator: RecordIdGenerator | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self._id_generator = id_generator or RecordIdGenerator(prefix=MEMORY_ID_PREFIX)
        self._data: Document = {}
        self.created_at: str | None = None
        self.last_modified: str | None = None

    def _touch(self) -> None:
        self.last_modified = self._now()

    async def init(self) -> None:
        async with self._lock:
            if self.initialized:
                return
            self._data = seed_document()
            self.created_at = self._now()
            self.last_modified = self.created_at
            self.initialized = True
        logger.info("Memory storage initialized", warning=VOLATILE_WARNING)

    async def get_collection(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> Collection:
        await asyncio.sleep(0)
        records = self._data.get(collection) or []
        return [deepcopy(record) for record in records if matches_filter(record, filters)]

    async def get_record(self, collection: str, record_id: str) -> Record | None:
        await asyncio.sleep(0)
        for record in self._data.get(collection) or []:
            if record.get(ID_FIELD) == record_id:
                return deepcopy(record)
        return None

    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        async with self._lock:
            await asyncio.sleep(0)
            records = self._data.setdefault(collection, [])
            if not isinstance(records, list):
                raise ValidationError(
                    f"'{collection}' is not a record collection", operation="create_record"
                )

            record_id = self._id_generator.generate_unique(
                record.get(ID_FIELD) for record in records
            )
            record = build_record(data, record_id, self._now())
            records.append(record)
            self._touch()

        logger.debug("Record created", collection=collection, record_id=record_id)
        return deepcopy(record)

    async def update_record(
        self, collection: str, record_id: str, patch: Mapping[str, Any]
    ) -> Record | None:
        async with self._lock:
            await asyncio.sleep(0)
            records = self._data.get(collection)
            if not records:
                return None

            for index, existing in enumerate(records):
                if existing.get(ID_FIELD) == record_id:
                    updated = apply_patch(existing, patch, self._now())
                    records[index] = updated
                    self._touch()
                    break
            else:
                return None

        logger.debug("Record updated", collection=collection, record_id=record_id)
        return deepcopy(updated)

    async def delete_record(self, collection: str, record_id: str) -> bool:
        async with self._lock:
            await asyncio.sleep(0)
            records = self._data.get(collection)
            if not records:
                return False

            remaining = [record for record in records if record.get(ID_FIELD) != record_id]
            if len(remaining) == len(records):
                return False

            self._data[collection] = remaining
            self._touch()

        logger.debug("Record deleted", collection=collection, record_id=record_id)
        return True

    async def clear(self) -> None:
        async with self._lock:
            self._data = seed_document()
            self._touch()
        logger.warning("Memory storage cleared")

    async def _drop_collection(self, collection: str) -> None:
        async with self._lock:
            self._data.pop(collection, None)

    def _memory_usage(self) -> int:
        return len(json.dumps(self._data).encode("utf-8"))

    async def get_stats(self) -> dict[str, Any]:
        await asyncio.sleep(0)
        return {
            "storageType": self.storage_type.value,
            **self.summarize(self._data),
            "memoryUsage": self._memory_usage(),
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
            "persistent": False,
            "warning": VOLATILE_WARNING,
        }

    async def create_backup(self) -> dict[str, Any]:
        await asyncio.sleep(0)
        document = deepcopy(self._data)
        return {
            "data": document,
            "metadata": {
                "backupCreated": self._now(),
                "storageType": self.storage_type.value,
                **self.summarize(document),
                "memoryUsage": self._memory_usage(),
                "persistent": False,
                "warning": VOLATILE_WARNING,
            },
        }

    def get_memory_state(self) -> dict[str, Any]:
        """Debugging snapshot of the in-memory document."""
        names = collection_names(self._data)
        return {
            "initialized": self.initialized,
            "dataSize": self._memory_usage(),
            "collections": names,
            "recordCounts": {name: len(self._data[name]) for name in names},
        }
