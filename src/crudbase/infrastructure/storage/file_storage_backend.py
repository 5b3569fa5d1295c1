"""JSON file storage backend.

The whole dataset lives in one JSON document. Every mutation reads the full
document, changes one record and rewrites the file through an atomic replace,
so the file on disk is always a complete document.
"""

import asyncio
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from crudbase.core.exceptions import InitializationError, PersistenceError, ValidationError
from crudbase.core.logging import get_logger
from crudbase.domain.entities.record import (
    ID_FIELD,
    METADATA_KEY,
    Clock,
    Collection,
    Document,
    Record,
    apply_patch,
    build_record,
    is_valid_document,
    matches_filter,
    seed_document,
    to_iso,
)
from crudbase.domain.services.record_id_generator import RecordIdGenerator
from crudbase.infrastructure.storage.base import StorageBackend, StorageType, write_json_atomic

logger = get_logger(__name__)

DOCUMENT_VERSION = "1.0.0"


class FileStorageBackend(StorageBackend):
    """Storage backend persisting a single JSON document on disk."""

    storage_type = StorageType.FILE

    def __init__(
        self,
        file_path: str | Path,
        clock: Clock | None = None,
        id_generator: RecordIdGenerator | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.file_path = Path(file_path)
        self._id_generator = id_generator or RecordIdGenerator()


    def _seed(self) -> Document:
        return seed_document({"created": self._now(), "version": DOCUMENT_VERSION})

    def _read_sync(self) -> Document:
        try:
            raw = self.file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # Removed behind our back; behave like a freshly seeded file
            return self._seed()
        except OSError as e:
            raise PersistenceError(f"Failed to read storage file: {e}") from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Failed to parse storage file: {e}") from e

        if not is_valid_document(document):
            raise PersistenceError(
                f"Storage file {self.file_path} does not contain a valid document"
            )
        return document

    def _write_sync(self, document: Document) -> None:
        try:
            write_json_atomic(self.file_path, document)
        except OSError as e:
            raise PersistenceError(f"Failed to write storage file: {e}") from e

    async def _read(self) -> Document:
        return await asyncio.to_thread(self._read_sync)

    async def _write(self, document: Document) -> None:
        await asyncio.to_thread(self._write_sync, document)

    @staticmethod
    def _records(document: Document, collection: str) -> Collection | None:
        records = document.get(collection)
        return records if isinstance(records, list) else None


    def _init_sync(self) -> bool:
        """Returns True when a fresh document had to be written."""
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InitializationError(
                f"Failed to initialize file storage: cannot create {self.file_path.parent}: {e}"
            ) from e

        if self.file_path.exists():
            try:
                self._read_sync()
            except PersistenceError as e:
                logger.warning(
                    "Storage file invalid, rewriting with default structure",
                    path=str(self.file_path),
                    error=e.message,
                )
            else:
                if not os.access(self.file_path, os.W_OK):
                    raise InitializationError(
                        f"Failed to initialize file storage: {self.file_path} is not writable"
                    )
                return False

        try:
            write_json_atomic(self.file_path, self._seed())
        except OSError as e:
            raise InitializationError(f"Failed to initialize file storage: {e}") from e
        return True

    async def init(self) -> None:
        async with self._lock:
            created = await asyncio.to_thread(self._init_sync)
            self.initialized = True
        logger.info(
            "File storage initialized",
            path=str(self.file_path),
            seeded=created,
        )


    async def get_collection(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> Collection:
        document = await self._read()
        records = self._records(document, collection) or []
        return [record for record in records if matches_filter(record, filters)]

    async def get_record(self, collection: str, record_id: str) -> Record | None:
        document = await self._read()
        for record in self._records(document, collection) or []:
            if record.get(ID_FIELD) == record_id:
                return record
        return None


    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        async with self._lock:
            document = await self._read()
            if collection not in document:
                document[collection] = []
            records = self._records(document, collection)
            if records is None:
                raise ValidationError(
                    f"'{collection}' is not a record collection", operation="create_record"
                )

            record_id = self._id_generator.generate_unique(
                record.get(ID_FIELD) for record in records
            )
            record = build_record(data, record_id, self._now())
            records.append(record)
            await self._write(document)

        logger.debug("Record created", collection=collection, record_id=record_id)
        return record

    async def update_record(
        self, collection: str, record_id: str, patch: Mapping[str, Any]
    ) -> Record | None:
        async with self._lock:
            document = await self._read()
            records = self._records(document, collection)
            if records is None:
                return None

            for index, existing in enumerate(records):
                if existing.get(ID_FIELD) == record_id:
                    updated = apply_patch(existing, patch, self._now())
                    records[index] = updated
                    await self._write(document)
                    break
            else:
                return None

        logger.debug("Record updated", collection=collection, record_id=record_id)
        return updated

    async def delete_record(self, collection: str, record_id: str) -> bool:
        async with self._lock:
            document = await self._read()
            records = self._records(document, collection)
            if records is None:
                return False

            remaining = [record for record in records if record.get(ID_FIELD) != record_id]
            if len(remaining) == len(records):
                return False

            document[collection] = remaining
            await self._write(document)

        logger.debug("Record deleted", collection=collection, record_id=record_id)
        return True

    async def clear(self) -> None:
        async with self._lock:
            await self._write(self._seed())
        logger.warning("File storage cleared", path=str(self.file_path))

    async def _drop_collection(self, collection: str) -> None:
        async with self._lock:
            document = await self._read()
            if collection in document and collection != METADATA_KEY:
                del document[collection]
                await self._write(document)


    def _file_info(self) -> tuple[int, str | None]:
        try:
            stat = self.file_path.stat()
        except OSError:
            return 0, None
        modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return stat.st_size, to_iso(modified)

    async def get_stats(self) -> dict[str, Any]:
        document = await self._read()
        file_size, last_modified = await asyncio.to_thread(self._file_info)
        return {
            "storageType": self.storage_type.value,
            **self.summarize(document),
            "filePath": str(self.file_path),
            "fileSize": file_size,
            "lastModified": last_modified,
        }

    async def create_backup(self) -> dict[str, Any]:
        document = await self._read()
        file_size, last_modified = await asyncio.to_thread(self._file_info)
        return {
            "data": document,
            "metadata": {
                "backupCreated": self._now(),
                "storageType": self.storage_type.value,
                "originalPath": str(self.file_path),
                **self.summarize(document),
                "fileSize": file_size,
                "lastModified": last_modified,
            },
        }
