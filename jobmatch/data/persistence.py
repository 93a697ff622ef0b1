"""
Durable key-value storage over named partitions.

The session store and the similarity index snapshot both go through a
PersistenceAdapter. MongoDB is the production backend; the in-memory
backend serves tests and throwaway runs.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from jobmatch.data.database import DatabaseManager
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.constants import PARTITION_KEY_FIELDS
from jobmatch.utils.exceptions import PersistenceError
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)

Record = dict[str, Any]


class PersistenceAdapter(ABC):
    """
    Abstract async key-value store.

    Each partition keys its records by one field of the record
    (``user_id`` for sessions, ``id`` for vectors by default).
    """

    def __init__(self, key_fields: Optional[dict[str, str]] = None):
        self._key_fields = dict(PARTITION_KEY_FIELDS)
        if key_fields:
            self._key_fields.update(key_fields)

    def key_field(self, partition: str) -> str:
        """Name of the key field for ``partition``."""
        return self._key_fields.get(partition, "id")

    def _key_of(self, partition: str, record: Record) -> str:
        key = record.get(self.key_field(partition))
        if not key:
            raise PersistenceError(
                f"Record for '{partition}' has no '{self.key_field(partition)}' key",
                partition=partition,
            )
        return str(key)

    @abstractmethod
    async def save(self, partition: str, record: Record) -> str:
        """Insert a new record; fails if the key already exists."""
        pass

    @abstractmethod
    async def get(self, partition: str, key: str) -> Optional[Record]:
        """Get a record by key."""
        pass

    @abstractmethod
    async def get_all(self, partition: str) -> list[Record]:
        """Get every record in a partition."""
        pass

    @abstractmethod
    async def put(self, partition: str, record: Record) -> str:
        """Insert or replace a record."""
        pass

    @abstractmethod
    async def delete(self, partition: str, key: str) -> bool:
        """Delete a record; returns whether it existed."""
        pass

    @abstractmethod
    async def clear(self, partition: str) -> int:
        """Delete every record in a partition; returns how many were removed."""
        pass

    def close(self) -> None:
        """Release backend resources."""


class MemoryPersistenceAdapter(PersistenceAdapter):
    """Process-local backend. Records are deep-copied on the way in and out."""

    def __init__(self, key_fields: Optional[dict[str, str]] = None):
        super().__init__(key_fields)
        self._partitions: dict[str, dict[str, Record]] = {}

    def _partition(self, partition: str) -> dict[str, Record]:
        return self._partitions.setdefault(partition, {})

    async def save(self, partition: str, record: Record) -> str:
        key = self._key_of(partition, record)
        store = self._partition(partition)
        if key in store:
            raise PersistenceError(f"Duplicate key '{key}' in '{partition}'", partition=partition)
        store[key] = copy.deepcopy(record)
        return key

    async def get(self, partition: str, key: str) -> Optional[Record]:
        record = self._partition(partition).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def get_all(self, partition: str) -> list[Record]:
        return [copy.deepcopy(r) for r in self._partition(partition).values()]

    async def put(self, partition: str, record: Record) -> str:
        key = self._key_of(partition, record)
        self._partition(partition)[key] = copy.deepcopy(record)
        return key

    async def delete(self, partition: str, key: str) -> bool:
        return self._partition(partition).pop(key, None) is not None

    async def clear(self, partition: str) -> int:
        store = self._partition(partition)
        removed = len(store)
        store.clear()
        return removed


class MongoPersistenceAdapter(PersistenceAdapter):
    """
    MongoDB backend. Partitions map to collections and the record key is
    stored as ``_id``.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        key_fields: Optional[dict[str, str]] = None,
    ):
        super().__init__(key_fields)
        self._db_manager = db_manager or DatabaseManager()

    def _collection(self, partition: str) -> Any:
        return self._db_manager.get_async_collection(partition)

    @staticmethod
    def _from_document(document: Optional[dict[str, Any]]) -> Optional[Record]:
        if document is None:
            return None
        document.pop("_id", None)
        return document

    async def save(self, partition: str, record: Record) -> str:
        key = self._key_of(partition, record)
        try:
            await self._collection(partition).insert_one({**record, "_id": key})
        except DuplicateKeyError as e:
            raise PersistenceError(f"Duplicate key '{key}' in '{partition}'", partition=partition) from e
        except PyMongoError as e:
            logger.error(f"Failed to save record {key} to {partition}: {e}")
            raise PersistenceError(f"Failed to save record: {e}", partition=partition) from e
        return key

    async def get(self, partition: str, key: str) -> Optional[Record]:
        try:
            document = await self._collection(partition).find_one({"_id": key})
        except PyMongoError as e:
            logger.error(f"Failed to load record {key} from {partition}: {e}")
            raise PersistenceError(f"Failed to load record: {e}", partition=partition) from e
        return self._from_document(document)

    async def get_all(self, partition: str) -> list[Record]:
        try:
            documents = await self._collection(partition).find().to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Failed to list {partition}: {e}")
            raise PersistenceError(f"Failed to list records: {e}", partition=partition) from e
        return [self._from_document(doc) for doc in documents]

    async def put(self, partition: str, record: Record) -> str:
        key = self._key_of(partition, record)
        try:
            await self._collection(partition).replace_one(
                {"_id": key}, {**record, "_id": key}, upsert=True
            )
        except PyMongoError as e:
            logger.error(f"Failed to put record {key} to {partition}: {e}")
            raise PersistenceError(f"Failed to put record: {e}", partition=partition) from e
        return key

    async def delete(self, partition: str, key: str) -> bool:
        try:
            result = await self._collection(partition).delete_one({"_id": key})
        except PyMongoError as e:
            logger.error(f"Failed to delete record {key} from {partition}: {e}")
            raise PersistenceError(f"Failed to delete record: {e}", partition=partition) from e
        return result.deleted_count > 0

    async def clear(self, partition: str) -> int:
        try:
            result = await self._collection(partition).delete_many({})
        except PyMongoError as e:
            logger.error(f"Failed to clear {partition}: {e}")
            raise PersistenceError(f"Failed to clear partition: {e}", partition=partition) from e
        return result.deleted_count

    def close(self) -> None:
        self._db_manager.close_all()


def get_persistence_adapter(settings: Optional[AppSettings] = None) -> PersistenceAdapter:
    """
    Factory function to build the configured persistence adapter.

    Args:
        settings: Optional settings; defaults to the global settings.

    Returns:
        PersistenceAdapter instance.
    """
    settings = settings or get_settings()
    persistence = settings.persistence
    key_fields = {
        persistence.sessions_partition: "user_id",
        persistence.vectors_partition: "id",
    }

    if persistence.backend == "mongodb":
        return MongoPersistenceAdapter(DatabaseManager(settings), key_fields=key_fields)
    elif persistence.backend == "memory":
        return MemoryPersistenceAdapter(key_fields=key_fields)
    else:
        raise ValueError(f"Unknown persistence backend: {persistence.backend}")
