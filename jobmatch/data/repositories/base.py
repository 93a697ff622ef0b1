"""
Base repository class providing common record operations.

All entity-specific repositories inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from jobmatch.data.models.base import BaseRecord
from jobmatch.data.persistence import PersistenceAdapter
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)

# Type variable for record models
T = TypeVar("T", bound=BaseRecord)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository over one persistence partition.

    Subclasses must define the partition name and model class.
    """

    @property
    @abstractmethod
    def partition_name(self) -> str:
        """Name of the persistence partition."""
        pass

    @property
    @abstractmethod
    def model_class(self) -> type[T]:
        """Pydantic model class for this repository."""
        pass

    def __init__(self, adapter: PersistenceAdapter) -> None:
        """Initialize repository with a persistence adapter."""
        self._adapter = adapter

    @property
    def key_field(self) -> str:
        """Record field used as the partition key."""
        return self._adapter.key_field(self.partition_name)

    # -------------------------------------------------------------------------
    # Record Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, record: Optional[dict[str, Any]]) -> Optional[T]:
        """Convert a stored record to a Pydantic model."""
        if record is None:
            return None
        return self.model_class.model_validate(record)

    def _to_models(self, records: list[dict[str, Any]]) -> list[T]:
        """Convert a list of stored records to Pydantic models."""
        return [self._to_model(record) for record in records if record is not None]

    def _to_record(self, model: T) -> dict[str, Any]:
        """Convert a Pydantic model to a storable record."""
        return model.model_dump_record()

    # -------------------------------------------------------------------------
    # Asynchronous Operations
    # -------------------------------------------------------------------------

    async def create_async(self, model: T) -> T:
        """Insert a new record."""
        key = await self._adapter.save(self.partition_name, self._to_record(model))
        logger.debug(f"Created {self.partition_name} record: {key}")
        return model

    async def get_by_id_async(self, key: str) -> Optional[T]:
        """Get a record by its key."""
        return self._to_model(await self._adapter.get(self.partition_name, key))

    async def get_all_async(self) -> list[T]:
        """Get every record in the partition."""
        return self._to_models(await self._adapter.get_all(self.partition_name))

    async def replace_async(self, model: T) -> T:
        """Insert or replace a whole record."""
        key = await self._adapter.put(self.partition_name, self._to_record(model))
        logger.debug(f"Replaced {self.partition_name} record: {key}")
        return model

    async def delete_async(self, key: str) -> bool:
        """Delete a record by key."""
        deleted = await self._adapter.delete(self.partition_name, key)
        if deleted:
            logger.debug(f"Deleted {self.partition_name} record: {key}")
        return deleted
