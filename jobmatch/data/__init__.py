"""
Data layer for the job matching core.

Provides durable storage, data models, and repository classes
for data access throughout the application.

Submodules:
- database: MongoDB connection management
- persistence: Partitioned key-value storage adapters
- models: Pydantic data models
- repositories: Session store
"""

from .database import DatabaseManager
from .persistence import (
    MemoryPersistenceAdapter,
    MongoPersistenceAdapter,
    PersistenceAdapter,
    get_persistence_adapter,
)

__all__ = [
    "DatabaseManager",
    "MemoryPersistenceAdapter",
    "MongoPersistenceAdapter",
    "PersistenceAdapter",
    "get_persistence_adapter",
]
