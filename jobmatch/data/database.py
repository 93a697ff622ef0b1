"""
Database connection manager for the job matching core.

Provides MongoDB connection management with both synchronous (PyMongo)
and asynchronous (Motor) client support.
"""

from typing import Any, Optional
from urllib.parse import quote_plus

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, MongoClient
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages MongoDB database connections.

    The async client backs the persistence adapter; the sync client is
    only used for health checks from the CLI.
    """

    def __init__(self, settings: Optional[AppSettings] = None) -> None:
        """Initialize database manager with settings."""
        self._settings = settings or get_settings()
        self._db_name = self._settings.database.name
        self._uri = self._build_uri()
        self._sync_client: Optional[MongoClient] = None
        self._async_client: Optional[AsyncIOMotorClient] = None

    def _build_uri(self) -> str:
        """
        Build MongoDB connection URI from settings.

        Security: URL-encodes credentials to prevent injection attacks.
        """
        db_settings = self._settings.database

        host = db_settings.host.strip()
        if not host or any(c in host for c in [";", "&", "|", "$", "`"]):
            raise ValueError(f"Invalid database host: {host}")

        auth = ""
        if db_settings.username and db_settings.password:
            encoded_user = quote_plus(db_settings.username)
            encoded_pass = quote_plus(db_settings.password)
            auth = f"{encoded_user}:{encoded_pass}@"

        return f"mongodb://{auth}{host}:{db_settings.port}"

    # -------------------------------------------------------------------------
    # Synchronous Client
    # -------------------------------------------------------------------------

    def get_sync_client(self) -> MongoClient:
        """Get or create synchronous MongoDB client."""
        if self._sync_client is None:
            logger.info("Creating synchronous MongoDB client")
            self._sync_client = MongoClient(
                self._uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                tz_aware=True,
            )
        return self._sync_client

    def check_sync_connection(self) -> bool:
        """Check if synchronous connection is healthy."""
        try:
            self.get_sync_client().admin.command("ping")
            return True
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Sync connection check failed: {e}")
            self._sync_client = None
            return False

    # -------------------------------------------------------------------------
    # Asynchronous Client
    # -------------------------------------------------------------------------

    def get_async_client(self) -> AsyncIOMotorClient:
        """Get or create asynchronous MongoDB client."""
        if self._async_client is None:
            logger.info("Creating asynchronous MongoDB client")
            self._async_client = AsyncIOMotorClient(
                self._uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                maxPoolSize=50,
                tz_aware=True,
            )
        return self._async_client

    def get_async_database(self) -> AsyncIOMotorDatabase:
        """Get asynchronous database instance."""
        return self.get_async_client()[self._db_name]

    def get_async_collection(self, collection_name: str) -> Any:
        """Get an asynchronous collection by name."""
        return self.get_async_database()[collection_name]

    # -------------------------------------------------------------------------
    # Lifecycle Management
    # -------------------------------------------------------------------------

    def close_all(self) -> None:
        """Close all database connections."""
        if self._sync_client:
            logger.info("Closing synchronous MongoDB client")
            self._sync_client.close()
            self._sync_client = None
        if self._async_client:
            logger.info("Closing asynchronous MongoDB client")
            self._async_client.close()
            self._async_client = None

    # -------------------------------------------------------------------------
    # Index Management
    # -------------------------------------------------------------------------

    async def ensure_indexes(self) -> None:
        """Create secondary indexes for the session and vector collections."""
        logger.info("Ensuring database indexes")
        persistence = self._settings.persistence

        sessions = self.get_async_collection(persistence.sessions_partition)
        await sessions.create_index([("updated_at", ASCENDING)])
        await sessions.create_index("jobs.id")

        vectors = self.get_async_collection(persistence.vectors_partition)
        await vectors.create_index("tags.type")
        await vectors.create_index("tags.job_id")

        logger.info("Database indexes created successfully")
