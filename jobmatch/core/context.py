"""
Application context.

Builds the shared similarity index, session store and services once and
hands them out by reference.
"""

from dataclasses import dataclass
from typing import Optional

from jobmatch.core.matching import JobContextBuilder, JobMatcher
from jobmatch.data.persistence import PersistenceAdapter, get_persistence_adapter
from jobmatch.data.repositories import SessionRepository
from jobmatch.ml.embeddings import SimilarityIndex, TextEmbedder
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.exceptions import PersistenceError
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Wired components for one process."""

    settings: AppSettings
    adapter: PersistenceAdapter
    index: SimilarityIndex
    sessions: SessionRepository
    matcher: JobMatcher
    context_builder: JobContextBuilder

    async def startup(self) -> None:
        """Restore the similarity index from its last snapshot."""
        try:
            async with self.index.lock:
                loaded = await self.index.deserialize()
            logger.info(f"Restored {loaded} vectors")
        except PersistenceError as e:
            logger.warning(f"Starting with an empty similarity index: {e}")

    async def rebuild_index(self) -> int:
        """
        Re-embed every job of every session and replace the snapshot.

        Returns:
            Number of index entries after the rebuild.
        """
        sessions = await self.sessions.get_all()
        async with self.index.lock:
            self.index.clear()
            for session in sessions:
                for job in session.jobs:
                    self.index.embed_job(job)
            await self.index.serialize()
            count = self.index.count()
        logger.info(f"Rebuilt similarity index from {len(sessions)} sessions ({count} vectors)")
        return count

    def shutdown(self) -> None:
        """Release storage connections."""
        self.adapter.close()


def create_app_context(
    settings: Optional[AppSettings] = None,
    adapter: Optional[PersistenceAdapter] = None,
) -> AppContext:
    """
    Wire the application components.

    Args:
        settings: Optional settings; defaults to the global settings.
        adapter: Optional persistence adapter; defaults to the configured backend.
    """
    settings = settings or get_settings()
    adapter = adapter or get_persistence_adapter(settings)

    index = SimilarityIndex(TextEmbedder(settings.vector.dimension), adapter, settings)
    sessions = SessionRepository(adapter, settings)

    return AppContext(
        settings=settings,
        adapter=adapter,
        index=index,
        sessions=sessions,
        matcher=JobMatcher(index, sessions),
        context_builder=JobContextBuilder(index, sessions, settings),
    )
