"""
Shared test fixtures for the JobMatch test suite.

Sets environment variables before any jobmatch imports so the in-memory
backend is used and no MongoDB server is needed, then provides factory
fixtures for jobs and sessions plus wired components.
"""

import os
import tempfile

# === Set environment BEFORE any jobmatch imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "jobmatch_test")
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("LOG_CONSOLE_OUTPUT", "false")
os.environ.setdefault(
    "LOG_FILE_PATH", os.path.join(tempfile.gettempdir(), "jobmatch-tests", "jobmatch.log")
)

from typing import Any, Optional

import pytest

from jobmatch.core.context import AppContext, create_app_context
from jobmatch.core.matching import JobContextBuilder, JobMatcher
from jobmatch.data.models import Job, Session, UserProfile
from jobmatch.data.persistence import MemoryPersistenceAdapter
from jobmatch.data.repositories import SessionRepository
from jobmatch.ml.embeddings import SimilarityIndex, TextEmbedder
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.exceptions import PersistenceError


class FlakyPersistenceAdapter(MemoryPersistenceAdapter):
    """Memory adapter whose writes can be switched to fail."""

    def __init__(self, key_fields: Optional[dict[str, str]] = None):
        super().__init__(key_fields)
        self.fail_writes = False
        self.fail_partitions: set[str] = set()

    def _check(self, partition: str) -> None:
        if self.fail_writes or partition in self.fail_partitions:
            raise PersistenceError("storage unavailable", partition=partition)

    async def save(self, partition, record):
        self._check(partition)
        return await super().save(partition, record)

    async def put(self, partition, record):
        self._check(partition)
        return await super().put(partition, record)

    async def clear(self, partition):
        self._check(partition)
        return await super().clear(partition)


# ---------------------------------------------------------------------------
# Settings and storage
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> AppSettings:
    return get_settings()


@pytest.fixture
def key_fields(settings):
    return {
        settings.persistence.sessions_partition: "user_id",
        settings.persistence.vectors_partition: "id",
    }


@pytest.fixture
def adapter(key_fields):
    return FlakyPersistenceAdapter(key_fields=key_fields)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> TextEmbedder:
    return TextEmbedder(dimension=128)


@pytest.fixture
def index(embedder, adapter, settings) -> SimilarityIndex:
    return SimilarityIndex(embedder, adapter, settings)


@pytest.fixture
def store(adapter, settings) -> SessionRepository:
    return SessionRepository(adapter, settings)


@pytest.fixture
def matcher(index, store) -> JobMatcher:
    return JobMatcher(index, store)


@pytest.fixture
def context_builder(index, store, settings) -> JobContextBuilder:
    return JobContextBuilder(index, store, settings)


@pytest.fixture
def app_context(adapter, settings) -> AppContext:
    return create_app_context(settings=settings, adapter=adapter)


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_job():
    """Factory that returns a callable to build Job models."""

    def _factory(
        id: str = "job1",
        title: str = "Senior Software Engineer",
        company: str = "Acme Corp",
        description: Optional[str] = "Build APIs with Python JavaScript React",
        url: str = "",
        **kwargs: Any,
    ) -> Job:
        return Job(
            id=id,
            title=title,
            company=company,
            description=description,
            url=url,
            **kwargs,
        )

    return _factory


@pytest.fixture
def make_session(make_job):
    """Factory that returns a callable to build Session models."""

    def _factory(
        user_id: str = "user_test",
        skills: Optional[list[str]] = None,
        resume_raw: Optional[str] = None,
        jobs: Optional[list[Job]] = None,
        **kwargs: Any,
    ) -> Session:
        return Session(
            user_id=user_id,
            skills=skills if skills is not None else ["Python", "JavaScript"],
            resume_raw=resume_raw,
            jobs=jobs if jobs is not None else [make_job()],
            **kwargs,
        )

    return _factory


@pytest.fixture
def sample_profile() -> UserProfile:
    return UserProfile(
        name="Jane Smith",
        current_title="Backend Engineer",
        years_experience=6,
        tech_stack=["Python", "PostgreSQL"],
        role_keywords=["backend", "api"],
    )
