"""
In-memory similarity index over embedded texts.

Holds (id, embedding, text, tags) entries, answers free-text and job
similarity queries, and snapshots itself to a persistence partition.
"""

import asyncio
import math
from typing import Any, Iterable, Optional, Sequence

import numpy as np
from pydantic import ValidationError as ModelValidationError

from jobmatch.data.models import Job, JobSimilarity, SearchHit, VectorEntry, generate_id
from jobmatch.data.persistence import PersistenceAdapter
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.constants import (
    MAX_MATCH_SCORE,
    MIN_MATCH_SCORE,
    VECTOR_ID_PREFIX,
    VECTOR_TYPE_JOB,
)
from jobmatch.utils.exceptions import PersistenceError
from jobmatch.utils.logger import get_logger

from .text_embedder import TextEmbedder

logger = get_logger(__name__)


def similarity_to_score(similarity: float) -> float:
    """
    Remap cosine similarity in [-1, 1] to a match score in [0, 100].

    Rounded half-up to two decimals. Term-frequency vectors are
    non-negative, so scores sit in the upper half of the range.
    """
    score = ((similarity + 1.0) / 2.0) * 100.0
    score = max(MIN_MATCH_SCORE, min(MAX_MATCH_SCORE, score))
    return math.floor(score * 100.0 + 0.5) / 100.0


class SimilarityIndex:
    """
    Append-only collection of embedded texts.

    Synchronous operations do no locking of their own. Callers that mix
    inserts with reads across await points hold ``lock`` for the whole
    sequence.
    """

    def __init__(
        self,
        embedder: Optional[TextEmbedder] = None,
        adapter: Optional[PersistenceAdapter] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize the index.

        Args:
            embedder: Text embedder; defaults to a TextEmbedder sized from config.
            adapter: Persistence adapter used by serialize/deserialize.
            settings: Optional settings; defaults to the global settings.
        """
        settings = settings or get_settings()
        self.embedder = embedder or TextEmbedder(settings.vector.dimension)
        self._adapter = adapter
        self._partition = settings.persistence.vectors_partition
        self._search_top_k = settings.vector.search_top_k
        self._similar_jobs_limit = settings.vector.similar_jobs_limit
        self._entries: list[VectorEntry] = []
        self.lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def insert(self, text: str, tags: Optional[dict[str, Any]] = None) -> str:
        """
        Embed a text and store it.

        Returns:
            Generated entry id.
        """
        entry = VectorEntry(
            id=generate_id(VECTOR_ID_PREFIX),
            embedding=self.embedder.embed(text).tolist(),
            text=text,
            tags=dict(tags or {}),
        )
        self._entries.append(entry)
        return entry.id

    def remove_by_tag(self, tag: str, value: Any) -> int:
        """Remove every entry whose ``tags[tag]`` equals ``value``."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.tags.get(tag) != value]
        removed = before - len(self._entries)
        if removed:
            logger.debug(f"Removed {removed} entries with {tag}={value!r}")
        return removed

    def upsert_by_tag(
        self,
        texts: Iterable[str],
        tags: Optional[dict[str, Any]] = None,
        match_tag: str = "filename",
    ) -> list[str]:
        """
        Replace every entry sharing ``tags[match_tag]`` with a new batch.

        Without ``match_tag`` in ``tags`` nothing is removed and the batch
        is simply inserted.

        Returns:
            Ids of the inserted entries.
        """
        tags = tags or {}
        if match_tag in tags:
            self.remove_by_tag(match_tag, tags[match_tag])
        return [self.insert(text, tags) for text in texts]

    def embed_job(self, job: Job) -> str:
        """
        Embed a job as ``"<title> at <company>. <description>"``.

        Idempotent by job id: an entry with the same text is reused, a
        changed text replaces the old entry.

        Returns:
            Entry id.
        """
        text = job.embedding_text
        existing = [e for e in self._job_entries() if e.tags.get("job_id") == job.id]
        if existing:
            if len(existing) == 1 and existing[0].text == text:
                return existing[0].id
            self.remove_job(job.id)

        return self.insert(
            text,
            {
                "type": VECTOR_TYPE_JOB,
                "job_id": job.id,
                "title": job.title,
                "company": job.company,
            },
        )

    def remove_job(self, job_id: str) -> int:
        """Remove the entries of one job."""
        before = len(self._entries)
        self._entries = [
            e for e in self._entries
            if not (e.entry_type == VECTOR_TYPE_JOB and e.tags.get("job_id") == job_id)
        ]
        return before - len(self._entries)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries = []
        logger.debug("Cleared similarity index")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _job_entries(self) -> list[VectorEntry]:
        return [e for e in self._entries if e.entry_type == VECTOR_TYPE_JOB]

    def embed_query(self, text: str) -> np.ndarray:
        """Embedding for a query text."""
        return self.embedder.embed(text)

    def search(self, query_text: str, top_k: Optional[int] = None) -> list[SearchHit]:
        """
        Free-text similarity search over every entry.

        Args:
            query_text: Text to embed and compare.
            top_k: Number of results to return.

        Returns:
            Hits with positive cosine similarity, best first.
        """
        top_k = top_k if top_k is not None else self._search_top_k
        query = self.embed_query(query_text)

        hits = []
        for entry in self._entries:
            score = self.embedder.cosine_similarity(query, entry.embedding)
            if score > 0:
                hits.append(SearchHit(text=entry.text, score=score, tags=dict(entry.tags)))

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:top_k]

    def find_similar_jobs(
        self,
        query_vector: Sequence[float] | np.ndarray,
        limit: Optional[int] = None,
    ) -> list[JobSimilarity]:
        """
        Rank job entries against a query vector.

        Args:
            query_vector: Embedding of the user's profile text.
            limit: Maximum number of results.

        Returns:
            Matches with scores in [0, 100], best first.
        """
        limit = limit if limit is not None else self._similar_jobs_limit

        results = []
        for entry in self._job_entries():
            job_id = entry.tags.get("job_id")
            similarity = self.embedder.cosine_similarity(query_vector, entry.embedding)
            score = similarity_to_score(similarity)
            if job_id and score > 0:
                results.append(JobSimilarity(job_id=job_id, score=score, tags=dict(entry.tags)))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def job_ids(self) -> set[str]:
        """Ids of every job that currently has an entry."""
        return {e.tags["job_id"] for e in self._job_entries() if e.tags.get("job_id")}

    def get_all(self) -> list[VectorEntry]:
        """Copy of the entry list."""
        return list(self._entries)

    def count(self) -> int:
        """Number of entries."""
        return len(self._entries)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _require_adapter(self) -> PersistenceAdapter:
        if self._adapter is None:
            raise PersistenceError("Similarity index has no persistence adapter", partition=self._partition)
        return self._adapter

    async def serialize(self) -> int:
        """
        Replace the durable snapshot with the current entries.

        Returns:
            Number of entries written.

        Raises:
            PersistenceError: If storage fails.
        """
        adapter = self._require_adapter()
        entries = list(self._entries)

        await adapter.clear(self._partition)
        for entry in entries:
            await adapter.put(self._partition, entry.model_dump())

        logger.info(f"Serialized {len(entries)} vectors to '{self._partition}'")
        return len(entries)

    async def deserialize(self) -> int:
        """
        Replace in-memory entries with the durable snapshot.

        An empty snapshot leaves the index untouched. Records that fail
        validation are skipped.

        Returns:
            Number of entries loaded.

        Raises:
            PersistenceError: If storage fails.
        """
        adapter = self._require_adapter()
        records = await adapter.get_all(self._partition)
        if not records:
            logger.debug(f"No vectors stored in '{self._partition}'")
            return 0

        entries = []
        for record in records:
            try:
                entries.append(VectorEntry.model_validate(record))
            except ModelValidationError as e:
                logger.warning(f"Skipping malformed vector record {record.get('id')!r}: {e}")

        self._entries = entries
        logger.info(f"Deserialized {len(entries)} vectors from '{self._partition}'")
        return len(entries)
