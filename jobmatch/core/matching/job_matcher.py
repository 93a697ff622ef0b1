"""
Job matching orchestration.

Ranks a user's jobs against their profile: makes sure every job is in the
similarity index, embeds the profile as a query, merges scores back onto
the stored jobs and applies site preferences to the returned list.
"""

from typing import Optional

from jobmatch.data.models import Job, Session, merge_job_lists, rescore_jobs
from jobmatch.data.repositories import SessionRepository
from jobmatch.ml.embeddings import SimilarityIndex
from jobmatch.utils.exceptions import PersistenceError, ValidationError
from jobmatch.utils.logger import LoggerMixin, audit_log

from .job_sites import extract_job_site
from .site_filter import SitePreferences, filter_and_prioritize


def build_query_text(session: Session) -> str:
    """
    Concatenate the profile signal used as the ranking query.

    Order: skills, raw resume, current title, tech stack, role keywords.
    """
    parts: list[str] = list(session.skills)
    if session.resume_raw:
        parts.append(session.resume_raw)
    if session.profile.current_title:
        parts.append(session.profile.current_title)
    parts.extend(session.profile.tech_stack)
    parts.extend(session.profile.role_keywords)
    return " ".join(parts).strip()


def _with_prior_scores(jobs: list[Job]) -> list[Job]:
    return [job.model_copy(update={"match_score": job.score_or_zero}) for job in jobs]


class JobMatcher(LoggerMixin):
    """
    Ranks jobs in a user's session by similarity to their profile.

    Ranking never surfaces an error to the caller: if scoring fails, the
    jobs come back with their previous scores.
    """

    def __init__(self, index: SimilarityIndex, sessions: SessionRepository):
        """
        Initialize the matcher.

        Args:
            index: Shared similarity index.
            sessions: Session store used to read and write back jobs.
        """
        self.index = index
        self.sessions = sessions

    # -------------------------------------------------------------------------
    # Index Coverage
    # -------------------------------------------------------------------------

    async def ensure_indexed(self, jobs: list[Job]) -> int:
        """
        Embed every job missing from the index and snapshot the index.

        Must be called with ``index.lock`` held. A failed snapshot is logged;
        the in-memory index is still usable.

        Returns:
            Number of jobs embedded.
        """
        indexed = self.index.job_ids()
        missing = [job for job in jobs if job.id not in indexed]
        for job in missing:
            self.index.embed_job(job)

        if missing:
            self.logger.debug(f"Embedded {len(missing)} new jobs")
            await self._snapshot_index()
        return len(missing)

    async def _snapshot_index(self) -> None:
        try:
            await self.index.serialize()
        except PersistenceError as e:
            self.logger.error(f"Failed to persist similarity index: {e}")

    # -------------------------------------------------------------------------
    # Ranking
    # -------------------------------------------------------------------------

    def _rank(self, session: Session) -> list[Job]:
        query_text = build_query_text(session)
        if not query_text:
            raise ValidationError("No profile text to rank against")

        query_vector = self.index.embed_query(query_text)
        matches = self.index.find_similar_jobs(query_vector, limit=len(session.jobs))
        scores = {match.job_id: match.score for match in matches}
        # Unmatched jobs keep their prior score
        return rescore_jobs(_with_prior_scores(session.jobs), scores)

    async def match_jobs(
        self,
        user_id: str,
        session: Optional[Session] = None,
        preferences: Optional[SitePreferences] = None,
    ) -> list[Job]:
        """
        Rank a user's jobs and persist the scores.

        The whole rescored list is stored; site preferences only shape the
        returned list, so excluded jobs come back once the preference is
        lifted.

        Args:
            user_id: Session key.
            session: Current session; loaded from the store when omitted.
            preferences: Site preferences; taken from the session settings
                when omitted.

        Returns:
            Scored jobs, best first, filtered by site preferences.
        """
        if session is None:
            session = await self.sessions.load(user_id)
        if session is None or not session.jobs:
            return []

        jobs = session.jobs
        if preferences is None:
            preferences = session.settings.job_site_preferences

        try:
            async with self.index.lock:
                await self.ensure_indexed(jobs)
                ranked = self._rank(session)
        except ValidationError as e:
            self.logger.debug(f"Skipping ranking for {user_id}: {e}")
            return _with_prior_scores(jobs)
        except Exception as e:
            self.logger.error(f"Ranking failed for {user_id}, keeping prior scores: {e}")
            return _with_prior_scores(jobs)

        try:
            stored = await self.sessions.apply_match_scores(user_id, ranked)
            ranked = stored.jobs
        except PersistenceError as e:
            self.logger.error(f"Failed to persist ranked jobs for {user_id}: {e}")

        result = filter_and_prioritize(ranked, preferences)

        audit_log(
            "jobs_ranked",
            {
                "user_id": user_id,
                "job_count": len(ranked),
                "returned": len(result),
                "top_score": result[0].match_score if result else None,
            },
        )
        return result

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    async def ingest_jobs(self, user_id: str, jobs: list[Job]) -> list[Job]:
        """
        Add search results to the index and merge them into the session.

        Jobs without a site get one from their URL. Jobs already in the
        session keep their score and tracking fields.

        Returns:
            The session's job list after the merge.
        """
        session = await self.sessions.load(user_id)
        if not jobs:
            return list(session.jobs) if session else []

        custom_sites = session.settings.custom_job_sites if session else []
        incoming = [
            job if job.job_site else job.model_copy(
                update={"job_site": extract_job_site(job.url, custom_sites)}
            )
            for job in jobs
        ]

        async with self.index.lock:
            for job in incoming:
                self.index.embed_job(job)
            await self._snapshot_index()

        try:
            merged = (await self.sessions.merge_jobs(user_id, incoming)).jobs
        except PersistenceError as e:
            self.logger.error(f"Failed to persist ingested jobs for {user_id}: {e}")
            merged = merge_job_lists(session.jobs if session else [], incoming)

        self.logger.info(f"Ingested {len(incoming)} jobs for {user_id}")
        return merged
