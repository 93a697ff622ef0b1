"""
Session repository (the session store).

Keeps one record per user with whole-record load, partial-field update,
list-merge-by-id for jobs, settings, and per-job management operations.
Writes for one user are serialized with a per-user lock; different users
never contend.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from jobmatch.data.models import (
    CustomLink,
    ExtractedSkills,
    Job,
    JobUpdate,
    Session,
    SessionUpdate,
    UserProfile,
    UserSettings,
    apply_job_update,
    generate_id,
    merge_job_lists,
    merge_profile,
    merge_settings,
    rescore_jobs,
    utc_now,
)
from jobmatch.data.persistence import PersistenceAdapter
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.constants import USER_ID_PREFIX, ApplicationStatus, JobSitePreference
from jobmatch.utils.exceptions import JobNotFoundError, NotFoundError
from jobmatch.utils.logger import audit_log, get_logger

from .base import BaseRepository

logger = get_logger(__name__)

# Returns the top-level fields to change on the session
SessionMutation = Callable[[Session], dict[str, Any]]


class SessionRepository(BaseRepository[Session]):
    """Repository for per-user session records."""

    def __init__(self, adapter: PersistenceAdapter, settings: Optional[AppSettings] = None):
        super().__init__(adapter)
        self._partition = (settings or get_settings()).persistence.sessions_partition
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def partition_name(self) -> str:
        return self._partition

    @property
    def model_class(self) -> type[Session]:
        return Session

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock. The lock is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    @staticmethod
    def _coerce_update(partial: SessionUpdate | dict[str, Any] | None) -> SessionUpdate:
        if partial is None:
            return SessionUpdate()
        if isinstance(partial, SessionUpdate):
            return partial
        return SessionUpdate.model_validate(partial)

    async def _mutate(self, user_id: str, mutation: SessionMutation, *, create: bool) -> Session:
        """
        Read-modify-write one session under its lock.

        ``mutation`` receives the current session and returns the top-level
        fields to replace. A missing session is created when ``create`` is
        set, otherwise NotFoundError is raised.
        """
        async with self._user_lock(user_id):
            existing = await self.get_by_id_async(user_id)
            now = utc_now()
            is_new = existing is None

            if is_new:
                if not create:
                    raise NotFoundError(f"Session with user_id {user_id} not found", key=user_id)
                existing = Session(user_id=user_id, created_at=now, updated_at=now)

            data = existing.model_dump()
            data.update(mutation(existing))
            data["user_id"] = user_id
            data["updated_at"] = now
            session = Session.model_validate(data)

            if is_new:
                await self.create_async(session)
                logger.info(f"Created session {user_id}")
            else:
                await self.replace_async(session)
            return session

    # -------------------------------------------------------------------------
    # Whole-record Operations
    # -------------------------------------------------------------------------

    async def save(self, partial: SessionUpdate | dict[str, Any] | None = None) -> str:
        """
        Create a session, or update it when the user id already exists.

        Returns:
            The session's user id (generated when not supplied).
        """
        update = self._coerce_update(partial)
        user_id = update.user_id or generate_id(USER_ID_PREFIX)
        changes = update.changes()
        await self._mutate(user_id, lambda _session: changes, create=True)
        return user_id

    async def load(self, user_id: str) -> Optional[Session]:
        """Load a session by user id."""
        return await self.get_by_id_async(user_id)

    async def update(self, user_id: str, partial: SessionUpdate | dict[str, Any]) -> Session:
        """
        Shallow-merge explicitly set fields into an existing session.

        Raises:
            NotFoundError: If no session exists for ``user_id``.
        """
        changes = self._coerce_update(partial).changes()
        return await self._mutate(user_id, lambda _session: changes, create=False)

    async def clear(self, user_id: str) -> None:
        """Delete a session. Missing sessions are ignored."""
        async with self._user_lock(user_id):
            deleted = await self.delete_async(user_id)
        if deleted:
            audit_log("session_cleared", {"user_id": user_id}, audit_type="SESSION")

    async def get_all(self) -> list[Session]:
        """All sessions (diagnostics and index rebuilds)."""
        return await self.get_all_async()

    # -------------------------------------------------------------------------
    # Field Operations
    # -------------------------------------------------------------------------

    async def update_profile(
        self, user_id: str, partial_profile: UserProfile | dict[str, Any]
    ) -> Session:
        """Merge profile fields into the stored profile, creating the session if needed."""
        return await self._mutate(
            user_id,
            lambda session: {"profile": merge_profile(session.profile, partial_profile)},
            create=True,
        )

    async def update_jobs(self, user_id: str, jobs: list[Job]) -> Session:
        """Replace the whole job list."""
        jobs = list(jobs)
        return await self._mutate(user_id, lambda _session: {"jobs": jobs}, create=True)

    async def merge_jobs(self, user_id: str, jobs: list[Job]) -> Session:
        """Merge fetched jobs into the stored list by id, creating the session if needed."""
        jobs = list(jobs)
        return await self._mutate(
            user_id,
            lambda session: {"jobs": merge_job_lists(session.jobs, jobs)},
            create=True,
        )

    async def apply_match_scores(self, user_id: str, ranked: list[Job]) -> Session:
        """
        Write ranking scores onto the stored jobs and sort them best first.

        Scores are applied by job id to the jobs currently stored, so fields
        changed since ``ranked`` was computed are kept. A session with no
        jobs takes ``ranked`` as its job list.
        """
        ranked = list(ranked)
        scores = {job.id: job.score_or_zero for job in ranked}

        def _rescore(session: Session) -> dict[str, Any]:
            if not session.jobs:
                return {"jobs": ranked}
            return {"jobs": rescore_jobs(session.jobs, scores)}

        return await self._mutate(user_id, _rescore, create=True)

    async def add_job(self, user_id: str, job: Job) -> Session:
        """Insert a job, replacing any job with the same id in place."""

        def _upsert(session: Session) -> dict[str, Any]:
            jobs = list(session.jobs)
            for i, existing in enumerate(jobs):
                if existing.id == job.id:
                    jobs[i] = job
                    break
            else:
                jobs.append(job)
            return {"jobs": jobs}

        return await self._mutate(user_id, _upsert, create=True)

    async def update_skills(self, user_id: str, skills: list[str]) -> Session:
        """Replace the extracted skills list."""
        skills = list(skills)
        return await self._mutate(user_id, lambda _session: {"skills": skills}, create=True)

    async def update_resume(self, user_id: str, resume_raw: str) -> Session:
        """Replace the raw resume text."""
        return await self._mutate(user_id, lambda _session: {"resume_raw": resume_raw}, create=True)

    async def apply_skill_extraction(self, user_id: str, extraction: ExtractedSkills) -> Session:
        """Store the output of resume skill extraction."""
        return await self._mutate(
            user_id,
            lambda _session: {
                "skills": list(extraction.skills),
                "seniority": extraction.seniority,
                "domains": list(extraction.domains),
            },
            create=True,
        )

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def update_settings(
        self, user_id: str, partial_settings: UserSettings | dict[str, Any]
    ) -> Session:
        """Merge settings fields, creating the session if needed."""
        return await self._mutate(
            user_id,
            lambda session: {"settings": merge_settings(session.settings, partial_settings)},
            create=True,
        )

    async def update_job_site_preference(
        self, user_id: str, site_name: str, preference: JobSitePreference | str
    ) -> Session:
        """Set one site's preference. Neutral removes the entry."""
        preference = JobSitePreference(preference)

        def _set(session: Session) -> dict[str, Any]:
            preferences = dict(session.settings.job_site_preferences)
            if preference == JobSitePreference.NEUTRAL:
                preferences.pop(site_name, None)
            else:
                preferences[site_name] = preference
            return {
                "settings": merge_settings(
                    session.settings, {"job_site_preferences": preferences}
                )
            }

        return await self._mutate(user_id, _set, create=True)

    async def reset_job_site_preferences(self, user_id: str) -> Session:
        """Drop every job site preference."""
        return await self._mutate(
            user_id,
            lambda session: {
                "settings": merge_settings(session.settings, {"job_site_preferences": {}})
            },
            create=True,
        )

    # -------------------------------------------------------------------------
    # Job Management
    # -------------------------------------------------------------------------

    async def _mutate_job(
        self, user_id: str, job_id: str, change: Callable[[Job], JobUpdate]
    ) -> Job:
        updated: dict[str, Job] = {}

        def _apply(session: Session) -> dict[str, Any]:
            jobs = list(session.jobs)
            for i, job in enumerate(jobs):
                if job.id == job_id:
                    jobs[i] = updated["job"] = apply_job_update(job, change(job))
                    return {"jobs": jobs}
            raise JobNotFoundError(f"Job with id {job_id} not found", key=job_id)

        await self._mutate(user_id, _apply, create=False)
        return updated["job"]

    async def update_job(
        self, user_id: str, job_id: str, partial: JobUpdate | dict[str, Any]
    ) -> Job:
        """
        Apply a partial update to one job.

        The job's match score is kept unless the update sets one.

        Raises:
            NotFoundError: If the session does not exist.
            JobNotFoundError: If the job is not in the session.
        """
        if isinstance(partial, dict):
            partial = JobUpdate.model_validate(partial)
        return await self._mutate_job(user_id, job_id, lambda _job: partial)

    async def toggle_favorite(self, user_id: str, job_id: str) -> Job:
        """Flip a job's favorite flag."""
        return await self._mutate_job(
            user_id, job_id, lambda job: JobUpdate(is_favorite=not job.is_favorite)
        )

    async def update_application_status(
        self, user_id: str, job_id: str, status: ApplicationStatus | str
    ) -> Job:
        """Set the application status; first move to applied stamps the applied date."""
        status = ApplicationStatus(status)

        def _status(job: Job) -> JobUpdate:
            fields: dict[str, Any] = {"application_status": status}
            if status == ApplicationStatus.APPLIED and job.applied_date is None:
                fields["applied_date"] = utc_now()
            return JobUpdate(**fields)

        return await self._mutate_job(user_id, job_id, _status)

    async def update_notes(self, user_id: str, job_id: str, notes: str) -> Job:
        """Replace a job's notes."""
        return await self._mutate_job(user_id, job_id, lambda _job: JobUpdate(notes=notes))

    async def add_custom_link(
        self, user_id: str, job_id: str, link: CustomLink | dict[str, Any]
    ) -> Job:
        """Append a custom link to a job."""
        link = CustomLink.model_validate(link)
        return await self._mutate_job(
            user_id, job_id, lambda job: JobUpdate(custom_links=[*job.custom_links, link])
        )

    async def remove_custom_link(self, user_id: str, job_id: str, index: int) -> Job:
        """Remove a custom link by position; out-of-range positions change nothing."""
        return await self._mutate_job(
            user_id, job_id, lambda job: JobUpdate(custom_links=_without(job.custom_links, index))
        )

    async def add_supporting_material(
        self, user_id: str, job_id: str, material: CustomLink | dict[str, Any]
    ) -> Job:
        """Append a supporting material link to a job."""
        material = CustomLink.model_validate(material)
        return await self._mutate_job(
            user_id,
            job_id,
            lambda job: JobUpdate(supporting_materials=[*job.supporting_materials, material]),
        )

    async def remove_supporting_material(self, user_id: str, job_id: str, index: int) -> Job:
        """Remove a supporting material by position; out-of-range positions change nothing."""
        return await self._mutate_job(
            user_id,
            job_id,
            lambda job: JobUpdate(supporting_materials=_without(job.supporting_materials, index)),
        )


def _without(items: list[CustomLink], index: int) -> list[CustomLink]:
    if 0 <= index < len(items):
        return items[:index] + items[index + 1:]
    return list(items)
