"""
Retrieval context for the job coach.

Builds a Markdown context block from a user's session and the jobs most
similar to their question.
"""

from typing import Optional

from jobmatch.data.models import SearchHit, Session
from jobmatch.data.repositories import SessionRepository
from jobmatch.ml.embeddings import SimilarityIndex
from jobmatch.utils.config import AppSettings, get_settings
from jobmatch.utils.constants import VECTOR_TYPE_JOB
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)

NO_SESSION_MESSAGE = "No user session found. Please complete onboarding first."


class JobContextBuilder:
    """Assembles profile, resume and relevant job text for one question."""

    def __init__(
        self,
        index: SimilarityIndex,
        sessions: SessionRepository,
        settings: Optional[AppSettings] = None,
    ):
        settings = settings or get_settings()
        self.index = index
        self.sessions = sessions
        self.top_k = settings.matching.context_top_k
        self.resume_chars = settings.matching.context_resume_chars
        self.fallback_jobs = settings.matching.context_fallback_jobs

    async def build(
        self,
        user_id: str,
        query: str,
        context_job_id: Optional[str] = None,
        top_k: Optional[int] = None,
    ) -> str:
        """
        Build the context text.

        Args:
            user_id: Session key.
            query: The user's question.
            context_job_id: Job the conversation is about, if any.
            top_k: Maximum number of job sections.

        Returns:
            Context text; a guidance message when the user has no session.
        """
        top_k = top_k if top_k is not None else self.top_k
        try:
            session = await self.sessions.load(user_id)
            if session is None:
                return NO_SESSION_MESSAGE

            parts = self._session_sections(session)

            hits = self._relevant_jobs(query, context_job_id, top_k)
            if hits:
                job_texts = [
                    f"### Job {i}: {hit.tags.get('title') or 'Unknown Job'} at "
                    f"{hit.tags.get('company') or 'Unknown Company'}\n{hit.text}"
                    for i, hit in enumerate(hits, start=1)
                ]
                parts.append("## Relevant Job Opportunities\n" + "\n\n".join(job_texts))
            elif session.jobs:
                summaries = [
                    f"{job.title} at {job.company}"
                    + (f": {job.description[:200]}..." if job.description else "")
                    for job in session.jobs[: self.fallback_jobs]
                ]
                parts.append("## Available Jobs\n" + "\n\n".join(summaries))

            return "\n\n".join(parts)
        except Exception as e:
            logger.error(f"Error building job context for {user_id}: {e}")
            return f"Error loading context: {e}"

    def _session_sections(self, session: Session) -> list[str]:
        parts = []
        profile = session.profile

        profile_lines = []
        if profile.name:
            profile_lines.append(f"Name: {profile.name}")
        if profile.current_title:
            profile_lines.append(f"Current Title: {profile.current_title}")
        if profile.years_experience is not None:
            profile_lines.append(f"Years of Experience: {profile.years_experience:g}")
        if profile.tech_stack:
            profile_lines.append(f"Tech Stack: {', '.join(profile.tech_stack)}")
        if profile.role_keywords:
            profile_lines.append(f"Role Keywords: {', '.join(profile.role_keywords)}")
        if profile_lines:
            parts.append("## User Profile\n" + "\n".join(profile_lines))

        if session.skills:
            parts.append(f"## Skills\n{', '.join(session.skills)}")

        if session.resume_raw:
            resume = session.resume_raw
            if len(resume) > self.resume_chars:
                resume = resume[: self.resume_chars] + "..."
            parts.append(f"## Resume\n{resume}")

        return parts

    def _relevant_jobs(
        self, query: str, context_job_id: Optional[str], top_k: int
    ) -> list[SearchHit]:
        hits = self.index.search(query, top_k=top_k * 2)
        job_hits = [h for h in hits if h.tags.get("type") == VECTOR_TYPE_JOB]

        if context_job_id:
            focused = [h for h in job_hits if h.tags.get("job_id") == context_job_id]
            if focused:
                job_hits = focused

        return job_hits[:top_k]
