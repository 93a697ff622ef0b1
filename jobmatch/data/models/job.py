"""
Job posting data models.

Defines the job record kept in a user's session, including match score,
preparation tasks and application tracking fields.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from jobmatch.utils.constants import (
    MAX_MATCH_SCORE,
    MIN_MATCH_SCORE,
    ApplicationStatus,
    TaskPriority,
)

from .base import EmbeddedModel, utc_now


class PrepTask(EmbeddedModel):
    """An interview preparation task attached to a job."""

    id: str
    title: str
    description: Optional[str] = None
    completed: bool = False
    priority: Optional[TaskPriority] = None


class CustomLink(EmbeddedModel):
    """A labelled link (custom link or supporting material)."""

    label: str
    url: str


class Job(EmbeddedModel):
    """
    Job posting as stored in a user's session.

    ``id`` is unique within a user's job list. ``match_score`` is only ever
    written by a ranking pass and stays within [0, 100].
    """

    # Identity and posting
    id: str = Field(..., min_length=1)
    title: str
    company: str = ""
    url: str = ""
    description: Optional[str] = None
    source: Optional[str] = None  # tavily, manual, ...
    job_site: Optional[str] = None
    raw_data: Optional[dict[str, Any]] = None

    # Matching
    match_score: Optional[float] = Field(default=None, ge=MIN_MATCH_SCORE, le=MAX_MATCH_SCORE)

    # Generated content
    summary: Optional[str] = None
    prep_tasks: list[PrepTask] = Field(default_factory=list)

    # Application tracking
    is_favorite: Optional[bool] = None
    application_status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    custom_links: list[CustomLink] = Field(default_factory=list)
    supporting_materials: list[CustomLink] = Field(default_factory=list)

    # Dates
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    applied_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Trim surrounding whitespace from titles."""
        return v.strip()

    @property
    def embedding_text(self) -> str:
        """Canonical text used to embed this job."""
        return f"{self.title} at {self.company}. {self.description or ''}".strip()

    @property
    def score_or_zero(self) -> float:
        """Existing match score, 0 when never ranked."""
        return self.match_score if self.match_score is not None else 0.0


class JobUpdate(EmbeddedModel):
    """Schema for a partial job update. Only set fields are applied."""

    title: Optional[str] = None
    company: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    job_site: Optional[str] = None
    match_score: Optional[float] = Field(default=None, ge=MIN_MATCH_SCORE, le=MAX_MATCH_SCORE)
    summary: Optional[str] = None
    prep_tasks: Optional[list[PrepTask]] = None
    is_favorite: Optional[bool] = None
    application_status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    custom_links: Optional[list[CustomLink]] = None
    supporting_materials: Optional[list[CustomLink]] = None
    applied_date: Optional[datetime] = None


def merge_job(existing: Job, incoming: Job) -> Job:
    """
    Merge a freshly fetched job into the stored one.

    Fields the incoming record sets explicitly (and to a non-null value)
    win; everything else, notably ``match_score`` and the user's
    application tracking fields, is kept from the stored record.
    """
    merged = existing.model_dump()
    merged.update(incoming.model_dump(exclude_unset=True, exclude_none=True))
    merged["id"] = existing.id
    return Job.model_validate(merged)


def merge_job_lists(existing: list[Job], incoming: list[Job]) -> list[Job]:
    """Merge incoming jobs by id; stored jobs keep their position, new ones are appended."""
    merged = list(existing)
    positions = {job.id: i for i, job in enumerate(merged)}
    for job in incoming:
        if job.id in positions:
            merged[positions[job.id]] = merge_job(merged[positions[job.id]], job)
        else:
            positions[job.id] = len(merged)
            merged.append(job)
    return merged


def rescore_jobs(jobs: list[Job], scores: dict[str, float]) -> list[Job]:
    """
    Apply match scores by job id and sort best first.

    Jobs without a new score keep their stored one. The sort is stable, so
    ties keep list order.
    """
    rescored = [
        job.model_copy(update={"match_score": scores[job.id]}) if job.id in scores else job
        for job in jobs
    ]
    return sorted(rescored, key=lambda job: job.score_or_zero, reverse=True)


def apply_job_update(existing: Job, update: JobUpdate) -> Job:
    """Apply a partial update to a job and stamp ``updated_at``."""
    merged = existing.model_dump()
    merged.update(update.model_dump(exclude_unset=True))
    merged["id"] = existing.id
    merged["updated_at"] = utc_now()
    return Job.model_validate(merged)
