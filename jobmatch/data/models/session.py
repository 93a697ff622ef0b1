"""
Session data models.

A session is the complete persisted state of one user: profile, resume,
extracted skills, job list and settings. Merge helpers make the depth of
each partial update explicit.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from jobmatch.utils.constants import JobSitePreference, RemotePreference

from .base import BaseRecord, EmbeddedModel, utc_now
from .job import Job


class UserProfile(EmbeddedModel):
    """Profile details collected during onboarding."""

    name: Optional[str] = None
    current_title: Optional[str] = None
    years_experience: Optional[float] = Field(default=None, ge=0)
    target_salary: Optional[float] = Field(default=None, ge=0)
    preferred_locations: list[str] = Field(default_factory=list)
    remote_preference: Optional[RemotePreference] = None
    tech_stack: list[str] = Field(default_factory=list)
    role_keywords: list[str] = Field(default_factory=list)


class CustomJobSite(EmbeddedModel):
    """User-defined job site recognised by its domains."""

    name: str
    domains: list[str] = Field(default_factory=list)

    @field_validator("domains")
    @classmethod
    def normalize_domains(cls, v: list[str]) -> list[str]:
        """Domains are matched lower-case without a www. prefix."""
        return [d.strip().lower().removeprefix("www.") for d in v if d.strip()]


class UserSettings(EmbeddedModel):
    """Per-user settings."""

    job_site_preferences: dict[str, JobSitePreference] = Field(default_factory=dict)
    custom_job_sites: list[CustomJobSite] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExtractedSkills(EmbeddedModel):
    """Output of the resume skill extraction collaborator."""

    skills: list[str] = Field(default_factory=list)
    seniority: Optional[str] = None
    domains: list[str] = Field(default_factory=list)
    experience: Optional[float] = Field(default=None, ge=0)


class Session(BaseRecord):
    """
    Persisted per-user state, keyed by ``user_id``.

    Jobs are unique by id; when duplicates are supplied the last record for
    an id wins and keeps the position of the first.
    """

    user_id: str = Field(..., min_length=1)
    profile: UserProfile = Field(default_factory=UserProfile)
    skills: list[str] = Field(default_factory=list)
    seniority: Optional[str] = None
    domains: list[str] = Field(default_factory=list)
    resume_raw: Optional[str] = None
    jobs: list[Job] = Field(default_factory=list)
    settings: UserSettings = Field(default_factory=UserSettings)

    @field_validator("jobs")
    @classmethod
    def unique_job_ids(cls, v: list[Job]) -> list[Job]:
        """Collapse duplicate job ids."""
        by_id: dict[str, Job] = {}
        for job in v:
            by_id[job.id] = job
        return list(by_id.values())

    def find_job(self, job_id: str) -> Optional[Job]:
        """Return the job with ``job_id`` or None."""
        for job in self.jobs:
            if job.id == job_id:
                return job
        return None


class SessionUpdate(EmbeddedModel):
    """
    Partial session. Only explicitly set fields are merged into the stored
    record; ``user_id`` selects the record and is never rewritten.
    """

    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    skills: Optional[list[str]] = None
    seniority: Optional[str] = None
    domains: Optional[list[str]] = None
    resume_raw: Optional[str] = None
    jobs: Optional[list[Job]] = None
    settings: Optional[UserSettings] = None
    created_at: Optional[datetime] = None

    def changes(self) -> dict[str, Any]:
        """Explicitly set fields, excluding the key."""
        return self.model_dump(exclude_unset=True, exclude={"user_id"})


def merge_profile(existing: UserProfile, partial: UserProfile | dict[str, Any]) -> UserProfile:
    """Field-by-field merge; fields not set in ``partial`` are kept."""
    if isinstance(partial, dict):
        partial = UserProfile.model_validate(partial)
    merged = existing.model_dump()
    merged.update(partial.model_dump(exclude_unset=True))
    return UserProfile.model_validate(merged)


def merge_settings(existing: UserSettings, partial: UserSettings | dict[str, Any]) -> UserSettings:
    """
    Field-by-field merge of settings.

    ``job_site_preferences`` is replaced as a whole when set, so removing a
    site (back to neutral) is expressible. ``created_at`` is kept from the
    first write and ``updated_at`` is stamped.
    """
    if isinstance(partial, dict):
        partial = UserSettings.model_validate(partial)
    now = utc_now()
    merged = existing.model_dump()
    merged.update(partial.model_dump(exclude_unset=True, exclude={"created_at", "updated_at"}))
    merged["created_at"] = existing.created_at or partial.created_at or now
    merged["updated_at"] = now
    return UserSettings.model_validate(merged)
