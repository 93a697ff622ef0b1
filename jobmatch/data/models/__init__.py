"""
Pydantic data models for the job matching core.

This module provides all data models used throughout the application:
session records, jobs, and vector index entries.
"""

# Base models
from .base import BaseRecord, EmbeddedModel, TimestampMixin, generate_id, utc_now

# Job models
from .job import (
    CustomLink,
    Job,
    JobUpdate,
    PrepTask,
    apply_job_update,
    merge_job,
    merge_job_lists,
    rescore_jobs,
)

# Session models
from .session import (
    CustomJobSite,
    ExtractedSkills,
    Session,
    SessionUpdate,
    UserProfile,
    UserSettings,
    merge_profile,
    merge_settings,
)

# Vector models
from .vector import JobSimilarity, SearchHit, VectorEntry

__all__ = [
    # Base
    "BaseRecord",
    "EmbeddedModel",
    "TimestampMixin",
    "generate_id",
    "utc_now",
    # Job
    "CustomLink",
    "Job",
    "JobUpdate",
    "PrepTask",
    "apply_job_update",
    "merge_job",
    "merge_job_lists",
    "rescore_jobs",
    # Session
    "CustomJobSite",
    "ExtractedSkills",
    "Session",
    "SessionUpdate",
    "UserProfile",
    "UserSettings",
    "merge_profile",
    "merge_settings",
    # Vector
    "JobSimilarity",
    "SearchHit",
    "VectorEntry",
]
