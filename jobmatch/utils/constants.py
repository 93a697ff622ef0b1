"""
Application-wide constants for the job matching core.

This module contains all constant values used throughout the application.
Modify these values to customize behavior without changing code logic.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "JobMatch"
APP_DISPLAY_NAME: Final[str] = "Job Matching Core"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# Vector Index Constants
# =============================================================================

EMBEDDING_DIMENSION: Final[int] = 128

# Tag discriminator values stored on vector entries
VECTOR_TYPE_JOB: Final[str] = "job"
VECTOR_TYPE_USER_PROFILE: Final[str] = "user_profile"

# Score range reported to callers
MIN_MATCH_SCORE: Final[float] = 0.0
MAX_MATCH_SCORE: Final[float] = 100.0


# =============================================================================
# Persistence Constants
# =============================================================================

SESSIONS_PARTITION: Final[str] = "sessions"
VECTORS_PARTITION: Final[str] = "vectors"

# Field used as the record key in each partition
PARTITION_KEY_FIELDS: Final[dict[str, str]] = {
    SESSIONS_PARTITION: "user_id",
    VECTORS_PARTITION: "id",
}

# Generated identifier prefixes
USER_ID_PREFIX: Final[str] = "user"
VECTOR_ID_PREFIX: Final[str] = "vec"
ID_SUFFIX_LENGTH: Final[int] = 9


# =============================================================================
# Job Sites
# =============================================================================

UNKNOWN_JOB_SITE: Final[str] = "Unknown"

JOB_SITES: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("Indeed", ("indeed.com", "indeed.co.uk", "indeed.ca", "indeed.com.au")),
    ("Reed", ("reed.co.uk",)),
    ("LinkedIn", ("linkedin.com",)),
    ("Glassdoor", ("glassdoor.com", "glassdoor.co.uk")),
    ("Monster", ("monster.com", "monster.co.uk")),
    ("Totaljobs", ("totaljobs.com",)),
    ("CV-Library", ("cv-library.co.uk", "cv-library.com")),
    ("Adzuna", ("adzuna.co.uk", "adzuna.com")),
    ("ZipRecruiter", ("ziprecruiter.com", "ziprecruiter.co.uk")),
    ("SimplyHired", ("simplyhired.com",)),
    ("CareerBuilder", ("careerbuilder.com",)),
    ("Dice", ("dice.com",)),
    ("Stack Overflow", ("stackoverflow.com",)),
    ("AngelList", ("angel.co", "wellfound.com")),
    ("Remote.co", ("remote.co",)),
    ("We Work Remotely", ("weworkremotely.com",)),
)


# =============================================================================
# Enums
# =============================================================================


class ApplicationStatus(str, Enum):
    """Where the user is in the application process for a job."""

    NOT_APPLIED = "not_applied"
    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFER = "offer"
    REJECTED = "rejected"


class JobSitePreference(str, Enum):
    """Per-site preference used to filter and reorder jobs."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    NEUTRAL = "neutral"


class RemotePreference(str, Enum):
    """Preferred working arrangement."""

    REMOTE = "remote"
    ONSITE = "onsite"
    HYBRID = "hybrid"


class TaskPriority(str, Enum):
    """Priority of an interview preparation task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
