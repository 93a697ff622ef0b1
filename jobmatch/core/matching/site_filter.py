"""
Job site preference filtering.

Drops jobs from excluded sites and moves jobs from included sites ahead
of the rest, keeping the incoming order inside each group.
"""

from typing import Mapping, Optional

from jobmatch.data.models import Job
from jobmatch.utils.constants import UNKNOWN_JOB_SITE, JobSitePreference

SitePreferences = Mapping[str, JobSitePreference | str]


def _site_of(job: Job) -> str:
    return job.job_site or UNKNOWN_JOB_SITE


def should_include_job(job: Job, preferences: Optional[SitePreferences]) -> bool:
    """Whether a job survives the site preferences."""
    if not preferences:
        return True
    return preferences.get(_site_of(job)) != JobSitePreference.EXCLUDE


def filter_and_prioritize(jobs: list[Job], preferences: Optional[SitePreferences]) -> list[Job]:
    """
    Apply site preferences to a ranked job list.

    Args:
        jobs: Jobs in ranking order.
        preferences: Site name to preference; sites without an entry are neutral.

    Returns:
        The same list when there are no preferences, otherwise included
        jobs followed by neutral ones.
    """
    if not preferences:
        return jobs

    included: list[Job] = []
    neutral: list[Job] = []
    for job in jobs:
        preference = preferences.get(_site_of(job))
        if preference == JobSitePreference.EXCLUDE:
            continue
        if preference == JobSitePreference.INCLUDE:
            included.append(job)
        else:
            neutral.append(job)

    return included + neutral
