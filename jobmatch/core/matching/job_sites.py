"""
Job site detection from posting URLs.
"""

from typing import Iterable, Optional
from urllib.parse import urlparse

from jobmatch.data.models import CustomJobSite
from jobmatch.utils.constants import JOB_SITES, UNKNOWN_JOB_SITE


def _matches(hostname: str, domains: Iterable[str]) -> bool:
    return any(hostname == d or hostname.endswith(f".{d}") for d in domains)


def extract_job_site(url: Optional[str], custom_sites: Optional[Iterable[CustomJobSite]] = None) -> str:
    """
    Resolve the job site name for a URL.

    The hostname is lower-cased and stripped of ``www.``, then matched
    exactly or as a subdomain against user-defined sites first and the
    known sites after. Unrecognised hosts yield their first label.

    Args:
        url: Job posting URL.
        custom_sites: User-defined sites from the session settings.

    Returns:
        Site name, or "Unknown" for empty or unparseable URLs.
    """
    if not url:
        return UNKNOWN_JOB_SITE

    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        return UNKNOWN_JOB_SITE
    if not hostname:
        return UNKNOWN_JOB_SITE

    hostname = hostname.lower().removeprefix("www.")

    for site in custom_sites or ():
        if _matches(hostname, site.domains):
            return site.name

    for name, domains in JOB_SITES:
        if _matches(hostname, domains):
            return name

    return hostname.split(".")[0] or UNKNOWN_JOB_SITE


def get_all_job_site_names() -> list[str]:
    """Names of every known job site."""
    return [name for name, _domains in JOB_SITES]


def is_job_from_site(url: Optional[str], site_name: str) -> bool:
    """Check whether a URL belongs to ``site_name``."""
    return extract_job_site(url) == site_name
