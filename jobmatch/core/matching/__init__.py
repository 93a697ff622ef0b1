"""Job ranking, site preferences and coach context."""

from .context_builder import JobContextBuilder, NO_SESSION_MESSAGE
from .job_matcher import JobMatcher, build_query_text
from .job_sites import extract_job_site, get_all_job_site_names, is_job_from_site
from .site_filter import filter_and_prioritize, should_include_job

__all__ = [
    "JobContextBuilder",
    "NO_SESSION_MESSAGE",
    "JobMatcher",
    "build_query_text",
    "extract_job_site",
    "get_all_job_site_names",
    "is_job_from_site",
    "filter_and_prioritize",
    "should_include_job",
]
