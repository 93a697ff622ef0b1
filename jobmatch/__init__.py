"""
JobMatch - job matching core.

Turns resume, skills and job descriptions into fixed-size vectors, ranks
jobs against a user profile, and keeps per-user session state.
"""

__app_name__ = "JobMatch"
__version__ = "0.1.0"
