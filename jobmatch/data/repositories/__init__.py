"""
Repositories for the job matching core.

This module provides repository classes over persistence partitions,
implementing the repository pattern for clean data access.
"""

# Base repository
from .base import BaseRepository

# Entity repositories
from .session_repository import SessionRepository

__all__ = [
    "BaseRepository",
    "SessionRepository",
]
