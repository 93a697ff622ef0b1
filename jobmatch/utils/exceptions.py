"""
Exception types raised by the job matching core.
"""


class JobMatchError(Exception):
    """Base class for all job matching core errors."""


class NotFoundError(JobMatchError):
    """A session record required by an identity operation does not exist."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class JobNotFoundError(NotFoundError):
    """A job id is not present in the user's job list."""


class ValidationError(JobMatchError, ValueError):
    """Input carries nothing to work with (e.g. a blank ranking query)."""


class PersistenceError(JobMatchError):
    """Durable storage failed to read or write."""

    def __init__(self, message: str, partition: str | None = None):
        super().__init__(message)
        self.partition = partition
