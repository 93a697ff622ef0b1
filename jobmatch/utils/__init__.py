"""
Utility modules for the job matching core.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants
- exceptions: Error taxonomy
"""

from jobmatch.utils.config import (
    AppSettings,
    get_settings,
    reload_settings,
    ROOT_DIR,
    PACKAGE_DIR,
    DATA_DIR,
)
from jobmatch.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    EMBEDDING_DIMENSION,
    ApplicationStatus,
    JobSitePreference,
    RemotePreference,
    TaskPriority,
)
from jobmatch.utils.exceptions import (
    JobMatchError,
    JobNotFoundError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from jobmatch.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    LoggerMixin,
)

__all__ = [
    # Config
    "AppSettings",
    "get_settings",
    "reload_settings",
    "ROOT_DIR",
    "PACKAGE_DIR",
    "DATA_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "EMBEDDING_DIMENSION",
    "ApplicationStatus",
    "JobSitePreference",
    "RemotePreference",
    "TaskPriority",
    # Exceptions
    "JobMatchError",
    "JobNotFoundError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "LoggerMixin",
]
