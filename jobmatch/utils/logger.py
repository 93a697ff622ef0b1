"""
Logging for the job matching core.

Loguru sinks: an optional colored console, a rotating application log and
an audit log that only receives records bound with ``audit_type`` (ranking
runs and session resets).
"""

import sys
from typing import Any

from loguru import logger

from jobmatch.utils.config import AppSettings, LoggingSettings, get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> | <level>{message}</level>"
)
AUDIT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[audit_type]} | {message}"

# Substrings of keys whose values never reach the audit log
REDACTED_KEYS = frozenset({"password", "secret", "token", "api_key", "credential", "resume"})
REDACTED = "***REDACTED***"


def _add_console_sink(log_settings: LoggingSettings, diagnose: bool) -> None:
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=log_settings.level,
        colorize=True,
        diagnose=diagnose,
    )


def _add_file_sinks(log_settings: LoggingSettings, diagnose: bool) -> None:
    log_file = log_settings.file_path
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        format=log_settings.format,
        level=log_settings.level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        backtrace=True,
        diagnose=diagnose,
        enqueue=True,
    )
    logger.add(
        log_file.with_name(log_settings.audit_file_name),
        format=AUDIT_FORMAT,
        level="INFO",
        filter=lambda record: "audit_type" in record["extra"],
        rotation=log_settings.audit_rotation,
        retention=log_settings.audit_retention,
        enqueue=True,
    )


def setup_logging(settings: AppSettings | None = None) -> None:
    """Replace loguru's default handler with the configured sinks."""
    settings = settings or get_settings()
    # Variable values stay out of tracebacks unless debugging in development
    diagnose = settings.debug and settings.environment == "development"

    logger.remove()
    logger.configure(extra={"name": "jobmatch"})
    if settings.logging.console_output:
        _add_console_sink(settings.logging, diagnose)
    _add_file_sinks(settings.logging, diagnose)

    logger.debug(f"Logging configured at {settings.logging.level} for {settings.environment}")


def get_logger(name: str) -> Any:
    """Logger bound to a module or class name."""
    return logger.bind(name=name)


def _redact(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            key: REDACTED if any(part in key.lower() for part in REDACTED_KEYS) else _redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_redact(item) for item in data]
    return data


def audit_log(action: str, details: dict[str, Any], audit_type: str = "RANKING") -> None:
    """
    Write an audit record.

    Args:
        action: What happened, e.g. ``jobs_ranked`` or ``session_cleared``.
        details: Context for the entry; credential and resume keys are redacted.
        audit_type: Audit category (RANKING, SESSION).
    """
    logger.bind(audit_type=audit_type).info(f"{action} | {_redact(details)}")


class LoggerMixin:
    """Gives a class a ``logger`` bound to its class name."""

    @property
    def logger(self) -> Any:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(type(self).__name__)
        return self._logger


try:
    setup_logging()
except (OSError, ValueError) as e:
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    logger.warning(f"Logging setup failed, using defaults: {e}")
