"""
Base model classes for the job matching data models.

Provides common fields and functionality shared across all models.
"""

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from jobmatch.utils.constants import ID_SUFFIX_LENGTH

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    """
    Generate a collision-resistant identifier.

    Format is ``<prefix>_<epoch milliseconds>_<random [a-z0-9]>``.
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class TimestampMixin(BaseModel):
    """Mixin providing timestamp fields for models."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BaseRecord(TimestampMixin):
    """
    Base model for records kept in a persistence partition.

    Records are stored as plain dictionaries; the repository decides which
    field acts as the key.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    def model_dump_record(self) -> dict[str, Any]:
        """Convert model to a storage-ready dictionary."""
        return self.model_dump(exclude_none=True)


class EmbeddedModel(BaseModel):
    """
    Base model for embedded records (subdocuments).

    Use this for models that are embedded within other records
    rather than stored in their own partition.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )
