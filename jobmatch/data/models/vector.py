"""
Vector index data models.

Entries are immutable once inserted; search results carry the entry's text
and tags alongside the score.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VectorEntry(BaseModel):
    """One embedded text held by the similarity index."""

    model_config = ConfigDict(frozen=True)

    id: str
    embedding: list[float]
    text: str
    tags: dict[str, Any] = Field(default_factory=dict)

    @property
    def entry_type(self) -> Any:
        """Value of the ``type`` discriminator tag."""
        return self.tags.get("type")


class SearchHit(BaseModel):
    """Result of a free-text similarity search (raw cosine score)."""

    text: str
    score: float
    tags: dict[str, Any] = Field(default_factory=dict)


class JobSimilarity(BaseModel):
    """Result of a job similarity lookup, score remapped to [0, 100]."""

    job_id: str
    score: float = Field(ge=0, le=100)
    tags: dict[str, Any] = Field(default_factory=dict)
