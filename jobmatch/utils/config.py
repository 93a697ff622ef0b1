"""
Configuration management for the job matching core.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = ROOT_DIR / "jobmatch"
DATA_DIR = ROOT_DIR / "data"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "jobmatch"
    username: str | None = None
    password: str | None = None

    @property
    def connection_string(self) -> str:
        """Generate MongoDB connection string."""
        if self.username and self.password:
            return f"mongodb://{self.username}:{self.password}@{self.host}:{self.port}"
        return f"mongodb://{self.host}:{self.port}"


class PersistenceSettings(BaseSettings):
    """Durable storage backend and partition names."""

    model_config = SettingsConfigDict(env_prefix="PERSISTENCE_")

    backend: Literal["mongodb", "memory"] = "mongodb"
    sessions_partition: str = "sessions"
    vectors_partition: str = "vectors"


class VectorSettings(BaseSettings):
    """Similarity index configuration."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_")

    dimension: int = 128
    search_top_k: int = 5
    similar_jobs_limit: int = 8

    @field_validator("dimension", "search_top_k", "similar_jobs_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Sizes must be positive."""
        if v <= 0:
            raise ValueError("Value must be a positive integer")
        return v


class MatchingSettings(BaseSettings):
    """Job matching and context building configuration."""

    model_config = SettingsConfigDict(env_prefix="MATCH_")

    context_top_k: int = 5
    context_resume_chars: int = 2000
    context_fallback_jobs: int = 3


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "jobmatch.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True
    audit_file_name: str = "audit.log"
    audit_rotation: str = "1 week"
    audit_retention: str = "12 weeks"


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "JobMatch"
    version: str = "0.1.0"
    description: str = "Job matching core: vector ranking and session storage"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    vector: VectorSettings = Field(default_factory=VectorSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
