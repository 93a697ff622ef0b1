"""
Tests for jobmatch.utils.constants and jobmatch.utils.config: enums, the
job site table and settings validation.
"""

import pytest
from pydantic import ValidationError

from jobmatch.utils.config import AppSettings, VectorSettings
from jobmatch.utils.constants import (
    EMBEDDING_DIMENSION,
    JOB_SITES,
    PARTITION_KEY_FIELDS,
    ApplicationStatus,
    JobSitePreference,
)


# ── Enums ────────────────────────────────────────────────────────────────────


class TestEnums:
    def test_application_status_values(self):
        assert [s.value for s in ApplicationStatus] == [
            "not_applied", "applied", "interviewing", "offer", "rejected",
        ]

    def test_site_preference_is_str(self):
        assert JobSitePreference.EXCLUDE == "exclude"
        assert JobSitePreference("include") is JobSitePreference.INCLUDE


# ── Job site table ───────────────────────────────────────────────────────────


class TestJobSites:
    def test_names_unique(self):
        names = [name for name, _domains in JOB_SITES]
        assert len(names) == len(set(names))

    def test_domains_lower_case_without_www(self):
        for _name, domains in JOB_SITES:
            assert domains
            for domain in domains:
                assert domain == domain.lower()
                assert not domain.startswith("www.")


# ── Settings ─────────────────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self):
        settings = AppSettings()
        assert settings.vector.dimension == EMBEDDING_DIMENSION
        assert settings.matching.context_resume_chars == 2000
        assert settings.environment == "testing"

    def test_partition_defaults_match_key_fields(self):
        settings = AppSettings()
        assert set(PARTITION_KEY_FIELDS) == {
            settings.persistence.sessions_partition,
            settings.persistence.vectors_partition,
        }

    @pytest.mark.parametrize("field", ["dimension", "search_top_k", "similar_jobs_limit"])
    def test_vector_sizes_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            VectorSettings(**{field: 0})

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("VECTOR_SEARCH_TOP_K", "9")
        assert AppSettings().vector.search_top_k == 9
