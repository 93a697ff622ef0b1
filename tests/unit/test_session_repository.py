"""
Tests for jobmatch.data.repositories.session_repository: the per-user
session store.
"""

import asyncio
import re

import pytest

from jobmatch.data.models import CustomLink, ExtractedSkills, JobUpdate, SessionUpdate
from jobmatch.utils.constants import ApplicationStatus, JobSitePreference
from jobmatch.utils.exceptions import JobNotFoundError, NotFoundError, PersistenceError


# ── save / load / update / clear ─────────────────────────────────────────────


class TestSave:
    @pytest.mark.asyncio
    async def test_generates_user_id(self, store):
        user_id = await store.save({})
        assert re.fullmatch(r"user_\d+_[a-z0-9]+", user_id)

    @pytest.mark.asyncio
    async def test_new_session_timestamps_equal(self, store):
        user_id = await store.save({})
        session = await store.load(user_id)
        assert session is not None
        assert session.created_at == session.updated_at

    @pytest.mark.asyncio
    async def test_save_with_id_creates(self, store):
        user_id = await store.save(SessionUpdate(user_id="u1", skills=["python"]))
        assert user_id == "u1"
        assert (await store.load("u1")).skills == ["python"]

    @pytest.mark.asyncio
    async def test_save_existing_behaves_as_update(self, store):
        await store.save({"user_id": "u1", "skills": ["python"], "resume_raw": "cv"})
        first = await store.load("u1")
        await store.save({"user_id": "u1", "skills": ["go"]})
        session = await store.load("u1")
        assert session.skills == ["go"]
        assert session.resume_raw == "cv"
        assert session.created_at == first.created_at
        assert session.updated_at >= first.updated_at

    @pytest.mark.asyncio
    async def test_save_accepts_none(self, store):
        user_id = await store.save()
        assert await store.load(user_id) is not None


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_returns_none(self, store):
        assert await store.load("nobody") is None


class TestUpdate:
    @pytest.mark.asyncio
    async def test_missing_session_raises(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.update("nobody", {"skills": ["python"]})
        assert exc_info.value.key == "nobody"

    @pytest.mark.asyncio
    async def test_shallow_merge_keeps_other_fields(self, store):
        await store.save({"user_id": "u1", "skills": ["python"], "resume_raw": "cv"})
        session = await store.update("u1", {"seniority": "senior"})
        assert session.skills == ["python"]
        assert session.resume_raw == "cv"
        assert session.seniority == "senior"

    @pytest.mark.asyncio
    async def test_user_id_never_rewritten(self, store):
        await store.save({"user_id": "u1"})
        session = await store.update("u1", {"user_id": "u2", "skills": ["x"]})
        assert session.user_id == "u1"
        assert await store.load("u2") is None

    @pytest.mark.asyncio
    async def test_bumps_updated_at(self, store):
        await store.save({"user_id": "u1"})
        before = await store.load("u1")
        await asyncio.sleep(0.01)
        after = await store.update("u1", {"skills": ["x"]})
        assert after.updated_at > before.updated_at
        assert after.created_at == before.created_at


class TestClear:
    @pytest.mark.asyncio
    async def test_deletes_session(self, store):
        await store.save({"user_id": "u1"})
        await store.clear("u1")
        assert await store.load("u1") is None

    @pytest.mark.asyncio
    async def test_missing_is_noop(self, store):
        await store.clear("nobody")

    @pytest.mark.asyncio
    async def test_get_all(self, store):
        await store.save({"user_id": "u1"})
        await store.save({"user_id": "u2"})
        assert {s.user_id for s in await store.get_all()} == {"u1", "u2"}

    @pytest.mark.asyncio
    async def test_lock_released_after_clear(self, store):
        await store.save({"user_id": "u1"})
        await store.clear("u1")
        assert "u1" not in store._locks


# ── field operations ─────────────────────────────────────────────────────────


class TestProfile:
    @pytest.mark.asyncio
    async def test_creates_session_on_demand(self, store):
        session = await store.update_profile("u1", {"name": "Jane"})
        assert session.profile.name == "Jane"
        assert await store.load("u1") is not None

    @pytest.mark.asyncio
    async def test_merges_field_by_field(self, store, sample_profile):
        await store.update_profile("u1", sample_profile)
        session = await store.update_profile("u1", {"current_title": "Staff Engineer"})
        assert session.profile.current_title == "Staff Engineer"
        assert session.profile.name == "Jane Smith"
        assert session.profile.tech_stack == ["Python", "PostgreSQL"]


class TestJobs:
    @pytest.mark.asyncio
    async def test_update_jobs_replaces_list(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="a"), make_job(id="b")])
        session = await store.update_jobs("u1", [make_job(id="c")])
        assert [j.id for j in session.jobs] == ["c"]

    @pytest.mark.asyncio
    async def test_add_job_upserts_by_id(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="j1", title="Original")])
        await store.add_job("u1", make_job(id="j1", title="Updated"))
        session = await store.load("u1")
        assert len(session.jobs) == 1
        assert session.jobs[0].title == "Updated"

    @pytest.mark.asyncio
    async def test_add_job_keeps_position(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="a"), make_job(id="b")])
        await store.add_job("u1", make_job(id="a", title="New A"))
        session = await store.load("u1")
        assert [j.id for j in session.jobs] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_add_job_appends_new(self, store, make_job):
        await store.add_job("u1", make_job(id="a"))
        session = await store.add_job("u1", make_job(id="b"))
        assert [j.id for j in session.jobs] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_merge_jobs_keeps_tracking_and_appends(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="a", notes="keep", match_score=70.0)])
        session = await store.merge_jobs("u1", [make_job(id="b"), make_job(id="a", title="Renamed")])
        assert [j.id for j in session.jobs] == ["a", "b"]
        assert session.jobs[0].title == "Renamed"
        assert session.jobs[0].notes == "keep"
        assert session.jobs[0].match_score == 70.0

    @pytest.mark.asyncio
    async def test_apply_match_scores_keeps_stored_fields(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="a"), make_job(id="b", is_favorite=True)])
        ranked = [make_job(id="b", match_score=90.0), make_job(id="a", match_score=55.0)]
        session = await store.apply_match_scores("u1", ranked)
        assert [(j.id, j.match_score) for j in session.jobs] == [("b", 90.0), ("a", 55.0)]
        assert session.jobs[0].is_favorite is True

    @pytest.mark.asyncio
    async def test_apply_match_scores_ignores_unknown_and_keeps_unscored(self, store, make_job):
        await store.update_jobs("u1", [make_job(id="a", match_score=40.0), make_job(id="b")])
        ranked = [make_job(id="b", match_score=60.0), make_job(id="gone", match_score=99.0)]
        session = await store.apply_match_scores("u1", ranked)
        assert [(j.id, j.match_score) for j in session.jobs] == [("b", 60.0), ("a", 40.0)]

    @pytest.mark.asyncio
    async def test_apply_match_scores_seeds_empty_session(self, store, make_job):
        session = await store.apply_match_scores("u1", [make_job(id="a", match_score=50.0)])
        assert [j.id for j in session.jobs] == ["a"]

    @pytest.mark.asyncio
    async def test_skills_and_resume(self, store):
        await store.update_skills("u1", ["python", "sql"])
        session = await store.update_resume("u1", "My resume")
        assert session.skills == ["python", "sql"]
        assert session.resume_raw == "My resume"

    @pytest.mark.asyncio
    async def test_apply_skill_extraction(self, store):
        extraction = ExtractedSkills(skills=["python"], seniority="senior", domains=["fintech"], experience=7)
        session = await store.apply_skill_extraction("u1", extraction)
        assert session.skills == ["python"]
        assert session.seniority == "senior"
        assert session.domains == ["fintech"]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_adds_for_one_user_all_land(self, store, make_job):
        await asyncio.gather(*(store.add_job("u1", make_job(id=f"j{i}")) for i in range(20)))
        session = await store.load("u1")
        assert len(session.jobs) == 20

    @pytest.mark.asyncio
    async def test_users_are_independent(self, store):
        await asyncio.gather(store.update_skills("u1", ["a"]), store.update_skills("u2", ["b"]))
        assert (await store.load("u1")).skills == ["a"]
        assert (await store.load("u2")).skills == ["b"]

    @pytest.mark.asyncio
    async def test_locks_dropped_when_idle(self, store, make_job):
        await asyncio.gather(*(store.add_job("u1", make_job(id=f"j{i}")) for i in range(5)))
        await store.update_skills("u2", ["a"])
        assert store._locks == {}


class TestPersistenceFailures:
    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, store, adapter):
        adapter.fail_writes = True
        with pytest.raises(PersistenceError):
            await store.update_skills("u1", ["python"])


# ── settings ─────────────────────────────────────────────────────────────────


class TestSettings:
    @pytest.mark.asyncio
    async def test_update_settings_stamps_timestamps(self, store):
        session = await store.update_settings("u1", {"job_site_preferences": {"Indeed": "include"}})
        assert session.settings.job_site_preferences == {"Indeed": "include"}
        assert session.settings.created_at is not None
        assert session.settings.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_settings_keeps_created_at(self, store):
        first = await store.update_settings("u1", {"job_site_preferences": {"Indeed": "include"}})
        second = await store.update_settings("u1", {"custom_job_sites": [{"name": "Acme", "domains": ["acme.jobs"]}]})
        assert second.settings.created_at == first.settings.created_at
        assert second.settings.job_site_preferences == {"Indeed": "include"}
        assert second.settings.custom_job_sites[0].name == "Acme"

    @pytest.mark.asyncio
    async def test_site_preference_set_and_neutral_removes(self, store):
        await store.update_job_site_preference("u1", "LinkedIn", JobSitePreference.EXCLUDE)
        await store.update_job_site_preference("u1", "Indeed", "include")
        session = await store.update_job_site_preference("u1", "LinkedIn", "neutral")
        assert session.settings.job_site_preferences == {"Indeed": "include"}

    @pytest.mark.asyncio
    async def test_invalid_preference_rejected(self, store):
        with pytest.raises(ValueError):
            await store.update_job_site_preference("u1", "LinkedIn", "sometimes")

    @pytest.mark.asyncio
    async def test_reset_preferences(self, store):
        await store.update_job_site_preference("u1", "LinkedIn", "exclude")
        session = await store.reset_job_site_preferences("u1")
        assert session.settings.job_site_preferences == {}


# ── job management ───────────────────────────────────────────────────────────


class TestJobManagement:
    @pytest.fixture
    def seeded(self, store, make_job):
        async def _seed():
            await store.update_jobs("u1", [make_job(id="j1", match_score=80.0), make_job(id="j2")])
        return _seed

    @pytest.mark.asyncio
    async def test_update_job_keeps_score(self, store, seeded):
        await seeded()
        job = await store.update_job("u1", "j1", {"summary": "Good fit"})
        assert job.summary == "Good fit"
        assert job.match_score == 80.0
        assert job.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_job_with_model(self, store, seeded):
        await seeded()
        job = await store.update_job("u1", "j1", JobUpdate(match_score=55.5))
        assert job.match_score == 55.5

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self, store, seeded):
        await seeded()
        with pytest.raises(JobNotFoundError):
            await store.toggle_favorite("u1", "missing")

    @pytest.mark.asyncio
    async def test_missing_session_raises(self, store):
        with pytest.raises(NotFoundError):
            await store.update_notes("nobody", "j1", "note")

    @pytest.mark.asyncio
    async def test_toggle_favorite(self, store, seeded):
        await seeded()
        assert (await store.toggle_favorite("u1", "j1")).is_favorite is True
        assert (await store.toggle_favorite("u1", "j1")).is_favorite is False

    @pytest.mark.asyncio
    async def test_applied_status_stamps_applied_date_once(self, store, seeded):
        await seeded()
        job = await store.update_application_status("u1", "j1", ApplicationStatus.APPLIED)
        assert job.application_status == "applied"
        applied_date = job.applied_date
        assert applied_date is not None

        await store.update_application_status("u1", "j1", "interviewing")
        job = await store.update_application_status("u1", "j1", "applied")
        assert job.applied_date == applied_date

    @pytest.mark.asyncio
    async def test_other_status_leaves_applied_date(self, store, seeded):
        await seeded()
        job = await store.update_application_status("u1", "j2", "interviewing")
        assert job.applied_date is None

    @pytest.mark.asyncio
    async def test_notes(self, store, seeded):
        await seeded()
        await store.update_notes("u1", "j2", "Call recruiter")
        session = await store.load("u1")
        assert session.find_job("j2").notes == "Call recruiter"
        assert session.find_job("j1").notes is None

    @pytest.mark.asyncio
    async def test_custom_links(self, store, seeded):
        await seeded()
        await store.add_custom_link("u1", "j1", {"label": "Glassdoor", "url": "https://glassdoor.com/x"})
        await store.add_custom_link("u1", "j1", CustomLink(label="Blog", url="https://blog.example"))
        job = await store.remove_custom_link("u1", "j1", 0)
        assert [link.label for link in job.custom_links] == ["Blog"]

    @pytest.mark.asyncio
    async def test_remove_link_out_of_range_is_noop(self, store, seeded):
        await seeded()
        await store.add_custom_link("u1", "j1", {"label": "A", "url": "https://a"})
        job = await store.remove_custom_link("u1", "j1", 5)
        assert len(job.custom_links) == 1

    @pytest.mark.asyncio
    async def test_supporting_materials(self, store, seeded):
        await seeded()
        await store.add_supporting_material("u1", "j1", {"label": "Portfolio", "url": "https://p"})
        job = await store.remove_supporting_material("u1", "j1", 0)
        assert job.supporting_materials == []
