from __future__ import annotations

import json

import pytest

from jobmatcher.models import IsochroneSet, Resume, SearchSession, ToolCall, UserProfile, WorkExperience
from jobmatcher.profiles import save_isochrones, set_home_location
from jobmatcher.reviews import list_saved_jobs, review_job, unsave_job
from jobmatcher.errors import ThreadNotFound, Unauthenticated
from jobmatcher.sessions import cancel_session, create_session, get_active_session, get_owned_session
from jobmatcher.store import InMemoryStore, JsonFileStore

from conftest import TAMPA_30_MIN


@pytest.fixture(params=["memory", "jsonfile"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "store.json")


def test_profile_resume_and_preferences(any_store) -> None:
    any_store.save_profile(UserProfile(user_id="u", location="Tampa, FL", home_lat=27.9, home_lon=-82.4))
    any_store.save_resume(Resume(user_id="u", skills="cooking", work_experience=[WorkExperience(position="Cook")]))
    any_store.upsert_preferences("u", {"shift_morning": True}, 1.0)
    any_store.upsert_preferences("u", {"require_second_chance": True}, 2.0)

    assert any_store.get_profile("u").location == "Tampa, FL"
    assert any_store.get_resume("u").work_experience[0].position == "Cook"
    prefs = any_store.get_preferences("u")
    assert prefs.shift_morning is True
    assert prefs.require_second_chance is True
    assert prefs.updated_at == 2.0
    assert any_store.get_profile("nobody") is None


def test_session_round_trip(any_store) -> None:
    session = SearchSession(
        thread_id="t1",
        user_id="u",
        initial_prompt="hi",
        started_at=10.0,
        pending_tool_call=ToolCall(id="c1", name="askQuestion", arguments={"question": "?"}),
        messages=[{"role": "user", "content": "hi"}],
    )
    any_store.save_session(session)
    assert any_store.get_session("t1") == session
    assert any_store.update_plan("missing", []) is False


def test_sessions_lifecycle(any_store) -> None:
    first = create_session(any_store, "u", "one", now=1.0)
    second = create_session(any_store, "u", "two", now=2.0)
    assert get_active_session(any_store, "u").thread_id == second.thread_id
    assert any_store.get_session(first.thread_id).status == "completed"
    assert [s.thread_id for s in any_store.list_sessions("u")] == [second.thread_id, first.thread_id]

    cancel_session(any_store, "u", second.thread_id)
    assert get_active_session(any_store, "u") is None

    with pytest.raises(ThreadNotFound):
        get_owned_session(any_store, "intruder", first.thread_id)
    with pytest.raises(Unauthenticated):
        get_owned_session(any_store, "", first.thread_id)


def test_reviews(any_store) -> None:
    review_job(any_store, "u", "j1", "saved", {"title": "Cook"})
    review_job(any_store, "u", "j2", "skipped")
    review_job(any_store, "other", "j3", "saved")

    assert any_store.get_reviewed_job_ids("u") == {"j1", "j2"}
    assert [r["job_id"] for r in list_saved_jobs(any_store, "u")] == ["j1"]
    assert unsave_job(any_store, "u", "j1") == {"removed": True}
    assert unsave_job(any_store, "u", "j1") == {"removed": False}
    with pytest.raises(ValueError):
        review_job(any_store, "u", "j4", "loved")


def test_new_home_location_drops_old_isochrones(any_store) -> None:
    seen = []
    set_home_location(any_store, "u", 27.95, -82.46, "Tampa, FL")
    save_isochrones(any_store, "u", IsochroneSet(thirty_minute=TAMPA_30_MIN, computed_at=5.0))
    assert any_store.get_profile("u").isochrones.thirty_minute == TAMPA_30_MIN

    set_home_location(any_store, "u", 28.54, -81.38, on_location_changed=lambda *a: seen.append(a))
    profile = any_store.get_profile("u")
    assert profile.isochrones is None
    assert profile.location == "Tampa, FL"
    assert seen == [("u", 28.54, -81.38)]

    with pytest.raises(ValueError):
        set_home_location(any_store, "u", 123.0, 0.0)


def test_jsonfile_store_persists_across_instances(tmp_path) -> None:
    path = tmp_path / "nested" / "store.json"
    JsonFileStore(path).upsert_preferences("u", {"max_commute_minutes": 60}, 1.0)

    reopened = JsonFileStore(path)
    assert reopened.get_preferences("u").max_commute_minutes == 60
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) >= {"profiles", "jobPreferences", "resumes", "jobSearches", "jobReviews"}
    assert not path.with_suffix(".json.tmp").exists()


def test_jsonfile_store_rejects_corrupt_file(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonFileStore(path).get_profile("u")


def test_memory_store_returns_copies() -> None:
    store = InMemoryStore()
    store.save_resume(Resume(user_id="u", skills="a"))
    resume = store.get_resume("u")
    resume.skills = "changed"
    assert store.get_resume("u").skills == "a"
