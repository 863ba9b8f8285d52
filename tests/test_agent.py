from __future__ import annotations

import dataclasses
import json

import pytest

from jobmatcher.agent import cancel_search, force_search, send_message, start_search, submit_tool_result
from jobmatcher.errors import JobMatcherError, ProtocolViolation, ThreadNotFound, Unauthenticated
from jobmatcher.llm import ModelReply
from jobmatcher.prompts import FORCE_SEARCH_PROMPT
from jobmatcher.protocol import TurnState
from jobmatcher.reminders import REMINDERS

from conftest import USER, call, make_job, make_runtime

QUESTION = {
    "question": "Want to narrow these down?",
    "options": [{"id": "nights", "label": "Night shifts"}, {"id": "more", "label": "Show more"}],
    "purpose": "post_search",
}


def test_text_only_turn_is_persisted(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="What kind of work do you want?")])
    result = start_search(runtime, USER, "I need a job")

    assert result.is_new
    assert result.state is TurnState.OPEN
    assert result.text == "What kind of work do you want?"
    session = store.get_session(result.thread_id)
    assert [m["role"] for m in session.messages] == ["user", "assistant"]
    assert session.initial_prompt == "I need a job"
    assert session.turns_since_plan_update == 1
    assert session.last_active_at > 0


def test_system_message_carries_user_context(store, index, settings, warehouse_resume) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="Hi")])
    start_search(runtime, USER, "hello")
    system = runtime.model.requests[0][0]
    assert system["role"] == "system"
    assert "<user-context>" in system["content"]
    assert "Forklift operator (high)" in system["content"]


def test_search_then_question_waits_for_user(store, index, settings) -> None:
    index.add(make_job("j1"), make_job("j2"))
    runtime = make_runtime(
        store,
        index,
        settings,
        [
            ModelReply(text="", tool_calls=[call("s1", "searchJobs", query="warehouse"), call("q1", "askQuestion", **QUESTION)]),
            ModelReply(text="Here are night-shift options."),
        ],
    )
    first = start_search(runtime, USER, "warehouse work")
    assert first.state is TurnState.AWAITING_USER
    assert first.pending.id == "q1"
    assert [j["id"] for j in first.jobs] == ["j1", "j2"]

    session = store.get_session(first.thread_id)
    assert session.pending_tool_call.name == "askQuestion"
    assert session.search_count == 1
    assert session.last_search_had_results is True
    assert [m["role"] for m in session.messages] == ["user", "assistant", "tool"]

    second = submit_tool_result(runtime, USER, first.thread_id, "q1", {"selectedOptionId": "nights"})
    assert second.state is TurnState.OPEN
    assert second.text == "Here are night-shift options."

    sent = runtime.model.requests[-1]
    tool_messages = [m for m in sent if m["role"] == "tool"]
    assert [m["tool_call_id"] for m in tool_messages] == ["s1", "q1"]
    assert json.loads(tool_messages[1]["content"]) == {"selectedOptionId": "nights"}
    assert store.get_session(first.thread_id).pending_tool_call is None


def test_typed_reply_answers_pending_question(store, index, settings) -> None:
    runtime = make_runtime(
        store,
        index,
        settings,
        [ModelReply(text="", tool_calls=[call("q1", "askQuestion", **QUESTION)]), ModelReply(text="Got it.")],
    )
    first = start_search(runtime, USER, "help")
    send_message(runtime, USER, first.thread_id, "overnights please")
    last = runtime.model.requests[-1][-1]
    assert last == {"role": "tool", "tool_call_id": "q1", "content": json.dumps({"userResponse": "overnights please"})}


def test_wrong_tool_call_id_is_rejected(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="", tool_calls=[call("q1", "askQuestion", **QUESTION)])])
    first = start_search(runtime, USER, "help")
    with pytest.raises(JobMatcherError):
        submit_tool_result(runtime, USER, first.thread_id, "nope", {})


def test_protocol_violation_runs_nothing_and_persists_nothing(store, index, settings) -> None:
    index.add(make_job("j1"))
    runtime = make_runtime(
        store,
        index,
        settings,
        [
            ModelReply(
                text="",
                tool_calls=[
                    call("p1", "savePreference", shiftEvening=True),
                    call("q1", "askQuestion", **QUESTION),
                    call("s1", "searchJobs", query="warehouse"),
                ],
            )
        ],
    )
    with pytest.raises(ProtocolViolation):
        start_search(runtime, USER, "find me something")

    assert index.queries == []
    assert store.get_preferences(USER) is None
    [session] = store.list_sessions(USER)
    assert session.messages == []
    assert session.pending_tool_call is None


def test_silent_tool_then_text_in_one_turn(store, index, settings) -> None:
    runtime = make_runtime(
        store,
        index,
        settings,
        [
            ModelReply(text="", tool_calls=[call("p1", "savePreference", shiftMorning=True, clearOtherShifts=True)]),
            ModelReply(text="Saved: mornings only."),
        ],
    )
    result = start_search(runtime, USER, "only mornings")
    assert result.text == "Saved: mornings only."
    assert result.tool_results[0]["result"] == {"saved": True, "fields": ["shiftMorning", "shiftAfternoon", "shiftEvening", "shiftOvernight", "shiftFlexible"]}
    assert store.get_preferences(USER).shifts() == ["morning"]
    # Second step sees the refreshed preferences
    assert "- Preferred shifts: morning" in runtime.model.requests[1][0]["content"]


def test_plan_written_mid_turn_survives(store, index, settings) -> None:
    todos = [{"id": "1", "content": "Search warehouse jobs", "status": "in_progress"}]
    runtime = make_runtime(
        store,
        index,
        settings,
        [ModelReply(text="", tool_calls=[call("t1", "todoWrite", todos=todos)]), ModelReply(text="On it.")],
    )
    result = start_search(runtime, USER, "plan it")
    session = store.get_session(result.thread_id)
    assert [t.content for t in session.plan] == ["Search warehouse jobs"]
    assert session.turns_since_plan_update == 0


def test_plan_is_dropped_when_a_later_step_fails(store, index, settings) -> None:
    todos = [{"id": "1", "content": "Search", "status": "in_progress"}]
    runtime = make_runtime(
        store,
        index,
        settings,
        [
            ModelReply(text="", tool_calls=[call("t1", "todoWrite", todos=todos), call("t2", "todoRead")]),
            ModelReply(
                text="",
                tool_calls=[
                    call("c1", "collectResume", reason="Helps matching"),
                    call("c2", "collectLocation", reason="For commute"),
                ],
            ),
        ],
    )
    with pytest.raises(ProtocolViolation):
        start_search(runtime, USER, "plan then fail")

    # todoRead in the same step already saw the new plan
    tool_msg = runtime.model.requests[1][-1]
    assert json.loads(tool_msg["content"])[0]["content"] == "Search"
    [session] = store.list_sessions(USER)
    assert session.plan is None
    assert session.messages == []


def test_zero_step_budget_does_not_crash(store, index, settings) -> None:
    runtime = make_runtime(store, index, dataclasses.replace(settings, max_steps=0), [ModelReply(text="unused")])
    result = start_search(runtime, USER, "hello")

    assert runtime.model.requests == []
    assert result.text == ""
    assert result.state is TurnState.OPEN
    assert [m["role"] for m in store.get_session(result.thread_id).messages] == ["user"]


def test_step_limit_and_warning(store, index, settings) -> None:
    limited = dataclasses.replace(settings, max_steps=3)
    replies = [ModelReply(text="", tool_calls=[call(f"r{i}", "todoRead")]) for i in range(5)]
    runtime = make_runtime(store, index, limited, replies)
    start_search(runtime, USER, "loop")

    assert len(runtime.model.requests) == 3
    assert REMINDERS["MAX_STEPS_WARNING"] not in runtime.model.requests[0][0]["content"]
    assert REMINDERS["MAX_STEPS_WARNING"] in runtime.model.requests[1][0]["content"]


def test_empty_search_sets_no_results_reminder_next_turn(store, index, settings) -> None:
    runtime = make_runtime(
        store,
        index,
        settings,
        [
            ModelReply(text="", tool_calls=[call("s1", "searchJobs", query="astronaut")]),
            ModelReply(text="Nothing yet."),
            ModelReply(text="Let's broaden it."),
        ],
    )
    first = start_search(runtime, USER, "astronaut jobs")
    assert store.get_session(first.thread_id).last_search_had_results is False
    send_message(runtime, USER, first.thread_id, "ok")
    assert REMINDERS["NO_RESULTS"] in runtime.model.requests[-1][0]["content"]


def test_returning_user_gets_resume_reminder(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="Hi"), ModelReply(text="Welcome back")])
    first = start_search(runtime, USER, "hello")
    session = store.get_session(first.thread_id)
    session.last_active_at -= 2 * 60 * 60
    store.save_session(session)

    send_message(runtime, USER, first.thread_id, "I'm back")
    assert REMINDERS["SESSION_RESUME"] in runtime.model.requests[-1][0]["content"]


def test_identity_is_required_and_threads_are_private(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="Hi")])
    with pytest.raises(Unauthenticated):
        start_search(runtime, None, "hello")
    result = start_search(runtime, USER, "hello")
    with pytest.raises(ThreadNotFound):
        send_message(runtime, "someone_else", result.thread_id, "let me in")


def test_new_search_completes_previous_one(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="a"), ModelReply(text="b")])
    first = start_search(runtime, USER, "one")
    second = start_search(runtime, USER, "two")
    assert store.get_session(first.thread_id).status == "completed"
    assert store.get_session(second.thread_id).status == "active"


def test_force_search_and_cancel(store, index, settings) -> None:
    runtime = make_runtime(store, index, settings, [ModelReply(text="Searching now.")])
    result = force_search(runtime, USER)
    assert runtime.model.requests[0][1] == {"role": "user", "content": FORCE_SEARCH_PROMPT}

    cancel_search(runtime, USER, result.thread_id)
    assert store.get_session(result.thread_id).status == "cancelled"
