"""
Job-matching agent: one conversation thread per search session.

A turn runs: load user context → model step → validate the reply against the
turn protocol → execute silent/search tools → repeat until the model answers
in text, asks the user something, or runs out of steps. Nothing from a turn
is persisted unless the whole turn succeeds; the one exception is
savePreference, which commits immediately. A todoWrite plan is held until
the final session save.
"""
from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from jobmatcher.config import Settings
from jobmatcher.context import build_user_context
from jobmatcher.errors import JobMatcherError, Unauthenticated
from jobmatcher.llm import ChatModel, OpenAIChatModel
from jobmatcher.log import get_logger
from jobmatcher.models import SearchSession, ToolCall
from jobmatcher.prompts import AGENT_INSTRUCTIONS, FORCE_SEARCH_PROMPT
from jobmatcher.protocol import TurnProtocol, TurnState
from jobmatcher.reminders import ReminderState, get_applicable_reminders
from jobmatcher.search import SearchIndex, get_search_index
from jobmatcher.sessions import cancel_session, create_session, get_owned_session
from jobmatcher.store import DocumentStore, get_store
from jobmatcher.tools import ToolContext, ToolKind, tool_definitions

log = get_logger(__name__)

RESUME_AFTER_SECONDS = 30 * 60


@dataclass
class Runtime:
    store: DocumentStore
    index: SearchIndex
    model: ChatModel
    settings: Settings

    @classmethod
    def from_settings(cls, settings: Settings) -> Runtime:
        return cls(
            store=get_store(settings),
            index=get_search_index(settings),
            model=OpenAIChatModel.from_settings(settings),
            settings=settings,
        )


@dataclass
class TurnResult:
    thread_id: str
    state: TurnState
    text: str
    tool_results: list[dict[str, Any]] = field(default_factory=list)
    pending: ToolCall | None = None
    is_new: bool = False

    @property
    def jobs(self) -> list[dict[str, Any]]:
        """Job cards from this turn's search, if it ran one."""
        for item in self.tool_results:
            if item["name"] == "searchJobs":
                return item["result"]["jobs"]
        return []


def _load_inputs(store: DocumentStore, user_id: str):
    with ThreadPoolExecutor(max_workers=3) as pool:
        resume = pool.submit(store.get_resume, user_id)
        prefs = pool.submit(store.get_preferences, user_id)
        profile = pool.submit(store.get_profile, user_id)
        return resume.result(), prefs.result(), profile.result()


def _tool_message(call_id: str, payload: Any) -> dict[str, Any]:
    return {"role": "tool", "tool_call_id": call_id, "content": json.dumps(payload)}


def build_system_message(
    store: DocumentStore,
    session: SearchSession,
    search_count: int,
    reminders: list[str],
    now: float,
) -> dict[str, Any]:
    resume, prefs, profile = _load_inputs(store, session.user_id)
    context = build_user_context(
        resume,
        prefs,
        profile,
        search_count,
        datetime.fromtimestamp(session.started_at, tz=timezone.utc),
        datetime.fromtimestamp(now, tz=timezone.utc),
    )
    parts = [AGENT_INSTRUCTIONS, context, *reminders]
    return {"role": "system", "content": "\n\n".join(parts)}


def run_turn(runtime: Runtime, session: SearchSession, incoming: list[dict[str, Any]], *, is_new: bool = False) -> TurnResult:
    settings = runtime.settings
    now = time.time()
    returning = bool(session.messages) and now - session.last_active_at > RESUME_AFTER_SECONDS

    protocol = TurnProtocol()
    ctx = ToolContext(session.user_id, session.thread_id, runtime.store, runtime.index, settings, stage_plan=True)
    history = list(session.messages) + list(incoming)
    texts: list[str] = []
    tool_results: list[dict[str, Any]] = []
    pending: ToolCall | None = None

    search_count = session.search_count
    had_results = session.last_search_had_results
    search_context = session.last_search_context
    plan_updated = False
    steps = 0

    for step in range(settings.max_steps):
        steps = step + 1
        reminders = get_applicable_reminders(
            ReminderState(
                turns_since_plan_update=session.turns_since_plan_update,
                approaching_max_steps=step >= settings.max_steps - 2,
                last_search_had_results=had_results,
                is_returning_user=returning and step == 0,
                last_search_context=search_context,
            )
        )
        system = build_system_message(runtime.store, session, search_count, reminders, now)
        reply = runtime.model.complete([system, *history], tool_definitions())

        # Whole reply is checked before anything in it runs
        validated = protocol.check_reply(reply.text, reply.tool_calls)
        history.append(reply.as_message())
        if reply.text:
            texts.append(reply.text)
        if not validated:
            break

        for call, spec, args in validated:
            if spec.kind is ToolKind.INTERACTIVE:
                pending = call
                log.info("[%s] Waiting on user for %s", session.thread_id, call.name)
                continue
            result = spec.handler(ctx, args)
            if spec.kind is ToolKind.SEARCH:
                search_count += 1
                had_results = bool(result["jobs"])
                search_context = result["searchContext"]
            elif call.name == "todoWrite":
                plan_updated = True
            history.append(_tool_message(call.id, result))
            tool_results.append({"id": call.id, "name": call.name, "result": result})

        if protocol.state is TurnState.AWAITING_USER:
            break
    else:
        log.warning("[%s] Stopped after %d steps", session.thread_id, settings.max_steps)

    if ctx.staged_plan is not None:
        session.plan = ctx.staged_plan
    session.messages = history
    session.search_count = search_count
    session.last_search_had_results = had_results
    session.last_search_context = search_context
    session.turns_since_plan_update = 0 if plan_updated else session.turns_since_plan_update + 1
    session.pending_tool_call = pending
    session.last_active_at = now
    runtime.store.save_session(session)

    log.info(
        "[%s] Turn complete: steps=%d, tools=%d, searches=%d, state=%s",
        session.thread_id, steps, len(tool_results), search_count, protocol.state.value,
    )
    return TurnResult(
        thread_id=session.thread_id,
        state=protocol.state,
        text="\n\n".join(texts),
        tool_results=tool_results,
        pending=pending,
        is_new=is_new,
    )


def open_thread(runtime: Runtime, user_id: str | None, prompt: str, thread_id: str | None = None) -> SearchSession:
    if not user_id:
        raise Unauthenticated()
    return create_session(runtime.store, user_id, prompt, thread_id=thread_id)


def start_search(runtime: Runtime, user_id: str | None, prompt: str, thread_id: str | None = None) -> TurnResult:
    """Begin a new search, or continue *thread_id* if the caller already has one."""
    if thread_id:
        return send_message(runtime, user_id, thread_id, prompt)
    session = open_thread(runtime, user_id, prompt)
    return run_turn(runtime, session, [{"role": "user", "content": prompt}], is_new=True)


def send_message(runtime: Runtime, user_id: str | None, thread_id: str, message: str) -> TurnResult:
    session = get_owned_session(runtime.store, user_id, thread_id)
    if session.pending_tool_call is not None:
        # A typed reply answers the open question
        incoming = [_tool_message(session.pending_tool_call.id, {"userResponse": message})]
    else:
        incoming = [{"role": "user", "content": message}]
    return run_turn(runtime, session, incoming)


def submit_tool_result(
    runtime: Runtime,
    user_id: str | None,
    thread_id: str,
    tool_call_id: str,
    result: Any,
) -> TurnResult:
    """Answer the thread's pending interactive call and resume the conversation."""
    session = get_owned_session(runtime.store, user_id, thread_id)
    pending = session.pending_tool_call
    if pending is None or pending.id != tool_call_id:
        raise JobMatcherError(f"No pending tool call {tool_call_id!r} on {thread_id}")
    return run_turn(runtime, session, [_tool_message(tool_call_id, result)])


def force_search(runtime: Runtime, user_id: str | None, thread_id: str | None = None) -> TurnResult:
    return start_search(runtime, user_id, FORCE_SEARCH_PROMPT, thread_id=thread_id)


def cancel_search(runtime: Runtime, user_id: str | None, thread_id: str) -> None:
    cancel_session(runtime.store, user_id, thread_id)
