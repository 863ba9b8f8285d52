"""Search sessions: one record per conversation thread."""
from __future__ import annotations

import time
import uuid

from jobmatcher.errors import ThreadNotFound, Unauthenticated
from jobmatcher.log import get_logger
from jobmatcher.models import SearchSession
from jobmatcher.store import DocumentStore

log = get_logger(__name__)


def new_thread_id() -> str:
    return f"thread_{uuid.uuid4().hex[:16]}"


def create_session(
    store: DocumentStore,
    user_id: str,
    prompt: str,
    thread_id: str | None = None,
    now: float | None = None,
) -> SearchSession:
    """Start a session; any other active session of the user is marked completed."""
    now = now if now is not None else time.time()
    for other in active_sessions(store, user_id):
        other.status = "completed"
        other.completed_at = now
        store.save_session(other)
        log.debug("Completed previous session %s", other.thread_id)

    session = SearchSession(
        thread_id=thread_id or new_thread_id(),
        user_id=user_id,
        initial_prompt=prompt,
        started_at=now,
    )
    store.save_session(session)
    log.info("Created session %s for user=%s", session.thread_id, user_id)
    return session


def active_sessions(store: DocumentStore, user_id: str) -> list[SearchSession]:
    return [s for s in store.list_sessions(user_id) if s.status == "active"]


def get_active_session(store: DocumentStore, user_id: str) -> SearchSession | None:
    active = active_sessions(store, user_id)
    return active[0] if active else None


def get_owned_session(store: DocumentStore, user_id: str | None, thread_id: str) -> SearchSession:
    if not user_id:
        raise Unauthenticated()
    session = store.get_session(thread_id)
    if session is None or session.user_id != user_id:
        # Same error for a missing thread and someone else's thread
        raise ThreadNotFound(f"No such thread: {thread_id}")
    return session


def cancel_session(store: DocumentStore, user_id: str | None, thread_id: str) -> SearchSession:
    session = get_owned_session(store, user_id, thread_id)
    session.status = "cancelled"
    session.completed_at = time.time()
    session.pending_tool_call = None
    store.save_session(session)
    log.info("Cancelled session %s", thread_id)
    return session
