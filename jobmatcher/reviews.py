"""Saved / skipped jobs. Reviewed jobs are never shown again in search results."""
from __future__ import annotations

import time
from typing import Any

from jobmatcher.errors import Unauthenticated
from jobmatcher.log import get_logger
from jobmatcher.store import DocumentStore

log = get_logger(__name__)

REVIEW_STATUSES: tuple[str, ...] = ("saved", "skipped")


def review_job(
    store: DocumentStore,
    user_id: str | None,
    job_id: str,
    status: str,
    snapshot: dict[str, Any] | None = None,
) -> None:
    """Record (or overwrite) the user's verdict on a job."""
    if not user_id:
        raise Unauthenticated()
    if status not in REVIEW_STATUSES:
        raise ValueError(f"Review status must be one of {REVIEW_STATUSES}, got {status!r}")
    store.put_review(user_id, job_id, status, snapshot, time.time())
    log.debug("Reviewed %s → %s", job_id, status)


def unsave_job(store: DocumentStore, user_id: str | None, job_id: str) -> dict[str, bool]:
    if not user_id:
        raise Unauthenticated()
    return {"removed": store.delete_review(user_id, job_id)}


def list_saved_jobs(store: DocumentStore, user_id: str | None) -> list[dict[str, Any]]:
    """Saved reviews, newest first."""
    if not user_id:
        raise Unauthenticated()
    saved = [r for r in store.list_reviews(user_id) if r.get("status") == "saved"]
    return sorted(saved, key=lambda r: r.get("reviewed_at") or 0, reverse=True)
