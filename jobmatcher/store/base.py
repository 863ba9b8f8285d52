"""Document store interface.

Records are kept as plain dicts grouped in named collections; every
operation runs inside ``transaction()`` so a backend only has to know how
to load, save and lock its data.
"""
from __future__ import annotations

import contextlib
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any, Iterator

from jobmatcher.models import (
    JobPreferences,
    Resume,
    SearchSession,
    TodoItem,
    UserProfile,
)
from jobmatcher.preferences import apply_update

COLLECTIONS: tuple[str, ...] = ("profiles", "jobPreferences", "resumes", "jobSearches", "jobReviews")


def _review_key(user_id: str, job_id: str) -> str:
    return f"{user_id}:{job_id}"


class DocumentStore(ABC):
    @abstractmethod
    def _load(self) -> dict[str, dict[str, Any]]:
        """Return a private copy of every collection."""

    @abstractmethod
    def _save(self, data: dict[str, dict[str, Any]]) -> None:
        pass

    @abstractmethod
    def _locked(self, exclusive: bool) -> contextlib.AbstractContextManager:
        pass

    @contextlib.contextmanager
    def transaction(self, write: bool = True) -> Iterator[dict[str, dict[str, Any]]]:
        with self._locked(exclusive=write):
            data = self._load()
            for name in COLLECTIONS:
                data.setdefault(name, {})
            yield data
            if write:
                self._save(data)

    # ── profiles ────────────────────────────────────────────────────────

    def get_profile(self, user_id: str) -> UserProfile | None:
        with self.transaction(write=False) as data:
            raw = data["profiles"].get(user_id)
        return UserProfile.from_dict(raw) if raw else None

    def save_profile(self, profile: UserProfile) -> None:
        with self.transaction() as data:
            data["profiles"][profile.user_id] = profile.to_dict()

    # ── preferences ─────────────────────────────────────────────────────

    def get_preferences(self, user_id: str) -> JobPreferences | None:
        with self.transaction(write=False) as data:
            raw = data["jobPreferences"].get(user_id)
        return JobPreferences.from_dict(raw) if raw else None

    def upsert_preferences(self, user_id: str, updates: dict[str, Any], now: float) -> JobPreferences:
        with self.transaction() as data:
            raw = data["jobPreferences"].get(user_id)
            current = JobPreferences.from_dict(raw) if raw else None
            merged = apply_update(current, user_id, updates, now)
            data["jobPreferences"][user_id] = merged.to_dict()
        return merged

    # ── resumes ─────────────────────────────────────────────────────────

    def get_resume(self, user_id: str) -> Resume | None:
        with self.transaction(write=False) as data:
            raw = data["resumes"].get(user_id)
        return Resume.from_dict(raw) if raw else None

    def save_resume(self, resume: Resume) -> None:
        with self.transaction() as data:
            data["resumes"][resume.user_id] = resume.to_dict()

    # ── search sessions (one per conversation thread) ───────────────────

    def get_session(self, thread_id: str) -> SearchSession | None:
        with self.transaction(write=False) as data:
            raw = data["jobSearches"].get(thread_id)
        return SearchSession.from_dict(raw) if raw else None

    def save_session(self, session: SearchSession) -> None:
        with self.transaction() as data:
            data["jobSearches"][session.thread_id] = session.to_dict()

    def list_sessions(self, user_id: str) -> list[SearchSession]:
        with self.transaction(write=False) as data:
            rows = [r for r in data["jobSearches"].values() if r.get("user_id") == user_id]
        sessions = [SearchSession.from_dict(r) for r in rows]
        return sorted(sessions, key=lambda s: s.started_at, reverse=True)

    def get_plan(self, thread_id: str) -> list[TodoItem] | None:
        session = self.get_session(thread_id)
        return session.plan if session else None

    def update_plan(self, thread_id: str, todos: list[TodoItem]) -> bool:
        """Replace the thread's plan. Returns False when the thread has no session."""
        with self.transaction() as data:
            raw = data["jobSearches"].get(thread_id)
            if raw is None:
                return False
            raw["plan"] = [asdict(t) for t in todos]
        return True

    # ── job reviews ─────────────────────────────────────────────────────

    def put_review(
        self,
        user_id: str,
        job_id: str,
        status: str,
        snapshot: dict | None,
        now: float,
    ) -> None:
        with self.transaction() as data:
            data["jobReviews"][_review_key(user_id, job_id)] = {
                "user_id": user_id,
                "job_id": job_id,
                "status": status,
                "job_snapshot": snapshot,
                "reviewed_at": now,
            }

    def delete_review(self, user_id: str, job_id: str) -> bool:
        with self.transaction() as data:
            return data["jobReviews"].pop(_review_key(user_id, job_id), None) is not None

    def list_reviews(self, user_id: str) -> list[dict[str, Any]]:
        with self.transaction(write=False) as data:
            return [dict(r) for r in data["jobReviews"].values() if r.get("user_id") == user_id]

    def get_reviewed_job_ids(self, user_id: str) -> set[str]:
        return {r["job_id"] for r in self.list_reviews(user_id)}
