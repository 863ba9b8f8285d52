"""Seed a user's resume, home location and preferences from plain data (wizard or YAML)."""
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import yaml

from jobmatcher.log import get_logger
from jobmatcher.models import SHIFTS, IsochroneSet, Resume
from jobmatcher.preferences import build_update
from jobmatcher.profiles import save_isochrones, set_home_location
from jobmatcher.store import DocumentStore

log = get_logger(__name__)


def seed_resume(store: DocumentStore, user_id: str, data: dict[str, Any]) -> Resume:
    resume = Resume.from_dict({**data, "user_id": user_id})
    store.save_resume(resume)
    log.info("Saved resume for user=%s (%d positions)", user_id, len(resume.work_experience))
    return resume


def seed_home(store: DocumentStore, user_id: str, data: dict[str, Any]) -> None:
    """``lat``/``lon`` are required; ``isochrones`` may name a JSON file with the three tiers."""
    set_home_location(store, user_id, float(data["lat"]), float(data["lon"]), data.get("location"))
    iso_path = data.get("isochrones")
    if iso_path:
        with open(Path(iso_path).expanduser(), "r", encoding="utf-8") as f:
            iso = json.load(f)
        iso.setdefault("computed_at", time.time())
        save_isochrones(store, user_id, IsochroneSet.from_dict(iso))


def seed_preferences(store: DocumentStore, user_id: str, data: dict[str, Any]) -> None:
    values = dict(data)
    shifts = values.pop("shifts", None)
    updates = build_update(values)
    if shifts is not None:
        for s in SHIFTS:
            updates[f"shift_{s}"] = s in shifts
    if updates:
        store.upsert_preferences(user_id, updates, time.time())
        log.info("Saved %d preference field(s) for user=%s", len(updates), user_id)


def seed_from_file(store: DocumentStore, path: Path, user_id: str = "") -> str:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Seed file must contain a mapping: {path}")
    user_id = data.get("user_id") or user_id
    if not user_id:
        raise ValueError("Seed file has no user_id and JOBMATCHER_USER_ID is not set")
    if data.get("resume"):
        seed_resume(store, user_id, data["resume"])
    if data.get("home"):
        seed_home(store, user_id, data["home"])
    if data.get("preferences"):
        seed_preferences(store, user_id, data["preferences"])
    return user_id
