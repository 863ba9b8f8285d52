from __future__ import annotations

from typing import Any

import pytest

from jobmatcher.agent import Runtime
from jobmatcher.config import Settings
from jobmatcher.llm import ChatModel, ModelReply
from jobmatcher.models import IsochroneSet, Resume, ToolCall, UserProfile, WorkExperience
from jobmatcher.search import InMemoryIndex
from jobmatcher.store import InMemoryStore
from jobmatcher.tools import ToolContext

USER = "user_1"

# Square around downtown Tampa, GeoJSON order: [lon, lat]
TAMPA_30_MIN = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"contour": 30},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-82.6, 27.8], [-82.3, 27.8], [-82.3, 28.1], [-82.6, 28.1], [-82.6, 27.8]]],
            },
        }
    ],
}


def make_job(job_id: str, **overrides: Any) -> dict[str, Any]:
    doc = {
        "id": job_id,
        "title": "Warehouse Associate",
        "company": "Acme Logistics",
        "url": f"https://jobs.example.com/{job_id}",
        "description": "Pick, pack and ship orders.",
        "location": [27.95, -82.46],
        "city": "Tampa",
        "state": "FL",
        "salary_min": 16,
        "salary_max": 19,
        "salary_type": "hourly",
        "second_chance": True,
        "shift_morning": True,
    }
    doc.update(overrides)
    return doc


class ScriptedModel(ChatModel):
    """Replays canned replies and records what it was sent."""

    def __init__(self, replies: list[ModelReply]) -> None:
        self.replies = list(replies)
        self.requests: list[list[dict[str, Any]]] = []

    def complete(self, messages, tools) -> ModelReply:
        self.requests.append(messages)
        if not self.replies:
            return ModelReply(text="Done.")
        return self.replies.pop(0)


def call(call_id: str, name: str, **arguments: Any) -> ToolCall:
    return ToolCall(id=call_id, name=name, arguments=arguments)


@pytest.fixture
def settings() -> Settings:
    return Settings(search_backend="memory", store_backend="memory", api_key="test")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def index() -> InMemoryIndex:
    return InMemoryIndex()


@pytest.fixture
def ctx(store, index, settings) -> ToolContext:
    return ToolContext(USER, "thread_test", store, index, settings)


@pytest.fixture
def transit_user(store) -> None:
    """Home in Tampa, isochrones for every tier, hard transit requirement at 30 minutes."""
    store.save_profile(
        UserProfile(
            user_id=USER,
            location="Tampa, FL",
            home_lat=27.95,
            home_lon=-82.46,
            isochrones=IsochroneSet(
                ten_minute=TAMPA_30_MIN, thirty_minute=TAMPA_30_MIN, sixty_minute=TAMPA_30_MIN, computed_at=1.0
            ),
        )
    )
    store.upsert_preferences(USER, {"require_public_transit": True, "max_commute_minutes": 30}, 1.0)


@pytest.fixture
def warehouse_resume(store) -> Resume:
    resume = Resume(
        user_id=USER,
        skills="Forklift, pallet jack, inventory",
        work_experience=[WorkExperience(position="Warehouse Associate", company="Acme")],
    )
    store.save_resume(resume)
    return resume


def make_runtime(store, index, settings, replies: list[ModelReply]) -> Runtime:
    return Runtime(store=store, index=index, model=ScriptedModel(replies), settings=settings)


