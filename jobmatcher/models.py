"""Data models for profiles, preferences, resumes, jobs and search sessions."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

SHIFTS: tuple[str, ...] = ("morning", "afternoon", "evening", "overnight", "flexible")
COMMUTE_TIERS: tuple[int, ...] = (10, 30, 60)
TODO_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "cancelled")


@dataclass
class IsochroneSet:
    """Transit-reachability polygons (GeoJSON FeatureCollections) per commute tier."""

    ten_minute: dict | None = None
    thirty_minute: dict | None = None
    sixty_minute: dict | None = None
    computed_at: float = 0.0

    def tier(self, minutes: int) -> dict | None:
        if minutes == 10:
            return self.ten_minute
        if minutes == 30:
            return self.thirty_minute
        if minutes == 60:
            return self.sixty_minute
        raise ValueError(f"Unsupported commute tier: {minutes}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IsochroneSet:
        return cls(
            ten_minute=data.get("ten_minute"),
            thirty_minute=data.get("thirty_minute"),
            sixty_minute=data.get("sixty_minute"),
            computed_at=float(data.get("computed_at") or 0.0),
        )


@dataclass
class UserProfile:
    user_id: str
    location: str | None = None
    home_lat: float | None = None
    home_lon: float | None = None
    isochrones: IsochroneSet | None = None
    updated_at: float = 0.0

    @property
    def has_home_location(self) -> bool:
        return self.home_lat is not None and self.home_lon is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["isochrones"] = self.isochrones.to_dict() if self.isochrones else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProfile:
        iso = data.get("isochrones")
        return cls(
            user_id=data["user_id"],
            location=data.get("location"),
            home_lat=data.get("home_lat"),
            home_lon=data.get("home_lon"),
            isochrones=IsochroneSet.from_dict(iso) if iso else None,
            updated_at=float(data.get("updated_at") or 0.0),
        )


@dataclass
class JobPreferences:
    """Per-user search preferences. ``None`` means the user never set the field."""

    user_id: str
    max_commute_minutes: int | None = None
    shift_morning: bool | None = None
    shift_afternoon: bool | None = None
    shift_evening: bool | None = None
    shift_overnight: bool | None = None
    shift_flexible: bool | None = None
    require_public_transit: bool | None = None
    require_bus_accessible: bool | None = None
    require_rail_accessible: bool | None = None
    require_second_chance: bool | None = None
    prefer_second_chance: bool | None = None
    prefer_easy_apply: bool | None = None
    prefer_urgent: bool | None = None
    updated_at: float = 0.0

    def shifts(self) -> list[str]:
        """Shifts flagged true, in canonical order."""
        return [s for s in SHIFTS if getattr(self, f"shift_{s}")]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobPreferences:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class WorkExperience:
    position: str | None = None
    company: str | None = None
    description: str | None = None
    achievements: str | None = None


@dataclass
class Education:
    degree: str | None = None
    field: str | None = None
    institution: str | None = None


@dataclass
class Resume:
    user_id: str
    summary: str | None = None
    skills: str | None = None
    work_experience: list[WorkExperience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Resume:
        return cls(
            user_id=data["user_id"],
            summary=data.get("summary"),
            skills=data.get("skills"),
            work_experience=[WorkExperience(**e) for e in data.get("work_experience") or []],
            education=[Education(**e) for e in data.get("education") or []],
        )


@dataclass
class JobDocument:
    """A search-index record. Built from raw hits; raises on malformed input."""

    id: str
    title: str
    company: str
    url: str
    description: str | None = None
    location: tuple[float, float] | None = None  # (lat, lon)
    city: str | None = None
    state: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    salary_type: str | None = None
    second_chance: bool = False
    second_chance_tier: str | None = None
    shift_morning: bool = False
    shift_afternoon: bool = False
    shift_evening: bool = False
    shift_overnight: bool = False
    shift_flexible: bool = False
    bus_accessible: bool = False
    rail_accessible: bool = False
    is_urgent: bool = False
    is_easy_apply: bool = False

    @classmethod
    def from_hit(cls, doc: dict[str, Any]) -> JobDocument:
        for key in ("id", "title", "company", "url"):
            if not isinstance(doc.get(key), str) or not doc[key]:
                raise ValueError(f"job document missing {key!r}")

        location = doc.get("location")
        coords: tuple[float, float] | None = None
        if location is not None:
            if not isinstance(location, (list, tuple)) or len(location) != 2:
                raise ValueError(f"job {doc['id']} has malformed location {location!r}")
            coords = (float(location[0]), float(location[1]))

        def _num(key: str) -> float | None:
            value = doc.get(key)
            return float(value) if value is not None else None

        return cls(
            id=doc["id"],
            title=doc["title"],
            company=doc["company"],
            url=doc["url"],
            description=doc.get("description"),
            location=coords,
            city=doc.get("city"),
            state=doc.get("state"),
            salary_min=_num("salary_min"),
            salary_max=_num("salary_max"),
            salary_type=doc.get("salary_type"),
            second_chance=bool(doc.get("second_chance")),
            second_chance_tier=doc.get("second_chance_tier"),
            shift_morning=bool(doc.get("shift_morning")),
            shift_afternoon=bool(doc.get("shift_afternoon")),
            shift_evening=bool(doc.get("shift_evening")),
            shift_overnight=bool(doc.get("shift_overnight")),
            shift_flexible=bool(doc.get("shift_flexible")),
            bus_accessible=bool(doc.get("bus_accessible")),
            rail_accessible=bool(doc.get("rail_accessible")),
            is_urgent=bool(doc.get("is_urgent")),
            is_easy_apply=bool(doc.get("is_easy_apply")),
        )

    def shifts(self) -> list[str]:
        return [s for s in SHIFTS if getattr(self, f"shift_{s}")]


@dataclass
class SanitizedJob:
    """What the agent and UI get to see of a job."""

    id: str
    title: str
    company: str
    location: str | None
    description: str | None
    salary: str | None
    is_second_chance: bool
    second_chance_tier: str | None
    shifts: list[str]
    transit_accessible: bool
    bus_accessible: bool
    rail_accessible: bool
    is_urgent: bool
    is_easy_apply: bool
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "salary": self.salary,
            "isSecondChance": self.is_second_chance,
            "secondChanceTier": self.second_chance_tier,
            "shifts": list(self.shifts),
            "transitAccessible": self.transit_accessible,
            "busAccessible": self.bus_accessible,
            "railAccessible": self.rail_accessible,
            "isUrgent": self.is_urgent,
            "isEasyApply": self.is_easy_apply,
            "url": self.url,
        }


@dataclass
class SearchContext:
    """Provenance of a search: the filters and location state actually applied."""

    query: str
    total_found: int
    city: str | None
    state: str | None
    within_commute_zone: bool
    max_commute_minutes: int | None
    home_location: str | None
    second_chance_required: bool
    second_chance_preferred: bool
    bus_required: bool
    rail_required: bool
    shifts: list[str]
    urgent_only: bool
    easy_apply_only: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "totalFound": self.total_found,
            "location": {
                "city": self.city,
                "state": self.state,
                "withinCommuteZone": self.within_commute_zone,
                "maxCommuteMinutes": self.max_commute_minutes,
                "homeLocation": self.home_location,
            },
            "filters": {
                "secondChanceRequired": self.second_chance_required,
                "secondChancePreferred": self.second_chance_preferred,
                "busRequired": self.bus_required,
                "railRequired": self.rail_required,
                "shifts": list(self.shifts),
                "urgentOnly": self.urgent_only,
                "easyApplyOnly": self.easy_apply_only,
            },
        }


@dataclass
class TodoItem:
    id: str
    content: str
    status: str = "pending"
    priority: str = "medium"


@dataclass
class ToolCall:
    """One tool invocation emitted by the model."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchSession:
    """A conversation thread and the per-thread state the agent keeps across turns."""

    thread_id: str
    user_id: str
    initial_prompt: str
    status: str = "active"
    started_at: float = 0.0
    last_active_at: float = 0.0
    completed_at: float | None = None
    plan: list[TodoItem] | None = None
    search_count: int = 0
    turns_since_plan_update: int = 0
    last_search_had_results: bool | None = None
    last_search_context: dict | None = None
    pending_tool_call: ToolCall | None = None
    messages: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SearchSession:
        plan = data.get("plan")
        pending = data.get("pending_tool_call")
        return cls(
            thread_id=data["thread_id"],
            user_id=data["user_id"],
            initial_prompt=data.get("initial_prompt", ""),
            status=data.get("status", "active"),
            started_at=float(data.get("started_at") or 0.0),
            last_active_at=float(data.get("last_active_at") or 0.0),
            completed_at=data.get("completed_at"),
            plan=[TodoItem(**t) for t in plan] if plan is not None else None,
            search_count=int(data.get("search_count") or 0),
            turns_since_plan_update=int(data.get("turns_since_plan_update") or 0),
            last_search_had_results=data.get("last_search_had_results"),
            last_search_context=data.get("last_search_context"),
            pending_tool_call=ToolCall(**pending) if pending else None,
            messages=list(data.get("messages") or []),
        )
