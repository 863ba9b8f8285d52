"""Tools the job-matching agent can call.

Every handler takes the acting user from ``ToolContext`` (the authenticated
identity), never from model-supplied arguments. Interactive tools have no
handler: they pause the conversation until the user answers in the UI.
"""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import ValidationError

from jobmatcher.config import Settings
from jobmatcher.errors import NoThreadContext, ProtocolViolation, Unauthenticated
from jobmatcher.filters import resolve_search_plan
from jobmatcher.geo import filter_by_isochrone
from jobmatcher.log import get_logger
from jobmatcher.models import JobDocument, JobPreferences, SanitizedJob, TodoItem, UserProfile
from jobmatcher.preferences import PREFERENCE_FIELDS, build_update, sanitize_preferences
from jobmatcher.schemas import (
    AskPreferenceArgs,
    AskQuestionArgs,
    CollectLocationArgs,
    CollectResumeArgs,
    NoArgs,
    SavePreferenceArgs,
    SearchJobsArgs,
    TodoWriteArgs,
    ToolArgs,
)
from jobmatcher.search import SearchIndex
from jobmatcher.store import DocumentStore

log = get_logger(__name__)

DESCRIPTION_PREVIEW = 100


class ToolKind(str, Enum):
    SILENT = "silent"
    SEARCH = "search"
    INTERACTIVE = "interactive"


@dataclass
class ToolContext:
    user_id: str | None
    thread_id: str | None
    store: DocumentStore
    index: SearchIndex
    settings: Settings
    # When set, todoWrite holds the plan here and the turn saves it with the session
    stage_plan: bool = False
    staged_plan: list[TodoItem] | None = None


@dataclass(frozen=True)
class ToolSpec:
    name: str
    kind: ToolKind
    args_model: type[ToolArgs]
    description: str
    handler: Callable[[ToolContext, Any], Any] | None = None

    def definition(self) -> dict[str, Any]:
        """OpenAI-style function definition sent to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }

    def parse(self, arguments: Any) -> ToolArgs:
        if arguments is None:
            arguments = {}
        try:
            return self.args_model.model_validate(arguments)
        except ValidationError as exc:
            raise ProtocolViolation(
                f"Invalid arguments for {self.name}: {exc.error_count()} error(s)", tool_name=self.name
            ) from exc


def _require_user(ctx: ToolContext) -> str:
    if not ctx.user_id:
        raise Unauthenticated()
    return ctx.user_id


def load_user_state(store: DocumentStore, user_id: str) -> tuple[JobPreferences | None, UserProfile | None]:
    """Fetch preferences and profile concurrently; the two reads are independent."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        prefs = pool.submit(store.get_preferences, user_id)
        profile = pool.submit(store.get_profile, user_id)
        return prefs.result(), profile.result()


# ── Sanitizing ───────────────────────────────────────────────────────────


def _money(value: float) -> str:
    if float(value).is_integer():
        return f"${int(value):,}"
    return "$" + f"{value:,.2f}".rstrip("0").rstrip(".")


def format_salary(salary_min: float | None, salary_max: float | None, unit: str | None = None) -> str | None:
    """``"$15 - $20/hourly"``, ``"$15/hourly"`` or None when neither bound is set."""
    # A bound of 0 counts as unset
    if not salary_min and not salary_max:
        return None
    unit = unit or "hourly"
    low = _money(salary_min) if salary_min else ""
    high = _money(salary_max) if salary_max else ""
    if low and high and low != high:
        return f"{low} - {high}/{unit}"
    return f"{low or high}/{unit}"


def sanitize_job(doc: JobDocument) -> SanitizedJob:
    description = None
    if doc.description:
        description = doc.description[:DESCRIPTION_PREVIEW]
        if len(doc.description) > DESCRIPTION_PREVIEW:
            description += "..."
    return SanitizedJob(
        id=doc.id,
        title=doc.title,
        company=doc.company,
        location=f"{doc.city}, {doc.state}" if doc.city and doc.state else None,
        description=description,
        salary=format_salary(doc.salary_min, doc.salary_max, doc.salary_type),
        is_second_chance=doc.second_chance,
        second_chance_tier=doc.second_chance_tier,
        shifts=doc.shifts(),
        transit_accessible=doc.bus_accessible or doc.rail_accessible,
        bus_accessible=doc.bus_accessible,
        rail_accessible=doc.rail_accessible,
        is_urgent=doc.is_urgent,
        is_easy_apply=doc.is_easy_apply,
        url=doc.url,
    )


def _parse_hits(hits: list[Any]) -> list[JobDocument]:
    docs: list[JobDocument] = []
    for hit in hits:
        try:
            docs.append(JobDocument.from_hit(hit))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            log.warning("[Tool:searchJobs] skipping malformed hit: %s", exc)
    return docs


# ── Handlers ─────────────────────────────────────────────────────────────


def get_my_resume(ctx: ToolContext, args: NoArgs) -> dict[str, Any] | None:
    user_id = _require_user(ctx)
    resume = ctx.store.get_resume(user_id)
    if resume is None:
        log.info("[Tool:getMyResume] No resume found")
        return None
    log.info(
        "[Tool:getMyResume] skills=%s, summary=%s, exp=%d, edu=%d",
        bool(resume.skills), bool(resume.summary), len(resume.work_experience), len(resume.education),
    )
    # No ids, timestamps or storage references
    return {
        "summary": resume.summary,
        "skills": resume.skills,
        "experience": [asdict(e) for e in resume.work_experience],
        "education": [asdict(e) for e in resume.education],
    }


def get_my_job_preferences(ctx: ToolContext, args: NoArgs) -> dict[str, Any]:
    user_id = _require_user(ctx)
    prefs, profile = load_user_state(ctx.store, user_id)
    result = sanitize_preferences(prefs, profile, ctx.settings.default_commute_minutes)
    log.info(
        "[Tool:getMyJobPreferences] home=%s, transit=%s, commute=%dmin",
        result["hasHomeLocation"], result["hasTransitZones"], result["maxCommuteMinutes"],
    )
    return result


def search_jobs(ctx: ToolContext, args: SearchJobsArgs) -> dict[str, Any]:
    user_id = _require_user(ctx)
    log.info("[Tool:searchJobs] query=%r, limit=%d", args.query[:40], args.limit)

    prefs, profile = load_user_state(ctx.store, user_id)
    plan = resolve_search_plan(
        args,
        prefs,
        profile,
        geo_radius_km=ctx.settings.geo_radius_km,
        overfetch_factor=ctx.settings.overfetch_factor,
        default_commute_minutes=ctx.settings.default_commute_minutes,
    )

    response = ctx.index.search(plan.query, plan.facets, plan.shifts, plan.geo, plan.fetch_limit)
    docs = _parse_hits(response.hits)

    if plan.commute_tier is not None and profile is not None and profile.isochrones is not None:
        docs = filter_by_isochrone(docs, profile.isochrones, plan.commute_tier)

    reviewed = ctx.store.get_reviewed_job_ids(user_id)
    docs = [d for d in docs if d.id not in reviewed][: plan.limit]

    jobs = [sanitize_job(d).to_dict() for d in docs]
    log.info("[Tool:searchJobs] → found=%d, returned=%d jobs", response.found, len(jobs))
    return {"jobs": jobs, "searchContext": plan.search_context(response.found).to_dict()}


def save_preference(ctx: ToolContext, args: SavePreferenceArgs) -> dict[str, Any]:
    user_id = _require_user(ctx)
    values = args.model_dump(exclude={"clearOtherShifts"})
    updates = build_update(
        {PREFERENCE_FIELDS[name]: value for name, value in values.items()},
        clear_other_shifts=bool(args.clearOtherShifts),
    )
    if not updates:
        log.info("[Tool:savePreference] No preferences to save")
        return {"saved": False, "reason": "no_values"}

    ctx.store.upsert_preferences(user_id, updates, time.time())
    arg_names = {attr: name for name, attr in PREFERENCE_FIELDS.items()}
    fields = [arg_names[attr] for attr in updates]
    log.info("[Tool:savePreference] Saving: %s%s", ", ".join(fields), " (exclusive)" if args.clearOtherShifts else "")
    return {"saved": True, "fields": fields}


def todo_write(ctx: ToolContext, args: TodoWriteArgs) -> dict[str, Any]:
    _require_user(ctx)
    if not ctx.thread_id:
        raise NoThreadContext()
    todos = [TodoItem(**item.model_dump()) for item in args.todos]
    if ctx.stage_plan:
        ctx.staged_plan = todos
        updated = ctx.store.get_session(ctx.thread_id) is not None
    else:
        updated = ctx.store.update_plan(ctx.thread_id, todos)
    remaining = sum(1 for t in todos if t.status != "completed")
    log.info("[Tool:todoWrite] Updated plan: %d remaining of %d", remaining, len(todos))
    return {"updated": updated, "remaining": remaining, "total": len(todos)}


def todo_read(ctx: ToolContext, args: NoArgs) -> list[dict[str, Any]]:
    _require_user(ctx)
    if not ctx.thread_id:
        raise NoThreadContext()
    plan = ctx.staged_plan if ctx.staged_plan is not None else ctx.store.get_plan(ctx.thread_id) or []
    log.info("[Tool:todoRead] Read plan: %d todos", len(plan))
    return [asdict(t) for t in plan]


# ── Registry ─────────────────────────────────────────────────────────────

TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="searchJobs",
            kind=ToolKind.SEARCH,
            args_model=SearchJobsArgs,
            handler=search_jobs,
            description=(
                "Search for jobs matching keywords and filters. Only search when you have a job "
                "direction and either a location or the user's OK for broad results. At most one "
                "searchJobs call per turn. Results are filtered by the user's commute zone and saved "
                "requirements automatically. The UI renders job cards; do not restate job details. "
                'Afterwards you may call askQuestion with purpose="post_search" to offer next steps.'
            ),
        ),
        ToolSpec(
            name="savePreference",
            kind=ToolKind.SILENT,
            args_model=SavePreferenceArgs,
            handler=save_preference,
            description=(
                "Silently save a preference the user just stated (shift, commute, transit, fair-chance). "
                'Set clearOtherShifts when the user says "only" or "just"; leave it off for "also". '
                "Only save what the user explicitly said. Not for job type or industry."
            ),
        ),
        ToolSpec(
            name="getMyResume",
            kind=ToolKind.SILENT,
            args_model=NoArgs,
            handler=get_my_resume,
            description="Refresh resume data. Rarely needed: the resume is already in <user-context>.",
        ),
        ToolSpec(
            name="getMyJobPreferences",
            kind=ToolKind.SILENT,
            args_model=NoArgs,
            handler=get_my_job_preferences,
            description="Refresh preference data. Rarely needed: preferences are already in <user-context>.",
        ),
        ToolSpec(
            name="todoWrite",
            kind=ToolKind.SILENT,
            args_model=TodoWriteArgs,
            handler=todo_write,
            description=(
                "Replace your plan for this conversation with the complete, updated todo list. "
                "Keep one item in_progress at a time and mark items completed as soon as they are done."
            ),
        ),
        ToolSpec(
            name="todoRead",
            kind=ToolKind.SILENT,
            args_model=NoArgs,
            handler=todo_read,
            description="Read your current todo list for this conversation.",
        ),
        ToolSpec(
            name="askQuestion",
            kind=ToolKind.INTERACTIVE,
            args_model=AskQuestionArgs,
            description=(
                "Ask the user ONE question with 2-8 clickable options. Must be the final call of the "
                "turn: stop after calling it. After searchJobs, use purpose=\"post_search\" and put a "
                "short summary of result patterns in the preamble."
            ),
        ),
        ToolSpec(
            name="collectLocation",
            kind=ToolKind.INTERACTIVE,
            args_model=CollectLocationArgs,
            description=(
                'Show the home-location setup card. Only when <user-context> says location_ready: NO. '
                "Must be the final call of the turn; write nothing after it."
            ),
        ),
        ToolSpec(
            name="collectResume",
            kind=ToolKind.INTERACTIVE,
            args_model=CollectResumeArgs,
            description=(
                "Show the resume upload card, only when the user asks to upload one. "
                "Must be the final call of the turn; write nothing after it."
            ),
        ),
        ToolSpec(
            name="askPreference",
            kind=ToolKind.INTERACTIVE,
            args_model=AskPreferenceArgs,
            description=(
                "Ask the user to pick a shift, commute or fairChance preference from a fixed form. "
                "Use when you need the preference and the user has not stated it. "
                "Must be the final call of the turn."
            ),
        ),
    )
}


def tool_definitions() -> list[dict[str, Any]]:
    return [spec.definition() for spec in TOOLS.values()]
