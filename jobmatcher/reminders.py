"""System reminders appended to the agent's instructions when the session calls for them."""
from __future__ import annotations

from dataclasses import dataclass, field

STALE_PLAN_TURNS = 5

REMINDERS: dict[str, str] = {
    "MAX_STEPS_WARNING": """<system-reminder>
You're approaching the maximum number of steps for this turn. Prioritize:
1. Complete any in-progress tasks
2. Present results if you have them
3. Summarize what's been done and what remains
4. Let the user know they can continue the conversation
</system-reminder>""",
    "NO_RESULTS": """<system-reminder>
The last search returned no results. Consider:
1. Suggesting the user broaden their criteria
2. Trying alternative search terms
3. Being honest that this combination of requirements may be difficult to fill
4. Offering to adjust specific criteria
</system-reminder>""",
    "SESSION_RESUME": """<system-reminder>
The user is returning to an existing conversation. Briefly remind them where you left off before continuing.
</system-reminder>""",
    "STALE_PLAN": """<system-reminder>
Your todo list may be stale. If you've completed tasks or the situation has changed, update your plan with todoWrite now.
</system-reminder>""",
}

# searchContext filter key -> how to name it to the user
_FILTER_NAMES: dict[str, str] = {
    "secondChanceRequired": "fair-chance employers only",
    "busRequired": "bus accessible",
    "railRequired": "rail accessible",
    "urgentOnly": "urgent hiring only",
    "easyApplyOnly": "easy apply only",
}


@dataclass
class ReminderState:
    turns_since_plan_update: int = 0
    approaching_max_steps: bool = False
    last_search_had_results: bool | None = None
    is_returning_user: bool = False
    last_search_context: dict | None = field(default=None)


def active_filter_names(search_context: dict) -> list[str]:
    """Human names of the restrictions a search ran with, for "loosen X" suggestions."""
    names: list[str] = []
    filters = search_context.get("filters") or {}
    for key, name in _FILTER_NAMES.items():
        if filters.get(key):
            names.append(name)
    if filters.get("shifts"):
        names.append("shifts: " + ", ".join(filters["shifts"]))
    location = search_context.get("location") or {}
    if location.get("withinCommuteZone"):
        names.append(f"{location.get('maxCommuteMinutes')}-minute transit commute zone")
    if location.get("city"):
        names.append(f"city: {location['city']}")
    if location.get("state"):
        names.append(f"state: {location['state']}")
    return names


def _filtered_out_reminder(search_context: dict) -> str:
    names = active_filter_names(search_context)
    listed = "\n".join(f"- {n}" for n in names) or "- (no explicit filters)"
    return (
        "<system-reminder>\n"
        f"The last search matched {search_context.get('totalFound', 0)} jobs, but none passed the "
        "user's filters. Offer to loosen ONE of these specific filters instead of retrying the same search:\n"
        f"{listed}\n"
        "</system-reminder>"
    )


def get_applicable_reminders(state: ReminderState) -> list[str]:
    reminders: list[str] = []

    if state.turns_since_plan_update >= STALE_PLAN_TURNS:
        reminders.append(REMINDERS["STALE_PLAN"])

    if state.approaching_max_steps:
        reminders.append(REMINDERS["MAX_STEPS_WARNING"])

    if state.last_search_had_results is False:
        ctx = state.last_search_context or {}
        if ctx.get("totalFound"):
            reminders.append(_filtered_out_reminder(ctx))
        else:
            reminders.append(REMINDERS["NO_RESULTS"])

    if state.is_returning_user:
        reminders.append(REMINDERS["SESSION_RESUME"])

    return reminders
