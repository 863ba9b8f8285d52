"""Incremental preference updates and the sanitized view the agent reads."""
from __future__ import annotations

import dataclasses
from typing import Any

from jobmatcher.models import SHIFTS, JobPreferences, UserProfile

SHIFT_FIELDS: tuple[str, ...] = tuple(f"shift_{s}" for s in SHIFTS)

# Tool argument name -> JobPreferences attribute
PREFERENCE_FIELDS: dict[str, str] = {
    "maxCommuteMinutes": "max_commute_minutes",
    "preferSecondChance": "prefer_second_chance",
    "requirePublicTransit": "require_public_transit",
    "requireSecondChance": "require_second_chance",
    "shiftMorning": "shift_morning",
    "shiftAfternoon": "shift_afternoon",
    "shiftEvening": "shift_evening",
    "shiftOvernight": "shift_overnight",
    "shiftFlexible": "shift_flexible",
}


def build_update(values: dict[str, Any], clear_other_shifts: bool = False) -> dict[str, Any]:
    """Turn partial preference values into a field update.

    Unset (``None``) values are dropped. With *clear_other_shifts*, every
    shift flag the update does not mention is forced to False, so
    "only mornings" leaves exactly ``shift_morning`` true.
    """
    updates = {name: value for name, value in values.items() if value is not None}
    if clear_other_shifts:
        for name in SHIFT_FIELDS:
            updates.setdefault(name, False)
    return updates


def apply_update(
    current: JobPreferences | None,
    user_id: str,
    updates: dict[str, Any],
    now: float,
) -> JobPreferences:
    """Return a new preferences record with *updates* applied; fields not named are kept."""
    base = current if current is not None else JobPreferences(user_id=user_id)
    unknown = set(updates) - {f.name for f in dataclasses.fields(JobPreferences)}
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
    if "max_commute_minutes" in updates and updates["max_commute_minutes"] not in (10, 30, 60, None):
        raise ValueError("max_commute_minutes must be 10, 30 or 60")
    return dataclasses.replace(base, **updates, user_id=user_id, updated_at=now)


def sanitize_preferences(
    prefs: JobPreferences | None,
    profile: UserProfile | None,
    default_commute_minutes: int = 30,
) -> dict[str, Any]:
    """Preferences as the agent sees them: flags and presence bits, never raw isochrones."""
    p = prefs or JobPreferences(user_id="")
    return {
        "hasHomeLocation": bool(profile and profile.has_home_location),
        "hasTransitZones": bool(profile and profile.isochrones),
        "maxCommuteMinutes": p.max_commute_minutes or default_commute_minutes,
        "preferSecondChance": bool(p.prefer_second_chance),
        "requirePublicTransit": bool(p.require_public_transit),
        "requireSecondChance": bool(p.require_second_chance),
        "shiftPreferences": {s: getattr(p, f"shift_{s}") for s in SHIFTS},
        "transitRequirements": {
            "bus": p.require_bus_accessible,
            "rail": p.require_rail_accessible,
        },
    }
