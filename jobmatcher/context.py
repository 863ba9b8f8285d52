"""Build the ``<user-context>`` block injected into every agent turn.

Pure formatting over data the caller already fetched. The output is
deterministic for a given input and clock, so tests can compare it exactly.
"""
from __future__ import annotations

from datetime import datetime

from jobmatcher.hints import infer_direction_hints
from jobmatcher.models import JobPreferences, Resume, UserProfile

SUMMARY_LIMIT = 150
SKILLS_LIMIT = 100
ELLIPSIS = "..."


def truncate(text: str, limit: int) -> str:
    """Cap *text* at *limit* characters, appending ``...`` only when something was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def _fair_chance_line(prefs: JobPreferences) -> str:
    if prefs.require_second_chance:
        return "- Fair-chance employers: REQUIRED"
    if prefs.prefer_second_chance:
        return "- Fair-chance employers: Preferred"
    return "- Fair-chance employers: No specific preference"


def build_user_context(
    resume: Resume | None,
    preferences: JobPreferences | None,
    profile: UserProfile | None,
    search_count: int,
    session_started: datetime,
    now: datetime | None = None,
) -> str:
    now = now or datetime.now(session_started.tzinfo)
    lines: list[str] = [
        "<user-context>",
        "This is automatically injected context about the current user. Use this to decide your next step.",
        "",
    ]

    location_set = bool(profile and profile.has_home_location)
    location_label = (profile.location if profile else None) or "coordinates available"

    lines.append("## Profile Completeness")
    lines.append(f"- Resume: {'Uploaded' if resume else 'NOT UPLOADED'}")
    lines.append(f"- Location: {f'Set ({location_label})' if location_set else 'NOT SET'}")
    lines.append(f"- Preferences: {'Some saved' if preferences else 'None saved'}")
    lines.append("")

    hints = infer_direction_hints(resume)
    fair_chance_required = bool(preferences and preferences.require_second_chance)

    lines.append("## Derived Hints")
    if hints:
        top = hints[0]
        lines.append("- Job direction hints:")
        lines.extend(f"  - {h.label} ({h.confidence})" for h in hints)
        lines.append(f'- auto_pick_direction: "{top.label}" (use this if user defers to you)')
        direction_ready = f'YES - use "{top.label}" if user defers'
    else:
        lines.append("- Job direction hints: None (resume missing or unclear)")
        lines.append("- auto_pick_direction: None available")
        direction_ready = "NO (need to ask or search broad)"
    lines.append("- Search readiness:")
    lines.append(f"  - direction_ready: {direction_ready}")
    lines.append(f"  - location_ready: {'YES' if location_set else 'NO'}")
    lines.append(f"  - fair_chance_required: {'YES' if fair_chance_required else 'NO/UNKNOWN'}")
    lines.append("")

    lines.append("## Resume")
    if resume:
        count = len(resume.work_experience)
        lines.append(f"- Work history: {count} position{'' if count == 1 else 's'} listed")
        if resume.work_experience:
            recent = resume.work_experience[0]
            lines.append(f"- Most recent: {recent.position or 'Untitled'} at {recent.company or 'Unknown'}")
        skills = truncate(resume.skills, SKILLS_LIMIT) if resume.skills else "None listed"
        lines.append(f"- Skills: {skills}")
        if resume.summary:
            lines.append(f"- Summary: {truncate(resume.summary, SUMMARY_LIMIT)}")
    else:
        lines.append("- Status: Not uploaded yet")
    lines.append("")

    lines.append("## Location")
    if location_set:
        lines.append(f"- Home location: {(profile.location if profile else None) or 'Location set'}")
    else:
        lines.append("- Home location: NOT SET")
    lines.append("")

    lines.append("## Preferences")
    if preferences:
        lines.append(_fair_chance_line(preferences))
        if preferences.max_commute_minutes:
            lines.append(f"- Max commute: {preferences.max_commute_minutes} minutes")
        shifts = preferences.shifts()
        if shifts:
            lines.append(f"- Preferred shifts: {', '.join(shifts)}")
    else:
        lines.append("- Status: No preferences saved yet")
    lines.append("")

    lines.append("## This Session")
    lines.append(f"- Searches performed: {search_count}")
    minutes = int((now - session_started).total_seconds() // 60)
    if minutes > 5:
        lines.append(f"- Session duration: {minutes} minutes")

    lines.append("</user-context>")
    return "\n".join(lines)
