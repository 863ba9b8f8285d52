#!/usr/bin/env python3
"""
Interactive onboarding wizard: seeds a user's resume, home location and
job preferences into the document store.

    python onboard.py
    python onboard.py --from seed.yaml     # non-interactive

Walks through: who you are → resume → home location → preferences → saved.
A seed file has the same sections as the wizard (user_id, resume, home,
preferences); there is an example at the bottom of this file.
Seeding itself lives in jobmatcher.seed.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobmatcher.config import ensure_dirs, get_env, load_settings
from jobmatcher.log import get_logger
from jobmatcher.models import SHIFTS, Education, Resume, WorkExperience
from jobmatcher.seed import seed_from_file, seed_home, seed_preferences
from jobmatcher.store import DocumentStore, get_store

log = get_logger(__name__)

# ── Helpers ──────────────────────────────────────────────────────────────


def _ask(prompt: str, default: str = "") -> str:
    hint = f" [{default}]" if default else ""
    val = input(f"  {prompt}{hint}: ").strip()
    return val or default


def _ask_yn(prompt: str, default: bool = True) -> bool:
    hint = "Y/n" if default else "y/N"
    val = input(f"  {prompt} ({hint}): ").strip().lower()
    if not val:
        return default
    return val in ("y", "yes")


def _banner() -> None:
    print()
    print("╔════════════════════════════════════════════╗")
    print("║        Job Matcher — Profile Setup         ║")
    print("╚════════════════════════════════════════════╝")
    print()


def _step(num: int, total: int, title: str) -> None:
    print(f"\n{'─'*50}")
    print(f"  Step {num}/{total}: {title}")
    print(f"{'─'*50}")


# ── Steps ────────────────────────────────────────────────────────────────


def step_user() -> str:
    _step(1, 4, "Who are you?")
    user_id = _ask("User id", get_env("JOBMATCHER_USER_ID"))
    while not user_id:
        print("  ✗ A user id is required")
        user_id = _ask("User id")
    return user_id


def step_resume(store: DocumentStore, user_id: str) -> None:
    _step(2, 4, "Resume")
    if not _ask_yn("Add work history now?", default=True):
        print("  ⚠  No resume — the agent will ask for one or search broadly")
        return

    summary = _ask("One-line summary (optional)")
    skills = _ask("Skills (comma-separated)")
    jobs: list[WorkExperience] = []
    print("\n  Most recent job first. Leave the position blank to stop.")
    while True:
        position = _ask("Position")
        if not position:
            break
        company = _ask("Company")
        description = _ask("What did you do there?")
        jobs.append(WorkExperience(position=position, company=company or None, description=description or None))

    schooling: list[Education] = []
    degree = _ask("Highest education (e.g. GED, Associate's) or Enter to skip")
    if degree:
        schooling.append(Education(degree=degree, institution=_ask("School") or None))

    resume = Resume(
        user_id=user_id,
        summary=summary or None,
        skills=skills or None,
        work_experience=jobs,
        education=schooling,
    )
    store.save_resume(resume)
    print(f"  ✓ Resume saved ({len(jobs)} position{'s' if len(jobs) != 1 else ''})")


def step_home(store: DocumentStore, user_id: str) -> None:
    _step(3, 4, "Home location")
    print("  Used to find jobs you can reach by transit. Coordinates are")
    print("  never shown to the agent, only whether a location is set.\n")
    coords = _ask("Home as lat,lon (or Enter to skip)")
    if not coords:
        print("  ⚠  No home location — searches won't be limited by commute")
        return
    lat, _, lon = coords.partition(",")
    try:
        data: dict[str, Any] = {"lat": float(lat), "lon": float(lon)}
    except ValueError:
        print(f"  ✗ Could not read coordinates: {coords}")
        return
    data["location"] = _ask("Place name (e.g. Tampa, FL)") or None
    data["isochrones"] = _ask("Transit-zone GeoJSON file (optional)").strip("'\"") or None
    try:
        seed_home(store, user_id, data)
    except (OSError, ValueError) as exc:
        print(f"  ✗ {exc}")
        return
    print("  ✓ Home location saved")


def step_preferences(store: DocumentStore, user_id: str) -> None:
    _step(4, 4, "Preferences")
    prefs: dict[str, Any] = {}

    commute = _ask("Max commute in minutes (10/30/60, Enter to skip)")
    if commute in ("10", "30", "60"):
        prefs["max_commute_minutes"] = int(commute)

    shifts = _ask(f"Shifts you can work ({', '.join(SHIFTS)}; comma-separated, Enter for any)")
    if shifts:
        chosen = [s.strip().lower() for s in shifts.split(",") if s.strip().lower() in SHIFTS]
        if chosen:
            prefs["shifts"] = chosen

    if _ask_yn("Only show fair-chance employers?", default=False):
        prefs["require_second_chance"] = True
    elif _ask_yn("Prefer fair-chance employers?", default=True):
        prefs["prefer_second_chance"] = True
    if _ask_yn("Must be reachable by public transit?", default=False):
        prefs["require_public_transit"] = True

    seed_preferences(store, user_id, prefs)
    print("  ✓ Preferences saved")


# ── Main ─────────────────────────────────────────────────────────────────


def main() -> int:
    parser = argparse.ArgumentParser(description="Set up a job matcher profile")
    parser.add_argument("--from", dest="seed", type=Path, help="seed the store from a YAML file")
    args = parser.parse_args()

    ensure_dirs()
    store = get_store(load_settings())

    if args.seed:
        user_id = seed_from_file(store, args.seed, get_env("JOBMATCHER_USER_ID"))
        print(f"  ✓ Seeded profile for {user_id} from {args.seed}")
        return 0

    _banner()
    print("  Press Enter to skip any step.\n")
    user_id = step_user()
    step_resume(store, user_id)
    step_home(store, user_id)
    step_preferences(store, user_id)
    log.info("Onboarding complete for user=%s", user_id)

    print()
    print("╔════════════════════════════════════════════╗")
    print("║            Setup Complete!                 ║")
    print("╚════════════════════════════════════════════╝")
    print()
    print("  Start a search:")
    print(f"    JOBMATCHER_USER_ID={user_id} python run_agent.py")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())


# Example seed file:
#
#   user_id: demo
#   resume:
#     skills: forklift, inventory, pallet jack
#     work_experience:
#       - position: Warehouse Associate
#         company: Acme Logistics
#   home:
#     lat: 27.95
#     lon: -82.46
#     location: Tampa, FL
#     isochrones: data/isochrones.json
#   preferences:
#     max_commute_minutes: 30
#     shifts: [morning, afternoon]
#     prefer_second_chance: true
