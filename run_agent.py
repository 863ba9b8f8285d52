#!/usr/bin/env python3
"""Terminal chat with the job-matching agent.

    python run_agent.py                 # new search
    python run_agent.py --resume        # continue your most recent active search
    python run_agent.py --force         # skip questions and search right away

The acting user comes from JOBMATCHER_USER_ID. Type /quit to leave,
/cancel to end the search, /saved to list saved jobs, /save N or /skip N
to review a job from the last results.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobmatcher.agent import (
    Runtime,
    TurnResult,
    cancel_search,
    force_search,
    open_thread,
    send_message,
    submit_tool_result,
)
from jobmatcher.config import ensure_dirs, get_env, load_settings
from jobmatcher.errors import JobMatcherError
from jobmatcher.log import configure, get_logger
from jobmatcher.profiles import set_home_location
from jobmatcher.prompts import FORCE_SEARCH_PROMPT
from jobmatcher.protocol import TurnState
from jobmatcher.retry import retry
from jobmatcher.reviews import list_saved_jobs, review_job
from jobmatcher.sessions import get_active_session

log = get_logger(__name__)


class RetryableTurn(Exception):
    def __init__(self, error: JobMatcherError) -> None:
        super().__init__(str(error))
        self.error = error


@retry(max_attempts=3, base_delay=1.0, retryable=(RetryableTurn,), giveup=lambda exc: exc.error)
def _attempt(fn, *args: Any) -> TurnResult:
    try:
        return fn(*args)
    except JobMatcherError as exc:
        # A failed turn leaves the thread untouched, so re-running it is safe
        if exc.retryable:
            raise RetryableTurn(exc) from exc
        raise


def _print_job(n: int, job: dict[str, Any]) -> None:
    tags = []
    if job["isSecondChance"]:
        tags.append("fair-chance")
    if job["transitAccessible"]:
        tags.append("transit")
    if job["isUrgent"]:
        tags.append("urgent")
    if job["isEasyApply"]:
        tags.append("easy apply")
    print(f"  [{n}] {job['title']} — {job['company']}")
    print(f"      {job['location'] or 'Location not listed'}  {job['salary'] or ''}")
    if job["shifts"]:
        print(f"      Shifts: {', '.join(job['shifts'])}")
    if tags:
        print(f"      {' · '.join(tags)}")
    print(f"      {job['url']}")


def _print_pending(result: TurnResult) -> None:
    call = result.pending
    if call is None:
        return
    args = call.arguments
    if args.get("preamble"):
        print(f"\n  {args['preamble']}")
    if call.name == "askQuestion":
        print(f"\n  ? {args.get('question', '')}")
        for i, opt in enumerate(args.get("options", []), 1):
            print(f"    {i}. {opt.get('label', opt.get('id'))}")
        if args.get("allowFreeText") is not False:
            print("    (or type your own answer)")
    elif call.name == "collectLocation":
        print(f"\n  ? {args.get('reason', 'We need your home location.')}")
        print("    Enter lat,lon (optionally followed by a place name)")
    elif call.name == "collectResume":
        print(f"\n  ? {args.get('reason', 'A resume helps match you.')}")
        print("    Run `python onboard.py` to add it, then type 'done'")
    elif call.name == "askPreference":
        print(f"\n  ? Let's set your {args.get('preference', 'preferences')} preference")
        if args.get("context"):
            print(f"    {args['context']}")


def _show(result: TurnResult) -> list[dict[str, Any]]:
    if result.text:
        print(f"\nAgent: {result.text}")
    jobs = result.jobs
    if jobs:
        print()
        for n, job in enumerate(jobs, 1):
            _print_job(n, job)
    _print_pending(result)
    return jobs


def _parse_location(text: str) -> tuple[float, float, str | None] | None:
    coords, _, name = text.partition(" ")
    lat, sep, lon = coords.partition(",")
    if not sep:
        return None
    try:
        return float(lat), float(lon), name.strip() or None
    except ValueError:
        return None


def _answer_for(runtime: Runtime, user_id: str, result: TurnResult, text: str) -> Any:
    """Map a typed reply to the pending question's result payload."""
    call = result.pending
    if call is not None and call.name == "collectLocation":
        parsed = _parse_location(text)
        if parsed is None:
            return {"userResponse": text, "locationSaved": False}
        lat, lon, name = parsed
        try:
            set_home_location(runtime.store, user_id, lat, lon, name)
        except ValueError as exc:
            return {"locationSaved": False, "error": str(exc)}
        return {"locationSaved": True, "location": name}
    if call is not None and call.name == "askQuestion" and text.isdigit():
        options = call.arguments.get("options", [])
        idx = int(text) - 1
        if 0 <= idx < len(options):
            return {"selectedOptionId": options[idx].get("id"), "label": options[idx].get("label")}
    return {"userResponse": text}


def main() -> int:
    parser = argparse.ArgumentParser(description="Chat with the job-matching agent")
    parser.add_argument("--resume", action="store_true", help="continue your most recent active search")
    parser.add_argument("--force", action="store_true", help="search immediately without questions")
    parser.add_argument("-v", "--verbose", action="store_true", help="show tool logs in the terminal")
    args = parser.parse_args()
    configure(console_level=None if args.verbose else "WARNING")

    user_id = get_env("JOBMATCHER_USER_ID")
    if not user_id:
        print("\n  Set JOBMATCHER_USER_ID (in .env) to pick who you are.\n")
        return 1

    ensure_dirs()
    runtime = Runtime.from_settings(load_settings())

    session = get_active_session(runtime.store, user_id) if args.resume else None
    if session is not None:
        print(f"\n  Continuing search {session.thread_id}")
        result: TurnResult | None = None
    elif args.force:
        result = _attempt(force_search, runtime, user_id)
        session = runtime.store.get_session(result.thread_id)
    else:
        prompt = input("\nWhat kind of work are you looking for? > ").strip() or FORCE_SEARCH_PROMPT
        session = open_thread(runtime, user_id, prompt)
        result = _attempt(send_message, runtime, user_id, session.thread_id, prompt)

    thread_id = session.thread_id
    last_jobs = _show(result) if result else []

    while True:
        try:
            text = input("\nYou > ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not text:
            continue
        if text == "/quit":
            break
        if text == "/cancel":
            cancel_search(runtime, user_id, thread_id)
            print("  Search cancelled.")
            break
        if text == "/saved":
            for row in list_saved_jobs(runtime.store, user_id):
                snap = row.get("job_snapshot") or {}
                print(f"  • {snap.get('title', row['job_id'])} — {snap.get('company', '')}")
            continue
        if text.startswith(("/save ", "/skip ")):
            cmd, _, num = text.partition(" ")
            if num.strip().isdigit() and 0 < int(num) <= len(last_jobs):
                job = last_jobs[int(num) - 1]
                review_job(runtime.store, user_id, job["id"], "saved" if cmd == "/save" else "skipped", job)
                print(f"  {'Saved' if cmd == '/save' else 'Skipped'}: {job['title']}")
            else:
                print("  No such job in the last results.")
            continue

        try:
            if result is not None and result.state is TurnState.AWAITING_USER and result.pending:
                answer = _answer_for(runtime, user_id, result, text)
                result = _attempt(submit_tool_result, runtime, user_id, thread_id, result.pending.id, answer)
            else:
                result = _attempt(send_message, runtime, user_id, thread_id, text)
        except JobMatcherError as exc:
            log.error("Turn failed: %s", exc)
            print(f"  Something went wrong ({exc}). Try again.")
            continue
        jobs = _show(result)
        if jobs:
            last_jobs = jobs
    return 0


if __name__ == "__main__":
    sys.exit(main())
