"""Resolve a search request against stored preferences.

Everything here is pure: given the tool arguments, the user's preferences
and profile, ``resolve_search_plan`` decides which index facets, shifts,
geo pre-filter and isochrone tier a search uses, and what its provenance
record says.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jobmatcher.models import SHIFTS, JobPreferences, SearchContext, UserProfile
from jobmatcher.schemas import SearchFilterArgs, SearchJobsArgs


@dataclass(frozen=True)
class GeoFilter:
    lat: float
    lon: float
    radius_km: float


@dataclass(frozen=True)
class SearchPlan:
    query: str
    limit: int
    fetch_limit: int
    facets: dict[str, Any]
    shifts: list[str]
    geo: GeoFilter | None
    commute_tier: int | None  # isochrone tier to enforce; None skips the isochrone step
    city: str | None = None
    state: str | None = None
    second_chance_preferred: bool = False
    max_commute_minutes: int | None = None
    home_location: str | None = None

    def search_context(self, total_found: int) -> SearchContext:
        return SearchContext(
            query=self.query,
            total_found=total_found,
            city=self.city,
            state=self.state,
            within_commute_zone=self.commute_tier is not None,
            max_commute_minutes=self.max_commute_minutes,
            home_location=self.home_location,
            second_chance_required=bool(self.facets.get("second_chance")),
            second_chance_preferred=self.second_chance_preferred,
            bus_required=bool(self.facets.get("bus_accessible")),
            rail_required=bool(self.facets.get("rail_accessible")),
            shifts=list(self.shifts),
            urgent_only=bool(self.facets.get("is_urgent")),
            easy_apply_only=bool(self.facets.get("is_easy_apply")),
        )


def merge_filters(explicit: SearchFilterArgs | None, prefs: JobPreferences | None) -> dict[str, Any]:
    """Index facets for a search: explicit filters plus every stored requirement.

    A stored requirement always applies; the caller can add filters but
    cannot loosen a requirement the user saved.
    """
    facets: dict[str, Any] = {}
    if explicit is not None:
        if explicit.second_chance_only:
            facets["second_chance"] = True
        if explicit.city:
            facets["city"] = explicit.city
        if explicit.state:
            facets["state"] = explicit.state
        if explicit.bus_accessible:
            facets["bus_accessible"] = True
        if explicit.rail_accessible:
            facets["rail_accessible"] = True
        if explicit.urgent_only:
            facets["is_urgent"] = True
        if explicit.easy_apply_only:
            facets["is_easy_apply"] = True

    if prefs is not None:
        if prefs.require_second_chance:
            facets["second_chance"] = True
        if prefs.require_bus_accessible:
            facets["bus_accessible"] = True
        if prefs.require_rail_accessible:
            facets["rail_accessible"] = True
    return facets


def effective_shifts(prefs: JobPreferences | None, requested: list[str] | None) -> list[str]:
    """Stored shifts first (canonical order), then newly requested ones; no duplicates."""
    shifts = prefs.shifts() if prefs is not None else []
    for shift in requested or []:
        if shift in SHIFTS and shift not in shifts:
            shifts.append(shift)
    return shifts


def commute_tier_for(
    prefs: JobPreferences | None,
    profile: UserProfile | None,
    default_commute_minutes: int = 30,
) -> int | None:
    """The isochrone tier to enforce, or None when the isochrone step is skipped.

    Only a hard transit requirement with computed isochrones and a home
    location turns the filter on.
    """
    if profile is None or prefs is None:
        return None
    if not (profile.isochrones and prefs.require_public_transit and profile.has_home_location):
        return None
    return prefs.max_commute_minutes or default_commute_minutes


def resolve_search_plan(
    args: SearchJobsArgs,
    prefs: JobPreferences | None,
    profile: UserProfile | None,
    *,
    geo_radius_km: float = 80.0,
    overfetch_factor: int = 3,
    default_commute_minutes: int = 30,
) -> SearchPlan:
    explicit = args.filters
    geo = None
    if profile is not None and profile.has_home_location:
        geo = GeoFilter(lat=profile.home_lat, lon=profile.home_lon, radius_km=geo_radius_km)

    tier = commute_tier_for(prefs, profile, default_commute_minutes)
    stored_commute = prefs.max_commute_minutes if prefs is not None else None

    return SearchPlan(
        query=args.query,
        limit=args.limit,
        fetch_limit=args.limit * overfetch_factor,
        facets=merge_filters(explicit, prefs),
        shifts=effective_shifts(prefs, explicit.shifts if explicit else None),
        geo=geo,
        commute_tier=tier,
        city=(explicit.city or None) if explicit else None,
        state=(explicit.state or None) if explicit else None,
        second_chance_preferred=bool(prefs and prefs.prefer_second_chance),
        max_commute_minutes=tier if tier is not None else stored_commute,
        home_location=profile.location if profile is not None else None,
    )
