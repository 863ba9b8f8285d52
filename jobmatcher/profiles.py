"""Home location updates and isochrone storage."""
from __future__ import annotations

import time
from typing import Callable

from jobmatcher.errors import Unauthenticated
from jobmatcher.log import get_logger
from jobmatcher.models import IsochroneSet, UserProfile
from jobmatcher.store import DocumentStore

log = get_logger(__name__)

LocationHook = Callable[[str, float, float], None]


def set_home_location(
    store: DocumentStore,
    user_id: str | None,
    lat: float,
    lon: float,
    location: str | None = None,
    on_location_changed: LocationHook | None = None,
) -> UserProfile:
    """Store new home coordinates and drop isochrones computed for the old ones.

    *on_location_changed* is where the external isochrone computation is
    kicked off; it writes results back through ``save_isochrones``.
    """
    if not user_id:
        raise Unauthenticated()
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        raise ValueError(f"Coordinates out of range: ({lat}, {lon})")

    profile = store.get_profile(user_id) or UserProfile(user_id=user_id)
    profile.home_lat = lat
    profile.home_lon = lon
    if location is not None:
        profile.location = location
    profile.isochrones = None
    profile.updated_at = time.time()
    store.save_profile(profile)
    log.info("Home location set for user=%s (%s)", user_id, profile.location or "unnamed")

    if on_location_changed is not None:
        on_location_changed(user_id, lat, lon)
    return profile


def save_isochrones(store: DocumentStore, user_id: str, isochrones: IsochroneSet) -> UserProfile:
    profile = store.get_profile(user_id)
    if profile is None:
        raise ValueError(f"No profile for user {user_id}")
    profile.isochrones = isochrones
    profile.updated_at = time.time()
    store.save_profile(profile)
    log.info("Stored isochrones for user=%s", user_id)
    return profile
