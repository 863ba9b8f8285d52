"""Point-in-isochrone filtering for transit-commute eligibility.

Isochrones are GeoJSON, so polygon coordinates are ``[lon, lat]``. Job
coordinates come from the search index as ``(lat, lon)`` and are swapped
here, at the boundary, before any geometry test.

Edge policy:
  - the selected tier has no features (or no data at all): nothing is filtered
  - a candidate has no usable coordinates: it is excluded
"""
from __future__ import annotations

import math
from typing import Any, Callable, Sequence, TypeVar

from shapely.errors import ShapelyError
from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry

from jobmatcher.log import get_logger
from jobmatcher.models import IsochroneSet

log = get_logger(__name__)

T = TypeVar("T")

_MALFORMED = (ShapelyError, TypeError, KeyError, ValueError, IndexError, AttributeError)


def _location_of(candidate: Any) -> Any:
    if isinstance(candidate, dict):
        return candidate.get("location")
    return getattr(candidate, "location", None)


def _as_lat_lon(value: Any) -> tuple[float, float] | None:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    lat, lon = value
    if isinstance(lat, bool) or isinstance(lon, bool):
        return None
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return float(lat), float(lon)


def _geometry(feature: dict) -> BaseGeometry:
    raw = feature["geometry"] if feature.get("type") == "Feature" else feature
    if raw["type"] not in ("Polygon", "MultiPolygon"):
        raise ValueError(f"unsupported geometry type {raw['type']!r}")
    return shape(raw)


def point_in_feature(lon: float, lat: float, feature: dict) -> bool:
    """True when (lon, lat) lies in a Polygon/MultiPolygon feature or bare geometry.

    Points on an edge count as inside, including the edge of a hole.
    """
    return _geometry(feature).covers(Point(lon, lat))


def _features(collection: dict | None) -> list:
    if not collection:
        return []
    features = collection.get("features") if isinstance(collection, dict) else None
    return list(features) if isinstance(features, list) else []


def _geometries(features: list) -> list[BaseGeometry]:
    shapes = []
    for feature in features:
        try:
            shapes.append(_geometry(feature))
        except _MALFORMED as exc:
            log.debug("Skipping malformed isochrone feature: %s", exc)
    return shapes


def _in_any(lon: float, lat: float, shapes: list[BaseGeometry]) -> bool:
    point = Point(lon, lat)
    for geom in shapes:
        try:
            if geom.covers(point):
                return True
        except ShapelyError as exc:
            log.debug("Skipping invalid isochrone geometry: %s", exc)
    return False


def filter_by_isochrone(
    candidates: Sequence[T],
    isochrones: IsochroneSet,
    max_minutes: int,
    *,
    location: Callable[[T], Any] = _location_of,
) -> list[T]:
    """Keep candidates whose (lat, lon) lies inside the *max_minutes* isochrone.

    *location* extracts a ``(lat, lon)`` pair from a candidate; by default the
    ``location`` key or attribute. Input order is preserved and nothing is mutated.
    A tier whose features are all malformed keeps nothing.
    """
    features = _features(isochrones.tier(max_minutes))
    if not features:
        return list(candidates)
    shapes = _geometries(features)

    kept: list[T] = []
    for candidate in candidates:
        coords = _as_lat_lon(location(candidate))
        if coords is None:
            continue
        lat, lon = coords
        if _in_any(lon, lat, shapes):
            kept.append(candidate)
    log.debug("Isochrone %d-min filter kept %d of %d", max_minutes, len(kept), len(candidates))
    return kept


def is_point_in_isochrone(lat: float, lon: float, isochrones: IsochroneSet, max_minutes: int) -> bool:
    features = _features(isochrones.tier(max_minutes))
    if not features:
        return True
    return _in_any(lon, lat, _geometries(features))
