"""In-memory job index for local runs and tests."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from geopy.distance import geodesic

from jobmatcher.filters import GeoFilter
from jobmatcher.log import get_logger
from jobmatcher.search.base import SearchIndex, SearchResponse

log = get_logger(__name__)


def _matches_query(doc: dict, query: str) -> bool:
    q = query.strip().lower()
    if not q or q == "*":
        return True
    text = " ".join(str(doc.get(k) or "") for k in ("title", "company", "description")).lower()
    return any(token in text for token in q.split())


def _matches_facets(doc: dict, facets: dict[str, Any]) -> bool:
    for key, expected in facets.items():
        actual = doc.get(key)
        if isinstance(expected, bool):
            if bool(actual) != expected:
                return False
        elif str(actual or "").lower() != str(expected).lower():
            return False
    return True


def _within(doc: dict, geo: GeoFilter) -> bool:
    loc = doc.get("location")
    if not isinstance(loc, (list, tuple)) or len(loc) != 2:
        return False
    try:
        return geodesic((geo.lat, geo.lon), (float(loc[0]), float(loc[1]))).km <= geo.radius_km
    except (TypeError, ValueError):
        return False


class InMemoryIndex(SearchIndex):
    def __init__(self, documents: list[Any] | None = None) -> None:
        self.documents: list[Any] = list(documents or [])
        self.queries: list[dict[str, Any]] = []

    @classmethod
    def from_file(cls, path: Path) -> InMemoryIndex:
        with open(path, "r", encoding="utf-8") as f:
            docs = json.load(f)
        log.info("Loaded %d jobs from %s", len(docs), path)
        return cls(docs)

    def add(self, *documents: Any) -> None:
        self.documents.extend(documents)

    def search(
        self,
        query: str,
        facets: dict[str, Any],
        shifts: list[str],
        geo: GeoFilter | None,
        limit: int,
    ) -> SearchResponse:
        self.queries.append({"query": query, "facets": dict(facets), "shifts": list(shifts), "geo": geo, "limit": limit})
        matched: list[Any] = []
        for doc in self.documents:
            if not isinstance(doc, dict):
                # Stand-in for a corrupt record in a real index; let the caller deal with it
                matched.append(doc)
                continue
            if not _matches_query(doc, query) or not _matches_facets(doc, facets):
                continue
            if shifts and not any(doc.get(f"shift_{s}") for s in shifts):
                continue
            if geo is not None and not _within(doc, geo):
                continue
            matched.append(doc)
        return SearchResponse(found=len(matched), hits=matched[:limit])
