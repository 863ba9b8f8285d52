"""Typesense job index over its HTTP search API."""
from __future__ import annotations

import re
from typing import Any

import requests

from jobmatcher.errors import UpstreamError
from jobmatcher.filters import GeoFilter
from jobmatcher.log import get_logger
from jobmatcher.retry import retry
from jobmatcher.search.base import SearchIndex, SearchResponse

log = get_logger(__name__)

ALLOWED_FACETS: frozenset[str] = frozenset({
    "second_chance", "second_chance_tier", "city", "state",
    "bus_accessible", "rail_accessible", "is_urgent", "is_easy_apply",
    "shift_morning", "shift_afternoon", "shift_evening", "shift_overnight", "shift_flexible",
})

_FILTER_SPECIALS = re.compile(r"[`\\:=<>&|()\[\]]")


def _clean(value: str) -> str:
    return _FILTER_SPECIALS.sub("", value).strip()


def build_filter_by(facets: dict[str, Any], shifts: list[str], geo: GeoFilter | None) -> str:
    """Typesense ``filter_by`` expression. Unknown facet keys are dropped."""
    parts: list[str] = []
    for key, value in facets.items():
        if key not in ALLOWED_FACETS:
            log.warning("Ignoring unsupported facet %r", key)
            continue
        if isinstance(value, bool):
            parts.append(f"{key}:={'true' if value else 'false'}")
        else:
            cleaned = _clean(str(value))
            if cleaned:
                parts.append(f"{key}:=`{cleaned}`")
    if shifts:
        parts.append("(" + " || ".join(f"shift_{s}:=true" for s in shifts) + ")")
    if geo is not None:
        parts.append(f"location:({geo.lat}, {geo.lon}, {geo.radius_km:g} km)")
    return " && ".join(parts)


def _giveup(exc: BaseException) -> UpstreamError:
    return UpstreamError("typesense", str(exc))


class TypesenseIndex(SearchIndex):
    QUERY_BY = "title,company,description"

    def __init__(self, url: str, api_key: str, collection: str = "jobs", timeout: float = 5.0) -> None:
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.collection = collection
        self.timeout = timeout

    @retry(max_attempts=3, base_delay=0.5, retryable=(requests.RequestException, OSError), giveup=_giveup)
    def _fetch(self, params: dict[str, Any]) -> dict:
        r = requests.get(
            f"{self.url}/collections/{self.collection}/documents/search",
            params=params,
            headers={"X-TYPESENSE-API-KEY": self.api_key},
            timeout=self.timeout,
        )
        if 400 <= r.status_code < 500:
            # Bad filter or missing collection; retrying will not help
            raise UpstreamError("typesense", f"HTTP {r.status_code}: {r.text[:200]}")
        r.raise_for_status()
        return r.json()

    def search(
        self,
        query: str,
        facets: dict[str, Any],
        shifts: list[str],
        geo: GeoFilter | None,
        limit: int,
    ) -> SearchResponse:
        params: dict[str, Any] = {
            "q": query.strip() or "*",
            "query_by": self.QUERY_BY,
            "per_page": limit,
            "page": 1,
        }
        filter_by = build_filter_by(facets, shifts, geo)
        if filter_by:
            params["filter_by"] = filter_by

        data = self._fetch(params)
        if not isinstance(data, dict):
            raise UpstreamError("typesense", "unexpected response body")
        hits = [h.get("document") if isinstance(h, dict) else h for h in data.get("hits") or []]
        found = int(data.get("found") or 0)
        log.debug("Typesense q=%r filter_by=%r found=%d hits=%d", params["q"], filter_by, found, len(hits))
        return SearchResponse(found=found, hits=hits)
