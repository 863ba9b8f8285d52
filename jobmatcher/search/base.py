from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from jobmatcher.filters import GeoFilter


@dataclass
class SearchResponse:
    found: int
    hits: list[Any] = field(default_factory=list)  # raw documents, validated by the caller


class SearchIndex(ABC):
    @abstractmethod
    def search(
        self,
        query: str,
        facets: dict[str, Any],
        shifts: list[str],
        geo: GeoFilter | None,
        limit: int,
    ) -> SearchResponse:
        """Full-text query with facet equality, OR-ed shifts and a radius pre-filter."""
