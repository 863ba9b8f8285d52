from .base import SearchIndex, SearchResponse
from .memory import InMemoryIndex
from .typesense import TypesenseIndex

from jobmatcher.config import Settings
from jobmatcher.log import get_logger

log = get_logger(__name__)

__all__ = ["SearchIndex", "SearchResponse", "InMemoryIndex", "TypesenseIndex", "get_search_index"]


def get_search_index(settings: Settings) -> SearchIndex:
    if settings.search_backend == "memory":
        if settings.jobs_file is not None:
            return InMemoryIndex.from_file(settings.jobs_file)
        log.info("Using empty in-memory job index")
        return InMemoryIndex()

    if settings.search_backend != "typesense":
        raise ValueError(f"Unknown search backend: {settings.search_backend!r}")
    if not settings.typesense_url or not settings.typesense_api_key:
        raise ValueError("TYPESENSE_URL and TYPESENSE_API_KEY are required for the typesense backend")
    log.info("Using Typesense index %s/%s", settings.typesense_url, settings.typesense_collection)
    return TypesenseIndex(settings.typesense_url, settings.typesense_api_key, settings.typesense_collection)
