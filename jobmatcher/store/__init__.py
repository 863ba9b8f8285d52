from .base import DocumentStore
from .jsonfile import JsonFileStore
from .memory import InMemoryStore

from jobmatcher.config import Settings
from jobmatcher.log import get_logger

log = get_logger(__name__)

__all__ = ["DocumentStore", "InMemoryStore", "JsonFileStore", "get_store"]


def get_store(settings: Settings) -> DocumentStore:
    if settings.store_backend == "memory":
        log.info("Using in-memory document store (nothing is persisted)")
        return InMemoryStore()
    if settings.store_backend == "jsonfile":
        log.info("Using JSON document store → %s", settings.store_path)
        return JsonFileStore(settings.store_path)
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")
