"""Process-local document store, used by tests and throwaway sessions."""
from __future__ import annotations

import contextlib
import copy
import threading
from typing import Any, Iterator

from jobmatcher.store.base import DocumentStore


class InMemoryStore(DocumentStore):
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    def _load(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._data)

    def _save(self, data: dict[str, dict[str, Any]]) -> None:
        self._data = copy.deepcopy(data)

    @contextlib.contextmanager
    def _locked(self, exclusive: bool) -> Iterator[None]:
        with self._lock:
            yield
