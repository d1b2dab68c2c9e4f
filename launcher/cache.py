"""In-memory index and query memoization shared by the launcher actors."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Iterable, Mapping, Sequence

from .models import FileEntry, LauncherResult


@dataclass
class Cache:
    """Indexed entries keyed by path plus memoized results keyed by trimmed query.

    A memoized result list is never replaced once present. The shared cache
    and the delta produced by a single resolution pass are both instances of
    this type.
    """

    entries: dict[str, FileEntry] = field(default_factory=dict)
    results: dict[str, tuple[LauncherResult, ...]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.entries and not self.results

    def get_results(self, query: str) -> list[LauncherResult] | None:
        cached = self.results.get(query)
        return None if cached is None else list(cached)

    def add_entries(self, entries: Iterable[FileEntry]) -> None:
        for entry in entries:
            self.entries[entry.full_path] = entry

    def add_results(self, query: str, results: Sequence[LauncherResult]) -> None:
        self.results.setdefault(query, tuple(results))

    def copy(self) -> "Cache":
        return Cache(entries=dict(self.entries), results=dict(self.results))

    def merge(self, delta: "Cache") -> None:
        """Fold *delta* into this cache in place.

        Entries are unioned by path with the delta winning on kind and name.
        Memoized queries are only added when this cache has no answer yet.
        """
        self.entries.update(delta.entries)
        for query, results in delta.results.items():
            self.results.setdefault(query, results)


def merge_caches(base: Cache, delta: Cache) -> Cache:
    """Return a new cache holding *base* merged with *delta*."""
    merged = base.copy()
    merged.merge(delta)
    return merged


def cache_from_entries(entries: Mapping[str, FileEntry] | Iterable[FileEntry]) -> Cache:
    cache = Cache()
    if isinstance(entries, Mapping):
        cache.entries.update(entries)
    else:
        cache.add_entries(entries)
    return cache


class SharedCache:
    """The authoritative cache behind a single lock.

    The lock only guards cloning and merging. Ranking and scanning run on
    snapshots and never hold it.
    """

    def __init__(self, cache: Cache | None = None) -> None:
        self._cache = cache if cache is not None else Cache()
        self._lock = Lock()

    def snapshot(self) -> Cache:
        with self._lock:
            return self._cache.copy()

    def merge(self, delta: Cache) -> None:
        if delta.is_empty():
            return
        with self._lock:
            self._cache.merge(delta)

    def clear_results(self) -> None:
        with self._lock:
            self._cache.results.clear()

    def contains(self, query: str) -> bool:
        with self._lock:
            return query in self._cache.results

    def get_results(self, query: str) -> list[LauncherResult] | None:
        with self._lock:
            return self._cache.get_results(query)

    def try_get_results(self, query: str) -> tuple[bool, list[LauncherResult] | None]:
        """Read memoized results without blocking.

        Returns ``(False, None)`` when a merge currently holds the lock, and
        ``(True, results_or_None)`` otherwise.
        """
        if not self._lock.acquire(blocking=False):
            return False, None
        try:
            return True, self._cache.get_results(query)
        finally:
            self._lock.release()

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._cache.entries)
