"""Logic helpers for building the in-memory launch index."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from ..cache import Cache
from ..config import Config
from ..models import EntryKind, FileEntry

logger = logging.getLogger(__name__)


def scan(directories: Iterable[str | Path], kind: EntryKind) -> dict[str, FileEntry]:
    """Return entries for the direct children of each readable directory.

    Each scanned directory also contributes an entry for itself (kind File,
    display name suffixed with the path separator). App children drop hidden
    names and keep only the part before the first dot. Missing or unreadable
    directories are skipped.
    """
    entries: dict[str, FileEntry] = {}
    for location in directories:
        directory = os.fspath(location)
        if not directory:
            continue
        try:
            with os.scandir(directory) as iterator:
                children = list(iterator)
        except OSError as exc:
            logger.debug("Skipping %s: %s", directory, exc)
            continue
        for child in children:
            name = child.name
            if kind is EntryKind.APP:
                if name.startswith("."):
                    continue
                name = name.split(".", 1)[0]
            entries[child.path] = FileEntry(
                full_path=child.path,
                kind=kind,
                display_name=name,
            )
        self_entry = _directory_entry(directory)
        entries[self_entry.full_path] = self_entry
    return entries


def _directory_entry(directory: str) -> FileEntry:
    trimmed = directory.rstrip(os.sep) or os.sep
    name = os.path.basename(trimmed) or trimmed
    if not name.endswith(os.sep):
        name = f"{name}{os.sep}"
    return FileEntry(full_path=trimmed, kind=EntryKind.FILE, display_name=name)


def split_search_path(path_env: str | None) -> list[str]:
    if not path_env:
        return []
    return [part for part in path_env.split(os.pathsep) if part]


def build_index(
    config: Config,
    *,
    path_env: str | None = None,
    home: Path | str | None = None,
) -> Cache:
    """Scan app locations, $PATH and the home directory into a fresh cache."""
    search_path = os.environ.get("PATH", "") if path_env is None else path_env
    home_dir = Path.home() if home is None else Path(home)
    cache = Cache()
    cache.entries.update(scan(config.app_locations, EntryKind.APP))
    cache.entries.update(scan(split_search_path(search_path), EntryKind.EXECUTABLE))
    cache.entries.update(scan([home_dir], EntryKind.FILE))
    logger.debug("Indexed %d entries", len(cache.entries))
    return cache
