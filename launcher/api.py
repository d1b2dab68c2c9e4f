"""Public Python API for the launcher engine."""

from __future__ import annotations

from pathlib import Path

from .cache import Cache, SharedCache
from .config import Config, load_config, validate_config
from .models import LauncherResult
from .services.index_service import build_index
from .services.query_service import HostLookup, looks_like_host, parse_and_resolve
from .text import Messages


class LauncherError(ValueError):
    """Raised when the launcher public API input is invalid."""


class LauncherClient:
    """Index once, then resolve queries against a shared memoizing cache."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        config_path: Path | str | None = None,
        host_lookup: HostLookup = looks_like_host,
    ) -> None:
        self.config = validate_config(config) if config is not None else load_config(config_path)
        self.shared = SharedCache()
        self.host_lookup = host_lookup
        self._indexed = False

    def index(self) -> int:
        """(Re)scan the configured locations; return the number of indexed entries."""
        self.shared.merge(build_index(self.config))
        self._indexed = True
        return self.shared.entry_count

    def search(self, query: str) -> list[LauncherResult]:
        clean = query.strip()
        if not clean:
            raise LauncherError(Messages.ERROR_EMPTY_QUERY)
        if not self._indexed:
            self.index()
        delta = parse_and_resolve(
            clean,
            self.config,
            self.shared.snapshot(),
            host_lookup=self.host_lookup,
        )
        self.shared.merge(delta)
        return self.shared.get_results(clean) or []


def search(
    query: str,
    *,
    config: Config | None = None,
    cache: Cache | None = None,
    host_lookup: HostLookup = looks_like_host,
) -> list[LauncherResult]:
    """Resolve one query; *cache* is updated in place when given."""
    clean = query.strip()
    if not clean:
        raise LauncherError(Messages.ERROR_EMPTY_QUERY)
    settings = validate_config(config) if config is not None else load_config()
    target = cache if cache is not None else build_index(settings)
    target.merge(parse_and_resolve(clean, settings, target, host_lookup=host_lookup))
    return target.get_results(clean) or []
