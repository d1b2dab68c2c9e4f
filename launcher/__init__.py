"""Launcher package initialization."""

from __future__ import annotations

from .api import LauncherClient, LauncherError, search
from .cache import Cache, SharedCache, merge_caches
from .config import Config, ConfigError, load_config

__all__ = [
    "__version__",
    "Cache",
    "Config",
    "ConfigError",
    "LauncherClient",
    "LauncherError",
    "SharedCache",
    "get_version",
    "load_config",
    "merge_caches",
    "search",
]

__version__ = "0.4.0"


def get_version() -> str:
    """Return the current package version."""
    return __version__
