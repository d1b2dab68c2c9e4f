"""Launcher configuration: defaults, validation, and the JSON config file."""

from __future__ import annotations

import json
import logging
import os
import shlex
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict

from .text import Messages

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / ".config" / "launcher"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "launcher.log"
DEFAULT_APP_LOCATIONS: tuple[str, ...] = (
    "/Applications",
    "/System/Applications",
    "/System/Applications/Utilities",
    "/usr/share/applications",
    os.path.expanduser("~/.local/share/applications"),
)
DEFAULT_MAX_RESULTS = 20
DEFAULT_FUZZY_ENGINE = "skim"
DEFAULT_RANK_CONCURRENCY = max(1, min(4, os.cpu_count() or 1))
SUPPORTED_FUZZY_ENGINES: tuple[str, ...] = ("fuse", "skim")
EDITOR_FALLBACKS = ("nano", "vi", "notepad", "notepad.exe")


class ConfigError(ValueError):
    """Raised when a configuration cannot be honored at all."""


def default_config_path() -> Path:
    return DEFAULT_CONFIG_DIR / CONFIG_FILENAME


@dataclass(frozen=True)
class Config:
    app_locations: tuple[str, ...] = DEFAULT_APP_LOCATIONS
    editor: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS
    fuzzy_engine: str = DEFAULT_FUZZY_ENGINE
    rank_concurrency: int = DEFAULT_RANK_CONCURRENCY
    config_path: Path = field(default_factory=default_config_path, compare=False)

    @property
    def log_path(self) -> Path:
        return self.config_path.parent / LOG_FILENAME


def validate_config(config: Config) -> Config:
    """Return *config* unchanged, or raise ConfigError if it cannot be used."""
    if config.fuzzy_engine not in SUPPORTED_FUZZY_ENGINES:
        allowed = ", ".join(SUPPORTED_FUZZY_ENGINES)
        raise ConfigError(
            Messages.ERROR_ENGINE_INVALID.format(value=config.fuzzy_engine, allowed=allowed)
        )
    if config.max_results < 1:
        raise ConfigError(Messages.ERROR_MAX_RESULTS_INVALID)
    if config.rank_concurrency < 1:
        raise ConfigError(Messages.ERROR_CONCURRENCY_INVALID)
    return config


def load_config(path: Path | str | None = None) -> Config:
    """Read the config file at *path*.

    A missing or unparsable file yields the built-in defaults. A file that
    parses but names an unknown fuzzy engine raises ConfigError.
    """
    config_path = Path(path).expanduser() if path is not None else default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Config(config_path=config_path)
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring unreadable config %s: %s", config_path, exc)
        return Config(config_path=config_path)
    if not isinstance(raw, Mapping):
        logger.debug("Ignoring config %s: top level is not an object", config_path)
        return Config(config_path=config_path)
    try:
        config = config_from_mapping(raw, config_path)
    except ValueError as exc:
        logger.debug("Ignoring malformed config %s: %s", config_path, exc)
        return Config(config_path=config_path)
    return validate_config(config)


def config_from_mapping(payload: Mapping[str, object], path: Path | None = None) -> Config:
    """Build a Config from a decoded JSON object without validating the engine."""
    base = Config() if path is None else Config(config_path=path)
    updates: Dict[str, Any] = {}
    if "app_locations" in payload:
        updates["app_locations"] = _coerce_locations(payload["app_locations"])
    if "editor" in payload:
        updates["editor"] = _coerce_optional_str(payload["editor"], "editor")
    if "max_results" in payload:
        updates["max_results"] = _coerce_positive_int(
            payload["max_results"], "max_results", DEFAULT_MAX_RESULTS
        )
    if "fuzzy_engine" in payload:
        updates["fuzzy_engine"] = _normalize_engine(payload["fuzzy_engine"])
    if "rank_concurrency" in payload:
        updates["rank_concurrency"] = _coerce_positive_int(
            payload["rank_concurrency"], "rank_concurrency", DEFAULT_RANK_CONCURRENCY
        )
    return replace(base, **updates)


def save_config(config: Config) -> Path:
    config_path = config.config_path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {
        "app_locations": list(config.app_locations),
        "editor": config.editor,
        "max_results": config.max_results,
        "fuzzy_engine": config.fuzzy_engine,
        "rank_concurrency": config.rank_concurrency,
    }
    config_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return config_path


def resolve_editor_command(config: Config) -> Sequence[str] | None:
    """Return the editor command as a tokenized sequence.

    Raises ConfigError when the command has unbalanced quotes.
    """

    if config.editor:
        return _split_editor(config.editor)

    for env_var in ("VISUAL", "EDITOR"):
        value = os.environ.get(env_var)
        if value:
            return _split_editor(value)

    for candidate in EDITOR_FALLBACKS:
        path = shutil.which(candidate)
        if path:
            return (path,)

    return None


def _split_editor(command: str) -> tuple[str, ...]:
    try:
        return tuple(shlex.split(command))
    except ValueError as exc:
        raise ConfigError(Messages.ERROR_EDITOR_INVALID.format(editor=command, reason=exc)) from exc


def _coerce_locations(value: object) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Sequence):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field="app_locations"))
    locations: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(
                Messages.ERROR_CONFIG_VALUE_INVALID.format(field="app_locations")
            )
        cleaned = item.strip()
        if cleaned:
            locations.append(os.path.expanduser(cleaned))
    return tuple(locations)


def _coerce_optional_str(value: object, field: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_int(value: object, field: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return default
        try:
            return int(cleaned)
        except ValueError as exc:
            raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field)) from exc
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_positive_int(value: object, field: str, default: int) -> int:
    number = _coerce_int(value, field, default)
    if number < 1:
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))
    return number


def _normalize_engine(value: object) -> str:
    if value is None:
        return DEFAULT_FUZZY_ENGINE
    if isinstance(value, str):
        return value.strip().lower() or DEFAULT_FUZZY_ENGINE
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field="fuzzy_engine"))
