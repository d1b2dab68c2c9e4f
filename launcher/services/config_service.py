"""Logic helpers for the `launcher config` command."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

from ..config import (
    Config,
    default_config_path,
    load_config,
    save_config,
    validate_config,
)


@dataclass(slots=True)
class ConfigUpdateResult:
    config: Config
    editor_set: bool = False
    editor_cleared: bool = False
    max_results_set: bool = False
    engine_set: bool = False
    app_location_added: bool = False
    app_locations_cleared: bool = False
    reset: bool = False

    @property
    def changed(self) -> bool:
        return any(
            (
                self.editor_set,
                self.editor_cleared,
                self.max_results_set,
                self.engine_set,
                self.app_location_added,
                self.app_locations_cleared,
                self.reset,
            )
        )


def apply_config_updates(
    config_path: Path | str | None = None,
    *,
    editor: str | None = None,
    clear_editor: bool = False,
    max_results: int | None = None,
    fuzzy_engine: str | None = None,
    add_app_location: str | None = None,
    clear_app_locations: bool = False,
    reset: bool = False,
) -> ConfigUpdateResult:
    """Apply config mutations, persist them, and report which fields changed."""

    if reset:
        path = Path(config_path).expanduser() if config_path is not None else default_config_path()
        current = Config(config_path=path)
    else:
        current = load_config(config_path)
    result = ConfigUpdateResult(config=current, reset=reset)
    updates: Dict[str, Any] = {}
    if clear_editor:
        updates["editor"] = None
        result.editor_cleared = True
    if editor is not None:
        updates["editor"] = editor.strip() or None
        result.editor_set = True
    if max_results is not None:
        updates["max_results"] = max_results
        result.max_results_set = True
    if fuzzy_engine is not None:
        updates["fuzzy_engine"] = fuzzy_engine.strip().lower()
        result.engine_set = True
    locations = current.app_locations
    if clear_app_locations:
        locations = ()
        result.app_locations_cleared = True
    if add_app_location is not None:
        location = os.path.expanduser(add_app_location.strip())
        if location and location not in locations:
            locations = (*locations, location)
        result.app_location_added = True
    if locations != current.app_locations:
        updates["app_locations"] = locations
    if result.changed:
        result.config = validate_config(replace(current, **updates))
        save_config(result.config)
    return result


def get_config_snapshot(config_path: Path | str | None = None) -> Config:
    """Return the current configuration dataclass."""

    return load_config(config_path)
