"""Logic helpers for running the result the user committed to."""

from __future__ import annotations

import logging
import mimetypes
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, Sequence
from urllib.parse import urlencode

from charset_normalizer import from_bytes

from ..config import Config, ConfigError, resolve_editor_command
from ..models import (
    AppResult,
    CommandResult,
    ExecutableResult,
    FileResult,
    LauncherResult,
    ResultKind,
    UrlResult,
)
from ..text import Messages

logger = logging.getLogger(__name__)

WEB_SEARCH_URL = "https://www.google.com/search"
PACKAGE_NAME = "launcher"
TEXT_MIME_MARKERS = ("text", "json", "csv")
TEXT_EXTENSIONS = (
    ".txt",
    ".md",
    ".py",
    ".js",
    ".ts",
    ".json",
    ".yaml",
    ".yml",
    ".toml",
    ".csv",
    ".ini",
    ".cfg",
    ".conf",
    ".sh",
    ".rs",
    ".log",
)
SNIFF_BYTES = 4096


class LaunchError(RuntimeError):
    """Raised when an external tool fails to launch or exits non-zero."""


def opener_command(target: str) -> list[str]:
    if sys.platform == "darwin":
        return ["open", target]
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", "", target]
    return ["xdg-open", target]


def run_process(command: Sequence[str] | str, *, shell: bool = False) -> None:
    """Run *command* to completion, raising LaunchError on failure."""
    display = command if isinstance(command, str) else shlex.join(command)
    logger.debug("Running %s", display)
    try:
        completed = subprocess.run(command, shell=shell, check=False)
    except OSError as exc:
        raise LaunchError(
            Messages.ERROR_LAUNCH_MISSING.format(command=display, reason=exc)
        ) from exc
    if completed.returncode != 0:
        raise LaunchError(
            Messages.ERROR_LAUNCH_FAILED.format(command=display, code=completed.returncode)
        )


def is_text_file(path: Path) -> bool:
    """Guess whether *path* should open in the editor rather than the OS opener."""
    if path.is_dir():
        return False
    if path.suffix.lower() in TEXT_EXTENSIONS:
        return True
    mime, _ = mimetypes.guess_type(path.name)
    if mime and any(marker in mime for marker in TEXT_MIME_MARKERS):
        return True
    try:
        with path.open("rb") as handle:
            head = handle.read(SNIFF_BYTES)
    except OSError:
        return False
    if not head:
        return True
    if b"\0" in head:
        return False
    return from_bytes(head).best() is not None


def build_search_url(terms: str) -> str:
    return f"{WEB_SEARCH_URL}?{urlencode({'q': terms})}"


def build_update_commands() -> list[list[str]]:
    return [[sys.executable, "-m", "pip", "install", "--upgrade", PACKAGE_NAME]]


def _open_target(target: str) -> bool:
    run_process(opener_command(target))
    return False


def _run_app(result: AppResult, config: Config) -> bool:
    return _open_target(result.path)


def _run_url(result: UrlResult, config: Config) -> bool:
    return _open_target(result.url)


def _run_executable(result: ExecutableResult, config: Config) -> bool:
    run_process([result.path])
    return True


def _run_file(result: FileResult, config: Config) -> bool:
    path = Path(result.path)
    if not is_text_file(path):
        return _open_target(result.path)
    try:
        editor = resolve_editor_command(config)
    except ConfigError as exc:
        raise LaunchError(str(exc)) from exc
    if not editor:
        raise LaunchError(Messages.ERROR_EDITOR_NOT_FOUND)
    run_process([*editor, result.path])
    return False


def _run_command(result: CommandResult, config: Config) -> bool:
    if result.name == "search":
        return _open_target(build_search_url(result.argument))
    if result.name == "exec":
        run_process(result.argument, shell=True)
        return True
    if result.name == "update":
        for command in build_update_commands():
            run_process(command)
        return True
    logger.debug("Ignoring unknown command %r", result.name)
    return False


_DISPATCH: Dict[ResultKind, Callable[..., bool]] = {
    ResultKind.COMMAND: _run_command,
    ResultKind.URL: _run_url,
    ResultKind.APP: _run_app,
    ResultKind.EXECUTABLE: _run_executable,
    ResultKind.FILE: _run_file,
}


def execute(result: LauncherResult, config: Config) -> bool:
    """Launch *result*; return True when the process should wait before exiting."""
    return _DISPATCH[result.kind](result, config)
