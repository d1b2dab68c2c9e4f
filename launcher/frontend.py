"""Terminal prompt and result list for the interactive launcher."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import click
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from .models import LauncherResult
from .text import Messages, Styles

POLL_INTERVAL = 0.03
HIGHLIGHT_SYMBOL = ">> "

_KEY_NAMES = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x1b": "esc",
    "\x03": "ctrl-c",
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[3~": "delete",
    "\xe0H": "up",
    "\xe0P": "down",
    "\xe0M": "right",
    "\xe0K": "left",
    "\xe0S": "delete",
    "\x00H": "up",
    "\x00P": "down",
    "\x00M": "right",
    "\x00K": "left",
}


def decode_key(raw: str) -> str:
    """Map raw terminal input to a key name, or return the printable text."""
    return _KEY_NAMES.get(raw, raw)


class KeyAction(str, Enum):
    NONE = "none"
    COMMIT = "commit"
    QUIT = "quit"


@dataclass
class PromptState:
    """Editable query, cursor and selection, independent of any terminal."""

    query: str = ""
    cursor: int = 0
    selected: int | None = None
    list_len: int = 0
    completion: bool = False
    completion_text: str | None = None

    def sync(self, results: Sequence[LauncherResult]) -> None:
        """Clamp the selection to the results and refresh the completion preview."""
        self.list_len = len(results)
        if self.list_len == 0:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        elif self.selected >= self.list_len:
            self.selected = self.list_len - 1
        if self.completion and self.selected is not None:
            self.completion_text = results[self.selected].completion
        else:
            self.completion = False
            self.completion_text = None

    @property
    def display_query(self) -> str:
        if self.completion and self.completion_text is not None:
            return self.completion_text
        return self.query

    def handle(self, key: str) -> KeyAction:
        if key == "ctrl-c":
            return KeyAction.QUIT
        if key == "enter":
            return KeyAction.COMMIT if self.selected is not None else KeyAction.NONE
        if key in ("backspace", "delete"):
            self.completion = False
            if self.cursor > 0:
                self.query = self.query[: self.cursor - 1] + self.query[self.cursor :]
                self.cursor -= 1
        elif key == "up":
            self._move_selection(-1)
        elif key == "down":
            self._move_selection(1)
        elif key == "left":
            self._adopt_completion()
            self.cursor = max(self.cursor - 1, 0)
        elif key == "right":
            self._adopt_completion()
            self.cursor = min(self.cursor + 1, len(self.query))
        elif key == "tab":
            self.completion = self.list_len > 0
            self._move_selection(1)
        elif key == "esc":
            self.completion = False
        elif key.isprintable():
            self._adopt_completion()
            self.query = self.query[: self.cursor] + key + self.query[self.cursor :]
            self.cursor += len(key)
        return KeyAction.NONE

    def _move_selection(self, step: int) -> None:
        if self.list_len == 0 or self.selected is None:
            return
        self.selected = (self.selected + step) % self.list_len

    def _adopt_completion(self) -> None:
        if self.completion and self.completion_text is not None:
            self.query = self.completion_text
            self.cursor = len(self.query)
        self.completion = False
        self.completion_text = None


class TerminalPresenter:
    """Draws the prompt with rich and reads keys with click."""

    def __init__(self, console: Console | None = None, prompt: str = Messages.PROMPT) -> None:
        self.console = console or Console()
        self.prompt = prompt
        self.state = PromptState()
        self.status: str | None = None
        self._live: Live | None = None
        self._saved_tty = None

    def query(self) -> str:
        return self.state.query

    def render(self, results: Sequence[LauncherResult]) -> tuple[bool, int | None]:
        shown = results if self.state.query else []
        self.state.sync(shown)
        self._draw(shown)
        if not self._key_ready(POLL_INTERVAL):
            return False, None
        try:
            raw = click.getchar()
        except KeyboardInterrupt:
            raw = "\x03"
        except EOFError:
            return True, None
        action = self.state.handle(decode_key(raw))
        if action is KeyAction.QUIT:
            return True, None
        if action is KeyAction.COMMIT:
            return True, self.state.selected
        self.status = None
        return False, None

    def show_error(self, message: str) -> None:
        self.status = message

    def start(self) -> None:
        self._enter_cbreak()
        if self._live is None:
            self._live = Live(console=self.console, screen=True, auto_refresh=False)
            self._live.start()

    def resume(self) -> None:
        self.start()

    def suspend(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._restore_tty()

    def close(self) -> None:
        self.suspend()

    def _draw(self, results: Sequence[LauncherResult]) -> None:
        if self._live is None:
            self.start()
        live = self._live
        prompt_line = Text(self.prompt + self.state.display_query)
        lines = []
        for index, result in enumerate(results):
            if index == self.state.selected:
                lines.append(Text(HIGHLIGHT_SYMBOL + result.label, style=Styles.HIGHLIGHT))
            else:
                lines.append(Text(" " * len(HIGHLIGHT_SYMBOL) + result.label))
        body = Group(*lines) if lines else Text("")
        parts = [Panel(prompt_line), Panel(body)]
        if self.status:
            parts.append(Text(self.status, style=Styles.ERROR))
        live.update(Group(*parts), refresh=True)

    def _key_ready(self, timeout: float) -> bool:
        if sys.platform.startswith("win"):
            import msvcrt
            import time

            deadline = time.monotonic() + timeout
            while time.monotonic() < deadline:
                if msvcrt.kbhit():
                    return True
                time.sleep(0.005)
            return False
        import select

        readable, _, _ = select.select([sys.stdin], [], [], timeout)
        return bool(readable)

    def _enter_cbreak(self) -> None:
        if sys.platform.startswith("win") or self._saved_tty is not None:
            return
        import termios
        import tty

        fd = sys.stdin.fileno()
        self._saved_tty = termios.tcgetattr(fd)
        tty.setcbreak(fd)

    def _restore_tty(self) -> None:
        if self._saved_tty is None:
            return
        import termios

        termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._saved_tty)
        self._saved_tty = None


def stdin_is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty() and os.environ.get("TERM") != "dumb"
