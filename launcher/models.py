"""Value types shared by the index, the query engine and the launch layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


class EntryKind(str, Enum):
    APP = "app"
    EXECUTABLE = "executable"
    FILE = "file"


class ResultKind(str, Enum):
    COMMAND = "command"
    URL = "url"
    APP = "app"
    EXECUTABLE = "executable"
    FILE = "file"


@dataclass(frozen=True, slots=True)
class FileEntry:
    """An indexed launchable filesystem object.

    Two entries are equal when they point at the same path; kind and display
    name are carried along but ignored for identity.
    """

    full_path: str
    kind: EntryKind = field(compare=False)
    display_name: str = field(compare=False)


@dataclass(frozen=True, slots=True)
class CommandResult:
    kind: ClassVar[ResultKind] = ResultKind.COMMAND

    name: str
    argument: str = ""

    @property
    def label(self) -> str:
        return f":{self.name} {self.argument}"

    @property
    def completion(self) -> str:
        return f":{self.name} {self.argument}".rstrip()


@dataclass(frozen=True, slots=True)
class UrlResult:
    kind: ClassVar[ResultKind] = ResultKind.URL

    url: str

    @property
    def label(self) -> str:
        return f"Url: {self.url}"

    @property
    def completion(self) -> str:
        return self.url


@dataclass(frozen=True, slots=True)
class AppResult:
    kind: ClassVar[ResultKind] = ResultKind.APP

    path: str

    @property
    def label(self) -> str:
        return f"App: {self.path}"

    @property
    def completion(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class ExecutableResult:
    kind: ClassVar[ResultKind] = ResultKind.EXECUTABLE

    path: str

    @property
    def label(self) -> str:
        return f"Bin: {self.path}"

    @property
    def completion(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class FileResult:
    kind: ClassVar[ResultKind] = ResultKind.FILE

    path: str

    @property
    def label(self) -> str:
        return f"File: {self.path}"

    @property
    def completion(self) -> str:
        return self.path


LauncherResult = Union[CommandResult, UrlResult, AppResult, ExecutableResult, FileResult]

_RESULT_FOR_KIND = {
    EntryKind.APP: AppResult,
    EntryKind.EXECUTABLE: ExecutableResult,
    EntryKind.FILE: FileResult,
}


def result_for_entry(entry: FileEntry) -> LauncherResult:
    """Return the launch result matching an indexed entry's kind."""
    return _RESULT_FOR_KIND[entry.kind](entry.full_path)


def result_target(result: LauncherResult) -> str:
    if isinstance(result, CommandResult):
        return f"{result.name} {result.argument}".rstrip()
    if isinstance(result, UrlResult):
        return result.url
    return result.path
