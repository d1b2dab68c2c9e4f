from __future__ import annotations

from launcher.models import (
    AppResult,
    CommandResult,
    EntryKind,
    ExecutableResult,
    FileEntry,
    FileResult,
    ResultKind,
    UrlResult,
    result_for_entry,
    result_target,
)


def test_file_entries_compare_by_path_only():
    first = FileEntry("/Applications/Safari.app", EntryKind.APP, "Safari")
    second = FileEntry("/Applications/Safari.app", EntryKind.FILE, "Safari.app")

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_result_labels():
    assert CommandResult("search", "rust").label == ":search rust"
    assert CommandResult("exec").label == ":exec "
    assert UrlResult("http://example.com").label == "Url: http://example.com"
    assert AppResult("/Applications/Safari.app").label == "App: /Applications/Safari.app"
    assert ExecutableResult("/usr/bin/git").label == "Bin: /usr/bin/git"
    assert FileResult("/tmp/notes.txt").label == "File: /tmp/notes.txt"


def test_command_completion_drops_trailing_space():
    assert CommandResult("exec").completion == ":exec"
    assert CommandResult("search", "rust lang").completion == ":search rust lang"


def test_result_for_entry_maps_kind():
    assert result_for_entry(FileEntry("/a", EntryKind.APP, "a")) == AppResult("/a")
    assert result_for_entry(FileEntry("/b", EntryKind.EXECUTABLE, "b")) == ExecutableResult("/b")
    assert result_for_entry(FileEntry("/c", EntryKind.FILE, "c")) == FileResult("/c")


def test_result_kinds_and_targets():
    assert CommandResult("search", "x").kind is ResultKind.COMMAND
    assert result_target(CommandResult("search", "x")) == "search x"
    assert result_target(CommandResult("update")) == "update"
    assert result_target(UrlResult("https://a.b")) == "https://a.b"
    assert result_target(FileResult("/tmp/x")) == "/tmp/x"
