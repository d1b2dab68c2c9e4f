from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from launcher.cli import app


@pytest.fixture
def env(tmp_path, monkeypatch):
    apps = tmp_path / "Applications"
    apps.mkdir()
    (apps / "Safari.app").mkdir()
    (apps / "Calendar.app").mkdir()
    home = tmp_path / "h"
    home.mkdir()
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    config_path = tmp_path / "conf" / "config.json"
    config_path.parent.mkdir()
    config_path.write_text(json.dumps({"app_locations": [str(apps)]}))

    monkeypatch.setenv("PATH", "")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(cwd)
    monkeypatch.setattr("launcher.cli.looks_like_host", lambda _query: False)
    return {"apps": apps, "home": home, "config": config_path}


def test_search_porcelain_lists_ranked_results(env):
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(env["config"]), "search", "saf", "--format", "porcelain"]
    )

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0] == f"1\tapp\t{env['apps'] / 'Safari.app'}"
    assert lines[-1] == f"{len(lines)}\tcommand\tsearch saf"


def test_search_rich_table(env):
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "search", "saf"])

    assert result.exit_code == 0
    assert "Launcher results" in result.stdout
    assert "search saf" in result.stdout


def test_search_top_limits_fuzzy_matches(env):
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--config", str(env["config"]), "search", "a", "--top", "1", "--format", "porcelain"],
    )

    assert result.exit_code == 0
    kinds = [line.split("\t")[1] for line in result.stdout.strip().splitlines()]
    assert kinds.count("app") + kinds.count("file") == 1
    assert kinds[-1] == "command"


def test_search_rejects_bad_top(env):
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "search", "saf", "--top", "0"])

    assert result.exit_code == 2


def test_search_rejects_blank_query(env):
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "search", "   "])

    assert result.exit_code == 1
    assert "must not be empty" in result.stdout


def test_search_meta_command(env):
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(env["config"]), "search", ":config", "--format", "porcelain"]
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == f"1\tfile\t{env['config']}"


def test_invalid_engine_in_config_is_fatal(env):
    env["config"].write_text(json.dumps({"fuzzy_engine": "fzf"}))
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "search", "saf"])

    assert result.exit_code == 1
    assert "Unsupported fuzzy engine" in result.stdout


def test_config_show_prints_summary(env):
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "config", "--show"])

    assert result.exit_code == 0
    assert "Fuzzy engine: skim" in result.stdout
    assert "Max results: 20" in result.stdout


def test_config_updates_are_written(env):
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "--config",
            str(env["config"]),
            "config",
            "--set-engine",
            "fuse",
            "--set-max-results",
            "5",
            "--set-editor",
            "hx",
        ],
    )

    assert result.exit_code == 0
    assert "Configuration saved" in result.stdout
    stored = json.loads(env["config"].read_text())
    assert stored["fuzzy_engine"] == "fuse"
    assert stored["max_results"] == 5
    assert stored["editor"] == "hx"


def test_config_rejects_unknown_engine(env):
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "config", "--set-engine", "fzf"])

    assert result.exit_code == 2
    assert "fuzzy_engine" not in json.loads(env["config"].read_text())


def test_config_rejects_bad_max_results(env):
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(env["config"]), "config", "--set-max-results", "0"]
    )

    assert result.exit_code == 1
    assert "max_results must be >= 1" in result.stdout


def test_config_reset(env):
    env["config"].write_text(json.dumps({"fuzzy_engine": "fzf"}))
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"]), "config", "--reset"])

    assert result.exit_code == 0
    assert "reset to defaults" in result.stdout
    assert json.loads(env["config"].read_text())["fuzzy_engine"] == "skim"


def test_config_edit_runs_editor(env, monkeypatch):
    captured = {}

    def fake_run(cmd, check):
        captured["cmd"] = cmd
        captured["check"] = check

    monkeypatch.setattr("launcher.cli.subprocess.run", fake_run)
    runner = CliRunner()

    result = runner.invoke(
        app, ["--config", str(env["config"]), "config", "--set-editor", "myedit -w", "--edit"]
    )

    assert result.exit_code == 0
    assert captured["cmd"] == ["myedit", "-w", str(env["config"])]
    assert captured["check"] is True


def test_interactive_mode_requires_terminal(env, monkeypatch):
    monkeypatch.setattr("launcher.cli.stdin_is_interactive", lambda: False)
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(env["config"])])

    assert result.exit_code == 1
    assert "Interactive mode needs a terminal" in result.stdout


def test_config_edit_rejects_unparsable_editor(env, monkeypatch):
    called = {"run": False}

    def fake_run(*_args, **_kwargs):
        called["run"] = True

    monkeypatch.setattr("launcher.cli.subprocess.run", fake_run)
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["--config", str(env["config"]), "config", "--set-editor", "vim 'oops", "--edit"],
    )

    assert result.exit_code == 1
    assert "Cannot parse editor command" in result.stdout
    assert called["run"] is False
