from __future__ import annotations

import sys
import threading
import time
from functools import partial

import pytest

from launcher.cache import Cache, SharedCache, cache_from_entries
from launcher.config import Config
from launcher.models import AppResult, CommandResult, EntryKind, FileEntry
from launcher.pipeline import BackendWorker, Pipeline, SelectionExecutor
from launcher.services.launch_service import LaunchError
from launcher.services.query_service import parse_and_resolve

SAFARI = FileEntry("/Applications/Safari.app", EntryKind.APP, "Safari")


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def config(tmp_path):
    return Config(app_locations=(), config_path=tmp_path / "config.json")


@pytest.fixture
def resolver(tmp_path):
    return partial(parse_and_resolve, host_lookup=lambda _q: False, home=tmp_path)


def _indexer(_config: Config) -> Cache:
    return cache_from_entries([SAFARI])


class FakePresenter:
    """Types a fixed query and commits the first result once one shows up."""

    def __init__(self, text: str, *, commit_index: int | None = 0, max_ticks: int = 500) -> None:
        self.text = text
        self.commit_index = commit_index
        self.max_ticks = max_ticks
        self.rendered: list[list] = []
        self.errors: list[str] = []
        self.events: list[str] = []
        self.closed = False

    def query(self) -> str:
        return self.text

    def render(self, results):
        self.rendered.append(list(results))
        if len(self.rendered) > self.max_ticks:
            return True, None
        if self.commit_index is None:
            return True, None
        if results:
            return True, self.commit_index
        time.sleep(0.01)
        return False, None

    def suspend(self) -> None:
        self.events.append("suspend")

    def resume(self) -> None:
        self.events.append("resume")

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def close(self) -> None:
        self.closed = True


def _pipeline(config, presenter, resolver, executor):
    shared = SharedCache()
    backend = BackendWorker(config, shared, resolver=resolver, indexer=_indexer)
    selector = SelectionExecutor(config, executor=executor)
    return Pipeline(config, presenter, shared=shared, backend=backend, selector=selector)


def test_pipeline_launches_committed_result(config, resolver):
    launched = []

    def executor(result, _config):
        launched.append(result)
        return True

    presenter = FakePresenter("saf")
    outcome = _pipeline(config, presenter, resolver, executor).run()

    assert outcome is not None and outcome.ok
    assert outcome.result == AppResult(SAFARI.full_path)
    assert outcome.keep_alive is True
    assert launched == [AppResult(SAFARI.full_path)]
    assert presenter.events == ["suspend"]
    assert presenter.closed is True


def test_pipeline_recovers_from_launch_failure(config, resolver):
    attempts = []

    def executor(result, _config):
        attempts.append(result)
        if len(attempts) == 1:
            raise LaunchError("boom")
        return False

    presenter = FakePresenter("saf")
    outcome = _pipeline(config, presenter, resolver, executor).run()

    assert outcome is not None and outcome.ok
    assert outcome.keep_alive is False
    assert len(attempts) == 2
    assert presenter.errors == ["boom"]
    assert presenter.events == ["suspend", "resume", "suspend"]


def test_pipeline_quit_launches_nothing(config, resolver):
    launched = []
    presenter = FakePresenter("saf", commit_index=None)

    outcome = _pipeline(config, presenter, resolver, lambda r, _c: launched.append(r)).run()

    assert outcome is None
    assert launched == []
    assert presenter.closed is True


def test_pipeline_blank_query_shows_nothing(config, resolver):
    presenter = FakePresenter("   ", max_ticks=5)

    outcome = _pipeline(config, presenter, resolver, lambda r, _c: False).run()

    assert outcome is None
    assert all(results == [] for results in presenter.rendered)


def test_backend_resolves_each_query_once(config):
    calls: list[str] = []

    def counting_resolver(query, cfg, cache):
        calls.append(query)
        delta = Cache()
        delta.add_results(query, [CommandResult("search", query)])
        return delta

    shared = SharedCache()
    worker = BackendWorker(config, shared, resolver=counting_resolver, indexer=lambda _c: Cache())
    worker.start()
    worker.start_indexing()
    try:
        for _ in range(20):
            worker.submit("saf")
        assert _wait_for(lambda: shared.contains("saf"))
        worker.submit(" saf ")
        worker.submit("")
        time.sleep(0.05)
    finally:
        worker.stop()
        worker.join(timeout=2)

    assert calls == ["saf"]
    assert shared.get_results("saf") == [CommandResult("search", "saf")]


def test_backend_waits_for_index_before_resolving(config, resolver):
    release = threading.Event()

    def slow_indexer(_config):
        release.wait(timeout=5)
        return cache_from_entries([SAFARI])

    shared = SharedCache()
    worker = BackendWorker(config, shared, resolver=resolver, indexer=slow_indexer)
    worker.start()
    worker.start_indexing()
    try:
        worker.submit("saf")
        time.sleep(0.1)
        assert shared.contains("saf") is False
        release.set()
        assert _wait_for(lambda: shared.contains("saf"))
    finally:
        worker.stop()
        worker.join(timeout=2)

    assert shared.get_results("saf")[0] == AppResult(SAFARI.full_path)


def test_backend_survives_resolver_errors(config):
    def flaky_resolver(query, cfg, cache):
        if query == "bad":
            raise RuntimeError("resolver exploded")
        delta = Cache()
        delta.add_results(query, [])
        return delta

    shared = SharedCache()
    worker = BackendWorker(config, shared, resolver=flaky_resolver, indexer=lambda _c: Cache())
    worker.start()
    worker.start_indexing()
    try:
        worker.submit("bad")
        worker.submit("good")
        assert _wait_for(lambda: shared.contains("good"))
    finally:
        worker.stop()
        worker.join(timeout=2)

    assert shared.contains("bad") is False


def test_backend_marks_index_ready_even_when_indexing_fails(config, resolver):
    def broken_indexer(_config):
        raise OSError("disk gone")

    worker = BackendWorker(config, SharedCache(), resolver=resolver, indexer=broken_indexer)
    worker.start_indexing().result(timeout=5)

    assert worker.index_ready.is_set()


def test_selection_executor_stops_after_success(config):
    selector = SelectionExecutor(config, executor=lambda _r, _c: True)
    selector.start()

    selector.commit(AppResult("/a"))
    outcome = selector.wait_outcome(timeout=5)
    selector.join(timeout=2)

    assert outcome.ok and outcome.keep_alive
    assert not selector.is_alive()


def test_selection_executor_survives_unexpected_errors(config):
    attempts = []

    def executor(result, _config):
        attempts.append(result)
        if len(attempts) == 1:
            raise ValueError("No closing quotation")
        return False

    selector = SelectionExecutor(config, executor=executor)
    selector.start()
    try:
        selector.commit(AppResult("/a"))
        failed = selector.wait_outcome(timeout=5)
        assert not failed.ok
        assert isinstance(failed.error, LaunchError)
        assert "No closing quotation" in str(failed.error)
        assert selector.is_alive()

        selector.commit(AppResult("/a"))
        succeeded = selector.wait_outcome(timeout=5)
    finally:
        selector.stop()
        selector.join(timeout=2)

    assert succeeded.ok
    assert len(attempts) == 2


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX exec semantics")
def test_pipeline_reports_unlaunchable_executable(config, resolver, tmp_path):
    script = tmp_path / "no-shebang"
    script.write_text("echo hi\n")
    script.chmod(0o755)
    entry = FileEntry(str(script), EntryKind.EXECUTABLE, "noshebang")

    class GiveUpAfterError(FakePresenter):
        def render(self, results):
            if self.errors:
                return True, None
            return super().render(results)

    shared = SharedCache()
    backend = BackendWorker(
        config, shared, resolver=resolver, indexer=lambda _c: cache_from_entries([entry])
    )
    presenter = GiveUpAfterError("noshebang")
    pipeline = Pipeline(config, presenter, shared=shared, backend=backend)

    outcome = pipeline.run()

    assert outcome is None
    assert len(presenter.errors) == 1
    assert presenter.events == ["suspend", "resume"]


class ScriptedPresenter(FakePresenter):
    """Plays back one query per tick and never commits until the script ends."""

    def __init__(self, steps, shared: SharedCache) -> None:
        super().__init__("")
        self.steps = list(steps)
        self.shared = shared
        self._locked = False

    def query(self) -> str:
        text, hold_lock = self.steps[len(self.rendered)]
        if hold_lock:
            self.shared._lock.acquire()  # type: ignore[attr-defined]
            self._locked = True
        return text

    def render(self, results):
        if self._locked:
            self.shared._lock.release()  # type: ignore[attr-defined]
            self._locked = False
        self.rendered.append(list(results))
        if len(self.rendered) >= len(self.steps):
            return True, None
        return False, None


def test_ui_keeps_previous_results_while_busy(config):
    release = threading.Event()

    def blocking_resolver(query, cfg, cache):
        release.wait(timeout=5)
        return Cache()

    memoized = [AppResult(SAFARI.full_path), CommandResult("search", "saf")]
    seed = Cache()
    seed.add_results("saf", memoized)
    shared = SharedCache(seed)
    backend = BackendWorker(config, shared, resolver=blocking_resolver, indexer=lambda _c: Cache())
    presenter = ScriptedPresenter(
        [
            ("saf", False),  # memoized
            ("safx", False),  # not resolved yet
            ("", False),  # blank query clears the list
            ("saf", True),  # memoized, but a merge holds the lock
            ("saf", False),
        ],
        shared,
    )
    pipeline = Pipeline(
        config,
        presenter,
        shared=shared,
        backend=backend,
        selector=SelectionExecutor(config, executor=lambda _r, _c: False),
    )

    runner = threading.Thread(target=pipeline.run, daemon=True)
    runner.start()
    runner.join(timeout=5)
    release.set()

    assert not runner.is_alive()
    assert presenter.rendered == [memoized, memoized, [], [], memoized]


def test_index_failure_is_retried_and_stale_results_dropped(config, resolver):
    attempts = {"count": 0}

    def flaky_indexer(_config):
        attempts["count"] += 1
        if attempts["count"] <= 2:
            raise OSError("home not mounted")
        return cache_from_entries([SAFARI])

    shared = SharedCache()
    worker = BackendWorker(config, shared, resolver=resolver, indexer=flaky_indexer)
    worker.start()
    worker.start_indexing()
    try:
        worker.submit("saf")
        assert _wait_for(lambda: shared.contains("saf"))
        assert shared.get_results("saf") == [CommandResult("search", "saf")]

        worker.submit("other")
        assert _wait_for(lambda: shared.contains("other"))
        assert shared.contains("saf") is False

        worker.submit("saf")
        assert _wait_for(lambda: shared.contains("saf"))
    finally:
        worker.stop()
        worker.join(timeout=2)

    assert attempts["count"] == 3
    assert shared.get_results("saf")[0] == AppResult(SAFARI.full_path)
