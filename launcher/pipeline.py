"""UI loop, backend worker and selection executor wired around the shared cache."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from .cache import Cache, SharedCache
from .config import Config
from .models import LauncherResult, result_target
from .services.index_service import build_index
from .services.launch_service import LaunchError, execute
from .services.query_service import parse_and_resolve
from .text import Messages

logger = logging.getLogger(__name__)

DEFAULT_RESOLVE_WORKERS = 4

Resolver = Callable[[str, Config, Cache], Cache]
Indexer = Callable[[Config], Cache]
Executor = Callable[[LauncherResult, Config], bool]


class Presenter(Protocol):
    def query(self) -> str:
        raise NotImplementedError

    def render(self, results: Sequence[LauncherResult]) -> tuple[bool, int | None]:
        """Draw *results*; return (committed, chosen_index)."""
        raise NotImplementedError

    def suspend(self) -> None:
        raise NotImplementedError

    def resume(self) -> None:
        raise NotImplementedError

    def show_error(self, message: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class SelectionOutcome:
    result: LauncherResult
    keep_alive: bool = False
    error: LaunchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BackendWorker(threading.Thread):
    """Receives query text and resolves it off the UI thread.

    Resolution tasks clone the shared cache, resolve against the clone and
    merge their delta back; the lock is never held while ranking.
    """

    def __init__(
        self,
        config: Config,
        shared: SharedCache,
        *,
        resolver: Resolver = parse_and_resolve,
        indexer: Indexer = build_index,
        max_workers: int = DEFAULT_RESOLVE_WORKERS,
    ) -> None:
        super().__init__(name="launcher-backend", daemon=True)
        self.config = config
        self.shared = shared
        self.index_ready = threading.Event()
        self._resolver = resolver
        self._indexer = indexer
        self._queries: "queue.Queue[str | None]" = queue.Queue()
        self._executor = ThreadPoolExecutor(
            max_workers=max(int(max_workers or 1), 1),
            thread_name_prefix="launcher-resolve",
        )
        self._inflight: set[str] = set()
        self._inflight_lock = threading.Lock()
        self._index_lock = threading.Lock()
        self._indexed = False
        self._index_failed = False

    def submit(self, query: str) -> None:
        self._queries.put_nowait(query)

    def stop(self) -> None:
        self._queries.put_nowait(None)

    def start_indexing(self) -> Future:
        return self._executor.submit(self._index)

    def run(self) -> None:
        try:
            while True:
                raw = self._queries.get()
                if raw is None:
                    break
                query = raw.strip()
                if not query or self._is_pending(query):
                    continue
                future = self._executor.submit(self._resolve, query)
                future.add_done_callback(lambda _f, q=query: self._finish(q))
        finally:
            self._executor.shutdown(wait=False)

    def _is_pending(self, query: str) -> bool:
        with self._inflight_lock:
            if query in self._inflight:
                return True
            if self.shared.contains(query):
                return True
            self._inflight.add(query)
            return False

    def _finish(self, query: str) -> None:
        with self._inflight_lock:
            self._inflight.discard(query)

    def _index(self) -> bool:
        """Build and merge the index once; return whether one is in place.

        After a failed build every resolution retries it. Results memoized
        while no index was available are dropped once a retry succeeds.
        """
        with self._index_lock:
            try:
                if self._indexed:
                    return True
                try:
                    delta = self._indexer(self.config)
                except Exception:
                    logger.exception("Index build failed")
                    self._index_failed = True
                    return False
                if self._index_failed:
                    self.shared.clear_results()
                    logger.debug("Index recovered; dropped results memoized without it")
                self.shared.merge(delta)
                self._indexed = True
                return True
            finally:
                self.index_ready.set()

    def _resolve(self, query: str) -> None:
        self.index_ready.wait()
        indexed = self._indexed or self._index()
        try:
            snapshot = self.shared.snapshot()
            delta = self._resolver(query, self.config, snapshot)
        except Exception:
            logger.exception("Resolving %r failed", query)
            return
        with self._index_lock:
            if not indexed and self._indexed:
                # resolved against a missing index that has since been rebuilt
                logger.debug("Discarding stale results for %r", query)
                return
            self.shared.merge(delta)
        logger.debug("Merged results for %r", query)


class SelectionExecutor(threading.Thread):
    """Waits for committed results and launches them.

    Stops after the first successful launch; failures are reported and the
    executor keeps waiting for another commit.
    """

    def __init__(self, config: Config, *, executor: Executor = execute) -> None:
        super().__init__(name="launcher-selection", daemon=True)
        self.config = config
        self._execute = executor
        self._selections: "queue.Queue[LauncherResult | None]" = queue.Queue()
        self._outcomes: "queue.Queue[SelectionOutcome]" = queue.Queue()

    def commit(self, result: LauncherResult) -> None:
        self._selections.put_nowait(result)

    def stop(self) -> None:
        self._selections.put_nowait(None)

    def wait_outcome(self, timeout: float | None = None) -> SelectionOutcome:
        return self._outcomes.get(timeout=timeout)

    def run(self) -> None:
        while True:
            result = self._selections.get()
            if result is None:
                return
            try:
                keep_alive = self._execute(result, self.config)
            except LaunchError as exc:
                self._outcomes.put(SelectionOutcome(result=result, error=exc))
                continue
            except Exception as exc:
                logger.exception("Launching %r failed", result)
                error = LaunchError(
                    Messages.ERROR_LAUNCH_UNEXPECTED.format(target=result_target(result), reason=exc)
                )
                self._outcomes.put(SelectionOutcome(result=result, error=error))
                continue
            self._outcomes.put(SelectionOutcome(result=result, keep_alive=bool(keep_alive)))
            return


class Pipeline:
    """Runs the UI loop on the calling thread against the backend and selection actors."""

    def __init__(
        self,
        config: Config,
        presenter: Presenter,
        *,
        shared: SharedCache | None = None,
        backend: BackendWorker | None = None,
        selector: SelectionExecutor | None = None,
    ) -> None:
        self.config = config
        self.presenter = presenter
        self.shared = shared if shared is not None else SharedCache()
        self.backend = backend if backend is not None else BackendWorker(config, self.shared)
        self.selector = selector if selector is not None else SelectionExecutor(config)

    def run(self) -> SelectionOutcome | None:
        """Loop until a result launches successfully or the user quits."""
        self.backend.start()
        self.selector.start()
        self.backend.start_indexing()
        results: list[LauncherResult] = []
        try:
            while True:
                text = self.presenter.query()
                self.backend.submit(text)
                results = self._latest_results(text, results)
                committed, index = self.presenter.render(results)
                if not committed:
                    continue
                if index is None or not 0 <= index < len(results):
                    return None
                self.presenter.suspend()
                self.selector.commit(results[index])
                outcome = self.selector.wait_outcome()
                if outcome.ok:
                    return outcome
                self.presenter.resume()
                self.presenter.show_error(str(outcome.error))
        finally:
            self.backend.stop()
            self.selector.stop()
            self.presenter.close()

    def _latest_results(
        self,
        text: str,
        previous: list[LauncherResult],
    ) -> list[LauncherResult]:
        query = text.strip()
        if not query:
            return []
        available, latest = self.shared.try_get_results(query)
        if not available or latest is None:
            return previous
        return latest
