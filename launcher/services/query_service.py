"""Turn a raw query into memoized launcher results."""

from __future__ import annotations

import logging
import os
import socket
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Callable
from urllib.parse import urlsplit

from ..cache import Cache
from ..config import Config
from ..models import CommandResult, FileResult, LauncherResult, UrlResult
from ..ranking import rank_results

logger = logging.getLogger(__name__)

COMMAND_PREFIX = ":"
SHORT_QUERY_LIMIT = 15
HOST_LOOKUP_TIMEOUT = 2.0
SEARCH_COMMAND = "search"

HostLookup = Callable[[str], bool]


def fix_url(url: str) -> str:
    if not url.startswith("http://") and not url.startswith("https://"):
        return f"http://{url}"
    return url


def looks_like_host(text: str) -> bool:
    """Return True when *text* names a host that resolves."""
    if not text or any(ch.isspace() for ch in text):
        return False
    try:
        host = urlsplit(fix_url(text)).hostname
    except ValueError:
        return False
    if not host:
        return False
    try:
        socket.getaddrinfo(host, None)
    except (OSError, UnicodeError) as exc:
        logger.debug("Host lookup for %r failed: %s", host, exc)
        return False
    return True


def parse_command(query: str) -> tuple[str, str]:
    """Split ``:name argument`` into its name and (possibly empty) argument."""
    body = query[len(COMMAND_PREFIX) :].strip()
    name, _, argument = body.partition(" ")
    return name.strip(), argument.strip()


def resolve_command(name: str, argument: str, config: Config) -> list[LauncherResult]:
    if name == "find":
        # Directory search is reserved and yields nothing yet.
        return []
    if name == "config":
        return [FileResult(str(config.config_path))]
    return [CommandResult(name, argument)]


def parse_and_resolve(
    raw_query: str,
    config: Config,
    cache: Cache,
    *,
    host_lookup: HostLookup = looks_like_host,
    home: Path | str | None = None,
) -> Cache:
    """Resolve *raw_query* against *cache* and return only the additions.

    *cache* is read, never modified. An empty or already memoized query gives
    an empty delta.
    """
    delta = Cache()
    query = raw_query.strip()
    if not query or query in cache.results:
        return delta

    if query.startswith(COMMAND_PREFIX):
        name, argument = parse_command(query)
        delta.add_results(query, resolve_command(name, argument, config))
        return delta

    results: list[LauncherResult] = []
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="host-lookup")
    try:
        host_check = executor.submit(host_lookup, query)

        if len(query) < SHORT_QUERY_LIMIT:
            results.extend(rank_results(cache.entries.values(), query, config))

        if os.path.exists(query):
            results.append(FileResult(query))
        home_dir = Path.home() if home is None else Path(home)
        home_candidate = f"{home_dir}{os.sep}{query}"
        if os.path.exists(home_candidate):
            results.append(FileResult(home_candidate))

        if _host_resolves(host_check, query):
            results.append(UrlResult(fix_url(query)))
    finally:
        executor.shutdown(wait=False)

    results.append(CommandResult(SEARCH_COMMAND, query))
    delta.add_results(query, results)
    return delta


def _host_resolves(future: Future, query: str) -> bool:
    try:
        return bool(future.result(timeout=HOST_LOOKUP_TIMEOUT))
    except FutureTimeoutError:
        logger.debug("Host lookup for %r timed out", query)
    except Exception:
        logger.debug("Host lookup for %r failed", query, exc_info=True)
    return False
