"""Fuzzy ranking strategies and the parallel ranking pass."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Sequence

from rapidfuzz import fuzz
from rapidfuzz.distance import Indel

from .config import Config, DEFAULT_RANK_CONCURRENCY
from .models import FileEntry, LauncherResult, result_for_entry

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_CAMEL = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

FUSE_THRESHOLD = 0.4
FUSE_SCALE = 1000

_MIN_CHUNK_SIZE = 256


@dataclass(frozen=True, slots=True)
class RankedEntry:
    entry: FileEntry
    score: int
    coverage: float


class RankingStrategy(Protocol):
    name: str

    def prepare(self, query: str) -> object:
        raise NotImplementedError

    def score(self, entry: FileEntry, pattern: object) -> RankedEntry | None:
        raise NotImplementedError

    def sort_key(self, ranked: RankedEntry) -> tuple:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class _SkimPattern:
    text: str
    case_sensitive: bool


@dataclass(frozen=True, slots=True)
class SkimStrategy(RankingStrategy):
    """Subsequence matcher; higher score is better."""

    name: str = "skim"

    def prepare(self, query: str) -> _SkimPattern:
        case_sensitive = any(ch.isupper() for ch in query)
        return _SkimPattern(
            text=query if case_sensitive else query.lower(),
            case_sensitive=case_sensitive,
        )

    def score(self, entry: FileEntry, pattern: _SkimPattern) -> RankedEntry | None:
        name = entry.display_name
        if not name:
            return None
        haystack = name if pattern.case_sensitive else name.lower()
        positions = matched_positions(pattern.text, haystack)
        if len(positions) != len(pattern.text):
            return None
        return RankedEntry(
            entry=entry,
            score=_skim_score(name, positions),
            coverage=len(positions) / len(name),
        )

    def sort_key(self, ranked: RankedEntry) -> tuple:
        return (-ranked.score, -ranked.coverage)


@dataclass(frozen=True, slots=True)
class _FusePattern:
    text: str
    length: int


@dataclass(frozen=True, slots=True)
class FuseStrategy(RankingStrategy):
    """Approximate alignment matcher; lower score is better."""

    name: str = "fuse"
    threshold: float = FUSE_THRESHOLD

    def prepare(self, query: str) -> _FusePattern:
        text = query.lower()
        return _FusePattern(text=text, length=len(text))

    def score(self, entry: FileEntry, pattern: _FusePattern) -> RankedEntry | None:
        name = entry.display_name
        if not name or pattern.length > len(name):
            return None
        haystack = name.lower()
        alignment = fuzz.partial_ratio_alignment(
            pattern.text,
            haystack,
            score_cutoff=(1.0 - self.threshold) * 100,
        )
        if alignment is None:
            return None
        match_score = 1.0 - alignment.score / 100
        if match_score > self.threshold:
            return None
        ranges = matched_ranges(
            pattern.text,
            haystack,
            alignment.dest_start,
            alignment.dest_end,
        )
        covered = sum(end - start for start, end in ranges)
        return RankedEntry(
            entry=entry,
            score=int(match_score * FUSE_SCALE),
            coverage=int((len(name) - covered) / len(name) * FUSE_SCALE),
        )

    def sort_key(self, ranked: RankedEntry) -> tuple:
        return (ranked.score, ranked.coverage)


_STRATEGIES: Dict[str, RankingStrategy] = {
    "skim": SkimStrategy(),
    "fuse": FuseStrategy(),
}


def get_strategy(name: str) -> RankingStrategy:
    try:
        return _STRATEGIES[name]
    except KeyError as exc:
        raise ValueError(f"Unsupported fuzzy engine: {name}") from exc


def available_engines() -> list[str]:
    return sorted(_STRATEGIES.keys())


def matched_positions(needle: str, haystack: str) -> list[int]:
    """Return haystack indices aligned with needle characters by LCS."""
    positions: list[int] = []
    for opcode in Indel.opcodes(needle, haystack):
        if opcode.tag == "equal":
            positions.extend(range(opcode.dest_start, opcode.dest_end))
    return positions


def matched_ranges(needle: str, haystack: str, start: int, end: int) -> list[tuple[int, int]]:
    """Return the (start, end) spans of haystack[start:end] matching needle."""
    window = haystack[start:end]
    return [
        (start + opcode.dest_start, start + opcode.dest_end)
        for opcode in Indel.opcodes(needle, window)
        if opcode.tag == "equal"
    ]


def _char_bonus(name: str, position: int) -> int:
    if position == 0:
        return BONUS_BOUNDARY
    previous = name[position - 1]
    current = name[position]
    if not current.isalnum():
        return BONUS_NON_WORD
    if not previous.isalnum():
        return BONUS_BOUNDARY
    if previous.islower() and current.isupper():
        return BONUS_CAMEL
    if previous.isalpha() and current.isdigit():
        return BONUS_CAMEL
    return 0


def _skim_score(name: str, positions: Sequence[int]) -> int:
    score = 0
    consecutive = 0
    previous: int | None = None
    for index, position in enumerate(positions):
        bonus = _char_bonus(name, position)
        if previous is not None:
            gap = position - previous - 1
            if gap == 0:
                consecutive = max(consecutive, bonus, BONUS_CONSECUTIVE)
                bonus = max(bonus, consecutive)
            else:
                score += SCORE_GAP_START + SCORE_GAP_EXTENSION * (gap - 1)
                consecutive = 0
        if index == 0:
            bonus *= BONUS_FIRST_CHAR_MULTIPLIER
        score += SCORE_MATCH + bonus
        previous = position
    return score


def _chunked(entries: Sequence[FileEntry], parts: int) -> list[Sequence[FileEntry]]:
    size = max(_MIN_CHUNK_SIZE, -(-len(entries) // parts))
    return [entries[start : start + size] for start in range(0, len(entries), size)]


def rank(
    entries: Iterable[FileEntry],
    query: str,
    strategy: RankingStrategy,
    *,
    concurrency: int = DEFAULT_RANK_CONCURRENCY,
) -> list[RankedEntry]:
    """Score every entry against *query* and return matches best first.

    Entries with equal (score, coverage) keep no particular relative order.
    """
    pool = list(entries)
    if not pool or not query:
        return []
    pattern = strategy.prepare(query)

    def _score_chunk(chunk: Sequence[FileEntry]) -> list[RankedEntry]:
        scored: list[RankedEntry] = []
        for entry in chunk:
            ranked = strategy.score(entry, pattern)
            if ranked is not None:
                scored.append(ranked)
        return scored

    chunks = _chunked(pool, max(int(concurrency or 1), 1))
    if len(chunks) <= 1:
        matches = _score_chunk(pool)
    else:
        matches = []
        with ThreadPoolExecutor(max_workers=min(concurrency, len(chunks))) as executor:
            for batch in executor.map(_score_chunk, chunks):
                matches.extend(batch)
    matches.sort(key=strategy.sort_key)
    return matches


def rank_results(
    entries: Iterable[FileEntry],
    query: str,
    config: Config,
) -> list[LauncherResult]:
    """Rank *entries* with the configured engine and map the top hits to results."""
    strategy = get_strategy(config.fuzzy_engine)
    ranked = rank(entries, query, strategy, concurrency=config.rank_concurrency)
    return [result_for_entry(item.entry) for item in ranked[: config.max_results]]
