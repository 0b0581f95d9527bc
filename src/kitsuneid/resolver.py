"""Cross-namespace title resolution.

Maps a title from one catalog (e.g. a MyAnimeList title) to the identifier of
the best-matching entry in the target catalog's search results. The two
catalogs disagree on subtitles, season phrasing and punctuation, so several
query variants are searched concurrently and every candidate is scored.

Scoring, against the original source title:
  +100  normalized titles equal (after stripping "subtitle indonesia")
  +50   scaled by the share of source words (len > 2) found in the candidate
  -0.5  per character of normalized length difference
  +30   both carry the same season/part marker
  -20   the source has a season marker the candidate does not share

The best candidate across all variants must reach ``min_score``. Outcomes,
including misses, are memoized for the process lifetime.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog
from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from kitsuneid.models.catalog import CatalogEntry

    SearchFn = Callable[[str], Awaitable[list[CatalogEntry]]]

log = structlog.get_logger()

DEFAULT_MIN_SCORE = 20.0

_BOILERPLATE = re.compile(r"\b(subtitle indonesia|sub indo)\b")
_SEPARATORS = re.compile(r"[-_:;/|~]+")
_SEASON_MARKER = re.compile(
    r"\b(season|part|cour)\s*(\d+)\b|\b(\d+)(?:st|nd|rd|th)\s+(season|part|cour)\b"
)
_FIRST_CLAUSE = re.compile(
    r"\s*(?::|\(|\bseason\b|\bpart\b|\bcour\b|\b\d+(?:st|nd|rd|th)\s+season\b)",
    re.IGNORECASE,
)
_STOP_WORDS = frozenset(
    {"the", "a", "an", "season", "part", "cour", "tv", "sub", "indo", "subtitle", "indonesia"}
)


def normalize_title(title: str) -> str:
    """Lowercase, punctuation to spaces, boilerplate suffix removed."""
    processed = default_process(title)
    processed = _BOILERPLATE.sub(" ", processed)
    return " ".join(processed.split())


def season_marker(title: str) -> str | None:
    """``"Attack on Titan Season 2"`` / ``"... 2nd Season"`` → ``"season 2"``."""
    match = _SEASON_MARKER.search(title.lower())
    if match is None:
        return None
    if match.group(1):
        return f"{match.group(1)} {int(match.group(2))}"
    return f"{match.group(4)} {int(match.group(3))}"


def query_variants(title: str) -> list[str]:
    """Search queries derived from ``title``, deduplicated in priority order."""
    spaced = " ".join(_SEPARATORS.sub(" ", title).split())

    without_markers = _SEASON_MARKER.sub(" ", spaced.lower())
    stripped = " ".join(
        word for word in default_process(without_markers).split() if word not in _STOP_WORDS
    )

    first_clause = _FIRST_CLAUSE.split(title, maxsplit=1)[0].strip()
    first_three = " ".join(spaced.split()[:3])

    variants: list[str] = []
    seen: set[str] = set()
    for candidate in (spaced, stripped, first_clause, first_three):
        key = candidate.lower().strip()
        if key and key not in seen:
            seen.add(key)
            variants.append(candidate.strip())
    return variants


def score_candidate(source_title: str, candidate_title: str) -> float:
    source = normalize_title(source_title)
    candidate = normalize_title(candidate_title)

    score = 0.0
    if source and source == candidate:
        score += 100

    words = [word for word in source.split() if len(word) > 2]
    if words:
        hits = sum(1 for word in words if word in candidate)
        score += 50 * hits / len(words)

    score -= 0.5 * abs(len(source) - len(candidate))

    source_marker = season_marker(source_title)
    if source_marker is not None:
        if season_marker(candidate_title) == source_marker:
            score += 30
        else:
            score -= 20

    return score


class IdentifierResolver:
    """Resolve titles into identifiers of the catalog behind ``search``."""

    def __init__(
        self,
        search: SearchFn,
        *,
        min_score: float = DEFAULT_MIN_SCORE,
        memo: dict[str, str | None] | None = None,
    ) -> None:
        self._search = search
        self.min_score = min_score
        # Append-only for the process lifetime; misses are remembered too.
        self.memo: dict[str, str | None] = memo if memo is not None else {}

    async def resolve(self, source_title: str) -> str | None:
        if source_title in self.memo:
            log.debug("resolve_memo_hit", title=source_title)
            return self.memo[source_title]

        variants = query_variants(source_title)
        results = await asyncio.gather(
            *(self._search(variant) for variant in variants),
            return_exceptions=True,
        )

        best: tuple[float, float, str] | None = None
        for variant, result in zip(variants, results, strict=True):
            if isinstance(result, BaseException):
                # Rate limiting and outages look the same as absence here.
                log.warning("resolver_variant_failed", query=variant, error=str(result))
                continue
            for entry in result:
                score = score_candidate(source_title, entry.title)
                tiebreak = fuzz.ratio(source_title, entry.title, processor=default_process)
                if best is None or (score, tiebreak) > best[:2]:
                    best = (score, tiebreak, entry.identifier)

        identifier: str | None = None
        if best is not None and best[0] >= self.min_score:
            identifier = best[2]

        log.info(
            "resolve_complete",
            title=source_title,
            variants=len(variants),
            best_score=round(best[0], 2) if best is not None else None,
            identifier=identifier,
        )
        self.memo[source_title] = identifier
        return identifier
