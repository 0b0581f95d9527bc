"""Episode numbering, ordering and listing de-duplication."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kitsuneid.models.catalog import CatalogEntry, EpisodeRef

_EXPLICIT_EPISODE = re.compile(r"\b(?:episode|eps?)\.?\s*(\d+(?:[.,]\d+)?)\b", re.IGNORECASE)
_NUMERIC_TOKEN = re.compile(r"^\d+(?:[.,]\d+)?$")


def _canonical_number(raw: str) -> str:
    raw = raw.replace(",", ".")
    if "." in raw:
        whole, frac = raw.split(".", 1)
        return f"{int(whole)}.{frac}"
    return str(int(raw))


def parse_episode_number(title: str, position: int) -> str:
    """Episode number for ``title``, which sits at 1-based ``position`` in its list.

    Order: an explicit "Episode N" in the title, then the last purely numeric
    token, then the position. Titles often carry unrelated numbers (release
    dates, "1080p"), so the explicit pattern always wins.
    """
    match = _EXPLICIT_EPISODE.search(title)
    if match:
        return _canonical_number(match.group(1))

    tokens = [token.strip("()[]:-") for token in title.split()]
    numeric = [token for token in tokens if _NUMERIC_TOKEN.match(token)]
    if numeric:
        return _canonical_number(numeric[-1])

    return str(position)


def _episode_sort_key(ref: EpisodeRef) -> tuple[float, str, str]:
    try:
        number = float(ref.episode_number)
    except ValueError:
        number = math.inf
    return (number, ref.identifier, ref.title)


def sort_episodes(refs: Iterable[EpisodeRef]) -> list[EpisodeRef]:
    """Ascending by episode number; identical output for any input order."""
    return sorted(refs, key=_episode_sort_key)


def dedupe_entries(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    """Drop entries whose identifier already appeared earlier (keep-first)."""
    seen: set[str] = set()
    result: list[CatalogEntry] = []
    for entry in entries:
        if entry.identifier in seen:
            continue
        seen.add(entry.identifier)
        result.append(entry)
    return result
