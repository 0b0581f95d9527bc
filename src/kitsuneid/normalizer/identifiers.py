"""Deterministic identifiers for catalog entries.

The same title fetched twice must produce the same identifier, otherwise
cache keys and resolver memoization drift.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

_SECTION_PREFIX = re.compile(r"^(anime|episode)/")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slug_from_url(url: str | None) -> str | None:
    """``https://host/anime/jjk-s2-sub-indo/`` → ``jjk-s2-sub-indo``."""
    if not url:
        return None
    path = urlparse(url).path.strip("/")
    path = _SECTION_PREFIX.sub("", path)
    slug = path.split("/")[-1] if path else ""
    return slug or None


def slugify(title: str | None) -> str | None:
    if not title:
        return None
    slug = _NON_SLUG.sub("-", title.lower()).strip("-")
    return slug or None


def derive_identifier(url: str | None, title: str | None) -> str | None:
    """Prefer the slug in the URL; fall back to a slug of the title."""
    return slug_from_url(url) or slugify(title)


def title_from_slug(slug: str) -> str:
    return slug.replace("-", " ").title()
