"""Turn heterogeneous upstream payloads into the internal catalog schema.

Two raw shapes enter here: Otakudesu HTML nodes (``bs4.Tag``) and Jikan JSON
records (``JikanAnime``). Nothing upstream-shaped is returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import Tag

from kitsuneid.models.catalog import AiringStatus
from kitsuneid.models.jikan import JikanAnime
from kitsuneid.normalizer import jikan, otakudesu

if TYPE_CHECKING:
    from kitsuneid.models.catalog import CatalogEntry

RawListingNode = Tag | JikanAnime


def normalize_listing_entry(
    raw: RawListingNode, status: AiringStatus = AiringStatus.UNKNOWN
) -> CatalogEntry | None:
    """Normalize one listing node of either source shape."""
    if isinstance(raw, JikanAnime):
        return jikan.normalize_listing_entry(
            raw, None if status is AiringStatus.UNKNOWN else status
        )
    if isinstance(raw, Tag):
        return otakudesu.normalize_listing_entry(raw, status)
    raise TypeError(f"Unsupported listing node: {type(raw).__name__}")


__all__ = ["RawListingNode", "jikan", "normalize_listing_entry", "otakudesu"]
