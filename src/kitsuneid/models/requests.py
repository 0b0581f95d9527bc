"""Input models for the public operations.

Query strings arrive as optional text; each model turns a missing value into
a readable message so the HTTP layer can answer 400 before any upstream call.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def _required(v: str | None, name: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(f"{name} is required")
    return v


class _Input(BaseModel):
    # Defaults go through the validators too, so an absent parameter is reported.
    model_config = ConfigDict(validate_default=True)


class PageInput(_Input):
    page: int = 1

    @field_validator("page", mode="before")
    @classmethod
    def coerce_page(cls, v: object) -> int:
        # Unparseable or non-positive pages fall back to the first page
        try:
            page = int(str(v))
        except (TypeError, ValueError):
            return 1
        return page if page >= 1 else 1


class SearchInput(_Input):
    q: str | None = None

    @field_validator("q")
    @classmethod
    def validate_q(cls, v: str | None) -> str:
        v = _required(v, "q")
        if len(v) > 200:
            raise ValueError("q must be at most 200 characters")
        return v


_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


class DetailInput(_Input):
    slug: str | None = None
    mal_id: int | None = None

    @field_validator("slug")
    @classmethod
    def strip_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().strip("/") or None

    @model_validator(mode="after")
    def require_one(self) -> DetailInput:
        if self.slug is None and self.mal_id is None:
            raise ValueError("slug or id is required")
        # Catalog slugs are never purely numeric; those are MyAnimeList ids.
        if self.mal_id is None and self.slug is not None and self.slug.isdigit():
            self.mal_id, self.slug = int(self.slug), None
        return self

    @property
    def is_slug(self) -> bool:
        """True when ``slug`` already looks like a catalog slug, not a free-text title."""
        return self.slug is not None and bool(_SLUG_RE.match(self.slug))


class EpisodeInput(_Input):
    slug: str | None = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str | None) -> str:
        return _required((v or "").strip("/"), "slug")


class ServerInput(_Input):
    id: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str | None) -> str:
        return _required(v, "id")
