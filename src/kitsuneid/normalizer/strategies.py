"""Ranked field-extraction strategies.

Upstream markup differs across mirrors and changes over time, so every field
is read through an ordered list of strategies. Each strategy returns a value
or ``None``; the first non-empty value wins and a documented sentinel is used
when all of them come up empty. Partial data beats a hard failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bs4 import Tag

    Strategy = Callable[[Tag], str | None]

T = TypeVar("T")


def clean_text(value: str | None) -> str | None:
    """Collapse whitespace; empty strings become ``None``."""
    if value is None:
        return None
    value = " ".join(value.split())
    return value or None


def select_text(css: str) -> Strategy:
    """Text of the first element matching ``css``."""

    def strategy(node: Tag) -> str | None:
        found = node.select_one(css)
        return clean_text(found.get_text(" ")) if found is not None else None

    strategy.__name__ = f"select_text({css!r})"
    return strategy


def select_attr(css: str, *attrs: str) -> Strategy:
    """First non-empty attribute among ``attrs`` on the first element matching ``css``."""

    def strategy(node: Tag) -> str | None:
        found = node.select_one(css)
        if found is None:
            return None
        for attr in attrs:
            value = found.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            value = clean_text(value)
            if value:
                return value
        return None

    strategy.__name__ = f"select_attr({css!r}, {', '.join(attrs)})"
    return strategy


def first_match(node: Tag, strategies: Iterable[Strategy], default: T = None) -> str | T:
    """Evaluate ``strategies`` in order and return the first non-empty value."""
    for strategy in strategies:
        value = strategy(node)
        if value:
            return value
    return default


def first_present(*values: str | None, default: T = None) -> str | T:
    """Same policy as :func:`first_match` for values already extracted."""
    for value in values:
        value = clean_text(value)
        if value:
            return value
    return default
