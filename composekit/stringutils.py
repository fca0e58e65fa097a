"""Small helpers for working with strings."""

from __future__ import annotations

from collections.abc import Iterable

_TRUE_WORDS = frozenset({"1", "t", "true"})


def string_contains(array: Iterable[str], needle: str) -> bool:
    """Return True if ``needle`` is one of the items of ``array``."""
    return needle in array


def string_to_bool(s: str) -> bool:
    """Interpret ``s`` as a boolean, treating anything unrecognised as False.

    Surrounding whitespace and case are ignored; "1", "t" and "true" are true.
    """
    return s.strip().lower() in _TRUE_WORDS