"""Relevance ranking for principal search results.

Matches are grouped as exact, prefix, then substring; each group is ordered
alphabetically (case-insensitive first, raw text as a deterministic
tie-break). Entries that do not match at all sort after every match.
"""

from __future__ import annotations

from enum import IntEnum
from functools import cmp_to_key
from typing import Any, Callable, Protocol


class SearchRank(IntEnum):
    EXACT = 0
    PREFIX = 1
    SUBSTRING = 2
    NONE = 3


class _Named(Protocol):
    @property
    def display_name(self) -> str: ...


def _name_of(value: str | _Named) -> str:
    if isinstance(value, str):
        return value
    return value.display_name


def search_rank(term: str, name: str) -> SearchRank:
    needle = term.casefold()
    haystack = name.casefold()
    if not needle:
        return SearchRank.NONE
    if haystack == needle:
        return SearchRank.EXACT
    if haystack.startswith(needle):
        return SearchRank.PREFIX
    if needle in haystack:
        return SearchRank.SUBSTRING
    return SearchRank.NONE


def compare_search_rank(term: str, a: str | _Named, b: str | _Named) -> int:
    """Three-way comparison of two candidates for ``term``."""

    name_a = _name_of(a)
    name_b = _name_of(b)
    rank_a = search_rank(term, name_a)
    rank_b = search_rank(term, name_b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    folded_a = name_a.casefold()
    folded_b = name_b.casefold()
    if folded_a != folded_b:
        return -1 if folded_a < folded_b else 1
    if name_a != name_b:
        return -1 if name_a < name_b else 1
    return 0


def search_sort_key(term: str) -> Callable[[Any], Any]:
    """Return a ``sorted`` key ordering candidates by relevance to ``term``."""

    return cmp_to_key(lambda a, b: compare_search_rank(term, a, b))


__all__ = ["SearchRank", "compare_search_rank", "search_rank", "search_sort_key"]
