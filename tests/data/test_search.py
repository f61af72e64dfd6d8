from __future__ import annotations

from principal_console.data import (
    SearchRank,
    compare_search_rank,
    search_rank,
    search_sort_key,
)

from tests.factories import make_node, names


def test_search_rank_groups() -> None:
    assert search_rank("Admin", "admin") is SearchRank.EXACT
    assert search_rank("adm", "Administrator") is SearchRank.PREFIX
    assert search_rank("min", "Administrator") is SearchRank.SUBSTRING
    assert search_rank("xyz", "Administrator") is SearchRank.NONE
    assert search_rank("", "Administrator") is SearchRank.NONE


def test_compare_prefers_rank_then_alphabetical() -> None:
    assert compare_search_rank("ann", "ann", "anna") < 0
    assert compare_search_rank("ann", "joanne", "anna") > 0
    assert compare_search_rank("ann", "Annie", "anna") > 0
    assert compare_search_rank("ann", "anna", "anna") == 0


def test_sort_key_accepts_nodes() -> None:
    nodes = [make_node("Joanne"), make_node("Anna"), make_node("ann"), make_node("Bob")]

    ordered = sorted(nodes, key=search_sort_key("ann"))

    assert names(ordered) == ["ann", "Anna", "Joanne", "Bob"]
