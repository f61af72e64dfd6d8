from __future__ import annotations

from typing import Iterable

from principal_console.data import PrincipalKind, PrincipalNode
from principal_console.tree import FlatNode


def make_node(
    name: str,
    kind: PrincipalKind | str = PrincipalKind.USER,
    *children: PrincipalNode,
    org_id: str | None = None,
    read_only: bool = False,
    is_root: bool = False,
) -> PrincipalNode:
    """Build a principal node; positional children make it expandable."""

    return PrincipalNode.create(
        name,
        kind,
        org_id=org_id,
        children=list(children) or None,
        read_only=read_only,
        is_root=is_root,
    )


def make_forest() -> list[PrincipalNode]:
    """Return the canonical three-root forest used across tree tests.

    Pre-order::

        Users        alice  bob  carol
        Groups       engineering (backend, frontend)  sales
        Roles        Administrator  Designer
    """

    users = make_node(
        "Users",
        PrincipalKind.USER,
        make_node("alice"),
        make_node("bob"),
        make_node("carol"),
        is_root=True,
    )
    groups = make_node(
        "Groups",
        PrincipalKind.GROUP,
        make_node(
            "engineering",
            PrincipalKind.GROUP,
            make_node("backend", PrincipalKind.GROUP),
            make_node("frontend", PrincipalKind.GROUP),
        ),
        make_node("sales", PrincipalKind.GROUP),
        is_root=True,
    )
    roles = make_node(
        "Roles",
        PrincipalKind.ROLE,
        make_node("Administrator", PrincipalKind.ROLE),
        make_node("Designer", PrincipalKind.ROLE),
        is_root=True,
    )
    return [users, groups, roles]


def make_flat_users(count: int) -> list[PrincipalNode]:
    """Return ``count`` leaf users named user-0, user-1, ..."""

    return [make_node(f"user-{index}") for index in range(count)]


def names(items: Iterable[PrincipalNode | FlatNode]) -> list[str]:
    result: list[str] = []
    for item in items:
        node = item.node if isinstance(item, FlatNode) else item
        result.append(node.display_name)
    return result


def shape(nodes: Iterable[PrincipalNode]) -> list[tuple[str, str, list]]:
    """Structural fingerprint of a forest: names, kinds and nesting."""

    return [
        (node.display_name, str(node.kind), shape(node.children or []))
        for node in nodes
    ]


def find(forest: Iterable[PrincipalNode], name: str) -> PrincipalNode:
    for root in forest:
        for node in root.walk():
            if node.display_name == name:
                return node
    raise KeyError(name)
