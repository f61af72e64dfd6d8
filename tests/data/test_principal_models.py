from __future__ import annotations

import pytest
from pydantic import ValidationError

from principal_console.data import (
    KIND_PRESENTATION,
    IdentityID,
    PermissionAction,
    PermissionEntry,
    PrincipalKind,
    PrincipalNode,
    describe_kind,
    parse_actions,
)

from tests.factories import find, make_node, names


def test_principal_node_hydrates_loader_payload() -> None:
    payload = {
        "identityID": {"name": "Engineering", "orgID": "host-org"},
        "type": "GROUP",
        "readOnly": True,
        "root": False,
        "children": [
            {"identityID": {"name": "backend", "orgID": "host-org"}, "type": "group"},
        ],
    }
    node = PrincipalNode.from_payload(payload)

    assert node.identity == IdentityID(name="Engineering", org_id="host-org")
    assert node.kind is PrincipalKind.GROUP
    assert node.read_only is True
    assert node.expandable
    assert node.children is not None
    assert node.children[0].display_name == "backend"

    serialized = node.to_payload()
    assert serialized["identityID"] == {"name": "Engineering", "orgID": "host-org"}
    assert serialized["type"] == "group"
    assert serialized["readOnly"] is True


def test_principal_node_requires_a_name() -> None:
    with pytest.raises(ValidationError):
        PrincipalNode.from_payload({"identityID": {"name": ""}, "type": "user"})


def test_structural_equality_ignores_instance_and_view_state() -> None:
    first = make_node("alice", org_id="org-a")
    second = make_node("alice", org_id="org-a", read_only=True)
    second.set_expanded(True)

    assert first is not second
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_same_name_in_other_kind_or_org_is_a_different_principal() -> None:
    user = make_node("admin", PrincipalKind.USER)
    role = make_node("admin", PrincipalKind.ROLE)
    other_org = make_node("admin", PrincipalKind.USER, org_id="org-b")

    assert user != role
    assert user != other_org


def test_kind_presentation_lookup_covers_every_kind() -> None:
    assert set(KIND_PRESENTATION) == set(PrincipalKind)
    assert describe_kind("role").plural_label == "Roles"
    assert describe_kind(PrincipalKind.ORGANIZATION).icon == "organization-icon"


def test_expanded_state_is_observable() -> None:
    node = make_node("Groups", PrincipalKind.GROUP, make_node("sales", PrincipalKind.GROUP))
    seen: list[bool] = []
    node.expanded_state.subscribe(seen.append)

    node.set_expanded(True)
    node.set_expanded(True)
    node.set_expanded(False)

    assert seen == [True, False]
    assert node.expanded is False


def test_filter_with_empty_term_returns_node_unchanged(forest) -> None:
    root = forest[0]

    assert root.filter("") is root
    assert root.filter("   ") is root
    assert root.filter(None) is root


def test_filter_keeps_matching_leaves_and_opens_ancestors(forest) -> None:
    groups = forest[1]

    filtered = groups.filter("END")

    assert filtered is not None
    assert filtered is not groups
    assert filtered.expanded is True
    assert names(filtered.children or []) == ["engineering"]
    engineering = (filtered.children or [])[0]
    assert engineering.expanded is True
    assert names(engineering.children or []) == ["backend", "frontend"]
    assert groups.expanded is False
    assert names(groups.children or []) == ["engineering", "sales"]


def test_filter_returns_none_without_matches(forest) -> None:
    assert forest[2].filter("nobody") is None


def test_filter_drops_parent_whose_only_match_is_its_own_name() -> None:
    parent = make_node("alpha", PrincipalKind.GROUP, make_node("zed", PrincipalKind.GROUP))

    assert parent.filter("alp") is None


def test_filter_orders_siblings_by_relevance() -> None:
    root = make_node(
        "Users",
        PrincipalKind.USER,
        make_node("sal"),
        make_node("mallory"),
        make_node("alice"),
        make_node("al"),
        make_node("zoe"),
        is_root=True,
    )

    filtered = root.filter("al")

    assert filtered is not None
    assert names(filtered.children or []) == ["al", "alice", "mallory", "sal"]


def test_walk_is_preorder(forest) -> None:
    assert names(forest[1].walk()) == [
        "Groups",
        "engineering",
        "backend",
        "frontend",
        "sales",
    ]
    assert find(forest, "frontend").kind is PrincipalKind.GROUP


def test_permission_entry_visibility_and_widening() -> None:
    entry = PermissionEntry.from_node(make_node("alice"), [PermissionAction.READ])

    assert entry.visible_under([])
    assert entry.visible_under([PermissionAction.READ])
    assert not entry.visible_under([PermissionAction.READ, PermissionAction.WRITE])

    widened = entry.widened([PermissionAction.WRITE])
    assert widened.actions == {PermissionAction.READ, PermissionAction.WRITE}
    assert entry.actions == {PermissionAction.READ}
    assert widened.to_node() == make_node("alice")


def test_parse_actions_skips_unknown_names() -> None:
    assert parse_actions(["READ", " write ", "fly"]) == {
        PermissionAction.READ,
        PermissionAction.WRITE,
    }
