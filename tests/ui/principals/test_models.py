from __future__ import annotations

import pytest
from PySide6.QtCore import Qt

from principal_console.config import Settings
from principal_console.data import PermissionAction, PrincipalKind, PrincipalNode
from principal_console.services import ProviderScope
from principal_console.tree import FlatNode, NavigationKey, PermissionTable, SelectionModifiers
from principal_console.ui.principals import (
    PermissionTableModel,
    PrincipalTreeController,
    PrincipalTreeModel,
    build_permission_table,
    modifiers_from_qt,
    navigation_key_from_qt,
)

from tests.factories import find, make_forest, make_node, names


class _StubLoader:
    def __init__(self, forest: list[PrincipalNode]) -> None:
        self.forest = forest
        self.scopes: list[ProviderScope] = []

    async def load_forest(self, scope: ProviderScope) -> list[PrincipalNode]:
        self.scopes.append(scope)
        return self.forest


def test_tree_model_projects_flat_rows(qt_app) -> None:
    locked = make_node("locked", PrincipalKind.GROUP, read_only=True)
    rows = [
        FlatNode(node=make_node("Users", PrincipalKind.USER, make_node("a"), is_root=True), level=0, expandable=True),
        FlatNode(node=make_node("alice", org_id="org-a"), level=1, expandable=False),
        FlatNode(node=locked, level=1, expandable=False),
    ]
    model = PrincipalTreeModel(rows)

    assert model.rowCount() == 3
    alice = model.index(1, 0)
    assert model.data(alice) == "    alice"
    assert model.data(alice, Qt.ItemDataRole.DecorationRole) == "account-icon"
    assert model.data(alice, Qt.ItemDataRole.ToolTipRole) == "alice (org-a) [User]"
    assert model.data(alice, PrincipalTreeModel.LevelRole) == 1
    assert model.data(alice, Qt.ItemDataRole.UserRole) is rows[1]

    assert model.flags(alice) & Qt.ItemFlag.ItemIsDragEnabled
    assert not model.flags(model.index(0, 0)) & Qt.ItemFlag.ItemIsDragEnabled
    assert not model.flags(model.index(2, 0)) & Qt.ItemFlag.ItemIsDragEnabled
    assert model.data(model.index(2, 0), PrincipalTreeModel.ReadOnlyRole) is True
    assert model.row_of(rows[2]) == 2


def test_permission_table_model_follows_table_changes(qt_app) -> None:
    table = PermissionTable()
    model = PermissionTableModel(table)

    assert model.rowCount() == 0
    assert model.columnCount() == 3
    assert model.headerData(2, Qt.Orientation.Horizontal) == "Actions"

    table.receive_selection([make_node("alice"), make_node("admins", PrincipalKind.GROUP)])

    assert model.rowCount() == 2
    assert model.data(model.index(0, 0)) == "alice"
    assert model.data(model.index(1, 1)) == "Group"
    assert model.data(model.index(1, 2)) == "read"

    table.set_action_filter([PermissionAction.WRITE])

    assert model.rowCount() == 0

    model.dispose()
    table.set_action_filter([])

    assert model.rowCount() == 0


def test_permission_table_model_selects_rows_for_sending(qt_app) -> None:
    table = PermissionTable()
    model = PermissionTableModel(table)
    table.receive_selection([make_node("alice"), make_node("bob")])

    model.select_rows([1, 7])

    assert table.send_selection() == [make_node("bob")]


def test_modifiers_from_qt() -> None:
    modifiers = modifiers_from_qt(
        Qt.KeyboardModifier.ShiftModifier | Qt.KeyboardModifier.ControlModifier
    )

    assert modifiers == SelectionModifiers(shift=True, ctrl=True)
    assert modifiers_from_qt(Qt.KeyboardModifier.NoModifier).toggle is False


def test_build_permission_table_uses_settings_actions() -> None:
    table = build_permission_table(Settings(default_actions=["WRITE", "bogus"]))

    assert table.granted_actions == {PermissionAction.WRITE}


@pytest.mark.asyncio
async def test_controller_load_filter_select_flow(qt_app) -> None:
    loader = _StubLoader(make_forest())
    controller = PrincipalTreeController(
        loader, settings=Settings(default_provider="ldap", default_org_id="org-a")
    )
    selections: list[list[PrincipalNode]] = []
    controller.register_callbacks(selection_changed=selections.append)

    await controller.load()

    assert loader.scopes == [ProviderScope(provider="ldap", org_id="org-a")]
    assert names(controller.model.rows()) == ["Users", "Groups", "Roles"]

    users = controller.model.flat_at(0)
    assert users is not None
    assert controller.toggle(users) is True
    assert names(controller.model.rows())[:4] == ["Users", "alice", "bob", "carol"]

    controller.select_row(1)
    controller.select_row(3, SelectionModifiers(shift=True))
    assert names(controller.selection.selection) == ["alice", "bob", "carol"]
    assert controller.drag_start(controller.model.flat_at(2)) == controller.selection.selection

    rows = controller.filter("car")
    assert names(rows) == ["Users", "carol"]
    assert names(controller.selection.selection) == ["alice", "bob", "carol"]

    controller.filter("")
    await controller.load()

    assert names(controller.model.rows())[:4] == ["Users", "alice", "bob", "carol"]
    assert names(controller.selection.selection) == ["alice", "bob", "carol"]
    assert selections

    controller.dispose()


@pytest.mark.asyncio
async def test_controller_selection_survives_reload_with_new_objects(qt_app) -> None:
    loader = _StubLoader(make_forest())
    controller = PrincipalTreeController(loader)
    await controller.load()
    controller.toggle(controller.model.flat_at(0))
    controller.select_row(1)

    loader.forest = make_forest()
    await controller.load()

    [selected] = controller.selection.selection
    assert selected is loader.forest[0].children[0]


def test_navigation_key_from_qt() -> None:
    assert navigation_key_from_qt(Qt.Key.Key_Left) is NavigationKey.LEFT
    assert navigation_key_from_qt(Qt.Key.Key_Down) is NavigationKey.DOWN
    assert navigation_key_from_qt(Qt.Key.Key_A) is None


@pytest.mark.asyncio
async def test_controller_reveal_opens_ancestors_and_selects(qt_app) -> None:
    loader = _StubLoader(make_forest())
    controller = PrincipalTreeController(loader)
    await controller.load()
    backend = find(loader.forest, "backend")

    assert controller.reveal(backend) is True

    assert names(controller.model.rows()) == [
        "Users",
        "Groups",
        "engineering",
        "backend",
        "frontend",
        "sales",
        "Roles",
    ]
    assert controller.selection.selection == [backend]
    assert controller.selection.focused is backend

    assert controller.reveal(find(loader.forest, "Designer"), select=False) is True
    assert controller.selection.selection == [backend]
    assert controller.selection.focused.display_name == "Designer"

    assert controller.reveal(make_node("mallory")) is False


@pytest.mark.asyncio
async def test_controller_keyboard_navigation(qt_app) -> None:
    loader = _StubLoader(make_forest())
    controller = PrincipalTreeController(loader)
    await controller.load()

    assert controller.handle_key(NavigationKey.LEFT) is False
    assert controller.handle_key(Qt.Key.Key_Down) is True
    assert controller.selection.focused.display_name == "Users"

    assert controller.handle_key(NavigationKey.RIGHT) is True
    assert names(controller.model.rows())[:4] == ["Users", "alice", "bob", "carol"]
    assert controller.handle_key(NavigationKey.RIGHT) is False

    controller.handle_key(NavigationKey.DOWN)
    assert controller.selection.focused.display_name == "alice"
    assert controller.handle_key(Qt.Key.Key_Right) is False
    assert controller.handle_key(Qt.Key.Key_Left) is False

    controller.handle_key(Qt.Key.Key_Up)
    assert controller.handle_key(NavigationKey.LEFT) is True
    assert names(controller.model.rows()) == ["Users", "Groups", "Roles"]
    assert controller.selection.selection == []

    assert controller.handle_key(Qt.Key.Key_Escape) is False


@pytest.mark.asyncio
async def test_controller_filter_focuses_first_match(qt_app) -> None:
    loader = _StubLoader(make_forest())
    controller = PrincipalTreeController(loader)
    await controller.load()

    controller.filter("a")

    assert controller.store.filter_applied is True
    assert controller.selection.focused.display_name == "sales"

    controller.handle_key(NavigationKey.DOWN)
    controller.toggle(controller.model.flat_at(0))

    assert controller.selection.focused.display_name == "engineering"

    await controller.load()

    assert controller.store.filter_applied is False
    assert controller.selection.focused.display_name == "engineering"

    controller.filter("zzz")

    assert controller.selection.focused is None
