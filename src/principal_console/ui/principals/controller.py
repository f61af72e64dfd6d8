from __future__ import annotations

from collections.abc import Callable, Iterable

from PySide6.QtCore import Qt

from principal_console.config import Settings
from principal_console.data import (
    PermissionAction,
    PrincipalKind,
    PrincipalNode,
    StructuralKey,
    parse_actions,
)
from principal_console.services import (
    ForestLoader,
    PrincipalTreeService,
    ProviderScope,
    ServiceErrorEvent,
)
from principal_console.tree import (
    FlatNode,
    Flattener,
    NavigationKey,
    PermissionTable,
    SelectionController,
    SelectionModifiers,
    TreeDataStore,
    TreeTransferEndpoint,
    ViewChange,
    ViewOrigin,
)
from principal_console.utils import get_logger

from .models import PrincipalTreeModel


logger = get_logger(__name__)


def modifiers_from_qt(modifiers: Qt.KeyboardModifier) -> SelectionModifiers:
    return SelectionModifiers(
        shift=bool(modifiers & Qt.KeyboardModifier.ShiftModifier),
        ctrl=bool(modifiers & Qt.KeyboardModifier.ControlModifier),
        meta=bool(modifiers & Qt.KeyboardModifier.MetaModifier),
    )


_QT_NAVIGATION_KEYS = {
    Qt.Key.Key_Up: NavigationKey.UP,
    Qt.Key.Key_Down: NavigationKey.DOWN,
    Qt.Key.Key_Left: NavigationKey.LEFT,
    Qt.Key.Key_Right: NavigationKey.RIGHT,
}


def navigation_key_from_qt(key: Qt.Key) -> NavigationKey | None:
    return _QT_NAVIGATION_KEYS.get(key)


def _node_key(target: FlatNode | PrincipalNode) -> StructuralKey:
    return target.key if isinstance(target, FlatNode) else target.structural_key


def _key_label(target: FlatNode | PrincipalNode) -> str:
    node = target.node if isinstance(target, FlatNode) else target
    return node.identity.qualified_name


def build_permission_table(
    settings: Settings,
    *,
    accepted_kinds: Iterable[PrincipalKind] = tuple(PrincipalKind),
    action_filter: Iterable[PermissionAction] = (),
) -> PermissionTable:
    return PermissionTable(
        accepted_kinds=accepted_kinds,
        action_filter=action_filter,
        default_actions=parse_actions(settings.normalized_actions()),
    )


class PrincipalTreeController:
    """Owns one tree instance: store, flattener, selection and its list model."""

    def __init__(
        self,
        loader: ForestLoader,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self.store = TreeDataStore()
        self.flattener = Flattener()
        self.selection = SelectionController(self.flattener.visible)
        self.endpoint = TreeTransferEndpoint(
            self.selection, lambda: self.flattener.flat_nodes
        )
        self.service = PrincipalTreeService(
            loader,
            self.store,
            default_scope=ProviderScope(
                provider=self._settings.default_provider,
                org_id=self._settings.default_org_id,
            ),
        )
        self.model = PrincipalTreeModel(is_expanded=self.flattener.is_expanded)
        self._subscriptions: list[Callable[[], None]] = [
            self.store.changed.subscribe(self._on_view_changed),
        ]

    def register_callbacks(
        self,
        *,
        selection_changed: Callable[[list[PrincipalNode]], None] | None = None,
        node_selected: Callable[[PrincipalNode], None] | None = None,
        error: Callable[[ServiceErrorEvent], None] | None = None,
    ) -> None:
        if selection_changed is not None:
            self._subscriptions.append(
                self.selection.selection_changed.subscribe(selection_changed)
            )
        if node_selected is not None:
            self._subscriptions.append(self.selection.node_selected.subscribe(node_selected))
        if error is not None:
            self._subscriptions.append(self.service.errors.subscribe(error))

    def dispose(self) -> None:
        while self._subscriptions:
            unsubscribe = self._subscriptions.pop()
            unsubscribe()

    # ----------------------------------------------------------------- Actions

    async def load(self, scope: ProviderScope | None = None) -> list[PrincipalNode] | None:
        return await self.service.load(scope)

    def filter(self, term: str | None) -> list[FlatNode]:
        self.store.filter(term)
        return self.visible_rows()

    def toggle(self, target: FlatNode | PrincipalNode) -> bool:
        expanded = self.flattener.toggle(target)
        self.store.refresh()
        return expanded

    def select(
        self,
        target: FlatNode | PrincipalNode,
        modifiers: SelectionModifiers | Qt.KeyboardModifier | None = None,
    ) -> list[PrincipalNode]:
        if modifiers is None:
            return self.selection.select_node(target)
        if not isinstance(modifiers, SelectionModifiers):
            modifiers = modifiers_from_qt(modifiers)
        return self.selection.select_node(target, modifiers)

    def select_row(
        self,
        row: int,
        modifiers: SelectionModifiers | Qt.KeyboardModifier | None = None,
    ) -> list[PrincipalNode]:
        flat = self.model.flat_at(row)
        if flat is None:
            return self.selection.selection
        return self.select(flat, modifiers)

    def reveal(self, target: FlatNode | PrincipalNode, *, select: bool = True) -> bool:
        """Open ``target``'s ancestors so its row shows, optionally selecting it."""

        if not self.flattener.expand_to(target):
            logger.debug("Reveal target not in tree", target=_key_label(target))
            return False
        self.store.refresh()
        key = _node_key(target)
        flat = next(item for item in self.flattener.flat_nodes if item.key == key)
        if select:
            self.selection.select_node(flat)
        else:
            self.selection.set_focus(flat)
        return True

    def handle_key(self, key: NavigationKey | Qt.Key) -> bool:
        """Apply a navigation key to the focus; ``False`` when the key is not handled."""

        if not isinstance(key, NavigationKey):
            mapped = navigation_key_from_qt(key)
            if mapped is None:
                return False
            key = mapped
        if key is NavigationKey.DOWN:
            self.selection.move_focus(1)
            return True
        if key is NavigationKey.UP:
            self.selection.move_focus(-1)
            return True
        focused = self.selection.focused
        if focused is None:
            return False
        if key is NavigationKey.RIGHT:
            if not focused.expandable or self.flattener.is_expanded(focused):
                return False
            self.flattener.expand(focused)
        else:
            if not self.flattener.is_expanded(focused):
                return False
            self.flattener.collapse(focused)
        self.store.refresh()
        return True

    def drag_start(self, target: FlatNode | PrincipalNode) -> list[PrincipalNode]:
        return self.selection.drag_start(target)

    def visible_rows(self) -> list[FlatNode]:
        return self.flattener.visible()

    # ----------------------------------------------------------------- Helpers

    def _on_view_changed(self, change: ViewChange) -> None:
        flat = self.flattener.apply(change)
        if change.origin is ViewOrigin.INITIALIZE:
            # members hidden by the filter still exist in the authoritative forest
            self.selection.prune(node for root in self.store.forest for node in root.walk())
        rows = self.flattener.visible(flat)
        self.model.set_rows(rows)
        if self.store.filter_applied and change.origin is not ViewOrigin.REFRESH:
            self._focus_first_match(rows, change.term)
        logger.debug(
            "Principal tree rows updated",
            origin=str(change.origin),
            rows=len(rows),
            selected=len(self.selection.selection),
        )

    def _focus_first_match(self, rows: list[FlatNode], term: str) -> None:
        if not term:
            return
        match = next(
            (item for item in rows if not item.expandable and item.node.matches(term)),
            None,
        )
        self.selection.set_focus(match)


__all__ = [
    "PrincipalTreeController",
    "build_permission_table",
    "modifiers_from_qt",
    "navigation_key_from_qt",
]
