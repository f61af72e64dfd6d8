from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Iterable, Sequence

from principal_console.data import PrincipalNode
from principal_console.utils import EventHook, get_logger

from .flatten import FlatNode


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SelectionModifiers:
    shift: bool = False
    ctrl: bool = False
    meta: bool = False

    @property
    def toggle(self) -> bool:
        """Ctrl on Windows/Linux, Cmd on macOS."""
        return self.ctrl or self.meta


NO_MODIFIERS = SelectionModifiers()


class NavigationKey(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


def _node_of(target: FlatNode | PrincipalNode) -> PrincipalNode:
    return target.node if isinstance(target, FlatNode) else target


class SelectionController:
    """Multi-selection over the rows a tree currently shows.

    The last element of the selection anchors shift-clicks. Membership is
    structural, so a selection survives a forest reload once :meth:`prune`
    has swapped in the reloaded node objects. A keyboard focus cursor moves
    over the visible rows independently of the selection; clicks move it to
    the clicked node.
    """

    def __init__(self, visible_nodes: Callable[[], Sequence[FlatNode]]) -> None:
        self._visible_nodes = visible_nodes
        self._selection: list[PrincipalNode] = []
        self._focused: PrincipalNode | None = None
        self.node_selected: EventHook[PrincipalNode] = EventHook()
        self.selection_changed: EventHook[list[PrincipalNode]] = EventHook()
        self.focus_changed: EventHook[PrincipalNode | None] = EventHook()

    # ----------------------------------------------------------------- Queries

    @property
    def selection(self) -> list[PrincipalNode]:
        return list(self._selection)

    @property
    def anchor(self) -> PrincipalNode | None:
        return self._selection[-1] if self._selection else None

    def is_selected(self, target: FlatNode | PrincipalNode) -> bool:
        return _node_of(target) in self._selection

    @property
    def focused(self) -> PrincipalNode | None:
        return self._focused

    # ----------------------------------------------------------------- Focus

    def set_focus(self, target: FlatNode | PrincipalNode | None) -> None:
        node = None if target is None else _node_of(target)
        if node is self._focused:
            return
        self._focused = node
        self.focus_changed.emit(node)

    def move_focus(self, step: int) -> PrincipalNode | None:
        """Move the focus ``step`` rows through the visible list, clamped at both ends.

        Without a visible focus the first visible row takes it.
        """

        visible = [item.node for item in self._visible_nodes()]
        if not visible:
            self.set_focus(None)
            return None
        try:
            position = visible.index(self._focused) + step
        except ValueError:
            position = 0
        self.set_focus(visible[max(0, min(position, len(visible) - 1))])
        return self._focused

    # ----------------------------------------------------------------- Gestures

    def select_node(
        self,
        target: FlatNode | PrincipalNode,
        modifiers: SelectionModifiers = NO_MODIFIERS,
    ) -> list[PrincipalNode]:
        node = _node_of(target)
        if modifiers.shift:
            self._select_range(node)
        elif modifiers.toggle:
            self._toggle(node)
        else:
            self._selection = [node]
            self.node_selected.emit(node)
        self.set_focus(node)
        self._emit_changed()
        return self.selection

    def _select_range(self, node: PrincipalNode) -> None:
        anchor = self.anchor
        if anchor is None:
            self._selection = [node]
            return
        visible = [item.node for item in self._visible_nodes()]
        try:
            start = visible.index(anchor)
            end = visible.index(node)
        except ValueError:
            logger.debug(
                "Shift-select endpoint not visible; treating as plain select",
                anchor=anchor.identity.qualified_name,
                target=node.identity.qualified_name,
            )
            self._selection = [node]
            self.node_selected.emit(node)
            return
        low, high = sorted((start, end))
        window = [item for item in visible[low : high + 1] if item != node]
        window.append(visible[end])
        self._selection = window

    def _toggle(self, node: PrincipalNode) -> None:
        if node in self._selection:
            self._selection = [item for item in self._selection if item != node]
        else:
            self._selection.append(node)

    def set_selection(self, nodes: Iterable[PrincipalNode]) -> list[PrincipalNode]:
        deduped: list[PrincipalNode] = []
        for node in nodes:
            if node not in deduped:
                deduped.append(node)
        self._selection = deduped
        self._emit_changed()
        return self.selection

    def clear(self) -> None:
        if not self._selection:
            return
        self._selection = []
        self._emit_changed()

    def prune(self, nodes: Iterable[FlatNode | PrincipalNode]) -> list[PrincipalNode]:
        """Rebind the selection to ``nodes``' objects, dropping vanished members."""

        index = {node.structural_key: node for node in map(_node_of, nodes)}
        rebound = [
            index[node.structural_key]
            for node in self._selection
            if node.structural_key in index
        ]
        removed = len(self._selection) - len(rebound)
        rebased = any(old is not new for old, new in zip(self._selection, rebound))
        self._selection = rebound
        if self._focused is not None:
            self.set_focus(index.get(self._focused.structural_key))
        if removed:
            logger.debug("Selection pruned after view change", removed=removed)
        if removed or rebased:
            self._emit_changed()
        return self.selection

    # ---------------------------------------------------------------- Drag

    def drag_start(self, target: FlatNode | PrincipalNode) -> list[PrincipalNode]:
        """Return the principals a drag of ``target`` carries."""

        node = _node_of(target)
        if len(self._selection) > 1 and node in self._selection:
            payload = list(self._selection)
        else:
            payload = [node]
        return [item for item in payload if not item.read_only and not item.is_root]

    def _emit_changed(self) -> None:
        self.selection_changed.emit(self.selection)


__all__ = ["NO_MODIFIERS", "NavigationKey", "SelectionController", "SelectionModifiers"]
