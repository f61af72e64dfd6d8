"""Selection exchange between a principal tree and a permission table.

Either side implements :class:`TransferEndpoint`; neither holds a reference
to the other's state. Hosts move a working set with :func:`transfer`.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, Protocol, Sequence, runtime_checkable

from principal_console.data import (
    IdentityID,
    PermissionAction,
    PermissionEntry,
    PrincipalKind,
    PrincipalNode,
)
from principal_console.utils import EventHook, get_logger

from .flatten import FlatNode
from .selection import SelectionController


logger = get_logger(__name__)


@runtime_checkable
class TransferEndpoint(Protocol):
    def send_selection(self) -> list[PrincipalNode]: ...

    def receive_selection(self, nodes: Sequence[PrincipalNode] | None) -> None: ...


def transfer(source: TransferEndpoint, target: TransferEndpoint) -> list[PrincipalNode]:
    """Move ``source``'s selection into ``target`` and return what was sent."""

    nodes = source.send_selection()
    target.receive_selection(nodes)
    return nodes


class TreeTransferEndpoint:
    """Tree side of the exchange, backed by a selection controller."""

    def __init__(
        self,
        selection: SelectionController,
        flat_nodes: Callable[[], Sequence[FlatNode]],
    ) -> None:
        self._selection = selection
        self._flat_nodes = flat_nodes

    def send_selection(self) -> list[PrincipalNode]:
        return self._selection.selection

    def receive_selection(self, nodes: Sequence[PrincipalNode] | None) -> None:
        if not nodes:
            return
        index = {item.key: item.node for item in self._flat_nodes()}
        current = self._selection.selection
        merged = list(current)
        missing = 0
        for node in nodes:
            if node is None:
                continue
            match = index.get(node.structural_key)
            if match is None:
                missing += 1
                continue
            if match not in merged:
                merged.append(match)
        if missing:
            logger.debug("Received principals absent from tree", missing=missing)
        if len(merged) != len(current):
            self._selection.set_selection(merged)


class PermissionTable:
    """Table side of the exchange: principals with the actions granted to them.

    Rows are keyed by identity. The active action filter decides which rows a
    table shows; receiving a principal whose row is hidden by the filter
    widens that row's actions instead of adding a second row.
    """

    def __init__(
        self,
        *,
        accepted_kinds: Iterable[PrincipalKind | str] = tuple(PrincipalKind),
        action_filter: Iterable[PermissionAction] = (),
        default_actions: Iterable[PermissionAction] = (PermissionAction.READ,),
    ) -> None:
        self._entries: list[PermissionEntry] = []
        self._accepted_kinds = frozenset(PrincipalKind(kind) for kind in accepted_kinds)
        self._action_filter = frozenset(action_filter)
        self._default_actions = frozenset(default_actions) or frozenset(
            {PermissionAction.READ}
        )
        self._selected: list[IdentityID] = []
        self.changed: EventHook[list[PermissionEntry]] = EventHook()

    # ----------------------------------------------------------------- Queries

    @property
    def entries(self) -> list[PermissionEntry]:
        return list(self._entries)

    @property
    def visible_entries(self) -> list[PermissionEntry]:
        return [entry for entry in self._entries if entry.visible_under(self._action_filter)]

    @property
    def accepted_kinds(self) -> frozenset[PrincipalKind]:
        return self._accepted_kinds

    @property
    def action_filter(self) -> frozenset[PermissionAction]:
        return self._action_filter

    @property
    def granted_actions(self) -> frozenset[PermissionAction]:
        """Actions given to received principals: the filter, else the defaults."""
        return self._action_filter or self._default_actions

    @property
    def selected_entries(self) -> list[PermissionEntry]:
        by_identity = {entry.identity: entry for entry in self._entries}
        return [by_identity[identity] for identity in self._selected if identity in by_identity]

    def entry_for(self, identity: IdentityID) -> PermissionEntry | None:
        position = self._index_of(identity)
        return None if position is None else self._entries[position]

    def accepts(self, node: PrincipalNode) -> bool:
        return not node.is_root and PrincipalKind(node.kind) in self._accepted_kinds

    # ----------------------------------------------------------------- Actions

    def set_entries(self, entries: Iterable[PermissionEntry]) -> None:
        deduped: list[PermissionEntry] = []
        seen: set[IdentityID] = set()
        for entry in entries:
            if entry.identity in seen:
                continue
            seen.add(entry.identity)
            deduped.append(entry)
        self._entries = deduped
        self._selected = [identity for identity in self._selected if identity in seen]
        self.changed.emit(self.entries)

    def set_action_filter(self, actions: Iterable[PermissionAction]) -> None:
        updated = frozenset(actions)
        if updated == self._action_filter:
            return
        self._action_filter = updated
        self.changed.emit(self.entries)

    def select(self, identities: Iterable[IdentityID]) -> None:
        known = {entry.identity for entry in self._entries}
        selected: list[IdentityID] = []
        for identity in identities:
            if identity in known and identity not in selected:
                selected.append(identity)
        self._selected = selected

    def remove(self, identities: Iterable[IdentityID]) -> list[PermissionEntry]:
        doomed = set(identities)
        removed = [entry for entry in self._entries if entry.identity in doomed]
        if not removed:
            return []
        self._entries = [entry for entry in self._entries if entry.identity not in doomed]
        self._selected = [identity for identity in self._selected if identity not in doomed]
        self.changed.emit(self.entries)
        return removed

    def send_selection(self) -> list[PrincipalNode]:
        nodes = [entry.to_node() for entry in self.selected_entries]
        self._selected = []
        return nodes

    def receive_selection(self, nodes: Sequence[PrincipalNode] | None) -> None:
        if not nodes:
            return
        granted = self.granted_actions
        changed = False
        rejected = 0
        for node in nodes:
            if node is None:
                continue
            if not self.accepts(node):
                rejected += 1
                continue
            position = self._index_of(node.identity)
            if position is None:
                self._entries.append(PermissionEntry.from_node(node, granted))
                changed = True
                continue
            existing = self._entries[position]
            if existing.visible_under(self._action_filter):
                continue
            self._entries[position] = existing.widened(granted)
            changed = True
        if rejected:
            logger.debug("Incompatible principals ignored on drop", rejected=rejected)
        if changed:
            self.changed.emit(self.entries)

    def _index_of(self, identity: IdentityID) -> int | None:
        for position, entry in enumerate(self._entries):
            if entry.identity == identity:
                return position
        return None


def promote_read_only(
    nodes: Iterable[PrincipalNode | None],
    existing: Iterable[PrincipalNode] = (),
) -> list[PrincipalNode]:
    """Replace read-only subtree roots with their writable same-kind descendants.

    Read-only descendants are searched through; the first writable node on
    each path is hoisted with its subtree intact. Identities already present
    in ``existing`` or earlier in the result are skipped.
    """

    seen: set[IdentityID] = {node.identity for node in existing}
    result: list[PrincipalNode] = []

    def _add(node: PrincipalNode) -> None:
        if node.identity in seen:
            return
        seen.add(node.identity)
        result.append(node)

    for node in nodes:
        if node is None:
            continue
        if not node.read_only:
            _add(node)
            continue
        for hoisted in _writable_descendants(node, PrincipalKind(node.kind)):
            _add(hoisted)
    return result


def _writable_descendants(root: PrincipalNode, kind: PrincipalKind) -> Iterator[PrincipalNode]:
    for child in root.children or ():
        if child.kind != kind:
            continue
        if child.read_only:
            yield from _writable_descendants(child, kind)
        else:
            yield child


__all__ = [
    "PermissionTable",
    "TransferEndpoint",
    "TreeTransferEndpoint",
    "promote_read_only",
    "transfer",
]
