from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from principal_console.data import PrincipalNode, StructuralKey
from principal_console.utils import EventHook, get_logger

from .store import ViewChange, ViewOrigin


logger = get_logger(__name__)


def _node_of(target: FlatNode | PrincipalNode) -> PrincipalNode:
    return target.node if isinstance(target, FlatNode) else target


@dataclass(frozen=True, slots=True)
class FlatNode:
    """Depth-annotated view of a principal node for list rendering."""

    node: PrincipalNode
    level: int
    expandable: bool

    @property
    def key(self) -> StructuralKey:
        return self.node.structural_key

    @property
    def display_name(self) -> str:
        return self.node.display_name


@dataclass(frozen=True, slots=True)
class ExpansionSnapshot:
    """Expanded structural keys captured from a flat list, shallowest first."""

    entries: tuple[tuple[int, StructuralKey], ...] = ()

    def __iter__(self) -> Iterator[tuple[int, StructuralKey]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> set[StructuralKey]:
        return {key for _level, key in self.entries}


class Flattener:
    """Turn a principal forest into a pre-order flat list and track expansion.

    Expansion is held per tree instance as a set of structural keys rather
    than on node objects, so it survives the wholesale forest replacement
    that happens on every load. Ancestors a filter forces open are kept in a
    separate set rebuilt on every flatten and never enter the persistent one.
    """

    def __init__(self) -> None:
        self._expanded: set[StructuralKey] = set()
        self._forced: set[StructuralKey] = set()
        self._flat: list[FlatNode] = []
        self.flattened: EventHook[list[FlatNode]] = EventHook()

    # ----------------------------------------------------------------- Queries

    @property
    def flat_nodes(self) -> list[FlatNode]:
        return list(self._flat)

    @property
    def expanded_keys(self) -> set[StructuralKey]:
        return set(self._expanded)

    def is_expanded(self, target: FlatNode | PrincipalNode) -> bool:
        key = _node_of(target).structural_key
        return key in self._expanded or key in self._forced

    def ancestors_of(self, target: FlatNode | PrincipalNode) -> list[FlatNode] | None:
        """Return ``target``'s ancestor chain, root first, or ``None`` when not flattened."""

        key = _node_of(target).structural_key
        position = next(
            (index for index, item in enumerate(self._flat) if item.key == key),
            None,
        )
        if position is None:
            return None
        chain: list[FlatNode] = []
        level = self._flat[position].level
        for candidate in reversed(self._flat[:position]):
            if level == 0:
                break
            if candidate.level < level:
                chain.append(candidate)
                level = candidate.level
        chain.reverse()
        return chain

    def visible(self, flat: Sequence[FlatNode] | None = None) -> list[FlatNode]:
        """Return the rows a tree control shows: every node whose ancestors are open."""

        nodes = self._flat if flat is None else flat
        result: list[FlatNode] = []
        hidden_below: int | None = None
        for item in nodes:
            if hidden_below is not None:
                if item.level > hidden_below:
                    continue
                hidden_below = None
            result.append(item)
            if item.expandable and not self.is_expanded(item):
                hidden_below = item.level
        return result

    # ---------------------------------------------------------------- Flatten

    def flatten(self, forest: Iterable[PrincipalNode], *, filtered: bool = False) -> list[FlatNode]:
        """Flatten ``forest`` in pre-order and sync node flags with the expanded keys.

        With ``filtered`` set, open flags on incoming nodes are treated as
        filter-forced: they show the nodes open without being remembered.
        """

        result: list[FlatNode] = []
        self._forced = set()
        self._flatten_into(forest, 0, result, filtered)
        self._flat = result
        logger.debug(
            "Principal forest flattened",
            nodes=len(result),
            expanded=len(self._expanded),
            forced=len(self._forced),
        )
        return list(result)

    def _flatten_into(
        self,
        nodes: Iterable[PrincipalNode],
        level: int,
        out: list[FlatNode],
        filtered: bool,
    ) -> None:
        for node in nodes:
            expandable = node.expandable
            out.append(FlatNode(node=node, level=level, expandable=expandable))
            if not expandable:
                continue
            key = node.structural_key
            if key in self._expanded:
                node.set_expanded(True)
            elif node.expanded:
                (self._forced if filtered else self._expanded).add(key)
            self._flatten_into(node.children or (), level + 1, out, filtered)

    def apply(self, change: ViewChange) -> list[FlatNode]:
        """Reflatten after a store change, replaying expansion on forest replacement."""

        filtered = bool(change.term)
        if change.origin is ViewOrigin.INITIALIZE:
            snapshot = self.capture_expansion()
            self._expanded.clear()
            flat = self.flatten(change.view, filtered=filtered)
            self.restore_expansion(snapshot, flat)
        else:
            flat = self.flatten(change.view, filtered=filtered)
        self.flattened.emit(list(flat))
        return flat

    # ---------------------------------------------------------------- Expansion

    def capture_expansion(self, flat: Sequence[FlatNode] | None = None) -> ExpansionSnapshot:
        nodes = self._flat if flat is None else flat
        entries = [
            (item.level, item.key)
            for item in nodes
            if item.expandable and item.key in self._expanded
        ]
        entries.sort(key=lambda entry: entry[0])
        return ExpansionSnapshot(tuple(entries))

    def restore_expansion(
        self,
        snapshot: ExpansionSnapshot,
        flat: Sequence[FlatNode] | None = None,
    ) -> int:
        nodes = self._flat if flat is None else flat
        index = {item.key: item for item in nodes}
        restored = 0
        dropped = 0
        for _level, key in snapshot:
            target = index.get(key)
            if target is None or not target.expandable:
                dropped += 1
                continue
            self.expand(target)
            restored += 1
        if dropped:
            logger.debug("Expansion entries without a match dropped", dropped=dropped)
        return restored

    def expand(self, target: FlatNode | PrincipalNode) -> None:
        node = _node_of(target)
        if not node.expandable:
            return
        self._expanded.add(node.structural_key)
        node.set_expanded(True)

    def expand_to(self, target: FlatNode | PrincipalNode) -> bool:
        """Open every ancestor of ``target``; ``False`` when it is not in the flat list."""

        ancestors = self.ancestors_of(target)
        if ancestors is None:
            return False
        for ancestor in ancestors:
            self.expand(ancestor)
        return True

    def collapse(self, target: FlatNode | PrincipalNode) -> None:
        node = _node_of(target)
        self._expanded.discard(node.structural_key)
        self._forced.discard(node.structural_key)
        node.set_expanded(False)

    def toggle(self, target: FlatNode | PrincipalNode) -> bool:
        if self.is_expanded(target):
            self.collapse(target)
            return False
        self.expand(target)
        return self.is_expanded(target)

    def expand_all(self) -> None:
        for item in self._flat:
            self.expand(item)

    def collapse_all(self) -> None:
        for item in self._flat:
            if item.expandable:
                item.node.set_expanded(False)
        self._expanded.clear()
        self._forced.clear()


__all__ = ["ExpansionSnapshot", "FlatNode", "Flattener"]
