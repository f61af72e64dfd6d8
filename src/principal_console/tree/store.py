from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterable, Sequence

from principal_console.data import IdentityID, PrincipalKind, PrincipalNode, search_sort_key
from principal_console.utils import (
    EventHook,
    ObservableValue,
    get_logger,
    sanitize_search_text,
)


logger = get_logger(__name__)


class ViewOrigin(StrEnum):
    INITIALIZE = "initialize"
    FILTER = "filter"
    REFRESH = "refresh"


@dataclass(slots=True)
class ViewChange:
    view: list[PrincipalNode]
    origin: ViewOrigin
    term: str = ""


@dataclass(slots=True)
class IntegrityIssue:
    identity: IdentityID
    kept: PrincipalKind
    dropped: PrincipalKind

    @property
    def conflicting_kind(self) -> bool:
        return self.kept != self.dropped


@dataclass(slots=True)
class _DedupeState:
    seen: dict[IdentityID, PrincipalKind] = field(default_factory=dict)
    issues: list[IntegrityIssue] = field(default_factory=list)


def deduplicate_forest(
    forest: Iterable[PrincipalNode],
) -> tuple[list[PrincipalNode], list[IntegrityIssue]]:
    """Drop repeated identities, keeping the first node seen in pre-order."""

    state = _DedupeState()
    cleaned = _dedupe_level(list(forest), state)
    return cleaned, state.issues


def _dedupe_level(nodes: Sequence[PrincipalNode], state: _DedupeState) -> list[PrincipalNode]:
    result: list[PrincipalNode] = []
    for node in nodes:
        kept = state.seen.get(node.identity)
        if kept is not None:
            state.issues.append(
                IntegrityIssue(identity=node.identity, kept=kept, dropped=node.kind)
            )
            continue
        state.seen[node.identity] = node.kind
        if not node.children:
            result.append(node)
            continue
        children = _dedupe_level(node.children, state)
        if len(children) == len(node.children):
            result.append(node)
            continue
        rebuilt = node.model_copy(update={"children": children or None})
        rebuilt._expanded = ObservableValue(node.expanded)
        result.append(rebuilt)
    return result


class TreeDataStore:
    """Authoritative forest plus live filter term, recombined into a derived view.

    Both inputs are observable cells feeding a single combine step, so every
    recomputation reads the latest forest together with the latest term.
    """

    def __init__(self) -> None:
        self._forest: ObservableValue[list[PrincipalNode]] = ObservableValue([])
        self._filter_term: ObservableValue[str] = ObservableValue("")
        self._view: list[PrincipalNode] = []
        self._filter_applied = False
        self.changed: EventHook[ViewChange] = EventHook()

        self._forest.subscribe(lambda _forest: self._recombine(ViewOrigin.INITIALIZE))
        self._filter_term.subscribe(lambda _term: self._recombine(ViewOrigin.FILTER))

    # ----------------------------------------------------------------- Queries

    @property
    def forest(self) -> list[PrincipalNode]:
        return list(self._forest.value)

    @property
    def filter_term(self) -> str:
        return self._filter_term.value

    @property
    def filter_applied(self) -> bool:
        """True when the latest recomputation was triggered by a filter change."""
        return self._filter_applied

    @property
    def view(self) -> list[PrincipalNode]:
        return list(self._view)

    # ----------------------------------------------------------------- Actions

    def initialize(self, forest: Iterable[PrincipalNode]) -> list[PrincipalNode]:
        cleaned, issues = deduplicate_forest(forest)
        for issue in issues:
            if issue.conflicting_kind:
                logger.warning(
                    "Principal identity reused with a different kind; keeping first",
                    identity=issue.identity.qualified_name,
                    kept=str(issue.kept),
                    dropped=str(issue.dropped),
                )
            else:
                logger.warning(
                    "Duplicate principal dropped from forest",
                    identity=issue.identity.qualified_name,
                    kind=str(issue.kept),
                )
        self._filter_applied = False
        self._forest.set(cleaned, force=True)
        return self.view

    def filter(self, term: str | None) -> list[PrincipalNode]:
        self._filter_applied = True
        self._filter_term.set(sanitize_search_text(term), force=True)
        return self.view

    def refresh(self) -> list[PrincipalNode]:
        self.changed.emit(
            ViewChange(view=self.view, origin=ViewOrigin.REFRESH, term=self.filter_term)
        )
        return self.view

    # ----------------------------------------------------------------- Helpers

    def _recombine(self, origin: ViewOrigin) -> None:
        forest = self._forest.value
        term = self._filter_term.value
        self._view = derive_view(forest, term)
        logger.debug(
            "Principal view recomputed",
            origin=str(origin),
            term=term,
            roots=len(forest),
            visible_roots=len(self._view),
        )
        self.changed.emit(ViewChange(view=self.view, origin=origin, term=term))


def derive_view(forest: Sequence[PrincipalNode], term: str) -> list[PrincipalNode]:
    """Filter every root by ``term`` and order the survivors by relevance."""

    if not term:
        return list(forest)
    survivors = [
        result for result in (node.filter(term) for node in forest) if result is not None
    ]
    survivors.sort(key=search_sort_key(term))
    return survivors


__all__ = [
    "IntegrityIssue",
    "TreeDataStore",
    "ViewChange",
    "ViewOrigin",
    "deduplicate_forest",
    "derive_view",
]
