from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Iterator

from pydantic import Field, PrivateAttr, field_validator

from principal_console.data.search import search_sort_key
from principal_console.utils import ObservableValue, sanitize_search_text

from .common import PrincipalBaseModel


class PrincipalKind(StrEnum):
    USER = "user"
    GROUP = "group"
    ROLE = "role"
    ORGANIZATION = "organization"


@dataclass(frozen=True, slots=True)
class KindPresentation:
    label: str
    plural_label: str
    icon: str


KIND_PRESENTATION: dict[PrincipalKind, KindPresentation] = {
    PrincipalKind.USER: KindPresentation("User", "Users", "account-icon"),
    PrincipalKind.GROUP: KindPresentation("Group", "Groups", "user-group-icon"),
    PrincipalKind.ROLE: KindPresentation("Role", "Roles", "user-roles-icon"),
    PrincipalKind.ORGANIZATION: KindPresentation(
        "Organization", "Organizations", "organization-icon"
    ),
}


def describe_kind(kind: PrincipalKind | str) -> KindPresentation:
    return KIND_PRESENTATION[PrincipalKind(kind)]


class IdentityID(PrincipalBaseModel):
    """Name of a principal qualified by the organization that owns it."""

    name: str = Field(min_length=1)
    org_id: str | None = Field(default=None, alias="orgID")

    @property
    def qualified_name(self) -> str:
        if self.org_id:
            return f"{self.name} ({self.org_id})"
        return self.name


StructuralKey = tuple[IdentityID, PrincipalKind]


class PrincipalNode(PrincipalBaseModel):
    """One user, group, role or organization, or a synthetic folder.

    Forests are rebuilt wholesale on every load, so equality and hashing are
    structural: two nodes are equal when their identity and kind match,
    whatever object instance they are. The ``expanded`` flag is local view
    state and takes no part in equality.
    """

    identity: IdentityID = Field(alias="identityID")
    kind: PrincipalKind = Field(alias="type")
    label: str | None = None
    children: list[PrincipalNode] | None = None
    read_only: bool = Field(default=False, alias="readOnly")
    is_root: bool = Field(default=False, alias="root")

    _expanded: ObservableValue[bool] = PrivateAttr(
        default_factory=lambda: ObservableValue(False)
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, PrincipalKind):
            return value.strip().lower()
        return value

    @classmethod
    def create(
        cls,
        name: str,
        kind: PrincipalKind | str,
        *,
        org_id: str | None = None,
        children: list[PrincipalNode] | None = None,
        read_only: bool = False,
        is_root: bool = False,
        label: str | None = None,
    ) -> PrincipalNode:
        return cls(
            identity=IdentityID(name=name, org_id=org_id),
            kind=kind,
            label=label,
            children=children,
            read_only=read_only,
            is_root=is_root,
        )

    # ----------------------------------------------------------------- Identity

    @property
    def structural_key(self) -> StructuralKey:
        return (self.identity, PrincipalKind(self.kind))

    @property
    def display_name(self) -> str:
        return self.label or self.identity.name

    @property
    def expandable(self) -> bool:
        return bool(self.children)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrincipalNode):
            return NotImplemented
        return self.structural_key == other.structural_key

    def __hash__(self) -> int:
        return hash(self.structural_key)

    # -------------------------------------------------------------- View state

    @property
    def expanded(self) -> bool:
        return self._expanded.value

    @property
    def expanded_state(self) -> ObservableValue[bool]:
        return self._expanded

    def set_expanded(self, value: bool) -> None:
        self._expanded.set(bool(value))

    # ---------------------------------------------------------------- Traversal

    def walk(self) -> Iterator[PrincipalNode]:
        """Yield this node and its descendants in pre-order."""

        yield self
        for child in self.children or ():
            yield from child.walk()

    def matches(self, term: str) -> bool:
        needle = term.casefold()
        return bool(needle) and needle in self.display_name.casefold()

    def filter(self, term: str | None) -> PrincipalNode | None:
        """Return a filtered copy of this subtree, or ``None`` when nothing matches.

        Leaves survive when their display name contains ``term``; parents
        survive when any child survives, with surviving children sorted by
        search relevance and the parent forced open. An empty term returns
        this node unchanged.
        """

        needle = sanitize_search_text(term)
        if not needle:
            return self
        return self._filter(needle)

    def _filter(self, needle: str) -> PrincipalNode | None:
        if not self.expandable:
            return self._derive() if self.matches(needle) else None

        survivors = [
            result
            for result in (child._filter(needle) for child in self.children or ())
            if result is not None
        ]
        if not survivors:
            return None
        survivors.sort(key=search_sort_key(needle))
        node = self._derive(children=survivors)
        node.set_expanded(True)
        return node

    def _derive(self, children: list[PrincipalNode] | None = None) -> PrincipalNode:
        update = {"children": children} if children is not None else None
        clone = self.model_copy(update=update)
        clone._expanded = ObservableValue(False)
        return clone


__all__ = [
    "IdentityID",
    "KIND_PRESENTATION",
    "KindPresentation",
    "PrincipalKind",
    "PrincipalNode",
    "StructuralKey",
    "describe_kind",
]
