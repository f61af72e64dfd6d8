from __future__ import annotations

from enum import StrEnum
from typing import Any, Iterable

from pydantic import Field, field_validator

from .common import PrincipalBaseModel
from .principal import IdentityID, PrincipalKind, PrincipalNode


class PermissionAction(StrEnum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    ACCESS = "access"
    ADMIN = "admin"
    SHARE = "share"
    ASSIGN = "assign"


def parse_actions(values: Iterable[str | PermissionAction]) -> frozenset[PermissionAction]:
    """Coerce action names into a set, skipping names that are not known."""

    actions: set[PermissionAction] = set()
    for value in values:
        try:
            actions.add(PermissionAction(str(value).strip().lower()))
        except ValueError:
            continue
    return frozenset(actions)


class PermissionEntry(PrincipalBaseModel):
    """Row of a permission or membership table: a principal and its granted actions."""

    identity: IdentityID = Field(alias="identityID")
    kind: PrincipalKind = Field(alias="type")
    actions: frozenset[PermissionAction] = Field(default_factory=frozenset)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, PrincipalKind):
            return value.strip().lower()
        return value

    @classmethod
    def from_node(
        cls,
        node: PrincipalNode,
        actions: Iterable[PermissionAction] = (),
    ) -> PermissionEntry:
        return cls(identity=node.identity, kind=node.kind, actions=frozenset(actions))

    def visible_under(self, filter_actions: Iterable[PermissionAction]) -> bool:
        """True when every filtered action is granted; an empty filter shows all rows."""

        return frozenset(filter_actions) <= self.actions

    def widened(self, actions: Iterable[PermissionAction]) -> PermissionEntry:
        return self.model_copy(update={"actions": self.actions | frozenset(actions)})

    def to_node(self) -> PrincipalNode:
        return PrincipalNode(identity=self.identity, kind=self.kind)


__all__ = ["PermissionAction", "PermissionEntry", "parse_actions"]
