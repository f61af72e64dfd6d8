"""Domain models describing security principals and their permissions."""

from .common import PrincipalBaseModel
from .permission import PermissionAction, PermissionEntry, parse_actions
from .principal import (
    KIND_PRESENTATION,
    IdentityID,
    KindPresentation,
    PrincipalKind,
    PrincipalNode,
    StructuralKey,
    describe_kind,
)

__all__ = [
    "PrincipalBaseModel",
    "IdentityID",
    "KIND_PRESENTATION",
    "KindPresentation",
    "PrincipalKind",
    "PrincipalNode",
    "StructuralKey",
    "describe_kind",
    "PermissionAction",
    "PermissionEntry",
    "parse_actions",
]
