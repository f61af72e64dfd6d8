"""Data layer: principal models and search ranking."""

from .models import (
    KIND_PRESENTATION,
    IdentityID,
    KindPresentation,
    PermissionAction,
    PermissionEntry,
    PrincipalBaseModel,
    PrincipalKind,
    PrincipalNode,
    StructuralKey,
    describe_kind,
    parse_actions,
)
from .search import SearchRank, compare_search_rank, search_rank, search_sort_key

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
    "SearchRank",
    "compare_search_rank",
    "search_rank",
    "search_sort_key",
]
