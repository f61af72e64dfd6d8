"""Hierarchical principal tree: data store, flattening, selection and transfer."""

from .flatten import ExpansionSnapshot, FlatNode, Flattener
from .selection import NO_MODIFIERS, NavigationKey, SelectionController, SelectionModifiers
from .store import (
    IntegrityIssue,
    TreeDataStore,
    ViewChange,
    ViewOrigin,
    deduplicate_forest,
    derive_view,
)
from .transfer import (
    PermissionTable,
    TransferEndpoint,
    TreeTransferEndpoint,
    promote_read_only,
    transfer,
)

__all__ = [
    "TreeDataStore",
    "ViewChange",
    "ViewOrigin",
    "IntegrityIssue",
    "deduplicate_forest",
    "derive_view",
    "FlatNode",
    "Flattener",
    "ExpansionSnapshot",
    "SelectionController",
    "SelectionModifiers",
    "NO_MODIFIERS",
    "NavigationKey",
    "TransferEndpoint",
    "TreeTransferEndpoint",
    "PermissionTable",
    "promote_read_only",
    "transfer",
]
