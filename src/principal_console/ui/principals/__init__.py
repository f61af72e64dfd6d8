"""Principal tree and permission table views."""

from .controller import (
    PrincipalTreeController,
    build_permission_table,
    modifiers_from_qt,
    navigation_key_from_qt,
)
from .models import PermissionTableModel, PrincipalTreeModel

__all__ = [
    "PrincipalTreeController",
    "PrincipalTreeModel",
    "PermissionTableModel",
    "build_permission_table",
    "modifiers_from_qt",
    "navigation_key_from_qt",
]
