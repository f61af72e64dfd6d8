"""Qt projections of the principal console models."""

from .principals import (
    PermissionTableModel,
    PrincipalTreeController,
    PrincipalTreeModel,
)

__all__ = ["PermissionTableModel", "PrincipalTreeController", "PrincipalTreeModel"]
