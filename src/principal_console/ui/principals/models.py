from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List

from PySide6.QtCore import QAbstractListModel, QAbstractTableModel, QModelIndex, Qt

from principal_console.data import PermissionEntry, describe_kind
from principal_console.tree import FlatNode, PermissionTable


INDENT = "    "


class PrincipalTreeModel(QAbstractListModel):
    """List projection of the visible flat nodes for a virtualized view."""

    LevelRole = Qt.ItemDataRole.UserRole + 1
    ExpandableRole = Qt.ItemDataRole.UserRole + 2
    ExpandedRole = Qt.ItemDataRole.UserRole + 3
    ReadOnlyRole = Qt.ItemDataRole.UserRole + 4

    def __init__(
        self,
        rows: Iterable[FlatNode] | None = None,
        *,
        is_expanded: Callable[[FlatNode], bool] | None = None,
    ) -> None:
        super().__init__()
        self._rows: list[FlatNode] = list(rows or [])
        self._is_expanded = is_expanded or (lambda flat: flat.node.expanded)

    def rowCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802
        if parent and parent.isValid():
            return 0
        return len(self._rows)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: ANN001
        if not index.isValid():
            return None
        flat = self.flat_at(index.row())
        if flat is None:
            return None
        node = flat.node

        if role == Qt.ItemDataRole.DisplayRole:
            return f"{INDENT * flat.level}{flat.display_name}"
        if role == Qt.ItemDataRole.DecorationRole:
            return describe_kind(node.kind).icon
        if role == Qt.ItemDataRole.ToolTipRole:
            kind_label = describe_kind(node.kind).label
            return f"{node.identity.qualified_name} [{kind_label}]"
        if role == Qt.ItemDataRole.UserRole:
            return flat
        if role == self.LevelRole:
            return flat.level
        if role == self.ExpandableRole:
            return flat.expandable
        if role == self.ExpandedRole:
            return flat.expandable and self._is_expanded(flat)
        if role == self.ReadOnlyRole:
            return node.read_only
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        flags = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        flat = self.flat_at(index.row())
        if flat is not None and not flat.node.read_only and not flat.node.is_root:
            flags |= Qt.ItemFlag.ItemIsDragEnabled
        return flags

    def set_rows(self, rows: Iterable[FlatNode]) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self.endResetModel()

    def flat_at(self, row: int) -> FlatNode | None:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    def row_of(self, flat: FlatNode) -> int:
        for row, item in enumerate(self._rows):
            if item.key == flat.key:
                return row
        return -1

    def rows(self) -> list[FlatNode]:
        return list(self._rows)


@dataclass(slots=True)
class PermissionColumn:
    key: str
    header: str
    accessor: Callable[[PermissionEntry], str]


def _actions_label(entry: PermissionEntry) -> str:
    return ", ".join(sorted(action.value for action in entry.actions))


class PermissionTableModel(QAbstractTableModel):
    """Table projection of the permission rows visible under the action filter."""

    def __init__(self, table: PermissionTable) -> None:
        super().__init__()
        self._table = table
        self._columns: List[PermissionColumn] = [
            PermissionColumn("principal", "Principal", lambda entry: entry.identity.qualified_name),
            PermissionColumn("kind", "Type", lambda entry: describe_kind(entry.kind).label),
            PermissionColumn("actions", "Actions", _actions_label),
        ]
        self._rows: list[PermissionEntry] = table.visible_entries
        self._unsubscribe = table.changed.subscribe(lambda _entries: self.reload())

    @property
    def table(self) -> PermissionTable:
        return self._table

    def rowCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802
        if parent and parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802
        if parent and parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # noqa: ANN001
        if not index.isValid():
            return None
        entry = self.entry_at(index.row())
        if entry is None or not 0 <= index.column() < len(self._columns):
            return None
        column = self._columns[index.column()]

        if role == Qt.ItemDataRole.DisplayRole:
            value = column.accessor(entry)
            return value if value else "—"
        if role == Qt.ItemDataRole.DecorationRole and column.key == "principal":
            return describe_kind(entry.kind).icon
        if role == Qt.ItemDataRole.UserRole:
            return entry
        return None

    def headerData(  # noqa: N802
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if orientation != Qt.Orientation.Horizontal:
            return super().headerData(section, orientation, role)
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if section < 0 or section >= len(self._columns):
            return None
        return self._columns[section].header

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.ItemIsDropEnabled
        return (
            Qt.ItemFlag.ItemIsEnabled
            | Qt.ItemFlag.ItemIsSelectable
            | Qt.ItemFlag.ItemIsDragEnabled
        )

    def reload(self) -> None:
        self.beginResetModel()
        self._rows = self._table.visible_entries
        self.endResetModel()

    def entry_at(self, row: int) -> PermissionEntry | None:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    def select_rows(self, rows: Iterable[int]) -> None:
        entries = [self.entry_at(row) for row in rows]
        self._table.select(entry.identity for entry in entries if entry is not None)

    def dispose(self) -> None:
        self._unsubscribe()


__all__ = ["PermissionTableModel", "PrincipalTreeModel"]
