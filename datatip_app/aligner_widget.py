"""
Aligner window: datatip table with X/Y align checkboxes and a move log.
"""
import logging
import os
from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QTableView,
                             QPushButton, QHeaderView, QMessageBox, QFileDialog)
from PyQt6.QtCore import Qt, QAbstractTableModel, QModelIndex, pyqtSignal, QVariant
from PyQt6.QtGui import QColor
from typing import List

from datatip_core.exporter import ExportError, MODE_APPEND, MODE_OVERWRITE, WORKSPACE_TIPS, WORKSPACE_MOVES
from datatip_core.logs import log_exception

logger = logging.getLogger(__name__)

ROW_COLORS = (QColor(230, 242, 255), QColor(245, 250, 255))  # light blue, lighter blue

COL_NAME, COL_X, COL_X_CHECK, COL_Y, COL_Y_CHECK = range(5)
CHECK_AXES = {COL_X_CHECK: 'X', COL_Y_CHECK: 'Y'}


class TipsTableModel(QAbstractTableModel):
    """Table model for datatips: Signal Name | X | X□ | Y | Y□."""

    axis_check_changed = pyqtSignal(str, object, bool)  # axis, tip, checked

    def __init__(self, registry):
        super().__init__()
        self.registry = registry
        self.headers = ['Signal Name', 'X', 'X□', 'Y', 'Y□']
        self.sortable_columns = (COL_NAME, COL_X, COL_Y)
        self._checked = set()  # {(tip, column)}
        self._sort_column = None
        self._sort_order = Qt.SortOrder.AscendingOrder
        self._sorted_cache = None

    def rowCount(self, parent=QModelIndex()):
        return len(self.registry.tips)

    def columnCount(self, parent=QModelIndex()):
        return len(self.headers)

    def tip_at(self, row: int):
        tips = self._get_sorted_tips()
        if 0 <= row < len(tips):
            return tips[row]
        return None

    def data(self, index, role=Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return QVariant()

        tip = self.tip_at(index.row())
        if tip is None:
            return QVariant()
        col = index.column()

        if role == Qt.ItemDataRole.DisplayRole:
            if col == COL_NAME:
                return tip.line_name
            elif col == COL_X:
                return f"{tip.x:.6g}"
            elif col == COL_Y:
                return f"{tip.y:.6g}"
        elif role == Qt.ItemDataRole.CheckStateRole and col in CHECK_AXES:
            checked = (tip, col) in self._checked
            return Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked
        elif role == Qt.ItemDataRole.TextAlignmentRole:
            return Qt.AlignmentFlag.AlignCenter
        elif role == Qt.ItemDataRole.BackgroundRole:
            return ROW_COLORS[index.row() % 2]

        return QVariant()

    def flags(self, index):
        flags = Qt.ItemFlag.ItemIsEnabled | Qt.ItemFlag.ItemIsSelectable
        if index.isValid() and index.column() in CHECK_AXES:
            flags |= Qt.ItemFlag.ItemIsUserCheckable
        return flags

    def setData(self, index, value, role=Qt.ItemDataRole.EditRole):
        if not index.isValid() or role != Qt.ItemDataRole.CheckStateRole:
            return False
        col = index.column()
        tip = self.tip_at(index.row())
        if tip is None or col not in CHECK_AXES:
            return False

        checked = Qt.CheckState(value) == Qt.CheckState.Checked
        if checked:
            self._checked.add((tip, col))
        else:
            self._checked.discard((tip, col))
        self.dataChanged.emit(index, index, [role])
        self.axis_check_changed.emit(CHECK_AXES[col], tip, checked)
        return True

    def headerData(self, section, orientation, role=Qt.ItemDataRole.DisplayRole):
        if role == Qt.ItemDataRole.DisplayRole and orientation == Qt.Orientation.Horizontal:
            return self.headers[section]
        return QVariant()

    def sort(self, column, order):
        """Sort table by given column; checkbox columns are not sortable."""
        if column not in self.sortable_columns:
            return
        self.layoutAboutToBeChanged.emit()
        self._sort_column = column
        self._sort_order = order
        self._sorted_cache = None
        self.layoutChanged.emit()

    def reload(self):
        """Rebuild rows from the registry with every box unchecked."""
        self.beginResetModel()
        self._checked.clear()
        self._sorted_cache = None
        self.endResetModel()

    def _get_sorted_tips(self):
        """Get tips sorted by current sort settings (cached)."""
        if self._sorted_cache is not None:
            return self._sorted_cache

        tips = list(self.registry.tips)
        if self._sort_column is None:
            self._sorted_cache = tips
            return tips

        def sort_key(tip):
            if self._sort_column == COL_NAME:
                return tip.line_name.lower()
            elif self._sort_column == COL_X:
                return tip.x
            return tip.y

        reverse = (self._sort_order == Qt.SortOrder.DescendingOrder)
        self._sorted_cache = sorted(tips, key=sort_key, reverse=reverse)
        return self._sorted_cache


class MoveLogTableModel(QAbstractTableModel):
    """One-column table with |Δ| of every alignment move."""

    def __init__(self, registry):
        super().__init__()
        self.registry = registry
        self.headers = ['Δ Log']
        self._order: List[int] = []
        self._sort_order = None

    def rowCount(self, parent=QModelIndex()):
        return len(self.registry.move_history)

    def columnCount(self, parent=QModelIndex()):
        return len(self.headers)

    def data(self, index, role=Qt.ItemDataRole.DisplayRole):
        if not index.isValid() or not (0 <= index.row() < len(self._order)):
            return QVariant()
        record = self.registry.move_history[self._order[index.row()]]
        if role == Qt.ItemDataRole.DisplayRole:
            return f"{record.delta:.6g}"
        elif role == Qt.ItemDataRole.ToolTipRole:
            return f"{record.time:%H:%M:%S}  {record.signal}  {record.axis}"
        elif role == Qt.ItemDataRole.TextAlignmentRole:
            return Qt.AlignmentFlag.AlignCenter
        elif role == Qt.ItemDataRole.BackgroundRole:
            return ROW_COLORS[index.row() % 2]
        return QVariant()

    def headerData(self, section, orientation, role=Qt.ItemDataRole.DisplayRole):
        if role == Qt.ItemDataRole.DisplayRole and orientation == Qt.Orientation.Horizontal:
            return self.headers[section]
        return QVariant()

    def sort(self, column, order):
        """Sort by |Δ|; section -1 means unsorted."""
        if column < 0:
            return
        self.layoutAboutToBeChanged.emit()
        self._sort_order = order
        self._order = self._sorted_order()
        self.layoutChanged.emit()

    def reload(self):
        """Rebuild rows from the move history, keeping the current sort."""
        self.beginResetModel()
        self._order = self._sorted_order()
        self.endResetModel()

    def _sorted_order(self) -> List[int]:
        history = self.registry.move_history
        order = list(range(len(history)))
        if self._sort_order is None:
            return order
        reverse = (self._sort_order == Qt.SortOrder.DescendingOrder)
        return sorted(order, key=lambda i: history[i].delta, reverse=reverse)


class AlignerWindow(QWidget):
    """Review, align and export the datatips of one InteractiveDataTipTool."""

    def __init__(self, tool, parent=None):
        super().__init__(parent)
        self.tool = tool
        self.registry = tool.registry

        self.setWindowTitle("DataTip Aligner")
        self._setup_ui()

    def _setup_ui(self):
        """Set up the UI layout."""
        layout = QVBoxLayout()
        self.setLayout(layout)

        tables = QHBoxLayout()

        # Main table (left): Signal Name | X | X□ | Y | Y□
        self.tips_table = QTableView()
        self.tips_model = TipsTableModel(self.registry)
        self.tips_model.axis_check_changed.connect(self._on_axis_check)
        self.tips_table.setModel(self.tips_model)
        # rows stay in creation order until a header is clicked
        self.tips_table.horizontalHeader().setSortIndicator(-1, Qt.SortOrder.AscendingOrder)
        self.tips_table.setSortingEnabled(True)
        self.tips_table.verticalHeader().setVisible(False)
        self.tips_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        tables.addWidget(self.tips_table, stretch=1)

        # Move log table (right)
        self.log_table = QTableView()
        self.log_model = MoveLogTableModel(self.registry)
        self.log_table.setModel(self.log_model)
        self.log_table.horizontalHeader().setSortIndicator(-1, Qt.SortOrder.AscendingOrder)
        self.log_table.setSortingEnabled(True)
        self.log_table.verticalHeader().setVisible(False)
        self.log_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.log_table.setFixedWidth(190)
        tables.addWidget(self.log_table)

        layout.addLayout(tables)

        buttons = QHBoxLayout()
        self.refresh_btn = QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self.refresh_tables)
        buttons.addWidget(self.refresh_btn)

        self.to_ws_btn = QPushButton("Send to Workspace")
        self.to_ws_btn.clicked.connect(self.on_send_to_workspace)
        buttons.addWidget(self.to_ws_btn)

        self.save_btn = QPushButton("Save CSV")
        self.save_btn.clicked.connect(self.on_save_csv)
        buttons.addWidget(self.save_btn)

        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(self.on_reset_curves)
        buttons.addWidget(self.reset_btn)

        buttons.addStretch()
        layout.addLayout(buttons)

    # ==================== TABLES ====================

    def refresh_tables(self):
        """Purge deleted tips, repaint both tables and clear pending checks."""
        self.tool.refresh_data()
        self.tips_model.reload()
        self.log_model.reload()

    def _on_axis_check(self, axis: str, tip, checked: bool):
        completes_pair = checked and self.registry.pending(axis) is not None
        self.tool.check_axis(axis, tip, checked)
        if completes_pair:
            self.refresh_tables()

    # ==================== BUTTONS ====================

    def on_save_csv(self):
        if not self.registry.tips:
            QMessageBox.information(self, "Nothing to export", "No datatips to save yet.")
            return

        path = self._ask_save_path()
        if not path:
            return

        mode = MODE_OVERWRITE
        if os.path.exists(path):
            mode = self._ask_write_mode()
            if mode is None:
                return

        try:
            self.tool.save_csv(path, mode)
        except ExportError as e:
            QMessageBox.critical(self, "Failed to save", log_exception("Save CSV", e))
            return
        QMessageBox.information(self, "Export complete", f"Saved to: {path}")

    def _ask_save_path(self) -> str:
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save datatip list as", self.tool.default_csv_path,
            "CSV file (*.csv);;Text file (*.txt)",
            options=QFileDialog.Option.DontConfirmOverwrite
        )
        return file_path

    def _ask_write_mode(self):
        """Append / Overwrite / Cancel prompt; Cancel returns None."""
        box = QMessageBox(self)
        box.setWindowTitle("File exists")
        box.setText("File exists. Append or Overwrite?")
        append_btn = box.addButton("Append", QMessageBox.ButtonRole.AcceptRole)
        overwrite_btn = box.addButton("Overwrite", QMessageBox.ButtonRole.DestructiveRole)
        box.addButton(QMessageBox.StandardButton.Cancel)
        box.setDefaultButton(append_btn)
        box.exec()

        clicked = box.clickedButton()
        if clicked is append_btn:
            return MODE_APPEND
        if clicked is overwrite_btn:
            return MODE_OVERWRITE
        return None

    def on_send_to_workspace(self):
        try:
            self.tool.send_to_workspace()
        except Exception as e:
            QMessageBox.critical(self, "Workspace export failed", log_exception("Send to Workspace", e))
            return
        QMessageBox.information(self, "Sent to Workspace",
                                f"Exported variables: {WORKSPACE_TIPS}, {WORKSPACE_MOVES}")

    def on_reset_curves(self):
        # nothing cached, nothing to do
        if not self.tool.reset_curves():
            return
        self.refresh_tables()

    def closeEvent(self, event):
        """Remember where the Aligner was for the next session."""
        rect = self.geometry()
        config = self.tool.config
        config.set_aligner_geometry((rect.x(), rect.y(), rect.width(), rect.height()))
        try:
            config.save_config()
        except OSError as e:
            logger.warning("Could not save %s: %s", config.config_file, e)
        super().closeEvent(event)
