"""
Main window for the interactive datatip demo.
"""
import numpy as np
from PyQt6.QtWidgets import (QMainWindow, QStatusBar, QWidget, QVBoxLayout, QHBoxLayout,
                             QCheckBox, QPushButton, QLabel, QMessageBox)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg, NavigationToolbar2QT
from matplotlib.figure import Figure

from datatip_core.config import ToolConfig
from .install import install_mouse_datatips_feature

HELP_TEXT = (
    "MOUSE BUTTON CONTROLS:\n"
    "- LEFT CLICK + DRAG = Free line (follows the mouse)\n"
    "- RIGHT CLICK + DRAG = Horizontal line (fixed Y)\n"
    "- MIDDLE CLICK + DRAG = Vertical line (fixed X)\n"
    "- CTRL + DRAG = Datatips where curves cross y=0 (any button)\n"
    "ESC cancels a line. Click a datatip and press DELETE to remove it."
)


def plot_demo_curves(ax):
    """Curves with known crossings: sin, cos and two reference lines."""
    t = np.linspace(0, 4 * np.pi, 200)
    ax.plot(t, np.sin(t), 'b-', linewidth=2, label='sin(t)')
    ax.plot(t, np.cos(t), 'r-', linewidth=2, label='cos(t)')
    ax.plot(t, 0.5 * np.ones_like(t), 'g--', linewidth=1, label='y=0.5')
    ax.plot(np.pi * np.ones_like(t), np.linspace(-1.5, 1.5, len(t)), 'm--', linewidth=1, label='x=π')
    ax.grid(True)
    ax.set_xlabel('t')
    ax.set_ylabel('y')
    ax.set_title('Draw lines to create datatips. Use the Aligner window to align.')
    ax.legend(loc='best')


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, config: ToolConfig = None):
        super().__init__()
        self.config = config or ToolConfig()

        self.setWindowTitle("DataTip Tool + Aligner")
        self.resize(1000, 700)

        self._setup_ui()
        self._create_menus()
        self._create_statusbar()

    def _setup_ui(self):
        """Set up the main UI layout."""
        central = QWidget()
        layout = QVBoxLayout()
        central.setLayout(layout)
        self.setCentralWidget(central)

        self.figure = Figure(figsize=(10, 6))
        self.canvas = FigureCanvasQTAgg(self.figure)
        # ESC and DELETE reach the tool only while the canvas has focus
        self.canvas.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.toolbar = NavigationToolbar2QT(self.canvas, self)
        layout.addWidget(self.toolbar)
        layout.addWidget(self.canvas, stretch=1)

        self.ax = self.figure.add_subplot(111)
        plot_demo_curves(self.ax)

        controls = QHBoxLayout()
        self.enable_cb = QCheckBox("Enable data tips")
        self.enable_cb.setChecked(True)
        controls.addWidget(self.enable_cb)

        self.aligner_btn = QPushButton("Open Aligner")
        controls.addWidget(self.aligner_btn)
        controls.addStretch()
        layout.addLayout(controls)

        help_label = QLabel(HELP_TEXT)
        layout.addWidget(help_label)

        self.tool = install_mouse_datatips_feature(self.ax, self.enable_cb, config=self.config)
        self.aligner_btn.clicked.connect(lambda: self.tool.open_aligner())
        self.enable_cb.toggled.connect(self._on_enable_toggled)

    def _create_menus(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        save_action = QAction("Save Datatips as CSV...", self)
        save_action.triggered.connect(self._save_csv)
        file_menu.addAction(save_action)
        ws_action = QAction("Send to Workspace", self)
        ws_action.triggered.connect(self._send_to_workspace)
        file_menu.addAction(ws_action)
        file_menu.addSeparator()
        exit_action = QAction("E&xit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        tools_menu = menubar.addMenu("&Tools")
        aligner_action = QAction("Open Aligner", self)
        aligner_action.triggered.connect(lambda: self.tool.open_aligner())
        tools_menu.addAction(aligner_action)
        reset_action = QAction("Reset Curves", self)
        reset_action.triggered.connect(self._reset_curves)
        tools_menu.addAction(reset_action)

        help_menu = menubar.addMenu("&Help")
        controls_action = QAction("Mouse Controls", self)
        controls_action.triggered.connect(
            lambda: QMessageBox.information(self, "Mouse Controls", HELP_TEXT))
        help_menu.addAction(controls_action)

    def _create_statusbar(self):
        """Create status bar."""
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready - draw lines across the curves")

    def update_status(self, message: str):
        self.status_bar.showMessage(message)

    def _on_enable_toggled(self, checked: bool):
        self.update_status("Data tips enabled" if checked else "Data tips disabled")

    def _aligner(self):
        return self.tool.open_aligner()

    def _save_csv(self):
        self._aligner().on_save_csv()

    def _send_to_workspace(self):
        self._aligner().on_send_to_workspace()

    def _reset_curves(self):
        if self.tool.reset_curves():
            self.tool.refresh_aligner()
            self.update_status("Curves restored")
        else:
            self.update_status("Nothing to reset")

    def closeEvent(self, event):
        if self.tool.aligner is not None:
            self.tool.aligner.close()
        super().closeEvent(event)
