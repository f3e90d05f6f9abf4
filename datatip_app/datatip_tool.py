"""
Interactive datatip tool bound to a matplotlib Axes.

Mouse controls while enabled:
  LEFT drag    = free line
  RIGHT drag   = horizontal line (fixed Y)
  MIDDLE drag  = vertical line (fixed X)
  CTRL + drag  = datatips at the curves' zero crossings (any button)
  ESC cancels the line; DELETE removes the selected datatip.
Zoom/pan toolbar modes suppress drawing.
"""
import logging
from math import nan
from typing import List, Optional, Tuple

from matplotlib.axes import Axes
from matplotlib.backend_bases import MouseButton
from matplotlib.backend_tools import Cursors
from matplotlib.lines import Line2D

from datatip_core.config import ToolConfig
from datatip_core.exporter import (default_csv_path, write_tips_csv, send_to_workspace,
                                   MODE_OVERWRITE)
from datatip_core.geometry import (GeometryEngine, MODE_FREE, MODE_HORIZONTAL,
                                   MODE_VERTICAL, MODE_X_AXIS)
from datatip_core.models import TipRegistry, DataTip, MoveRecord
from datatip_core.operations import Operations

logger = logging.getLogger(__name__)

BUTTON_MODES = {
    MouseButton.LEFT: MODE_FREE,
    MouseButton.RIGHT: MODE_HORIZONTAL,
    MouseButton.MIDDLE: MODE_VERTICAL,
}

TIP_BBOX = dict(boxstyle="round,pad=0.3", edgecolor="gray", facecolor="white", alpha=0.9)
SELECTED_EDGE = "tab:orange"


class InteractiveDataTipTool:
    """Draws constrained lines on an Axes and drops datatips where they cross the curves."""

    def __init__(self, ax: Axes, config: Optional[ToolConfig] = None,
                 workspace: Optional[dict] = None):
        if not isinstance(ax, Axes):
            raise ValueError("Provide a valid axes handle.")

        self.ax = ax
        self.config = config or ToolConfig()
        self.workspace = workspace
        self.enabled = False

        # Core data and logic
        self.registry = TipRegistry()
        self.geometry = GeometryEngine()
        self.operations = Operations(self.registry, self.geometry)

        # Draw state
        self.preview_line: Optional[Line2D] = None
        self.is_down = False
        self.start_point: Tuple[float, float] = (nan, nan)
        self.constraint_mode = MODE_FREE
        self.selected_tip: Optional[DataTip] = None

        self.aligner = None
        self.default_csv_path = default_csv_path(self.config.export_dir)
        self._cids: List[int] = []

    @property
    def canvas(self):
        return self.ax.figure.canvas

    def curves(self) -> List[Line2D]:
        """Plotted curves the tool works on, in axes order."""
        return [ln for ln in self.ax.lines if ln is not self.preview_line]

    # ==================== ENABLE / DISABLE ====================

    def set_enabled(self, flag: bool):
        """Turn gesture handling on or off."""
        self.enabled = bool(flag)
        if self.enabled:
            # grab originals once
            self.operations.cache_originals(self.curves())
            if not self._cids:
                self._cids = [
                    self.canvas.mpl_connect('button_press_event', self.on_press),
                    self.canvas.mpl_connect('motion_notify_event', self.on_motion),
                    self.canvas.mpl_connect('button_release_event', self.on_release),
                    self.canvas.mpl_connect('key_press_event', self.on_key),
                    self.canvas.mpl_connect('pick_event', self.on_pick),
                ]
            self.canvas.set_cursor(Cursors.SELECT_REGION)
            logger.info("Datatip drawing enabled")
        else:
            for cid in self._cids:
                self.canvas.mpl_disconnect(cid)
            self._cids = []
            self.canvas.set_cursor(Cursors.POINTER)
            self._cancel_gesture()
            logger.info("Datatip drawing disabled")

    # ==================== MOUSE & KEYBOARD ====================

    def on_press(self, event):
        if not self.enabled or self.is_figure_mode_active():
            return
        if event.inaxes is not self.ax or event.xdata is None:
            return

        self.constraint_mode = self._mode_for_event(event)
        self.is_down = True
        self.start_point = (float(event.xdata), float(event.ydata))
        self.clear_preview()

        style = self.config.preview_style()
        self.preview_line = Line2D([self.start_point[0]], [self.start_point[1]],
                                   label='_nolegend_', zorder=10, **style)
        self.preview_line.set_picker(False)
        self.ax.add_line(self.preview_line)
        self.canvas.draw_idle()

    def on_motion(self, event):
        if self.is_figure_mode_active():
            return
        if self.enabled and event.inaxes is self.ax:
            self.canvas.set_cursor(Cursors.SELECT_REGION)
        if not self.enabled or not self.is_down or self.preview_line is None:
            return
        p1 = self._event_point(event)
        if p1 is None:
            return
        p0, p1 = self.geometry.constrain(self.constraint_mode, self.start_point, p1)
        self.preview_line.set_data([p0[0], p1[0]], [p0[1], p1[1]])
        self.canvas.draw_idle()

    def on_release(self, event):
        if not self.enabled or not self.is_down:
            return
        if self.is_figure_mode_active():
            self._cancel_gesture()
            return

        p1 = self._event_point(event)
        if p1 is None and self.preview_line is not None:
            xs, ys = self.preview_line.get_data()
            p1 = (float(xs[-1]), float(ys[-1]))
        if p1 is None:
            self._cancel_gesture()
            return

        p0, p1 = self.geometry.constrain(self.constraint_mode, self.start_point, p1)
        mode = self.constraint_mode
        self._cancel_gesture()
        self.create_datatips(p0, p1, mode)

    def on_key(self, event):
        if event.key == 'escape':
            if self.is_down:
                self._cancel_gesture()
        elif event.key == 'delete' and self.selected_tip is not None:
            self.delete_tip(self.selected_tip)

    def on_pick(self, event):
        tip = next((t for t in self.registry.tips if t.artist is event.artist), None)
        if tip is not None:
            self.select_tip(tip)

    def is_figure_mode_active(self) -> bool:
        """True while a zoom/pan toolbar mode owns the mouse."""
        toolbar = getattr(self.canvas, 'toolbar', None)
        return bool(getattr(toolbar, 'mode', ''))

    def _mode_for_event(self, event) -> str:
        key = (event.key or '').lower()
        if any(mod in key for mod in ('control', 'ctrl', 'cmd', 'super')):
            return MODE_X_AXIS
        if getattr(event, 'dblclick', False):
            return MODE_FREE
        return BUTTON_MODES.get(event.button, MODE_FREE)

    def _event_point(self, event) -> Optional[Tuple[float, float]]:
        """Event position in data coordinates, also when the pointer left the axes."""
        if event.inaxes is self.ax and event.xdata is not None:
            return float(event.xdata), float(event.ydata)
        if getattr(event, 'x', None) is None or getattr(event, 'y', None) is None:
            return None
        x, y = self.ax.transData.inverted().transform((event.x, event.y))
        return float(x), float(y)

    def _cancel_gesture(self):
        self.clear_preview()
        self.is_down = False
        self.constraint_mode = MODE_FREE

    def clear_preview(self):
        if self.preview_line is not None:
            if self.preview_line.axes is not None:
                self.preview_line.remove()
            self.preview_line = None
            self.canvas.draw_idle()

    # ==================== DATATIPS ====================

    def create_datatips(self, p0, p1, mode: str = MODE_FREE) -> List[DataTip]:
        """Drop a datatip wherever the segment p0-p1 meets a curve."""
        created = self.operations.collect_tips(self.curves(), p0, p1, mode)
        for tip in created:
            self._attach_marker(tip)
        if created:
            self.canvas.draw_idle()
        self.refresh_aligner()
        return created

    def _attach_marker(self, tip: DataTip):
        tip.artist = self.ax.annotate(
            self._tip_text(tip),
            (tip.x, tip.y),
            textcoords="offset points",
            xytext=(10, 10),
            fontsize=8,
            bbox=dict(TIP_BBOX),
            arrowprops=dict(arrowstyle="-", color="gray"),
            picker=True,
        )

    def _tip_text(self, tip: DataTip) -> str:
        return f"X {tip.x:.4g}\nY {tip.y:.4g}"

    def sync_markers(self):
        """Move markers to their tips' current coordinates."""
        for tip in self.registry.tips:
            if tip.artist is not None and tip.artist.axes is not None:
                tip.artist.xy = (tip.x, tip.y)
                tip.artist.set_text(self._tip_text(tip))
        self.canvas.draw_idle()

    def select_tip(self, tip: DataTip):
        if self.selected_tip is not None and self.selected_tip.artist is not None:
            self.selected_tip.artist.get_bbox_patch().set_edgecolor(TIP_BBOX['edgecolor'])
        self.selected_tip = tip
        if tip.artist is not None:
            tip.artist.get_bbox_patch().set_edgecolor(SELECTED_EDGE)
        self.canvas.draw_idle()

    def delete_tip(self, tip: DataTip):
        """Remove a datatip marker; the tip drops out of the tables on refresh."""
        if tip.artist is not None and tip.artist.axes is not None:
            tip.artist.remove()
        if self.selected_tip is tip:
            self.selected_tip = None
        self.canvas.draw_idle()
        self.refresh_aligner()

    # ==================== ALIGNER SUPPORT ====================

    def refresh_data(self):
        """Drop dead tips and forget half-finished checkbox selections."""
        self.operations.purge_dead_tips()
        if self.selected_tip is not None and not self.selected_tip.is_alive():
            self.selected_tip = None
        self.registry.clear_pending()

    def check_axis(self, axis: str, tip: DataTip, checked: bool) -> Optional[MoveRecord]:
        record = self.operations.check_axis(axis, tip, checked)
        if record is not None:
            self.sync_markers()
        return record

    def reset_curves(self) -> bool:
        """Restore every curve to the data it had when drawing was first enabled."""
        restored = self.operations.reset_curves()
        if restored:
            self.sync_markers()
        return restored

    def save_csv(self, path: str, mode: str = MODE_OVERWRITE) -> int:
        return write_tips_csv(self.registry.tips, path, mode)

    def send_to_workspace(self) -> List[str]:
        return send_to_workspace(self.registry, self.workspace)

    def open_aligner(self, position: Optional[Tuple[int, int, int, int]] = None):
        """Create or raise the Aligner window; position is (x, y, width, height)."""
        from .aligner_widget import AlignerWindow

        if position is not None and len(position) != 4:
            raise ValueError("Position must be (x, y, width, height)")
        if self.aligner is None:
            self.aligner = AlignerWindow(self)
        self.aligner.setGeometry(*(position or self.config.aligner_geometry()))
        self.aligner.show()
        self.aligner.raise_()
        self.aligner.activateWindow()
        self.aligner.refresh_tables()
        return self.aligner

    def refresh_aligner(self):
        if self.aligner is not None and self.aligner.isVisible():
            self.aligner.refresh_tables()
