"""
Business logic operations for datatips and curve alignment.
Separated from UI for testability and reusability.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .geometry import GeometryEngine, MODE_X_AXIS
from .models import TipRegistry, DataTip, MoveRecord, PendingCheck, OriginalCurve

logger = logging.getLogger(__name__)


def _is_visible(line) -> bool:
    getter = getattr(line, 'get_visible', None)
    return bool(getter()) if getter else True


def curve_label(line) -> str:
    """The curve's display name, or '' for unlabeled curves."""
    getter = getattr(line, 'get_label', None)
    label = getter() if getter else ''
    label = '' if label is None else str(label)
    # matplotlib auto-labels ('_child0', '_line1') are not user names
    if label.startswith('_'):
        return ''
    return label


class Operations:
    """Handles tip creation, alignment moves and curve resets."""

    def __init__(self, registry: TipRegistry, geometry: GeometryEngine):
        self.registry = registry
        self.geometry = geometry

    # ==================== TIP OPERATIONS ====================

    def line_name_for(self, line, k: int) -> str:
        """Name shown for a curve; k is its 1-based position in the axes."""
        return curve_label(line) or f"Line_{k}"

    def collect_tips(self, lines: Sequence, p0: Sequence[float], p1: Sequence[float],
                     mode: str) -> List[DataTip]:
        """
        Create snapped tips wherever the constrained gesture p0-p1 meets a curve.
        In x-axis mode only the curves' zero crossings within the gesture's
        X range count. Returns the newly registered tips.
        """
        created = []
        # Line_<k> counts curves in plotting order
        for k, line in enumerate(lines, start=1):
            if not _is_visible(line):
                continue
            xs = np.asarray(line.get_xdata(), dtype=float)
            ys = np.asarray(line.get_ydata(), dtype=float)
            name = self.line_name_for(line, k)

            if mode == MODE_X_AXIS:
                hits = [(xc, 0.0) for xc in self.geometry.zero_crossings(xs, ys, p0[0], p1[0])]
            else:
                hits = self.geometry.curve_crossings(xs, ys, p0, p1)

            for pt in hits:
                tip = self.add_snapped_tip(line, pt, name)
                if tip is not None:
                    created.append(tip)

        logger.debug("Gesture %s (%s) -> %s: %d new tip(s)", mode, p0, p1, len(created))
        return created

    def add_snapped_tip(self, line, point: Sequence[float], name: str) -> Optional[DataTip]:
        """Snap point to the nearest sample of line and register a tip there."""
        xs = np.asarray(line.get_xdata(), dtype=float)
        ys = np.asarray(line.get_ydata(), dtype=float)
        idx = self.geometry.nearest_vertex(xs, ys, point)
        if idx is None:
            return None

        # A gesture through a shared segment endpoint hits both segments
        if self.registry.find_tip(line, idx) is not None:
            return None

        tip = DataTip(line=line, line_name=name, index=idx,
                      x=float(xs[idx]), y=float(ys[idx]))
        self.registry.tips.append(tip)
        return tip

    def purge_dead_tips(self) -> List[DataTip]:
        """Drop tips whose curve or marker is gone. Returns the removed tips."""
        dead = [t for t in self.registry.tips if not t.is_alive()]
        if dead:
            self.registry.tips = [t for t in self.registry.tips if t.is_alive()]
            logger.info("Purged %d datatip(s) no longer on the plot", len(dead))
        return dead

    # ==================== ALIGNMENT OPERATIONS ====================

    def check_axis(self, axis: str, tip: DataTip, checked: bool) -> Optional[MoveRecord]:
        """
        Process one Aligner checkbox change for axis 'X' or 'Y'.
        First check = mover, second check = target. Returns the move made, if any.
        """
        axis = axis.upper()
        if axis not in ('X', 'Y'):
            raise ValueError(f"Axis must be 'X' or 'Y', got {axis!r}")

        pending = self.registry.pending(axis)
        if not checked:
            if pending is not None and pending.tip is tip:
                self.registry.set_pending(axis, None)
            return None

        if pending is None:
            self.registry.set_pending(axis, PendingCheck(tip=tip, line=tip.line, value=tip.value(axis)))
            return None

        record = None
        if pending.line is not tip.line:
            delta = tip.value(axis) - pending.value
            if axis == 'X':
                record = self.apply_move(pending.line, delta, 0.0, axis)
            else:
                record = self.apply_move(pending.line, 0.0, delta, axis)
        else:
            logger.debug("Mover and target are on the same curve; nothing to align")
        self.registry.set_pending(axis, None)
        return record

    def apply_move(self, line, dx: float, dy: float, axis: str) -> Optional[MoveRecord]:
        """Shift a curve and its tips, and log the move."""
        if getattr(line, 'axes', None) is None:
            return None

        if dx != 0:
            line.set_xdata(np.asarray(line.get_xdata(), dtype=float) + dx)
        if dy != 0:
            line.set_ydata(np.asarray(line.get_ydata(), dtype=float) + dy)

        for tip in self.registry.tips_for_line(line):
            tip.x += dx
            tip.y += dy

        record = MoveRecord(
            time=datetime.now(),
            signal=curve_label(line) or 'Line',
            axis=axis.upper(),
            delta=abs(dx) + abs(dy)
        )
        self.registry.move_history.append(record)
        logger.info("Moved %s along %s by %g", record.signal, record.axis, dx if dx else dy)
        return record

    # ==================== RESET OPERATIONS ====================

    def cache_originals(self, lines: Iterable) -> bool:
        """Remember every curve's data once. Returns True if a copy was taken."""
        if self.registry.originals_cached:
            return False
        self.registry.originals = [OriginalCurve.capture(ln) for ln in lines]
        self.registry.originals_cached = True
        return True

    def reset_curves(self) -> bool:
        """Restore cached curve data, clear the move log and re-read tip positions."""
        if not self.registry.originals_cached or not self.registry.originals:
            return False

        for rec in self.registry.originals:
            if getattr(rec.line, 'axes', None) is not None:
                rec.line.set_data(rec.xdata.copy(), rec.ydata.copy())

        self.registry.move_history.clear()

        for tip in self.registry.tips:
            if getattr(tip.line, 'axes', None) is None:
                continue
            xs = np.asarray(tip.line.get_xdata(), dtype=float)
            ys = np.asarray(tip.line.get_ydata(), dtype=float)
            if tip.index < min(len(xs), len(ys)):
                tip.x = float(xs[tip.index])
                tip.y = float(ys[tip.index])

        self.registry.clear_pending()
        logger.info("Restored %d curve(s) to their original data", len(self.registry.originals))
        return True
