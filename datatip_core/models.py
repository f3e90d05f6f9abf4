"""
Data models for the datatip tool.
Separates tip bookkeeping from the plotting widgets.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional
import numpy as np


def _artist_alive(artist) -> bool:
    """An artist is alive while it is still attached to an axes."""
    return artist is not None and getattr(artist, 'axes', None) is not None


@dataclass(eq=False)
class DataTip:
    """A marker snapped to one sample of a plotted curve."""
    line: Any
    line_name: str
    index: int
    x: float
    y: float
    artist: Any = None

    def is_alive(self) -> bool:
        """False once the curve or its marker has been removed from the plot."""
        if not _artist_alive(self.line):
            return False
        if self.artist is not None and not _artist_alive(self.artist):
            return False
        return True

    def value(self, axis: str) -> float:
        return self.x if axis.upper() == 'X' else self.y

    def to_record(self) -> Dict[str, Any]:
        """Convert to an export record."""
        return {
            'SignalName': self.line_name,
            'Index': self.index,
            'X': float(self.x),
            'Y': float(self.y)
        }


@dataclass
class MoveRecord:
    """One alignment move applied to a curve."""
    time: datetime
    signal: str
    axis: str
    delta: float

    def to_record(self) -> Dict[str, Any]:
        return {
            'Time': self.time,
            'Signal': self.signal,
            'Axis': self.axis,
            'Delta': float(self.delta)
        }


@dataclass(eq=False)
class PendingCheck:
    """First ticked Aligner checkbox for one axis (the mover)."""
    tip: DataTip
    line: Any
    value: float


@dataclass(eq=False)
class OriginalCurve:
    """Copy of a curve's data taken before any alignment."""
    line: Any
    xdata: np.ndarray = field(default_factory=lambda: np.empty(0))
    ydata: np.ndarray = field(default_factory=lambda: np.empty(0))

    @classmethod
    def capture(cls, line) -> 'OriginalCurve':
        return cls(
            line=line,
            xdata=np.array(line.get_xdata(), dtype=float, copy=True),
            ydata=np.array(line.get_ydata(), dtype=float, copy=True)
        )


class TipRegistry:
    """Central data store for tips, pending checks, move history and originals."""

    def __init__(self):
        self.tips: List[DataTip] = []
        self.move_history: List[MoveRecord] = []
        self.pending_x: Optional[PendingCheck] = None
        self.pending_y: Optional[PendingCheck] = None
        self.originals: List[OriginalCurve] = []
        self.originals_cached: bool = False

    def pending(self, axis: str) -> Optional[PendingCheck]:
        return self.pending_x if axis.upper() == 'X' else self.pending_y

    def set_pending(self, axis: str, pending: Optional[PendingCheck]):
        if axis.upper() == 'X':
            self.pending_x = pending
        else:
            self.pending_y = pending

    def clear_pending(self):
        """Forget both half-finished checkbox selections."""
        self.pending_x = None
        self.pending_y = None

    def tips_for_line(self, line) -> List[DataTip]:
        """All tips placed on the given curve."""
        return [t for t in self.tips if t.line is line]

    def find_tip(self, line, index: int) -> Optional[DataTip]:
        """Find the tip on a curve at a sample index."""
        return next((t for t in self.tips if t.line is line and t.index == index), None)
