from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from .grid import Axis, Coord, Shift

logger = logging.getLogger(__name__)

CapturePredicate = Callable[[Axis, int], bool]


@dataclass(frozen=True)
class DragTuning:
    cell_size: float = 80.0
    threshold: float = 5.0  # px before a press becomes a drag
    damping: float = 0.2  # velocity carried into the predicted landing spot


@dataclass
class AxisDragState:
    """Continuous position of one row or column strip, relative to its resting origin."""
    axis: Axis
    index: int
    length: int
    cell_size: float
    offset: float = 0.0
    velocity: float = 0.0
    captured: bool = False

    @property
    def tile(self) -> float:
        return self.length * self.cell_size

    def track(self, displacement: float, velocity: float) -> float:
        # Re-centre by whole tiles; the strip looks identical one tile over.
        offset = math.fmod(displacement, self.tile)
        self.offset = offset
        self.velocity = velocity
        return offset

    def reset(self) -> None:
        self.offset = 0.0
        self.velocity = 0.0
        self.captured = False


@dataclass(frozen=True)
class DragResult:
    axis: Axis
    index: int
    shift_count: int

    @property
    def is_zero(self) -> bool:
        return self.shift_count == 0

    def to_shift(self) -> Shift:
        return Shift(self.axis, self.index, self.shift_count)


@dataclass
class _Gesture:
    row: Optional[int]
    col: Optional[int]
    axis: Optional[Axis] = None
    inert: bool = False


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class DragAxisController:
    """Turns one pointer gesture into at most one committed row or column shift.

    Only one axis may be captured at a time. A gesture stays inert until it travels
    `threshold` pixels; it is then locked to the row or column it resolved to and,
    if `allow_capture` agrees, captures that axis until the snap settles.
    """

    def __init__(self, rows: int, cols: int, tuning: Optional[DragTuning] = None,
                 allow_capture: Optional[CapturePredicate] = None) -> None:
        self.tuning = tuning or DragTuning()
        self.allow_capture = allow_capture
        self.row_states: List[AxisDragState] = []
        self.col_states: List[AxisDragState] = []
        self._gesture: Optional[_Gesture] = None
        self._captured: Optional[AxisDragState] = None
        self._snap_target: Optional[float] = None
        self.resize(rows, cols)

    def resize(self, rows: int, cols: int) -> None:
        """Rebuilds the per-axis state for a board of a new size."""
        self.rows = rows
        self.cols = cols
        cell = self.tuning.cell_size
        self.row_states = [AxisDragState(Axis.ROW, r, cols, cell) for r in range(rows)]
        self.col_states = [AxisDragState(Axis.COLUMN, c, rows, cell) for c in range(cols)]
        self._gesture = None
        self._captured = None
        self._snap_target = None

    def state(self, axis: Axis, index: int) -> AxisDragState:
        return self.row_states[index] if axis is Axis.ROW else self.col_states[index]

    @property
    def captured(self) -> Optional[AxisDragState]:
        return self._captured

    @property
    def captured_axis(self) -> Optional[Tuple[Axis, int]]:
        if self._captured is None:
            return None
        return self._captured.axis, self._captured.index

    @property
    def settling(self) -> bool:
        return self._snap_target is not None

    @property
    def snap_target(self) -> Optional[float]:
        return self._snap_target

    def is_locked(self, axis: Axis, index: int) -> bool:
        if self._captured is not None:
            return (self._captured.axis, self._captured.index) != (axis, index)
        if self.allow_capture is not None and not self.allow_capture(axis, index):
            return True
        return False

    def hidden_cells(self) -> Set[Coord]:
        """Cells owned by the captured strip; the crossing strips must not draw or drag them."""
        cap = self._captured
        if cap is None:
            return set()
        if cap.axis is Axis.COLUMN:
            return {(r, cap.index) for r in range(self.rows)}
        return {(cap.index, c) for c in range(self.cols)}

    def press(self, row: Optional[int] = None, col: Optional[int] = None) -> bool:
        """Starts a gesture on a row handle, a column handle, or a cell (both indices)."""
        if row is None and col is None:
            raise ValueError("press needs a row, a column, or both")
        if row is not None and not 0 <= row < self.rows:
            raise IndexError(f"row index {row} out of range")
        if col is not None and not 0 <= col < self.cols:
            raise IndexError(f"column index {col} out of range")
        if self._captured is not None or self._gesture is not None:
            return False
        self._gesture = _Gesture(row=row, col=col)
        return True

    def move(self, dx: float, dy: float, vx: float = 0.0, vy: float = 0.0) -> bool:
        """Feeds the displacement from the press point. Returns True while captured."""
        if not all(math.isfinite(v) for v in (dx, dy, vx, vy)):
            raise ValueError("drag sample must be finite")
        g = self._gesture
        if g is None or g.inert or self.settling:
            return self._captured is not None
        if g.axis is None:
            axis = self._resolve_axis(g, dx, dy)
            if axis is None:
                return False
            g.axis = axis
            index = g.row if axis is Axis.ROW else g.col
            assert index is not None
            if not self._try_capture(axis, index):
                g.inert = True
                return False
        cap = self._captured
        assert cap is not None
        if cap.axis is Axis.ROW:
            cap.track(dx, vx)
        else:
            cap.track(dy, vy)
        return True

    def release(self) -> Optional[float]:
        """Ends the gesture. Returns the snap target when an axis was captured."""
        self._gesture = None
        cap = self._captured
        if cap is None or self.settling:
            return None
        cell = self.tuning.cell_size
        predicted = cap.offset + cap.velocity * self.tuning.damping
        self._snap_target = round_half_up(predicted / cell) * cell
        logger.debug("release %s %d offset=%.1f snap=%.1f", cap.axis.value, cap.index,
                     cap.offset, self._snap_target)
        return self._snap_target

    def settle(self) -> Optional[DragResult]:
        """Finishes the snap. Frees the axis and reports the whole-cell shift it resolved to."""
        cap = self._captured
        if cap is None or self._snap_target is None:
            return None
        final = self._snap_target
        count = round_half_up(final / self.tuning.cell_size)
        if count % cap.length == 0:
            count = 0
        result = DragResult(cap.axis, cap.index, count)
        cap.reset()
        self._captured = None
        self._snap_target = None
        return result

    def cancel(self) -> None:
        """Drops the gesture and any in-flight snap without producing a shift."""
        self._gesture = None
        self._snap_target = None
        if self._captured is not None:
            self._captured.reset()
            self._captured = None

    def reset_axes(self) -> None:
        self.cancel()
        for s in self.row_states:
            s.reset()
        for s in self.col_states:
            s.reset()

    def _resolve_axis(self, g: _Gesture, dx: float, dy: float) -> Optional[Axis]:
        limit = self.tuning.threshold
        if g.col is None:
            return Axis.ROW if abs(dx) > limit else None
        if g.row is None:
            return Axis.COLUMN if abs(dy) > limit else None
        if max(abs(dx), abs(dy)) <= limit:
            return None
        return Axis.ROW if abs(dx) >= abs(dy) else Axis.COLUMN

    def _try_capture(self, axis: Axis, index: int) -> bool:
        if self._captured is not None:
            return False
        if self.allow_capture is not None and not self.allow_capture(axis, index):
            logger.debug("capture refused for %s %d", axis.value, index)
            return False
        state = self.state(axis, index)
        state.captured = True
        self._captured = state
        return True
