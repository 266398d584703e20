from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import List, Optional, Sequence, Set, Tuple

Cell = int  # 0 = empty, 1 = occupied
Coord = Tuple[int, int]


class Axis(StrEnum):
    ROW = "row"
    COLUMN = "column"


@dataclass(frozen=True)
class Shift:
    """A cyclic rotation of one row (positive = right) or one column (positive = down)."""
    axis: Axis
    index: int
    amount: int

    def inverse(self) -> 'Shift':
        return Shift(self.axis, self.index, -self.amount)


@dataclass(frozen=True)
class Grid:
    """Toroidal rows x cols matrix of binary cells. Shifts return a new Grid."""
    rows: int
    cols: int
    cells: Tuple[Cell, ...]  # row-major, length == rows * cols

    def __post_init__(self) -> None:
        if len(self.cells) != self.rows * self.cols:
            raise ValueError(f"expected {self.rows * self.cols} cells, got {len(self.cells)}")

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'Grid':
        h = len(rows)
        w = len(rows[0]) if h else 0
        flat: List[Cell] = []
        for r in rows:
            if len(r) != w:
                raise ValueError("rows must all have the same length")
            flat.extend(1 if v else 0 for v in r)
        return cls(rows=h, cols=w, cells=tuple(flat))

    @classmethod
    def empty(cls, rows: int, cols: int) -> 'Grid':
        return cls(rows=rows, cols=cols, cells=(0,) * (rows * cols))

    def index(self, r: int, c: int) -> int:
        """Row-major offset of (r, c) in `cells`."""
        return r * self.cols + c

    def at(self, r: int, c: int) -> Cell:
        """Cell value at (r, c). Both indices wrap, so (-1, 0) is the bottom-left cell."""
        return self.cells[self.index(r % self.rows, c % self.cols)]

    def row(self, r: int) -> Tuple[Cell, ...]:
        _check_index(r, self.rows, "row")
        start = r * self.cols
        return self.cells[start:start + self.cols]

    def column(self, c: int) -> Tuple[Cell, ...]:
        _check_index(c, self.cols, "column")
        return tuple(self.cells[r * self.cols + c] for r in range(self.rows))

    def rows_view(self) -> List[List[Cell]]:
        return [list(self.row(r)) for r in range(self.rows)]

    def with_cell(self, r: int, c: int, value: Cell) -> 'Grid':
        _check_index(r, self.rows, "row")
        _check_index(c, self.cols, "column")
        cells = list(self.cells)
        cells[self.index(r, c)] = 1 if value else 0
        return Grid(self.rows, self.cols, tuple(cells))

    def shift_row(self, r: int, amount: int) -> 'Grid':
        """new[i] = old[(i - amount) mod cols]; positive moves cells right."""
        _check_index(r, self.rows, "row")
        old = self.row(r)
        cells = list(self.cells)
        base = r * self.cols
        for i in range(self.cols):
            cells[base + i] = old[(i - amount) % self.cols]
        return Grid(self.rows, self.cols, tuple(cells))

    def shift_column(self, c: int, amount: int) -> 'Grid':
        """Same rotation down the column; positive moves cells down."""
        _check_index(c, self.cols, "column")
        old = self.column(c)
        cells = list(self.cells)
        for i in range(self.rows):
            cells[i * self.cols + c] = old[(i - amount) % self.rows]
        return Grid(self.rows, self.cols, tuple(cells))

    def apply(self, shift: Shift) -> 'Grid':
        if shift.axis is Axis.ROW:
            return self.shift_row(shift.index, shift.amount)
        return self.shift_column(shift.index, shift.amount)

    def axis_length(self, axis: Axis) -> int:
        """Number of cells travelled by one full rotation of a row or column."""
        return self.cols if axis is Axis.ROW else self.rows

    def equals(self, other: 'Grid') -> bool:
        return self.rows == other.rows and self.cols == other.cols and self.cells == other.cells

    def pretty(self, hidden: Optional[Set[Coord]] = None) -> str:
        """One text line per row: '#' filled, '.' empty, a blank for each hidden cell."""
        lines: List[str] = []
        hset = hidden or set()
        for r in range(self.rows):
            row: List[str] = []
            for c in range(self.cols):
                if (r, c) in hset:
                    row.append(" ")
                else:
                    row.append("#" if self.at(r, c) else ".")
            lines.append(" ".join(row))
        return "\n".join(lines)


def _check_index(i: int, size: int, kind: str) -> None:
    if not 0 <= i < size:
        raise IndexError(f"{kind} index {i} out of range 0..{size - 1}")
