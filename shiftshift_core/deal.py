from __future__ import annotations

import random
from typing import List, Optional, Tuple

from .grid import Axis, Grid, Shift
from .levels import LevelConfig, validate_config

TUTORIAL_ROWS = 4
TUTORIAL_COLS = 5
TUTORIAL_DENSITY = 0.5


def random_target(rows: int, cols: int, density: float, rng: random.Random) -> Grid:
    """Fills each cell independently with probability `density`."""
    cells = tuple(1 if rng.random() < density else 0 for _ in range(rows * cols))
    return Grid(rows=rows, cols=cols, cells=cells)


def scramble(target: Grid, steps: int, rng: random.Random) -> Tuple[Grid, List[Shift]]:
    """Applies `steps` random unit shifts to a copy of `target`.

    Returns the scrambled grid together with the shifts applied, so replaying their
    inverses in reverse order restores the target. Shifts may cancel each other out.
    """
    grid = target
    applied: List[Shift] = []
    for _ in range(steps):
        if rng.random() < 0.5:
            shift = Shift(Axis.ROW, rng.randrange(target.rows), rng.choice((-1, 1)))
        else:
            shift = Shift(Axis.COLUMN, rng.randrange(target.cols), rng.choice((-1, 1)))
        grid = grid.apply(shift)
        applied.append(shift)
    return grid, applied


def unscramble(grid: Grid, applied: List[Shift]) -> Grid:
    for shift in reversed(applied):
        grid = grid.apply(shift.inverse())
    return grid


def deal_level(config: LevelConfig, seed: Optional[int] = None,
               rng: Optional[random.Random] = None) -> Tuple[Grid, Grid, List[Shift]]:
    """Creates (target, start, shifts) for a level config."""
    validate_config(config)
    rng = rng or random.Random(seed)
    target = random_target(config.rows, config.cols, config.density, rng)
    start, applied = scramble(target, config.scramble_steps, rng)
    return target, start, applied


def tutorial_target(rng: random.Random, row: int = 1, col: int = 3) -> Grid:
    """Deals the 4x5 tutorial board. Row `row` and, once that row has moved, column `col`
    are never uniform, otherwise the scripted shifts would leave the board unchanged."""
    while True:
        grid = random_target(TUTORIAL_ROWS, TUTORIAL_COLS, TUTORIAL_DENSITY, rng)
        moved = grid.shift_row(row, 1)
        if len(set(grid.row(row))) > 1 and len(set(moved.column(col))) > 1:
            return grid
