import random
import unittest

from game import (
    Axis,
    Grid,
    Shift,
    deal_level,
    level_config,
    score_level,
    unscramble,
)


def make_grid(rows):
    return Grid.from_rows(rows)


class TestShiftShiftBasics(unittest.TestCase):
    def test_score_values(self):
        self.assertEqual(score_level(1, 5, 0, 5).level_score, 1000)
        self.assertEqual(score_level(2, 6, 2, 5).level_score, (1000 - 50 - 10) * 2)

    def test_wrap_around_row_shift(self):
        grid = make_grid([
            [1, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ])
        left = grid.apply(Shift(Axis.ROW, 0, -1))
        # The corner cell wraps to the far end of the row
        self.assertEqual(left.row(0), (0, 0, 0, 1))

    def test_wrap_around_column_shift(self):
        grid = make_grid([
            [0, 0],
            [0, 0],
            [0, 1],
        ])
        down = grid.apply(Shift(Axis.COLUMN, 1, 1))
        self.assertEqual(down.column(1), (1, 0, 0))

    def test_row_and_column_shifts_do_not_commute(self):
        grid = make_grid([
            [1, 0, 0],
            [0, 0, 0],
            [0, 0, 0],
        ])
        a = grid.shift_row(0, 1).shift_column(0, 1)
        b = grid.shift_column(0, 1).shift_row(0, 1)
        self.assertFalse(a.equals(b))

    def test_dealt_level_is_solvable_by_inverse_shifts(self):
        rng = random.Random(1)
        for level in (1, 4, 9):
            target, start, shifts = deal_level(level_config(level), rng=rng)
            self.assertEqual(len(shifts), level_config(level).scramble_steps)
            self.assertTrue(unscramble(start, shifts).equals(target))


if __name__ == '__main__':
    unittest.main()
