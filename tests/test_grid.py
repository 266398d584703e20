import unittest

from game import Axis, Grid, Shift


class TestGrid(unittest.TestCase):
    def _mk_grid(self, rows):
        return Grid.from_rows(rows)

    def test_given_grid_when_accessing_cells_then_indices_and_wraparound_correct(self):
        g = self._mk_grid([
            [1, 0, 0],
            [0, 1, 0],
            [0, 0, 1],
        ])
        self.assertEqual(g.index(1, 2), 5)
        self.assertEqual(g.at(-1, -1), 1)  # wraps to (2,2)
        self.assertEqual(g.at(3, 4), 0)    # wraps to (0,1)
        self.assertEqual(g.row(1), (0, 1, 0))
        self.assertEqual(g.column(2), (0, 0, 1))

    def test_given_negative_row_when_reading_then_bottom_row_used(self):
        g = self._mk_grid([
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [1, 0, 0, 1],
        ])
        self.assertEqual(g.at(-1, 0), 1)
        self.assertEqual(g.at(-1, -1), 1)
        self.assertEqual(g.at(-1, 1), 0)
        self.assertEqual(g.index(2, 3), len(g.cells) - 1)
        self.assertEqual(g.pretty({(2, 0)}).splitlines()[-1], "  . . #")

    def test_given_row_when_shifted_positive_then_cells_move_right_with_wrap(self):
        g = self._mk_grid([
            [1, 1, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ])
        moved = g.shift_row(0, 1)
        self.assertEqual(moved.row(0), (0, 1, 1, 0))
        moved = g.shift_row(0, -1)
        self.assertEqual(moved.row(0), (1, 0, 0, 1))
        # Other rows untouched, original untouched
        self.assertEqual(moved.row(1), (0, 0, 0, 0))
        self.assertEqual(g.row(0), (1, 1, 0, 0))

    def test_given_column_when_shifted_positive_then_cells_move_down_with_wrap(self):
        g = self._mk_grid([
            [0, 1, 0],
            [0, 0, 0],
            [0, 1, 0],
        ])
        down = g.shift_column(1, 1)
        self.assertEqual(down.column(1), (1, 1, 0))
        up = g.shift_column(1, -1)
        self.assertEqual(up.column(1), (0, 1, 1))
        self.assertEqual(down.column(0), (0, 0, 0))

    def test_given_shift_when_applying_inverse_then_grid_restored(self):
        g = self._mk_grid([
            [1, 0, 1, 1],
            [0, 1, 0, 0],
            [1, 1, 0, 1],
            [0, 0, 0, 1],
        ])
        for s in (Shift(Axis.ROW, 2, 3), Shift(Axis.COLUMN, 0, -2), Shift(Axis.COLUMN, 3, 1)):
            self.assertTrue(g.apply(s).apply(s.inverse()).equals(g))

    def test_given_full_turn_when_shifted_then_grid_unchanged(self):
        g = self._mk_grid([
            [1, 0, 0, 1, 0],
            [0, 1, 1, 0, 0],
            [1, 1, 0, 0, 1],
        ])
        self.assertTrue(g.shift_row(1, g.cols).equals(g))
        self.assertTrue(g.shift_column(4, -g.rows).equals(g))
        self.assertEqual(g.axis_length(Axis.ROW), 5)
        self.assertEqual(g.axis_length(Axis.COLUMN), 3)

    def test_given_bad_index_when_shifting_then_index_error(self):
        g = Grid.empty(3, 4)
        with self.assertRaises(IndexError):
            g.shift_row(3, 1)
        with self.assertRaises(IndexError):
            g.shift_column(-1, 1)
        with self.assertRaises(IndexError):
            g.with_cell(0, 4, 1)

    def test_given_mismatched_cells_when_constructing_then_value_error(self):
        with self.assertRaises(ValueError):
            Grid(rows=2, cols=2, cells=(0, 1, 0))
        with self.assertRaises(ValueError):
            Grid.from_rows([[1, 0], [1]])

    def test_given_hidden_cells_when_pretty_then_blanked(self):
        g = self._mk_grid([
            [1, 0],
            [0, 1],
        ])
        self.assertEqual(g.pretty(), "# .\n. #")
        self.assertEqual(g.pretty({(0, 0)}), "  .\n. #")


if __name__ == "__main__":
    unittest.main(verbosity=2)
