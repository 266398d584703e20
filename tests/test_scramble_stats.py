import random
import unittest

from game import Axis, Shift
from tools.scramble_stats import level_stats, net_displacement, parse_levels


def _right(index, times):
    return [Shift(Axis.ROW, index, 1)] * times


class TestScrambleStats(unittest.TestCase):
    def test_given_repeated_shifts_on_one_row_when_measured_then_each_step_counts(self):
        self.assertEqual(net_displacement(_right(0, 3), 6, 6), 3)
        self.assertEqual(net_displacement(_right(0, 5), 12, 12), 5)

    def test_given_shifts_past_half_turn_when_measured_then_short_way_round(self):
        # Five right on a 6-wide row is one to the left
        self.assertEqual(net_displacement(_right(2, 5), 6, 6), 1)
        self.assertEqual(net_displacement(_right(2, 6), 6, 6), 0)

    def test_given_opposite_shifts_when_measured_then_they_cancel(self):
        shifts = [Shift(Axis.ROW, 1, 1), Shift(Axis.COLUMN, 1, 1), Shift(Axis.ROW, 1, -1)]
        self.assertEqual(net_displacement(shifts, 4, 5), 1)

    def test_given_level_one_when_sampled_then_cancelled_within_step_count(self):
        stats = level_stats(1, 50, random.Random(3))
        self.assertEqual(stats["steps"], 5)
        self.assertGreaterEqual(stats["avgCancelled"], 0.0)
        self.assertLessEqual(stats["avgCancelled"], 5.0)
        self.assertEqual(parse_levels("2-4"), [2, 3, 4])


if __name__ == "__main__":
    unittest.main(verbosity=2)
