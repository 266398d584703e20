import random
import unittest

from game import Axis, GamePhase, GamePhaseMachine, ManualClock, Scheduler, Shift
from shiftshift_core.phases import LEVEL_COMPLETE_SECONDS, MEMORIZE_SECONDS


class TestGamePhaseMachine(unittest.TestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.sched = Scheduler(self.clock)
        self.completed = []
        self.ended = []
        self.m = GamePhaseMachine(
            self.sched,
            rng=random.Random(7),
            on_level_complete=self.completed.append,
            on_session_end=lambda total, level: self.ended.append((total, level)),
        )

    def _advance(self, seconds):
        self.clock.advance(seconds)
        self.sched.run_due()

    def _solve(self):
        for s in reversed(self.m.scramble_shifts):
            if self.m.phase is not GamePhase.playing:
                break
            self.assertTrue(self.m.commit_shift(s.inverse()))

    def test_given_new_session_when_started_then_memorize_with_target_shown(self):
        self.m.start(1, prior_session_score=250)
        self.assertIs(self.m.phase, GamePhase.memorize)
        self.assertTrue(self.m.grid.equals(self.m.target))
        self.assertEqual((self.m.grid.rows, self.m.grid.cols), (4, 4))
        self.assertEqual(self.m.session_score_total, 250)
        self.assertEqual(self.m.moves_this_level, 0)

    def test_given_memorize_when_timer_elapses_then_playing_with_scramble(self):
        self.m.start(1)
        self._advance(MEMORIZE_SECONDS - 0.1)
        self.assertIs(self.m.phase, GamePhase.memorize)
        self._advance(0.2)
        self.assertIs(self.m.phase, GamePhase.playing)
        self.assertEqual(len(self.m.scramble_shifts), self.m.config.scramble_steps)
        self.assertEqual(self.m.seconds_this_level, 0)

    def test_given_playing_when_seconds_pass_then_counter_ticks(self):
        self.m.start(1)
        self._advance(MEMORIZE_SECONDS)
        self._advance(2.5)
        self.assertEqual(self.m.seconds_this_level, 2)
        self._advance(0.5)
        self.assertEqual(self.m.seconds_this_level, 3)

    def test_given_memorize_when_committing_then_rejected(self):
        self.m.start(1)
        before = self.m.grid
        self.assertFalse(self.m.commit_shift(Shift(Axis.ROW, 0, 1)))
        self.assertEqual(self.m.moves_this_level, 0)
        self.assertTrue(self.m.grid.equals(before))

    def test_given_zero_shift_when_committing_then_ignored(self):
        self.m.start(1)
        self._advance(MEMORIZE_SECONDS)
        self.assertFalse(self.m.commit_shift(Shift(Axis.COLUMN, 1, 0)))
        self.assertEqual(self.m.moves_this_level, 0)

    def test_given_solved_grid_when_committed_then_level_complete_scored_and_next_level_follows(self):
        self.m.start(1, prior_session_score=100)
        self._advance(MEMORIZE_SECONDS)
        self._advance(2.0)
        self._solve()
        self.assertIs(self.m.phase, GamePhase.level_complete)
        self.assertTrue(self.m.grid.equals(self.m.target))
        self.assertEqual(len(self.completed), 1)
        self.assertEqual(self.m.last_score.seconds, 2)
        self.assertEqual(self.m.session_score_total, 100 + self.completed[0])
        # Seconds counter stopped
        self._advance(1.0)
        self.assertEqual(self.m.seconds_this_level, 2)
        self._advance(LEVEL_COMPLETE_SECONDS - 1.0)
        self.assertIs(self.m.phase, GamePhase.memorize)
        self.assertEqual(self.m.current_level, 2)
        self.assertEqual(self.m.config.scramble_steps, 7)
        self.assertEqual(self.m.moves_this_level, 0)

    def test_given_playing_when_reset_then_memorize_same_level_and_stale_timers_cancelled(self):
        self.m.start(2, prior_session_score=40)
        self._advance(MEMORIZE_SECONDS)
        self._advance(1.0)
        self.assertEqual(self.m.seconds_this_level, 1)
        self.assertTrue(self.m.reset_level())
        self.assertIs(self.m.phase, GamePhase.memorize)
        self.assertEqual(self.m.current_level, 2)
        self.assertEqual(self.m.session_score_total, 40)
        self.assertEqual((self.m.moves_this_level, self.m.seconds_this_level), (0, 0))
        self._advance(2.0)
        self.assertEqual(self.m.seconds_this_level, 0)
        self.assertIs(self.m.phase, GamePhase.memorize)
        self._advance(1.0)
        self.assertIs(self.m.phase, GamePhase.playing)

    def test_given_memorize_when_reset_then_countdown_restarts(self):
        self.m.start(1)
        self._advance(2.0)
        self.assertTrue(self.m.reset_level())
        self._advance(1.0)  # original countdown would have ended here
        self.assertIs(self.m.phase, GamePhase.memorize)
        self._advance(2.0)
        self.assertIs(self.m.phase, GamePhase.playing)

    def test_given_playing_when_session_ended_then_shift_over_and_result_reported(self):
        self.m.start(3, prior_session_score=500)
        self.assertFalse(self.m.end_session())
        self._advance(MEMORIZE_SECONDS)
        self.assertTrue(self.m.end_session())
        self.assertIs(self.m.phase, GamePhase.shift_over)
        self.assertEqual(self.ended, [(500, 3)])
        self.assertFalse(self.m.reset_level())
        self.assertFalse(self.m.commit_shift(Shift(Axis.ROW, 0, 1)))
        self._advance(10.0)
        self.assertIs(self.m.phase, GamePhase.shift_over)

    def test_given_tutorial_level_when_started_then_no_countdown_and_no_auto_win(self):
        self.assertIsNone(self.m.grid)
        self.m.start(1)
        target = self.m.target
        self.m.start_tutorial_level(target)
        self._advance(MEMORIZE_SECONDS * 3)
        self.assertIs(self.m.phase, GamePhase.memorize)
        self.assertFalse(self.m.reset_level())
        self.m.begin_tutorial_play()
        self.assertIs(self.m.phase, GamePhase.playing)
        self.m.apply_scripted_shift(Shift(Axis.ROW, 1, 1))
        self.assertEqual(self.m.moves_this_level, 0)
        self.m.commit_shift(Shift(Axis.ROW, 1, -1), check_win=False)
        self.assertEqual(self.m.moves_this_level, 1)
        self.assertTrue(self.m.solved)
        self.assertIs(self.m.phase, GamePhase.playing)
        self._advance(5.0)
        self.assertEqual(self.m.seconds_this_level, 0)
        self.assertEqual(self.completed, [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
