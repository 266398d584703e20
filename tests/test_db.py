import os
import tempfile
import unittest

from game import (
    db_load_player,
    db_mark_tutorial_played,
    db_record_score,
    db_top_scores,
    db_update_max_level,
)


class TestDb(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        # Nested directory is created on demand
        self.db = os.path.join(self._tmp.name, "nested", "scores.db")

    def tearDown(self):
        self._tmp.cleanup()

    def test_given_zero_score_when_recording_then_skipped(self):
        self.assertFalse(db_record_score(self.db, "AAA", 0, 3))
        self.assertEqual(db_top_scores(self.db), [])
        self.assertTrue(os.path.isfile(self.db))

    def test_given_many_scores_when_recording_then_only_top_ten_kept_in_order(self):
        for i in range(10):
            self.assertTrue(db_record_score(self.db, f"P{i}", 200 + i * 100, i + 1))
        self.assertFalse(db_record_score(self.db, "LOW", 50, 1))
        self.assertTrue(db_record_score(self.db, "TOP", 5000, 12))
        scores = db_top_scores(self.db)
        self.assertEqual(len(scores), 10)
        self.assertEqual([s.score for s in scores], sorted((s.score for s in scores), reverse=True))
        self.assertEqual((scores[0].name, scores[0].score, scores[0].max_level), ("TOP", 5000, 12))
        self.assertNotIn(200, [s.score for s in scores])
        self.assertTrue(scores[0].achieved_at.endswith("Z"))

    def test_given_unknown_player_when_loaded_then_defaults(self):
        rec = db_load_player(self.db, "NEW")
        self.assertEqual(rec.name, "NEW")
        self.assertFalse(rec.has_played)
        self.assertEqual(rec.max_level, 0)
        self.assertIsNone(rec.best_score)

    def test_given_tutorial_and_levels_when_stored_then_flags_persist_and_level_only_grows(self):
        db_mark_tutorial_played(self.db, "ABC")
        self.assertEqual(db_update_max_level(self.db, "ABC", 4), 4)
        self.assertEqual(db_update_max_level(self.db, "ABC", 2), 4)
        db_record_score(self.db, "ABC", 900, 4)
        db_record_score(self.db, "ABC", 1200, 2)
        rec = db_load_player(self.db, "ABC")
        self.assertTrue(rec.has_played)
        self.assertEqual(rec.max_level, 4)
        self.assertEqual(rec.best_score, 1200)

    def test_given_level_before_tutorial_flag_when_marked_then_level_kept(self):
        db_update_max_level(self.db, "XYZ", 3)
        self.assertFalse(db_load_player(self.db, "XYZ").has_played)
        db_mark_tutorial_played(self.db, "XYZ")
        rec = db_load_player(self.db, "XYZ")
        self.assertTrue(rec.has_played)
        self.assertEqual(rec.max_level, 3)


if __name__ == "__main__":
    unittest.main(verbosity=2)
