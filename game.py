from __future__ import annotations

# Facade module that re-exports the Shift/Shift core.
# The Flask app and the tests import from here; single-responsibility
# modules live under shiftshift_core/*.

from shiftshift_core.grid import Axis, Cell, Coord, Grid, Shift
from shiftshift_core.levels import (
    DEFAULT_TUNING,
    LevelConfig,
    LevelConfigError,
    LevelTuning,
    level_config,
    validate_config,
)
from shiftshift_core.deal import deal_level, random_target, scramble, tutorial_target, unscramble
from shiftshift_core.drag import DragAxisController, DragResult, DragTuning
from shiftshift_core.timers import ManualClock, Scheduler
from shiftshift_core.scoring import LevelScore, ScoreCalculator, score_level
from shiftshift_core.phases import GamePhase, GamePhaseMachine
from shiftshift_core.tutorial import STEPS, TutorialChoreographer, TutorialStep
from shiftshift_core.session import SNAP_SETTLE_SECONDS, GameSession, SessionSnapshot
from shiftshift_core.db import (
    HighScore,
    PlayerRecord,
    db_load_player,
    db_mark_tutorial_played,
    db_record_score,
    db_top_scores,
    db_update_max_level,
)
from shiftshift_core.cli import configure_logging, main as _cli_main

__all__ = [
    "Axis", "Cell", "Coord", "Grid", "Shift",
    "DEFAULT_TUNING", "LevelConfig", "LevelConfigError", "LevelTuning", "level_config", "validate_config",
    "deal_level", "random_target", "scramble", "tutorial_target", "unscramble",
    "DragAxisController", "DragResult", "DragTuning",
    "ManualClock", "Scheduler",
    "LevelScore", "ScoreCalculator", "score_level",
    "GamePhase", "GamePhaseMachine",
    "STEPS", "TutorialChoreographer", "TutorialStep",
    "SNAP_SETTLE_SECONDS", "GameSession", "SessionSnapshot",
    "HighScore", "PlayerRecord", "db_load_player", "db_mark_tutorial_played", "db_record_score",
    "db_top_scores", "db_update_max_level",
    "configure_logging", "main",
]


def main() -> None:
    _cli_main()


if __name__ == '__main__':
    main()
