from __future__ import annotations

import logging
import random
from enum import StrEnum
from typing import Callable, Optional

from statemachine import State, StateMachine

from .deal import random_target, scramble
from .drag import DragAxisController
from .grid import Grid, Shift
from .levels import DEFAULT_TUNING, LevelConfig, LevelTuning, level_config
from .scoring import LevelScore, ScoreCalculator, score_level
from .timers import Scheduler, Timer

logger = logging.getLogger(__name__)

MEMORIZE_SECONDS = 3.0
LEVEL_COMPLETE_SECONDS = 3.0
SECOND_TICK = 1.0


class GamePhase(StrEnum):
    memorize = "memorize"
    playing = "playing"
    level_complete = "level_complete"
    shift_over = "shift_over"


class PhaseFSM(StateMachine):
    """Legal phase transitions. Side effects live in GamePhaseMachine; the FSM only guards."""

    memorize = State(GamePhase.memorize.value, value=GamePhase.memorize.value, initial=True)
    playing = State(GamePhase.playing.value, value=GamePhase.playing.value)
    level_complete = State(GamePhase.level_complete.value, value=GamePhase.level_complete.value)
    shift_over = State(GamePhase.shift_over.value, value=GamePhase.shift_over.value, final=True)

    start_play = memorize.to(playing)
    complete_level = playing.to(level_complete)
    next_level = level_complete.to(memorize)
    reset_level = memorize.to(memorize) | playing.to(memorize)
    end_session = playing.to(shift_over)

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.debug("phase %s -> %s (%s)", source.id, target.id, event)


LevelCompleteCallback = Callable[[int], None]
SessionEndCallback = Callable[[int, int], None]


class GamePhaseMachine:
    """Owns the level content, the session counters and the phase timers.

    memorize -(3s)-> playing -(solved)-> level_complete -(3s)-> memorize (next level)
    playing -(end_session)-> shift_over. Every transition cancels the pending phase timer
    before scheduling its own, so a timer can never act on a level that was replaced.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        tuning: LevelTuning = DEFAULT_TUNING,
        drag: Optional[DragAxisController] = None,
        on_level_complete: Optional[LevelCompleteCallback] = None,
        on_session_end: Optional[SessionEndCallback] = None,
    ) -> None:
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.tuning = tuning
        self.drag = drag
        self.on_level_complete = on_level_complete
        self.on_session_end = on_session_end

        self._fsm = PhaseFSM()
        self.scores = ScoreCalculator()
        self.current_level = 1
        self.moves_this_level = 0
        self.seconds_this_level = 0
        self.tutorial = False
        self.config: Optional[LevelConfig] = None
        self.target: Optional[Grid] = None
        self.grid: Optional[Grid] = None
        self.scramble_shifts: list[Shift] = []
        self.last_score: Optional[LevelScore] = None
        self._phase_timer: Optional[Timer] = None
        self._ticker: Optional[Timer] = None

    @property
    def phase(self) -> GamePhase:
        return GamePhase(self._fsm.current_state.value)

    @property
    def session_score_total(self) -> int:
        return self.scores.session_total

    @property
    def solved(self) -> bool:
        return self.grid is not None and self.target is not None and self.grid.equals(self.target)

    # ---------- session lifecycle ----------

    def start(self, level: int = 1, prior_session_score: int = 0) -> None:
        """Begins a leveled session at `level` in the memorize phase."""
        self.cancel_timers()
        self._fsm = PhaseFSM()
        self.scores = ScoreCalculator(prior_session_score)
        self.tutorial = False
        self.current_level = level
        self.last_score = None
        self._prepare_level()

    def start_tutorial_level(self, target: Grid, prior_session_score: int = 0) -> None:
        """Shows `target` solved in the memorize phase with no timer; the tutorial drives the rest."""
        self.cancel_timers()
        self._fsm = PhaseFSM()
        self.scores = ScoreCalculator(prior_session_score)
        self.tutorial = True
        self.current_level = 1
        self.config = None
        self.target = target
        self.grid = target
        self.scramble_shifts = []
        self.moves_this_level = 0
        self.seconds_this_level = 0
        self.last_score = None
        self._reset_drag()

    def begin_tutorial_play(self) -> None:
        if self.phase is GamePhase.memorize:
            self._fsm.send("start_play")

    def reset_level(self) -> bool:
        """Regenerates the current level and returns to memorize. Level and total are kept."""
        if self.tutorial or self.phase not in (GamePhase.memorize, GamePhase.playing):
            return False
        self._fsm.send("reset_level")
        logger.info("level %d reset", self.current_level)
        self._prepare_level()
        return True

    def end_session(self) -> bool:
        if self.phase is not GamePhase.playing:
            return False
        self.cancel_timers()
        self._reset_drag()
        self._fsm.send("end_session")
        total, max_level = self.scores.session_result(self.current_level)
        logger.info("session over: total=%d max_level=%d", total, max_level)
        if self.on_session_end:
            self.on_session_end(total, max_level)
        return True

    def cancel_timers(self) -> None:
        for timer in (self._phase_timer, self._ticker):
            if timer is not None:
                timer.cancel()
        self._phase_timer = None
        self._ticker = None

    # ---------- moves ----------

    def apply_scripted_shift(self, shift: Shift) -> None:
        """Mutates the grid without counting a move (tutorial playback)."""
        assert self.grid is not None
        self.grid = self.grid.apply(shift)

    def commit_shift(self, shift: Shift, check_win: bool = True) -> bool:
        """Applies a committed drag. Returns False when the phase does not accept moves."""
        if self.phase is not GamePhase.playing or shift.amount == 0:
            return False
        assert self.grid is not None
        self.grid = self.grid.apply(shift)
        self.moves_this_level += 1
        logger.debug("commit %s %d by %d (moves=%d)", shift.axis.value, shift.index,
                     shift.amount, self.moves_this_level)
        if check_win and not self.tutorial and self.solved:
            self._complete_level()
        return True

    def score_tutorial(self) -> LevelScore:
        """Scores the tutorial board for display. Never added to the session total."""
        self.last_score = score_level(self.current_level, self.moves_this_level,
                                      self.seconds_this_level, 0, tutorial=True)
        self.scores.record(self.last_score, tutorial=True)
        return self.last_score

    # ---------- transitions ----------

    def _prepare_level(self) -> None:
        self.cancel_timers()
        self.config = level_config(self.current_level, self.tuning)
        self.target = random_target(self.config.rows, self.config.cols, self.config.density, self.rng)
        self.grid = self.target
        self.scramble_shifts = []
        self.moves_this_level = 0
        self.seconds_this_level = 0
        self._reset_drag()
        logger.debug("level %d ready: %dx%d steps=%d", self.current_level, self.config.rows,
                     self.config.cols, self.config.scramble_steps)
        self._phase_timer = self.scheduler.call_later(MEMORIZE_SECONDS, self._begin_play)

    def _begin_play(self) -> None:
        self._phase_timer = None
        assert self.target is not None and self.config is not None
        self._fsm.send("start_play")
        self.grid, self.scramble_shifts = scramble(self.target, self.config.scramble_steps, self.rng)
        self.moves_this_level = 0
        self.seconds_this_level = 0
        self._ticker = self.scheduler.call_later(SECOND_TICK, self._tick_second)

    def _tick_second(self) -> None:
        if self.phase is not GamePhase.playing:
            self._ticker = None
            return
        self.seconds_this_level += 1
        self._ticker = self.scheduler.call_later(SECOND_TICK, self._tick_second)

    def _complete_level(self) -> None:
        self.cancel_timers()
        self._reset_drag()
        self._fsm.send("complete_level")
        assert self.config is not None
        self.last_score = score_level(self.current_level, self.moves_this_level,
                                      self.seconds_this_level, self.config.scramble_steps)
        self.scores.record(self.last_score)
        logger.info("level %d complete: %d points (%d moves, %ds)", self.current_level,
                    self.last_score.level_score, self.moves_this_level, self.seconds_this_level)
        if self.on_level_complete:
            self.on_level_complete(self.last_score.level_score)
        self._phase_timer = self.scheduler.call_later(LEVEL_COMPLETE_SECONDS, self._next_level)

    def _next_level(self) -> None:
        self._phase_timer = None
        self._fsm.send("next_level")
        self.current_level += 1
        self._prepare_level()

    def _reset_drag(self) -> None:
        if self.drag is None or self.grid is None:
            return
        if (self.drag.rows, self.drag.cols) != (self.grid.rows, self.grid.cols):
            self.drag.resize(self.grid.rows, self.grid.cols)
        else:
            self.drag.reset_axes()
