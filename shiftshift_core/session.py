from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Tuple

from .deal import tutorial_target
from .drag import DragAxisController, DragResult, DragTuning
from .grid import Axis, Coord, Grid, Shift
from .levels import DEFAULT_TUNING, LevelConfig, LevelTuning
from .phases import GamePhase, GamePhaseMachine
from .scoring import LevelScore
from .timers import Scheduler, Timer
from .tutorial import Overlay, TutorialChoreographer, TutorialStep

logger = logging.getLogger(__name__)

SNAP_SETTLE_SECONDS = 0.3


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a renderer needs for one frame."""
    grid: Grid
    target_grid: Grid
    phase: GamePhase
    tutorial_step: Optional[TutorialStep]
    current_level: int
    moves_this_level: int
    seconds_this_level: int
    session_score_total: int
    captured_axis: Optional[Tuple[Axis, int]]
    peeking: bool
    hidden_cells: FrozenSet[Coord]
    drag_offset: float
    level_config: Optional[LevelConfig]
    tutorial_overlay: Optional[Overlay]
    tutorial_skippable: bool
    scripted_animation: Optional[Shift]
    last_level_score: Optional[LevelScore]


class GameSession:
    """One player's run: levels, drag input, peek and the optional tutorial.

    Nothing runs in the background. Callers feed gestures and call `tick()` so due timers
    (memorize countdown, seconds counter, tutorial script, snap settle) fire.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        tuning: LevelTuning = DEFAULT_TUNING,
        drag_tuning: Optional[DragTuning] = None,
        on_level_complete: Optional[Callable[[int], None]] = None,
        on_session_end: Optional[Callable[[int, int], None]] = None,
        on_tutorial_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        self.scheduler = scheduler or Scheduler()
        self.rng = rng or random.Random(seed)
        self.on_tutorial_complete = on_tutorial_complete
        self.drag = DragAxisController(3, 3, drag_tuning, allow_capture=self._allow_capture)
        self.machine = GamePhaseMachine(
            self.scheduler,
            rng=self.rng,
            tuning=tuning,
            drag=self.drag,
            on_level_complete=on_level_complete,
            on_session_end=on_session_end,
        )
        self.tutorial = TutorialChoreographer(self.machine, self.scheduler, on_complete=self._tutorial_done)
        self._peek_held = False
        self._snap_timer: Optional[Timer] = None

    # ---------- lifecycle ----------

    def player_session_start(self, initial_level: int = 1, prior_session_score: int = 0,
                             has_played_tutorial: bool = True, force_tutorial: bool = False) -> None:
        """Starts a new session. First-time players (or a forced replay) get the tutorial."""
        self.dispose()
        if force_tutorial or not has_played_tutorial:
            logger.info("session start: tutorial (prior score %d)", prior_session_score)
            self.tutorial.start(tutorial_target(self.rng), prior_session_score)
        else:
            logger.info("session start: level %d (prior score %d)", initial_level, prior_session_score)
            self.machine.start(initial_level, prior_session_score)

    def dispose(self) -> None:
        """Cancels every pending timer and any in-flight drag."""
        self._cancel_snap()
        self.tutorial.cancel()
        self.machine.cancel_timers()
        self.drag.cancel()
        self._peek_held = False

    def tick(self) -> int:
        """Fires due timers. Returns how many fired."""
        return self.scheduler.run_due()

    @property
    def phase(self) -> GamePhase:
        return self.machine.phase

    @property
    def peeking(self) -> bool:
        return self._peek_held and self.machine.phase is GamePhase.playing

    # ---------- gestures ----------

    def press(self, row: Optional[int] = None, col: Optional[int] = None) -> bool:
        if self.machine.phase is not GamePhase.playing or self.drag.settling:
            return False
        return self.drag.press(row, col)

    def move(self, dx: float, dy: float, vx: float = 0.0, vy: float = 0.0) -> bool:
        return self.drag.move(dx, dy, vx, vy)

    def release(self) -> Optional[float]:
        """Ends the gesture; the snap settles after SNAP_SETTLE_SECONDS or on `settle()`."""
        snap = self.drag.release()
        if snap is not None:
            self._cancel_snap()
            self._snap_timer = self.scheduler.call_later(SNAP_SETTLE_SECONDS, self._settle_from_timer)
        return snap

    def settle(self) -> Optional[DragResult]:
        """Completes the snap now. Returns the drag result, committed or not."""
        self._cancel_snap()
        result = self.drag.settle()
        if result is not None:
            self._commit(result)
        return result

    # ---------- commands ----------

    def set_peek(self, held: bool) -> bool:
        """Holds or releases the target peek. A hold only registers while playing."""
        if held:
            if self.machine.phase is GamePhase.playing:
                self._peek_held = True
            return self.peeking
        if self._peek_held:
            # Letting go of the peek also drops any drag still snapping.
            self._cancel_snap()
            self.drag.cancel()
        self._peek_held = False
        return self.peeking

    def reset_level(self) -> bool:
        if self.tutorial.active:
            return False
        self._cancel_snap()
        self.drag.cancel()
        return self.machine.reset_level()

    def end_session(self) -> bool:
        if self.machine.phase is not GamePhase.playing:
            return False
        self._cancel_snap()
        self.drag.cancel()
        self.tutorial.cancel()
        self._peek_held = False
        return self.machine.end_session()

    def tutorial_next(self) -> bool:
        return self.tutorial.confirm()

    def tutorial_skip(self) -> bool:
        return self.tutorial.skip()

    # ---------- render contract ----------

    def snapshot(self) -> SessionSnapshot:
        m = self.machine
        if m.grid is None or m.target is None:
            raise RuntimeError("session has not been started")
        cap = self.drag.captured
        return SessionSnapshot(
            grid=m.grid,
            target_grid=m.target,
            phase=m.phase,
            tutorial_step=self.tutorial.step,
            current_level=m.current_level,
            moves_this_level=m.moves_this_level,
            seconds_this_level=m.seconds_this_level,
            session_score_total=m.session_score_total,
            captured_axis=self.drag.captured_axis,
            peeking=self.peeking,
            hidden_cells=frozenset(self.drag.hidden_cells()),
            drag_offset=cap.offset if cap is not None else 0.0,
            level_config=m.config,
            tutorial_overlay=self.tutorial.overlay,
            tutorial_skippable=self.tutorial.skippable,
            scripted_animation=self.tutorial.scripted_animation,
            last_level_score=m.last_score,
        )

    # ---------- internals ----------

    def _allow_capture(self, axis: Axis, index: int) -> bool:
        if self.machine.phase is not GamePhase.playing:
            return False
        if self.tutorial.scripted_animation is not None:
            return False
        return self.tutorial.allows_capture(axis, index)

    def _commit(self, result: DragResult) -> bool:
        if result.is_zero:
            return False
        if self.tutorial.active:
            if not self.tutorial.accepts(result):
                logger.debug("tutorial ignored %s %d by %d", result.axis.value, result.index,
                             result.shift_count)
                return False
            committed = self.machine.commit_shift(result.to_shift(), check_win=False)
            if committed:
                self.tutorial.after_commit()
            return committed
        return self.machine.commit_shift(result.to_shift())

    def _settle_from_timer(self) -> None:
        self._snap_timer = None
        self.settle()

    def _cancel_snap(self) -> None:
        if self._snap_timer is not None:
            self._snap_timer.cancel()
            self._snap_timer = None

    def _tutorial_done(self) -> None:
        total = self.machine.session_score_total
        self._cancel_snap()
        self.drag.cancel()
        if self.on_tutorial_complete:
            self.on_tutorial_complete()
        self.machine.start(1, total)
