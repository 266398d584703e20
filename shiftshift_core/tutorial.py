from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Dict, Optional, Tuple

from .drag import DragResult
from .grid import Axis, Grid, Shift
from .phases import GamePhaseMachine
from .timers import Scheduler, Timer

logger = logging.getLogger(__name__)

TUTORIAL_ROW = 1
TUTORIAL_COL = 3
WATCH_SECONDS = 3.0
SCRIPTED_SHIFT_SECONDS = 1.5


class TutorialStep(StrEnum):
    watch = "watch"
    scrambling = "scrambling"
    fix_col_info = "fix_col_info"
    fix_col = "fix_col"
    fix_row_info = "fix_row_info"
    fix_row = "fix_row"
    peek_info = "peek_info"
    finish = "finish"


class ExitOn(StrEnum):
    timer = "timer"  # leaves after `delay` seconds
    script = "script"  # leaves when the entry script has played out
    confirm = "confirm"  # modal; leaves on tutorial_next()
    commit = "commit"  # leaves on the first accepted committed drag


@dataclass(frozen=True)
class AllowedInput:
    """The only drag a step accepts: one axis, one index, one direction (-1 or +1)."""
    axis: Axis
    index: int
    direction: int

    def permits_capture(self, axis: Axis, index: int) -> bool:
        return axis is self.axis and index == self.index

    def accepts(self, result: DragResult) -> bool:
        if not self.permits_capture(result.axis, result.index) or result.shift_count == 0:
            return False
        return (result.shift_count > 0) == (self.direction > 0)


@dataclass(frozen=True)
class Overlay:
    title: str
    text: str
    action: Optional[str] = None


@dataclass(frozen=True)
class ScriptedMove:
    shift: Shift
    duration: float
    pause_after: float


@dataclass(frozen=True)
class StepDescriptor:
    id: TutorialStep
    exit_on: ExitOn
    next_id: Optional[TutorialStep]
    entry_action: Optional[str] = None
    allowed_input: Optional[AllowedInput] = None
    delay: float = 0.0
    skippable: bool = False
    overlay: Optional[Overlay] = None


SCRAMBLE_SCRIPT: Tuple[ScriptedMove, ...] = (
    ScriptedMove(Shift(Axis.ROW, TUTORIAL_ROW, 1), SCRIPTED_SHIFT_SECONDS, 0.5),
    ScriptedMove(Shift(Axis.COLUMN, TUTORIAL_COL, 1), SCRIPTED_SHIFT_SECONDS, 1.0),
)

STEPS: Dict[TutorialStep, StepDescriptor] = {
    d.id: d
    for d in (
        StepDescriptor(
            TutorialStep.watch, ExitOn.timer, TutorialStep.scrambling,
            delay=WATCH_SECONDS, skippable=True,
            overlay=Overlay("Watch carefully...", "See how the shifts change the schedule."),
        ),
        StepDescriptor(
            TutorialStep.scrambling, ExitOn.script, TutorialStep.fix_col_info,
            entry_action="play_scramble_script",
        ),
        StepDescriptor(
            TutorialStep.fix_col_info, ExitOn.confirm, TutorialStep.fix_col, skippable=True,
            overlay=Overlay("Fix the column",
                            f"Column {TUTORIAL_COL + 1} was shifted down. Drag it UP to fix it.",
                            "I'm on it"),
        ),
        StepDescriptor(
            TutorialStep.fix_col, ExitOn.commit, TutorialStep.fix_row_info,
            allowed_input=AllowedInput(Axis.COLUMN, TUTORIAL_COL, -1),
        ),
        StepDescriptor(
            TutorialStep.fix_row_info, ExitOn.confirm, TutorialStep.fix_row, skippable=True,
            overlay=Overlay("Fix the row",
                            f"Row {TUTORIAL_ROW + 1} was shifted right. Drag it LEFT to fix it.",
                            "Got it"),
        ),
        StepDescriptor(
            TutorialStep.fix_row, ExitOn.commit, TutorialStep.peek_info,
            allowed_input=AllowedInput(Axis.ROW, TUTORIAL_ROW, -1),
        ),
        StepDescriptor(
            TutorialStep.peek_info, ExitOn.confirm, TutorialStep.finish,
            entry_action="score_board", skippable=True,
            overlay=Overlay("Need a hint?",
                            "Hold the PEEK button (or Spacebar) to see the goal schedule underneath.",
                            "Got it"),
        ),
        StepDescriptor(
            TutorialStep.finish, ExitOn.confirm, None,
            overlay=Overlay("Excellent work!",
                            "The schedule is back to how it was. Now it's your turn to beat the clock.",
                            "START"),
        ),
    )
}


class TutorialChoreographer:
    """Generic driver for the STEPS table.

    Entering a step cancels the pending tutorial timer, runs the step's entry action and,
    for timed steps, schedules the advance. While a step is active it decides which axis
    may be captured and which committed drags count.
    """

    def __init__(self, machine: GamePhaseMachine, scheduler: Scheduler,
                 on_complete: Optional[Callable[[], None]] = None,
                 steps: Optional[Dict[TutorialStep, StepDescriptor]] = None) -> None:
        self.machine = machine
        self.scheduler = scheduler
        self.on_complete = on_complete
        self.steps = steps or STEPS
        self.step: Optional[TutorialStep] = None
        self.scripted_animation: Optional[Shift] = None
        self._timer: Optional[Timer] = None

    @property
    def active(self) -> bool:
        return self.step is not None

    @property
    def descriptor(self) -> Optional[StepDescriptor]:
        return self.steps[self.step] if self.step is not None else None

    @property
    def overlay(self) -> Optional[Overlay]:
        d = self.descriptor
        return d.overlay if d is not None else None

    @property
    def skippable(self) -> bool:
        d = self.descriptor
        return d is not None and d.skippable

    def start(self, target: Grid, prior_session_score: int = 0) -> None:
        self.machine.start_tutorial_level(target, prior_session_score)
        logger.info("tutorial started")
        self._enter(TutorialStep.watch)

    def confirm(self) -> bool:
        d = self.descriptor
        if d is None or d.exit_on is not ExitOn.confirm:
            return False
        self._advance()
        return True

    def skip(self) -> bool:
        d = self.descriptor
        if d is None or not d.skippable:
            return False
        logger.info("tutorial skipped at %s", d.id.value)
        self._finish()
        return True

    def allows_capture(self, axis: Axis, index: int) -> bool:
        d = self.descriptor
        if d is None:
            return True
        return d.allowed_input is not None and d.allowed_input.permits_capture(axis, index)

    def accepts(self, result: DragResult) -> bool:
        d = self.descriptor
        if d is None:
            return True
        return d.exit_on is ExitOn.commit and d.allowed_input is not None and d.allowed_input.accepts(result)

    def after_commit(self) -> None:
        d = self.descriptor
        if d is not None and d.exit_on is ExitOn.commit:
            self._advance()

    def cancel(self) -> None:
        """Leaves tutorial mode silently (session ended or replaced)."""
        self._cancel_timer()
        self.step = None
        self.scripted_animation = None

    # ---------- driver ----------

    def _enter(self, step: TutorialStep) -> None:
        self._cancel_timer()
        self.step = step
        d = self.steps[step]
        logger.debug("tutorial step %s", step.value)
        if d.entry_action:
            getattr(self, d.entry_action)()
        if d.exit_on is ExitOn.timer:
            self._timer = self.scheduler.call_later(d.delay, self._advance)

    def _advance(self) -> None:
        self._timer = None
        d = self.descriptor
        if d is None:
            return
        if d.next_id is None:
            self._finish()
        else:
            self._enter(d.next_id)

    def _finish(self) -> None:
        self.cancel()
        logger.info("tutorial complete")
        if self.on_complete:
            self.on_complete()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ---------- entry actions ----------

    def play_scramble_script(self) -> None:
        self.machine.begin_tutorial_play()
        self._play_move(0)

    def score_board(self) -> None:
        self.machine.score_tutorial()

    def _play_move(self, i: int) -> None:
        self._timer = None
        if i >= len(SCRAMBLE_SCRIPT):
            self._advance()
            return
        move = SCRAMBLE_SCRIPT[i]
        self.scripted_animation = move.shift
        self._timer = self.scheduler.call_later(move.duration, self._land_move, i)

    def _land_move(self, i: int) -> None:
        move = SCRAMBLE_SCRIPT[i]
        self.machine.apply_scripted_shift(move.shift)
        self.scripted_animation = None
        self._timer = self.scheduler.call_later(move.pause_after, self._play_move, i + 1)
