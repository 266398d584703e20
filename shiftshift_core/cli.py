from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Optional, Tuple

from .db import db_load_player, db_mark_tutorial_played, db_record_score, db_update_max_level
from .drag import DragResult
from .grid import Axis
from .phases import GamePhase
from .session import GameSession, SessionSnapshot

logger = logging.getLogger(__name__)

HELP = """Commands:
  r <row> <n>   shift a row right by n (negative = left)
  c <col> <n>   shift a column down by n (negative = up)
  p             peek at the goal
  reset         new board, same level
  q             end the shift
Tutorial overlays: enter to continue, s to skip."""


def configure_logging(debug: Optional[bool] = None) -> None:
    """Configure application-wide logging with a standard format."""
    if debug is None:
        debug = os.getenv("SHIFTSHIFT_DEBUG", "0").lower() in ("1", "true", "yes", "on")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_command(text: str) -> Tuple[str, Optional[Axis], int, int]:
    """Parses one line of input into (verb, axis, index, amount). Raises ValueError."""
    parts = text.strip().split()
    if not parts:
        return ("next", None, 0, 0)
    verb = parts[0].lower()
    if verb in ("r", "c"):
        if len(parts) != 3:
            raise ValueError("expected: r|c <index> <amount>")
        axis = Axis.ROW if verb == "r" else Axis.COLUMN
        return ("shift", axis, int(parts[1]), int(parts[2]))
    if verb in ("p", "peek"):
        return ("peek", None, 0, 0)
    if verb == "reset":
        return ("reset", None, 0, 0)
    if verb in ("q", "quit", "end"):
        return ("end", None, 0, 0)
    if verb in ("s", "skip"):
        return ("skip", None, 0, 0)
    if verb in ("h", "help", "?"):
        return ("help", None, 0, 0)
    raise ValueError(f"unknown command: {verb}")


def drag_shift(session: GameSession, axis: Axis, index: int, amount: int) -> Optional[DragResult]:
    """Plays a whole-cell drag on a row or column handle and settles it immediately."""
    cell = session.drag.tuning.cell_size
    if axis is Axis.ROW:
        if not session.press(row=index):
            return None
        session.move(amount * cell, 0.0)
    else:
        if not session.press(col=index):
            return None
        session.move(0.0, amount * cell)
    session.release()
    return session.settle()


def render(snap: SessionSnapshot, peek: bool = False) -> str:
    grid = snap.target_grid if peek else snap.grid
    header = (f"Level {snap.current_level} | {snap.phase.value} | moves {snap.moves_this_level} "
              f"| {snap.seconds_this_level}s | total {snap.session_score_total}")
    return header + "\n" + grid.pretty()


def overlay_needs_input(snap: SessionSnapshot) -> bool:
    """True when the tutorial overlay waits on the player rather than on a timer."""
    ov = snap.tutorial_overlay
    return ov is not None and ov.action is not None


def _wait_for_timers(session: GameSession) -> None:
    due = session.scheduler.next_due()
    if due is not None:
        time.sleep(max(0.0, due - session.scheduler.now()))
    session.tick()


def main() -> None:
    parser = argparse.ArgumentParser(description='Shift/Shift memory puzzle in the terminal')
    parser.add_argument('--level', type=int, default=1, help='Starting level')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for boards')
    parser.add_argument('--db', default=None, help='SQLite DB file path (default: $SHIFTSHIFT_DB)')
    parser.add_argument('--name', default='AAA', help='Player initials for the high-score table')
    parser.add_argument('--tutorial', action='store_true', help='Replay the tutorial')
    args = parser.parse_args()
    configure_logging()

    player = db_load_player(args.db, args.name)
    result: dict = {}

    def on_level_complete(points: int) -> None:
        print(f"\nLevel complete! +{points}")

    def on_session_end(total: int, max_level: int) -> None:
        result["total"] = total
        result["max_level"] = max_level

    def on_tutorial_complete() -> None:
        db_mark_tutorial_played(args.db, args.name)
        print("\nTutorial done. Your shift starts now.")

    session = GameSession(seed=args.seed, on_level_complete=on_level_complete,
                          on_session_end=on_session_end, on_tutorial_complete=on_tutorial_complete)
    session.player_session_start(initial_level=args.level, prior_session_score=0,
                                 has_played_tutorial=player.has_played, force_tutorial=args.tutorial)
    print(HELP)
    last_phase: Optional[GamePhase] = None
    shown_overlay = None
    try:
        while session.phase is not GamePhase.shift_over:
            session.tick()
            snap = session.snapshot()
            if snap.tutorial_overlay is not None:
                ov = snap.tutorial_overlay
                if ov != shown_overlay or overlay_needs_input(snap):
                    print(f"\n== {ov.title} ==\n{ov.text}")
                    print(render(snap))
                    shown_overlay = ov
                if not overlay_needs_input(snap):
                    _wait_for_timers(session)
                    continue
                answer = input(f"[{ov.action}] ").strip().lower()
                if answer in ("s", "skip"):
                    session.tutorial_skip()
                else:
                    session.tutorial_next()
                continue
            if snap.phase is not GamePhase.playing or snap.scripted_animation is not None:
                if snap.phase is not last_phase:
                    print("\n" + render(snap))
                    last_phase = snap.phase
                _wait_for_timers(session)
                continue
            last_phase = snap.phase
            print("\n" + render(snap))
            try:
                verb, axis, index, amount = parse_command(input("> "))
            except ValueError as e:
                print(e)
                continue
            if verb == "shift" and axis is not None:
                try:
                    drag_shift(session, axis, index, amount)
                except IndexError as e:
                    print(e)
            elif verb == "peek":
                session.set_peek(True)
                print(render(session.snapshot(), peek=True))
                input("(release) ")
                session.set_peek(False)
            elif verb == "reset":
                session.reset_level()
            elif verb == "end":
                session.end_session()
            elif verb == "help":
                print(HELP)
    except (KeyboardInterrupt, EOFError):
        session.end_session()
    finally:
        session.dispose()

    total = result.get("total", 0)
    max_level = result.get("max_level", session.machine.current_level)
    print(f"\nShift over. Score {total}, reached level {max_level}.")
    db_update_max_level(args.db, args.name, max_level)
    if db_record_score(args.db, args.name, total, max_level):
        print("New high score entry!")
