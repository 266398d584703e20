from __future__ import annotations

from dataclasses import dataclass

BASE_SCORE = 1000
MOVE_PENALTY = 50
SECOND_PENALTY = 5
TUTORIAL_MIN_MOVES = 2


@dataclass(frozen=True)
class LevelScore:
    """Breakdown of a completed level's score."""
    level: int
    moves: int
    seconds: int
    min_moves: int
    move_penalty: int
    time_penalty: int
    raw_score: int
    level_score: int


def score_level(level: int, moves: int, seconds: int, scramble_steps: int,
                tutorial: bool = False) -> LevelScore:
    """Scores one level.

    Moves beyond the scramble depth cost 50 points each and every second costs 5. The raw
    score is clamped at zero before the level multiplier is applied.
    """
    min_moves = TUTORIAL_MIN_MOVES if tutorial else scramble_steps
    excess = max(0, moves - min_moves)
    move_penalty = excess * MOVE_PENALTY
    time_penalty = seconds * SECOND_PENALTY
    raw = max(0, BASE_SCORE - move_penalty - time_penalty)
    return LevelScore(
        level=level,
        moves=moves,
        seconds=seconds,
        min_moves=min_moves,
        move_penalty=move_penalty,
        time_penalty=time_penalty,
        raw_score=raw,
        level_score=raw * level,
    )


class ScoreCalculator:
    """Accumulates level scores across a session. Tutorial levels are never added."""

    def __init__(self, prior_total: int = 0) -> None:
        self._total = int(prior_total)
        self._max_level = 0

    @property
    def session_total(self) -> int:
        return self._total

    @property
    def max_level(self) -> int:
        return self._max_level

    def record(self, result: LevelScore, tutorial: bool = False) -> int:
        """Adds a level result to the session. Returns the new session total."""
        if tutorial:
            return self._total
        self._total += result.level_score
        self._max_level = max(self._max_level, result.level)
        return self._total

    def session_result(self, current_level: int) -> tuple[int, int]:
        """(session total, max level reached) reported when the session ends."""
        return self._total, max(self._max_level, current_level)
