from __future__ import annotations

from dataclasses import dataclass

MIN_BOARD_SIZE = 3


class LevelConfigError(ValueError):
    """Raised when a level number or tuning produces an unplayable board."""


@dataclass(frozen=True)
class LevelTuning:
    """Growth curve constants. Defaults give a 4x4 board with 5 scramble steps at level 1."""
    base_size: int = 4
    max_size: int = 7
    base_steps: int = 5
    steps_growth: int = 2
    base_density: float = 0.35
    density_growth: float = 0.03
    max_density: float = 0.6


DEFAULT_TUNING = LevelTuning()


@dataclass(frozen=True)
class LevelConfig:
    rows: int
    cols: int
    scramble_steps: int
    density: float


def level_config(level: int, tuning: LevelTuning = DEFAULT_TUNING) -> LevelConfig:
    """Board size, scramble depth and fill density for a level (1-based)."""
    if level < 1:
        raise LevelConfigError(f"level must be >= 1, got {level}")
    size = min(tuning.max_size, tuning.base_size + (level - 1) // 3)
    steps = tuning.base_steps + (level - 1) * tuning.steps_growth
    density = min(tuning.max_density, tuning.base_density + level * tuning.density_growth)
    config = LevelConfig(rows=size, cols=size, scramble_steps=steps, density=density)
    validate_config(config)
    return config


def validate_config(config: LevelConfig) -> None:
    if config.rows < MIN_BOARD_SIZE or config.cols < MIN_BOARD_SIZE:
        raise LevelConfigError(
            f"board must be at least {MIN_BOARD_SIZE}x{MIN_BOARD_SIZE}, got {config.rows}x{config.cols}"
        )
    if config.scramble_steps < 0:
        raise LevelConfigError(f"scramble steps must be >= 0, got {config.scramble_steps}")
    if not 0.0 <= config.density <= 1.0:
        raise LevelConfigError(f"density must be within [0, 1], got {config.density}")
