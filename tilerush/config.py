"""Game and environment configuration.

Tuning constants for timing and scoring live on ``GameConfig`` so that
tests and hosts can shorten a game or pin the random seed. The board
size is fixed and is not part of the configuration.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os


BOARD_SIZE = 4

DEFAULT_LOG_LEVEL = "WARNING"


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


@dataclass(frozen=True)
class GameConfig:
    """
    Timing, scoring and spawning parameters for one game engine.

    Defaults match the shipped game: a 3 second countdown, a 90 second
    play clock, combos within 2 seconds and 10 points per merged value.
    """
    countdown_seconds: int = 3
    game_duration_seconds: int = 90
    tick_interval: float = 1.0

    # Scoring
    combo_window_seconds: float = 2.0
    base_score_per_merge: int = 10
    combo_multiplier: float = 1.5

    # Spawning
    four_probability: float = 0.1
    initial_tiles: int = 2
    seed: int | None = None

    # Input
    min_swipe_distance: float = 30.0

    def __post_init__(self):
        if self.countdown_seconds < 0:
            raise ValueError("countdown_seconds must be >= 0")
        if self.game_duration_seconds <= 0:
            raise ValueError("game_duration_seconds must be > 0")
        if not 0.0 <= self.four_probability <= 1.0:
            raise ValueError("four_probability must be within [0, 1]")
        if not 0 <= self.initial_tiles <= BOARD_SIZE * BOARD_SIZE:
            raise ValueError("initial_tiles does not fit on the board")

    @classmethod
    def from_env(cls) -> GameConfig:
        """Build a config, letting TILERUSH_* environment variables override defaults."""
        defaults = cls()
        return cls(
            countdown_seconds=_env_int("TILERUSH_COUNTDOWN_SECONDS", defaults.countdown_seconds),
            game_duration_seconds=_env_int("TILERUSH_GAME_DURATION", defaults.game_duration_seconds),
            min_swipe_distance=_env_float("TILERUSH_MIN_SWIPE_DISTANCE", defaults.min_swipe_distance),
            seed=_env_int("TILERUSH_SEED", defaults.seed),
        )


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure root logging for a host process.

    The library itself only creates module loggers; hosts call this once
    at startup. ``TILERUSH_LOG_LEVEL`` is used when no level is given.
    """
    if level is None:
        level = os.getenv("TILERUSH_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
