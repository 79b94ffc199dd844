"""
Session State - The time-bounded game instance and its score.

A Session is created once per state machine and reset at the start of
every game. Only `high_score` carries over between games.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum


class GameState(Enum):
    """Lifecycle states of a session."""
    IDLE = "idle"
    COUNTDOWN = "countdown"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class GameOverReason(Enum):
    """Why a game ended."""
    TIME_EXPIRED = "time_expired"
    NO_MOVES = "no_moves"


class PauseReason(Enum):
    """Why the play clock is suspended."""
    USER = "user"  # e.g. a side panel is open
    BACKGROUND = "background"  # app left the foreground


class LifecycleEvent(Enum):
    """Host application lifecycle notifications."""
    BACKGROUNDED = "backgrounded"
    FOREGROUNDED = "foregrounded"


@dataclass
class Session:
    """
    Score and timer state for one game.

    `time_left` is only meaningful while PLAYING and `countdown` only
    while in COUNTDOWN.
    """
    state: GameState = GameState.IDLE
    score: int = 0
    high_score: int = 0
    time_left: int = 0
    countdown: int = 0

    # Combo tracking
    merge_streak: int = 0
    last_merge_at: float | None = None
    last_award: int = 0

    # Playing sub-state
    pause_reasons: frozenset[PauseReason] = field(default_factory=frozenset)

    # Game summary
    game_over_reason: GameOverReason | None = None
    moves_made: int = 0
    best_tile: int = 0

    @property
    def is_paused(self) -> bool:
        return bool(self.pause_reasons)

    @property
    def is_playing(self) -> bool:
        return self.state == GameState.PLAYING

    def fresh(self, **kwargs) -> Session:
        """Return a zeroed session that keeps only the high score."""
        return replace(Session(high_score=self.high_score), **kwargs)
