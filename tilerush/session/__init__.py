"""
Session Module - The timed lifecycle of one game instance.

A session is created once when the host starts and reset for every
game:
- IDLE until the player asks to start
- A short COUNTDOWN before tiles become interactive
- PLAYING against the clock
- GAME_OVER on time expiry or when no move is left

Sessions are EPHEMERAL: nothing is persisted, and only the high score
survives a reset.
"""

from .state import GameOverReason, GameState, LifecycleEvent, PauseReason, Session
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle
from .machine import SessionStateMachine

__all__ = [
    "GameOverReason",
    "GameState",
    "LifecycleEvent",
    "PauseReason",
    "Session",
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    "SessionStateMachine",
]
