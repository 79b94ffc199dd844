"""
Move Interpreter - Completed swipe to a board direction.

Screen coordinates: +x is right, +y is down. The dominant axis wins;
swipes shorter than the minimum distance are ignored.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..engine_core.state import Direction, MoveResult

if TYPE_CHECKING:
    from ..session.machine import SessionStateMachine


logger = logging.getLogger(__name__)

DEFAULT_MIN_SWIPE_DISTANCE = 30.0


class MoveInterpreter:
    """Maps gesture deltas to directions and forwards them to the session."""

    def __init__(
        self,
        machine: SessionStateMachine | None = None,
        min_distance: float = DEFAULT_MIN_SWIPE_DISTANCE,
    ):
        self.machine = machine
        self.min_distance = min_distance

    def interpret(self, dx: float, dy: float) -> Direction | None:
        """Resolve a swipe delta, or None if it is too short."""
        if abs(dx) >= abs(dy):
            if abs(dx) < self.min_distance:
                return None
            return Direction.RIGHT if dx > 0 else Direction.LEFT

        if abs(dy) < self.min_distance:
            return None
        return Direction.DOWN if dy > 0 else Direction.UP

    def handle_swipe(self, dx: float, dy: float) -> MoveResult | None:
        """Interpret a swipe and request the move. None if nothing was applied."""
        direction = self.interpret(dx, dy)
        if direction is None:
            logger.debug("Swipe (%.1f, %.1f) below threshold %.1f", dx, dy, self.min_distance)
            return None
        if self.machine is None:
            raise RuntimeError("MoveInterpreter has no state machine to drive")
        return self.machine.request_move(direction)
