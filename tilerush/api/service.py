"""
Game Service - Host-facing facade over the engine.

The service:
1. Wires the scheduler, state machine and move interpreter together
2. Accepts plain strings / numbers from the UI shell
3. Returns a GameSnapshot after every call
4. Returns ErrorResponse for malformed input instead of raising

This layer is framework-agnostic: any UI shell can call it in-process.
"""

from __future__ import annotations
from typing import Callable, Union
import logging
import math

from .schemas import (
    BoardSnapshot,
    ErrorCode,
    ErrorResponse,
    GameSnapshot,
    GameStatus,
    MergeInfo,
    SessionSnapshot,
    TileInfo,
    TileMoveInfo,
)
from ..config import GameConfig
from ..engine_core.grid import has_available_moves
from ..engine_core.state import Direction
from ..input import MoveInterpreter
from ..session import LifecycleEvent, ManualScheduler, Scheduler, SessionStateMachine


logger = logging.getLogger(__name__)

ServiceResponse = Union[GameSnapshot, ErrorResponse]
SnapshotListener = Callable[[GameSnapshot], None]


def build_snapshot(machine: SessionStateMachine) -> GameSnapshot:
    """Freeze the machine's current board and session into a snapshot."""
    board = machine.board
    session = machine.session

    tiles = [
        TileInfo(tile_id=t.tile_id, value=t.value, row=r, col=c, just_merged=t.just_merged)
        for (r, c), t in board.tiles()
    ]

    last_merges = []
    last_moves = []
    if machine.last_move is not None:
        last_merges = [
            MergeInfo(
                tile_id=m.tile_id,
                absorbed_id=m.absorbed_id,
                source_value=m.source_value,
                result_value=m.result_value,
                row=m.position[0],
                col=m.position[1],
            )
            for m in machine.last_move.merges
        ]
        last_moves = [
            TileMoveInfo(
                tile_id=mv.tile_id,
                from_row=mv.from_position[0],
                from_col=mv.from_position[1],
                to_row=mv.to_position[0],
                to_col=mv.to_position[1],
                merged_into=mv.merged_into,
            )
            for mv in machine.last_move.moves
        ]

    spawned = None
    if machine.last_spawn is not None:
        position = board.position_of(machine.last_spawn.tile_id)
        if position is not None:
            spawned = TileInfo(
                tile_id=machine.last_spawn.tile_id,
                value=machine.last_spawn.value,
                row=position[0],
                col=position[1],
            )

    return GameSnapshot(
        board=BoardSnapshot(size=board.size, values=board.values(), tiles=tiles),
        session=SessionSnapshot(
            status=GameStatus(session.state.value),
            score=session.score,
            high_score=session.high_score,
            time_left=session.time_left,
            countdown=session.countdown,
            merge_streak=session.merge_streak,
            combo_multiplier=machine.scoring.multiplier ** session.merge_streak,
            last_award=session.last_award,
            paused=session.is_paused,
            game_over_reason=session.game_over_reason.value if session.game_over_reason else None,
            moves_made=session.moves_made,
            best_tile=session.best_tile,
        ),
        last_merges=last_merges,
        last_moves=last_moves,
        spawned=spawned,
        can_move=session.is_playing and not session.is_paused and has_available_moves(board),
    )


class GameService:
    """
    Main service for a UI shell.

    Usage:
        service = GameService(scheduler=AsyncioScheduler())
        service.subscribe(render)

        service.start_countdown()
        service.swipe(dx=-120, dy=4)
        service.lifecycle_event("backgrounded")
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        config: GameConfig | None = None,
        machine: SessionStateMachine | None = None,
    ):
        if machine is not None:
            # A supplied machine brings its own clock and rules
            self.machine = machine
            self.config = machine.config
            self.scheduler = machine.scheduler
        else:
            self.config = config or GameConfig()
            self.scheduler = scheduler or ManualScheduler()
            self.machine = SessionStateMachine(self.scheduler, config=self.config)
        self.interpreter = MoveInterpreter(
            self.machine, min_distance=self.config.min_swipe_distance,
        )
        self._listeners: list[SnapshotListener] = []
        self.machine.add_listener(self._on_machine_change)

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> GameSnapshot:
        return build_snapshot(self.machine)

    def subscribe(self, listener: SnapshotListener):
        """Receive a snapshot after every state-changing operation."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _on_machine_change(self, machine: SessionStateMachine):
        if not self._listeners:
            return
        snapshot = build_snapshot(machine)
        for listener in list(self._listeners):
            listener(snapshot)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start_countdown(self) -> GameSnapshot:
        self.machine.start_countdown()
        return self.snapshot()

    def reset_game(self) -> GameSnapshot:
        self.machine.reset_game()
        return self.snapshot()

    def pause(self) -> GameSnapshot:
        self.machine.pause()
        return self.snapshot()

    def resume(self) -> GameSnapshot:
        self.machine.resume()
        return self.snapshot()

    def tick(self, delta_seconds: int = 1) -> GameSnapshot:
        """
        Deliver elapsed time from the host.

        With a ManualScheduler the virtual clock is advanced, so its timers
        fire and merge timestamps see the same time as the play clock.
        """
        if isinstance(self.scheduler, ManualScheduler):
            self.scheduler.advance(delta_seconds)
        else:
            self.machine.tick(delta_seconds)
        return self.snapshot()

    def lifecycle_event(self, kind: str) -> ServiceResponse:
        try:
            event = LifecycleEvent(kind.lower() if isinstance(kind, str) else kind)
        except ValueError:
            logger.debug("Rejected lifecycle event %r", kind)
            return ErrorResponse(
                error=f"Unknown lifecycle event: {kind!r}",
                error_code=ErrorCode.INVALID_LIFECYCLE_EVENT,
                details={"valid": [e.value for e in LifecycleEvent]},
            )
        self.machine.lifecycle_event(event)
        return self.snapshot()

    # =========================================================================
    # Moves
    # =========================================================================

    def request_move(self, direction: str) -> ServiceResponse:
        """Apply a direction given as "up", "down", "left" or "right"."""
        try:
            resolved = Direction(direction.lower() if isinstance(direction, str) else direction)
        except ValueError:
            logger.debug("Rejected direction %r", direction)
            return ErrorResponse(
                error=f"Unknown direction: {direction!r}",
                error_code=ErrorCode.INVALID_DIRECTION,
                details={"valid": [d.value for d in Direction]},
            )
        self.machine.request_move(resolved)
        return self.snapshot()

    def swipe(self, dx: float, dy: float) -> ServiceResponse:
        """Apply a raw swipe delta in screen coordinates."""
        if not (math.isfinite(dx) and math.isfinite(dy)):
            logger.debug("Rejected swipe (%r, %r)", dx, dy)
            return ErrorResponse(
                error=f"Swipe delta must be finite, got ({dx}, {dy})",
                error_code=ErrorCode.INVALID_SWIPE,
            )
        self.interpreter.handle_swipe(dx, dy)
        return self.snapshot()
