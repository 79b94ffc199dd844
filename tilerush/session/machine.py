"""
Session State Machine - The game's temporal lifecycle.

    IDLE --start_countdown--> COUNTDOWN --(reaches 0)--> PLAYING
    PLAYING --(time expired | no moves)--> GAME_OVER
    GAME_OVER --start_countdown--> COUNTDOWN
    any --reset_game--> IDLE

COUNTDOWN --backgrounded--> IDLE discards the partial countdown.
Pause is a sub-state of PLAYING: the play clock stops, nothing else
changes. The part of a second played before a pause counts toward the
first tick after resuming.

Timers:
- At most one timer (countdown or play clock) is active at a time
- The previous handle is always cancelled before a new one is scheduled

Move resolution order (load-bearing): board update -> scoring ->
spawn -> game-over check. Listeners see only the settled result.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable
import logging

from ..config import GameConfig
from ..engine_core.grid import apply_move, has_available_moves
from ..engine_core.scoring import ScoringEngine
from ..engine_core.state import Board, Direction, MoveResult, Tile
from ..engine_core.tiles import TileFactory
from ..errors import BoardInvariantError
from .scheduler import Scheduler, TimerHandle
from .state import GameOverReason, GameState, LifecycleEvent, PauseReason, Session


logger = logging.getLogger(__name__)

Listener = Callable[["SessionStateMachine"], None]


class SessionStateMachine:
    """
    Owns the board, the session and the timers of one game instance.

    Usage:
        machine = SessionStateMachine(ManualScheduler())
        machine.add_listener(render)

        machine.start_countdown()
        ...  # scheduler delivers ticks
        machine.request_move(Direction.LEFT)

    Out-of-state input (moves outside PLAYING, a second start_countdown,
    ticks with no running timer) is ignored, never raised.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: GameConfig | None = None,
        factory: TileFactory | None = None,
        scoring: ScoringEngine | None = None,
    ):
        self.config = config or GameConfig()
        self.scheduler = scheduler
        self.factory = factory or TileFactory(
            seed=self.config.seed,
            four_probability=self.config.four_probability,
        )
        self.scoring = scoring or ScoringEngine(
            base_score=self.config.base_score_per_merge,
            multiplier=self.config.combo_multiplier,
            combo_window=self.config.combo_window_seconds,
        )

        self.session = Session()
        self.board = Board.empty()

        # Events of the last board-changing move, for the presentation layer
        self.last_move: MoveResult | None = None
        self.last_spawn: Tile | None = None

        self._timer: TimerHandle | None = None
        # Start of the current tick interval, and the part of it already
        # played when the clock was paused
        self._interval_started = 0.0
        self._carried = 0.0
        self._listeners: list[Listener] = []

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def state(self) -> GameState:
        return self.session.state

    @property
    def has_active_timer(self) -> bool:
        return self._timer is not None and self._timer.active

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # =========================================================================
    # Timers
    # =========================================================================

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _start_timer(self, carried: float = 0.0):
        self._cancel_timer()
        interval = self.config.tick_interval
        carried = min(max(carried, 0.0), interval)
        self._interval_started = self.scheduler.now() - carried
        self._timer = self.scheduler.schedule_repeating(
            interval, self._on_timer, delay=interval - carried,
        )

    def _on_timer(self):
        self._interval_started = self.scheduler.now()
        self.tick(1)

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_countdown(self) -> bool:
        """Begin the pre-game countdown from IDLE or GAME_OVER."""
        if self.state in (GameState.COUNTDOWN, GameState.PLAYING):
            logger.debug("start_countdown ignored in state %s", self.state.value)
            return False

        self.session = replace(
            self.session,
            state=GameState.COUNTDOWN,
            countdown=self.config.countdown_seconds,
        )
        logger.info("Countdown started (%ds)", self.config.countdown_seconds)

        if self.session.countdown <= 0:
            self.start_game()
            return True

        self._start_timer()
        self._notify()
        return True

    def start_game(self) -> bool:
        """Enter PLAYING with a fresh board. Only valid once the countdown ran out."""
        if self.state != GameState.COUNTDOWN:
            logger.debug("start_game ignored in state %s", self.state.value)
            return False

        self._cancel_timer()
        self.board = self.factory.populate(Board.empty(), self.config.initial_tiles)
        self.session = self.session.fresh(
            state=GameState.PLAYING,
            time_left=self.config.game_duration_seconds,
            best_tile=self.board.max_value,
        )
        self.last_move = None
        self.last_spawn = None
        logger.info("Game started: %ds on the clock", self.session.time_left)

        self._start_timer()
        self._notify()
        return True

    def end_game(self, reason: GameOverReason) -> bool:
        """Finish the current game and record the high score."""
        if self.state != GameState.PLAYING:
            logger.debug("end_game ignored in state %s", self.state.value)
            return False

        self._cancel_timer()
        high_score = max(self.session.high_score, self.session.score)
        self.session = replace(
            self.session,
            state=GameState.GAME_OVER,
            high_score=high_score,
            game_over_reason=reason,
            pause_reasons=frozenset(),
        )
        logger.info(
            "Game over (%s): score=%d high_score=%d",
            reason.value, self.session.score, high_score,
        )
        self._notify()
        return True

    def reset_game(self):
        """Return to IDLE from any state, keeping only the high score."""
        self._cancel_timer()
        self.board = Board.empty()
        self.session = self.session.fresh()
        self.last_move = None
        self.last_spawn = None
        logger.info("Game reset")
        self._notify()

    # =========================================================================
    # Inbound events
    # =========================================================================

    def tick(self, delta_seconds: int = 1) -> bool:
        """
        Advance the running clock by `delta_seconds`.

        Returns False when no clock is running (idle, game over, paused).
        """
        if self.state == GameState.COUNTDOWN:
            remaining = max(0, self.session.countdown - delta_seconds)
            self.session = replace(self.session, countdown=remaining)
            if remaining == 0:
                self.start_game()
            else:
                self._notify()
            return True

        if self.state == GameState.PLAYING and not self.session.is_paused:
            remaining = max(0, self.session.time_left - delta_seconds)
            self.session = replace(self.session, time_left=remaining)
            if remaining == 0:
                self.end_game(GameOverReason.TIME_EXPIRED)
            else:
                self._notify()
            return True

        logger.debug("tick ignored in state %s", self.state.value)
        return False

    def request_move(self, direction: Direction | str) -> MoveResult | None:
        """
        Resolve one swipe.

        Returns None when the move is not accepted (not PLAYING, or paused).
        A MoveResult with changed=False means the board did not move: no
        score, no spawn, no streak update.
        """
        if self.state != GameState.PLAYING or self.session.is_paused:
            logger.debug("Move ignored in state %s (paused=%s)", self.state.value, self.session.is_paused)
            return None

        try:
            direction = Direction(direction)
        except ValueError:
            logger.debug("Move ignored: unknown direction %r", direction)
            return None

        try:
            self.board.validate()
        except BoardInvariantError as e:
            logger.warning("Move ignored: %s", e)
            return None

        result = apply_move(self.board, direction)
        if not result.changed:
            return result
        logger.debug(
            "Move %s: %d merge(s) worth %d",
            direction.value, len(result.merges), result.merged_value,
        )

        # 1. Board
        self.board = result.board
        self.last_move = result

        # 2. Scoring
        session = self.scoring.register_merges(result.merges, self.scheduler.now(), self.session)
        if not result.merges:
            session = replace(session, last_award=0)

        # 3. Spawn
        self.board, self.last_spawn = self.factory.spawn(self.board)

        self.session = replace(
            session,
            moves_made=session.moves_made + 1,
            best_tile=max(session.best_tile, self.board.max_value),
        )

        # 4. Game-over check sees the post-spawn board
        if not has_available_moves(self.board):
            self.end_game(GameOverReason.NO_MOVES)
        else:
            self._notify()
        return result

    def pause(self, reason: PauseReason = PauseReason.USER) -> bool:
        """Suspend the play clock. State and time left are kept."""
        if self.state != GameState.PLAYING or reason in self.session.pause_reasons:
            return False

        if not self.session.is_paused:
            self._carried = self.scheduler.now() - self._interval_started
        self.session = replace(self.session, pause_reasons=self.session.pause_reasons | {reason})
        self._cancel_timer()
        logger.debug("Paused (%s)", reason.value)
        self._notify()
        return True

    def resume(self, reason: PauseReason = PauseReason.USER) -> bool:
        """Lift one pause reason; the clock restarts once none remain."""
        if self.state != GameState.PLAYING or reason not in self.session.pause_reasons:
            return False

        self.session = replace(self.session, pause_reasons=self.session.pause_reasons - {reason})
        if not self.session.is_paused:
            self._start_timer(carried=self._carried)
            self._carried = 0.0
        logger.debug("Resumed (%s), paused=%s", reason.value, self.session.is_paused)
        self._notify()
        return True

    def lifecycle_event(self, kind: LifecycleEvent | str) -> bool:
        """Handle the host app leaving or returning to the foreground."""
        try:
            kind = LifecycleEvent(kind)
        except ValueError:
            logger.debug("Unknown lifecycle event %r ignored", kind)
            return False

        if kind == LifecycleEvent.BACKGROUNDED:
            if self.state == GameState.COUNTDOWN:
                self._cancel_timer()
                self.session = replace(self.session, state=GameState.IDLE, countdown=0)
                logger.info("Countdown interrupted by backgrounding")
                self._notify()
                return True
            return self.pause(PauseReason.BACKGROUND)

        return self.resume(PauseReason.BACKGROUND)
