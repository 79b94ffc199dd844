"""
Tests for the session state machine and schedulers.

Tests:
- Countdown and game start
- Play clock, pause/resume, lifecycle interrupts
- Move resolution order and ignored input
- Game over and high score
- Reset
"""

import asyncio
from dataclasses import replace

import pytest

from ..config import GameConfig
from ..engine_core.state import Board, Direction, Tile
from ..session import (
    AsyncioScheduler,
    GameOverReason,
    GameState,
    LifecycleEvent,
    ManualScheduler,
    PauseReason,
    SessionStateMachine,
)


LOCKING_ROWS = [
    [4, 4, 16, 32],
    [64, 128, 256, 512],
    [8, 16, 32, 64],
    [128, 256, 512, 1024],
]


class TestCountdown:
    """Tests for the pre-game countdown."""

    def test_countdown_then_playing(self, machine, scheduler):
        """start_countdown ticks 3 -> 2 -> 1 -> 0 then PLAYING with 90s and two tiles."""
        seen = []
        machine.add_listener(lambda m: seen.append((m.state, m.session.countdown)))

        assert machine.start_countdown()
        assert machine.state == GameState.COUNTDOWN
        assert machine.session.countdown == 3

        scheduler.advance(1)
        assert machine.session.countdown == 2
        scheduler.advance(1)
        assert machine.session.countdown == 1
        scheduler.advance(1)

        assert machine.state == GameState.PLAYING
        assert machine.session.time_left == 90
        assert machine.board.tile_count == 2
        assert [c for s, c in seen if s == GameState.COUNTDOWN] == [3, 2, 1]

    def test_only_one_timer_runs(self, machine, scheduler):
        machine.start_countdown()
        assert len(scheduler.active_timers) == 1

        scheduler.advance(3)
        assert machine.state == GameState.PLAYING
        assert len(scheduler.active_timers) == 1

    def test_second_start_ignored(self, machine):
        machine.start_countdown()
        assert not machine.start_countdown()
        assert machine.session.countdown == 3

    def test_start_ignored_while_playing(self, playing_machine):
        assert not playing_machine.start_countdown()
        assert playing_machine.state == GameState.PLAYING

    def test_background_cancels_countdown(self, machine, scheduler):
        """A backgrounded countdown is discarded, not resumed."""
        machine.start_countdown()
        scheduler.advance(1)

        machine.lifecycle_event(LifecycleEvent.BACKGROUNDED)
        assert machine.state == GameState.IDLE
        assert scheduler.active_timers == []

        machine.lifecycle_event(LifecycleEvent.FOREGROUNDED)
        scheduler.advance(10)
        assert machine.state == GameState.IDLE

        machine.start_countdown()
        assert machine.session.countdown == 3

    def test_zero_countdown_starts_immediately(self, scheduler):
        machine = SessionStateMachine(scheduler, config=GameConfig(countdown_seconds=0, seed=1))
        machine.start_countdown()

        assert machine.state == GameState.PLAYING

    def test_start_game_requires_countdown(self, machine):
        assert not machine.start_game()
        assert machine.state == GameState.IDLE


class TestPlayClock:
    """Tests for the play timer."""

    def test_clock_ticks_down(self, playing_machine, scheduler):
        scheduler.advance(10)
        assert playing_machine.session.time_left == 80

    def test_time_expiry_ends_game(self, playing_machine, scheduler):
        scheduler.advance(90)

        assert playing_machine.state == GameState.GAME_OVER
        assert playing_machine.session.game_over_reason == GameOverReason.TIME_EXPIRED
        assert playing_machine.session.time_left == 0
        assert scheduler.active_timers == []

    def test_pause_keeps_time_and_state(self, playing_machine, scheduler):
        scheduler.advance(10)
        assert playing_machine.pause()

        scheduler.advance(30)
        assert playing_machine.state == GameState.PLAYING
        assert playing_machine.session.time_left == 80
        assert scheduler.active_timers == []

        assert playing_machine.resume()
        scheduler.advance(5)
        assert playing_machine.session.time_left == 75

    def test_partial_second_survives_pause(self, playing_machine, scheduler):
        """Half a second before the pause plus half after makes one tick."""
        scheduler.advance(0.5)
        playing_machine.pause()
        scheduler.advance(30)
        playing_machine.resume()

        scheduler.advance(0.5)
        assert playing_machine.session.time_left == 89

    def test_frequent_pauses_do_not_freeze_clock(self, playing_machine, scheduler):
        """18 seconds of play split by pauses still cost about 18 seconds."""
        for _ in range(20):
            scheduler.advance(0.9)
            playing_machine.pause()
            playing_machine.resume()

        assert playing_machine.session.time_left in (72, 73)

    def test_ticks_ignored_while_paused(self, playing_machine):
        playing_machine.pause()
        assert not playing_machine.tick(1)
        assert playing_machine.session.time_left == 90

    def test_background_pauses_and_foreground_resumes(self, playing_machine, scheduler):
        playing_machine.lifecycle_event("backgrounded")
        scheduler.advance(20)
        assert playing_machine.session.time_left == 90

        playing_machine.lifecycle_event("foregrounded")
        scheduler.advance(2)
        assert playing_machine.session.time_left == 88

    def test_user_pause_survives_foreground(self, playing_machine, scheduler):
        """Returning to the app does not lift a pause the player asked for."""
        playing_machine.pause(PauseReason.USER)
        playing_machine.lifecycle_event(LifecycleEvent.BACKGROUNDED)
        playing_machine.lifecycle_event(LifecycleEvent.FOREGROUNDED)

        assert playing_machine.session.is_paused
        scheduler.advance(5)
        assert playing_machine.session.time_left == 90

    def test_unknown_lifecycle_event_ignored(self, playing_machine):
        assert not playing_machine.lifecycle_event("suspended")
        assert not playing_machine.session.is_paused

    def test_pause_outside_playing_ignored(self, machine):
        assert not machine.pause()
        assert not machine.resume()

    def test_host_delivered_ticks(self, playing_machine):
        """Hosts may deliver ticks themselves."""
        playing_machine.tick(3)
        assert playing_machine.session.time_left == 87


class TestMoves:
    """Tests for move resolution inside a session."""

    def test_move_ignored_when_idle(self, machine):
        assert machine.request_move(Direction.LEFT) is None
        assert machine.board == Board.empty()

    def test_move_ignored_while_paused(self, playing_machine, make_board):
        playing_machine.board = make_board([
            [0, 0, 0, 2],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ])
        before = playing_machine.board
        playing_machine.pause()

        assert playing_machine.request_move(Direction.LEFT) is None
        assert playing_machine.board is before

    def test_unknown_direction_ignored(self, playing_machine):
        before = playing_machine.board

        assert playing_machine.request_move("bogus") is None
        assert playing_machine.board is before
        assert playing_machine.session.moves_made == 0

    def test_corrupt_board_ignores_move(self, playing_machine, caplog):
        """A board with a repeated tile id is left alone."""
        tile = Tile(tile_id=-5, value=2)
        corrupt = Board.from_rows([
            [None, None, tile, tile],
            [None] * 4,
            [None] * 4,
            [None] * 4,
        ])
        playing_machine.board = corrupt

        with caplog.at_level("WARNING"):
            assert playing_machine.request_move(Direction.LEFT) is None

        assert playing_machine.board is corrupt
        assert playing_machine.session.score == 0
        assert "Duplicate tile id" in caplog.text

    def test_unchanged_move_has_no_side_effects(self, playing_machine, make_board):
        """No spawn, no score, no streak clock for a blocked move."""
        board = make_board([
            [2, 4, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ])
        playing_machine.board = board
        notified = []
        playing_machine.add_listener(notified.append)

        result = playing_machine.request_move(Direction.LEFT)

        assert not result.changed
        assert playing_machine.board is board
        assert playing_machine.session.moves_made == 0
        assert playing_machine.session.last_merge_at is None
        assert notified == []

    def test_changed_move_scores_then_spawns(self, playing_machine, scheduler, make_board):
        """Tile count grows by one spawn minus one per merge."""
        playing_machine.board = make_board([
            [2, 2, 4, 0],
            [0, 0, 0, 0],
            [0, 8, 0, 0],
            [0, 0, 0, 0],
        ])
        before = playing_machine.board.tile_count

        result = playing_machine.request_move(Direction.LEFT)

        assert result.changed
        assert playing_machine.board.tile_count == before + 1 - len(result.merges)
        assert playing_machine.session.score == 40
        assert playing_machine.session.last_merge_at == scheduler.now()
        assert playing_machine.session.moves_made == 1
        assert playing_machine.last_spawn is not None

    def test_combo_uses_scheduler_clock(self, playing_machine, scheduler, make_board):
        playing_machine.board = make_board([
            [2, 2, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [4, 4, 4, 4],
        ])
        playing_machine.request_move(Direction.LEFT)
        assert playing_machine.session.merge_streak == 0

        scheduler.set_time(scheduler.now() + 1.5)
        playing_machine.request_move(Direction.RIGHT)

        assert playing_machine.session.merge_streak == 1

    def test_listener_sees_settled_move(self, playing_machine, make_board):
        playing_machine.board = make_board([
            [2, 2, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ])
        seen = []
        playing_machine.add_listener(lambda m: seen.append((m.board.tile_count, m.session.score)))

        playing_machine.request_move(Direction.LEFT)

        assert seen == [(2, 40)]


class TestGameOver:
    """Tests for the no-moves game over and the high score."""

    def test_locked_board_ends_game_with_time_left(self, playing_machine, make_board, scheduler):
        """The check runs on the post-spawn board."""
        playing_machine.board = make_board(LOCKING_ROWS)

        playing_machine.request_move(Direction.LEFT)

        assert playing_machine.board.is_full
        assert playing_machine.state == GameState.GAME_OVER
        assert playing_machine.session.game_over_reason == GameOverReason.NO_MOVES
        assert playing_machine.session.time_left == 90
        assert playing_machine.session.high_score == 80
        assert scheduler.active_timers == []

    def test_high_score_needs_strict_improvement(self, playing_machine, make_board):
        playing_machine.session = replace(playing_machine.session, high_score=200)
        playing_machine.board = make_board(LOCKING_ROWS)

        playing_machine.request_move(Direction.LEFT)

        assert playing_machine.state == GameState.GAME_OVER
        assert playing_machine.session.high_score == 200

    def test_moves_ignored_after_game_over(self, playing_machine, scheduler):
        scheduler.advance(90)
        board = playing_machine.board

        assert playing_machine.request_move(Direction.UP) is None
        assert playing_machine.board is board

    def test_restart_from_game_over(self, playing_machine, scheduler, make_board):
        playing_machine.board = make_board(LOCKING_ROWS)
        playing_machine.request_move(Direction.LEFT)

        assert playing_machine.start_countdown()
        scheduler.advance(3)

        assert playing_machine.state == GameState.PLAYING
        assert playing_machine.session.score == 0
        assert playing_machine.session.high_score == 80
        assert playing_machine.board.tile_count == 2

    def test_no_silent_restart(self, playing_machine, scheduler):
        scheduler.advance(90)
        scheduler.advance(60)

        assert playing_machine.state == GameState.GAME_OVER


class TestReset:
    """Tests for reset_game."""

    def test_reset_from_playing(self, playing_machine, scheduler):
        playing_machine.session = replace(playing_machine.session, score=300, high_score=500, merge_streak=2)

        playing_machine.reset_game()

        assert playing_machine.state == GameState.IDLE
        assert playing_machine.board == Board.empty()
        assert playing_machine.session.score == 0
        assert playing_machine.session.merge_streak == 0
        assert playing_machine.session.high_score == 500
        assert scheduler.active_timers == []

    def test_reset_from_countdown(self, machine, scheduler):
        machine.start_countdown()
        machine.reset_game()

        scheduler.advance(5)
        assert machine.state == GameState.IDLE


class TestSchedulers:
    """Tests for the timer services."""

    def test_manual_cancel_stops_callbacks(self):
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.schedule_repeating(1.0, lambda: calls.append(scheduler.now()))

        scheduler.advance(2)
        handle.cancel()
        scheduler.advance(5)

        assert calls == [1.0, 2.0]
        assert scheduler.now() == 7.0

    def test_manual_rejects_bad_interval(self):
        with pytest.raises(ValueError):
            ManualScheduler().schedule_repeating(0, lambda: None)
        with pytest.raises(ValueError):
            ManualScheduler().schedule_repeating(1.0, lambda: None, delay=-0.5)

    def test_manual_first_delay(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.schedule_repeating(1.0, lambda: calls.append(scheduler.now()), delay=0.25)

        scheduler.advance(2.5)

        assert calls == [0.25, 1.25, 2.25]

    def test_asyncio_scheduler_runs_a_full_game(self):
        """A short game plays out on a real event loop."""
        config = GameConfig(countdown_seconds=2, game_duration_seconds=3, tick_interval=0.01, seed=3)

        async def play():
            machine = SessionStateMachine(AsyncioScheduler(), config=config)
            states = []
            machine.add_listener(lambda m: states.append(m.state))
            machine.start_countdown()
            for _ in range(200):
                if machine.state == GameState.GAME_OVER:
                    break
                await asyncio.sleep(0.01)
            return machine, states

        machine, states = asyncio.run(play())

        assert machine.state == GameState.GAME_OVER
        assert machine.session.game_over_reason == GameOverReason.TIME_EXPIRED
        assert GameState.PLAYING in states

    def test_asyncio_cancel(self):
        async def run():
            scheduler = AsyncioScheduler()
            calls = []
            handle = scheduler.schedule_repeating(0.01, lambda: calls.append(1))
            await asyncio.sleep(0.035)
            handle.cancel()
            count = len(calls)
            await asyncio.sleep(0.05)
            return count, len(calls)

        before, after = asyncio.run(run())
        assert before >= 1
        assert after == before
